"""Assistant agent wiring the MCP gateway and research tools to an LLM."""

from agw.agent.assistant import DEFAULT_INSTRUCTIONS, AgentError, AssistantAgent

__all__ = ["DEFAULT_INSTRUCTIONS", "AgentError", "AssistantAgent"]
