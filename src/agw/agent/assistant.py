"""AssistantAgent — an LLM tool-calling loop over the gateway's tools.

The model is called through LiteLLM with OpenAI-style messages; every tool
call it emits is routed through a :class:`~agw.protocols.dispatcher.ToolDispatcher`
and the result is fed back until the model answers in plain text.  History
lives only in this object.
"""

from __future__ import annotations

import json
import logging
from typing import TYPE_CHECKING, Any

import litellm

from agw.protocols.dispatcher import ToolDispatcher
from agw.protocols.errors import ProtocolError
from agw.protocols.models import ToolCall, ToolResult
from agw.utils.telemetry import ATTR_ITERATION, ATTR_MODEL, get_tracer

if TYPE_CHECKING:
    from agw.config import ModelConfig
    from agw.protocols.provider import ToolProvider

logger = logging.getLogger(__name__)
_tracer = get_tracer(__name__)

DEFAULT_INSTRUCTIONS = """\
You are a capable AI assistant with tools at your disposal. Use them directly \
whenever a request needs them; do not ask for permission first.

Tools:
- research: real-time web research and current information.
- mcp: extended capabilities over the Model Context Protocol. Actions are \
list_tools, execute_tool, list_resources, get_resource, list_prompts and get_prompt.

For MCP work, first discover what is available (list_tools or list_resources), \
then execute the tool or fetch the resource, then present the results. Cite \
resource URIs when you rely on them. If a tool fails, read the error message and \
try another approach."""


class AgentError(Exception):
    """The assistant could not produce an answer."""


class AssistantAgent:
    """Conversational agent with the MCP gateway and research tools.

    Usage::

        agent = await AssistantAgent.create(
            settings.model,
            [MCPGatewayTool(dispatcher), ResearchClient(settings.research)],
        )
        reply = await agent.ask("What MCP tools do I have?")
    """

    def __init__(
        self,
        config: ModelConfig,
        tools: ToolDispatcher,
        *,
        instructions: str = DEFAULT_INSTRUCTIONS,
        max_iterations: int = 8,
    ) -> None:
        self.config = config
        self._tools = tools
        self._max_iterations = max_iterations
        self.messages: list[dict[str, Any]] = [{"role": "system", "content": instructions}]

    @classmethod
    async def create(
        cls,
        config: ModelConfig,
        providers: list[ToolProvider],
        **kwargs: Any,
    ) -> AssistantAgent:
        """Register *providers* in a fresh :class:`ToolDispatcher` and build the agent."""
        dispatcher = ToolDispatcher()
        for provider in providers:
            await dispatcher.register(provider)
        return cls(config, dispatcher, **kwargs)

    async def ask(self, text: str) -> str:
        """Send one user turn and return the assistant's final text."""
        self.messages.append({"role": "user", "content": text})

        with _tracer.start_as_current_span("agent.ask") as span:
            span.set_attribute(ATTR_MODEL, self.config.model)
            for iteration in range(1, self._max_iterations + 1):
                span.set_attribute(ATTR_ITERATION, iteration)
                response = await litellm.acompletion(**self._completion_kwargs())  # pyright: ignore[reportUnknownMemberType]
                message = response.choices[0].message
                tool_calls = list(message.tool_calls or [])
                self.messages.append(_assistant_message(message.content, tool_calls))

                if not tool_calls:
                    return message.content or ""

                for raw_call in tool_calls:
                    call = ToolCall(
                        id=raw_call.id,
                        name=raw_call.function.name,
                        arguments=_parse_arguments(raw_call.function.arguments),
                    )
                    result = await self._run_tool(call)
                    self.messages.append(
                        {"role": "tool", "tool_call_id": call.id, "content": result.text}
                    )

        msg = f"No final answer after {self._max_iterations} iterations"
        raise AgentError(msg)

    async def _run_tool(self, call: ToolCall) -> ToolResult:
        logger.info("Calling tool %s", call.name)
        try:
            return await self._tools.execute(call)
        except ProtocolError as exc:
            logger.warning("Tool %s failed: %s", call.name, exc)
            return ToolResult.from_text(call.id, f"Error: {exc}", is_error=True)

    def _completion_kwargs(self) -> dict[str, Any]:
        kwargs: dict[str, Any] = {
            "model": self.config.model,
            "messages": self.messages,
            **self.config.extra,
        }
        if self.config.api_key:
            kwargs["api_key"] = self.config.api_key
        if self.config.api_base:
            kwargs["api_base"] = self.config.api_base
        tools = self._tools.all_tools()
        if tools:
            kwargs["tools"] = tools
        return kwargs


def _assistant_message(content: str | None, tool_calls: list[Any]) -> dict[str, Any]:
    message: dict[str, Any] = {"role": "assistant", "content": content}
    if tool_calls:
        message["tool_calls"] = [
            {
                "id": tc.id,
                "type": "function",
                "function": {"name": tc.function.name, "arguments": tc.function.arguments},
            }
            for tc in tool_calls
        ]
    return message


def _parse_arguments(raw: str | None) -> dict[str, Any]:
    """Parse JSON string arguments from a tool call."""
    try:
        result = json.loads(raw or "{}")
    except (json.JSONDecodeError, TypeError):
        return {"raw": raw}
    return result if isinstance(result, dict) else {"value": result}
