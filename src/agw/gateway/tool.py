"""MCPGatewayTool — the action dispatcher exposed as one function-calling tool.

Satisfies :class:`~agw.protocols.provider.ToolProvider`, so it can sit in a
:class:`~agw.protocols.dispatcher.ToolDispatcher` next to the research tool.
"""

from __future__ import annotations

import json
from typing import TYPE_CHECKING, Any

from agw.gateway.errors import GatewayError
from agw.gateway.models import ACTIONS
from agw.protocols.errors import ToolExecutionError, ToolNotFoundError
from agw.protocols.models import ToolResult

if TYPE_CHECKING:
    from agw.gateway.dispatcher import ActionDispatcher

TOOL_NAME = "mcp"

TOOL_DESCRIPTION = """\
Access third-party tools, resources and prompt templates via the Model Context Protocol (MCP).

TOOL USAGE:
1. Use action="list_tools" to discover available tools with their descriptions and schemas
2. Execute tools with action="execute_tool" using the tool's id (e.g. "RUBE_SEARCH_TOOLS")
3. Provide tool_arguments as a JSON string matching the tool's inputSchema

RESOURCE USAGE:
1. Use action="list_resources" to discover resources with their URIs and descriptions
2. Use action="get_resource" with a resource_uri to fetch resource content
3. Resources are authoritative context; cite their URIs when referencing them

PROMPT USAGE:
1. Use action="list_prompts" to discover prompt templates
2. Use action="get_prompt" with prompt_name and prompt_arguments to inspect a template

Always explore available tools and resources before assuming arguments or capabilities."""

TOOL_PARAMETERS: dict[str, Any] = {
    "type": "object",
    "properties": {
        "action": {
            "type": "string",
            "enum": list(ACTIONS),
            "description": "The MCP action to perform",
        },
        "server_name": {
            "type": "string",
            "description": "Name of the MCP server (if targeting a specific server)",
        },
        "tool_name": {
            "type": "string",
            "description": "Name or id of the tool to execute (for execute_tool)",
        },
        "tool_arguments": {
            "type": "string",
            "description": "Arguments to pass to the tool, as a JSON string",
        },
        "resource_uri": {
            "type": "string",
            "description": "URI of the resource to retrieve",
        },
        "max_bytes": {
            "type": "integer",
            "description": "Maximum characters of resource content to return (default: 100000)",
        },
        "as_text": {
            "type": "boolean",
            "description": "Decode binary resource content as UTF-8 text when possible",
        },
        "prompt_name": {
            "type": "string",
            "description": "Name of the prompt template to retrieve",
        },
        "prompt_arguments": {
            "type": "string",
            "description": "Arguments for the prompt template, as a JSON string",
        },
    },
    "required": ["action"],
}


class MCPGatewayTool:
    """Wraps an :class:`ActionDispatcher` behind the ``mcp`` tool schema."""

    def __init__(self, dispatcher: ActionDispatcher) -> None:
        self._dispatcher = dispatcher

    async def discover_tools(self) -> list[dict[str, Any]]:
        return [
            {
                "type": "function",
                "function": {
                    "name": TOOL_NAME,
                    "description": TOOL_DESCRIPTION,
                    "parameters": TOOL_PARAMETERS,
                },
            }
        ]

    async def execute_tool(self, name: str, arguments: dict[str, Any]) -> ToolResult:
        """Dispatch *arguments* as an action request; the envelope comes back as JSON."""
        if name != TOOL_NAME:
            raise ToolNotFoundError(name)
        try:
            envelope = await self._dispatcher.dispatch(arguments)
        except GatewayError as exc:
            raise ToolExecutionError(name, str(exc)) from exc
        text = json.dumps(envelope.model_dump(), default=str, ensure_ascii=False)
        return ToolResult.from_text(tool_call_id="", text=text)
