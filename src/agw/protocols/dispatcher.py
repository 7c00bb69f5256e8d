"""ToolDispatcher — routes tool calls to the ToolProvider that owns them."""

from __future__ import annotations

import logging
from typing import TYPE_CHECKING, Any

from agw.protocols.errors import ToolNotFoundError

if TYPE_CHECKING:
    from agw.protocols.models import ToolCall, ToolResult
    from agw.protocols.provider import ToolProvider

logger = logging.getLogger(__name__)


class ToolDispatcher:
    """Maintains a name-to-provider map and dispatches tool calls.

    Usage::

        dispatcher = ToolDispatcher()
        await dispatcher.register(MCPGatewayTool(action_dispatcher))
        await dispatcher.register(ResearchClient(settings.research))

        schemas = dispatcher.all_tools()
        result = await dispatcher.execute(call)
    """

    def __init__(self) -> None:
        self._tool_map: dict[str, ToolProvider] = {}
        self._tool_schemas: dict[str, dict[str, Any]] = {}

    async def register(self, provider: ToolProvider) -> None:
        """Discover tools from *provider* and add them to the routing table.

        A later provider exposing an already registered name takes it over.
        """
        for schema in await provider.discover_tools():
            name: str = schema["function"]["name"]
            if name in self._tool_map:
                logger.warning("Tool %s registered twice; the later provider wins", name)
            self._tool_map[name] = provider
            self._tool_schemas[name] = schema

    def all_tools(self) -> list[dict[str, Any]]:
        """Return every registered tool schema, in registration order."""
        return list(self._tool_schemas.values())

    async def execute(self, tool_call: ToolCall) -> ToolResult:
        """Route one tool call and stamp the result with the call's id."""
        provider = self._tool_map.get(tool_call.name)
        if provider is None:
            raise ToolNotFoundError(tool_call.name)
        result = await provider.execute_tool(tool_call.name, tool_call.arguments)
        return result.model_copy(update={"tool_call_id": tool_call.id})
