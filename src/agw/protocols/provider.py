"""ToolProvider protocol — the common interface for every tool the assistant can call.

The MCP gateway tool and the research tool both satisfy this protocol so that
the :class:`~agw.protocols.dispatcher.ToolDispatcher` can route tool calls
without knowing what sits behind them.
"""

from __future__ import annotations

from typing import TYPE_CHECKING, Any, Protocol, runtime_checkable

if TYPE_CHECKING:
    from agw.protocols.models import ToolResult


@runtime_checkable
class ToolProvider(Protocol):
    """Describes and executes one or more function-calling tools."""

    async def discover_tools(self) -> list[dict[str, Any]]:
        """Return tools as OpenAI-compatible function schemas.

        Each dict follows the shape::

            {
                "type": "function",
                "function": {
                    "name": "...",
                    "description": "...",
                    "parameters": { ... }   # JSON Schema
                }
            }
        """
        ...

    async def execute_tool(self, name: str, arguments: dict[str, Any]) -> ToolResult:
        """Execute a tool by name and return its result."""
        ...
