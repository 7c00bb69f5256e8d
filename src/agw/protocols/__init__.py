"""Protocol layer — MCP client, tool providers, and tool routing."""

from agw.protocols.dispatcher import ToolDispatcher
from agw.protocols.errors import (
    ConnectionError,
    NoServersConfiguredError,
    ProtocolError,
    ServerConfigNotFoundError,
    ToolExecutionError,
    ToolNotFoundError,
)
from agw.protocols.provider import ToolProvider

__all__ = [
    "ConnectionError",
    "NoServersConfiguredError",
    "ProtocolError",
    "ServerConfigNotFoundError",
    "ToolDispatcher",
    "ToolExecutionError",
    "ToolNotFoundError",
    "ToolProvider",
]
