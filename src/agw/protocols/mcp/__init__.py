"""MCP protocol — Model Context Protocol clients and transports."""

from agw.protocols.mcp.client import MCPClient
from agw.protocols.mcp.models import (
    JsonRpcError,
    JsonRpcNotification,
    JsonRpcRequest,
    JsonRpcResponse,
    MCPPromptArgument,
    MCPPromptDef,
    MCPResourceDef,
    MCPToolDef,
    ServerCapabilities,
)
from agw.protocols.mcp.multi import MultiServerClient, PromptsAPI, RemoteTool
from agw.protocols.mcp.transport import (
    HttpTransport,
    MCPTransport,
    StdioTransport,
    WebSocketTransport,
)

__all__ = [
    "HttpTransport",
    "JsonRpcError",
    "JsonRpcNotification",
    "JsonRpcRequest",
    "JsonRpcResponse",
    "MCPClient",
    "MCPPromptArgument",
    "MCPPromptDef",
    "MCPResourceDef",
    "MCPToolDef",
    "MCPTransport",
    "MultiServerClient",
    "PromptsAPI",
    "RemoteTool",
    "ServerCapabilities",
    "StdioTransport",
    "WebSocketTransport",
]
