"""MCP models — JSON-RPC 2.0 messages and capability definitions.

Implements the message format used by the Model Context Protocol for
tool, resource and prompt discovery (``*/list``) and for ``tools/call``,
``resources/read`` and ``prompts/get``.
"""

from __future__ import annotations

from typing import Any

from pydantic import BaseModel, Field

# ---------------------------------------------------------------------------
# JSON-RPC 2.0 envelope
# ---------------------------------------------------------------------------


class JsonRpcRequest(BaseModel):
    """A JSON-RPC 2.0 request message."""

    jsonrpc: str = "2.0"
    method: str
    id: int | str = 1
    params: dict[str, Any] = {}


class JsonRpcNotification(BaseModel):
    """A JSON-RPC 2.0 notification (a request without an id)."""

    jsonrpc: str = "2.0"
    method: str
    params: dict[str, Any] = {}


class JsonRpcError(BaseModel):
    """A JSON-RPC 2.0 error object."""

    code: int
    message: str
    data: Any = None


class JsonRpcResponse(BaseModel):
    """A JSON-RPC 2.0 response message."""

    jsonrpc: str = "2.0"
    id: int | str | None = 1
    result: dict[str, Any] | None = None
    error: JsonRpcError | None = None


# ---------------------------------------------------------------------------
# MCP-specific payloads
# ---------------------------------------------------------------------------


class MCPToolDef(BaseModel):
    """A tool definition as returned by ``tools/list``."""

    model_config = {"populate_by_name": True}

    name: str
    description: str = ""
    input_schema: dict[str, Any] = Field(default_factory=dict, alias="inputSchema")
    output_schema: dict[str, Any] | None = Field(default=None, alias="outputSchema")


class MCPResourceDef(BaseModel):
    """A resource definition as returned by ``resources/list``."""

    model_config = {"populate_by_name": True}

    uri: str
    name: str = ""
    description: str | None = None
    mime_type: str | None = Field(default=None, alias="mimeType")


class MCPPromptArgument(BaseModel):
    """One declared argument of a prompt template."""

    name: str
    description: str | None = None
    required: bool | None = None


class MCPPromptDef(BaseModel):
    """A prompt template definition as returned by ``prompts/list``."""

    name: str
    description: str | None = None
    arguments: list[MCPPromptArgument] = []


class ServerCapabilities(BaseModel):
    """The capability flags a server advertises in its ``initialize`` result."""

    model_config = {"extra": "allow"}

    tools: dict[str, Any] | None = None
    resources: dict[str, Any] | None = None
    prompts: dict[str, Any] | None = None
