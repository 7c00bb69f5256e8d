"""MCPClient — one connection to one MCP server.

Implements the calls the gateway needs: ``tools/list``, ``tools/call``,
``resources/list``, ``resources/read``, ``prompts/list`` and ``prompts/get``,
over an :class:`MCPTransport`.
"""

from __future__ import annotations

import logging
from typing import TYPE_CHECKING, Any, cast

from agw import __version__
from agw.protocols.errors import ConnectionError, ProtocolError, ToolExecutionError
from agw.protocols.mcp.models import (
    JsonRpcNotification,
    JsonRpcRequest,
    JsonRpcResponse,
    MCPPromptDef,
    MCPResourceDef,
    MCPToolDef,
    ServerCapabilities,
)
from agw.protocols.mcp.transport import (
    HttpTransport,
    MCPTransport,
    StdioTransport,
    WebSocketTransport,
)

if TYPE_CHECKING:
    from agw.config import MCPServerRef

logger = logging.getLogger(__name__)

PROTOCOL_VERSION = "2024-11-05"

# Upper bound on messages skipped while waiting for a response id.
_MAX_INTERLEAVED_MESSAGES = 100


class MCPClient:
    """Async context manager that connects to a single MCP server.

    Usage::

        ref = MCPServerRef(name="fs", transport="stdio", command="npx @mcp/filesystem")
        async with MCPClient(ref) as client:
            tools = await client.list_tools()
            result = await client.call_tool("read_file", {"path": "/tmp/x"})
    """

    def __init__(self, server_ref: MCPServerRef) -> None:
        self._ref = server_ref
        self._transport: MCPTransport | None = None
        self._next_id = 1
        self.capabilities = ServerCapabilities()

    @property
    def name(self) -> str:
        return self._ref.name

    @property
    def connected(self) -> bool:
        return self._transport is not None

    async def __aenter__(self) -> MCPClient:
        await self.connect()
        return self

    async def __aexit__(self, *_: object) -> None:
        await self.close()

    async def connect(self) -> None:
        """Create the transport, connect, and perform the initialize handshake."""
        transport = self._create_transport()
        try:
            await transport.connect()
            self._transport = transport
            await self._handshake()
        except Exception as exc:
            self._transport = None
            msg = f"Cannot connect to MCP server '{self._ref.name}': {exc}"
            raise ConnectionError(msg) from exc

    async def close(self) -> None:
        if self._transport is not None:
            await self._transport.close()
            self._transport = None

    # ------------------------------------------------------------------
    # Tools
    # ------------------------------------------------------------------

    async def list_tools(self) -> list[MCPToolDef]:
        raw = await self._list_paginated("tools/list", "tools")
        return [MCPToolDef.model_validate(item) for item in raw]

    async def call_tool(self, name: str, arguments: dict[str, Any]) -> dict[str, Any]:
        """Send ``tools/call`` and return the raw result object.

        A result flagged ``isError`` is raised as :class:`ToolExecutionError`
        carrying the tool's text output.
        """
        response = await self._send_request(
            "tools/call",
            params={"name": name, "arguments": arguments},
        )
        if response.error is not None:
            raise ToolExecutionError(name, response.error.message)

        result = response.result or {}
        if result.get("isError"):
            raise ToolExecutionError(name, _text_of(result) or "tool reported an error")
        return result

    # ------------------------------------------------------------------
    # Resources
    # ------------------------------------------------------------------

    async def list_resources(self) -> list[MCPResourceDef]:
        raw = await self._list_paginated("resources/list", "resources")
        return [MCPResourceDef.model_validate(item) for item in raw]

    async def read_resource(self, uri: str) -> dict[str, Any]:
        """Send ``resources/read``; the result holds a ``contents`` array."""
        response = await self._send_request("resources/read", params={"uri": uri})
        self._raise_for_error(response, f"resources/read {uri}")
        return response.result or {}

    # ------------------------------------------------------------------
    # Prompts
    # ------------------------------------------------------------------

    async def list_prompts(self) -> list[MCPPromptDef]:
        raw = await self._list_paginated("prompts/list", "prompts")
        return [MCPPromptDef.model_validate(item) for item in raw]

    async def get_prompt(
        self, name: str, arguments: dict[str, str] | None = None
    ) -> dict[str, Any]:
        response = await self._send_request(
            "prompts/get",
            params={"name": name, "arguments": arguments or {}},
        )
        self._raise_for_error(response, f"prompts/get {name}")
        return response.result or {}

    # ------------------------------------------------------------------
    # Internals
    # ------------------------------------------------------------------

    def _create_transport(self) -> MCPTransport:
        """Build the appropriate transport from the server reference."""
        ref = self._ref
        if ref.transport == "stdio":
            if not ref.command:
                msg = "MCPServerRef with stdio transport must specify 'command'"
                raise ValueError(msg)
            return StdioTransport(command=ref.command, env=dict(ref.env) or None)
        if not ref.url:
            msg = f"MCPServerRef with {ref.transport} transport must specify 'url'"
            raise ValueError(msg)
        if ref.transport == "websocket":
            return WebSocketTransport(url=ref.url, headers=dict(ref.headers))
        return HttpTransport(url=ref.url, headers=dict(ref.headers), timeout=ref.timeout)

    async def _handshake(self) -> None:
        response = await self._send_request(
            "initialize",
            params={
                "protocolVersion": PROTOCOL_VERSION,
                "capabilities": {},
                "clientInfo": {"name": "agw", "version": __version__},
            },
        )
        self._raise_for_error(response, "initialize")
        result = response.result or {}
        self.capabilities = ServerCapabilities.model_validate(result.get("capabilities") or {})
        await self._send_notification("notifications/initialized")
        logger.debug(
            "Connected to MCP server %s (protocol %s)",
            self._ref.name,
            result.get("protocolVersion", "?"),
        )

    async def _list_paginated(self, method: str, key: str) -> list[dict[str, Any]]:
        items: list[dict[str, Any]] = []
        cursor: str | None = None
        while True:
            params = {"cursor": cursor} if cursor else {}
            response = await self._send_request(method, params=params)
            self._raise_for_error(response, method)
            result = response.result or {}
            items.extend(cast("list[dict[str, Any]]", result.get(key, [])))
            cursor = result.get("nextCursor")
            if not cursor:
                return items

    async def _send_request(
        self,
        method: str,
        params: dict[str, Any] | None = None,
    ) -> JsonRpcResponse:
        """Send a JSON-RPC request and wait for the response with the same id."""
        if self._transport is None:
            msg = "Client not connected"
            raise RuntimeError(msg)

        request_id = self._next_id
        self._next_id += 1

        request = JsonRpcRequest(method=method, id=request_id, params=params or {})
        await self._transport.send(request.model_dump())

        for _ in range(_MAX_INTERLEAVED_MESSAGES):
            raw = await self._transport.receive()
            if "method" in raw and "result" not in raw and "error" not in raw:
                logger.debug("Skipping server message %s while awaiting %s", raw["method"], method)
                continue
            response = JsonRpcResponse.model_validate(raw)
            if response.id == request_id:
                return response
            logger.debug("Skipping response id=%s while awaiting id=%s", response.id, request_id)
        msg = f"No response to '{method}' from MCP server '{self._ref.name}'"
        raise ProtocolError(msg)

    async def _send_notification(self, method: str) -> None:
        if self._transport is None:
            msg = "Client not connected"
            raise RuntimeError(msg)
        await self._transport.send(JsonRpcNotification(method=method).model_dump())

    def _raise_for_error(self, response: JsonRpcResponse, what: str) -> None:
        if response.error is not None:
            msg = f"{what} failed on server '{self._ref.name}': {response.error.message}"
            raise ProtocolError(msg)


def _text_of(result: dict[str, Any]) -> str:
    content = cast("list[dict[str, Any]]", result.get("content") or [])
    parts = [str(item.get("text", "")) for item in content if item.get("type") == "text"]
    return "\n".join(parts)
