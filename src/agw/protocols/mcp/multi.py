"""MultiServerClient — the remote capability client used by the gateway.

Aggregates several named MCP servers behind the narrow contract the action
dispatcher relies on:

* ``get_tools()`` → flat ``{"<server>_<tool>": RemoteTool}`` mapping;
* ``get_resources()`` → ``{server: [MCPResourceDef, ...]}``;
* ``read_resource(server, uri)`` → raw ``resources/read`` result;
* ``prompts.list()`` / ``prompts.get(name, arguments)``.

Connections are opened lazily, one server at a time, and reused until
:meth:`MultiServerClient.close`.  A connection whose transport fails is
closed and forgotten, so the next call to that server reconnects.  Nothing
is cached: every call queries the servers again.
"""

from __future__ import annotations

import logging
from collections.abc import Awaitable, Callable
from typing import TYPE_CHECKING, Any

import httpx

from agw.protocols.errors import NoServersConfiguredError, ServerConfigNotFoundError
from agw.protocols.mcp.client import MCPClient

if TYPE_CHECKING:
    from agw.config import MCPServerRef
    from agw.protocols.mcp.models import MCPPromptDef, MCPResourceDef, MCPToolDef

logger = logging.getLogger(__name__)

ClientFactory = Callable[["MCPServerRef"], MCPClient]
ServerCall = Callable[[MCPClient], Awaitable[Any]]

# Failures after which a connection is unusable.
TRANSPORT_ERRORS: tuple[type[BaseException], ...] = (RuntimeError, OSError, httpx.TransportError)


class RemoteTool:
    """A tool living on one server, callable through :meth:`execute`."""

    def __init__(self, server: str, definition: MCPToolDef, owner: MultiServerClient) -> None:
        self.server = server
        self.definition = definition
        self._owner = owner

    @property
    def id(self) -> str:
        return self.definition.name

    @property
    def description(self) -> str:
        return self.definition.description

    @property
    def input_schema(self) -> dict[str, Any]:
        return self.definition.input_schema

    @property
    def output_schema(self) -> dict[str, Any] | None:
        return self.definition.output_schema

    async def execute(self, context: dict[str, Any]) -> dict[str, Any]:
        return await self._owner.call(
            self.server, lambda client: client.call_tool(self.definition.name, context)
        )

    def __repr__(self) -> str:
        return f"RemoteTool(server={self.server!r}, id={self.id!r})"


class PromptsAPI:
    """The ``prompts`` namespace of :class:`MultiServerClient`."""

    def __init__(self, owner: MultiServerClient) -> None:
        self._owner = owner

    async def list(self) -> dict[str, list[MCPPromptDef]]:
        """Return prompt templates per server.

        Servers that do not advertise the prompts capability contribute an
        empty list instead of failing the whole call.
        """
        return {
            name: await self._owner.call(name, _list_prompts)
            for name in self._owner.server_names()
        }

    async def get(
        self,
        name: str,
        arguments: dict[str, str] | None = None,
        server: str | None = None,
    ) -> dict[str, Any]:
        """Fetch a rendered prompt, locating its server when none is given."""
        if server is None:
            for server_name, prompts in (await self.list()).items():
                if any(p.name == name for p in prompts):
                    server = server_name
                    break
            else:
                raise ServerConfigNotFoundError(f"no server offers prompt '{name}'")
        return await self._owner.call(server, lambda client: client.get_prompt(name, arguments))


class MultiServerClient:
    """Owns one :class:`MCPClient` per configured server.

    Usage::

        async with MultiServerClient(settings.servers) as client:
            tools = await client.get_tools()
            await tools["rube_SEARCH_TOOLS"].execute({"query": "gmail"})
    """

    def __init__(
        self,
        servers: list[MCPServerRef],
        *,
        client_factory: ClientFactory = MCPClient,
    ) -> None:
        self._refs: dict[str, MCPServerRef] = {ref.name: ref for ref in servers}
        self._factory = client_factory
        self._clients: dict[str, MCPClient] = {}
        self.prompts = PromptsAPI(self)

    async def __aenter__(self) -> MultiServerClient:
        return self

    async def __aexit__(self, *_: object) -> None:
        await self.close()

    def server_names(self) -> list[str]:
        """Configured server names, in configuration order."""
        if not self._refs:
            raise NoServersConfiguredError()
        return list(self._refs)

    async def client_for(self, server: str) -> MCPClient:
        """Return a connected client for *server*, connecting on first use."""
        ref = self._refs.get(server)
        if ref is None:
            raise ServerConfigNotFoundError(server)
        client = self._clients.get(server)
        if client is None or not client.connected:
            client = self._factory(ref)
            await client.connect()
            self._clients[server] = client
            logger.info("Connected to MCP server %s (%s)", server, ref.transport)
        return client

    async def call(self, server: str, func: ServerCall) -> Any:
        """Run *func* with *server*'s client.

        On a transport failure the connection is closed and dropped before
        the error propagates; the next call reconnects.
        """
        client = await self.client_for(server)
        try:
            return await func(client)
        except TRANSPORT_ERRORS as exc:
            logger.warning("MCP server %s connection lost: %s", server, exc)
            await self._discard(server, client)
            raise

    async def get_tools(self) -> dict[str, RemoteTool]:
        tools: dict[str, RemoteTool] = {}
        for name in self.server_names():
            for definition in await self.call(name, _list_tools):
                tools[f"{name}_{definition.name}"] = RemoteTool(name, definition, self)
        return tools

    async def get_resources(self) -> dict[str, list[MCPResourceDef]]:
        return {name: await self.call(name, _list_resources) for name in self.server_names()}

    async def read_resource(self, server: str, uri: str) -> dict[str, Any]:
        return await self.call(server, lambda client: client.read_resource(uri))

    async def _discard(self, server: str, client: MCPClient) -> None:
        if self._clients.get(server) is client:
            del self._clients[server]
        try:
            await client.close()
        except Exception:
            logger.debug("Error closing failed MCP server %s", server, exc_info=True)

    async def close(self) -> None:
        """Close every open connection; errors on one server do not stop the rest."""
        clients, self._clients = self._clients, {}
        for name, client in clients.items():
            try:
                await client.close()
            except Exception:
                logger.warning("Error closing MCP server %s", name, exc_info=True)


async def _list_tools(client: MCPClient) -> list[MCPToolDef]:
    return await client.list_tools()


async def _list_resources(client: MCPClient) -> list[MCPResourceDef]:
    if client.capabilities.resources is None:
        return []
    return await client.list_resources()


async def _list_prompts(client: MCPClient) -> list[MCPPromptDef]:
    if client.capabilities.prompts is None:
        return []
    return await client.list_prompts()
