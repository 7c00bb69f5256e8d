"""Tests for MCPClient with a mocked transport."""

from unittest.mock import AsyncMock, MagicMock, patch

import pytest

from agw.config import MCPServerRef
from agw.protocols.errors import ConnectionError, ProtocolError, ToolExecutionError
from agw.protocols.mcp.client import PROTOCOL_VERSION, MCPClient
from agw.protocols.mcp.transport import HttpTransport, StdioTransport, WebSocketTransport


def _init_response(capabilities: dict | None = None) -> dict:
    return {
        "jsonrpc": "2.0",
        "id": 1,
        "result": {"protocolVersion": PROTOCOL_VERSION, "capabilities": capabilities or {}},
    }


def _make_transport(responses: list[dict] | None = None) -> MagicMock:
    """Create a mock transport that returns a sequence of JSON-RPC messages."""
    transport = MagicMock()
    transport.connect = AsyncMock()
    transport.close = AsyncMock()
    transport.send = AsyncMock()
    transport.receive = AsyncMock(side_effect=responses or [_init_response()])
    return transport


def _ref() -> MCPServerRef:
    return MCPServerRef(name="test", transport="stdio", command="echo test")


class TestMCPClientConnect:
    async def test_handshake_sends_initialize_then_notification(self) -> None:
        transport = _make_transport([_init_response({"tools": {}, "prompts": {}})])

        with patch.object(MCPClient, "_create_transport", return_value=transport):
            client = MCPClient(_ref())
            await client.connect()

        sent = [c.args[0] for c in transport.send.call_args_list]
        assert sent[0]["method"] == "initialize"
        assert sent[0]["params"]["protocolVersion"] == PROTOCOL_VERSION
        assert sent[0]["params"]["clientInfo"]["name"] == "agw"
        assert sent[1]["method"] == "notifications/initialized"
        assert "id" not in sent[1]
        assert client.capabilities.tools == {}
        assert client.capabilities.resources is None
        assert client.connected

    async def test_connect_error_raises(self) -> None:
        transport = MagicMock()
        transport.connect = AsyncMock(side_effect=OSError("spawn failed"))

        with (
            patch.object(MCPClient, "_create_transport", return_value=transport),
            pytest.raises(ConnectionError, match="Cannot connect to MCP server 'test'"),
        ):
            await MCPClient(_ref()).connect()

    async def test_initialize_error_raises(self) -> None:
        transport = _make_transport([
            {"jsonrpc": "2.0", "id": 1, "error": {"code": -32600, "message": "bad version"}},
        ])

        with patch.object(MCPClient, "_create_transport", return_value=transport):
            client = MCPClient(_ref())
            with pytest.raises(ConnectionError, match="bad version"):
                await client.connect()
        assert not client.connected

    async def test_context_manager_closes(self) -> None:
        transport = _make_transport()

        with patch.object(MCPClient, "_create_transport", return_value=transport):
            async with MCPClient(_ref()):
                pass
        transport.close.assert_awaited_once()


class TestMCPClientCalls:
    async def test_list_tools_follows_cursor(self) -> None:
        transport = _make_transport([
            _init_response(),
            {
                "jsonrpc": "2.0",
                "id": 2,
                "result": {
                    "tools": [{"name": "a", "inputSchema": {"type": "object"}}],
                    "nextCursor": "page2",
                },
            },
            {"jsonrpc": "2.0", "id": 3, "result": {"tools": [{"name": "b"}]}},
        ])

        with patch.object(MCPClient, "_create_transport", return_value=transport):
            async with MCPClient(_ref()) as client:
                tools = await client.list_tools()

        assert [t.name for t in tools] == ["a", "b"]
        assert tools[0].input_schema == {"type": "object"}
        last = transport.send.call_args_list[-1].args[0]
        assert last["params"] == {"cursor": "page2"}

    async def test_skips_interleaved_notifications(self) -> None:
        transport = _make_transport([
            _init_response(),
            {"jsonrpc": "2.0", "method": "notifications/progress", "params": {}},
            {"jsonrpc": "2.0", "id": 2, "result": {"content": [{"type": "text", "text": "ok"}]}},
        ])

        with patch.object(MCPClient, "_create_transport", return_value=transport):
            async with MCPClient(_ref()) as client:
                result = await client.call_tool("echo", {"x": 1})

        assert result["content"][0]["text"] == "ok"
        sent = transport.send.call_args_list[-1].args[0]
        assert sent["method"] == "tools/call"
        assert sent["params"] == {"name": "echo", "arguments": {"x": 1}}

    async def test_tool_error_result_raises(self) -> None:
        transport = _make_transport([
            _init_response(),
            {
                "jsonrpc": "2.0",
                "id": 2,
                "result": {"isError": True, "content": [{"type": "text", "text": "quota"}]},
            },
        ])

        with patch.object(MCPClient, "_create_transport", return_value=transport):
            async with MCPClient(_ref()) as client:
                with pytest.raises(ToolExecutionError, match="quota"):
                    await client.call_tool("search", {})

    async def test_read_resource_error_raises(self) -> None:
        transport = _make_transport([
            _init_response({"resources": {}}),
            {"jsonrpc": "2.0", "id": 2, "error": {"code": -32002, "message": "not found"}},
        ])

        with patch.object(MCPClient, "_create_transport", return_value=transport):
            async with MCPClient(_ref()) as client:
                with pytest.raises(ProtocolError, match="resources/read file:///x"):
                    await client.read_resource("file:///x")

    async def test_list_prompts_and_get_prompt(self) -> None:
        transport = _make_transport([
            _init_response({"prompts": {}}),
            {
                "jsonrpc": "2.0",
                "id": 2,
                "result": {
                    "prompts": [
                        {"name": "summarise", "arguments": [{"name": "text", "required": True}]}
                    ]
                },
            },
            {"jsonrpc": "2.0", "id": 3, "result": {"messages": []}},
        ])

        with patch.object(MCPClient, "_create_transport", return_value=transport):
            async with MCPClient(_ref()) as client:
                prompts = await client.list_prompts()
                rendered = await client.get_prompt("summarise", {"text": "hi"})

        assert prompts[0].arguments[0].required is True
        assert rendered == {"messages": []}

    async def test_request_without_connection(self) -> None:
        with pytest.raises(RuntimeError, match="not connected"):
            await MCPClient(_ref()).list_tools()


class TestCreateTransport:
    def test_stdio(self) -> None:
        client = MCPClient(MCPServerRef(name="fs", transport="stdio", command="npx fs"))
        assert isinstance(client._create_transport(), StdioTransport)

    def test_websocket(self) -> None:
        client = MCPClient(MCPServerRef(name="ws", transport="websocket", url="ws://h/mcp"))
        assert isinstance(client._create_transport(), WebSocketTransport)

    def test_http(self) -> None:
        client = MCPClient(MCPServerRef(name="rube", url="https://rube.app/mcp"))
        assert isinstance(client._create_transport(), HttpTransport)
