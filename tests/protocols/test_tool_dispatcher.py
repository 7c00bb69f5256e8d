"""Tests for ToolDispatcher routing."""

from typing import Any
from unittest.mock import AsyncMock, MagicMock

import pytest

from agw.protocols.dispatcher import ToolDispatcher
from agw.protocols.errors import ToolNotFoundError
from agw.protocols.models import ToolCall, ToolResult


def _schema(name: str) -> dict[str, Any]:
    return {"type": "function", "function": {"name": name, "parameters": {}}}


def _make_provider(names: list[str], result_text: str = "done") -> MagicMock:
    provider = MagicMock()
    provider.discover_tools = AsyncMock(return_value=[_schema(n) for n in names])
    provider.execute_tool = AsyncMock(
        return_value=ToolResult.from_text(tool_call_id="", text=result_text)
    )
    return provider


class TestToolDispatcher:
    async def test_register_discovers_tools(self) -> None:
        dispatcher = ToolDispatcher()
        provider = _make_provider(["mcp"])
        await dispatcher.register(provider)
        provider.discover_tools.assert_awaited_once()

    async def test_all_tools_in_registration_order(self) -> None:
        dispatcher = ToolDispatcher()
        await dispatcher.register(_make_provider(["mcp"]))
        await dispatcher.register(_make_provider(["research"]))
        assert [t["function"]["name"] for t in dispatcher.all_tools()] == ["mcp", "research"]

    async def test_execute_routes_and_stamps_call_id(self) -> None:
        dispatcher = ToolDispatcher()
        p1 = _make_provider(["mcp"], result_text="from-mcp")
        p2 = _make_provider(["research"], result_text="from-research")
        await dispatcher.register(p1)
        await dispatcher.register(p2)

        call = ToolCall(name="research", arguments={"query": "x"})
        result = await dispatcher.execute(call)

        p2.execute_tool.assert_awaited_once_with("research", {"query": "x"})
        p1.execute_tool.assert_not_awaited()
        assert result.text == "from-research"
        assert result.tool_call_id == call.id

    async def test_later_provider_wins(self) -> None:
        dispatcher = ToolDispatcher()
        await dispatcher.register(_make_provider(["mcp"], result_text="old"))
        await dispatcher.register(_make_provider(["mcp"], result_text="new"))

        result = await dispatcher.execute(ToolCall(name="mcp"))
        assert result.text == "new"
        assert len(dispatcher.all_tools()) == 1

    async def test_execute_unknown_tool_raises(self) -> None:
        with pytest.raises(ToolNotFoundError, match="nonexistent"):
            await ToolDispatcher().execute(ToolCall(name="nonexistent"))
