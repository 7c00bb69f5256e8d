"""Shared helpers for assistant tests."""

from __future__ import annotations

import json
from typing import Any
from unittest.mock import MagicMock


def make_mock_litellm_response(
    content: str = "",
    tool_calls: list[Any] | None = None,
) -> MagicMock:
    """Create a ``MagicMock`` matching LiteLLM's ``choices[0].message`` shape."""
    message = MagicMock()
    message.content = content or None
    message.tool_calls = tool_calls

    choice = MagicMock()
    choice.message = message

    response = MagicMock()
    response.choices = [choice]
    return response


def make_tool_call(call_id: str, name: str, arguments: dict[str, Any] | str) -> MagicMock:
    """Create a tool call as LiteLLM returns it: JSON-string arguments."""
    call = MagicMock()
    call.id = call_id
    call.function.name = name
    call.function.arguments = arguments if isinstance(arguments, str) else json.dumps(arguments)
    return call
