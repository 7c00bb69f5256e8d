"""Tool-calling models shared by every tool provider."""

from __future__ import annotations

from typing import Any, Literal
from uuid import uuid4

from pydantic import BaseModel, Field


class TextContent(BaseModel):
    """Plain text content part."""

    type: Literal["text"] = "text"
    text: str


class ToolCall(BaseModel):
    """A tool invocation requested by the model."""

    id: str = Field(default_factory=lambda: uuid4().hex[:12])
    name: str
    arguments: dict[str, Any] = {}


class ToolResult(BaseModel):
    """The outcome of one tool call, fed back to the model as a tool message."""

    tool_call_id: str
    content: list[TextContent] = []
    is_error: bool = False

    @classmethod
    def from_text(cls, tool_call_id: str, text: str, *, is_error: bool = False) -> ToolResult:
        return cls(tool_call_id=tool_call_id, content=[TextContent(text=text)], is_error=is_error)

    @property
    def text(self) -> str:
        return "".join(part.text for part in self.content)
