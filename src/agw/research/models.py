"""Research tool models."""

from __future__ import annotations

from pydantic import BaseModel


class ResearchResult(BaseModel):
    """Answer to one research query."""

    answer: str
    sources: list[str] = []
    model_used: str


class ResearchError(Exception):
    """A research query failed; the message says why."""
