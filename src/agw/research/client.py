"""ResearchClient — web research through the Perplexity chat-completions API.

One POST per query: no retries, no streaming.  Also satisfies
:class:`~agw.protocols.provider.ToolProvider` as the ``research`` tool.
"""

from __future__ import annotations

import logging
from typing import TYPE_CHECKING, Any

import httpx

from agw.protocols.errors import ToolExecutionError, ToolNotFoundError
from agw.protocols.models import ToolResult
from agw.research.models import ResearchError, ResearchResult
from agw.utils.telemetry import ATTR_MODEL, get_tracer

if TYPE_CHECKING:
    from agw.config import ResearchSettings

logger = logging.getLogger(__name__)
_tracer = get_tracer(__name__)

TOOL_NAME = "research"

SYSTEM_PROMPT = (
    "You are a helpful research assistant. Provide comprehensive, accurate, and "
    "well-sourced answers to research questions. Include relevant sources when available."
)
NO_ANSWER = "No answer received from Perplexity"


class ResearchClient:
    """Answers research questions with real-time web information."""

    def __init__(self, settings: ResearchSettings) -> None:
        self._settings = settings

    async def research(self, query: str, model: str | None = None) -> ResearchResult:
        """Ask *query*; raise :class:`ResearchError` on any failure."""
        chosen = model or self._settings.model
        with _tracer.start_as_current_span("research.query") as span:
            span.set_attribute(ATTR_MODEL, chosen)
            try:
                data = await self._post(query, chosen)
            except ResearchError as exc:
                logger.error("Research failed: %s", exc)
                msg = f"Failed to research with Perplexity: {exc}"
                raise ResearchError(msg) from exc

        choices = data.get("choices") or [{}]
        first = choices[0] if isinstance(choices[0], dict) else {}
        answer = (first.get("message") or {}).get("content") or NO_ANSWER
        sources = [str(s) for s in data.get("citations") or []]
        logger.info("Research completed with %d sources", len(sources))
        return ResearchResult(answer=answer, sources=sources, model_used=chosen)

    async def _post(self, query: str, model: str) -> dict[str, Any]:
        if not self._settings.api_key:
            msg = (
                "Perplexity API key not configured. "
                "Please set PERPLEXITY_API_KEY environment variable."
            )
            raise ResearchError(msg)

        body = {
            "model": model,
            "messages": [
                {"role": "system", "content": SYSTEM_PROMPT},
                {"role": "user", "content": query},
            ],
            "max_tokens": self._settings.max_tokens,
            "temperature": self._settings.temperature,
            "return_citations": True,
            "return_images": False,
        }
        headers = {"Authorization": f"Bearer {self._settings.api_key}"}

        logger.info("Researching with %s", model)
        try:
            async with httpx.AsyncClient(timeout=self._settings.timeout) as client:
                response = await client.post(self._settings.api_url, json=body, headers=headers)
        except httpx.HTTPError as exc:
            msg = f"Perplexity API request failed: {exc}"
            raise ResearchError(msg) from exc

        if response.status_code >= 400:
            msg = f"Perplexity API request failed: {response.status_code} - {response.text}"
            raise ResearchError(msg)
        try:
            payload = response.json()
        except ValueError as exc:
            msg = f"Perplexity API returned invalid JSON: {exc}"
            raise ResearchError(msg) from exc
        if not isinstance(payload, dict):
            msg = "Perplexity API returned an unexpected payload"
            raise ResearchError(msg)
        return payload

    # ------------------------------------------------------------------
    # ToolProvider
    # ------------------------------------------------------------------

    async def discover_tools(self) -> list[dict[str, Any]]:
        return [
            {
                "type": "function",
                "function": {
                    "name": TOOL_NAME,
                    "description": (
                        "Research and answer questions with real-time information from "
                        "the web: current events, recent news, research papers, and "
                        "factual answers to complex questions."
                    ),
                    "parameters": {
                        "type": "object",
                        "properties": {
                            "query": {
                                "type": "string",
                                "description": "The research question or query to search for",
                            },
                            "model": {
                                "type": "string",
                                "description": "Perplexity model to use",
                            },
                        },
                        "required": ["query"],
                    },
                },
            }
        ]

    async def execute_tool(self, name: str, arguments: dict[str, Any]) -> ToolResult:
        if name != TOOL_NAME:
            raise ToolNotFoundError(name)
        query = arguments.get("query")
        if not query:
            raise ToolExecutionError(name, "'query' is required")
        try:
            result = await self.research(str(query), model=arguments.get("model"))
        except ResearchError as exc:
            raise ToolExecutionError(name, str(exc)) from exc
        return ToolResult.from_text(tool_call_id="", text=result.model_dump_json())
