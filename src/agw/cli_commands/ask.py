"""``agw ask`` — one question to the assistant, with MCP and research tools."""

from __future__ import annotations

import asyncio
import sys
from typing import TYPE_CHECKING

import click
from rich.markup import escape

from agw.cli_commands._output import console, print_error

if TYPE_CHECKING:
    from agw.config import GatewaySettings


@click.command()
@click.argument("prompt")
@click.option("--model", "-m", default=None, help="LiteLLM model string (provider/model).")
@click.option("--max-iterations", type=click.IntRange(min=1), default=8, show_default=True)
@click.pass_obj
def ask(settings: GatewaySettings, prompt: str, model: str | None, max_iterations: int) -> None:
    """Ask the assistant PROMPT and print its answer."""
    from agw.agent.assistant import AssistantAgent
    from agw.gateway.dispatcher import ActionDispatcher
    from agw.gateway.tool import MCPGatewayTool
    from agw.protocols.mcp.multi import MultiServerClient
    from agw.research.client import ResearchClient

    model_config = settings.model
    if model:
        model_config = model_config.model_copy(update={"model": model})

    async def _ask() -> str:
        async with MultiServerClient(settings.servers) as client:
            gateway = MCPGatewayTool(
                ActionDispatcher(client, max_bytes=settings.max_resource_bytes)
            )
            agent = await AssistantAgent.create(
                model_config,
                [gateway, ResearchClient(settings.research)],
                max_iterations=max_iterations,
            )
            return await agent.ask(prompt)

    try:
        answer = asyncio.run(_ask())
    except Exception as exc:
        print_error("Assistant error", exc)
        sys.exit(1)

    console.print(escape(answer))
