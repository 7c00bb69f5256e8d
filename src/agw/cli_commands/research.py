"""``agw research`` — answer a question with the research tool."""

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
@click.argument("query")
@click.option("--model", "-m", default=None, help="Perplexity model (defaults to settings).")
@click.option("--json", "as_json", is_flag=True, help="Output as JSON.")
@click.pass_obj
def research(settings: GatewaySettings, query: str, model: str | None, as_json: bool) -> None:
    """Research QUERY on the web."""
    from agw.research.client import ResearchClient
    from agw.research.models import ResearchError

    client = ResearchClient(settings.research)
    try:
        result = asyncio.run(client.research(query, model=model))
    except ResearchError as exc:
        print_error("Research error", exc)
        sys.exit(1)

    if as_json:
        console.print_json(result.model_dump_json())
        return

    console.print(escape(result.answer))
    if result.sources:
        console.print("\n[bold]Sources:[/bold]")
        for source in result.sources:
            console.print(f"  {escape(source)}")
    console.print(f"\n[dim]model: {escape(result.model_used)}[/dim]")
