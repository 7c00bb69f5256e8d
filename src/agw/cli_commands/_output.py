"""Shared CLI output formatters."""

from __future__ import annotations

import json
from typing import Any

from rich.console import Console
from rich.markup import escape
from rich.table import Table

from agw.gateway.models import ResultEnvelope  # noqa: TC001

console = Console()


def print_error(label: str, exc: BaseException) -> None:
    console.print(f"[red]{label}:[/red] {escape(str(exc))}", soft_wrap=True)


def print_envelope(envelope: ResultEnvelope, *, as_json: bool = False) -> None:
    """Pretty-print a dispatcher result; tables for list actions, JSON otherwise."""
    if as_json:
        console.print_json(json.dumps(envelope.model_dump(), default=str))
        return

    console.print(f"[green]{escape(envelope.message)}[/green]")
    printer = _LIST_PRINTERS.get(envelope.action)
    if printer is not None:
        if envelope.data:
            printer(envelope.data)
        return
    console.print_json(json.dumps(envelope.data, default=str))


def print_tools_table(tools: list[dict[str, Any]]) -> None:
    table = Table(title="MCP Tools")
    table.add_column("Id", style="cyan")
    table.add_column("Server")
    table.add_column("Key")
    table.add_column("Description")
    for tool in tools:
        table.add_row(
            escape(str(tool.get("id", "?"))),
            escape(str(tool.get("server", ""))),
            escape(str(tool.get("fullKey", ""))),
            escape(_truncate(str(tool.get("description", "")))),
        )
    console.print(table)


def print_resources_table(resources: list[dict[str, Any]]) -> None:
    table = Table(title="MCP Resources")
    table.add_column("URI", style="cyan")
    table.add_column("Server")
    table.add_column("Name")
    table.add_column("MIME type")
    for resource in resources:
        table.add_row(
            escape(str(resource.get("uri", "?"))),
            escape(str(resource.get("server", ""))),
            escape(str(resource.get("name") or "")),
            escape(str(resource.get("mimeType") or "-")),
        )
    console.print(table)


def print_prompts_table(prompts: list[dict[str, Any]]) -> None:
    table = Table(title="MCP Prompts")
    table.add_column("Name", style="cyan")
    table.add_column("Server")
    table.add_column("Arguments")
    table.add_column("Description")
    for prompt in prompts:
        arguments = ", ".join(
            arg["name"] + ("*" if arg.get("required") else "")
            for arg in prompt.get("arguments", [])
        )
        table.add_row(
            escape(str(prompt.get("name", "?"))),
            escape(str(prompt.get("server", ""))),
            escape(arguments or "-"),
            escape(_truncate(str(prompt.get("description", "")))),
        )
    console.print(table)


_LIST_PRINTERS = {
    "list_tools": print_tools_table,
    "list_resources": print_resources_table,
    "list_prompts": print_prompts_table,
}


def _truncate(text: str, max_len: int = 80) -> str:
    if len(text) <= max_len:
        return text
    return text[: max_len - 3] + "..."
