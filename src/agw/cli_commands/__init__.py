"""CLI subcommand registration."""

from __future__ import annotations

from typing import TYPE_CHECKING

if TYPE_CHECKING:
    import click


def register_commands(cli: click.Group) -> None:
    """Register all subcommands on the CLI group."""
    from agw.cli_commands.ask import ask
    from agw.cli_commands.mcp import mcp
    from agw.cli_commands.research import research

    cli.add_command(mcp)
    cli.add_command(research)
    cli.add_command(ask)
