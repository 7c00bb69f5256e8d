"""agw CLI entrypoint."""

from __future__ import annotations

import sys

import click
from rich.markup import escape

from agw import __version__


@click.group()
@click.version_option(version=__version__, prog_name="agw")
@click.option(
    "--config",
    "config_path",
    type=click.Path(exists=True, dir_okay=False),
    default=None,
    envvar="AGW_CONFIG",
    help="YAML settings file (environment variables override it).",
)
@click.option("--verbose", "-v", is_flag=True, help="Enable debug logging.")
@click.option("--telemetry", is_flag=True, help="Print OpenTelemetry spans to stdout.")
@click.pass_context
def main(ctx: click.Context, config_path: str | None, verbose: bool, telemetry: bool) -> None:
    """agw — one gateway to MCP tools, resources and prompts."""
    from agw.cli_commands._output import console
    from agw.config import ConfigError, load_settings
    from agw.utils.logging import configure_logging

    configure_logging(verbose=verbose)

    if telemetry:
        from agw.utils.telemetry import configure_telemetry

        try:
            configure_telemetry(service_name="agw")
        except ImportError as exc:
            console.print(f"[red]Telemetry error:[/red] {escape(str(exc))}")
            sys.exit(1)

    try:
        settings = load_settings(config_path)
    except ConfigError as exc:
        console.print(f"[red]Configuration error:[/red] {escape(str(exc))}")
        sys.exit(1)

    ctx.obj = settings


# Register subcommands
from agw.cli_commands import register_commands  # noqa: E402

register_commands(main)

if __name__ == "__main__":
    main()
