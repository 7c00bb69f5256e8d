"""``agw mcp`` — run one gateway action against the configured MCP servers."""

from __future__ import annotations

import asyncio
import sys
from typing import TYPE_CHECKING, Any

import click

from agw.cli_commands._output import print_envelope, print_error

if TYPE_CHECKING:
    from agw.config import GatewaySettings
    from agw.gateway.models import ResultEnvelope

json_option = click.option("--json", "as_json", is_flag=True, help="Output the raw envelope as JSON.")


@click.group()
def mcp() -> None:
    """List and use MCP tools, resources and prompts."""


@mcp.command("list-tools")
@json_option
@click.pass_obj
def list_tools(settings: GatewaySettings, as_json: bool) -> None:
    """List executable tools across all servers."""
    _run(settings, {"action": "list_tools"}, as_json)


@mcp.command("execute")
@click.argument("tool_name")
@click.option("--args", "tool_arguments", default=None, help="Tool arguments as a JSON object.")
@click.option("--server", "server_name", default=None, help="Server owning the tool.")
@json_option
@click.pass_obj
def execute(
    settings: GatewaySettings,
    tool_name: str,
    tool_arguments: str | None,
    server_name: str | None,
    as_json: bool,
) -> None:
    """Execute TOOL_NAME (its full key or its id)."""
    _run(
        settings,
        {
            "action": "execute_tool",
            "tool_name": tool_name,
            "tool_arguments": tool_arguments,
            "server_name": server_name,
        },
        as_json,
    )


@mcp.command("list-resources")
@json_option
@click.pass_obj
def list_resources(settings: GatewaySettings, as_json: bool) -> None:
    """List resources across all servers."""
    _run(settings, {"action": "list_resources"}, as_json)


@mcp.command("get-resource")
@click.argument("resource_uri")
@click.option("--max-bytes", type=click.IntRange(min=0), default=None, help="Content size cap.")
@click.option(
    "--as-text/--raw",
    "as_text",
    default=None,
    help="Decode binary content as UTF-8 text when possible.",
)
@json_option
@click.pass_obj
def get_resource(
    settings: GatewaySettings,
    resource_uri: str,
    max_bytes: int | None,
    as_text: bool | None,
    as_json: bool,
) -> None:
    """Read RESOURCE_URI from the first server that lists it."""
    _run(
        settings,
        {
            "action": "get_resource",
            "resource_uri": resource_uri,
            "max_bytes": max_bytes,
            "as_text": as_text,
        },
        as_json,
    )


@mcp.command("list-prompts")
@json_option
@click.pass_obj
def list_prompts(settings: GatewaySettings, as_json: bool) -> None:
    """List prompt templates across all servers."""
    _run(settings, {"action": "list_prompts"}, as_json)


@mcp.command("get-prompt")
@click.argument("prompt_name")
@click.option("--args", "prompt_arguments", default=None, help="Prompt arguments as a JSON object.")
@json_option
@click.pass_obj
def get_prompt(
    settings: GatewaySettings,
    prompt_name: str,
    prompt_arguments: str | None,
    as_json: bool,
) -> None:
    """Describe prompt template PROMPT_NAME."""
    _run(
        settings,
        {"action": "get_prompt", "prompt_name": prompt_name, "prompt_arguments": prompt_arguments},
        as_json,
    )


def _run(settings: GatewaySettings, request: dict[str, Any], as_json: bool) -> None:
    from agw.gateway.dispatcher import ActionDispatcher
    from agw.gateway.errors import GatewayError
    from agw.protocols.mcp.multi import MultiServerClient

    async def _dispatch() -> ResultEnvelope:
        async with MultiServerClient(settings.servers) as client:
            dispatcher = ActionDispatcher(client, max_bytes=settings.max_resource_bytes)
            return await dispatcher.dispatch(request)

    try:
        envelope = asyncio.run(_dispatch())
    except GatewayError as exc:
        print_error("Error", exc)
        sys.exit(1)

    print_envelope(envelope, as_json=as_json)
