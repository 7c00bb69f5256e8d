"""ActionDispatcher — one ``{action, ...}`` interface over remote MCP capabilities.

Six actions are routed to their branch: ``list_tools``, ``execute_tool``,
``list_resources``, ``get_resource``, ``list_prompts`` and ``get_prompt``.
Every branch queries the remote capability client afresh, applies its
policy, and returns a :class:`~agw.gateway.models.ResultEnvelope`.

Failure policy:

* list actions never fail on a fetch error; they return an empty list and
  a message saying why;
* every other failure is one :class:`~agw.gateway.errors.GatewayError`
  whose message is ``"MCP operation failed: <branch prefix>: <detail>"``;
* ``get_prompt`` retries once with a plain listing when the client reports
  a missing server configuration.

The dispatcher sets no timeout of its own.  Timeouts belong to the client's
transports; callers that need a request deadline wrap :meth:`dispatch` in
``asyncio.wait_for``.  The list call and the follow-up call of a branch are
two separate round trips, so the remote state may change in between.
"""

from __future__ import annotations

import inspect
import json
import logging
from collections.abc import Awaitable, Callable, Iterator, Mapping
from typing import Any

from pydantic import BaseModel, ValidationError

from agw.gateway.content import (
    DEFAULT_MAX_BYTES,
    ResourceContent,
    apply_size_limit,
    decode_blob,
    extract_content,
)
from agw.gateway.errors import (
    GatewayError,
    InvalidArgumentsError,
    MissingParameterError,
    PromptNotFoundError,
    PromptsUnsupportedError,
    RemoteCallError,
    ResourceNotFoundError,
    ToolExecutionFailedError,
    ToolNotExecutableError,
    ToolNotFoundError,
    UnknownActionError,
)
from agw.gateway.models import (
    NO_DESCRIPTION,
    ActionRequest,
    ExecuteToolRequest,
    GetPromptRequest,
    GetResourceRequest,
    ListPromptsRequest,
    ListResourcesRequest,
    ListToolsRequest,
    PromptArgumentDescriptor,
    PromptDescriptor,
    ResourceDescriptor,
    ResultEnvelope,
    ToolDescriptor,
    parse_request,
)
from agw.gateway.resolver import (
    entry_field,
    executable_items,
    find_in_servers,
    is_executable,
    resolve_tool,
    split_key,
)
from agw.protocols.errors import ServerConfigNotFoundError
from agw.utils.telemetry import (
    ATTR_ACTION,
    ATTR_OUTCOME,
    ATTR_PROMPT_NAME,
    ATTR_RESOURCE_URI,
    ATTR_RESULT_COUNT,
    ATTR_SERVER,
    ATTR_TOOL_NAME,
    current_span,
    get_tracer,
)

logger = logging.getLogger(__name__)
_tracer = get_tracer(__name__)

OPERATION_FAILED = "MCP operation failed"

NO_TOOLS_MESSAGE = (
    "No MCP servers configured. Tools will be available once MCP servers are set up."
)
NO_RESOURCES_MESSAGE = "No MCP servers configured or no resources available."
PROMPTS_UNSUPPORTED_MESSAGE = "Prompts are not supported by the current MCP server configuration."
NO_PROMPTS_MESSAGE = "No prompts available from MCP servers."

PROMPT_NOTE = (
    "Direct prompt execution is currently limited. Use the prompt description "
    "and arguments to construct your request manually."
)
PROMPT_FALLBACK_NOTE = (
    "The MCP client cannot render this prompt for the configured servers. "
    "Use list_prompts to see available prompts and their descriptions."
)
CONFIG_NOT_FOUND_MARKER = "Server configuration not found"


class ActionDispatcher:
    """Routes action requests to the remote capability client.

    *client* is anything honouring the remote capability contract, normally a
    :class:`~agw.protocols.mcp.multi.MultiServerClient`:

    * ``await get_tools()`` → ``{key: tool}``, tools exposing ``execute``;
    * ``await get_resources()`` → ``{server: [resource, ...]}``;
    * ``await read_resource(server, uri)`` → a content result;
    * optional ``prompts`` with ``await list()`` and ``await get(...)``.

    Usage::

        dispatcher = ActionDispatcher(client)
        envelope = await dispatcher.dispatch({"action": "list_tools"})
    """

    def __init__(self, client: Any, *, max_bytes: int = DEFAULT_MAX_BYTES) -> None:
        self._client = client
        self._max_bytes = max_bytes

    async def dispatch(self, request: ActionRequest | Mapping[str, Any]) -> ResultEnvelope:
        """Run one request; return its envelope or raise one :class:`GatewayError`."""
        with _tracer.start_as_current_span("mcp.dispatch") as span:
            action = request.get("action") if isinstance(request, Mapping) else request.action
            span.set_attribute(ATTR_ACTION, str(action))
            try:
                parsed = parse_request(request) if isinstance(request, Mapping) else request
                envelope = await self._route(parsed)
            except GatewayError as exc:
                span.set_attribute(ATTR_OUTCOME, "error")
                logger.error("MCP %s failed: %s", action, exc)
                raise exc.with_context(OPERATION_FAILED) from exc.__cause__
            except Exception as exc:
                span.set_attribute(ATTR_OUTCOME, "error")
                logger.exception("MCP %s failed unexpectedly", action)
                raise GatewayError(str(exc)).with_context(OPERATION_FAILED) from exc

            span.set_attribute(ATTR_OUTCOME, "ok")
            if isinstance(envelope.data, list):
                span.set_attribute(ATTR_RESULT_COUNT, len(envelope.data))
            return envelope

    async def _route(self, request: ActionRequest) -> ResultEnvelope:
        logger.info("MCP operation: %s", request.action)
        if isinstance(request, ListToolsRequest):
            return await self._list_tools()
        if isinstance(request, ExecuteToolRequest):
            return await self._execute_tool(request)
        if isinstance(request, ListResourcesRequest):
            return await self._list_resources()
        if isinstance(request, GetResourceRequest):
            return await self._get_resource(request)
        if isinstance(request, ListPromptsRequest):
            return await self._list_prompts()
        if isinstance(request, GetPromptRequest):
            return await self._get_prompt(request)
        raise UnknownActionError(getattr(request, "action", request))

    # ------------------------------------------------------------------
    # Tools
    # ------------------------------------------------------------------

    async def _list_tools(self) -> ResultEnvelope:
        try:
            entries = executable_items(await self._client.get_tools())
        except Exception as exc:
            logger.info("Tool listing unavailable: %s", exc)
            return ResultEnvelope(action="list_tools", data=[], message=NO_TOOLS_MESSAGE)

        descriptors = _describe_all("tool", entries, describe_tool, by_alias=True)
        logger.info("Found %d MCP tools", len(descriptors))
        return ResultEnvelope(
            action="list_tools",
            data=descriptors,
            message=f"Found {len(descriptors)} available MCP tools",
        )

    async def _execute_tool(self, request: ExecuteToolRequest) -> ResultEnvelope:
        if not request.tool_name:
            raise MissingParameterError("tool_name", "execute_tool", "Tool name")

        span = current_span()
        span.set_attribute(ATTR_TOOL_NAME, request.tool_name)
        if request.server_name:
            span.set_attribute(ATTR_SERVER, request.server_name)

        try:
            tools = await _remote("Tool discovery", self._client.get_tools)
            resolved = resolve_tool(tools, request.tool_name, request.server_name)
            if resolved is None:
                raise ToolNotFoundError(
                    request.tool_name, [key for key, _ in executable_items(tools)]
                )
            full_key, tool = resolved
            if not is_executable(tool):
                raise ToolNotExecutableError(full_key)

            arguments = parse_json_object("tool_arguments", request.tool_arguments)
            display_name = str(entry_field(tool, "id") or full_key)
            logger.info("Executing MCP tool %s", full_key)
            try:
                result = entry_field(tool, "execute")(arguments)
                if inspect.isawaitable(result):
                    result = await result
            except Exception as exc:
                raise ToolExecutionFailedError(display_name, str(exc)) from exc
        except GatewayError as exc:
            raise exc.with_context("Failed to execute MCP tool") from exc.__cause__

        return ResultEnvelope(
            action="execute_tool",
            data={"tool_name": display_name, "fullKey": full_key, "result": result},
            message=f"Successfully executed tool '{display_name}'",
        )

    # ------------------------------------------------------------------
    # Resources
    # ------------------------------------------------------------------

    async def _list_resources(self) -> ResultEnvelope:
        try:
            listing = await self._client.get_resources()
            entries = list(_server_entries(listing))
        except Exception as exc:
            logger.info("Resource listing unavailable: %s", exc)
            return ResultEnvelope(action="list_resources", data=[], message=NO_RESOURCES_MESSAGE)

        resources = _describe_all("resource", entries, describe_resource, by_alias=True)
        return ResultEnvelope(
            action="list_resources",
            data=resources,
            message=(
                f"Found {len(resources)} available MCP resources "
                f"across {len(listing)} servers"
            ),
        )

    async def _get_resource(self, request: GetResourceRequest) -> ResultEnvelope:
        uri = request.resource_uri
        if not uri:
            raise MissingParameterError("resource_uri", "get_resource", "Resource URI")
        current_span().set_attribute(ATTR_RESOURCE_URI, uri)

        try:
            listing = await _remote("Resource discovery", self._client.get_resources)
            found = find_in_servers(listing, "uri", uri)
            if found is None:
                raise ResourceNotFoundError(uri)
            server, entry = found
            logger.info("Reading resource %s from server %s", uri, server)

            raw = await _remote(
                f"Reading '{uri}' from server '{server}'",
                self._client.read_resource,
                server,
                uri,
            )
            extracted = extract_content(raw)
            if extracted.is_binary and request.as_text:
                decoded = decode_blob(extracted.content)
                if decoded is not None:
                    extracted = ResourceContent(decoded, is_binary=False)
            extracted = apply_size_limit(extracted, request.max_bytes or self._max_bytes)
        except GatewayError as exc:
            raise exc.with_context("Failed to get MCP resource") from exc.__cause__

        descriptor = describe_resource(server, entry, default_description=None)
        suffix = " (truncated)" if extracted.truncated else ""
        return ResultEnvelope(
            action="get_resource",
            data={
                **descriptor.model_dump(by_alias=True),
                "content": extracted.content,
                "isBinary": extracted.is_binary,
                "truncated": extracted.truncated,
                "size": len(extracted.content),
            },
            message=(
                f"Successfully retrieved resource '{descriptor.name or uri}' "
                f"from server '{server}'{suffix}"
            ),
        )

    # ------------------------------------------------------------------
    # Prompts
    # ------------------------------------------------------------------

    async def _list_prompts(self) -> ResultEnvelope:
        prompts_api = getattr(self._client, "prompts", None)
        if not _has_method(prompts_api, "list"):
            return ResultEnvelope(
                action="list_prompts", data=[], message=PROMPTS_UNSUPPORTED_MESSAGE
            )

        try:
            entries = list(_server_entries(await prompts_api.list()))
        except Exception as exc:
            logger.info("Prompt listing unavailable: %s", exc)
            return ResultEnvelope(action="list_prompts", data=[], message=NO_PROMPTS_MESSAGE)

        prompts = _describe_all("prompt", entries, describe_prompt, exclude_none=True)
        return ResultEnvelope(
            action="list_prompts",
            data=prompts,
            message=f"Found {len(prompts)} available MCP prompts",
        )

    async def _get_prompt(self, request: GetPromptRequest) -> ResultEnvelope:
        name = request.prompt_name
        if not name:
            raise MissingParameterError("prompt_name", "get_prompt", "Prompt name")
        current_span().set_attribute(ATTR_PROMPT_NAME, name)

        prompts_api = getattr(self._client, "prompts", None)
        try:
            if not (_has_method(prompts_api, "get") and _has_method(prompts_api, "list")):
                raise PromptsUnsupportedError()
            provided = parse_json_object("prompt_arguments", request.prompt_arguments)

            # Only the listing is used; prompts.get is never called.
            listing = await _remote("Prompt discovery", prompts_api.list)
            found = find_in_servers(listing, "name", name)
            if found is None:
                raise PromptNotFoundError(name)
            server, entry = found
        except GatewayError as exc:
            if _is_config_not_found(exc):
                logger.info("Server configuration missing for prompt %s; retrying listing", name)
                fallback = await self._prompt_fallback(prompts_api, name)
                if fallback is not None:
                    return fallback
            raise exc.with_context("Failed to get MCP prompt") from exc.__cause__

        descriptor = describe_prompt(server, entry)
        declared = descriptor.description
        arguments = descriptor.model_dump(exclude_none=True)["arguments"]
        if arguments:
            usage = f"Required arguments: {json.dumps(arguments)}"
        else:
            usage = "No arguments required."
        return ResultEnvelope(
            action="get_prompt",
            data={
                "name": name,
                "server": server,
                "description": declared,
                "arguments": arguments,
                "providedArguments": provided,
                "note": PROMPT_NOTE,
                "instructions": f"To use this prompt: {declared}. {usage}",
            },
            message=f"Retrieved prompt template '{name}' (execution via API currently limited)",
        )

    async def _prompt_fallback(self, prompts_api: Any, name: str) -> ResultEnvelope | None:
        """Describe *name* from a bare listing; ``None`` means keep the original error."""
        try:
            found = find_in_servers(await prompts_api.list(), "name", name)
        except Exception:
            logger.debug("Prompt listing fallback failed for %s", name, exc_info=True)
            return None
        if found is None:
            return None

        server, entry = found
        descriptor = describe_prompt(server, entry)
        return ResultEnvelope(
            action="get_prompt",
            data={
                "name": name,
                "server": server,
                "description": descriptor.description,
                "arguments": descriptor.model_dump(exclude_none=True)["arguments"],
                "note": PROMPT_FALLBACK_NOTE,
            },
            message=(
                f"Prompt template '{name}' found but direct execution is not "
                "available due to API limitations"
            ),
        )


# ---------------------------------------------------------------------------
# Descriptor builders
# ---------------------------------------------------------------------------


def describe_tool(full_key: str, entry: Any) -> ToolDescriptor:
    return ToolDescriptor(
        full_key=full_key,
        id=str(entry_field(entry, "id") or full_key),
        server=split_key(full_key).server,
        description=entry_field(entry, "description") or NO_DESCRIPTION,
        input_schema=_json_schema(entry_field(entry, "input_schema", "inputSchema")),
        output_schema=_json_schema(entry_field(entry, "output_schema", "outputSchema")),
    )


def describe_resource(
    server: str,
    entry: Any,
    *,
    default_description: str | None = NO_DESCRIPTION,
) -> ResourceDescriptor:
    return ResourceDescriptor(
        server=server,
        uri=str(entry_field(entry, "uri")),
        name=entry_field(entry, "name"),
        description=entry_field(entry, "description") or default_description,
        mime_type=entry_field(entry, "mime_type", "mimeType"),
    )


def describe_prompt(server: str, entry: Any) -> PromptDescriptor:
    arguments = entry_field(entry, "arguments") or []
    return PromptDescriptor(
        server=server,
        name=entry_field(entry, "name"),
        description=entry_field(entry, "description") or NO_DESCRIPTION,
        arguments=[
            PromptArgumentDescriptor.model_validate(arg, from_attributes=True)
            for arg in arguments
        ],
    )


# ---------------------------------------------------------------------------
# Helpers
# ---------------------------------------------------------------------------


def parse_json_object(field: str, raw: str | None) -> dict[str, Any]:
    """Parse a JSON-text argument payload; empty or absent means ``{}``."""
    if not raw or not raw.strip():
        return {}
    try:
        parsed = json.loads(raw)
    except json.JSONDecodeError as exc:
        raise InvalidArgumentsError(field, raw) from exc
    if not isinstance(parsed, dict):
        raise InvalidArgumentsError(field, raw, not_object=True)
    return parsed


async def _remote(operation: str, func: Callable[..., Awaitable[Any]], *args: Any) -> Any:
    """Await a client call, re-describing untyped failures as :class:`RemoteCallError`."""
    try:
        return await func(*args)
    except GatewayError:
        raise
    except Exception as exc:
        raise RemoteCallError(operation, exc) from exc


def _server_entries(listing: Mapping[str, Any]) -> Iterator[tuple[str, Any]]:
    for server, entries in listing.items():
        if isinstance(entries, (list, tuple)):
            for entry in entries:
                yield server, entry


def _has_method(obj: Any, name: str) -> bool:
    return obj is not None and callable(getattr(obj, name, None))


def _describe_all(
    kind: str,
    entries: list[tuple[str, Any]],
    build: Callable[[str, Any], BaseModel],
    **dump_options: Any,
) -> list[dict[str, Any]]:
    """Build one descriptor per entry, skipping entries that fail validation."""
    descriptors: list[dict[str, Any]] = []
    for key, entry in entries:
        try:
            descriptors.append(build(key, entry).model_dump(**dump_options))
        except ValidationError as exc:
            logger.warning("Skipping malformed MCP %s from %s: %s", kind, key, exc)
    return descriptors


def _is_config_not_found(exc: GatewayError) -> bool:
    """True when the remote client reported a missing server configuration.

    Only client failures are inspected; caller-supplied text in other error
    details never triggers the fallback.
    """
    if isinstance(exc.__cause__, ServerConfigNotFoundError):
        return True
    return isinstance(exc, RemoteCallError) and CONFIG_NOT_FOUND_MARKER in str(exc.__cause__)


def _json_schema(schema: Any) -> Any:
    if isinstance(schema, type) and issubclass(schema, BaseModel):
        return schema.model_json_schema()
    return schema
