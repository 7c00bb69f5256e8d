"""Gateway models — action requests, descriptors, and the result envelope.

A request is one of six variants discriminated by ``action``.  JSON-text
argument fields stay strings here; the dispatcher parses them so malformed
payloads surface as :class:`~agw.gateway.errors.InvalidArgumentsError`.
"""

from __future__ import annotations

from collections.abc import Mapping
from typing import Annotated, Any, Literal

from pydantic import BaseModel, Field, TypeAdapter, ValidationError

from agw.gateway.errors import InvalidRequestError, UnknownActionError

NO_DESCRIPTION = "No description available"

# ---------------------------------------------------------------------------
# Action requests
# ---------------------------------------------------------------------------


class ListToolsRequest(BaseModel):
    action: Literal["list_tools"] = "list_tools"


class ExecuteToolRequest(BaseModel):
    action: Literal["execute_tool"] = "execute_tool"
    tool_name: str = ""
    tool_arguments: str | None = None
    server_name: str | None = None


class ListResourcesRequest(BaseModel):
    action: Literal["list_resources"] = "list_resources"


class GetResourceRequest(BaseModel):
    action: Literal["get_resource"] = "get_resource"
    resource_uri: str = ""
    max_bytes: int | None = Field(default=None, ge=0)
    as_text: bool | None = None


class ListPromptsRequest(BaseModel):
    action: Literal["list_prompts"] = "list_prompts"


class GetPromptRequest(BaseModel):
    action: Literal["get_prompt"] = "get_prompt"
    prompt_name: str = ""
    prompt_arguments: str | None = None


ActionRequest = Annotated[
    ListToolsRequest
    | ExecuteToolRequest
    | ListResourcesRequest
    | GetResourceRequest
    | ListPromptsRequest
    | GetPromptRequest,
    Field(discriminator="action"),
]

ACTIONS: tuple[str, ...] = (
    "list_tools",
    "execute_tool",
    "list_resources",
    "get_resource",
    "list_prompts",
    "get_prompt",
)

_request_adapter: TypeAdapter[ActionRequest] = TypeAdapter(ActionRequest)


def parse_request(payload: Mapping[str, Any]) -> ActionRequest:
    """Validate a raw ``{action, ...}`` mapping into a typed request.

    Unknown extra fields are ignored.  ``None`` values are treated as absent,
    which is how function-calling models usually send unused parameters.
    """
    action = payload.get("action")
    if action not in ACTIONS:
        raise UnknownActionError(action)
    cleaned = {key: value for key, value in payload.items() if value is not None}
    try:
        return _request_adapter.validate_python(cleaned)
    except ValidationError as exc:
        details = "; ".join(
            f"{'.'.join(str(p) for p in err['loc'][1:]) or 'request'}: {err['msg']}"
            for err in exc.errors()
        )
        raise InvalidRequestError(str(action), details) from exc


# ---------------------------------------------------------------------------
# Descriptors
# ---------------------------------------------------------------------------


class ToolDescriptor(BaseModel):
    """An executable tool in the flat namespace."""

    model_config = {"populate_by_name": True}

    full_key: str = Field(alias="fullKey")
    id: str
    server: str
    description: str = NO_DESCRIPTION
    input_schema: Any = Field(default=None, alias="inputSchema")
    output_schema: Any = Field(default=None, alias="outputSchema")


class ResourceDescriptor(BaseModel):
    model_config = {"populate_by_name": True}

    server: str
    uri: str
    name: str | None = None
    description: str | None = None
    mime_type: str | None = Field(default=None, alias="mimeType")


class PromptArgumentDescriptor(BaseModel):
    model_config = {"extra": "allow"}

    name: str
    description: str | None = None
    required: bool | None = None


class PromptDescriptor(BaseModel):
    server: str
    name: str
    description: str = NO_DESCRIPTION
    arguments: list[PromptArgumentDescriptor] = []


# ---------------------------------------------------------------------------
# Result envelope
# ---------------------------------------------------------------------------


class ResultEnvelope(BaseModel):
    """The uniform success response of every dispatcher action."""

    action: str
    data: Any = None
    message: str
