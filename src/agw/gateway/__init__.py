"""MCP action dispatcher — the gateway's uniform action interface."""

from agw.gateway.dispatcher import ActionDispatcher
from agw.gateway.errors import (
    GatewayError,
    InvalidArgumentsError,
    InvalidRequestError,
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
from agw.gateway.models import ResultEnvelope, parse_request
from agw.gateway.tool import MCPGatewayTool

__all__ = [
    "ActionDispatcher",
    "GatewayError",
    "InvalidArgumentsError",
    "InvalidRequestError",
    "MCPGatewayTool",
    "MissingParameterError",
    "PromptNotFoundError",
    "PromptsUnsupportedError",
    "RemoteCallError",
    "ResourceNotFoundError",
    "ResultEnvelope",
    "ToolExecutionFailedError",
    "ToolNotExecutableError",
    "ToolNotFoundError",
    "UnknownActionError",
    "parse_request",
]
