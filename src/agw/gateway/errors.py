"""Error taxonomy of the MCP action dispatcher.

Every failure leaving :class:`~agw.gateway.dispatcher.ActionDispatcher` is a
:class:`GatewayError`.  Context prefixes are stacked with
:meth:`GatewayError.with_context` so the concrete type survives while the
message reads ``"<outer>: <inner>: <detail>"``.
"""

from __future__ import annotations

from collections.abc import Iterable


class GatewayError(Exception):
    """Base error for every dispatcher failure."""

    def __init__(self, detail: str) -> None:
        self.detail = detail
        self.context: list[str] = []
        super().__init__(detail)

    def with_context(self, prefix: str) -> GatewayError:
        """Prepend *prefix* to the message and return ``self`` for re-raising."""
        self.context.insert(0, prefix)
        return self

    @property
    def message(self) -> str:
        return ": ".join([*self.context, self.detail])

    def __str__(self) -> str:
        return self.message


class UnknownActionError(GatewayError):
    def __init__(self, action: object) -> None:
        self.action = action
        super().__init__(f"Unknown MCP action: {action}")


class InvalidRequestError(GatewayError):
    """A request field has the wrong type or an out-of-range value."""

    def __init__(self, action: str, detail: str) -> None:
        self.action = action
        super().__init__(f"Invalid {action} request: {detail}")


class MissingParameterError(GatewayError):
    def __init__(self, parameter: str, action: str, label: str) -> None:
        self.parameter = parameter
        self.action = action
        super().__init__(f"{label} is required for {action} action")


class InvalidArgumentsError(GatewayError):
    """A JSON-text argument payload could not be parsed."""

    def __init__(self, field: str, raw: str, *, not_object: bool = False) -> None:
        self.field = field
        self.raw = raw
        if not_object:
            super().__init__(f"{field} must be a JSON object: {raw}")
        else:
            super().__init__(f"Invalid JSON format for {field}: {raw}")


class ToolNotFoundError(GatewayError):
    def __init__(self, name: str, available: Iterable[str]) -> None:
        self.name = name
        self.available = list(available)
        super().__init__(
            f"Tool '{name}' not found. Available tools: {', '.join(self.available)}"
        )


class ToolNotExecutableError(GatewayError):
    def __init__(self, key: str) -> None:
        self.key = key
        super().__init__(f"Tool '{key}' is not executable (missing execute function)")


class ToolExecutionFailedError(GatewayError):
    def __init__(self, name: str, reason: str) -> None:
        self.name = name
        self.reason = reason
        super().__init__(f"Tool '{name}' failed: {reason}")


class ResourceNotFoundError(GatewayError):
    def __init__(self, uri: str) -> None:
        self.uri = uri
        super().__init__(
            f"Resource '{uri}' not found. Use list_resources to see available resources."
        )


class PromptsUnsupportedError(GatewayError):
    def __init__(self) -> None:
        super().__init__("Prompts are not supported by the current MCP server configuration.")


class PromptNotFoundError(GatewayError):
    def __init__(self, name: str) -> None:
        self.name = name
        super().__init__(f"Prompt '{name}' not found. Use list_prompts to see available prompts.")


class RemoteCallError(GatewayError):
    """An untyped failure raised by the remote capability client."""

    def __init__(self, operation: str, cause: BaseException) -> None:
        self.operation = operation
        super().__init__(f"{operation} failed: {cause}")
