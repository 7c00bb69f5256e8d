"""Agent Gateway — one action-based interface to remote MCP capabilities."""

from __future__ import annotations

from typing import TYPE_CHECKING

__version__ = "0.1.0"

if TYPE_CHECKING:
    from agw.gateway.dispatcher import ActionDispatcher as ActionDispatcher
    from agw.protocols.mcp.multi import MultiServerClient as MultiServerClient

_LAZY_EXPORTS = {
    "ActionDispatcher": "agw.gateway.dispatcher",
    "MultiServerClient": "agw.protocols.mcp.multi",
}


def __getattr__(name: str) -> object:
    module_path = _LAZY_EXPORTS.get(name)
    if module_path is not None:
        import importlib

        mod = importlib.import_module(module_path)
        return getattr(mod, name)
    raise AttributeError(f"module 'agw' has no attribute {name!r}")
