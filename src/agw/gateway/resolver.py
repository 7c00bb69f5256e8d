"""Namespace resolution over the flat tool map and per-server listings.

Pure functions: nothing here talks to a server.  Entries may be objects
(attributes) or plain mappings (keys), so both the gateway's own
:class:`~agw.protocols.mcp.multi.RemoteTool` and foreign clients' dict-shaped
entries resolve the same way.
"""

from __future__ import annotations

from collections.abc import Iterable, Mapping
from typing import Any, NamedTuple

UNKNOWN_SERVER = "unknown"


class NamespacedKey(NamedTuple):
    server: str
    local_name: str


def split_key(key: str) -> NamespacedKey:
    """Split ``"<server>_<name>"`` at the first underscore.

    Keys without an underscore, or with an empty prefix, get the
    :data:`UNKNOWN_SERVER` label and keep the whole key as the local name.
    """
    server, sep, local_name = key.partition("_")
    if not sep or not server:
        return NamespacedKey(UNKNOWN_SERVER, key)
    return NamespacedKey(server, local_name)


def entry_field(entry: Any, *names: str, default: Any = None) -> Any:
    """Read the first present field among *names* from an object or mapping."""
    for name in names:
        if isinstance(entry, Mapping):
            if name in entry and entry[name] is not None:
                return entry[name]
        else:
            value = getattr(entry, name, None)
            if value is not None:
                return value
    return default


def is_executable(entry: Any) -> bool:
    """True when *entry* exposes a callable ``execute``."""
    return entry is not None and callable(entry_field(entry, "execute"))


def executable_items(tools: Mapping[str, Any]) -> list[tuple[str, Any]]:
    """The ``(key, entry)`` pairs of *tools* that are genuine executable tools."""
    return [(key, entry) for key, entry in tools.items() if is_executable(entry)]


def resolve_tool(
    tools: Mapping[str, Any],
    identifier: str,
    server: str | None = None,
) -> tuple[str, Any] | None:
    """Find the entry named *identifier*.

    Order: exact key, then ``"<server>_<identifier>"`` when *server* is
    given, then the first entry whose ``id`` equals *identifier*.
    """
    if identifier in tools:
        return identifier, tools[identifier]
    if server:
        qualified = f"{server}_{identifier}"
        if qualified in tools:
            return qualified, tools[qualified]
    for key, entry in tools.items():
        if entry_field(entry, "id") == identifier:
            return key, entry
    return None


def find_in_servers(
    listing: Mapping[str, Any],
    field: str,
    value: str,
) -> tuple[str, Any] | None:
    """Scan servers in mapping order; return the first ``(server, entry)`` match.

    Non-list server values are skipped.
    """
    for server, entries in listing.items():
        if not isinstance(entries, Iterable) or isinstance(entries, (str, bytes, Mapping)):
            continue
        for entry in entries:
            if entry_field(entry, field) == value:
                return server, entry
    return None
