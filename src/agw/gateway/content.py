"""Content extraction and size policy for ``get_resource``."""

from __future__ import annotations

import base64
import binascii
import json
from typing import Any, NamedTuple

from agw.gateway.resolver import entry_field

DEFAULT_MAX_BYTES = 100_000


class ResourceContent(NamedTuple):
    content: str
    is_binary: bool
    truncated: bool = False


def extract_content(result: Any) -> ResourceContent:
    """Pull the payload out of a ``resources/read`` result.

    Shapes are tried in order: a ``contents`` array of parts, a bare string,
    an object with ``text``, an object with ``data``.  Inside the array, text
    parts are concatenated until a part carries a ``blob``; that blob then
    becomes the whole (binary) content.
    """
    if isinstance(result, str):
        return ResourceContent(result, is_binary=False)
    if result is None:
        return ResourceContent("", is_binary=False)

    parts = entry_field(result, "contents")
    if isinstance(parts, list):
        text = ""
        for part in parts:
            part_text = entry_field(part, "text")
            if part_text:
                text += str(part_text)
                continue
            blob = entry_field(part, "blob")
            if blob:
                return ResourceContent(str(blob), is_binary=True)
        return ResourceContent(text, is_binary=False)

    text = entry_field(result, "text")
    if text:
        return ResourceContent(str(text), is_binary=False)

    data = entry_field(result, "data")
    if data is not None:
        if isinstance(data, str):
            return ResourceContent(data, is_binary=False)
        return ResourceContent(json.dumps(data, indent=2, default=str), is_binary=False)

    return ResourceContent("", is_binary=False)


def decode_blob(blob: str) -> str | None:
    """Decode a base64 blob as UTF-8 text, or ``None`` if it is not text."""
    try:
        return base64.b64decode(blob, validate=True).decode("utf-8")
    except (binascii.Error, UnicodeDecodeError, ValueError):
        return None


def apply_size_limit(extracted: ResourceContent, max_chars: int) -> ResourceContent:
    """Cut textual content to *max_chars*; binary content is never cut."""
    if extracted.is_binary or len(extracted.content) <= max_chars:
        return extracted
    return ResourceContent(extracted.content[:max_chars], is_binary=False, truncated=True)
