"""
Text helpers shared by the resolver, retriever and context builder.

Free-form node and edge payloads are read through value_string, which
never raises on missing keys or wrong value types.
"""

from collections.abc import Mapping
from typing import Any

ELLIPSIS = "…"


def normalize_text(text: str | None) -> str:
    """Convert CRLF line endings to LF and strip surrounding whitespace."""
    if not text:
        return ""
    return text.replace("\r\n", "\n").strip()


def take_chars(text: str, max_chars: int) -> str:
    """Return at most the first max_chars characters of text."""
    if max_chars <= 0:
        return ""
    return text[:max_chars]


def safe_slice(text: str | None, max_chars: int) -> str:
    """
    Normalize text and truncate it to max_chars characters.

    An ellipsis marker is appended when characters were cut, so the result
    can be one character longer than max_chars.

    Args:
        text: Text to truncate
        max_chars: Maximum number of characters kept from the original

    Returns:
        Normalized, possibly truncated text
    """
    normalized = normalize_text(text)
    if len(normalized) <= max_chars:
        return normalized
    return take_chars(normalized, max_chars) + ELLIPSIS


def value_string(data: Any, key: str) -> str:
    """
    Read a string field from an untyped payload.

    Args:
        data: Any value; only mappings are inspected
        key: Field name

    Returns:
        The normalized string, or "" when data is not a mapping, the key is
        missing, or the value is not a string
    """
    if not isinstance(data, Mapping):
        return ""
    value = data.get(key)
    if not isinstance(value, str):
        return ""
    return normalize_text(value)
