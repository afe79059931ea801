"""Redaction of request traces.

With ``api_trace_enabled`` the transport logs headers, form fields and
decoded responses. Those carry session cookies and CSRF tokens, and layer
payloads can hold thousands of features, so everything goes through
:func:`redact_for_log` first.
"""

from __future__ import annotations

from collections.abc import Mapping, Sequence
from typing import Any

REDACTED = "<redacted>"

# Compared lower-cased; covers both header names and form/JSON keys.
_SECRET_KEYS: frozenset[str] = frozenset(
    {
        "authorization",
        "cookie",
        "set-cookie",
        "csrftoken",
        "csrfmiddlewaretoken",
        "x-csrftoken",
        "sessionid",
        "password",
        "token",
    }
)

# Geometry-sized lists, logged as their length only.
_BULKY_KEYS: frozenset[str] = frozenset({"features", "geometries", "coordinates"})

_MAX_DEPTH = 20


def _is_list(value: Any) -> bool:
    return isinstance(value, Sequence) and not isinstance(value, (str, bytes, bytearray))


def _redact_mapping(value: Mapping[Any, Any], limits: dict[str, int], depth: int) -> dict[str, Any]:
    out: dict[str, Any] = {}
    for raw_key, item in value.items():
        key = str(raw_key)
        lowered = key.lower()
        if lowered in _SECRET_KEYS:
            out[key] = REDACTED
        elif lowered in _BULKY_KEYS and _is_list(item):
            out[key] = f"<{len(item)} items>"
        else:
            out[key] = _redact(item, limits, depth + 1)
    return out


def _redact(value: Any, limits: dict[str, int], depth: int) -> Any:
    if depth > _MAX_DEPTH:
        return "<max-depth>"
    if value is None or isinstance(value, (bool, int, float)):
        return value
    if isinstance(value, str):
        max_string = limits["max_string"]
        return value if len(value) <= max_string else f"{value[:max_string]}…<truncated>"
    if isinstance(value, (bytes, bytearray)):
        return f"<bytes:{len(value)}b>"
    if isinstance(value, Mapping):
        return _redact_mapping(value, limits, depth)
    if _is_list(value):
        max_items = limits["max_items"]
        items = [_redact(item, limits, depth + 1) for item in value[:max_items]]
        if len(value) > max_items:
            items.append(f"…<{len(value) - max_items} more>")
        return items
    return repr(value)


def redact_for_log(value: Any, *, max_string: int = 512, max_items: int = 20) -> Any:
    """Copy of *value* with secrets masked and large values shortened."""
    return _redact(value, {"max_string": max_string, "max_items": max_items}, 0)
