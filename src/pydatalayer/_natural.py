"""Natural, locale-aware ordering of feature values.

Digit runs compare numerically (``"item 9"`` sorts before ``"item 10"``),
the remaining text compares through ``locale.strxfrm`` when a collation
locale is available, and case-folded otherwise.
"""

from __future__ import annotations

import contextlib
import locale
import logging
import re
from collections.abc import Callable, Iterable, Iterator, Mapping
from typing import Any, TypeVar

_logger = logging.getLogger(__name__)

T = TypeVar("T")

_CHUNK_RE = re.compile(r"(\d+)")

DEFAULT_SORT_KEY = "name"

NaturalKey = tuple[tuple[int, int, str], ...]


@contextlib.contextmanager
def collation(locale_name: str | None) -> Iterator[bool]:
    """Temporarily switch ``LC_COLLATE``; yields whether it is active."""
    if not locale_name:
        yield False
        return
    previous = locale.setlocale(locale.LC_COLLATE)
    try:
        locale.setlocale(locale.LC_COLLATE, locale_name)
    except locale.Error:
        _logger.debug("Collation locale %s unavailable, using case-folded order", locale_name)
        yield False
        return
    try:
        yield True
    finally:
        locale.setlocale(locale.LC_COLLATE, previous)


def natural_key(value: Any, *, collate: bool = False) -> NaturalKey:
    """Build a comparable key for *value*.

    ``None`` behaves like an empty string so missing properties sort first.
    """
    text = "" if value is None else str(value)
    parts: list[tuple[int, int, str]] = []
    for chunk in _CHUNK_RE.split(text):
        if not chunk:
            continue
        if chunk.isdigit():
            parts.append((0, int(chunk), chunk))
        else:
            parts.append((1, 0, locale.strxfrm(chunk) if collate else chunk.casefold()))
    return tuple(parts)


def _property_of(item: Any, name: str) -> Any:
    """Read a property from a feature model or a raw GeoJSON mapping."""
    if isinstance(item, Mapping):
        properties = item.get("properties")
    else:
        properties = getattr(item, "properties", None)
    if not isinstance(properties, Mapping):
        return None
    return properties.get(name)


def sort_features(
    features: Iterable[T],
    sort_key: str | None,
    locale_name: str | None = None,
    *,
    getter: Callable[[T, str], Any] = _property_of,
) -> list[T]:
    """Return *features* ordered by *sort_key*.

    *sort_key* is a comma separated list of property names, the first one
    being the primary key. A leading ``-`` reverses a key. Ties keep their
    input order.
    """
    ordered = list(features)
    keys = [key.strip() for key in (sort_key or DEFAULT_SORT_KEY).split(",") if key.strip()]
    with collation(locale_name) as collate:
        # Stable multi-pass sort: least significant key first.
        for key in reversed(keys):
            reverse = key.startswith("-")
            name = key[1:] if reverse else key
            ordered.sort(key=lambda item, n=name: natural_key(getter(item, n), collate=collate), reverse=reverse)
    return ordered


def natural_sorted(values: Iterable[Any], locale_name: str | None = None) -> list[Any]:
    """Sort arbitrary scalar values naturally."""
    with collation(locale_name) as collate:
        return sorted(values, key=lambda value: natural_key(value, collate=collate))
