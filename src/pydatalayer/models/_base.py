"""Base model and helpers for layer payloads.

Every wire model inherits from :class:`WireModel` which provides:

* ``alias_generator=to_camel`` so the server's camelCase keys map
  automatically to snake_case fields.
* ``extra="allow"`` so keys this library does not know about survive a
  load/save round trip untouched.

Legacy payload shapes are reconciled by the models that own them (see
:class:`~pydatalayer.models.options.LayerOptions`).
"""

from __future__ import annotations

import math
from datetime import UTC, datetime
from typing import Annotated, Any

from pydantic import BaseModel, BeforeValidator, ConfigDict
from pydantic.alias_generators import to_camel

# Threshold to distinguish seconds from milliseconds.
_MS_THRESHOLD = 1_000_000_000_000


def safe_int(value: Any) -> int | None:
    """Parse *value* as an int the lenient way the web client does."""
    if value is None or value == "" or isinstance(value, bool):
        return None
    try:
        result = float(value)
    except (TypeError, ValueError):
        return None
    if math.isnan(result):
        return None
    return int(result)


def parse_epoch(value: Any) -> datetime | None:
    """Convert an epoch timestamp (seconds **or** milliseconds) to a UTC datetime."""
    if value is None:
        return value
    if isinstance(value, datetime):
        return value
    ts = int(value)
    if ts >= _MS_THRESHOLD:
        ts = ts // 1000
    return datetime.fromtimestamp(ts, tz=UTC)


EpochTimestamp = Annotated[datetime | None, BeforeValidator(parse_epoch)]
"""Annotated type that coerces epoch ints (seconds or ms) to UTC datetimes."""


class WireModel(BaseModel):
    """Base for models exchanged with the server."""

    model_config = ConfigDict(
        extra="allow",
        populate_by_name=True,
        alias_generator=to_camel,
    )

    def to_wire(self) -> dict[str, Any]:
        """JSON-ready dict using the server's key names."""
        return self.model_dump(mode="json", by_alias=True, exclude_none=True)

    @classmethod
    def wire_key(cls, name: str) -> str:
        """Map a field name (snake or camel) to its wire key."""
        field = cls.model_fields.get(name)
        if field is not None and field.alias:
            return field.alias
        return name
