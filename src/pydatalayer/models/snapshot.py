"""Versioned layer snapshots and save outcomes.

A snapshot is what a save transmits: the full options blob plus the full
feature collection, never a diff. The reference version travels next to
it as a conditional header.
"""

from __future__ import annotations

import copy
import json
from collections.abc import Awaitable, Callable
from dataclasses import dataclass, field
from typing import Any

from pydantic import BaseModel, ConfigDict, Field

from pydatalayer._constants import OPTIONS_KEY, REFERENCE_HEADER
from pydatalayer.exceptions import ConflictError, TransportError
from pydatalayer.models._base import EpochTimestamp


@dataclass(frozen=True, slots=True)
class JsonBlob:
    """A JSON document sent as a file part of a multipart body."""

    content: str
    filename: str = "blob"
    content_type: str = "application/json"


@dataclass(frozen=True)
class VersionedSnapshot:
    """Serializable state of a layer at save time.

    Parameters
    ----------
    options : dict
        Options in wire format (camelCase keys).
    features : list of dict
        GeoJSON features, in display order.
    reference_version : str or None
        Last server version observed by this client, ``None`` when the
        layer was never synced.
    """

    options: dict[str, Any]
    features: list[dict[str, Any]]
    reference_version: str | None = None

    def to_geojson(self) -> dict[str, Any]:
        return {
            "type": "FeatureCollection",
            "features": copy.deepcopy(self.features),
            OPTIONS_KEY: copy.deepcopy(self.options),
        }

    def conditional_headers(self) -> dict[str, str]:
        """Headers making the save conditional on the reference version."""
        if not self.reference_version:
            return {}
        return {REFERENCE_HEADER: self.reference_version}

    def form_fields(self, *, rank: int) -> dict[str, Any]:
        """Multipart fields of a save request."""
        return {
            "name": self.options.get("name") or "",
            "display_on_load": bool(self.options.get("displayOnLoad", True)),
            "rank": rank,
            "settings": json.dumps(self.options),
            "geojson": JsonBlob(json.dumps(self.to_geojson())),
        }


# ------------------------------------------------------------------
# Save outcomes
# ------------------------------------------------------------------


@dataclass(frozen=True, slots=True)
class Saved:
    """The server accepted the snapshot."""

    reference_version: str | None


@dataclass(frozen=True, slots=True)
class Skipped:
    """Nothing was sent."""

    reason: str


@dataclass(frozen=True, slots=True)
class Deleted:
    """The layer was removed from its collection.

    ``requested`` tells whether a delete request was sent (only for layers
    that exist on the server); ``error`` carries its failure, if any.
    """

    requested: bool
    error: TransportError | None = None


@dataclass(frozen=True, slots=True)
class Conflict:
    """The server refused the save because the layer changed meanwhile.

    Awaiting :attr:`retry` resends the same snapshot without the reference
    version, overwriting the server copy.
    """

    error: ConflictError
    retry: Callable[[], Awaitable[SaveResult]] = field(repr=False)


SaveResult = Saved | Skipped | Deleted | Conflict


class LayerVersion(BaseModel):
    """One entry of a layer's server-side version history."""

    model_config = ConfigDict(frozen=True, extra="ignore")

    name: str
    at: EpochTimestamp = None
    size: int | None = Field(default=None, ge=0)
