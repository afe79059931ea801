"""Layer options: the configuration bag saved alongside the features."""

from __future__ import annotations

import copy
from collections.abc import Mapping
from enum import StrEnum
from typing import Any

from pydantic import Field, field_validator, model_validator

from pydatalayer.models._base import WireModel, safe_int


class EditMode(StrEnum):
    DISABLED = "disabled"
    SIMPLE = "simple"
    ADVANCED = "advanced"


#: Rendering types that support browsing feature by feature.
_UNBROWSABLE_TYPES: frozenset[str] = frozenset({"Heat"})


class RemoteData(WireModel):
    """Descriptor of an external resource mirrored by a layer.

    Parameters
    ----------
    url : str or None
        Resource URL, may contain ``{placeholder}`` parts rendered at fetch time.
    format : str or None
        Parser name (``"geojson"``, ``"csv"``, ...).
    dynamic : bool
        Refetch on every display instead of once.
    proxy : bool
        Route the request through the server's caching proxy.
    ttl : int or None
        Proxy cache time-to-live in seconds.
    licence : str or None
        Licence of the remote data, informational only.
    """

    url: str | None = None
    format: str | None = None
    dynamic: bool = False
    proxy: bool = False
    ttl: int | None = None
    licence: str | None = None

    @field_validator("ttl", mode="before")
    @classmethod
    def _coerce_ttl(cls, value: Any) -> int | None:
        return safe_int(value)

    @property
    def is_valid(self) -> bool:
        return bool(self.url and self.format)


class LayerOptions(WireModel):
    """Typed view over a layer's options.

    Unknown keys are kept in ``model_extra`` and written back on save.
    """

    id: str | None = None
    name: str | None = None
    description: str | None = None
    type: str | None = None
    display_on_load: bool = True
    in_caption: bool = True
    browsable: bool = True
    edit_mode: EditMode = EditMode.ADVANCED
    sort_key: str | None = None
    label_key: str | None = None
    from_zoom: int | None = None
    to_zoom: int | None = None
    zoom_to: int | None = None
    color: str | None = None
    opacity: float | None = None
    weight: float | None = None
    stroke: bool | None = None
    fill: bool | None = None
    fill_color: str | None = None
    fill_opacity: float | None = None
    dash_array: str | None = None
    smooth_factor: float | None = None
    icon_class: str | None = None
    icon_url: str | None = None
    popup_shape: str | None = None
    popup_template: str | None = None
    show_label: bool | None = None
    remote_data: RemoteData = Field(default_factory=RemoteData)
    permissions: dict[str, Any] = Field(default_factory=dict)

    @model_validator(mode="before")
    @classmethod
    def _reconcile_legacy(cls, values: Any) -> Any:
        """Normalize ``remoteData`` and move its old zoom bounds up a level."""
        if not isinstance(values, dict):
            return values
        working = dict(values)
        key = "remoteData" if "remoteData" in working else "remote_data"
        remote = working.get(key)
        if not isinstance(remote, Mapping):
            remote = {}
        remote = dict(remote)
        if remote.get("from") is not None:
            working.setdefault("fromZoom", remote.pop("from"))
        else:
            remote.pop("from", None)
        if remote.get("to") is not None:
            working.setdefault("toZoom", remote.pop("to"))
        else:
            remote.pop("to", None)
        working[key] = remote
        return working

    @field_validator("id", mode="before")
    @classmethod
    def _coerce_id(cls, value: Any) -> str | None:
        if value is None or value == "":
            return None
        return str(value)

    @field_validator("from_zoom", "to_zoom", "zoom_to", mode="before")
    @classmethod
    def _coerce_zoom(cls, value: Any) -> int | None:
        return safe_int(value)

    @field_validator("edit_mode", mode="before")
    @classmethod
    def _coerce_edit_mode(cls, value: Any) -> Any:
        # Unknown modes fall back to the default instead of failing the whole load.
        if value is None or value not in EditMode._value2member_map_:
            return EditMode.ADVANCED
        return value

    @property
    def is_remote(self) -> bool:
        return self.remote_data.is_valid

    @property
    def is_read_only(self) -> bool:
        return self.edit_mode == EditMode.DISABLED

    @property
    def is_browsable_type(self) -> bool:
        return self.type not in _UNBROWSABLE_TYPES

    def copy_deep(self) -> LayerOptions:
        return LayerOptions.model_validate(copy.deepcopy(self.to_wire()))

    def merged(self, patch: Mapping[str, Any]) -> LayerOptions:
        """Return new options with *patch* merged in.

        Top-level keys overwrite. ``remoteData`` is merged key by key so a
        partial edit of the descriptor keeps its other fields.
        """
        current = self.to_wire()
        for key, value in patch.items():
            wire_key = self.wire_key(key)
            if wire_key == "remoteData" and isinstance(value, Mapping):
                remote = dict(current.get("remoteData") or {})
                remote.update({RemoteData.wire_key(k): v for k, v in value.items()})
                current["remoteData"] = remote
            else:
                current[wire_key] = copy.deepcopy(value)
        return LayerOptions.model_validate(current)
