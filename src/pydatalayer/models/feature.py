"""Feature models.

A feature is one geometric entity with its properties. The geometry type
selects the concrete variant: :class:`PointFeature`, :class:`LineStringFeature`
(including multi line strings) or :class:`PolygonFeature` (including multi
polygons).
"""

from __future__ import annotations

import copy
import uuid
from collections.abc import Mapping
from enum import StrEnum
from typing import TYPE_CHECKING, Any, ClassVar

from pydantic import BaseModel, ConfigDict, Field, PrivateAttr, field_validator

from pydatalayer._constants import LINE_TYPES, POINT_TYPES, POLYGON_TYPES
from pydatalayer.exceptions import LayerStateError, UnknownGeometryError

if TYPE_CHECKING:
    from pydatalayer.datalayer import DataLayer


class GeometryKind(StrEnum):
    POINT = "point"
    LINE = "line"
    POLYGON = "polygon"


class Geometry(BaseModel):
    """GeoJSON geometry, coordinates kept as received."""

    model_config = ConfigDict(extra="allow")

    type: str
    coordinates: Any = None


class Feature(BaseModel):
    """Base feature. Use :func:`make_feature` to get the right variant."""

    KIND: ClassVar[GeometryKind | None] = None
    GEOMETRY_TYPES: ClassVar[frozenset[str]] = frozenset()

    model_config = ConfigDict(extra="ignore")

    id: str = Field(default_factory=lambda: uuid.uuid4().hex)
    geometry: Geometry
    properties: dict[str, Any] = Field(default_factory=dict)

    _datalayer: Any = PrivateAttr(default=None)

    @field_validator("id", mode="before")
    @classmethod
    def _coerce_id(cls, value: Any) -> str:
        if value is None or value == "":
            return uuid.uuid4().hex
        return str(value)

    @field_validator("properties", mode="before")
    @classmethod
    def _coerce_properties(cls, value: Any) -> Any:
        return {} if value is None else value

    @property
    def datalayer(self) -> DataLayer | None:
        return self._datalayer

    @property
    def geometry_type(self) -> str:
        return self.geometry.type

    def connect(self, datalayer: DataLayer) -> None:
        """Attach to *datalayer*; a feature belongs to one layer at a time."""
        if self._datalayer is not None and self._datalayer is not datalayer:
            raise LayerStateError(f"Feature {self.id} already belongs to layer {self._datalayer.id}")
        self._datalayer = datalayer

    def disconnect(self, datalayer: DataLayer) -> None:
        if self._datalayer is datalayer:
            self._datalayer = None

    def to_geojson(self) -> dict[str, Any]:
        return {
            "type": "Feature",
            "id": self.id,
            "geometry": self.geometry.model_dump(mode="json", exclude_none=True),
            "properties": copy.deepcopy(self.properties),
        }


class PointFeature(Feature):
    KIND: ClassVar[GeometryKind | None] = GeometryKind.POINT
    GEOMETRY_TYPES: ClassVar[frozenset[str]] = POINT_TYPES


class LineStringFeature(Feature):
    KIND: ClassVar[GeometryKind | None] = GeometryKind.LINE
    GEOMETRY_TYPES: ClassVar[frozenset[str]] = LINE_TYPES


class PolygonFeature(Feature):
    KIND: ClassVar[GeometryKind | None] = GeometryKind.POLYGON
    GEOMETRY_TYPES: ClassVar[frozenset[str]] = POLYGON_TYPES


FEATURE_TYPES: tuple[type[Feature], ...] = (PointFeature, LineStringFeature, PolygonFeature)


def feature_class_for(geometry_type: str | None) -> type[Feature]:
    """Return the feature variant for a GeoJSON geometry type."""
    if isinstance(geometry_type, str):
        for feature_cls in FEATURE_TYPES:
            if geometry_type in feature_cls.GEOMETRY_TYPES:
                return feature_cls
    raise UnknownGeometryError(
        f"Skipping unknown geometry.type: {geometry_type or 'undefined'}",
        geometry_type=geometry_type,
    )


def make_feature(data: Mapping[str, Any]) -> Feature:
    """Build a feature from a GeoJSON Feature or a bare geometry.

    Raises
    ------
    UnknownGeometryError
        If the geometry type has no feature variant.
    """
    raw_geometry = data.get("geometry")
    geometry = raw_geometry if isinstance(raw_geometry, Mapping) else data
    feature_cls = feature_class_for(geometry.get("type"))
    if geometry is data:
        return feature_cls(geometry=dict(geometry))
    return feature_cls(
        id=data.get("id"),
        geometry=dict(geometry),
        properties=copy.deepcopy(data.get("properties") or {}),
    )
