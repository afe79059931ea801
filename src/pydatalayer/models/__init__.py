"""Data models for layers, features and snapshots."""

from pydatalayer.models._base import EpochTimestamp, WireModel, parse_epoch
from pydatalayer.models.feature import (
    FEATURE_TYPES,
    Feature,
    Geometry,
    GeometryKind,
    LineStringFeature,
    PointFeature,
    PolygonFeature,
    feature_class_for,
    make_feature,
)
from pydatalayer.models.options import EditMode, LayerOptions, RemoteData
from pydatalayer.models.snapshot import (
    Conflict,
    Deleted,
    JsonBlob,
    LayerVersion,
    Saved,
    SaveResult,
    Skipped,
    VersionedSnapshot,
)

__all__ = [
    "Conflict",
    "Deleted",
    "EditMode",
    "EpochTimestamp",
    "FEATURE_TYPES",
    "Feature",
    "Geometry",
    "GeometryKind",
    "JsonBlob",
    "LayerOptions",
    "LayerVersion",
    "LineStringFeature",
    "PointFeature",
    "PolygonFeature",
    "RemoteData",
    "SaveResult",
    "Saved",
    "Skipped",
    "VersionedSnapshot",
    "WireModel",
    "feature_class_for",
    "make_feature",
    "parse_epoch",
]
