from __future__ import annotations

import json
from datetime import UTC, datetime
from types import SimpleNamespace

import pytest

from pydatalayer.exceptions import LayerStateError, UnknownGeometryError
from pydatalayer.models import (
    EditMode,
    GeometryKind,
    JsonBlob,
    LayerOptions,
    LayerVersion,
    LineStringFeature,
    PointFeature,
    PolygonFeature,
    VersionedSnapshot,
    make_feature,
)


def test_options_defaults() -> None:
    options = LayerOptions()

    assert options.display_on_load is True
    assert options.in_caption is True
    assert options.browsable is True
    assert options.edit_mode == EditMode.ADVANCED
    assert options.is_remote is False


def test_options_parse_camel_case_and_keep_unknown_keys() -> None:
    options = LayerOptions.model_validate(
        {"name": "Trees", "displayOnLoad": False, "editMode": "disabled", "labelKey": "{name}", "customFlag": 1}
    )

    assert options.name == "Trees"
    assert options.display_on_load is False
    assert options.is_read_only
    wire = options.to_wire()
    assert wire["customFlag"] == 1
    assert wire["labelKey"] == "{name}"
    assert "display_on_load" not in wire


def test_unknown_edit_mode_falls_back_to_default() -> None:
    assert LayerOptions.model_validate({"editMode": "bogus"}).edit_mode == EditMode.ADVANCED


def test_legacy_remote_zoom_bounds_move_up() -> None:
    options = LayerOptions.model_validate(
        {"remoteData": {"url": "http://x/data.csv", "format": "csv", "from": "5", "to": 12}}
    )

    assert options.from_zoom == 5
    assert options.to_zoom == 12
    assert "from" not in options.to_wire()["remoteData"]
    assert "to" not in options.to_wire()["remoteData"]


def test_explicit_zoom_wins_over_legacy_one() -> None:
    options = LayerOptions.model_validate({"fromZoom": 3, "remoteData": {"from": 8}})

    assert options.from_zoom == 3


def test_remote_needs_url_and_format() -> None:
    assert not LayerOptions.model_validate({"remoteData": {"url": "http://x"}}).is_remote
    assert LayerOptions.model_validate({"remoteData": {"url": "http://x", "format": "geojson"}}).is_remote


def test_merged_overwrites_top_level_and_merges_remote_data() -> None:
    options = LayerOptions.model_validate(
        {"name": "A", "remoteData": {"url": "http://x", "format": "csv", "ttl": 60}}
    )

    merged = options.merged({"name": "B", "remoteData": {"url": "http://y"}, "display_on_load": False})

    assert merged.name == "B"
    assert merged.display_on_load is False
    assert merged.remote_data.url == "http://y"
    assert merged.remote_data.format == "csv"
    assert merged.remote_data.ttl == 60
    assert options.name == "A"


def test_heat_layers_are_not_browsable() -> None:
    assert not LayerOptions.model_validate({"type": "Heat"}).is_browsable_type
    assert LayerOptions.model_validate({"type": "Choropleth"}).is_browsable_type


@pytest.mark.parametrize(
    ("geometry_type", "expected", "kind"),
    [
        ("Point", PointFeature, GeometryKind.POINT),
        ("LineString", LineStringFeature, GeometryKind.LINE),
        ("MultiLineString", LineStringFeature, GeometryKind.LINE),
        ("Polygon", PolygonFeature, GeometryKind.POLYGON),
        ("MultiPolygon", PolygonFeature, GeometryKind.POLYGON),
    ],
)
def test_geometry_type_selects_variant(geometry_type: str, expected: type, kind: GeometryKind) -> None:
    feature = make_feature({"type": "Feature", "geometry": {"type": geometry_type, "coordinates": []}})

    assert type(feature) is expected
    assert feature.KIND == kind
    assert make_feature(feature.to_geojson()).KIND == kind


def test_unknown_geometry_type_raises() -> None:
    with pytest.raises(UnknownGeometryError) as excinfo:
        make_feature({"type": "Feature", "geometry": {"type": "Circle", "coordinates": [0, 0]}})

    assert excinfo.value.geometry_type == "Circle"
    assert "Circle" in str(excinfo.value)


def test_missing_geometry_type_raises() -> None:
    with pytest.raises(UnknownGeometryError, match="undefined"):
        make_feature({"type": "Feature", "geometry": {"coordinates": [0, 0]}})


def test_bare_geometry_becomes_feature_with_generated_id() -> None:
    feature = make_feature({"type": "Point", "coordinates": [1, 2]})

    assert isinstance(feature, PointFeature)
    assert feature.id
    assert feature.properties == {}
    assert feature.to_geojson()["geometry"] == {"type": "Point", "coordinates": [1, 2]}


def test_feature_ids_are_kept_as_strings() -> None:
    feature = make_feature({"type": "Feature", "id": 12, "geometry": {"type": "Point", "coordinates": [0, 0]}})

    assert feature.id == "12"


def test_feature_belongs_to_one_layer_at_a_time() -> None:
    first, second = SimpleNamespace(id="first"), SimpleNamespace(id="second")
    feature = make_feature({"type": "Point", "coordinates": [0, 0]})

    feature.connect(first)
    with pytest.raises(LayerStateError):
        feature.connect(second)

    feature.disconnect(first)
    feature.connect(second)
    assert feature.datalayer is second


def test_snapshot_form_fields() -> None:
    snapshot = VersionedSnapshot(
        options={"id": "L1", "name": "Trees", "displayOnLoad": False},
        features=[{"type": "Feature", "geometry": {"type": "Point", "coordinates": [0, 0]}, "properties": {}}],
        reference_version="v1",
    )

    fields = snapshot.form_fields(rank=3)

    assert fields["name"] == "Trees"
    assert fields["display_on_load"] is False
    assert fields["rank"] == 3
    assert json.loads(fields["settings"])["id"] == "L1"
    blob = fields["geojson"]
    assert isinstance(blob, JsonBlob)
    assert blob.content_type == "application/json"
    geojson = json.loads(blob.content)
    assert geojson["type"] == "FeatureCollection"
    assert len(geojson["features"]) == 1
    assert geojson["_layer_options"]["name"] == "Trees"
    assert snapshot.conditional_headers() == {"X-Datalayer-Reference": "v1"}


def test_never_synced_snapshot_is_not_conditional() -> None:
    assert VersionedSnapshot(options={}, features=[]).conditional_headers() == {}


def test_layer_version_parses_millisecond_timestamps() -> None:
    version = LayerVersion.model_validate({"name": "1700000000000_7.geojson", "at": "1700000000000", "size": 1200})

    assert version.at == datetime(2023, 11, 14, 22, 13, 20, tzinfo=UTC)
    assert version.size == 1200
