from __future__ import annotations

import pytest
from _support import FakeTransport, Hooks, layer_payload, layer_url, point

from pydatalayer.collection import LayerCollection
from pydatalayer.config import SyncConfig
from pydatalayer.datalayer import DataLayer
from pydatalayer.exceptions import TransportError
from pydatalayer.models import Conflict, Deleted, Saved, Skipped
from pydatalayer.state import LayerState


async def _persisted(collection: LayerCollection, layer_id: str, *, load: bool = True) -> DataLayer:
    layer = DataLayer(collection, {"id": layer_id, "name": layer_id}, reference_version="v1")
    if load:
        await layer.from_layer_geojson(layer_payload(point(layer_id), name=layer_id))
    return layer


def test_layers_keep_creation_order(collection: LayerCollection) -> None:
    first = collection.create_layer({"name": "first"})
    second = collection.create_layer({"name": "second"})

    assert collection.layers == [first, second]
    assert len(collection) == 2
    assert [first.rank, second.rank] == [0, 1]


def test_move_changes_rank_and_marks_dirty(collection: LayerCollection, hooks: Hooks) -> None:
    first = DataLayer(collection, {"id": "A"}, reference_version="v1")
    second = DataLayer(collection, {"id": "B"}, reference_version="v1")
    assert not collection.is_dirty
    before = hooks.changes

    collection.move(second, 0)

    assert collection.layers == [second, first]
    assert second.rank == 0
    assert second.state == LayerState.DIRTY
    assert collection.dirty_layers == [second]
    assert hooks.changes == before + 1


@pytest.mark.asyncio
async def test_map_dirty_flag_follows_its_layers(collection: LayerCollection) -> None:
    first = await _persisted(collection, "A")
    second = await _persisted(collection, "B")
    assert not collection.is_dirty

    first.mark_dirty()
    second.mark_dirty()
    assert collection.is_dirty

    await first.reset()
    assert collection.is_dirty
    await second.reset()
    assert not collection.is_dirty


@pytest.mark.asyncio
async def test_save_all_follows_rank_with_deleted_layers_last(
    collection: LayerCollection, transport: FakeTransport, config: SyncConfig
) -> None:
    doomed = await _persisted(collection, "A")
    clean = await _persisted(collection, "B")
    edited = await _persisted(collection, "C")
    doomed.delete()
    edited.make_feature(point("new"))
    transport.reply_json("POST", layer_url(config, "datalayer_update", "C"), {}, version="v2")
    transport.reply_json("POST", layer_url(config, "datalayer_delete", "A"), {})

    report = await collection.save_all()

    assert report.ok
    assert [call.url for call in transport.calls] == [
        layer_url(config, "datalayer_update", "C"),
        layer_url(config, "datalayer_delete", "A"),
    ]
    assert report.results == {"C": Saved("v2"), "A": Deleted(requested=True)}
    assert collection.layers == [clean, edited]
    assert collection.get("A") is None
    assert not collection.is_dirty


@pytest.mark.asyncio
async def test_save_all_loads_layers_before_saving_them(
    collection: LayerCollection, transport: FakeTransport, config: SyncConfig
) -> None:
    await _persisted(collection, "A")
    unloaded = await _persisted(collection, "B", load=False)
    collection.move(unloaded, 0)
    transport.reply_json("GET", layer_url(config, "datalayer_view", "B"), layer_payload(point("b"), name="B"))
    transport.reply_json("POST", layer_url(config, "datalayer_update", "B"), {}, version="v2")

    report = await collection.save_all()

    assert report.results == {"B": Saved("v2")}
    assert [call.method for call in transport.calls] == ["GET", "POST"]
    assert transport.calls[1].data["rank"] == 0


@pytest.mark.asyncio
async def test_save_all_reports_errors_and_keeps_going(
    collection: LayerCollection, transport: FakeTransport, config: SyncConfig
) -> None:
    failing = await _persisted(collection, "A")
    working = await _persisted(collection, "B")
    failing.mark_dirty()
    working.mark_dirty()
    transport.reply_status("POST", layer_url(config, "datalayer_update", "A"), 500, "boom")
    transport.reply_json("POST", layer_url(config, "datalayer_update", "B"), {}, version="v2")

    report = await collection.save_all()

    assert not report.ok
    assert isinstance(report.errors["A"], TransportError)
    assert report.results == {"B": Saved("v2")}
    assert collection.dirty_layers == [failing]


@pytest.mark.asyncio
async def test_conflicted_layer_waits_for_its_retry(
    collection: LayerCollection, transport: FakeTransport, config: SyncConfig
) -> None:
    layer = await _persisted(collection, "A")
    layer.mark_dirty()
    transport.reply_status("POST", layer_url(config, "datalayer_update", "A"), 412)

    first = await collection.save_all()
    assert not first.ok
    assert isinstance(first.results["A"], Conflict)
    assert layer.state == LayerState.CONFLICTED

    second = await collection.save_all()
    assert second.results == {"A": Skipped("conflict pending")}
    assert len(transport.calls) == 1


@pytest.mark.asyncio
async def test_show_on_load_only_shows_flagged_layers(
    collection: LayerCollection, transport: FakeTransport, config: SyncConfig
) -> None:
    shown = DataLayer(collection, {"id": "A"}, reference_version="v1")
    hidden = DataLayer(collection, {"id": "B", "displayOnLoad": False}, reference_version="v1")
    transport.reply_json("GET", layer_url(config, "datalayer_view", "A"), layer_payload(point("a")))

    await collection.show_on_load()

    assert shown.visible
    assert shown.count == 1
    assert not hidden.visible
    assert not hidden.loaded
    assert transport.calls_to(layer_url(config, "datalayer_view", "B")) == []


def test_browsable_layers_skip_hidden_and_empty_ones(collection: LayerCollection) -> None:
    first = collection.create_layer()
    empty = collection.create_layer()
    hidden = collection.create_layer()
    last = collection.create_layer()
    for layer in (first, hidden, last):
        layer.make_feature(point("x"))
    hidden.hide()

    assert empty.count == 0
    assert collection.next_browsable(first) is last
    assert collection.previous_browsable(first) is last
    assert collection.next_browsable(last) is first


def test_alerts_reach_the_application(collection: LayerCollection, hooks: Hooks) -> None:
    collection.alert("Something happened", "info")
    collection.alert("Broken")

    assert hooks.alerts == [("info", "Something happened"), ("error", "Broken")]
