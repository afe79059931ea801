from __future__ import annotations

import pytest
from _support import FakeTransport, layer_payload, layer_url

from pydatalayer.collection import LayerCollection
from pydatalayer.config import SyncConfig
from pydatalayer.datalayer import DataLayer
from pydatalayer.exceptions import TransportError


async def _layer(collection: LayerCollection, **permissions: int) -> DataLayer:
    layer = DataLayer(collection, {"id": "L1", "permissions": permissions}, reference_version="v1")
    await layer.from_layer_geojson(layer_payload(name="Trees", permissions=permissions))
    return layer


def test_permissions_url(config: SyncConfig) -> None:
    assert layer_url(config, "datalayer_permissions", "L1") == "http://test/map/7/datalayer/permissions/L1/"


@pytest.mark.asyncio
async def test_edit_status_comes_from_options(collection: LayerCollection) -> None:
    layer = await _layer(collection, edit_status=2)

    assert layer.permissions.edit_status == 2
    assert not layer.permissions.dirty


@pytest.mark.asyncio
async def test_changing_edit_status_makes_the_map_dirty_not_the_layer(collection: LayerCollection) -> None:
    layer = await _layer(collection, edit_status=2)

    layer.permissions.edit_status = 2
    assert not collection.is_dirty

    layer.permissions.edit_status = 3
    assert layer.permissions.dirty
    assert not layer.dirty
    assert collection.is_dirty


@pytest.mark.asyncio
async def test_save_posts_edit_status_and_commits(
    collection: LayerCollection, transport: FakeTransport, config: SyncConfig
) -> None:
    layer = await _layer(collection, edit_status=2)
    layer.permissions.edit_status = 3
    url = layer_url(config, "datalayer_permissions", "L1")
    transport.reply_json("POST", url, {})

    assert await layer.permissions.save()

    (call,) = transport.calls_to(url)
    assert call.data == {"edit_status": 3}
    assert layer.options.permissions["edit_status"] == 3
    assert not layer.permissions.dirty
    assert not collection.is_dirty


@pytest.mark.asyncio
async def test_clean_permissions_send_nothing(collection: LayerCollection, transport: FakeTransport) -> None:
    layer = await _layer(collection, edit_status=2)

    assert not await layer.permissions.save()
    assert transport.calls == []


@pytest.mark.asyncio
async def test_refused_permissions_stay_dirty(
    collection: LayerCollection, transport: FakeTransport, config: SyncConfig
) -> None:
    layer = await _layer(collection)
    layer.permissions.edit_status = 1
    transport.reply_status("POST", layer_url(config, "datalayer_permissions", "L1"), 403)

    with pytest.raises(TransportError):
        await layer.permissions.save()

    assert layer.permissions.dirty
    assert "edit_status" not in layer.options.permissions


@pytest.mark.asyncio
async def test_save_all_sends_pending_permissions(
    collection: LayerCollection, transport: FakeTransport, config: SyncConfig
) -> None:
    layer = await _layer(collection, edit_status=2)
    layer.permissions.edit_status = 1
    url = layer_url(config, "datalayer_permissions", "L1")
    transport.reply_json("POST", url, {})

    report = await collection.save_all()

    assert report.ok
    assert transport.calls_to(url)[0].data == {"edit_status": 1}
    assert not collection.is_dirty
