from __future__ import annotations

import pytest
from _support import MAP_ID, FakeTransport, Hooks

from pydatalayer.collection import LayerCollection
from pydatalayer.config import SyncConfig


@pytest.fixture
def config() -> SyncConfig:
    return SyncConfig(base_url="http://test")


@pytest.fixture
def transport() -> FakeTransport:
    return FakeTransport()


@pytest.fixture
def hooks() -> Hooks:
    return Hooks()


@pytest.fixture
def collection(config: SyncConfig, transport: FakeTransport, hooks: Hooks) -> LayerCollection:
    return LayerCollection(
        MAP_ID,
        config,
        transport,
        on_alert=hooks.on_alert,
        on_change=hooks.on_change,
        on_redraw=hooks.on_redraw,
    )
