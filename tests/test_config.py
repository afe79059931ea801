from __future__ import annotations

import pytest

from pydatalayer.config import LayerUrls, SyncConfig
from pydatalayer.exceptions import DataLayerConfigError

_ENV_KEYS = (
    "DATALAYER_BASE_URL",
    "DATALAYER_LOCALE",
    "DATALAYER_RESERVED_PREFIX",
    "DATALAYER_PROXY_URL",
    "DATALAYER_PROXY_TTL",
    "DATALAYER_REQUEST_TIMEOUT",
    "DATALAYER_BUST_CACHE",
    "DATALAYER_API_TRACE_ENABLED",
)


@pytest.fixture(autouse=True)
def _clean_env(monkeypatch: pytest.MonkeyPatch) -> None:
    for key in _ENV_KEYS:
        monkeypatch.delenv(key, raising=False)


def test_from_env_reads_variables(monkeypatch: pytest.MonkeyPatch) -> None:
    monkeypatch.setenv("DATALAYER_BASE_URL", "https://maps.example.org")
    monkeypatch.setenv("DATALAYER_PROXY_URL", "/ajax-proxy/?url={url}&ttl={ttl}")
    monkeypatch.setenv("DATALAYER_PROXY_TTL", "60")
    monkeypatch.setenv("DATALAYER_REQUEST_TIMEOUT", "2.5")
    monkeypatch.setenv("DATALAYER_BUST_CACHE", "yes")

    config = SyncConfig.from_env()

    assert config.base_url == "https://maps.example.org"
    assert config.proxy_url == "/ajax-proxy/?url={url}&ttl={ttl}"
    assert config.default_proxy_ttl == 60
    assert config.request_timeout == 2.5
    assert config.bust_cache is True
    assert config.api_trace_enabled is False


def test_from_env_overrides_win(monkeypatch: pytest.MonkeyPatch) -> None:
    monkeypatch.setenv("DATALAYER_BUST_CACHE", "1")
    monkeypatch.setenv("DATALAYER_PROXY_TTL", "60")

    config = SyncConfig.from_env(bust_cache=False, default_proxy_ttl=10, urls={"datalayer_view": "/v/{pk}"})

    assert config.bust_cache is False
    assert config.default_proxy_ttl == 10
    assert config.urls.datalayer_view == "/v/{pk}"


def test_from_env_rejects_bad_numbers(monkeypatch: pytest.MonkeyPatch) -> None:
    monkeypatch.setenv("DATALAYER_PROXY_TTL", "soon")

    with pytest.raises(DataLayerConfigError):
        SyncConfig.from_env()


def test_unknown_bool_keeps_default(monkeypatch: pytest.MonkeyPatch) -> None:
    monkeypatch.setenv("DATALAYER_API_TRACE_ENABLED", "maybe")

    assert SyncConfig.from_env().api_trace_enabled is False


def test_url_rendering() -> None:
    config = SyncConfig(base_url="http://test/")

    assert config.url("datalayer_update", map_id=7, pk="L1") == "http://test/map/7/datalayer/update/L1/"
    assert config.url("datalayer_version", map_id=7, pk="L1", name="v.geojson") == "http://test/datalayer/7/L1/v.geojson"


def test_url_errors() -> None:
    urls = LayerUrls()

    with pytest.raises(DataLayerConfigError):
        urls.get("datalayer_unknown")
    with pytest.raises(DataLayerConfigError):
        urls.get("datalayer_view", map_id=7)
