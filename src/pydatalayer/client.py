"""High-level async entry point."""

from __future__ import annotations

import logging
from collections.abc import Callable, Mapping
from typing import Any

import aiohttp

from pydatalayer._transport import HttpTransport
from pydatalayer.collection import AlertCallback, LayerCollection
from pydatalayer.config import SyncConfig
from pydatalayer.datalayer import DataLayer
from pydatalayer.exceptions import DataLayerError
from pydatalayer.formats import FormatParser, FormatRegistry
from pydatalayer.remote import RemoteDataFetcher

_logger = logging.getLogger(__name__)


class DataLayerClient:
    """Async client owning the HTTP session shared by every layer.

    Usage::

        async with DataLayerClient(SyncConfig.from_env()) as client:
            layers = client.collection(map_id=42)
            layer = await client.load_layer(layers, layer_id, reference_version)
            layer.empty()
            await layers.save_all()
    """

    def __init__(
        self,
        config: SyncConfig | None = None,
        *,
        session: aiohttp.ClientSession | None = None,
        parser: FormatParser | None = None,
    ) -> None:
        self._config = config or SyncConfig()
        self._external_session = session is not None
        self._http_session = session
        self._parser: FormatParser = parser or FormatRegistry()
        self._transport: HttpTransport | None = None
        self._fetcher: RemoteDataFetcher | None = None

    @property
    def config(self) -> SyncConfig:
        return self._config

    # ------------------------------------------------------------------
    # Context manager lifecycle
    # ------------------------------------------------------------------

    async def __aenter__(self) -> DataLayerClient:
        if self._http_session is None:
            self._http_session = aiohttp.ClientSession(
                timeout=aiohttp.ClientTimeout(total=self._config.request_timeout),
            )
        self._transport = HttpTransport(self._config, self._http_session)
        self._fetcher = RemoteDataFetcher(self._config, self._transport, self._parser)
        return self

    async def __aexit__(self, *exc: Any) -> None:
        if not self._external_session and self._http_session is not None:
            await self._http_session.close()
            self._http_session = None
        self._transport = None
        self._fetcher = None

    def _require_transport(self) -> HttpTransport:
        if self._transport is None:
            raise DataLayerError("Client is not open; use 'async with DataLayerClient(...)'")
        return self._transport

    # ------------------------------------------------------------------
    # Layers
    # ------------------------------------------------------------------

    def collection(
        self,
        map_id: str | int,
        *,
        sort_key: str | None = None,
        url_context: Mapping[str, Any] | None = None,
        on_change: Callable[[], None] | None = None,
        on_redraw: Callable[[DataLayer], None] | None = None,
        on_alert: AlertCallback | None = None,
    ) -> LayerCollection:
        """Create an empty layer collection for map *map_id*."""
        return LayerCollection(
            map_id,
            self._config,
            self._require_transport(),
            fetcher=self._fetcher,
            parser=self._parser,
            sort_key=sort_key,
            url_context=url_context,
            on_change=on_change,
            on_redraw=on_redraw,
            on_alert=on_alert,
        )

    async def load_layer(
        self,
        collection: LayerCollection,
        layer_id: str,
        reference_version: str,
        *,
        options: Mapping[str, Any] | None = None,
    ) -> DataLayer:
        """Register a layer that exists on the server and fetch its data.

        Parameters
        ----------
        collection : LayerCollection
            Owner of the layer.
        layer_id : str
            Server id of the layer.
        reference_version : str
            Version token the map listing reported for the layer.
        options : mapping, optional
            Options already known from the map listing.
        """
        layer = DataLayer(collection, {**(options or {}), "id": layer_id}, reference_version=reference_version)
        _logger.debug("Loading layer %s at version %s", layer_id, reference_version)
        await layer.fetch_data()
        return layer
