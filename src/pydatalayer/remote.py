"""Fetching and parsing data of layers mirroring an external resource."""

from __future__ import annotations

import logging
import re
from collections.abc import Mapping
from typing import TYPE_CHECKING, Any
from urllib.parse import quote

from pydatalayer._transport import Transport
from pydatalayer.config import SyncConfig
from pydatalayer.exceptions import DataLayerConfigError, ParseError
from pydatalayer.formats import FormatParser

if TYPE_CHECKING:
    from pydatalayer.datalayer import DataLayer

_logger = logging.getLogger(__name__)

_PLACEHOLDER_RE = re.compile(r"\{(\w+)\}")


def render_url(template: str, context: Mapping[str, Any]) -> str:
    """Substitute ``{name}`` placeholders; unknown ones are left in place."""

    def _replace(match: re.Match[str]) -> str:
        value = context.get(match.group(1))
        return match.group(0) if value is None else str(value)

    return _PLACEHOLDER_RE.sub(_replace, template)


class RemoteDataFetcher:
    """Fetch remote layer data through the transport and parse it.

    The fetcher never raises for network or parse failures: it logs them
    and returns ``None`` so the layer keeps its current features.
    """

    def __init__(self, config: SyncConfig, transport: Transport, parser: FormatParser) -> None:
        self._config = config
        self._transport = transport
        self._parser = parser
        self._in_flight: set[str] = set()

    def is_fetching(self, layer: DataLayer) -> bool:
        return layer.id in self._in_flight

    def should_fetch(self, layer: DataLayer, *, force: bool = False) -> bool:
        if not layer.is_remote:
            return False
        remote = layer.options.remote_data
        if not remote.dynamic and layer.data_loaded and not force:
            return False
        return layer.visible

    def resolve_url(self, layer: DataLayer, context: Mapping[str, Any] | None = None) -> str:
        """Final URL for *layer*, placeholders rendered and proxy applied."""
        remote = layer.options.remote_data
        url = render_url(remote.url or "", context or {})
        if not remote.proxy:
            return url
        if not self._config.proxy_url:
            _logger.debug("Proxy requested for layer %s but no proxy_url configured", layer.id)
            return url
        ttl = remote.ttl if remote.ttl is not None else self._config.default_proxy_ttl
        try:
            return self._config.proxy_url.format(url=quote(url, safe=""), ttl=ttl)
        except (KeyError, IndexError) as exc:
            raise DataLayerConfigError(f"Invalid proxy_url template: {self._config.proxy_url}") from exc

    async def fetch(
        self,
        layer: DataLayer,
        *,
        force: bool = False,
        context: Mapping[str, Any] | None = None,
    ) -> dict[str, Any] | None:
        """Fetch and parse remote data for *layer*.

        Returns
        -------
        dict or None
            The parsed feature collection, or ``None`` when the fetch was
            skipped or failed.
        """
        if not self.should_fetch(layer, force=force):
            return None
        if layer.id in self._in_flight:
            _logger.debug("Remote fetch already running for layer %s", layer.id)
            return None

        self._in_flight.add(layer.id)
        try:
            url = self.resolve_url(layer, context)
            result = await self._transport.get_text(url)
            if result.error is not None:
                _logger.warning("Remote data fetch failed for layer %s: %s", layer.id, result.error)
                return None
            format_name = layer.options.remote_data.format or ""
            try:
                return await self._parser.parse(result.body or "", format_name)
            except ParseError:
                _logger.warning("Cannot parse remote %s data for layer %s", format_name, layer.id, exc_info=True)
                return None
        finally:
            self._in_flight.discard(layer.id)
