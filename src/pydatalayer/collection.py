"""The ordered set of layers of one map and their map-wide save flow."""

from __future__ import annotations

import dataclasses
import logging
from collections.abc import Callable, Iterator, Mapping
from typing import TYPE_CHECKING, Any, Protocol

from pydatalayer._natural import DEFAULT_SORT_KEY
from pydatalayer._transport import Transport
from pydatalayer.config import SyncConfig
from pydatalayer.exceptions import TransportError
from pydatalayer.formats import FormatParser, FormatRegistry
from pydatalayer.models.snapshot import Conflict, SaveResult, Skipped
from pydatalayer.remote import RemoteDataFetcher
from pydatalayer.state import LayerState

if TYPE_CHECKING:
    from pydatalayer.datalayer import DataLayer

_logger = logging.getLogger(__name__)

AlertCallback = Callable[[str, str], None]


class SyncCoordinator(Protocol):
    """What a layer needs from its owner to take part in map-wide saves."""

    def on_dirty_changed(self, layer: DataLayer, dirty: bool) -> None:
        ...

    async def save_all(self) -> SaveReport:
        ...


@dataclasses.dataclass
class SaveReport:
    """Per-layer outcome of :meth:`LayerCollection.save_all`."""

    results: dict[str, SaveResult] = dataclasses.field(default_factory=dict)
    errors: dict[str, TransportError] = dataclasses.field(default_factory=dict)

    @property
    def ok(self) -> bool:
        return not self.errors and not any(isinstance(result, Conflict) for result in self.results.values())


class LayerCollection:
    """Layers of one map, in display order.

    Parameters
    ----------
    map_id : str or int
        Identifier of the owning map, used to render server URLs.
    config : SyncConfig
        Client configuration.
    transport : Transport
        HTTP transport shared by every layer.
    fetcher : RemoteDataFetcher, optional
        Remote data fetcher; built from *transport* and *parser* if omitted.
    parser : FormatParser, optional
        Raw payload parser; a :class:`FormatRegistry` if omitted.
    sort_key : str or None
        Map-wide feature sort key, used by layers that do not set their own.
    url_context : mapping, optional
        Values for ``{placeholder}`` parts of remote URLs.
    on_change, on_redraw, on_alert : callable, optional
        Hooks for the embedding application: layer list changed, one layer
        needs redrawing, a message must be shown to the user.
    """

    def __init__(
        self,
        map_id: str | int,
        config: SyncConfig,
        transport: Transport,
        *,
        fetcher: RemoteDataFetcher | None = None,
        parser: FormatParser | None = None,
        sort_key: str | None = None,
        url_context: Mapping[str, Any] | None = None,
        on_change: Callable[[], None] | None = None,
        on_redraw: Callable[[DataLayer], None] | None = None,
        on_alert: AlertCallback | None = None,
    ) -> None:
        self.map_id = map_id
        self.config = config
        self.transport = transport
        self.parser: FormatParser = parser or FormatRegistry()
        self.fetcher = fetcher or RemoteDataFetcher(config, transport, self.parser)
        self.sort_key = sort_key or DEFAULT_SORT_KEY
        self.url_context: dict[str, Any] = {"map_id": map_id, **(url_context or {})}
        self._on_change = on_change
        self._on_redraw = on_redraw
        self._on_alert = on_alert
        # Every known layer, including deleted ones still waiting for save.
        self._layers: dict[str, DataLayer] = {}
        self._order: list[DataLayer] = []
        self._dirty: set[str] = set()

    def __iter__(self) -> Iterator[DataLayer]:
        return iter(list(self._order))

    def __len__(self) -> int:
        return len(self._order)

    def __contains__(self, layer: object) -> bool:
        return layer in self._order

    @property
    def layers(self) -> list[DataLayer]:
        return list(self._order)

    @property
    def is_dirty(self) -> bool:
        return bool(self._dirty) or any(layer.permissions.dirty for layer in self._order)

    @property
    def dirty_layers(self) -> list[DataLayer]:
        return [layer for layer in self._save_order() if layer.id in self._dirty]

    def get(self, layer_id: str) -> DataLayer | None:
        return self._layers.get(layer_id)

    def rank(self, layer: DataLayer) -> int:
        try:
            return self._order.index(layer)
        except ValueError:
            return -1

    # ------------------------------------------------------------------
    # Membership
    # ------------------------------------------------------------------

    def create_layer(self, options: Mapping[str, Any] | None = None) -> DataLayer:
        """Create a new local layer and append it to the collection."""
        from pydatalayer.datalayer import DataLayer

        layer = DataLayer(self, options)
        self.on_layers_changed()
        return layer

    def connect(self, layer: DataLayer, *, position: int | None = None) -> None:
        """Register *layer*, appended or put back at *position* in the order."""
        self._layers[layer.id] = layer
        if layer in self._order:
            return
        if position is None:
            self._order.append(layer)
        else:
            self._order.insert(position, layer)

    def disconnect(self, layer: DataLayer) -> None:
        self._layers.pop(layer.id, None)
        self.drop_from_order(layer)
        self._dirty.discard(layer.id)

    def drop_from_order(self, layer: DataLayer) -> None:
        if layer in self._order:
            self._order.remove(layer)

    def move(self, layer: DataLayer, position: int) -> None:
        """Move *layer* to *position*; the new rank is saved with the layer."""
        self.drop_from_order(layer)
        self._order.insert(position, layer)
        layer.mark_dirty()
        self.on_layers_changed()

    # ------------------------------------------------------------------
    # Hooks
    # ------------------------------------------------------------------

    def on_dirty_changed(self, layer: DataLayer, dirty: bool) -> None:
        if dirty:
            self._dirty.add(layer.id)
        else:
            self._dirty.discard(layer.id)
        _logger.debug("Layer %s dirty=%s (map dirty=%s)", layer.id, dirty, self.is_dirty)

    def on_layers_changed(self) -> None:
        if self._on_change is not None:
            self._on_change()

    def redraw(self, layer: DataLayer) -> None:
        if self._on_redraw is not None:
            self._on_redraw(layer)

    def alert(self, message: str, level: str = "error") -> None:
        if self._on_alert is not None:
            self._on_alert(message, level)

    # ------------------------------------------------------------------
    # Map-wide operations
    # ------------------------------------------------------------------

    def _save_order(self) -> list[DataLayer]:
        pending = [layer for layer in self._layers.values() if layer not in self._order]
        return [*self._order, *pending]

    async def save_all(self) -> SaveReport:
        """Save every dirty layer, in rank order, deleted layers last.

        Conflicted layers are left alone: they wait for their retry. Pending
        permission changes are sent afterwards. A failing layer does not
        stop the others.
        """
        report = SaveReport()
        for layer in self.dirty_layers:
            if layer.state == LayerState.CONFLICTED:
                report.results[layer.id] = Skipped("conflict pending")
                continue
            try:
                if not layer.loaded and not layer.deleted:
                    await layer.fetch_data()
                report.results[layer.id] = await layer.save()
            except TransportError as exc:
                report.errors[layer.id] = exc
        for layer in self:
            if not layer.permissions.dirty or not layer.persisted or layer.id in report.errors:
                continue
            try:
                await layer.permissions.save()
            except TransportError as exc:
                report.errors[layer.id] = exc
        _logger.debug(
            "Saved %d layer(s), %d error(s)",
            len(report.results),
            len(report.errors),
        )
        return report

    async def show_on_load(self) -> None:
        """Show the layers flagged to be displayed when the map opens."""
        for layer in self:
            if layer.options.display_on_load:
                await layer.show()

    def next_browsable(self, layer: DataLayer) -> DataLayer | None:
        """Next browsable layer after *layer*, wrapping; *layer* when alone."""
        return self._browse(layer, step=1)

    def previous_browsable(self, layer: DataLayer) -> DataLayer | None:
        return self._browse(layer, step=-1)

    def _browse(self, layer: DataLayer, *, step: int) -> DataLayer | None:
        if layer not in self._order:
            return None
        size = len(self._order)
        start = self._order.index(layer)
        for offset in range(1, size + 1):
            candidate = self._order[(start + step * offset) % size]
            if candidate is layer or candidate.can_browse:
                return candidate
        return None
