"""A layer of features mirrored between this client and the server.

A layer is created locally (no reference version yet) or loaded from the
server. Edits mark it dirty; :meth:`DataLayer.save` sends a full snapshot
made conditional on the last version this client saw, so concurrent edits
by someone else surface as a :class:`~pydatalayer.models.Conflict` instead
of being silently overwritten.
"""

from __future__ import annotations

import asyncio
import copy
import logging
import time
import uuid
from collections.abc import Iterable, Mapping
from functools import partial
from typing import TYPE_CHECKING, Any

from pydantic import ValidationError

from pydatalayer._constants import LEGACY_OPTIONS_KEY, OPTIONS_KEY, VERSION_HEADER
from pydatalayer._natural import sort_features
from pydatalayer._schema import Impact, impacts_for
from pydatalayer._transport import ResponseInfo
from pydatalayer.exceptions import (
    ConflictError,
    LayerStateError,
    TransportError,
    UnknownGeometryError,
)
from pydatalayer.feature_index import FeatureIndex
from pydatalayer.models.feature import Feature, make_feature
from pydatalayer.models.options import LayerOptions
from pydatalayer.models.snapshot import (
    Conflict,
    Deleted,
    LayerVersion,
    Saved,
    SaveResult,
    Skipped,
    VersionedSnapshot,
)
from pydatalayer.permissions import DataLayerPermissions
from pydatalayer.remote import render_url
from pydatalayer.state import LayerLifecycle, LayerState, LifecycleEvent

if TYPE_CHECKING:
    from pydatalayer.collection import LayerCollection

_logger = logging.getLogger(__name__)

_CONFLICT_MESSAGE = (
    "Other contributor(s) changed some of the same map elements as you. "
    "Choose carefully which version is pertinent."
)
_DEFAULT_RENDERING = "Default"


def _split_options(payload: Mapping[str, Any]) -> dict[str, Any] | None:
    """Options blob of a layer payload, looked up under current and legacy keys."""
    options = payload.get(OPTIONS_KEY)
    if options is None:
        options = payload.get(LEGACY_OPTIONS_KEY)
    return dict(options) if isinstance(options, Mapping) else None


def _raw_features(geojson: Any) -> list[Any]:
    if isinstance(geojson, list):
        return list(geojson)
    if not isinstance(geojson, Mapping):
        return []
    if isinstance(geojson.get("features"), list):
        return list(geojson["features"])
    if isinstance(geojson.get("geometries"), list):
        return list(geojson["geometries"])
    if geojson.get("type"):
        return [geojson]
    return []


class DataLayer:
    """A collection of features with its options and sync state.

    Parameters
    ----------
    collection : LayerCollection
        Owner of the layer. The layer registers itself on creation.
    data : mapping or LayerOptions, optional
        Initial options (wire keys). A missing ``id`` is generated.
    reference_version : str, optional
        Server version token for layers that exist on the server. Can also
        be passed as ``_referenceVersion`` inside *data*.
    """

    def __init__(
        self,
        collection: LayerCollection,
        data: Mapping[str, Any] | LayerOptions | None = None,
        *,
        reference_version: str | None = None,
    ) -> None:
        raw = data.to_wire() if isinstance(data, LayerOptions) else dict(data or {})
        embedded_version = raw.pop("_referenceVersion", None)
        raw["id"] = raw.get("id") or str(uuid.uuid4())

        self._collection = collection
        self._config = collection.config
        self._reference_version: str | None = reference_version or embedded_version
        self.options = LayerOptions.model_validate(raw)
        self._options_backup = self.options.copy_deep()
        self._index = FeatureIndex(reserved_prefix=self._config.reserved_prefix)
        # Last feature collection known to be on the server.
        self._geojson: dict[str, Any] | None = None
        self._geojson_backup: dict[str, Any] | None = None
        self._rendering_type = self.options.type or _DEFAULT_RENDERING

        self._loaded = False
        self._data_loaded = False
        self._loading = False
        self._deleted = False
        self._visible = not self.persisted and self.options.display_on_load
        self._forced_visibility = False
        self._save_lock = asyncio.Lock()
        # Bumped on every conflict; only the latest Conflict.retry may resend.
        self._conflict_generation = 0
        # Edits newer than the last snapshot sent.
        self._unsent_edits = False
        self._erased_rank: int | None = None

        self._lifecycle = LayerLifecycle(
            LayerState.LOADED if self.persisted else LayerState.LOCAL,
            on_dirty_changed=partial(collection.on_dirty_changed, self),
        )
        self.permissions = DataLayerPermissions(self)
        collection.connect(self)
        if not self.persisted:
            collection.on_dirty_changed(self, True)

    def __repr__(self) -> str:
        return f"DataLayer(id={self.id!r}, name={self.options.name!r}, state={self.state})"

    # ------------------------------------------------------------------
    # Identity and flags
    # ------------------------------------------------------------------

    @property
    def id(self) -> str:
        return self.options.id or ""

    @property
    def name(self) -> str:
        return self.options.name or "Untitled layer"

    @property
    def collection(self) -> LayerCollection:
        return self._collection

    @property
    def reference_version(self) -> str | None:
        return self._reference_version

    @property
    def persisted(self) -> bool:
        """Whether the layer exists on the server."""
        return bool(self._reference_version)

    @property
    def state(self) -> LayerState:
        return self._lifecycle.state

    @property
    def dirty(self) -> bool:
        return self._lifecycle.dirty

    @property
    def deleted(self) -> bool:
        return self._deleted

    @property
    def loaded(self) -> bool:
        """Whether the layer metadata is known (always true for local layers)."""
        return not self.persisted or self._loaded

    @property
    def data_loaded(self) -> bool:
        return self._data_loaded or (not self.persisted and not self.is_remote)

    @property
    def visible(self) -> bool:
        return self._visible

    @property
    def forced_visibility(self) -> bool:
        return self._forced_visibility

    @property
    def is_remote(self) -> bool:
        return self.options.is_remote

    @property
    def is_read_only(self) -> bool:
        return self.options.is_read_only

    @property
    def is_data_read_only(self) -> bool:
        """Whether the layer refuses new features."""
        return self.is_read_only or self.is_remote

    @property
    def rendering_type(self) -> str:
        return self._rendering_type

    @property
    def rank(self) -> int:
        return self._collection.rank(self)

    @property
    def sort_key(self) -> str:
        return self.options.sort_key or self._collection.sort_key

    @property
    def is_browsable(self) -> bool:
        return self.options.browsable and self.options.is_browsable_type

    @property
    def can_browse(self) -> bool:
        return self.is_browsable and self.visible and self.has_data

    # ------------------------------------------------------------------
    # Features
    # ------------------------------------------------------------------

    @property
    def count(self) -> int:
        return len(self._index)

    @property
    def has_data(self) -> bool:
        return len(self._index) > 0

    @property
    def features(self) -> list[Feature]:
        return list(self._index)

    @property
    def properties(self) -> list[str]:
        return self._index.properties

    def get_feature_by_id(self, feature_id: str) -> Feature | None:
        return self._index.by_id(feature_id)

    def get_feature_by_index(self, position: int) -> Feature:
        return self._index.by_index(position)

    def distinct_values(self, name: str) -> list[Any]:
        return self._index.distinct_sorted_values(name, self._config.locale)

    def mark_dirty(self) -> None:
        if self.state in (LayerState.SAVING, LayerState.CONFLICTED):
            self._unsent_edits = True
        self._lifecycle.apply(LifecycleEvent.MARK_DIRTY, persisted=self.persisted)

    def add_feature(self, feature: Feature, *, sync: bool = True) -> None:
        """Attach *feature* to this layer.

        ``sync=False`` is used for features coming from the server or a
        remote source: they are not checked against read-only mode and do
        not make the layer dirty.
        """
        if sync and self.is_data_read_only:
            raise LayerStateError(f"Layer {self.name} does not accept new features")
        feature.connect(self)
        try:
            self._index.add(feature)
        except ValueError:
            feature.disconnect(self)
            raise
        if sync:
            self.mark_dirty()

    def remove_feature(self, feature: Feature, *, sync: bool = True) -> None:
        self._index.remove(feature)
        feature.disconnect(self)
        if sync:
            self.mark_dirty()

    def make_feature(self, data: Mapping[str, Any], *, sync: bool = True) -> Feature | None:
        """Build a feature from GeoJSON and add it.

        Unknown geometry types are reported to the user and skipped.
        """
        try:
            feature = make_feature(data)
        except UnknownGeometryError as exc:
            _logger.warning("Layer %s: %s", self.id, exc)
            self._collection.alert(str(exc), "error")
            return None
        except ValidationError as exc:
            _logger.warning("Layer %s: skipping invalid feature: %s", self.id, exc)
            self._collection.alert(f"Skipping invalid feature in {self.name}", "error")
            return None
        try:
            self.add_feature(feature, sync=sync)
        except ValueError:
            _logger.warning("Layer %s: skipping duplicate feature id %s", self.id, feature.id)
            return None
        return feature

    def make_features(self, geojson: Any, *, sync: bool = True) -> list[Feature]:
        """Materialize a FeatureCollection, GeometryCollection, feature or list."""
        raw = [item for item in _raw_features(geojson) if isinstance(item, Mapping)]
        ordered = sort_features(raw, self.sort_key, self._config.locale)
        created: list[Feature] = []
        for item in ordered:
            feature = self.make_feature(item, sync=sync)
            if feature is not None:
                created.append(feature)
        return created

    def from_geojson(self, geojson: Any, *, sync: bool = True) -> list[Feature]:
        """Add the features of *geojson* and flag the layer data as loaded."""
        created = self.make_features(geojson, sync=sync)
        if not sync:
            self._geojson = copy.deepcopy(geojson) if isinstance(geojson, dict) else None
        self._data_loaded = True
        self._data_changed()
        return created

    def clear(self) -> None:
        """Drop every feature, without marking the layer dirty."""
        for feature in self._index.clear():
            feature.disconnect(self)
        self._data_changed()

    def reindex(self) -> None:
        self._index.reindex(self.sort_key, self._config.locale)

    def _data_changed(self) -> None:
        if self.data_loaded:
            self._collection.on_layers_changed()

    def _backup_data(self) -> None:
        self._geojson_backup = copy.deepcopy(self._geojson)

    # ------------------------------------------------------------------
    # Options
    # ------------------------------------------------------------------

    def set_options(self, options: Mapping[str, Any] | LayerOptions) -> None:
        """Replace every option; the layer id is kept."""
        raw = options.to_wire() if isinstance(options, LayerOptions) else copy.deepcopy(dict(options))
        raw["id"] = self.id
        self.options = LayerOptions.model_validate(raw)

    def update_options(self, patch: Mapping[str, Any]) -> None:
        """Merge *patch* into the options; the layer id is kept."""
        patch = {key: value for key, value in patch.items() if key != "id"}
        self.options = self.options.merged(patch)

    async def edit_options(self, patch: Mapping[str, Any]) -> set[Impact]:
        """User edit of options: merge, mark dirty and apply side effects."""
        self.update_options(patch)
        self.mark_dirty()
        fields: list[str] = []
        for key, value in patch.items():
            if LayerOptions.wire_key(key) == "remoteData" and isinstance(value, Mapping):
                fields.extend(f"{key}.{sub}" for sub in value)
            else:
                fields.append(key)
        return await self.on_fields_changed(fields)

    def _backup_options(self) -> None:
        self._options_backup = self.options.copy_deep()

    def _reset_options(self) -> None:
        self.options = self._options_backup.copy_deep()

    def reset_rendering(self, *, force: bool = False) -> bool:
        """Switch the rendering type to the one in the options."""
        wanted = self.options.type or _DEFAULT_RENDERING
        if wanted == self._rendering_type and not force:
            return False
        _logger.debug("Layer %s rendering %s -> %s", self.id, self._rendering_type, wanted)
        self._rendering_type = wanted
        self._collection.redraw(self)
        return True

    async def on_fields_changed(self, fields: Iterable[str]) -> set[Impact]:
        """Apply what changing *fields* implies; return the impacts."""
        fields = list(fields)
        impacts = impacts_for(fields)
        if Impact.UI in impacts:
            self._collection.on_layers_changed()
        if Impact.DATA in impacts:
            if any(field.removeprefix("options.") == "type" for field in fields):
                self.reset_rendering()
            self.reindex()
            await self.redraw()
        if Impact.REMOTE_DATA in impacts:
            await self.fetch_remote_data(force=True)
        return impacts

    # ------------------------------------------------------------------
    # Loading
    # ------------------------------------------------------------------

    def _url(self, name: str, /, **params: Any) -> str:
        return self._config.url(name, map_id=self._collection.map_id, pk=self.id, **params)

    def _data_url(self) -> str:
        url = self._url("datalayer_view")
        if self._config.bust_cache:
            url = f"{url}?{int(time.time() * 1000)}"
        return url

    def _set_reference_version(self, response: ResponseInfo | None) -> None:
        version = response.header(VERSION_HEADER) if response is not None else None
        if version:
            self._reference_version = version
        else:
            _logger.debug("Layer %s: no %s header in response", self.id, VERSION_HEADER)

    async def fetch_data(self) -> None:
        """Load options and features from the server.

        Does nothing for layers never saved, or while another load runs.

        Raises
        ------
        TransportError
            If the request fails; the layer is left as it was.
        """
        if not self.persisted:
            return
        if self._loading:
            _logger.debug("Layer %s is already loading", self.id)
            return
        self._loading = True
        try:
            result = await self._collection.transport.get(self._data_url())
            if result.error is not None:
                _logger.error("Cannot load layer %s: %s", self.id, result.error)
                raise result.error
            if not isinstance(result.body, Mapping):
                raise TransportError(f"Unexpected payload for layer {self.id}", url=self._data_url())
            self._set_reference_version(result.response)
            geojson = dict(result.body)
            options = _split_options(geojson)
            if options is not None:
                # The server copy may lag behind on edit mode, the local one wins.
                options["editMode"] = str(self.options.edit_mode)
                geojson[OPTIONS_KEY] = options
                geojson.pop(LEGACY_OPTIONS_KEY, None)
            await self.from_layer_geojson(geojson)
        finally:
            self._loading = False

    async def from_layer_geojson(self, geojson: Mapping[str, Any]) -> None:
        """Load a layer payload: options under ``_layer_options`` plus features."""
        options = _split_options(geojson)
        if options is not None:
            self.set_options(options)
        self.clear()
        if self.is_remote:
            await self.fetch_remote_data()
        else:
            features = {key: value for key, value in geojson.items() if key not in (OPTIONS_KEY, LEGACY_OPTIONS_KEY)}
            self.from_geojson(features, sync=False)
            self._backup_data()
        self._loaded = True
        self._backup_options()
        self.reset_rendering()

    async def fetch_remote_data(self, *, force: bool = False) -> bool:
        """Refresh features from the remote source; return whether they changed."""
        collection = await self._collection.fetcher.fetch(self, force=force, context=self._collection.url_context)
        if collection is None:
            return False
        self.clear()
        self.from_geojson(collection, sync=False)
        return True

    # ------------------------------------------------------------------
    # Visibility
    # ------------------------------------------------------------------

    async def show(self) -> None:
        self._visible = True
        try:
            if not self.loaded:
                await self.fetch_data()
            else:
                await self.fetch_remote_data()
        except TransportError:
            self._visible = False
            raise
        self._collection.redraw(self)

    def hide(self) -> None:
        self._visible = False

    async def toggle(self) -> None:
        # From now on, visibility is driven by the user only.
        self._forced_visibility = True
        if self._visible:
            self.hide()
        else:
            await self.show()

    async def redraw(self) -> None:
        if not self._visible:
            return
        self.hide()
        await self.show()

    # ------------------------------------------------------------------
    # Snapshot and save
    # ------------------------------------------------------------------

    def features_to_geojson(self) -> list[dict[str, Any]]:
        return [feature.to_geojson() for feature in self._index]

    def snapshot(self) -> VersionedSnapshot:
        # Remote features are fetched again on load, never stored.
        features = [] if self.is_remote else self.features_to_geojson()
        return VersionedSnapshot(
            options=self.options.to_wire(),
            features=features,
            reference_version=self._reference_version,
        )

    def to_geojson(self) -> dict[str, Any]:
        return self.snapshot().to_geojson()

    def _save_url(self) -> str:
        return self._url("datalayer_update" if self.persisted else "datalayer_create")

    async def save(self) -> SaveResult:
        """Send the layer to the server.

        Returns
        -------
        SaveResult
            :class:`Saved`, :class:`Skipped`, :class:`Deleted` or
            :class:`Conflict` (whose ``retry`` overwrites the server copy).

        Raises
        ------
        TransportError
            On any failure other than a version conflict.
        """
        async with self._save_lock:
            if self._deleted:
                return await self._save_delete()
            if self.state == LayerState.REMOVED:
                return Skipped("layer removed")
            if self.persisted and not self.data_loaded:
                # Never overwrite server data this client has not read.
                return Skipped("layer data not loaded")
            snapshot = self.snapshot()
            return await self._try_save(self._save_url(), snapshot, snapshot.conditional_headers())

    async def _try_save(self, url: str, snapshot: VersionedSnapshot, headers: Mapping[str, str]) -> SaveResult:
        self._unsent_edits = False
        self._lifecycle.apply(LifecycleEvent.SAVE_STARTED, persisted=self.persisted)
        result = await self._collection.transport.post(
            url,
            headers=headers,
            data=snapshot.form_fields(rank=self.rank),
        )
        if result.error is None:
            self._apply_save_response(result.body, result.response, snapshot)
            self._lifecycle.apply(LifecycleEvent.SAVE_SUCCEEDED, persisted=self.persisted)
            _logger.info("Saved layer %s (version %s)", self.id, self._reference_version)
            return Saved(self._reference_version)

        if isinstance(result.error, ConflictError):
            self._lifecycle.apply(LifecycleEvent.SAVE_CONFLICTED, persisted=self.persisted)
            _logger.warning("Save conflict on layer %s (reference %s)", self.id, snapshot.reference_version)
            self._collection.alert(_CONFLICT_MESSAGE, "conflict")
            self._conflict_generation += 1
            return Conflict(result.error, retry=partial(self._retry_save, self._conflict_generation, snapshot))

        self._lifecycle.apply(LifecycleEvent.SAVE_FAILED, persisted=self.persisted)
        _logger.error("Cannot save layer %s: %s", self.id, result.error)
        self._collection.alert(f"Cannot save layer {self.name}: {result.error}", "error")
        raise result.error

    async def _retry_save(self, generation: int, snapshot: VersionedSnapshot) -> SaveResult:
        """Overwrite the server copy with *snapshot*, then save the rest of the map.

        Only the retry of the latest unresolved conflict sends anything. Edits
        made while conflicted are not in *snapshot*: the layer stays dirty and
        the map-wide save that follows sends them.
        """
        async with self._save_lock:
            if self._deleted:
                return await self._save_delete()
            if self.state != LayerState.CONFLICTED or generation != self._conflict_generation:
                _logger.debug("Layer %s: ignoring stale conflict retry", self.id)
                return Skipped("conflict already resolved")
            edited = self._unsent_edits
            result = await self._try_save(self._save_url(), snapshot, {})
            if isinstance(result, Saved) and edited:
                self.mark_dirty()
        if isinstance(result, Saved):
            # The conflict interrupted the map-wide save flow.
            await self._collection.save_all()
        return result

    def _apply_save_response(
        self,
        body: Any,
        response: ResponseInfo | None,
        snapshot: VersionedSnapshot,
    ) -> None:
        data = dict(body) if isinstance(body, Mapping) else {}
        # Only present when the server merged concurrent edits.
        geojson = data.pop("geojson", None)
        if geojson:
            self.clear()
            self.from_geojson(geojson, sync=False)
        else:
            self._geojson = snapshot.to_geojson()
        data.pop("id", None)
        data.pop("_referenceVersion", None)
        if data:
            self.update_options(data)
        self._set_reference_version(response)
        self._backup_options()
        self._backup_data()
        self._loaded = True
        self.reindex()
        self._collection.redraw(self)

    async def _save_delete(self) -> Deleted:
        requested = False
        error: TransportError | None = None
        if self.persisted:
            requested = True
            result = await self._collection.transport.post(self._url("datalayer_delete"))
            if result.error is not None:
                error = result.error
                _logger.warning("Delete request failed for layer %s: %s", self.id, error)
                self._collection.alert(f"Cannot delete layer {self.name}: {error}", "error")
        self._lifecycle.apply(LifecycleEvent.REMOVE, persisted=self.persisted)
        self._collection.disconnect(self)
        return Deleted(requested, error)

    # ------------------------------------------------------------------
    # Lifecycle operations
    # ------------------------------------------------------------------

    def delete(self) -> None:
        """Mark the layer for deletion; the next save removes it."""
        self._lifecycle.apply(LifecycleEvent.DELETE_REQUESTED, persisted=self.persisted)
        self._deleted = True
        self.erase()

    def erase(self) -> None:
        """Take the layer off the map, keeping it known to its owner."""
        self.hide()
        if self.rank >= 0:
            self._erased_rank = self.rank
        self._collection.drop_from_order(self)
        self._collection.on_layers_changed()
        self.clear()
        self._loaded = False
        self._data_loaded = False

    async def reset(self) -> None:
        """Discard unsaved changes.

        A layer never saved is removed altogether. Others get their last
        saved options and features back.
        """
        if not self.persisted:
            self.erase()
            self._lifecycle.apply(LifecycleEvent.RESET, persisted=False)
            self._collection.disconnect(self)
            return

        was_visible = self._visible or self._deleted
        self._lifecycle.apply(LifecycleEvent.RESET, persisted=True)
        self._deleted = False
        self._reset_options()
        self._collection.connect(self, position=self._erased_rank)
        self._erased_rank = None
        self.clear()
        self.hide()
        if not self.is_remote and self._geojson_backup is not None:
            self.from_geojson(copy.deepcopy(self._geojson_backup), sync=False)
        self._loaded = True
        self.reset_rendering()
        if was_visible:
            self._visible = True
            await self.fetch_remote_data(force=True)
            self._collection.redraw(self)
        self._collection.on_layers_changed()

    def empty(self) -> None:
        """Remove every feature as a user edit."""
        if self.is_remote:
            raise LayerStateError(f"Cannot empty remote layer {self.name}")
        self.clear()
        self.mark_dirty()

    def clone(self) -> DataLayer:
        """Copy this layer as a new local layer of the same owner."""
        options = self.options.to_wire()
        options["name"] = f"Clone of {self.name}"
        options.pop("id", None)
        clone = self._collection.create_layer(options)
        if not clone.is_remote:
            features = []
            for feature in self.features_to_geojson():
                feature.pop("id", None)
                features.append(feature)
            clone.from_geojson({"type": "FeatureCollection", "features": features}, sync=False)
        return clone

    # ------------------------------------------------------------------
    # Versions and imports
    # ------------------------------------------------------------------

    async def list_versions(self) -> list[LayerVersion]:
        """Versions of this layer stored on the server, as listed by it."""
        result = await self._collection.transport.get(self._url("datalayer_versions"))
        if result.error is not None:
            raise result.error
        body = result.body if isinstance(result.body, Mapping) else {}
        return [LayerVersion.model_validate(item) for item in body.get("versions") or []]

    async def restore(self, version: str | LayerVersion) -> None:
        """Replace options and features by a stored version, as a user edit."""
        name = version.name if isinstance(version, LayerVersion) else version
        result = await self._collection.transport.get(self._url("datalayer_version", name=name))
        if result.error is not None:
            raise result.error
        if not isinstance(result.body, Mapping):
            raise TransportError(f"Unexpected payload for version {name}")
        options = _split_options(result.body)
        if options is not None:
            self.set_options(options)
        self.clear()
        if self.is_remote:
            await self.fetch_remote_data(force=True)
        else:
            self.from_geojson(
                {key: value for key, value in result.body.items() if key not in (OPTIONS_KEY, LEGACY_OPTIONS_KEY)},
                sync=False,
            )
        self.mark_dirty()
        self.reset_rendering()

    async def import_raw(self, raw: str, format_name: str) -> list[Feature]:
        """Parse *raw* and add its features as user edits.

        Raises
        ------
        LayerStateError
            If the layer does not accept new features.
        ParseError
            If *raw* cannot be parsed.
        """
        if self.is_data_read_only:
            raise LayerStateError(f"Layer {self.name} does not accept new features")
        geojson = await self._collection.parser.parse(raw, format_name)
        features = self.make_features(geojson, sync=True)
        self.mark_dirty()
        return features

    async def import_from_url(self, url: str, format_name: str) -> list[Feature]:
        rendered = render_url(url, self._collection.url_context)
        result = await self._collection.transport.get_text(rendered)
        if result.error is not None:
            raise result.error
        return await self.import_raw(result.body or "", format_name)

    # ------------------------------------------------------------------
    # Browsing
    # ------------------------------------------------------------------

    def next_feature(self, feature: Feature) -> Feature | None:
        """Feature after *feature*, continuing on the next browsable layer."""
        following = self._index.next_after(feature)
        if following is not None:
            return following
        layer = self._collection.next_browsable(self)
        return layer._index.first if layer is not None else None

    def previous_feature(self, feature: Feature) -> Feature | None:
        preceding = self._index.previous_before(feature)
        if preceding is not None:
            return preceding
        layer = self._collection.previous_browsable(self)
        return layer._index.last if layer is not None else None
