"""pydatalayer - Async client for collaboratively edited map layers."""

from importlib.metadata import PackageNotFoundError, version

try:
    __version__ = version("pydatalayer")
except PackageNotFoundError:
    __version__ = "0+local"
from pydatalayer.client import DataLayerClient
from pydatalayer.collection import LayerCollection, SaveReport, SyncCoordinator
from pydatalayer.config import LayerUrls, SyncConfig
from pydatalayer.datalayer import DataLayer
from pydatalayer.exceptions import (
    ConflictError,
    DataLayerConfigError,
    DataLayerError,
    FeatureIndexError,
    FormatError,
    LayerStateError,
    ParseError,
    TransportError,
    UnknownGeometryError,
)
from pydatalayer.feature_index import FeatureIndex
from pydatalayer.formats import FormatParser, FormatRegistry
from pydatalayer.models import (
    Conflict,
    Deleted,
    EditMode,
    Feature,
    LayerOptions,
    LayerVersion,
    RemoteData,
    Saved,
    SaveResult,
    Skipped,
    VersionedSnapshot,
)
from pydatalayer.permissions import DataLayerPermissions
from pydatalayer.remote import RemoteDataFetcher
from pydatalayer.state import LayerState, LifecycleEvent

__all__ = [
    "__version__",
    "Conflict",
    "ConflictError",
    "DataLayer",
    "DataLayerPermissions",
    "DataLayerClient",
    "DataLayerConfigError",
    "DataLayerError",
    "Deleted",
    "EditMode",
    "Feature",
    "FeatureIndex",
    "FeatureIndexError",
    "FormatError",
    "FormatParser",
    "FormatRegistry",
    "LayerCollection",
    "LayerOptions",
    "LayerState",
    "LayerStateError",
    "LayerUrls",
    "LayerVersion",
    "LifecycleEvent",
    "ParseError",
    "RemoteData",
    "RemoteDataFetcher",
    "SaveReport",
    "SaveResult",
    "Saved",
    "Skipped",
    "SyncConfig",
    "SyncCoordinator",
    "TransportError",
    "UnknownGeometryError",
    "VersionedSnapshot",
]
