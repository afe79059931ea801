"""Custom exception hierarchy for pydatalayer."""

from __future__ import annotations


class DataLayerError(Exception):
    """Base exception for all pydatalayer errors."""


class DataLayerConfigError(DataLayerError):
    """Invalid or missing configuration."""


class TransportError(DataLayerError):
    """HTTP-level failure (network, non-2xx status, invalid JSON)."""

    def __init__(
        self,
        message: str,
        *,
        status_code: int | None = None,
        url: str = "",
    ) -> None:
        self.status_code = status_code
        self.url = url
        super().__init__(message)


class ConflictError(TransportError):
    """The server rejected a conditional save (HTTP 412).

    The layer changed on the server since this client last read it.
    Recoverable through a user-confirmed retry without the reference token.
    """


class ParseError(DataLayerError):
    """A payload could not be parsed into a feature collection."""

    def __init__(self, message: str, *, format_name: str = "") -> None:
        self.format_name = format_name
        super().__init__(message)


class FormatError(ParseError):
    """No parser is registered for the requested format name."""


class UnknownGeometryError(DataLayerError):
    """A single feature carries a geometry type we cannot materialize."""

    def __init__(self, message: str, *, geometry_type: str | None = None) -> None:
        self.geometry_type = geometry_type
        super().__init__(message)


class FeatureIndexError(DataLayerError, IndexError):
    """Out-of-range positional access on a feature index."""


class LayerStateError(DataLayerError):
    """Operation not allowed in the layer's current lifecycle state."""
