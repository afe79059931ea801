"""Raw payload parsers turning text into GeoJSON feature collections."""

from __future__ import annotations

import csv
import io
import json
import logging
from collections.abc import Callable
from typing import Any, Protocol

from pydatalayer.exceptions import FormatError, ParseError

_logger = logging.getLogger(__name__)

ParserFunc = Callable[[str], dict[str, Any]]

_LAT_COLUMNS: frozenset[str] = frozenset({"lat", "latitude", "y"})
_LON_COLUMNS: frozenset[str] = frozenset({"lon", "lng", "long", "longitude", "x"})


class FormatParser(Protocol):
    """Structural parser interface consumed by layers and the remote fetcher."""

    async def parse(self, raw: str, format_name: str) -> dict[str, Any]:
        ...


def _as_collection(data: Any) -> dict[str, Any]:
    if isinstance(data, list):
        return {"type": "FeatureCollection", "features": data}
    if isinstance(data, dict):
        return data
    raise ParseError(f"Expected a GeoJSON object, got {type(data).__name__}", format_name="geojson")


def parse_geojson(raw: str) -> dict[str, Any]:
    try:
        data = json.loads(raw)
    except json.JSONDecodeError as exc:
        raise ParseError(f"Invalid GeoJSON: {exc}", format_name="geojson") from exc
    return _as_collection(data)


def _coordinate(value: str | None) -> float | None:
    if value is None:
        return None
    try:
        return float(value.strip().replace(",", "."))
    except ValueError:
        return None


def _find_column(fieldnames: list[str], candidates: frozenset[str]) -> str | None:
    for name in fieldnames:
        if name.strip().lower() in candidates:
            return name
    return None


def parse_csv(raw: str) -> dict[str, Any]:
    """Parse delimited text with latitude/longitude columns into points.

    The delimiter is sniffed from the first lines. Rows without valid
    coordinates are dropped.
    """
    text = raw.lstrip("\ufeff")
    if not text.strip():
        return {"type": "FeatureCollection", "features": []}
    try:
        dialect: Any = csv.Sniffer().sniff(text[:4096], delimiters=",;\t|")
    except csv.Error:
        dialect = csv.excel
    reader = csv.DictReader(io.StringIO(text), dialect=dialect)
    fieldnames = list(reader.fieldnames or [])
    lat_column = _find_column(fieldnames, _LAT_COLUMNS)
    lon_column = _find_column(fieldnames, _LON_COLUMNS)
    if lat_column is None or lon_column is None:
        raise ParseError(f"No latitude/longitude columns in {fieldnames}", format_name="csv")

    features: list[dict[str, Any]] = []
    skipped = 0
    for row in reader:
        lat = _coordinate(row.get(lat_column))
        lon = _coordinate(row.get(lon_column))
        if lat is None or lon is None:
            skipped += 1
            continue
        properties = {
            key: value
            for key, value in row.items()
            if key is not None and key not in (lat_column, lon_column)
        }
        features.append(
            {
                "type": "Feature",
                "geometry": {"type": "Point", "coordinates": [lon, lat]},
                "properties": properties,
            }
        )
    if skipped:
        _logger.warning("Skipped %d csv rows without valid coordinates", skipped)
    return {"type": "FeatureCollection", "features": features}


class FormatRegistry:
    """Name → parser registry; ships ``geojson`` and ``csv``."""

    def __init__(self) -> None:
        self._parsers: dict[str, ParserFunc] = {
            "geojson": parse_geojson,
            "json": parse_geojson,
            "csv": parse_csv,
        }

    @property
    def formats(self) -> list[str]:
        return sorted(self._parsers)

    def register(self, format_name: str, parser: ParserFunc) -> None:
        self._parsers[format_name.lower()] = parser

    async def parse(self, raw: str, format_name: str) -> dict[str, Any]:
        """Parse *raw* with the parser registered as *format_name*.

        Raises
        ------
        FormatError
            If no parser is registered for *format_name*.
        ParseError
            If the payload is malformed.
        """
        parser = self._parsers.get((format_name or "").lower())
        if parser is None:
            raise FormatError(f"Unknown format: {format_name}", format_name=format_name)
        try:
            return parser(raw)
        except ParseError:
            raise
        except (ValueError, TypeError, csv.Error) as exc:
            raise ParseError(f"Cannot parse {format_name} data: {exc}", format_name=format_name) from exc
