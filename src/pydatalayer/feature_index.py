"""Ordered, id-keyed feature store with a derived property-name index."""

from __future__ import annotations

import bisect
import logging
from collections.abc import Iterator
from typing import Any

from pydatalayer._constants import RESERVED_PREFIX
from pydatalayer._natural import natural_sorted, sort_features
from pydatalayer.exceptions import FeatureIndexError
from pydatalayer.models.feature import Feature

_logger = logging.getLogger(__name__)

_INDEXABLE_TYPES = (str, int, float, bool)


class FeatureIndex:
    """Features of one layer, kept in display order.

    The id map and the order sequence always hold the same ids. Property
    names are indexed as features come in so filter and table views can
    list the columns without scanning every feature; the name index only
    grows until :meth:`deindex` or :meth:`clear`.
    """

    def __init__(self, *, reserved_prefix: str = RESERVED_PREFIX) -> None:
        self._reserved_prefix = reserved_prefix
        self._by_id: dict[str, Feature] = {}
        self._order: list[str] = []
        self._properties: list[str] = []

    def __len__(self) -> int:
        return len(self._order)

    def __iter__(self) -> Iterator[Feature]:
        return (self._by_id[feature_id] for feature_id in list(self._order))

    def __contains__(self, item: object) -> bool:
        if isinstance(item, Feature):
            return self._by_id.get(item.id) is item
        return item in self._by_id

    @property
    def ids(self) -> list[str]:
        return list(self._order)

    @property
    def properties(self) -> list[str]:
        """Indexed property names, sorted."""
        return list(self._properties)

    def add(self, feature: Feature) -> None:
        if feature.id in self._by_id:
            raise ValueError(f"Feature {feature.id} is already indexed")
        self._by_id[feature.id] = feature
        self._order.append(feature.id)
        self.index_properties(feature)

    def remove(self, feature: Feature) -> None:
        if feature.id not in self._by_id:
            raise KeyError(feature.id)
        del self._by_id[feature.id]
        self._order.remove(feature.id)

    def clear(self) -> list[Feature]:
        """Drop every feature and the property index; return what was removed."""
        removed = list(self)
        self._by_id.clear()
        self._order.clear()
        self._properties.clear()
        return removed

    def by_index(self, position: int) -> Feature:
        try:
            return self._by_id[self._order[position]]
        except IndexError as exc:
            raise FeatureIndexError(f"No feature at position {position} (size {len(self._order)})") from exc

    def by_id(self, feature_id: str) -> Feature | None:
        return self._by_id.get(feature_id)

    def position(self, feature: Feature) -> int:
        return self._order.index(feature.id)

    def reindex(self, sort_key: str | None, locale_name: str | None = None) -> None:
        """Reorder the features by *sort_key* (stable)."""
        ordered = sort_features(list(self), sort_key, locale_name)
        self._order = [feature.id for feature in ordered]

    # ------------------------------------------------------------------
    # Property names
    # ------------------------------------------------------------------

    def index_properties(self, feature: Feature) -> None:
        for name, value in feature.properties.items():
            if isinstance(value, _INDEXABLE_TYPES):
                self.index_property(name)

    def index_property(self, name: str) -> None:
        if not name or name.startswith(self._reserved_prefix):
            return
        position = bisect.bisect_left(self._properties, name)
        if position < len(self._properties) and self._properties[position] == name:
            return
        self._properties.insert(position, name)

    def deindex(self, name: str) -> None:
        try:
            self._properties.remove(name)
        except ValueError:
            _logger.debug("Property %s was not indexed", name)

    def distinct_sorted_values(self, name: str, locale_name: str | None = None) -> list[Any]:
        """Distinct values of property *name*, naturally sorted."""
        seen: dict[Any, None] = {}
        for feature in self:
            value = feature.properties.get(name)
            if value is None or not isinstance(value, _INDEXABLE_TYPES):
                continue
            seen.setdefault(value, None)
        return natural_sorted(seen, locale_name)

    # ------------------------------------------------------------------
    # Navigation
    # ------------------------------------------------------------------

    def next_after(self, feature: Feature) -> Feature | None:
        position = self.position(feature)
        if position + 1 >= len(self._order):
            return None
        return self._by_id[self._order[position + 1]]

    def previous_before(self, feature: Feature) -> Feature | None:
        position = self.position(feature)
        if position == 0:
            return None
        return self._by_id[self._order[position - 1]]

    @property
    def first(self) -> Feature | None:
        return self._by_id[self._order[0]] if self._order else None

    @property
    def last(self) -> Feature | None:
        return self._by_id[self._order[-1]] if self._order else None
