"""What a change to each layer option affects.

When options are edited, the layer only needs to do the work matching
the fields that changed: refresh the layer list, redraw its features or
refetch its remote data.
"""

from __future__ import annotations

from collections.abc import Iterable
from enum import StrEnum


class Impact(StrEnum):
    UI = "ui"
    DATA = "data"
    REMOTE_DATA = "remote-data"


_UI = frozenset({Impact.UI})
_DATA = frozenset({Impact.DATA})
_UI_DATA = frozenset({Impact.UI, Impact.DATA})
_REMOTE = frozenset({Impact.REMOTE_DATA})

FIELD_IMPACTS: dict[str, frozenset[Impact]] = {
    "name": _UI,
    "description": _UI,
    "displayOnLoad": _UI,
    "inCaption": _UI,
    "browsable": _UI,
    "editMode": _UI,
    "permissions": _UI,
    "labelKey": _DATA,
    "sortKey": _DATA,
    "type": _UI_DATA,
    "fromZoom": _DATA,
    "toZoom": _DATA,
    "zoomTo": _UI,
    "color": _DATA,
    "opacity": _DATA,
    "weight": _DATA,
    "stroke": _DATA,
    "fill": _DATA,
    "fillColor": _DATA,
    "fillOpacity": _DATA,
    "dashArray": _DATA,
    "smoothFactor": _DATA,
    "iconClass": _DATA,
    "iconUrl": _DATA,
    "showLabel": _DATA,
    "popupShape": _UI,
    "popupTemplate": _UI,
    "remoteData.url": _REMOTE,
    "remoteData.format": _REMOTE,
    "remoteData.dynamic": _REMOTE,
    "remoteData.proxy": _REMOTE,
    "remoteData.ttl": _REMOTE,
    "remoteData.licence": _UI,
    "remoteData": _REMOTE,
}


def _camel(segment: str) -> str:
    head, *rest = segment.split("_")
    return head + "".join(part[:1].upper() + part[1:] for part in rest)


def impacts_for(fields: Iterable[str]) -> set[Impact]:
    """Union of impacts of *fields*.

    Names may be snake_case or camelCase and carry an ``options.`` prefix.
    Fields not listed default to :attr:`Impact.DATA`.
    """
    impacts: set[Impact] = set()
    for field in fields:
        name = ".".join(_camel(part) for part in field.removeprefix("options.").split("."))
        impacts |= FIELD_IMPACTS.get(name, _DATA)
    return impacts
