"""Per-layer permissions stored on the server apart from the layer itself."""

from __future__ import annotations

import logging
from typing import TYPE_CHECKING, Any

if TYPE_CHECKING:
    from pydatalayer.datalayer import DataLayer

_logger = logging.getLogger(__name__)


class DataLayerPermissions:
    """Edit status of one layer, saved through its own endpoint.

    Changing it does not make the layer dirty: it has its own flag and is
    sent by :meth:`save`, after which :meth:`commit` copies it into the
    layer's ``permissions`` option.
    """

    def __init__(self, datalayer: DataLayer) -> None:
        self._datalayer = datalayer
        self.properties: dict[str, Any] = {"edit_status": None, **datalayer.options.permissions}
        self._dirty = False

    @property
    def dirty(self) -> bool:
        return self._dirty

    @property
    def edit_status(self) -> int | None:
        return self.properties.get("edit_status")

    @edit_status.setter
    def edit_status(self, value: int | None) -> None:
        if value == self.properties.get("edit_status"):
            return
        self.properties["edit_status"] = value
        self._dirty = True

    def url(self) -> str:
        layer = self._datalayer
        return layer.collection.config.url("datalayer_permissions", map_id=layer.collection.map_id, pk=layer.id)

    async def save(self) -> bool:
        """Send the edit status; return whether a request was made.

        Raises
        ------
        TransportError
            If the server refuses the change. The flag stays dirty.
        """
        if not self._dirty:
            return False
        result = await self._datalayer.collection.transport.post(
            self.url(),
            headers={},
            data={"edit_status": self.properties.get("edit_status")},
        )
        if result.error is not None:
            _logger.error("Cannot save permissions of layer %s: %s", self._datalayer.id, result.error)
            raise result.error
        self.commit()
        return True

    def commit(self) -> None:
        """Merge the saved properties into the layer options."""
        merged = {**self._datalayer.options.permissions, **self.properties}
        self._datalayer.update_options({"permissions": merged})
        self._dirty = False
