"""Per-layer lifecycle holder."""

from __future__ import annotations

import logging
from collections.abc import Callable

from pydatalayer.state.events import LayerState, LifecycleEvent
from pydatalayer.state.policy import is_dirty, next_state

_logger = logging.getLogger(__name__)


class LayerLifecycle:
    """Current lifecycle state of one layer.

    Parameters
    ----------
    initial : LayerState
        ``LOCAL`` for layers created on this client, ``LOADED`` for layers
        that exist on the server.
    on_dirty_changed : callable, optional
        Called with the new dirty flag each time it flips.
    """

    def __init__(
        self,
        initial: LayerState = LayerState.LOCAL,
        *,
        on_dirty_changed: Callable[[bool], None] | None = None,
    ) -> None:
        self._state = initial
        self._on_dirty_changed = on_dirty_changed
        self._changed_while_saving = False

    @property
    def state(self) -> LayerState:
        return self._state

    @property
    def dirty(self) -> bool:
        return is_dirty(self._state)

    def apply(self, event: LifecycleEvent, *, persisted: bool) -> LayerState:
        """Move to the state *event* leads to and report dirty flips."""
        previous = self._state
        target = next_state(previous, event, persisted=persisted)

        if event == LifecycleEvent.SAVE_STARTED:
            self._changed_while_saving = False
        elif event == LifecycleEvent.MARK_DIRTY and previous == LayerState.SAVING:
            self._changed_while_saving = True
        elif event == LifecycleEvent.SAVE_SUCCEEDED and previous == LayerState.SAVING and self._changed_while_saving:
            # Edits made during the request are not part of the saved snapshot.
            target = LayerState.DIRTY
            self._changed_while_saving = False

        self._state = target
        if previous != target:
            _logger.debug("Layer lifecycle %s -> %s on %s", previous, target, event)
        was_dirty = is_dirty(previous)
        if was_dirty != is_dirty(target) and self._on_dirty_changed is not None:
            self._on_dirty_changed(is_dirty(target))
        return target
