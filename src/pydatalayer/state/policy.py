"""Deterministic lifecycle transition table.

This module contains *no* side effects: it only answers "from this state,
where does this event lead". Callbacks and bookkeeping live in
:mod:`pydatalayer.state.machine`.
"""

from __future__ import annotations

from pydatalayer.exceptions import LayerStateError
from pydatalayer.state.events import LayerState, LifecycleEvent

# RESET is resolved at call time (it depends on whether the layer exists on
# the server) and therefore maps to None here.
_S = LayerState
_E = LifecycleEvent

_EDITABLE: dict[LifecycleEvent, LayerState | None] = {
    _E.SAVE_STARTED: _S.SAVING,
    _E.DELETE_REQUESTED: _S.PENDING_DELETE,
    _E.RESET: None,
    _E.REMOVE: _S.REMOVED,
}

TRANSITIONS: dict[LayerState, dict[LifecycleEvent, LayerState | None]] = {
    _S.LOCAL: {_E.MARK_DIRTY: _S.LOCAL, **_EDITABLE},
    _S.LOADED: {_E.MARK_DIRTY: _S.DIRTY, **_EDITABLE},
    _S.DIRTY: {_E.MARK_DIRTY: _S.DIRTY, **_EDITABLE},
    _S.SAVING: {
        _E.MARK_DIRTY: _S.SAVING,
        _E.SAVE_SUCCEEDED: _S.LOADED,
        _E.SAVE_CONFLICTED: _S.CONFLICTED,
        _E.SAVE_FAILED: _S.DIRTY,
        _E.DELETE_REQUESTED: _S.PENDING_DELETE,
        _E.REMOVE: _S.REMOVED,
    },
    _S.CONFLICTED: {_E.MARK_DIRTY: _S.CONFLICTED, **_EDITABLE},
    _S.PENDING_DELETE: {
        _E.MARK_DIRTY: _S.PENDING_DELETE,
        _E.SAVE_STARTED: _S.PENDING_DELETE,
        _E.SAVE_SUCCEEDED: _S.PENDING_DELETE,
        _E.SAVE_CONFLICTED: _S.PENDING_DELETE,
        _E.SAVE_FAILED: _S.PENDING_DELETE,
        _E.DELETE_REQUESTED: _S.PENDING_DELETE,
        _E.RESET: None,
        _E.REMOVE: _S.REMOVED,
    },
    _S.REMOVED: {},
}

#: States in which the layer holds changes the server has not acknowledged.
DIRTY_STATES: frozenset[LayerState] = frozenset(
    {_S.LOCAL, _S.DIRTY, _S.SAVING, _S.CONFLICTED, _S.PENDING_DELETE}
)


def next_state(state: LayerState, event: LifecycleEvent, *, persisted: bool) -> LayerState:
    """Return the state *event* leads to from *state*.

    Raises
    ------
    LayerStateError
        If the table has no entry for this pair.
    """
    outgoing = TRANSITIONS.get(state, {})
    if event not in outgoing:
        raise LayerStateError(f"Cannot apply {event} to a layer in state {state}")
    target = outgoing[event]
    if target is None:
        return _S.LOADED if persisted else _S.REMOVED
    return target


def is_dirty(state: LayerState) -> bool:
    return state in DIRTY_STATES
