"""Lifecycle states and the events moving a layer between them."""

from __future__ import annotations

from enum import StrEnum


class LayerState(StrEnum):
    LOCAL = "local"
    LOADED = "loaded"
    DIRTY = "dirty"
    SAVING = "saving"
    CONFLICTED = "conflicted"
    PENDING_DELETE = "pending_delete"
    REMOVED = "removed"


class LifecycleEvent(StrEnum):
    MARK_DIRTY = "mark_dirty"
    SAVE_STARTED = "save_started"
    SAVE_SUCCEEDED = "save_succeeded"
    SAVE_CONFLICTED = "save_conflicted"
    SAVE_FAILED = "save_failed"
    DELETE_REQUESTED = "delete_requested"
    RESET = "reset"
    REMOVE = "remove"
