"""Layer lifecycle.

This package is the single place deciding how a layer moves between its
local, saved, dirty and deleted states. The layer reports events; the
table in :mod:`pydatalayer.state.policy` decides where they lead.
"""

from pydatalayer.state.events import LayerState, LifecycleEvent
from pydatalayer.state.machine import LayerLifecycle
from pydatalayer.state.policy import DIRTY_STATES, next_state

__all__ = ["DIRTY_STATES", "LayerLifecycle", "LayerState", "LifecycleEvent", "next_state"]
