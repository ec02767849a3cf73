"""namedstate: a named-state registry with change notification for game logic."""

from importlib.metadata import version as _version

__version__ = _version("namedstate")

from namedstate.store import StateStore, values_equal
from namedstate.watchers import WatcherRegistry
from namedstate.dispatch import ChangeDispatcher, WatcherError, spawn_inline, spawn_thread
from namedstate.deferred import DeferredWriteQueue
from namedstate.registry import StateRegistry
from namedstate.stream import EventStream
from namedstate.clock import FrameClock
# textual NOT auto-imported: opt-in only

__all__ = [
    "StateRegistry",
    "StateStore",
    "WatcherRegistry",
    "ChangeDispatcher",
    "DeferredWriteQueue",
    "WatcherError",
    "spawn_inline",
    "spawn_thread",
    "values_equal",
    "EventStream",
    "FrameClock",
]
