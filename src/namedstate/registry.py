"""StateRegistry — the public face of a named-state registry.

Owns one StateStore, WatcherRegistry, ChangeDispatcher and
DeferredWriteQueue. Registries are independent; create as many as you
like (one per game session, one per test).

Problems (duplicate names, missing states, locked writes) are reported
as warnings on the namedstate.* loggers and the call is abandoned.
Nothing is raised to the caller.

Thread model: one owner thread mutates the registry. Call
set_scheduler() once from that thread:
    registry.set_scheduler(app.call_from_thread)

After that, writes from any other thread (watcher tasks, clock threads)
are handed to the scheduler. Owner-thread writes remain synchronous.

Watcher subscriptions are not marshaled: WatcherRegistry is guarded by
its own lock, so subscribe, unsubscribe, next_change and wait_for_change
run directly on the calling thread and can return their disposer or
future right away.
"""

from __future__ import annotations

import functools
import threading
from concurrent.futures import Future
from typing import Callable, ParamSpec, TypeVar

from namedstate import wait
from namedstate.deferred import DeferredWriteQueue
from namedstate.dispatch import ChangeDispatcher, Spawner, WatcherError, spawn_thread
from namedstate.store import StateStore
from namedstate.stream import Disposer, EventStream
from namedstate.watchers import WatcherCallback, WatcherRegistry

P = ParamSpec("P")
R = TypeVar("R")


def _owner_thread(fn: Callable[P, R]) -> Callable[P, R | None]:
    """Decorator: run fn via the scheduler when called off the owner thread."""

    @functools.wraps(fn)
    def wrapper(self: StateRegistry, *args, **kwargs):
        if self._scheduler is not None and threading.current_thread() != self._scheduler_thread:
            self._scheduler(lambda: fn(self, *args, **kwargs))
            return None
        return fn(self, *args, **kwargs)

    return wrapper


class StateRegistry:
    """Named state slots with change notification.

    Usage:
        registry = StateRegistry()
        registry.create("hp", 100)
        registry.subscribe("hp", lambda new, old: print(old, "->", new))
        registry.change("hp", 90)          # watcher scheduled: 100 -> 90

        registry.change_queued("hp", 80)
        registry.change_queued("hp", 70)
        registry.flush()                   # one dispatch: 90 -> 70
    """

    def __init__(
        self,
        *,
        spawn: Spawner = spawn_thread,
        tick: EventStream | None = None,
        scheduler: Callable[[Callable[[], None]], object] | None = None,
    ) -> None:
        self._store = StateStore()
        self._watchers = WatcherRegistry(self._store)
        self._dispatcher = ChangeDispatcher(self._watchers, spawn)
        self._queue = DeferredWriteQueue(self._store, self._dispatcher)
        self._scheduler = None
        self._scheduler_thread = None
        if scheduler is not None:
            self.set_scheduler(scheduler)
        self._tick_disposer: Disposer | None = None
        if tick is not None:
            self._tick_disposer = tick.subscribe(lambda _frame: self.flush())

    def set_scheduler(self, scheduler: Callable[[Callable[[], None]], object]) -> None:
        """Marshal off-thread writes through scheduler.

        The calling thread becomes the owner thread.
        """
        self._scheduler = scheduler
        self._scheduler_thread = threading.current_thread()

    @property
    def errors(self) -> EventStream[WatcherError]:
        """Failed watcher callbacks, one WatcherError each."""
        return self._dispatcher.errors

    # --- State lifecycle ---

    @_owner_thread
    def create(self, name: str, value: object = None) -> None:
        self._store.create(name, value)

    def create_many(self, schema: dict[str, object]) -> None:
        """Create every state in schema. Existing names are reported and kept."""
        for name, value in schema.items():
            self.create(name, value)

    @_owner_thread
    def delete(self, name: str) -> None:
        """Remove a state, along with its watchers and any queued write."""
        if self._store.delete(name):
            self._watchers.discard(name)
            self._queue.discard(name)

    @_owner_thread
    def lock(self, name: str) -> None:
        self._store.lock(name)

    @_owner_thread
    def unlock(self, name: str) -> None:
        self._store.unlock(name)

    def is_locked(self, name: str) -> bool:
        return self._store.is_locked(name)

    # --- Reads and writes ---

    def get(self, name: str, default: object = None) -> object:
        return self._store.get(name, default)

    @_owner_thread
    def change(self, name: str, value: object) -> None:
        """Write value now and schedule watchers with (value, old)."""
        if not self._store.accepts(name, value):
            return
        old = self._store.get(name)
        self._store.set_raw(name, value)
        self._dispatcher.dispatch(name, value, old)

    @_owner_thread
    def change_queued(self, name: str, value: object) -> None:
        """Write value on the next flush(), coalesced with other queued writes."""
        self._queue.enqueue(name, value)

    @_owner_thread
    def flush(self) -> None:
        self._queue.flush()

    def pending_count(self) -> int:
        """Number of states with a queued write. Useful for testing."""
        return len(self._queue)

    # --- Watching ---

    def subscribe(self, name: str, callback: WatcherCallback) -> Disposer:
        """Call callback(new, old) on every change of name.

        Returns a function that unsubscribes callback.
        """
        return self._subscribe(name, callback, once=False)

    def subscribe_once(self, name: str, callback: WatcherCallback) -> Disposer:
        """Call callback(new, old) on the next change of name only."""
        return self._subscribe(name, callback, once=True)

    def _subscribe(self, name: str, callback: WatcherCallback, once: bool) -> Disposer:
        if not self._watchers.subscribe(name, callback, once):
            return lambda: None
        return lambda: self._watchers.unsubscribe(name, callback)

    def unsubscribe(self, name: str, callback: WatcherCallback | None = None) -> None:
        """Remove callback from name; callback=None removes every watcher."""
        self._watchers.unsubscribe(name, callback)

    def watcher_count(self, name: str) -> int:
        return self._watchers.count(name)

    def next_change(self, name: str) -> Future:
        """Future resolved with (new, old) on the next change of name."""
        return wait.next_change(self._watchers, name)

    def wait_for_change(self, name: str, timeout: float | None = None) -> tuple[object, object]:
        """Block the calling thread until name changes; return (new, old).

        Never returns if name is missing or deleted, unless timeout is set
        (then TimeoutError is raised).
        """
        return wait.wait_for_change(self._watchers, name, timeout)

    # --- Introspection / lifecycle ---

    def names(self) -> list[str]:
        return self._store.names()

    def __contains__(self, name: str) -> bool:
        return name in self._store

    def __len__(self) -> int:
        return len(self._store)

    def dispose(self) -> None:
        """Detach from the tick stream. Values and watchers stay intact."""
        if self._tick_disposer is not None:
            self._tick_disposer()
            self._tick_disposer = None

    def __repr__(self) -> str:
        return f"StateRegistry({len(self._store)} states, {len(self._queue)} queued)"
