"""WatcherRegistry — per-name ordered lists of change callbacks."""

from __future__ import annotations

import logging
import threading
from typing import Callable

from namedstate.store import StateStore

logger = logging.getLogger(__name__)

WatcherCallback = Callable[[object, object], None]


class Watcher:
    __slots__ = ("callback", "once")

    def __init__(self, callback: WatcherCallback, once: bool = False) -> None:
        self.callback = callback
        self.once = once

    def __repr__(self) -> str:
        name = getattr(self.callback, "__name__", repr(self.callback))
        return f"Watcher({name}{', once' if self.once else ''})"


class WatcherRegistry:
    """Watchers keyed by state name, kept in insertion order.

    A name with no watchers has no entry at all, so count() and snapshot()
    never see an empty list.

    Every method holds the registry lock, so waiters on other threads can
    subscribe and cancel while the owner thread dispatches.
    """

    def __init__(self, store: StateStore) -> None:
        self._store = store
        self._watchers: dict[str, list[Watcher]] = {}
        self._lock = threading.Lock()

    def subscribe(self, name: str, callback: WatcherCallback, once: bool = False) -> bool:
        if name not in self._store:
            logger.warning("Cannot watch state %r: it does not exist", name)
            return False
        with self._lock:
            self._watchers.setdefault(name, []).append(Watcher(callback, once))
        return True

    def unsubscribe(self, name: str, callback: WatcherCallback | None = None) -> None:
        """Remove every watcher on name whose callback equals callback.

        callback=None removes all watchers on name.
        """
        with self._lock:
            watchers = self._watchers.get(name)
            if watchers is None:
                return
            if callback is None:
                del self._watchers[name]
                return
            remaining = [w for w in watchers if w.callback != callback]
            if remaining:
                self._watchers[name] = remaining
            else:
                del self._watchers[name]

    def snapshot(self, name: str) -> tuple[Watcher, ...]:
        with self._lock:
            return tuple(self._watchers.get(name, ()))

    def count(self, name: str) -> int:
        with self._lock:
            return len(self._watchers.get(name, ()))

    def discard(self, name: str) -> None:
        with self._lock:
            self._watchers.pop(name, None)
