"""ChangeDispatcher — fire-and-forget watcher notification.

Each watcher callback is handed to a spawner as an independent task.
The dispatcher never waits for a callback: a write returns as soon as
its watchers are scheduled. Every task is wrapped so that an exception
inside a callback is logged and published on the errors stream instead
of reaching the writer or sibling watchers.
"""

from __future__ import annotations

import logging
from threading import Thread
from typing import Callable

from namedstate.stream import EventStream
from namedstate.watchers import WatcherCallback, WatcherRegistry

logger = logging.getLogger(__name__)

Task = Callable[[], None]
Spawner = Callable[[Task], object]


def spawn_thread(task: Task) -> None:
    """Run task in its own daemon thread."""
    Thread(target=task, daemon=True).start()


def spawn_inline(task: Task) -> None:
    """Run task immediately in the calling thread."""
    task()


class WatcherError:
    """A callback failure, as published on ChangeDispatcher.errors."""

    __slots__ = ("name", "callback", "exception")

    def __init__(self, name: str, callback: WatcherCallback, exception: Exception) -> None:
        self.name = name
        self.callback = callback
        self.exception = exception

    def __repr__(self) -> str:
        return f"WatcherError({self.name!r}, {self.exception!r})"


class ChangeDispatcher:
    def __init__(self, watchers: WatcherRegistry, spawn: Spawner = spawn_thread) -> None:
        self._watchers = watchers
        self._spawn = spawn
        self.errors: EventStream[WatcherError] = EventStream()

    def dispatch(self, name: str, new: object, old: object) -> None:
        """Schedule every watcher of name, most recently added first.

        Iterates a snapshot, so once-watchers can be removed from the live
        list while walking it.
        """
        watchers = self._watchers.snapshot(name)
        if not watchers:
            return
        for watcher in reversed(watchers):
            self._spawn(self._task(name, watcher.callback, new, old))
            if watcher.once:
                self._watchers.unsubscribe(name, watcher.callback)

    def _task(self, name: str, callback: WatcherCallback, new: object, old: object) -> Task:
        def _run() -> None:
            try:
                callback(new, old)
            except Exception as exc:
                logger.exception("Watcher %r on state %r raised", callback, name)
                self._report(WatcherError(name, callback, exc))

        return _run

    def _report(self, error: WatcherError) -> None:
        try:
            self.errors.emit(error)
        except Exception:
            logger.exception("Error subscriber failed while reporting %r", error)
