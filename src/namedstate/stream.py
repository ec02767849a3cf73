"""Push-based event stream.

Used as the tick signal that drives queued-write flushes and as the
error channel for failed watchers. emit() pushes to every subscriber in
subscription order; dispose() silences the stream for good.
"""

from __future__ import annotations

from typing import Callable, Generic, TypeVar

T = TypeVar("T")

Disposer = Callable[[], None]


class EventStream(Generic[T]):
    """Push-based event stream."""

    def __init__(self) -> None:
        self._subscribers: list[Callable[[T], None]] = []
        self._disposed = False

    @property
    def disposed(self) -> bool:
        return self._disposed

    def emit(self, value: T) -> None:
        """Push a value to all subscribers."""
        if self._disposed:
            return
        # Snapshot: a subscriber may unsubscribe itself while handling.
        for cb in list(self._subscribers):
            cb(value)

    def subscribe(self, callback: Callable[[T], None]) -> Disposer:
        """Register a callback. Returns a function that removes it."""
        self._subscribers.append(callback)

        def _unsubscribe() -> None:
            try:
                self._subscribers.remove(callback)
            except ValueError:
                pass  # already removed

        return _unsubscribe

    def __len__(self) -> int:
        return len(self._subscribers)

    def dispose(self) -> None:
        """Drop all subscribers and ignore further emits."""
        self._disposed = True
        self._subscribers.clear()
