"""DeferredWriteQueue — coalesce queued writes into one flush per tick.

Between flushes each name holds at most one PendingChange. The first
queued write captures the stored value as `old`; later writes only
replace `new`, so a burst collapses into a single dispatch of
(final new, original old).

flush() detaches the current batch before walking it. Writes queued by
watchers during a flush land in the next batch, not the current one.
"""

from __future__ import annotations

import logging
import threading

from namedstate.dispatch import ChangeDispatcher
from namedstate.store import StateStore

logger = logging.getLogger(__name__)


class PendingChange:
    __slots__ = ("old", "new")

    def __init__(self, old: object, new: object) -> None:
        self.old = old
        self.new = new

    def __repr__(self) -> str:
        return f"PendingChange({self.old!r} -> {self.new!r})"


class DeferredWriteQueue:
    def __init__(self, store: StateStore, dispatcher: ChangeDispatcher) -> None:
        self._store = store
        self._dispatcher = dispatcher
        self._pending: dict[str, PendingChange] = {}
        self._order: list[str] = []
        # Held across enqueue and the batch swap; a tick may flush from
        # a clock thread while the owner thread is queueing.
        self._lock = threading.Lock()

    def __len__(self) -> int:
        return len(self._pending)

    def enqueue(self, name: str, value: object) -> None:
        # Guards compare against the stored value, not an earlier queued one.
        if not self._store.accepts(name, value):
            return
        with self._lock:
            pending = self._pending.get(name)
            if pending is None:
                self._pending[name] = PendingChange(self._store.get(name), value)
                self._order.append(name)
            else:
                pending.new = value

    def flush(self) -> None:
        """Apply every pending write in queue order, then start a new batch."""
        with self._lock:
            if not self._order:
                return
            order, pending = self._order, self._pending
            self._order, self._pending = [], {}
        logger.debug("Flushing %d queued change(s)", len(order))
        for name in order:
            change = pending.pop(name, None)
            if change is None or name not in self._store:
                continue
            self._store.set_raw(name, change.new)
            self._dispatcher.dispatch(name, change.new, change.old)

    def discard(self, name: str) -> None:
        with self._lock:
            if self._pending.pop(name, None) is not None:
                self._order.remove(name)
