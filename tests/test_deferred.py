"""Tests for DeferredWriteQueue — coalescing and flush semantics."""

import threading

from namedstate import ChangeDispatcher, DeferredWriteQueue, StateStore, WatcherRegistry, spawn_inline


def _setup(**states):
    store = StateStore()
    for name, value in states.items():
        store.create(name, value)
    watchers = WatcherRegistry(store)
    dispatcher = ChangeDispatcher(watchers, spawn_inline)
    return store, watchers, DeferredWriteQueue(store, dispatcher)


class TestEnqueue:
    def test_not_applied_until_flush(self):
        store, _, q = _setup(x=1)
        q.enqueue("x", 2)
        assert store.get("x") == 1
        assert len(q) == 1
        q.flush()
        assert store.get("x") == 2
        assert len(q) == 0

    def test_coalesces_to_first_old_last_new(self):
        store, watchers, q = _setup(x=1)
        log = []
        watchers.subscribe("x", lambda new, old: log.append((new, old)))
        q.enqueue("x", 2)
        q.enqueue("x", 3)
        q.flush()
        assert log == [(3, 1)]

    def test_guards_compare_with_stored_value(self):
        """Re-queuing the stored value is a no-op, not a revert."""
        store, watchers, q = _setup(x=1)
        log = []
        watchers.subscribe("x", lambda new, old: log.append((new, old)))
        q.enqueue("x", 2)
        q.enqueue("x", 1)
        q.flush()
        assert log == [(2, 1)]

    def test_equal_value_not_queued(self):
        _, _, q = _setup(x=1)
        q.enqueue("x", 1)
        assert len(q) == 0

    def test_missing_and_locked_rejected(self, caplog):
        store, _, q = _setup(x=1)
        store.lock("x")
        q.enqueue("x", 2)
        q.enqueue("nope", 2)
        assert len(q) == 0
        assert "locked" in caplog.text
        assert "does not exist" in caplog.text


class TestFlush:
    def test_insertion_order(self):
        _, watchers, q = _setup(a=0, b=0, c=0)
        log = []
        for name in ("a", "b", "c"):
            watchers.subscribe(name, lambda new, old, name=name: log.append(name))
        q.enqueue("b", 1)
        q.enqueue("a", 1)
        q.enqueue("c", 1)
        q.enqueue("b", 2)
        q.flush()
        assert log == ["b", "a", "c"]

    def test_deleted_state_dropped(self):
        store, watchers, q = _setup(x=1, y=1)
        log = []
        watchers.subscribe("y", lambda new, old: log.append(new))
        q.enqueue("x", 2)
        q.enqueue("y", 2)
        store.delete("x")
        q.flush()
        assert "x" not in store
        assert log == [2]
        assert len(q) == 0

    def test_lock_after_enqueue_does_not_block_flush(self):
        store, _, q = _setup(x=1)
        q.enqueue("x", 2)
        store.lock("x")
        q.flush()
        assert store.get("x") == 2

    def test_enqueue_during_flush_goes_to_next_batch(self):
        store, watchers, q = _setup(x=1, y=1)
        log = []

        def on_x(new, old):
            log.append(("x", new))
            q.enqueue("y", new * 10)

        watchers.subscribe("x", on_x)
        watchers.subscribe("y", lambda new, old: log.append(("y", new, old)))
        q.enqueue("x", 2)
        q.flush()
        assert log == [("x", 2)]
        assert store.get("y") == 1
        assert len(q) == 1
        q.flush()
        assert log == [("x", 2), ("y", 20, 1)]

    def test_empty_flush_is_noop(self):
        _, _, q = _setup()
        q.flush()
        assert len(q) == 0

    def test_discard(self):
        store, _, q = _setup(x=1)
        q.enqueue("x", 2)
        q.discard("x")
        q.discard("x")  # already gone
        q.flush()
        assert store.get("x") == 1


class _FlushDuringLookup(dict):
    """Pending table that lets a tick flush from another thread mid-enqueue."""

    def __init__(self, queue):
        super().__init__()
        self.queue = queue
        self.thread = None

    def get(self, key, default=None):
        if self.thread is None and key in self:
            self.thread = threading.Thread(target=self.queue.flush)
            self.thread.start()
            self.thread.join(timeout=0.05)
        return super().get(key, default)


class TestConcurrentTick:
    def test_flush_on_clock_thread_does_not_lose_enqueue(self):
        store, _, q = _setup(x=0)
        q._pending = _FlushDuringLookup(q)
        q.enqueue("x", 1)
        q.enqueue("x", 2)  # a tick fires while this looks up the pending entry
        q._pending.thread.join(timeout=2)
        q.flush()
        assert store.get("x") == 2
        assert len(q) == 0
