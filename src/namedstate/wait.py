"""Wait for the next change of a state.

next_change() returns a Future resolved by a one-shot watcher with
(new, old). wait_for_change() blocks the calling thread on it. Since the
future is resolved from inside a watcher task, the waiter always sees
the write already applied to the store.

A wait on a state that is missing, or that gets deleted before it changes
again, never resolves. Pass a timeout, or cancel the future, to bound it.
"""

from __future__ import annotations

import logging
from concurrent.futures import Future, InvalidStateError
from concurrent.futures import TimeoutError as FutureTimeoutError

from namedstate.watchers import WatcherRegistry

logger = logging.getLogger(__name__)


def next_change(watchers: WatcherRegistry, name: str) -> Future:
    """Future of the (new, old) pair for the next change of name.

    Cancelling the future removes its watcher.
    """
    future: Future = Future()

    def _resume(new: object, old: object) -> None:
        try:
            future.set_result((new, old))
        except InvalidStateError:
            pass  # cancelled before the change arrived

    def _on_done(f: Future) -> None:
        if f.cancelled():
            watchers.unsubscribe(name, _resume)

    if watchers.subscribe(name, _resume, once=True):
        future.add_done_callback(_on_done)
    return future


def wait_for_change(
    watchers: WatcherRegistry, name: str, timeout: float | None = None
) -> tuple[object, object]:
    """Block until name changes; return (new, old).

    Must not be called from the thread that performs the write when
    watchers run inline — nothing would ever resolve the wait.
    """
    future = next_change(watchers, name)
    try:
        return future.result(timeout)
    except FutureTimeoutError:
        future.cancel()
        raise TimeoutError(f"State {name!r} did not change within {timeout}s") from None
