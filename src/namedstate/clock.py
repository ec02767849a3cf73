"""FrameClock — a tick source running in a managed daemon thread.

Emits a frame counter on its `ticks` stream every `interval` seconds
until disposed. Hand the stream to StateRegistry(tick=...) to flush
queued writes once per frame. If the registry has a scheduler, the
flush is marshaled back to the owner thread.
"""

from __future__ import annotations

import threading

from namedstate.stream import EventStream


class FrameClock:
    """Disposable periodic tick emitter."""

    def __init__(self, interval: float = 1 / 60, ticks: EventStream[int] | None = None) -> None:
        self.interval = interval
        self.ticks: EventStream[int] = ticks if ticks is not None else EventStream()
        self.frame = 0
        self._stop = threading.Event()
        self._thread: threading.Thread | None = None

    @property
    def disposed(self) -> bool:
        return self._stop.is_set()

    def start(self) -> FrameClock:
        """Start ticking. Returns self so it can be chained."""
        if self._thread is None:
            self._thread = threading.Thread(target=self._run, daemon=True)
            self._thread.start()
        return self

    def _run(self) -> None:
        while not self._stop.wait(self.interval):
            self.frame += 1
            self.ticks.emit(self.frame)

    def dispose(self) -> None:
        """Stop ticking. The thread exits at the end of its current wait."""
        self._stop.set()
