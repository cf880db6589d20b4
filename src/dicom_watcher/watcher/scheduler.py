from __future__ import annotations

import heapq
import itertools
import logging
import threading
import time
from typing import Callable, Protocol


logger = logging.getLogger(__name__)


class ScheduledCall:
    """Handle for one pending delayed callback."""

    def __init__(self, deadline: float, callback: Callable[[ScheduledCall], None]) -> None:
        self.deadline = deadline
        self.callback = callback
        self.cancelled = False

    def cancel(self) -> None:
        self.cancelled = True

    def _run(self) -> None:
        if not self.cancelled:
            self.callback(self)


class Scheduler(Protocol):
    def now(self) -> float:
        ...

    def call_later(self, delay: float, callback: Callable[[ScheduledCall], None]) -> ScheduledCall:
        ...


class ThreadingScheduler:
    """Monotonic delay queue served by one daemon dispatcher thread.

    ``call_later`` only pushes onto a heap and wakes the dispatcher.
    Cancelled calls stay in the heap until they reach the top and are skipped
    there. Due callbacks run on the dispatcher thread, outside the heap lock.
    """

    def __init__(self) -> None:
        self._heap: list[tuple[float, int, ScheduledCall]] = []
        self._seq = itertools.count()
        self._cond = threading.Condition()
        self._thread: threading.Thread | None = None
        self._closed = False

    def now(self) -> float:
        return time.monotonic()

    def call_later(self, delay: float, callback: Callable[[ScheduledCall], None]) -> ScheduledCall:
        call = ScheduledCall(self.now() + max(0.0, float(delay)), callback)
        with self._cond:
            heapq.heappush(self._heap, (call.deadline, next(self._seq), call))
            if self._thread is None:
                self._closed = False
                self._thread = threading.Thread(target=self._dispatch, name="study-timers", daemon=True)
                self._thread.start()
            self._cond.notify()
        return call

    def pending(self) -> int:
        with self._cond:
            return sum(1 for _, _, call in self._heap if not call.cancelled)

    def close(self) -> None:
        """Stop the dispatcher and drop every pending call."""
        with self._cond:
            thread = self._thread
            self._closed = True
            for _, _, call in self._heap:
                call.cancel()
            self._heap.clear()
            self._cond.notify()
        if thread is not None and thread is not threading.current_thread():
            thread.join()
        with self._cond:
            if self._thread is thread:
                self._thread = None

    def _dispatch(self) -> None:
        while True:
            with self._cond:
                while True:
                    if self._closed:
                        return
                    while self._heap and self._heap[0][2].cancelled:
                        heapq.heappop(self._heap)
                    if not self._heap:
                        self._cond.wait()
                        continue
                    wait = self._heap[0][0] - self.now()
                    if wait <= 0:
                        break
                    self._cond.wait(timeout=wait)
                _, _, call = heapq.heappop(self._heap)
            try:
                call._run()
            except Exception:
                logger.exception("scheduled callback failed")


class ManualScheduler:
    """Virtual clock; callbacks run synchronously inside ``advance``."""

    def __init__(self, start: float = 0.0) -> None:
        self._now = float(start)
        self._heap: list[tuple[float, int, ScheduledCall]] = []
        self._seq = itertools.count()
        self._lock = threading.Lock()

    def now(self) -> float:
        with self._lock:
            return self._now

    def call_later(self, delay: float, callback: Callable[[ScheduledCall], None]) -> ScheduledCall:
        with self._lock:
            call = ScheduledCall(self._now + max(0.0, float(delay)), callback)
            heapq.heappush(self._heap, (call.deadline, next(self._seq), call))
            return call

    def pending(self) -> int:
        with self._lock:
            return sum(1 for _, _, call in self._heap if not call.cancelled)

    def advance(self, seconds: float) -> int:
        """Move the clock forward, firing due callbacks in deadline order.

        Returns the number of callbacks that ran.
        """
        with self._lock:
            target = self._now + max(0.0, float(seconds))
        return self.advance_to(target)

    def advance_to(self, when: float) -> int:
        fired = 0
        while True:
            with self._lock:
                target = max(self._now, float(when))
                if not self._heap or self._heap[0][0] > target:
                    self._now = target
                    return fired
                deadline, _, call = heapq.heappop(self._heap)
                self._now = max(self._now, deadline)
            if not call.cancelled:
                call._run()
                fired += 1
