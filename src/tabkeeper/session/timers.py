"""Delayed callbacks for the single-threaded UI loop.

The UI loop alternates between pumping host events and ``run_due()``, so
timers fire on the same thread as surface callbacks and never overlap them.
"""
import heapq
import itertools
import logging
import time
from typing import Callable

log = logging.getLogger(__name__)


class TimerQueue:
    """``call_later`` / ``run_due`` over a monotonic clock."""

    def __init__(self, clock=time.monotonic):
        self._clock = clock
        self._heap: list[tuple[float, int, Callable[[], None]]] = []
        self._seq = itertools.count()

    def call_later(self, delay: float, callback: Callable[[], None]):
        heapq.heappush(self._heap, (self._clock() + max(0.0, delay), next(self._seq), callback))

    def run_due(self) -> int:
        """Run every callback whose time has come. Returns how many ran."""
        ran = 0
        now = self._clock()
        while self._heap and self._heap[0][0] <= now:
            _, _, callback = heapq.heappop(self._heap)
            ran += 1
            try:
                callback()
            except Exception as e:
                log.error(f"Timer callback failed: {e}", exc_info=True)
        return ran

    def next_delay(self) -> float | None:
        """Seconds until the next timer, or None if there is none."""
        if not self._heap:
            return None
        return max(0.0, self._heap[0][0] - self._clock())

    def __len__(self):
        return len(self._heap)
