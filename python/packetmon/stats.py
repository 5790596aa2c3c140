"""Running packet statistics for the status line."""

from __future__ import annotations

import time
from typing import Callable, Optional

RATE_SAMPLE_INTERVAL = 1.0


class StatsTracker:
    """Counts kept packets and keeps a rate estimate refreshed at most once a second.

    The rate is ``total / seconds since start``. It is only recomputed when at
    least ``RATE_SAMPLE_INTERVAL`` seconds have passed since the previous
    sample, so the displayed value stays steady between redraws.
    """

    def __init__(self, clock: Optional[Callable[[], float]] = None) -> None:
        self._clock = clock or time.monotonic
        self.total = 0
        self.rate = 0.0
        self.start_time = self._clock()
        self.last_sample = self.start_time

    def reset(self) -> None:
        self.total = 0
        self.rate = 0.0
        self.start_time = self._clock()
        self.last_sample = self.start_time

    def record(self) -> None:
        self.total += 1
        now = self._clock()
        if now - self.last_sample < RATE_SAMPLE_INTERVAL:
            return
        elapsed = now - self.start_time
        if elapsed > 0:
            self.rate = self.total / elapsed
        self.last_sample = now

    def elapsed(self) -> float:
        return max(self._clock() - self.start_time, 0.0)


__all__ = ["StatsTracker", "RATE_SAMPLE_INTERVAL"]
