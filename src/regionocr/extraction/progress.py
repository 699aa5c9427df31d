"""Monotonic progress reporting for extraction jobs."""

from __future__ import annotations

import threading
from typing import Callable

ProgressHandler = Callable[[int, str], None]

# (start, end) percent of each phase of a job
PHASE_ANALYZE = (0, 15)
PHASE_PREPROCESS = (15, 30)
PHASE_ENGINE_INIT = (30, 50)
PHASE_RECOGNIZE = (50, 80)
PHASE_FORMAT = (80, 100)


class ProgressReporter:
    """Forwards progress updates, never letting the value move backward.

    Values are clamped to [0, 100]; a value lower than the last reported one
    is raised to it. The final 100 is always delivered, even if it repeats.

    Args:
        handler: Receives (percent, message). May be None to discard updates.
        step: Granularity of the intermediate values emitted by sweep().
    """

    def __init__(self, handler: ProgressHandler | None, step: int = 5) -> None:
        self._handler = handler
        self._step = max(1, step)
        self._last = -1
        self._lock = threading.Lock()

    @property
    def last(self) -> int:
        return max(self._last, 0)

    def report(self, percent: int, message: str) -> int:
        with self._lock:
            value = max(0, min(100, int(percent)))
            if value < self._last:
                value = self._last
            self._last = value
        if self._handler is not None:
            self._handler(value, message)
        return value

    def sweep(self, start: int, end: int, message: str) -> None:
        """Emit evenly spaced values from start to end (both included)."""
        for value in range(start, end, self._step):
            self.report(value, message)
        self.report(end, message)

    def complete(self, message: str = "Complete!") -> None:
        self.report(100, message)
