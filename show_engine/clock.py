"""
Wall-clock helpers for the show engine.
Every timestamp in the engine is integer milliseconds since the Unix epoch.
"""

import time
import logging
from typing import Callable

logger = logging.getLogger(__name__)

Clock = Callable[[], int]

def now_ms() -> int:
    """Current wall-clock time in milliseconds."""
    return int(time.time() * 1000)

class ManualClock:
    """
    Clock that only moves when told to.

    Drop-in replacement for `now_ms` wherever a component accepts a clock,
    for tests and for replaying a show at a fixed time.
    """

    def __init__(self, start_ms: int = 0):
        self._now_ms = int(start_ms)

    def __call__(self) -> int:
        return self._now_ms

    def advance(self, delta_ms: int) -> int:
        """Move the clock forward and return the new time"""
        if delta_ms < 0:
            raise ValueError(f"Cannot move clock backwards: {delta_ms}")
        self._now_ms += int(delta_ms)
        return self._now_ms

    def set(self, timestamp_ms: int) -> None:
        """Jump to an absolute time"""
        logger.debug(f"ManualClock: {self._now_ms} -> {timestamp_ms}")
        self._now_ms = int(timestamp_ms)
