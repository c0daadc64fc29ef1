"""
Command metrics for the show session.

Counters, gauges and a bounded history of timings per command, plus a
context manager that times a block into the collector.
"""

import logging
import threading
import time
from collections import defaultdict, deque
from dataclasses import dataclass
from typing import Any, Deque, Dict, Optional

import numpy as np

logger = logging.getLogger(__name__)

@dataclass(frozen=True)
class TimingSample:
    name: str
    duration_ms: float
    ok: bool = True

class MetricsCollector:
    """
    Thread-safe metric store.

    Commands can be dispatched from any thread, so every read and write
    goes through one lock.
    """

    def __init__(self, max_history: int = 1000):
        """
        Args:
            max_history: Timing samples kept per name; older samples are dropped
        """
        self._history_limit = max_history
        self._counters: Dict[str, float] = defaultdict(float)
        self._gauges: Dict[str, float] = {}
        self._samples: Dict[str, Deque[TimingSample]] = {}
        self._lock = threading.RLock()

    def increment_counter(self, name: str, value: float = 1.0) -> None:
        with self._lock:
            self._counters[name] += value

    def set_gauge(self, name: str, value: float) -> None:
        with self._lock:
            self._gauges[name] = value

    def record_timing(self, name: str, duration_ms: float, ok: bool = True) -> None:
        with self._lock:
            if name not in self._samples:
                self._samples[name] = deque(maxlen=self._history_limit)
            self._samples[name].append(TimingSample(name, duration_ms, ok))

    def get_counter_value(self, name: str) -> float:
        with self._lock:
            return self._counters.get(name, 0.0)

    def get_gauge_value(self, name: str) -> float:
        with self._lock:
            return self._gauges.get(name, 0.0)

    def get_timing_stats(self, name: str) -> Dict[str, float]:
        """
        Summarize the timing history of one name.

        p95 is the lower nearest-rank value, so it is always an observed
        duration.

        Returns:
            count, min, max, mean, median and p95 in milliseconds; only
            count when nothing was recorded
        """
        with self._lock:
            durations = np.array([s.duration_ms for s in self._samples.get(name, ())], dtype=float)

        if durations.size == 0:
            return {'count': 0}

        return {
            'count': int(durations.size),
            'min': float(durations.min()),
            'max': float(durations.max()),
            'mean': float(durations.mean()),
            'median': float(np.median(durations)),
            'p95': float(np.percentile(durations, 95, method='lower')),
        }

    def get_metric_summary(self) -> Dict[str, Any]:
        with self._lock:
            return {
                'counters': dict(self._counters),
                'gauges': dict(self._gauges),
                'timers': {name: len(samples) for name, samples in self._samples.items()},
                'failures': {name: sum(1 for s in samples if not s.ok)
                             for name, samples in self._samples.items()},
            }

class PerformanceTimer:
    """Times a `with` block into a MetricsCollector; a raised exception marks the sample failed."""

    def __init__(self, collector: MetricsCollector, name: str):
        self._collector = collector
        self._name = name
        self._started: Optional[float] = None
        self.duration_ms: Optional[float] = None

    def __enter__(self):
        self._started = time.perf_counter()
        return self

    def __exit__(self, exc_type, exc_val, exc_tb):
        self.duration_ms = (time.perf_counter() - self._started) * 1000
        self._collector.record_timing(self._name, self.duration_ms, ok=exc_type is None)
        return False
