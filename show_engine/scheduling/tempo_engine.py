"""
Tempo engine holding the authoritative beat clock.
Applies manual, nudge and tap-tempo strategies and notifies listeners of BPM changes.
"""

import logging
from collections import deque
from dataclasses import dataclass, replace
from enum import Enum
from typing import Any, Deque, Dict, List, Optional, Sequence

import numpy as np

from ..clock import Clock, now_ms
from ..interfaces.timing_interfaces import TempoChangeNotifier, TempoListener

logger = logging.getLogger(__name__)

MIN_BPM = 20.0
MAX_BPM = 300.0
DEFAULT_BPM = 120.0

TAP_HISTORY_LIMIT = 8
# Intervals outside this window imply a tempo outside ~20-750 BPM or a double-tap
MIN_TAP_INTERVAL_MS = 80
MAX_TAP_INTERVAL_MS = 3000

SINGLE_INTERVAL_CONFIDENCE = 0.35
MIN_TAP_CONFIDENCE = 0.2
MAX_TAP_CONFIDENCE = 0.99
FULL_WEIGHT_INTERVALS = 6.0

class TempoSource(Enum):
    """Where the current tempo came from"""
    MANUAL = "manual"
    TAP = "tap"
    LINK = "link"
    MIDI_CLOCK = "midi_clock"
    AUTO = "auto"

@dataclass(frozen=True)
class TempoState:
    """Snapshot of the beat clock. bpm is always within [MIN_BPM, MAX_BPM]."""
    bpm: float
    confidence: float
    downbeat_epoch_ms: int
    source: TempoSource = TempoSource.MANUAL
    tap_count: int = 0

    @property
    def beat_ms(self) -> float:
        """Length of one beat in milliseconds."""
        return 60_000.0 / self.bpm

    def to_dict(self) -> Dict[str, Any]:
        return {
            'bpm': self.bpm,
            'confidence': self.confidence,
            'downbeatEpochMs': self.downbeat_epoch_ms,
            'source': self.source.value,
            'tapCount': self.tap_count,
        }

def clamp_bpm(bpm: float) -> float:
    """Clamp a tempo into the supported range."""
    return max(MIN_BPM, min(MAX_BPM, float(bpm)))

def tap_intervals(taps: Sequence[int],
                  min_interval_ms: int = MIN_TAP_INTERVAL_MS,
                  max_interval_ms: int = MAX_TAP_INTERVAL_MS) -> List[int]:
    """
    Intervals between consecutive taps that fall inside the plausible window.

    Out-of-order taps produce a zero interval and are dropped with the rest.
    """
    intervals = []
    for earlier, later in zip(taps, list(taps)[1:]):
        interval = max(0, later - earlier)
        if min_interval_ms <= interval <= max_interval_ms:
            intervals.append(interval)
    return intervals

def median_ms(values: Sequence[float]) -> float:
    """
    Order-statistic median; the mean of the two middle values for even counts.

    Raises:
        ValueError: If values is empty
    """
    if len(values) == 0:
        raise ValueError("median of an empty sequence")
    return float(np.median(np.asarray(values, dtype=float)))

def tap_confidence(intervals: Sequence[float]) -> float:
    """
    Confidence in a tapped tempo, from 0.2 to 0.99.

    Rewards regular intervals (low coefficient of variation) and larger
    samples (full weight from six intervals on). A single interval gets a
    fixed 0.35.

    Args:
        intervals: Accepted tap intervals in milliseconds

    Returns:
        Confidence value
    """
    if len(intervals) == 1:
        return SINGLE_INTERVAL_CONFIDENCE

    data = np.asarray(intervals, dtype=float)
    mean = float(data.mean()) if data.size else 0.0
    if mean <= np.finfo(float).eps:
        return MIN_TAP_CONFIDENCE

    # Population variance (ddof=0)
    coefficient_of_variation = float(data.std()) / mean
    consistency = 1.0 - coefficient_of_variation
    sample_weight = min(1.0, max(0.4, data.size / FULL_WEIGHT_INTERVALS))

    return min(MAX_TAP_CONFIDENCE, max(MIN_TAP_CONFIDENCE, consistency * sample_weight))

class TempoEngine(TempoChangeNotifier):
    """
    Owns the current tempo state and tap history.

    Every input is sanitized by clamping rather than rejected, so no
    operation on this class fails. The engine does no locking of its own;
    callers that share it between threads guard it with one lock.
    """

    def __init__(self, initial_bpm: float = DEFAULT_BPM,
                 tap_history_limit: int = TAP_HISTORY_LIMIT,
                 min_tap_interval_ms: int = MIN_TAP_INTERVAL_MS,
                 max_tap_interval_ms: int = MAX_TAP_INTERVAL_MS,
                 clock: Clock = now_ms):
        """
        Initialize tempo engine.

        Args:
            initial_bpm: Starting tempo (clamped)
            tap_history_limit: Number of most recent taps kept for estimation
            min_tap_interval_ms: Shortest tap interval accepted
            max_tap_interval_ms: Longest tap interval accepted
            clock: Source of "now" for operations called without a timestamp
        """
        if tap_history_limit < 2:
            raise ValueError("Tap history must hold at least two taps")

        self._clock = clock
        self._min_tap_interval_ms = min_tap_interval_ms
        self._max_tap_interval_ms = max_tap_interval_ms
        self._taps: Deque[int] = deque(maxlen=tap_history_limit)
        self._listeners: List[TempoListener] = []

        self._state = TempoState(
            bpm=clamp_bpm(initial_bpm),
            confidence=1.0,
            downbeat_epoch_ms=self._clock(),
            source=TempoSource.MANUAL,
            tap_count=0
        )

        self._stats = {
            'taps_received': 0,
            'last_interval_count': 0,
            'tap_estimates': 0,
            'manual_changes': 0,
            'downbeat_resyncs': 0
        }

        logger.info(f"TempoEngine initialized: bpm={self._state.bpm:.1f}, "
                    f"downbeat={self._state.downbeat_epoch_ms}, tap_history={tap_history_limit}")

    def state(self) -> TempoState:
        """Current tempo snapshot."""
        return self._state

    def get_current_bpm(self) -> float:
        return self._state.bpm

    def set_bpm(self, bpm: float) -> TempoState:
        """
        Set an explicit tempo.

        Resets confidence to 1.0, marks the tempo as manual and discards the
        tap history.

        Args:
            bpm: Requested tempo (clamped to the supported range)

        Returns:
            The new tempo state
        """
        new_bpm = clamp_bpm(bpm)
        if new_bpm != bpm:
            logger.debug(f"Requested BPM {bpm} clamped to {new_bpm:.1f}")

        self._taps.clear()
        self._apply(replace(self._state, bpm=new_bpm, confidence=1.0,
                            source=TempoSource.MANUAL, tap_count=0))
        self._stats['manual_changes'] += 1
        return self._state

    def nudge_bpm(self, delta: float) -> TempoState:
        """
        Shift the tempo by a relative amount, keeping the current confidence.

        Args:
            delta: BPM offset, positive or negative

        Returns:
            The new tempo state
        """
        new_bpm = clamp_bpm(self._state.bpm + delta)
        self._apply(replace(self._state, bpm=new_bpm, source=TempoSource.MANUAL))
        self._stats['manual_changes'] += 1
        return self._state

    def resync_downbeat(self, timestamp_ms: Optional[int] = None) -> TempoState:
        """
        Move the grid origin without touching tempo or source.

        Args:
            timestamp_ms: New downbeat time, or None for now

        Returns:
            The new tempo state
        """
        downbeat = self._clock() if timestamp_ms is None else int(timestamp_ms)
        self._apply(replace(self._state, downbeat_epoch_ms=downbeat))
        self._stats['downbeat_resyncs'] += 1
        return self._state

    def tap_bpm(self, timestamp_ms: Optional[int] = None) -> TempoState:
        """
        Register a tap and re-estimate the tempo from the tap history.

        The estimate is 60000 / median of the accepted intervals. When no
        interval is accepted only the tap count changes. Otherwise the latest
        tap becomes the new downbeat.

        Args:
            timestamp_ms: Tap time, or None for now

        Returns:
            The new tempo state
        """
        tap = self._clock() if timestamp_ms is None else int(timestamp_ms)
        self._taps.append(tap)
        self._stats['taps_received'] += 1

        intervals = tap_intervals(self._taps, self._min_tap_interval_ms, self._max_tap_interval_ms)
        if not intervals:
            logger.debug(f"Tap at {tap}: no usable intervals in {len(self._taps)} taps")
            self._state = replace(self._state, tap_count=len(self._taps))
            return self._state

        tapped_bpm = 60_000.0 / median_ms(intervals)
        confidence = tap_confidence(intervals)

        self._stats['last_interval_count'] = len(intervals)
        self._stats['tap_estimates'] += 1

        logger.debug(f"Tap estimate from {len(intervals)} intervals: "
                     f"{tapped_bpm:.2f} BPM (confidence {confidence:.2f})")

        self._apply(replace(self._state,
                            bpm=clamp_bpm(tapped_bpm),
                            confidence=confidence,
                            source=TempoSource.TAP,
                            tap_count=len(self._taps),
                            downbeat_epoch_ms=tap))
        return self._state

    def add_tempo_listener(self, listener: TempoListener) -> None:
        if listener not in self._listeners:
            self._listeners.append(listener)
            logger.debug(f"Added tempo listener: {len(self._listeners)} total")
        else:
            logger.debug("Tempo listener already registered")

    def remove_tempo_listener(self, listener: TempoListener) -> None:
        if listener in self._listeners:
            self._listeners.remove(listener)
            logger.debug(f"Removed tempo listener: {len(self._listeners)} total")
        else:
            logger.debug("Tempo listener not found for removal")

    def get_stats(self) -> Dict[str, Any]:
        """
        Get tempo engine statistics.

        Returns:
            Dictionary with counters and the current state
        """
        return {
            'tempo_stats': self._stats.copy(),
            'state': self._state.to_dict(),
            'taps_held': len(self._taps),
            'listeners_registered': len(self._listeners)
        }

    def _apply(self, new_state: TempoState) -> None:
        old_bpm = self._state.bpm
        self._state = new_state

        if new_state.bpm != old_bpm:
            logger.info(f"Tempo change: {old_bpm:.1f} → {new_state.bpm:.1f} BPM "
                        f"(source: {new_state.source.value})")
            self._notify_listeners(old_bpm, new_state.bpm)

    def _notify_listeners(self, old_bpm: float, new_bpm: float) -> None:
        """
        Notify all listeners of a tempo change.

        A failing listener is logged and does not stop the others.
        """
        for listener in list(self._listeners):
            try:
                listener(old_bpm, new_bpm)
            except Exception as e:
                logger.error(f"Error in tempo change listener: {e}")
