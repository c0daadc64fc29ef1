"""
Scheduling package for the show engine.
Contains the tempo engine and the quantized action scheduler.
"""

from .action_queue import FifoActionQueue
from .quantized_scheduler import QuantizedScheduler, quantize_next_boundary
from .tempo_engine import TempoEngine, TempoSource, TempoState, median_ms, tap_confidence

__all__ = [
    'FifoActionQueue',
    'QuantizedScheduler',
    'quantize_next_boundary',
    'TempoEngine',
    'TempoSource',
    'TempoState',
    'median_ms',
    'tap_confidence'
]
