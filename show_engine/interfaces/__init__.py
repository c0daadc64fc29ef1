"""
Interfaces package for the show engine.
Contains the shared scheduling types and abstract base classes for modular components.
"""

from .timing_interfaces import TempoChangeNotifier, TempoListener
from .scheduling_interfaces import ActionQueue, QuantizeGrid, ScheduledAction

__all__ = [
    'TempoChangeNotifier',
    'TempoListener',
    'ActionQueue',
    'QuantizeGrid',
    'ScheduledAction'
]
