# show-engine/show_engine/__init__.py

from .show_session import ShowSession
from .command_types import CommandResult
from .clock import ManualClock, now_ms

__all__ = ['ShowSession', 'CommandResult', 'ManualClock', 'now_ms']
