"""
Quantized action scheduler.
Snaps requested actions to the next musical-grid boundary and holds them until due.
"""

import math
import logging
from typing import Any, Dict, List, Optional, Union

from ..interfaces.scheduling_interfaces import ActionQueue, QuantizeGrid, ScheduledAction
from .action_queue import FifoActionQueue
from .tempo_engine import clamp_bpm

logger = logging.getLogger(__name__)

DEFAULT_GRID = QuantizeGrid.QUARTER
DEFAULT_LOOK_AHEAD_MS = 100
DEFAULT_JITTER_BUDGET_MS = 5

def quantize_next_boundary(now_ms: int, bpm: float, downbeat_epoch_ms: int,
                           grid: QuantizeGrid) -> int:
    """
    Smallest grid-aligned instant at or after `now_ms`.

    Slots are measured from the downbeat epoch. Anything requested at or
    before the downbeat snaps to the downbeat itself.

    Args:
        now_ms: Requested time in wall-clock milliseconds
        bpm: Tempo (clamped to the supported range)
        downbeat_epoch_ms: Grid origin
        grid: Subdivision to snap to

    Returns:
        Boundary time in wall-clock milliseconds
    """
    beat_ms = 60_000.0 / clamp_bpm(bpm)
    slot_ms = beat_ms * grid.slot_beats

    if now_ms <= downbeat_epoch_ms:
        return int(downbeat_epoch_ms)

    elapsed = now_ms - downbeat_epoch_ms
    slots = math.ceil(elapsed / slot_ms)
    # Round half up to the nearest millisecond; the offset is never negative
    return int(downbeat_epoch_ms + math.floor(slots * slot_ms + 0.5))

class QuantizedScheduler:
    """
    Turns action requests into grid-aligned release times.

    The scheduler holds no tempo of its own: every `schedule` call carries
    the BPM and downbeat the caller read from the tempo engine. Release
    order is delegated to the injected queue, FIFO by arrival by default.
    """

    def __init__(self,
                 action_queue: Optional[ActionQueue] = None,
                 grid: QuantizeGrid = DEFAULT_GRID,
                 look_ahead_ms: int = DEFAULT_LOOK_AHEAD_MS,
                 jitter_budget_ms: int = DEFAULT_JITTER_BUDGET_MS):
        """
        Initialize scheduler.

        Args:
            action_queue: Queue holding actions until release
            grid: Default grid for requests that do not name one
            look_ahead_ms: Offset added to "now" before quantizing
            jitter_budget_ms: Slack allowed when deciding an action is due
        """
        if look_ahead_ms < 0 or jitter_budget_ms < 0:
            raise ValueError("Look-ahead and jitter budget must be non-negative")

        self._queue = action_queue if action_queue is not None else FifoActionQueue()
        self._grid = grid
        self._look_ahead_ms = int(look_ahead_ms)
        self._jitter_budget_ms = int(jitter_budget_ms)
        self._next_id = 1

        self._stats = {
            'actions_scheduled': 0,
            'actions_released': 0,
            'release_polls': 0,
            'grid_changes': 0
        }

        logger.info(f"QuantizedScheduler initialized: grid={grid.value}, "
                    f"look_ahead={self._look_ahead_ms}ms, jitter_budget={self._jitter_budget_ms}ms")

    @property
    def grid(self) -> QuantizeGrid:
        return self._grid

    @property
    def look_ahead_ms(self) -> int:
        return self._look_ahead_ms

    @property
    def jitter_budget_ms(self) -> int:
        return self._jitter_budget_ms

    def set_grid(self, grid: QuantizeGrid) -> QuantizeGrid:
        """
        Set the default grid used when a request omits one.

        Returns:
            The new default grid
        """
        if grid != self._grid:
            logger.info(f"Default quantize grid: {self._grid.value} → {grid.value}")
            self._stats['grid_changes'] += 1
        self._grid = grid
        return grid

    def schedule(self, now_ms: int, bpm: float, downbeat_epoch_ms: int, action: str,
                 quantize: Optional[QuantizeGrid] = None,
                 section: Optional[str] = None) -> ScheduledAction:
        """
        Queue an action for the next grid boundary after the look-ahead.

        Args:
            now_ms: Time of the request
            bpm: Tempo to quantize with
            downbeat_epoch_ms: Grid origin to quantize from
            action: Identifier of the action to perform
            quantize: Grid for this action, or None for the default grid
            section: Timeline section the action belongs to

        Returns:
            The queued action
        """
        grid = quantize if quantize is not None else self._grid
        execute_at_ms = quantize_next_boundary(now_ms + self._look_ahead_ms, bpm,
                                               downbeat_epoch_ms, grid)

        scheduled = ScheduledAction(
            id=self._next_id,
            action=action,
            section=section,
            quantize=grid,
            execute_at_ms=execute_at_ms
        )
        self._next_id += 1
        self._queue.enqueue(scheduled)
        self._stats['actions_scheduled'] += 1

        logger.debug(f"Scheduled action {scheduled.id} '{action}' (section {section}) "
                     f"on {grid.value} grid at {execute_at_ms} "
                     f"({execute_at_ms - now_ms}ms from request)")
        return scheduled

    def list(self) -> List[ScheduledAction]:
        """All queued actions in arrival order. Does not modify the queue."""
        return self._queue.snapshot()

    def peek_next(self) -> Optional[ScheduledAction]:
        """The action at the head of the queue, if any."""
        return self._queue.peek_next()

    def pop_due(self, now_ms: int) -> List[ScheduledAction]:
        """
        Release every action at the head of the queue that is due.

        An action is due when its release time is within the jitter budget
        of `now_ms`. Draining stops at the first head that is not due, even
        if an action behind it would be.

        Args:
            now_ms: Current time

        Returns:
            Released actions in arrival order
        """
        due = self._queue.drain_due(now_ms + self._jitter_budget_ms)
        self._stats['release_polls'] += 1

        if due:
            self._stats['actions_released'] += len(due)
            logger.debug(f"Released {len(due)} actions at {now_ms}: {[a.id for a in due]}")
        return due

    def get_stats(self) -> Dict[str, Any]:
        """
        Get scheduler statistics and state information.

        Returns:
            Dictionary with scheduler statistics
        """
        head = self._queue.peek_next()
        return {
            'scheduler_stats': self._stats.copy(),
            'pending_count': self._queue.size(),
            'grid': self._grid.value,
            'look_ahead_ms': self._look_ahead_ms,
            'jitter_budget_ms': self._jitter_budget_ms,
            'next_release_ms': head.execute_at_ms if head else None,
            'next_action_id': self._next_id
        }

    @staticmethod
    def resolve_grid(value: Union[QuantizeGrid, str, None]) -> Optional[QuantizeGrid]:
        """Parse an optional grid argument from a caller."""
        return None if value is None else QuantizeGrid.parse(value)
