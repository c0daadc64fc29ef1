"""
Arrival-ordered action queue with head-only draining.
"""

import logging
from collections import deque
from typing import Deque, List, Optional

from ..interfaces.scheduling_interfaces import ActionQueue, ScheduledAction

logger = logging.getLogger(__name__)

class FifoActionQueue(ActionQueue):
    """
    Queue that releases actions strictly in arrival order.

    `drain_due` only ever looks at the head: an action that arrived later
    but is due earlier waits until everything ahead of it has been released.
    O(1) insertion and removal.
    """

    def __init__(self):
        self._queue: Deque[ScheduledAction] = deque()

    def enqueue(self, action: ScheduledAction) -> None:
        self._queue.append(action)
        logger.debug(f"FifoActionQueue: queued action {action.id} for {action.execute_at_ms} "
                     f"(queue size: {len(self._queue)})")

    def drain_due(self, deadline_ms: int) -> List[ScheduledAction]:
        due = []
        while self._queue and self._queue[0].execute_at_ms <= deadline_ms:
            due.append(self._queue.popleft())

        if self._queue and due:
            head = self._queue[0]
            logger.debug(f"FifoActionQueue: released {len(due)}, head action {head.id} "
                         f"due at {head.execute_at_ms} (deadline {deadline_ms})")
        return due

    def snapshot(self) -> List[ScheduledAction]:
        return list(self._queue)

    def peek_next(self) -> Optional[ScheduledAction]:
        return self._queue[0] if self._queue else None

    def size(self) -> int:
        return len(self._queue)

    def __len__(self) -> int:
        return len(self._queue)
