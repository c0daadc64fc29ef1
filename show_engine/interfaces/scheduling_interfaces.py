"""
Scheduling-related interfaces for the show engine.
Defines the quantize grid, the scheduled action record and the action queue contract.
"""

from abc import ABC, abstractmethod
from dataclasses import dataclass
from enum import Enum
from typing import Any, Dict, List, Optional, Union

class QuantizeGrid(Enum):
    """Musical subdivisions an action can be snapped to (authoring-tool wire names)"""
    WHOLE = "1n"
    HALF = "1/2n"
    QUARTER = "1/4n"
    EIGHTH = "1/8n"
    SIXTEENTH = "1/16n"

    @property
    def slot_beats(self) -> float:
        """Length of one grid slot in beats."""
        return _SLOT_BEATS[self]

    @classmethod
    def parse(cls, value: Union['QuantizeGrid', str]) -> 'QuantizeGrid':
        """
        Resolve a grid from an enum member, a wire name ('1/4n') or a member name ('quarter').

        Raises:
            ValueError: If the value does not name a grid
        """
        if isinstance(value, cls):
            return value
        if isinstance(value, str):
            try:
                return cls(value)
            except ValueError:
                member = cls.__members__.get(value.strip().upper())
                if member is not None:
                    return member
        raise ValueError(f"unknown quantize grid: {value!r}")

_SLOT_BEATS = {
    QuantizeGrid.WHOLE: 4.0,
    QuantizeGrid.HALF: 2.0,
    QuantizeGrid.QUARTER: 1.0,
    QuantizeGrid.EIGHTH: 0.5,
    QuantizeGrid.SIXTEENTH: 0.25,
}

@dataclass(frozen=True)
class ScheduledAction:
    """
    Immutable scheduled action data.

    Created by the scheduler when an action is enqueued. The frozen dataclass
    lets the same instance be handed to callers while it still sits in the queue.
    """
    id: int
    action: str
    section: Optional[str]
    quantize: QuantizeGrid
    execute_at_ms: int

    def to_dict(self) -> Dict[str, Any]:
        """Front-end representation (camelCase keys, grid wire name)."""
        return {
            'id': self.id,
            'action': self.action,
            'section': self.section,
            'quantize': self.quantize.value,
            'executeAtMs': self.execute_at_ms,
        }

class ActionQueue(ABC):
    """
    Interface for the queue holding scheduled actions until release.

    Implementations decide the release order; callers only rely on
    `drain_due` removing what it returns.
    """

    @abstractmethod
    def enqueue(self, action: ScheduledAction) -> None:
        """
        Add an action to the queue.

        Args:
            action: Action to hold until it is due
        """
        pass

    @abstractmethod
    def drain_due(self, deadline_ms: int) -> List[ScheduledAction]:
        """
        Remove and return the actions releasable at the deadline.

        Args:
            deadline_ms: Latest execute_at_ms that counts as due

        Returns:
            Released actions in release order
        """
        pass

    @abstractmethod
    def snapshot(self) -> List[ScheduledAction]:
        """
        Get the queued actions without removing them.

        Returns:
            Copy of the queue contents
        """
        pass

    @abstractmethod
    def peek_next(self) -> Optional[ScheduledAction]:
        """
        Peek at the action that would be released next.

        Returns:
            The next action, or None if the queue is empty
        """
        pass

    @abstractmethod
    def size(self) -> int:
        """
        Get number of queued actions.

        Returns:
            Number of actions currently in the queue
        """
        pass
