"""
Timing-related interfaces for the show engine.
Defines the contract for tempo change notifications.
"""

from abc import ABC, abstractmethod
from typing import Callable

TempoListener = Callable[[float, float], None]

class TempoChangeNotifier(ABC):
    """
    Interface for tempo change notifications.

    Lets components react when the beat clock changes speed without
    reaching into the tempo engine's state.
    """

    @abstractmethod
    def add_tempo_listener(self, listener: TempoListener) -> None:
        """
        Add tempo change listener.

        Args:
            listener: Callback function that receives (old_bpm, new_bpm)
        """
        pass

    @abstractmethod
    def remove_tempo_listener(self, listener: TempoListener) -> None:
        """
        Remove tempo change listener.

        Args:
            listener: Callback function to remove
        """
        pass

    @abstractmethod
    def get_current_bpm(self) -> float:
        """
        Get current BPM.

        Returns:
            Current beats per minute
        """
        pass
