"""
Abstract base classes and interfaces for the robot vision adapters.

These define the contracts the external collaborators must follow
(frame capture, frame output, coprocessor tables and LED strips),
enabling dependency injection and easier testing.
"""

from abc import ABC, abstractmethod
from typing import Optional, List, Sequence
import numpy as np


class IImageSink(ABC):
    """Interface for objects that supply camera frames."""

    @abstractmethod
    def grab_frame(self) -> Optional[np.ndarray]:
        """
        Grab the next frame.

        Returns:
            BGR image as numpy array, or None if no frame is available
        """
        pass


class IImageSource(ABC):
    """Interface for objects that publish processed frames."""

    @abstractmethod
    def put_frame(self, frame: np.ndarray) -> None:
        """Publish a frame to the video output."""
        pass


class IVisionTable(ABC):
    """
    Interface for the key/value table a vision coprocessor publishes on.

    Values are addressed by entry name within the camera's table.
    """

    @abstractmethod
    def get_boolean(self, key: str, default: bool = False) -> bool:
        """Get a boolean entry."""
        pass

    @abstractmethod
    def get_number(self, key: str, default: float = 0.0) -> float:
        """Get a numeric entry."""
        pass

    @abstractmethod
    def get_number_array(
        self,
        key: str,
        default: Sequence[float] = ()
    ) -> List[float]:
        """Get a numeric array entry."""
        pass

    @abstractmethod
    def set_number(self, key: str, value: float) -> None:
        """Set a numeric entry."""
        pass


class ILedStrip(ABC):
    """Interface for addressable LED strips driven by named patterns."""

    @abstractmethod
    def set_pattern_state(
        self,
        pattern: str,
        enabled: bool,
        duration: float = 0.0
    ) -> None:
        """
        Turn a pattern on or off.

        Args:
            pattern: Pattern name
            enabled: True to turn the pattern on
            duration: Seconds to keep the pattern on, 0 for indefinitely
        """
        pass

    @abstractmethod
    def reset(self) -> None:
        """Turn all patterns off."""
        pass
