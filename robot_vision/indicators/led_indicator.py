"""
LED indicator for showing vision state on the robot's LED strip.
"""

import logging
import time
from enum import Enum
from typing import Dict, Optional

from ..core.geometry import Pose3D
from ..core.interfaces import ILedStrip

logger = logging.getLogger(__name__)

# Pattern names, listed by priority (highest first)
APRILTAG_PATTERN = "AprilTag"
NOTE_PATTERN = "Note"
RED_BLOB_PATTERN = "RedBlob"
BLUE_BLOB_PATTERN = "BlueBlob"
ON_TARGET_PATTERN = "OnTarget"

PATTERN_PRIORITIES = (
    ON_TARGET_PATTERN,
    APRILTAG_PATTERN,
    NOTE_PATTERN,
    RED_BLOB_PATTERN,
    BLUE_BLOB_PATTERN,
)

# Keyed by enum member name so both PhotonVision pipeline types and
# OpenCV object types map onto the same patterns
DETECTION_PATTERNS: Dict[str, str] = {
    "APRILTAG": APRILTAG_PATTERN,
    "NOTE": NOTE_PATTERN,
    "REDBLOB": RED_BLOB_PATTERN,
    "BLUEBLOB": BLUE_BLOB_PATTERN,
}


class SimulatedLedStrip(ILedStrip):
    """LED strip that only records pattern states. Used in simulation and tests."""

    def __init__(self):
        # pattern -> expire time, None for indefinitely
        self._on_patterns: Dict[str, Optional[float]] = {}

    def set_pattern_state(self, pattern: str, enabled: bool, duration: float = 0.0) -> None:
        if enabled:
            self._on_patterns[pattern] = time.monotonic() + duration if duration > 0 else None
        else:
            self._on_patterns.pop(pattern, None)
        logger.debug(f"LED pattern {pattern} {'on' if enabled else 'off'}")

    def reset(self) -> None:
        self._on_patterns.clear()

    def is_pattern_on(self, pattern: str) -> bool:
        if pattern not in self._on_patterns:
            return False
        expire_time = self._on_patterns[pattern]
        if expire_time is not None and time.monotonic() >= expire_time:
            del self._on_patterns[pattern]
            return False
        return True

    @property
    def active_pattern(self) -> Optional[str]:
        """Highest priority pattern currently on."""
        for pattern in PATTERN_PRIORITIES:
            if self.is_pattern_on(pattern):
                return pattern
        return None


class LedIndicator:
    """
    Shows detected object types on the LED strip.

    Attributes:
        strip: The LED strip driven by this indicator
        on_duration: Seconds a detection pattern stays on
        on_target_tolerance: Max sideways offset in meters counted as on target
    """

    def __init__(
        self,
        strip: ILedStrip,
        on_duration: float = 0.5,
        on_target_tolerance: float = 0.05
    ):
        self.strip = strip
        self.on_duration = on_duration
        self.on_target_tolerance = on_target_tolerance

    def _pattern_for(self, detection_type: Enum) -> Optional[str]:
        pattern = DETECTION_PATTERNS.get(detection_type.name)
        if pattern is None:
            logger.debug(f"No LED pattern for {detection_type.name}")
        return pattern

    def set_photon_detected_object(
        self,
        pipeline_type: Enum,
        object_pose: Optional[Pose3D] = None
    ) -> None:
        """
        Show an object detected by PhotonVision.

        Args:
            pipeline_type: Pipeline that detected the object
            object_pose: Pose of the object relative to the camera, if known
        """
        pattern = self._pattern_for(pipeline_type)
        if pattern is None:
            return

        self.strip.set_pattern_state(pattern, True, self.on_duration)
        if object_pose is not None and abs(object_pose.x) <= self.on_target_tolerance:
            self.strip.set_pattern_state(ON_TARGET_PATTERN, True, self.on_duration)
        logger.debug(f"LED: {pattern} detected at {object_pose}")

    def set_detected_object_type(self, object_type: Enum) -> None:
        """Show an object type detected by the OpenCV vision."""
        pattern = self._pattern_for(object_type)
        if pattern is not None:
            self.strip.set_pattern_state(pattern, True, self.on_duration)

    def reset(self) -> None:
        """Turn all patterns off."""
        self.strip.reset()
