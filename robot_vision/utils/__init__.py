"""
Utility functions and helpers for the robot vision adapters.
"""

import asyncio
import logging
import time
import numpy as np
from typing import Optional

logger = logging.getLogger(__name__)

METERS_PER_INCH = 0.0254


def inches_to_meters(inches: float) -> float:
    """Convert inches to meters."""
    return inches * METERS_PER_INCH


class Timer:
    """Simple timer utility for measuring elapsed time."""

    def __init__(self):
        self._start_time: Optional[float] = None
        self._elapsed: float = 0.0
        self._running = False

    def start(self) -> None:
        """Start the timer."""
        if not self._running:
            self._start_time = time.monotonic()
            self._running = True

    def stop(self) -> float:
        """Stop the timer and return elapsed time."""
        if self._running:
            self._elapsed += time.monotonic() - self._start_time
            self._running = False
        return self._elapsed

    @property
    def elapsed(self) -> float:
        """Get elapsed time in seconds."""
        if self._running:
            return self._elapsed + (time.monotonic() - self._start_time)
        return self._elapsed

    def __enter__(self):
        self.start()
        return self

    def __exit__(self, *args):
        self.stop()


class RateLimit:
    """Rate limiter utility."""

    def __init__(self, rate_hz: float):
        """
        Initialize rate limiter.

        Args:
            rate_hz: Maximum rate in Hz
        """
        if rate_hz <= 0:
            raise ValueError(f"rate_hz must be positive, got {rate_hz}")
        self._min_interval = 1.0 / rate_hz
        self._last_time = 0.0

    async def wait(self) -> None:
        """Wait until rate limit allows next event."""
        current = time.monotonic()
        remaining = self._min_interval - (current - self._last_time)

        if remaining > 0:
            await asyncio.sleep(remaining)

        self._last_time = time.monotonic()


def generate_apriltag(
    tag_id: int,
    family: str = "tag16h5",
    size_pixels: int = 200,
    border_pixels: int = 40
) -> np.ndarray:
    """
    Generate a BGR image of an AprilTag on a white background.

    Args:
        tag_id: Tag ID to generate
        family: AprilTag family name
        size_pixels: Size of the tag in pixels
        border_pixels: White margin around the tag

    Returns:
        Tag image as numpy array
    """
    import cv2
    import cv2.aruco as aruco

    from ..vision.pipelines import APRILTAG_FAMILY_MAP

    dict_id = APRILTAG_FAMILY_MAP.get(family)
    if dict_id is None:
        raise ValueError(f"Unknown AprilTag family: {family}")

    tag_dict = aruco.getPredefinedDictionary(dict_id)
    tag_image = aruco.generateImageMarker(tag_dict, tag_id, size_pixels, borderBits=1)
    tag_image = cv2.copyMakeBorder(
        tag_image, border_pixels, border_pixels, border_pixels, border_pixels,
        cv2.BORDER_CONSTANT, value=255
    )

    return cv2.cvtColor(tag_image, cv2.COLOR_GRAY2BGR)


def create_default_config_file(filepath: str) -> None:
    """
    Create a default configuration file.

    Args:
        filepath: Path to save the config file
    """
    from ..core.config import Config

    config = Config()
    config.save(filepath)
    logger.info(f"Created default config at {filepath}")
