"""
Pytest configuration and shared fixtures.
"""

import os
import sys
from typing import Dict, List, Optional, Sequence

import numpy as np
import pytest

# Add the project root to path for imports
sys.path.insert(0, os.path.join(os.path.dirname(__file__), ".."))

from robot_vision.core.interfaces import IImageSink, IImageSource, ILedStrip, IVisionTable
from robot_vision.utils import generate_apriltag

# BGR colors whose YCrCb values fall inside the red and blue blob thresholds
RED_BGR = (40, 40, 200)
BLUE_BGR = (180, 70, 40)
GRAY_BGR = (128, 128, 128)


class FakeSink(IImageSink):
    """Image sink returning queued frames, then repeating the last one."""

    def __init__(self, frames: Optional[List[np.ndarray]] = None):
        self.frames = list(frames or [])
        self.grab_count = 0

    def grab_frame(self) -> Optional[np.ndarray]:
        self.grab_count += 1
        if not self.frames:
            return None
        if len(self.frames) > 1:
            return self.frames.pop(0)
        return self.frames[0].copy()


class FakeSource(IImageSource):
    """Image source recording every published frame."""

    def __init__(self):
        self.frames: List[np.ndarray] = []

    def put_frame(self, frame: np.ndarray) -> None:
        self.frames.append(frame.copy())


class FakeVisionTable(IVisionTable):
    """Dictionary backed vision table recording writes."""

    def __init__(self, values: Optional[Dict[str, object]] = None):
        self.values: Dict[str, object] = dict(values or {})
        self.writes: List[tuple] = []

    def get_boolean(self, key: str, default: bool = False) -> bool:
        return bool(self.values.get(key, default))

    def get_number(self, key: str, default: float = 0.0) -> float:
        return float(self.values.get(key, default))

    def get_number_array(self, key: str, default: Sequence[float] = ()) -> List[float]:
        return list(self.values.get(key, default))

    def set_number(self, key: str, value: float) -> None:
        self.values[key] = value
        self.writes.append((key, value))


class RecordingLedStrip(ILedStrip):
    """LED strip recording every pattern call."""

    def __init__(self):
        self.calls: List[tuple] = []
        self.reset_count = 0

    def set_pattern_state(self, pattern: str, enabled: bool, duration: float = 0.0) -> None:
        self.calls.append((pattern, enabled, duration))

    def reset(self) -> None:
        self.reset_count += 1


def make_blob_frame(color, rect=(100, 100, 200, 150), size=(480, 640)) -> np.ndarray:
    """Gray frame with one filled rectangle of the given BGR color."""
    frame = np.full((size[0], size[1], 3), GRAY_BGR, dtype=np.uint8)
    x, y, w, h = rect
    frame[y:y + h, x:x + w] = color
    return frame


def make_apriltag_frame(tag_id: int = 3, size=(480, 640)) -> np.ndarray:
    """Gray frame with a 200 pixel tag16h5 AprilTag centered in it."""
    frame = np.full((size[0], size[1], 3), GRAY_BGR, dtype=np.uint8)
    tag = generate_apriltag(tag_id, "tag16h5", size_pixels=200, border_pixels=40)
    th, tw = tag.shape[:2]
    top = (size[0] - th) // 2
    left = (size[1] - tw) // 2
    frame[top:top + th, left:left + tw] = tag
    return frame


@pytest.fixture
def red_frame():
    return make_blob_frame(RED_BGR)


@pytest.fixture
def blue_frame():
    return make_blob_frame(BLUE_BGR)


@pytest.fixture
def empty_frame():
    return np.full((480, 640, 3), GRAY_BGR, dtype=np.uint8)


@pytest.fixture
def apriltag_frame():
    return make_apriltag_frame()


@pytest.fixture
def vision_table():
    return FakeVisionTable()


@pytest.fixture
def led_strip():
    return RecordingLedStrip()


@pytest.fixture
def camera_info():
    from robot_vision.vision.opencv_vision import VisionInfo

    return VisionInfo(
        image_width=640,
        image_height=480,
        camera_rect=[[0.0, 120.0], [639.0, 120.0], [0.0, 479.0], [639.0, 479.0]],
        world_rect=[[-60.0, 120.0], [60.0, 120.0], [-12.0, 16.0], [12.0, 16.0]],
        april_tag_size=6.0,
        cam_fx=576.0,
        cam_fy=576.0,
        cam_cx=320.0,
        cam_cy=240.0,
        target_z_offset=2.0,
        cam_z_offset=10.0,
    )
