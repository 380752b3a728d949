"""
Robot Vision Adapters

Vision adapters for a competition robot's control system. It provides:
- An OpenCV pipeline selector (AprilTag, red blob and blue blob detectors)
- A PhotonVision coprocessor client with AprilTag field layout lookups
- An LED indicator showing what the vision currently detects
- An MJPEG stream of the annotated video output

Version: 1.0.0
"""

__version__ = "1.0.0"

from .core.vision_module import VisionModule
from .core.config import Config
from .vision.opencv_vision import OpenCvVision, ObjectType
from .photon.photon_vision_raw import PhotonVisionRaw, PipelineType
from .indicators.led_indicator import LedIndicator

__all__ = [
    "VisionModule",
    "Config",
    "OpenCvVision",
    "ObjectType",
    "PhotonVisionRaw",
    "PipelineType",
    "LedIndicator",
]
