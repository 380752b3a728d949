"""
Vision module containing the OpenCV pipelines, detector and field layouts.
"""

from .pipelines import (
    AprilTagPipeline,
    ColorBlobPipeline,
    DetectedObject,
    FilterContourParams,
    PoseEstimatorConfig,
    APRILTAG_FAMILY_MAP,
)
from .opencv_detector import OpenCvDetector, HomographyMapper, TargetInfo
from .opencv_vision import OpenCvVision, ObjectType, VisionInfo
from .field_layout import AprilTagFieldLayout, AprilTagFields, FieldLayoutError
from .image_io import CameraSink, MjpegStreamSource, StaticFrameSink

__all__ = [
    "AprilTagPipeline",
    "ColorBlobPipeline",
    "DetectedObject",
    "FilterContourParams",
    "PoseEstimatorConfig",
    "APRILTAG_FAMILY_MAP",
    "OpenCvDetector",
    "HomographyMapper",
    "TargetInfo",
    "OpenCvVision",
    "ObjectType",
    "VisionInfo",
    "AprilTagFieldLayout",
    "AprilTagFields",
    "FieldLayoutError",
    "CameraSink",
    "MjpegStreamSource",
    "StaticFrameSink",
]
