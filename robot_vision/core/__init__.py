"""
Core module containing interfaces, pose types and configuration.
"""

from .config import (
    Config,
    CameraConfig,
    VisionConfig,
    PhotonVisionConfig,
    StreamConfig,
    LedConfig,
)
from .interfaces import (
    IImageSink,
    IImageSource,
    IVisionTable,
    ILedStrip,
)
from .geometry import (
    Pose3D,
    FieldPose,
    quaternion_to_euler,
    field_to_robot,
    robot_to_field,
    field_pose_to_robot,
)

__all__ = [
    # Config
    "Config",
    "CameraConfig",
    "VisionConfig",
    "PhotonVisionConfig",
    "StreamConfig",
    "LedConfig",
    # Interfaces
    "IImageSink",
    "IImageSource",
    "IVisionTable",
    "ILedStrip",
    # Geometry
    "Pose3D",
    "FieldPose",
    "quaternion_to_euler",
    "field_to_robot",
    "robot_to_field",
    "field_pose_to_robot",
]
