"""
Pose types and coordinate-convention conversions.

Field layouts and the vision coprocessor report poses in the field
convention (x forward, y left, z up). The robot code works in its own
convention (x right, y forward, z up). Converting between them is a
fixed axis permutation with sign flips on x and yaw.
"""

import math
from dataclasses import dataclass
from typing import Tuple


@dataclass(frozen=True)
class Pose3D:
    """Robot-convention 3D pose. Units are meters and radians."""
    x: float
    y: float
    z: float
    yaw: float = 0.0
    pitch: float = 0.0
    roll: float = 0.0

    def as_tuple(self) -> Tuple[float, float, float, float, float, float]:
        return (self.x, self.y, self.z, self.yaw, self.pitch, self.roll)

    def __str__(self) -> str:
        return (
            f"(x={self.x:.3f}, y={self.y:.3f}, z={self.z:.3f}, "
            f"yaw={math.degrees(self.yaw):.1f}, "
            f"pitch={math.degrees(self.pitch):.1f}, "
            f"roll={math.degrees(self.roll):.1f})"
        )


@dataclass(frozen=True)
class FieldPose:
    """Field-convention 3D pose with a unit quaternion rotation."""
    x: float
    y: float
    z: float
    qw: float = 1.0
    qx: float = 0.0
    qy: float = 0.0
    qz: float = 0.0

    @property
    def roll(self) -> float:
        return quaternion_to_euler(self.qw, self.qx, self.qy, self.qz)[0]

    @property
    def pitch(self) -> float:
        return quaternion_to_euler(self.qw, self.qx, self.qy, self.qz)[1]

    @property
    def yaw(self) -> float:
        return quaternion_to_euler(self.qw, self.qx, self.qy, self.qz)[2]


def quaternion_to_euler(
    qw: float, qx: float, qy: float, qz: float
) -> Tuple[float, float, float]:
    """
    Convert a quaternion to extrinsic X-Y-Z Euler angles.

    Args:
        qw, qx, qy, qz: Quaternion components

    Returns:
        Tuple of (roll, pitch, yaw) in radians
    """
    roll = math.atan2(2.0 * (qw * qx + qy * qz), 1.0 - 2.0 * (qx * qx + qy * qy))

    ratio = 2.0 * (qw * qy - qz * qx)
    if abs(ratio) >= 1.0:
        # Gimbal lock
        pitch = math.copysign(math.pi / 2.0, ratio)
    else:
        pitch = math.asin(ratio)

    yaw = math.atan2(2.0 * (qw * qz + qx * qy), 1.0 - 2.0 * (qy * qy + qz * qz))

    return roll, pitch, yaw


def field_to_robot(
    x: float, y: float, z: float,
    roll: float, pitch: float, yaw: float
) -> Pose3D:
    """
    Convert a field-convention pose to the robot convention.

    Args:
        x, y, z: Field-convention translation in meters
        roll, pitch, yaw: Field-convention rotation in radians

    Returns:
        Robot-convention pose
    """
    return Pose3D(-y, x, z, -yaw, pitch, roll)


def robot_to_field(pose: Pose3D) -> Tuple[float, float, float, float, float, float]:
    """
    Convert a robot-convention pose back to the field convention.

    Returns:
        Tuple of (x, y, z, roll, pitch, yaw)
    """
    return (pose.y, -pose.x, pose.z, pose.roll, pose.pitch, -pose.yaw)


def field_pose_to_robot(pose: FieldPose) -> Pose3D:
    """Convert a quaternion field pose to the robot convention."""
    roll, pitch, yaw = quaternion_to_euler(pose.qw, pose.qx, pose.qy, pose.qz)
    return field_to_robot(pose.x, pose.y, pose.z, roll, pitch, yaw)
