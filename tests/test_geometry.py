"""
Tests for pose types and coordinate conversions.
"""

import math
import pytest

from robot_vision.core.geometry import (
    FieldPose,
    Pose3D,
    field_pose_to_robot,
    field_to_robot,
    quaternion_to_euler,
    robot_to_field,
)


class TestQuaternionToEuler:
    def test_identity(self):
        assert quaternion_to_euler(1.0, 0.0, 0.0, 0.0) == pytest.approx((0.0, 0.0, 0.0))

    def test_pure_yaw(self):
        half = math.radians(120.0) / 2
        roll, pitch, yaw = quaternion_to_euler(math.cos(half), 0.0, 0.0, math.sin(half))
        assert roll == pytest.approx(0.0)
        assert pitch == pytest.approx(0.0)
        assert yaw == pytest.approx(math.radians(120.0))

    def test_pure_roll(self):
        half = math.radians(30.0) / 2
        roll, pitch, yaw = quaternion_to_euler(math.cos(half), math.sin(half), 0.0, 0.0)
        assert roll == pytest.approx(math.radians(30.0))
        assert yaw == pytest.approx(0.0)

    def test_gimbal_lock_pitch(self):
        half = math.pi / 4
        _, pitch, _ = quaternion_to_euler(math.cos(half), 0.0, math.sin(half), 0.0)
        assert pitch == pytest.approx(math.pi / 2)


class TestFieldToRobot:
    def test_axis_permutation(self):
        pose = field_to_robot(1.0, 2.0, 3.0, 0.1, 0.2, 0.3)
        assert pose == Pose3D(-2.0, 1.0, 3.0, -0.3, 0.2, 0.1)

    def test_inverse_restores_field_pose(self):
        field = (4.5, -1.25, 0.75, 0.05, -0.2, 1.1)
        assert robot_to_field(field_to_robot(*field)) == pytest.approx(field)

    def test_forward_restores_robot_pose(self):
        pose = Pose3D(0.3, -0.7, 1.2, 0.4, 0.1, -0.6)
        assert field_to_robot(*robot_to_field(pose)) == pose

    def test_field_pose_conversion(self):
        half = math.pi / 4
        pose = field_pose_to_robot(FieldPose(1.0, 2.0, 0.5, math.cos(half), 0.0, 0.0, math.sin(half)))
        assert pose.x == pytest.approx(-2.0)
        assert pose.y == pytest.approx(1.0)
        assert pose.z == pytest.approx(0.5)
        assert pose.yaw == pytest.approx(-math.pi / 2)


class TestFieldPose:
    def test_euler_properties(self):
        half = math.radians(60.0) / 2
        pose = FieldPose(0.0, 0.0, 0.0, math.cos(half), 0.0, 0.0, math.sin(half))
        assert pose.yaw == pytest.approx(math.radians(60.0))
        assert pose.pitch == pytest.approx(0.0)
        assert pose.roll == pytest.approx(0.0)
