"""
Tests for AprilTag field layouts.
"""

import json
import math
import pytest

from robot_vision.vision.field_layout import (
    AprilTagFieldLayout,
    AprilTagFields,
    FieldLayoutError,
)


@pytest.fixture
def crescendo():
    return AprilTagFieldLayout.load_from_resource(AprilTagFields.K2024_CRESCENDO)


class TestBundledLayout:
    def test_loads_all_tags(self, crescendo):
        assert len(crescendo) == 16
        assert crescendo.tag_ids == list(range(1, 17))

    def test_field_dimensions(self, crescendo):
        assert crescendo.field_length == pytest.approx(16.541)
        assert crescendo.field_width == pytest.approx(8.211)

    def test_tag_pose(self, crescendo):
        pose = crescendo.get_tag_pose(7)
        assert pose.x == pytest.approx(-0.0381)
        assert pose.y == pytest.approx(5.547868)
        assert pose.z == pytest.approx(1.451102)
        assert pose.yaw == pytest.approx(0.0)

    def test_tag_facing_opposite_wall(self, crescendo):
        assert abs(crescendo.get_tag_pose(4).yaw) == pytest.approx(math.pi)

    def test_unknown_tag(self, crescendo):
        assert crescendo.get_tag_pose(0) is None
        assert crescendo.get_tag_pose(17) is None
        assert 17 not in crescendo

    def test_layout_is_read_only(self, crescendo):
        with pytest.raises(TypeError):
            crescendo._tags[99] = crescendo.get_tag_pose(1)


class TestLoadErrors:
    def test_missing_file(self, tmp_path):
        with pytest.raises(FieldLayoutError):
            AprilTagFieldLayout.from_file(tmp_path / "missing.json")

    def test_invalid_json(self, tmp_path):
        path = tmp_path / "bad.json"
        path.write_text("{not json")
        with pytest.raises(FieldLayoutError):
            AprilTagFieldLayout.from_file(path)

    def test_missing_field_section(self, tmp_path):
        path = tmp_path / "nofield.json"
        path.write_text(json.dumps({"tags": []}))
        with pytest.raises(FieldLayoutError):
            AprilTagFieldLayout.from_file(path)

    def test_field_layout_error_is_io_error(self):
        assert issubclass(FieldLayoutError, IOError)


class TestFromDict:
    def test_custom_layout(self):
        layout = AprilTagFieldLayout.from_dict({
            "tags": [{
                "ID": 42,
                "pose": {
                    "translation": {"x": 1.0, "y": 2.0, "z": 3.0},
                    "rotation": {"quaternion": {"W": 1.0, "X": 0.0, "Y": 0.0, "Z": 0.0}},
                },
            }],
            "field": {"length": 10.0, "width": 5.0},
        })
        assert layout.tag_ids == [42]
        assert layout.get_tag_pose(42).z == 3.0
