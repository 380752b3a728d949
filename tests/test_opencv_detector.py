"""
Tests for the generic OpenCV detector.
"""

import numpy as np
import pytest

from robot_vision.vision.opencv_detector import HomographyMapper, OpenCvDetector, TargetInfo
from robot_vision.vision.opencv_vision import (
    COLOR_CONVERSION,
    RED_BLOB_COLOR_THRESHOLDS,
    color_blob_filter_contour_params,
)
from robot_vision.vision.pipelines import ColorBlobPipeline, DetectedObject

from conftest import RED_BGR, FakeSink, FakeSource, make_blob_frame

CAMERA_RECT = [[0.0, 120.0], [639.0, 120.0], [0.0, 479.0], [639.0, 479.0]]
WORLD_RECT = [[-60.0, 120.0], [60.0, 120.0], [-12.0, 16.0], [12.0, 16.0]]


@pytest.fixture
def red_pipeline():
    return ColorBlobPipeline(
        "redBlobPipeline", COLOR_CONVERSION, RED_BLOB_COLOR_THRESHOLDS,
        color_blob_filter_contour_params(), True
    )


def make_detector(frames, source=None):
    return OpenCvDetector("TestDetector", 2, CAMERA_RECT, WORLD_RECT, FakeSink(frames), source)


class TestHomographyMapper:
    def test_corners_map_exactly(self):
        mapper = HomographyMapper(CAMERA_RECT, WORLD_RECT)
        for (px, py), (wx, wy) in zip(CAMERA_RECT, WORLD_RECT):
            assert mapper.map_point(px, py) == pytest.approx((wx, wy), abs=1e-3)

    def test_center_line_maps_to_zero_x(self):
        mapper = HomographyMapper(CAMERA_RECT, WORLD_RECT)
        x, y = mapper.map_point(319.5, 300.0)
        assert x == pytest.approx(0.0, abs=1e-3)
        assert 16.0 < y < 120.0


class TestTargetInfo:
    def make_target(self, x, y):
        obj = DetectedObject("blob", (0, 0, 10, 10), 100.0, 5.0, 5.0)
        return TargetInfo(obj, obj.rect, (5.0, 5.0), x, y, 2.0, 10.0)

    def test_distance_includes_height_difference(self):
        target = self.make_target(3.0, 4.0)
        assert target.ground_distance == pytest.approx(5.0)
        assert target.distance == pytest.approx((25.0 + 64.0) ** 0.5)

    def test_horizontal_angle(self):
        assert self.make_target(10.0, 10.0).horizontal_angle == pytest.approx(45.0)
        assert self.make_target(-10.0, 10.0).horizontal_angle == pytest.approx(-45.0)


class TestOpenCvDetector:
    def test_requires_image_buffer(self):
        with pytest.raises(ValueError):
            OpenCvDetector("Bad", 0, None, None, FakeSink())

    def test_no_pipeline_returns_none(self, red_frame):
        detector = make_detector([red_frame])
        assert detector.get_detected_targets_info() is None

    def test_no_frame_returns_none(self, red_pipeline):
        detector = make_detector([])
        detector.set_pipeline(red_pipeline)
        assert detector.get_detected_targets_info() is None

    def test_nothing_detected_returns_none(self, red_pipeline, empty_frame):
        detector = make_detector([empty_frame])
        detector.set_pipeline(red_pipeline)
        assert detector.get_detected_targets_info() is None

    def test_detects_target(self, red_pipeline, red_frame):
        detector = make_detector([red_frame])
        detector.set_pipeline(red_pipeline)

        targets = detector.get_detected_targets_info(None, None, 2.0, 10.0)

        assert len(targets) == 1
        assert targets[0].image_rect == (100, 100, 200, 150)
        assert targets[0].object_height_offset == 2.0
        assert targets[0].camera_height_offset == 10.0
        # Blob is left of the image center
        assert targets[0].target_x < 0.0

    def test_filter_drops_targets(self, red_pipeline, red_frame):
        detector = make_detector([red_frame])
        detector.set_pipeline(red_pipeline)
        assert detector.get_detected_targets_info(lambda obj: obj.area > 1e6) is None

    def test_sort_key_orders_targets(self, red_pipeline):
        frame = make_blob_frame(RED_BGR, rect=(20, 150, 150, 120))
        frame[150:270, 400:600] = RED_BGR
        detector = make_detector([frame])
        detector.set_pipeline(red_pipeline)

        targets = detector.get_detected_targets_info(sort_key=lambda t: -t.detected_object.area)

        assert len(targets) == 2
        assert targets[0].detected_object.area > targets[1].detected_object.area
        assert targets[0].image_rect[0] == 400

    def test_publishes_annotated_output(self, red_pipeline, red_frame):
        source = FakeSource()
        detector = make_detector([red_frame], source)
        detector.set_pipeline(red_pipeline)

        detector.get_detected_targets_info()

        assert len(source.frames) == 1
        assert source.frames[0].shape == red_frame.shape
        assert not np.array_equal(source.frames[0], red_frame)

    def test_video_output_disabled(self, red_pipeline, red_frame):
        source = FakeSource()
        detector = make_detector([red_frame], source)
        detector.set_pipeline(red_pipeline)
        red_pipeline.set_video_output(0)

        detector.get_detected_targets_info()

        assert source.frames == []

    def test_frames_rotate_through_buffers(self, red_pipeline, red_frame, empty_frame):
        detector = make_detector([red_frame, empty_frame, red_frame])
        detector.set_pipeline(red_pipeline)

        assert detector.get_detected_targets_info() is not None
        assert detector.get_detected_targets_info() is None
        assert detector.get_detected_targets_info() is not None
        assert detector.sink.grab_count == 3

    def test_frames_copied_into_successive_buffers(self, red_pipeline, red_frame, empty_frame):
        detector = make_detector([red_frame, empty_frame, red_frame])
        detector.set_pipeline(red_pipeline)
        assert detector.image_buffers == (None, None)

        detector.get_detected_objects()
        first = detector.image_buffers[0]
        assert np.array_equal(first, red_frame)
        assert first is not red_frame
        assert detector.image_buffers[1] is None

        detector.get_detected_objects()
        assert np.array_equal(detector.image_buffers[1], empty_frame)

        detector.get_detected_objects()
        assert detector.image_buffers[0] is first
        assert np.array_equal(first, red_frame)
