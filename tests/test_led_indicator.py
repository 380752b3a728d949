"""
Tests for the LED indicator.
"""

import time

from robot_vision.core.geometry import Pose3D
from robot_vision.indicators.led_indicator import (
    APRILTAG_PATTERN,
    BLUE_BLOB_PATTERN,
    NOTE_PATTERN,
    ON_TARGET_PATTERN,
    RED_BLOB_PATTERN,
    LedIndicator,
    SimulatedLedStrip,
)
from robot_vision.photon.photon_vision_raw import PipelineType
from robot_vision.vision.opencv_vision import ObjectType


class TestLedIndicator:
    def test_photon_pattern_per_pipeline(self, led_strip):
        indicator = LedIndicator(led_strip, 0.25)
        indicator.set_photon_detected_object(PipelineType.APRILTAG)
        indicator.set_photon_detected_object(PipelineType.NOTE)

        assert led_strip.calls == [
            (APRILTAG_PATTERN, True, 0.25),
            (NOTE_PATTERN, True, 0.25),
        ]

    def test_on_target_tolerance(self, led_strip):
        indicator = LedIndicator(led_strip, on_target_tolerance=0.1)
        indicator.set_photon_detected_object(PipelineType.NOTE, Pose3D(0.2, 1.0, 0.0))
        assert all(call[0] != ON_TARGET_PATTERN for call in led_strip.calls)

        indicator.set_photon_detected_object(PipelineType.NOTE, Pose3D(-0.05, 1.0, 0.0))
        assert led_strip.calls[-1][0] == ON_TARGET_PATTERN

    def test_opencv_object_types(self, led_strip):
        indicator = LedIndicator(led_strip)
        indicator.set_detected_object_type(ObjectType.REDBLOB)
        indicator.set_detected_object_type(ObjectType.BLUEBLOB)
        indicator.set_detected_object_type(ObjectType.NONE)

        assert [call[0] for call in led_strip.calls] == [RED_BLOB_PATTERN, BLUE_BLOB_PATTERN]

    def test_reset(self, led_strip):
        LedIndicator(led_strip).reset()
        assert led_strip.reset_count == 1


class TestSimulatedLedStrip:
    def test_pattern_on_and_off(self):
        strip = SimulatedLedStrip()
        strip.set_pattern_state(NOTE_PATTERN, True)
        assert strip.is_pattern_on(NOTE_PATTERN)

        strip.set_pattern_state(NOTE_PATTERN, False)
        assert not strip.is_pattern_on(NOTE_PATTERN)

    def test_pattern_expires(self):
        strip = SimulatedLedStrip()
        strip.set_pattern_state(APRILTAG_PATTERN, True, 0.01)
        time.sleep(0.02)
        assert not strip.is_pattern_on(APRILTAG_PATTERN)

    def test_active_pattern_priority(self):
        strip = SimulatedLedStrip()
        strip.set_pattern_state(BLUE_BLOB_PATTERN, True)
        strip.set_pattern_state(APRILTAG_PATTERN, True)
        assert strip.active_pattern == APRILTAG_PATTERN

        strip.set_pattern_state(ON_TARGET_PATTERN, True)
        assert strip.active_pattern == ON_TARGET_PATTERN

        strip.reset()
        assert strip.active_pattern is None
