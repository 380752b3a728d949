"""
Game specific OpenCV vision.

Selects between an AprilTag pipeline and red/blue color blob pipelines
and forwards detection calls to the generic OpenCV detector.
"""

import logging
from dataclasses import dataclass
from enum import Enum
from typing import List, Optional, Sequence

import cv2

from ..core.config import CameraConfig
from ..core.interfaces import IImageSink, IImageSource
from ..utils import inches_to_meters
from .opencv_detector import FilterTarget, OpenCvDetector, SortKey, TargetInfo
from .pipelines import (
    AprilTagPipeline,
    ColorBlobPipeline,
    FilterContourParams,
    OpenCvPipeline,
    PoseEstimatorConfig,
)

logger = logging.getLogger(__name__)


# YCrCb color space
COLOR_CONVERSION = cv2.COLOR_BGR2YCrCb
RED_BLOB_COLOR_THRESHOLDS = (10.0, 180.0, 170.0, 240.0, 80.0, 120.0)
BLUE_BLOB_COLOR_THRESHOLDS = (0.0, 180.0, 80.0, 150.0, 150.0, 200.0)


def color_blob_filter_contour_params() -> FilterContourParams:
    """Contour filter shared by the red and blue blob pipelines."""
    return (
        FilterContourParams()
        .set_min_area(10000.0)
        .set_min_perimeter(200.0)
        .set_width_range(100.0, 1000.0)
        .set_height_range(100.0, 1000.0)
        .set_solidity_range(0.0, 100.0)
        .set_vertices_range(0.0, 1000.0)
        .set_aspect_ratio_range(0.0, 1000.0)
    )


class ObjectType(Enum):
    """Object types the OpenCV vision can be set to detect."""
    APRILTAG = "AprilTag"
    REDBLOB = "RedBlob"
    BLUEBLOB = "BlueBlob"
    NONE = "None"

    def next_object_type(self) -> "ObjectType":
        """Get the next object type in the APRILTAG, REDBLOB, BLUEBLOB, NONE rotation."""
        return _NEXT_OBJECT_TYPE[self]


_NEXT_OBJECT_TYPE = {
    ObjectType.APRILTAG: ObjectType.REDBLOB,
    ObjectType.REDBLOB: ObjectType.BLUEBLOB,
    ObjectType.BLUEBLOB: ObjectType.NONE,
    ObjectType.NONE: ObjectType.APRILTAG,
}


@dataclass
class VisionInfo:
    """Camera parameters used by the OpenCV vision."""
    image_width: int
    image_height: int
    camera_rect: Sequence[Sequence[float]]
    world_rect: Sequence[Sequence[float]]
    april_tag_size: float  # inches
    cam_fx: float
    cam_fy: float
    cam_cx: float
    cam_cy: float
    target_z_offset: float = 0.0
    cam_z_offset: float = 0.0

    @classmethod
    def from_camera_config(cls, config: CameraConfig) -> "VisionInfo":
        return cls(
            image_width=config.resolution_width,
            image_height=config.resolution_height,
            camera_rect=config.camera_rect,
            world_rect=config.world_rect,
            april_tag_size=config.april_tag_size_inches,
            cam_fx=config.cam_fx,
            cam_fy=config.cam_fy,
            cam_cx=config.cam_cx,
            cam_cy=config.cam_cy,
            target_z_offset=config.target_z_offset,
            cam_z_offset=config.cam_z_offset,
        )


class OpenCvVision(OpenCvDetector):
    """
    OpenCV vision with selectable detection pipelines.

    Starts with ObjectType.NONE, i.e. no active pipeline.

    Example:
        >>> vision = OpenCvVision("OpenCvVision", 2, camera_info, sink, source)
        >>> vision.set_detect_object_type(ObjectType.REDBLOB)
        >>> target = vision.get_detected_target_info()
    """

    def __init__(
        self,
        instance_name: str,
        num_image_buffers: int,
        camera_info: VisionInfo,
        sink: IImageSink,
        source: Optional[IImageSource] = None
    ):
        super().__init__(
            instance_name, num_image_buffers, camera_info.camera_rect,
            camera_info.world_rect, sink, source
        )
        self.camera_info = camera_info

        self.april_tag_pipeline = AprilTagPipeline(
            "tag16h5",
            PoseEstimatorConfig(
                inches_to_meters(camera_info.april_tag_size), camera_info.cam_fx,
                camera_info.cam_fy, camera_info.cam_cx, camera_info.cam_cy
            )
        )
        self.red_blob_pipeline = ColorBlobPipeline(
            "redBlobPipeline", COLOR_CONVERSION, RED_BLOB_COLOR_THRESHOLDS,
            color_blob_filter_contour_params(), True
        )
        self.blue_blob_pipeline = ColorBlobPipeline(
            "blueBlobPipeline", COLOR_CONVERSION, BLUE_BLOB_COLOR_THRESHOLDS,
            color_blob_filter_contour_params(), True
        )
        self._object_type = ObjectType.NONE

    def _update_pipeline(self) -> None:
        """Activate the pipeline for the selected object type."""
        logger.debug(f"{self.instance_name}: objType={self._object_type.name}")
        pipelines = {
            ObjectType.APRILTAG: self.april_tag_pipeline,
            ObjectType.REDBLOB: self.red_blob_pipeline,
            ObjectType.BLUEBLOB: self.blue_blob_pipeline,
            ObjectType.NONE: None,
        }
        self.set_pipeline(pipelines[self._object_type])

    def set_detect_object_type(self, object_type: ObjectType) -> None:
        """Set the object type to detect."""
        self._object_type = object_type
        self._update_pipeline()

    def set_next_object_type(self) -> None:
        """Set the object type to detect to the next one in the rotation."""
        self.set_detect_object_type(self._object_type.next_object_type())

    def get_detect_object_type(self) -> ObjectType:
        return self._object_type

    def _require_pipeline(self) -> Optional[OpenCvPipeline]:
        pipeline = self.get_pipeline()
        if pipeline is None:
            logger.debug(f"{self.instance_name}: no active pipeline")
        return pipeline

    def set_annotate_enabled(self, enabled: bool) -> None:
        """Enable or disable annotation of detected objects. No-op without a pipeline."""
        pipeline = self._require_pipeline()
        if pipeline is not None:
            pipeline.set_annotate_enabled(enabled)

    def is_annotate_enabled(self) -> bool:
        pipeline = self._require_pipeline()
        return pipeline is not None and pipeline.is_annotate_enabled()

    def set_video_output(self, intermediate_step: int) -> None:
        """
        Set the intermediate image of the active pipeline used as video output.

        Args:
            intermediate_step: 1 is the original frame, 0 disables video output
        """
        pipeline = self._require_pipeline()
        if pipeline is not None:
            pipeline.set_video_output(intermediate_step)

    def get_detected_target_info(
        self,
        filter_target: Optional[FilterTarget] = None,
        sort_key: Optional[SortKey] = None
    ) -> Optional[TargetInfo]:
        """
        Get the best detected target.

        Args:
            filter_target: Called on each detected object to drop false positives
            sort_key: Sort key ranking the targets, the first one is returned

        Returns:
            Target info, or None if no target was detected
        """
        targets: Optional[List[TargetInfo]] = self.get_detected_targets_info(
            filter_target, sort_key,
            self.camera_info.target_z_offset, self.camera_info.cam_z_offset
        )
        return targets[0] if targets else None
