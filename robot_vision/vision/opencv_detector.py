"""
Generic OpenCV detector.

Grabs frames from an image sink, runs the active pipeline on them, maps
the detections onto the ground plane with a homography and pushes the
annotated output to an image source.
"""

import logging
import math
from dataclasses import dataclass
from typing import Callable, List, Optional, Sequence, Tuple, Any

import cv2
import numpy as np

from ..core.interfaces import IImageSink, IImageSource
from .pipelines import DetectedObject, OpenCvPipeline

logger = logging.getLogger(__name__)

FilterTarget = Callable[[DetectedObject], bool]
SortKey = Callable[["TargetInfo"], Any]


class HomographyMapper:
    """
    Maps image pixel coordinates onto ground-plane coordinates.

    Both rects are four corner points ordered top-left, top-right,
    bottom-left, bottom-right.
    """

    def __init__(
        self,
        camera_rect: Sequence[Sequence[float]],
        world_rect: Sequence[Sequence[float]]
    ):
        src = np.array(camera_rect, dtype=np.float32).reshape(4, 2)
        dst = np.array(world_rect, dtype=np.float32).reshape(4, 2)
        self._matrix = cv2.getPerspectiveTransform(src, dst)

    @property
    def matrix(self) -> np.ndarray:
        return self._matrix

    def map_point(self, x: float, y: float) -> Tuple[float, float]:
        """Map one image point to the ground plane."""
        point = np.array([[[x, y]]], dtype=np.float32)
        mapped = cv2.perspectiveTransform(point, self._matrix)
        return float(mapped[0][0][0]), float(mapped[0][0][1])


@dataclass
class TargetInfo:
    """A detected object with its ground-plane location."""
    detected_object: DetectedObject
    image_rect: Tuple[int, int, int, int]
    image_center: Tuple[float, float]
    # Ground-plane position relative to the camera, x right and y forward
    target_x: float
    target_y: float
    object_height_offset: float
    camera_height_offset: float

    @property
    def horizontal_angle(self) -> float:
        """Bearing to the target in degrees, positive to the right."""
        return math.degrees(math.atan2(self.target_x, self.target_y))

    @property
    def ground_distance(self) -> float:
        return math.hypot(self.target_x, self.target_y)

    @property
    def distance(self) -> float:
        """Straight-line distance including the camera to target height difference."""
        dz = self.camera_height_offset - self.object_height_offset
        return math.sqrt(self.target_x ** 2 + self.target_y ** 2 + dz ** 2)

    def __str__(self) -> str:
        return (
            f"{self.detected_object.label}: rect={self.image_rect}, "
            f"pos=({self.target_x:.1f}, {self.target_y:.1f}), "
            f"angle={self.horizontal_angle:.1f}, dist={self.distance:.1f}"
        )


class OpenCvDetector:
    """
    Runs an OpenCV pipeline on frames from an image sink.

    Attributes:
        instance_name: Name used in log messages
        homography_mapper: Pixel to ground-plane mapper, None if no rects given
    """

    def __init__(
        self,
        instance_name: str,
        num_image_buffers: int,
        camera_rect: Optional[Sequence[Sequence[float]]],
        world_rect: Optional[Sequence[Sequence[float]]],
        sink: IImageSink,
        source: Optional[IImageSource] = None
    ):
        if num_image_buffers < 1:
            raise ValueError(f"num_image_buffers must be at least 1, got {num_image_buffers}")

        self.instance_name = instance_name
        self.sink = sink
        self.source = source
        self.homography_mapper: Optional[HomographyMapper] = None
        if camera_rect is not None and world_rect is not None:
            self.homography_mapper = HomographyMapper(camera_rect, world_rect)

        self._image_buffers: List[Optional[np.ndarray]] = [None] * num_image_buffers
        self._buffer_index = 0
        self._pipeline: Optional[OpenCvPipeline] = None

        logger.info(f"{instance_name}: OpenCvDetector initialized ({num_image_buffers} image buffers)")

    def set_pipeline(self, pipeline: Optional[OpenCvPipeline]) -> None:
        """Set the active pipeline, None to stop processing."""
        if pipeline is not self._pipeline:
            logger.info(
                f"{self.instance_name}: pipeline set to "
                f"{pipeline.name if pipeline is not None else None}"
            )
            self._pipeline = pipeline

    def get_pipeline(self) -> Optional[OpenCvPipeline]:
        return self._pipeline

    @property
    def image_buffers(self) -> Tuple[Optional[np.ndarray], ...]:
        """Frame buffers, None for slots not filled yet."""
        return tuple(self._image_buffers)

    def _next_frame(self) -> Optional[np.ndarray]:
        """Copy a grabbed frame into the next image buffer and return that buffer."""
        frame = self.sink.grab_frame()
        if frame is None:
            return None

        buffer = self._image_buffers[self._buffer_index]
        if buffer is None or buffer.shape != frame.shape or buffer.dtype != frame.dtype:
            buffer = np.empty_like(frame)
            self._image_buffers[self._buffer_index] = buffer
        np.copyto(buffer, frame)
        self._buffer_index = (self._buffer_index + 1) % len(self._image_buffers)
        return buffer

    def get_detected_objects(self) -> Optional[List[DetectedObject]]:
        """
        Process the next frame with the active pipeline.

        Returns:
            Detected objects, or None if no pipeline is active or no frame
            is available
        """
        pipeline = self._pipeline
        if pipeline is None:
            return None

        frame = self._next_frame()
        if frame is None:
            logger.debug(f"{self.instance_name}: no frame available")
            return None

        detections = pipeline.process(frame)
        self._publish_output(pipeline, frame, detections)
        return detections

    def _publish_output(
        self,
        pipeline: OpenCvPipeline,
        frame: np.ndarray,
        detections: List[DetectedObject]
    ) -> None:
        if self.source is None:
            return

        output = pipeline.get_intermediate_output()
        if output is None:
            return
        if pipeline.is_annotate_enabled() and detections:
            output = pipeline.annotate(output, detections)
        self.source.put_frame(output)

    def get_detected_targets_info(
        self,
        filter_target: Optional[FilterTarget] = None,
        sort_key: Optional[SortKey] = None,
        object_height_offset: float = 0.0,
        camera_height_offset: float = 0.0
    ) -> Optional[List[TargetInfo]]:
        """
        Get info of the detected targets.

        Args:
            filter_target: Called on each detected object, False drops it
            sort_key: Sort key for the returned targets, None keeps pipeline order
            object_height_offset: Height of the target above the ground
            camera_height_offset: Height of the camera above the ground

        Returns:
            List of target info, or None if nothing was detected
        """
        detections = self.get_detected_objects()
        if not detections:
            return None

        targets = []
        for detection in detections:
            if filter_target is not None and not filter_target(detection):
                continue
            targets.append(self._make_target_info(
                detection, object_height_offset, camera_height_offset
            ))

        if not targets:
            return None

        if sort_key is not None:
            targets.sort(key=sort_key)

        for i, target in enumerate(targets):
            logger.debug(f"{self.instance_name}: [{i}] {target}")

        return targets

    def _make_target_info(
        self,
        detection: DetectedObject,
        object_height_offset: float,
        camera_height_offset: float
    ) -> TargetInfo:
        if self.homography_mapper is not None:
            # Bottom center of the bounding rect touches the ground
            x, y, w, h = detection.rect
            target_x, target_y = self.homography_mapper.map_point(x + w / 2.0, y + h)
        else:
            target_x, target_y = 0.0, 0.0

        return TargetInfo(
            detected_object=detection,
            image_rect=detection.rect,
            image_center=(detection.center_x, detection.center_y),
            target_x=target_x,
            target_y=target_y,
            object_height_offset=object_height_offset,
            camera_height_offset=camera_height_offset,
        )
