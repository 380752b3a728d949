"""
OpenCV image processing pipelines.

Each pipeline turns a BGR frame into a list of DetectedObject entries and
keeps its intermediate images so one of them can be streamed as video
output. Step numbering for video output: 0 disables output, 1 is the
input frame, higher steps are pipeline specific.
"""

import cv2
import cv2.aruco as aruco
import numpy as np
import time
import logging
import math
from abc import ABC, abstractmethod
from dataclasses import dataclass, field
from typing import Dict, List, Optional, Sequence, Tuple

from ..core.geometry import Pose3D

logger = logging.getLogger(__name__)


# Mapping of AprilTag family names to OpenCV ArUco dictionary constants
APRILTAG_FAMILY_MAP: Dict[str, int] = {
    "tag16h5": aruco.DICT_APRILTAG_16h5,
    "tag25h9": aruco.DICT_APRILTAG_25h9,
    "tag36h10": aruco.DICT_APRILTAG_36h10,
    "tag36h11": aruco.DICT_APRILTAG_36h11,
}

# Rotates the tag frame half a turn about its x axis
TAG_NORMAL_FLIP = np.diag([1.0, -1.0, -1.0])

ANNOTATE_COLOR = (0, 255, 0)
CENTER_COLOR = (0, 0, 255)


@dataclass
class DetectedObject:
    """Data class representing an object found by a pipeline."""
    label: str
    rect: Tuple[int, int, int, int]  # x, y, width, height
    area: float
    center_x: float
    center_y: float
    corners: Optional[np.ndarray] = None  # Nx2 array of outline points
    tag_id: Optional[int] = None
    # Camera-relative pose, if the pipeline estimates one
    pose: Optional[Pose3D] = None
    timestamp: float = field(default_factory=time.time)

    @property
    def is_pose_available(self) -> bool:
        return self.pose is not None


@dataclass
class FilterContourParams:
    """
    Contour acceptance criteria for color blob pipelines.

    Ranges are inclusive (min, max) pairs. Solidity is in percent,
    aspect ratio is width / height.
    """
    min_area: float = 0.0
    min_perimeter: float = 0.0
    width_range: Tuple[float, float] = (0.0, math.inf)
    height_range: Tuple[float, float] = (0.0, math.inf)
    solidity_range: Tuple[float, float] = (0.0, 100.0)
    vertices_range: Tuple[float, float] = (0.0, math.inf)
    aspect_ratio_range: Tuple[float, float] = (0.0, math.inf)

    def set_min_area(self, min_area: float) -> "FilterContourParams":
        self.min_area = min_area
        return self

    def set_min_perimeter(self, min_perimeter: float) -> "FilterContourParams":
        self.min_perimeter = min_perimeter
        return self

    def set_width_range(self, min_width: float, max_width: float) -> "FilterContourParams":
        self.width_range = (min_width, max_width)
        return self

    def set_height_range(self, min_height: float, max_height: float) -> "FilterContourParams":
        self.height_range = (min_height, max_height)
        return self

    def set_solidity_range(self, min_solidity: float, max_solidity: float) -> "FilterContourParams":
        self.solidity_range = (min_solidity, max_solidity)
        return self

    def set_vertices_range(self, min_vertices: float, max_vertices: float) -> "FilterContourParams":
        self.vertices_range = (min_vertices, max_vertices)
        return self

    def set_aspect_ratio_range(self, min_ratio: float, max_ratio: float) -> "FilterContourParams":
        self.aspect_ratio_range = (min_ratio, max_ratio)
        return self


@dataclass
class PoseEstimatorConfig:
    """AprilTag pose estimation parameters. Tag size is in meters."""
    tag_size: float
    fx: float
    fy: float
    cx: float
    cy: float

    @property
    def camera_matrix(self) -> np.ndarray:
        return np.array([
            [self.fx, 0, self.cx],
            [0, self.fy, self.cy],
            [0, 0, 1]
        ], dtype=np.float64)


def _in_range(value: float, value_range: Tuple[float, float]) -> bool:
    return value_range[0] <= value <= value_range[1]


class OpenCvPipeline(ABC):
    """Base class for OpenCV pipelines."""

    def __init__(self, name: str, annotate_enabled: bool = False):
        self.name = name
        self._annotate_enabled = annotate_enabled
        self._video_output_step = 1
        self._intermediate_mats: List[np.ndarray] = []

    @abstractmethod
    def process(self, frame: np.ndarray) -> List[DetectedObject]:
        """
        Process a frame.

        Args:
            frame: BGR image as numpy array (HxWx3)

        Returns:
            List of detected objects, empty if nothing was found
        """
        pass

    @property
    def num_intermediate_steps(self) -> int:
        return len(self._intermediate_mats)

    def set_annotate_enabled(self, enabled: bool) -> None:
        self._annotate_enabled = enabled

    def is_annotate_enabled(self) -> bool:
        return self._annotate_enabled

    def set_video_output(self, intermediate_step: int) -> None:
        """
        Select the intermediate image used as video output.

        Args:
            intermediate_step: 1 is the input frame, 0 disables video output
        """
        if intermediate_step < 0:
            raise ValueError(f"Invalid intermediate step: {intermediate_step}")
        self._video_output_step = intermediate_step
        logger.debug(f"{self.name}: video output step set to {intermediate_step}")

    def get_video_output_step(self) -> int:
        return self._video_output_step

    def get_intermediate_output(self) -> Optional[np.ndarray]:
        """
        Get the selected intermediate image from the last processed frame.

        Returns:
            The image, or None if output is disabled or nothing was processed
        """
        if self._video_output_step == 0 or not self._intermediate_mats:
            return None
        index = min(self._video_output_step, len(self._intermediate_mats)) - 1
        return self._intermediate_mats[index]

    def annotate(self, frame: np.ndarray, detections: List[DetectedObject]) -> np.ndarray:
        """
        Draw detected objects on a copy of the frame.

        Returns:
            Frame with drawings
        """
        output = frame.copy()
        if output.ndim == 2:
            output = cv2.cvtColor(output, cv2.COLOR_GRAY2BGR)

        for detection in detections:
            if detection.corners is not None:
                corners = detection.corners.astype(np.int32)
                cv2.polylines(output, [corners], True, ANNOTATE_COLOR, 2)
            else:
                x, y, w, h = detection.rect
                cv2.rectangle(output, (x, y), (x + w, y + h), ANNOTATE_COLOR, 2)

            center = (int(detection.center_x), int(detection.center_y))
            cv2.circle(output, center, 5, CENTER_COLOR, -1)

            label = detection.label
            if detection.tag_id is not None:
                label = f"ID: {detection.tag_id}"
            cv2.putText(
                output,
                label,
                (detection.rect[0], max(detection.rect[1] - 10, 10)),
                cv2.FONT_HERSHEY_SIMPLEX,
                0.6,
                ANNOTATE_COLOR,
                2
            )

        return output


class AprilTagPipeline(OpenCvPipeline):
    """
    AprilTag detector using OpenCV's aruco module.

    Intermediate steps: 1 input frame, 2 grayscale image.

    Example:
        >>> pipeline = AprilTagPipeline("tag16h5", PoseEstimatorConfig(0.1524, 576, 576, 320, 240))
        >>> tags = pipeline.process(frame)
    """

    def __init__(
        self,
        family: str = "tag16h5",
        pose_estimator_config: Optional[PoseEstimatorConfig] = None,
        annotate_enabled: bool = False
    ):
        super().__init__(f"aprilTagPipeline({family})", annotate_enabled)
        dict_id = APRILTAG_FAMILY_MAP.get(family)
        if dict_id is None:
            raise ValueError(
                f"Unknown AprilTag family: {family}. "
                f"Valid options: {list(APRILTAG_FAMILY_MAP.keys())}"
            )

        self.family = family
        self.pose_estimator_config = pose_estimator_config

        self.detector_params = aruco.DetectorParameters()
        self.detector_params.adaptiveThreshConstant = 7
        self.detector_params.minMarkerPerimeterRate = 0.03
        self.detector_params.maxMarkerPerimeterRate = 4.0
        self.detector_params.polygonalApproxAccuracyRate = 0.03
        self.detector_params.minCornerDistanceRate = 0.05
        self.detector = aruco.ArucoDetector(
            aruco.getPredefinedDictionary(dict_id), self.detector_params
        )

        logger.info(f"AprilTagPipeline initialized with family: {family}")

    def process(self, frame: np.ndarray) -> List[DetectedObject]:
        if frame is None or frame.size == 0:
            logger.warning("Empty frame provided for detection")
            return []

        gray = cv2.cvtColor(frame, cv2.COLOR_BGR2GRAY) if frame.ndim == 3 else frame
        self._intermediate_mats = [frame, gray]

        corners, ids, _ = self.detector.detectMarkers(gray)
        if ids is None:
            return []

        detections = []
        timestamp = time.time()
        for i, tag_id in enumerate(ids.flatten()):
            tag_corners = corners[i][0]  # Shape: (4, 2)
            x, y, w, h = cv2.boundingRect(tag_corners.astype(np.float32))
            detection = DetectedObject(
                label="AprilTag",
                rect=(x, y, w, h),
                area=float(cv2.contourArea(tag_corners.astype(np.float32))),
                center_x=float(np.mean(tag_corners[:, 0])),
                center_y=float(np.mean(tag_corners[:, 1])),
                corners=tag_corners,
                tag_id=int(tag_id),
                timestamp=timestamp,
            )
            if self.pose_estimator_config is not None:
                detection.pose = self.estimate_pose(tag_corners)
            detections.append(detection)

        logger.debug(f"{self.name}: detected {len(detections)} tags")
        return detections

    def estimate_pose(self, tag_corners: np.ndarray) -> Optional[Pose3D]:
        """
        Estimate the camera-relative pose of a tag with solvePnP.

        Returns:
            Robot-convention pose (x right, y forward, z up), or None on failure
        """
        cfg = self.pose_estimator_config
        half_size = cfg.tag_size / 2.0
        obj_points = np.array([
            [-half_size, half_size, 0],   # Top-left
            [half_size, half_size, 0],    # Top-right
            [half_size, -half_size, 0],   # Bottom-right
            [-half_size, -half_size, 0],  # Bottom-left
        ], dtype=np.float32)

        success, rvec, tvec = cv2.solvePnP(
            obj_points,
            tag_corners.astype(np.float32),
            cfg.camera_matrix,
            np.zeros((5, 1)),
            flags=cv2.SOLVEPNP_IPPE_SQUARE
        )
        if not success:
            logger.warning(f"{self.name}: pose estimation failed")
            return None

        rmat, _ = cv2.Rodrigues(rvec)
        # Tag z axis points back at the camera, flip it so a facing tag is zero rotation
        rmat = rmat @ TAG_NORMAL_FLIP
        # Camera frame is x right, y down, z forward
        pitch = math.atan2(rmat[2, 1], rmat[2, 2])
        yaw = math.atan2(-rmat[2, 0], math.hypot(rmat[2, 1], rmat[2, 2]))
        roll = math.atan2(rmat[1, 0], rmat[0, 0])
        tx, ty, tz = (float(v) for v in tvec.flatten())

        return Pose3D(tx, tz, -ty, yaw, pitch, roll)


class ColorBlobPipeline(OpenCvPipeline):
    """
    Color blob detector.

    Converts the frame to the given color space, thresholds it and keeps
    the external contours that pass the filter parameters.

    Intermediate steps: 1 input frame, 2 color converted image,
    3 threshold mask.
    """

    def __init__(
        self,
        name: str,
        color_conversion: Optional[int],
        color_thresholds: Sequence[float],
        filter_params: FilterContourParams,
        annotate_enabled: bool = False
    ):
        super().__init__(name, annotate_enabled)
        if len(color_thresholds) != 6:
            raise ValueError(
                f"{name}: expected 6 color thresholds, got {len(color_thresholds)}"
            )

        self.color_conversion = color_conversion
        self.color_thresholds = tuple(float(t) for t in color_thresholds)
        self.filter_params = filter_params
        self._lower = np.array(self.color_thresholds[0::2], dtype=np.float64)
        self._upper = np.array(self.color_thresholds[1::2], dtype=np.float64)

        logger.info(f"ColorBlobPipeline '{name}' initialized (thresholds={self.color_thresholds})")

    def process(self, frame: np.ndarray) -> List[DetectedObject]:
        if frame is None or frame.size == 0:
            logger.warning("Empty frame provided for detection")
            return []

        converted = frame
        if self.color_conversion is not None:
            converted = cv2.cvtColor(frame, self.color_conversion)
        mask = cv2.inRange(converted, self._lower, self._upper)
        self._intermediate_mats = [frame, converted, mask]

        contours, _ = cv2.findContours(mask, cv2.RETR_EXTERNAL, cv2.CHAIN_APPROX_SIMPLE)

        detections = []
        timestamp = time.time()
        for contour in contours:
            if not self._accept_contour(contour):
                continue

            x, y, w, h = cv2.boundingRect(contour)
            moments = cv2.moments(contour)
            if moments["m00"] != 0:
                center_x = moments["m10"] / moments["m00"]
                center_y = moments["m01"] / moments["m00"]
            else:
                center_x, center_y = x + w / 2.0, y + h / 2.0

            detections.append(DetectedObject(
                label=self.name,
                rect=(x, y, w, h),
                area=float(cv2.contourArea(contour)),
                center_x=float(center_x),
                center_y=float(center_y),
                corners=contour.reshape(-1, 2),
                timestamp=timestamp,
            ))

        logger.debug(f"{self.name}: {len(detections)} of {len(contours)} contours accepted")
        return detections

    def _accept_contour(self, contour: np.ndarray) -> bool:
        """Check a contour against the filter parameters."""
        params = self.filter_params

        area = cv2.contourArea(contour)
        if area < params.min_area:
            return False

        if cv2.arcLength(contour, True) < params.min_perimeter:
            return False

        _, _, w, h = cv2.boundingRect(contour)
        if not _in_range(w, params.width_range) or not _in_range(h, params.height_range):
            return False

        hull_area = cv2.contourArea(cv2.convexHull(contour))
        solidity = 100.0 * area / hull_area if hull_area > 0 else 0.0
        if not _in_range(solidity, params.solidity_range):
            return False

        if not _in_range(len(contour), params.vertices_range):
            return False

        aspect_ratio = w / h if h > 0 else math.inf
        return _in_range(aspect_ratio, params.aspect_ratio_range)
