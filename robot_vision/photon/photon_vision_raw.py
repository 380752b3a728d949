"""
Game specific PhotonVision wrapper.

Adds AprilTag field layout lookups and an LED indicator side effect on
top of the raw PhotonVision client.
"""

import logging
from enum import Enum
from typing import Optional

from ..core.geometry import Pose3D, field_pose_to_robot
from ..core.interfaces import IVisionTable
from ..indicators.led_indicator import LedIndicator
from ..utils import Timer
from ..vision.field_layout import AprilTagFieldLayout, AprilTagFields, FieldLayoutError
from .photon_client import PhotonDetectedObject, PhotonVisionRawClient

logger = logging.getLogger(__name__)


class PipelineType(Enum):
    """PhotonVision pipelines, valued by their pipeline index."""
    APRILTAG = 0
    NOTE = 1

    @property
    def pipeline_index(self) -> int:
        return self.value

    @classmethod
    def from_index(cls, index: int) -> "PipelineType":
        """
        Look up the pipeline type for a pipeline index.

        Raises:
            ValueError: If no pipeline type has that index
        """
        return cls(index)


class PhotonVisionRaw(PhotonVisionRawClient):
    """
    PhotonVision client with field layout and LED indicator support.

    Example:
        >>> photon = PhotonVisionRaw("photonvision", "OV9281", led_indicator)
        >>> obj = photon.get_detected_object()
        >>> tag_pose = photon.get_april_tag_pose(7)
    """

    def __init__(
        self,
        table_name: str,
        camera_name: str,
        led_indicator: Optional[LedIndicator] = None,
        table: Optional[IVisionTable] = None,
        server: Optional[str] = None,
        field: AprilTagFields = AprilTagFields.K2024_CRESCENDO,
        client_identity: str = "robot_vision"
    ):
        """
        Initialize the PhotonVision wrapper.

        Args:
            table_name: Network table name PhotonVision publishes under
            camera_name: Camera name
            led_indicator: LED indicator, None if the robot has none
            table: Camera table, None to connect through NetworkTables
            server: NetworkTables server address
            field: Field layout to load
            client_identity: NetworkTables client name

        Raises:
            RuntimeError: If the field layout cannot be loaded
        """
        super().__init__(table_name, camera_name, table, server, client_identity)
        self.led_indicator = led_indicator
        self._curr_pipeline: Optional[PipelineType] = None

        with Timer() as timer:
            try:
                self.april_tag_field_layout = AprilTagFieldLayout.load_from_resource(field)
            except FieldLayoutError as e:
                logger.error(f"{self.instance_name}: {e}")
                raise RuntimeError("Failed to load AprilTag field layout info.") from e
        logger.debug(
            f"{self.instance_name}: loading AprilTag field layout took {timer.elapsed:.3f} sec."
        )

        self.set_pipeline(PipelineType.APRILTAG)

    def get_detected_object(self) -> Optional[PhotonDetectedObject]:
        """
        Get the best detected object and show its type on the LED indicator.

        Returns:
            The detected object, or None if nothing is detected
        """
        detected_object = super().get_detected_object()

        if detected_object is not None and self.led_indicator is not None:
            self.led_indicator.set_photon_detected_object(
                self.get_pipeline(), detected_object.get_object_pose()
            )

        return detected_object

    def get_april_tag_pose(self, april_tag_id: int) -> Optional[Pose3D]:
        """
        Get the field location of an AprilTag in the robot convention.

        Args:
            april_tag_id: AprilTag ID

        Returns:
            3D pose of the tag, or None if the field has no such tag
        """
        tag_pose = self.april_tag_field_layout.get_tag_pose(april_tag_id)
        if tag_pose is None:
            return None
        return field_pose_to_robot(tag_pose)

    def set_pipeline(self, pipeline_type: PipelineType) -> None:
        """Activate a pipeline. Does nothing if it is already the active one."""
        if pipeline_type != self._curr_pipeline:
            self._curr_pipeline = pipeline_type
            self.select_pipeline(pipeline_type.pipeline_index)
            logger.info(f"{self.instance_name}: pipeline set to {pipeline_type.name}")

    def get_pipeline(self) -> PipelineType:
        """
        Get the active pipeline as reported by PhotonVision.

        Raises:
            ValueError: If the reported index has no pipeline type
        """
        self._curr_pipeline = PipelineType.from_index(self.get_selected_pipeline())
        return self._curr_pipeline
