"""
Raw PhotonVision client.

PhotonVision publishes the best target of the active pipeline as plain
entries in the camera's NetworkTables table. This client reads those
entries directly and selects pipelines by writing the pipeline index
request entry.
"""

import logging
import time
from dataclasses import dataclass
from typing import List, Optional, Sequence

from ..core.geometry import Pose3D, field_to_robot, quaternion_to_euler
from ..core.interfaces import IVisionTable

logger = logging.getLogger(__name__)

# Entry names in the camera table
HAS_TARGET = "hasTarget"
TARGET_YAW = "targetYaw"
TARGET_PITCH = "targetPitch"
TARGET_AREA = "targetArea"
TARGET_SKEW = "targetSkew"
TARGET_PIXELS_X = "targetPixelsX"
TARGET_PIXELS_Y = "targetPixelsY"
TARGET_FIDUCIAL_ID = "targetFiducialId"
TARGET_POSE = "targetPose"
LATENCY_MILLIS = "latencyMillis"
PIPELINE_INDEX_REQUEST = "pipelineIndexRequest"
PIPELINE_INDEX_STATE = "pipelineIndexState"


class NetworkTablesVisionTable(IVisionTable):
    """
    NetworkTables backed camera table.

    Connects as an NT4 client to the given server and addresses entries
    under <table_name>/<camera_name>.
    """

    def __init__(
        self,
        table_name: str,
        camera_name: str,
        server: Optional[str] = None,
        client_identity: str = "robot_vision"
    ):
        import ntcore

        self._instance = ntcore.NetworkTableInstance.getDefault()
        if server is not None:
            self._instance.startClient4(client_identity)
            self._instance.setServer(server)
            logger.info(f"NetworkTables client '{client_identity}' connecting to {server}")

        self._table = self._instance.getTable(table_name).getSubTable(camera_name)

    def get_boolean(self, key: str, default: bool = False) -> bool:
        return self._table.getBoolean(key, default)

    def get_number(self, key: str, default: float = 0.0) -> float:
        return self._table.getNumber(key, default)

    def get_number_array(self, key: str, default: Sequence[float] = ()) -> List[float]:
        return list(self._table.getNumberArray(key, list(default)))

    def set_number(self, key: str, value: float) -> None:
        self._table.putNumber(key, value)


@dataclass
class PhotonDetectedObject:
    """Best target reported by PhotonVision."""
    timestamp: float
    yaw: float  # degrees
    pitch: float  # degrees
    area: float  # percent of image
    skew: float  # degrees
    pixel_x: float
    pixel_y: float
    fiducial_id: Optional[int] = None
    # Camera to target pose in the robot convention
    target_pose: Optional[Pose3D] = None

    def get_object_pose(self) -> Optional[Pose3D]:
        return self.target_pose

    def __str__(self) -> str:
        return (
            f"{{id={self.fiducial_id}, yaw={self.yaw:.1f}, pitch={self.pitch:.1f}, "
            f"area={self.area:.2f}, pose={self.target_pose}}}"
        )


class PhotonVisionRawClient:
    """
    Client reading PhotonVision results straight from its table.

    Attributes:
        instance_name: Camera name, used in log messages
        table: The camera's vision table
    """

    def __init__(
        self,
        table_name: str,
        camera_name: str,
        table: Optional[IVisionTable] = None,
        server: Optional[str] = None,
        client_identity: str = "robot_vision"
    ):
        self.instance_name = camera_name
        self.table = table if table is not None else NetworkTablesVisionTable(
            table_name, camera_name, server, client_identity
        )
        logger.info(f"PhotonVisionRawClient initialized ({table_name}/{camera_name})")

    def get_detected_object(self) -> Optional[PhotonDetectedObject]:
        """
        Get the best target of the active pipeline.

        Returns:
            The detected object, or None if PhotonVision reports no target
        """
        if not self.table.get_boolean(HAS_TARGET, False):
            return None

        latency_ms = self.table.get_number(LATENCY_MILLIS, 0.0)
        fiducial_id = int(self.table.get_number(TARGET_FIDUCIAL_ID, -1))

        detected_object = PhotonDetectedObject(
            timestamp=time.time() - latency_ms / 1000.0,
            yaw=self.table.get_number(TARGET_YAW, 0.0),
            pitch=self.table.get_number(TARGET_PITCH, 0.0),
            area=self.table.get_number(TARGET_AREA, 0.0),
            skew=self.table.get_number(TARGET_SKEW, 0.0),
            pixel_x=self.table.get_number(TARGET_PIXELS_X, 0.0),
            pixel_y=self.table.get_number(TARGET_PIXELS_Y, 0.0),
            fiducial_id=fiducial_id if fiducial_id >= 0 else None,
            target_pose=self._read_target_pose(),
        )
        logger.debug(f"{self.instance_name}: detected {detected_object}")

        return detected_object

    def _read_target_pose(self) -> Optional[Pose3D]:
        """Read the camera to target transform: x, y, z, qw, qx, qy, qz."""
        values = self.table.get_number_array(TARGET_POSE, ())
        if len(values) != 7:
            return None

        x, y, z, qw, qx, qy, qz = values
        roll, pitch, yaw = quaternion_to_euler(qw, qx, qy, qz)
        return field_to_robot(x, y, z, roll, pitch, yaw)

    def select_pipeline(self, index: int) -> None:
        """Request PhotonVision to switch to the pipeline at the given index."""
        self.table.set_number(PIPELINE_INDEX_REQUEST, index)
        logger.debug(f"{self.instance_name}: pipeline index {index} requested")

    def get_selected_pipeline(self) -> int:
        """Get the index of the pipeline PhotonVision reports as active."""
        return int(self.table.get_number(PIPELINE_INDEX_STATE, 0))
