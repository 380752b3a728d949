"""
AprilTag field layouts.

A field layout maps AprilTag IDs to their known 3D poses on the playing
field. Layouts use the WPILib JSON format and are loaded once, then
treated as read-only.
"""

import json
import logging
from enum import Enum
from pathlib import Path
from types import MappingProxyType
from typing import Any, Dict, List, Mapping, Optional

from ..core.geometry import FieldPose

logger = logging.getLogger(__name__)

RESOURCE_DIR = Path(__file__).parent / "resources"


class FieldLayoutError(IOError):
    """Raised when a field layout cannot be read or parsed."""


class AprilTagFields(Enum):
    """Field layouts bundled with the package."""
    K2024_CRESCENDO = "2024-crescendo.json"

    @property
    def resource_file(self) -> Path:
        return RESOURCE_DIR / self.value


class AprilTagFieldLayout:
    """
    Immutable lookup table of AprilTag field poses.

    Example:
        >>> layout = AprilTagFieldLayout.load_from_resource(AprilTagFields.K2024_CRESCENDO)
        >>> pose = layout.get_tag_pose(7)
    """

    def __init__(
        self,
        tags: Mapping[int, FieldPose],
        field_length: float,
        field_width: float
    ):
        self._tags: Mapping[int, FieldPose] = MappingProxyType(dict(tags))
        self.field_length = field_length
        self.field_width = field_width

    @classmethod
    def load_from_resource(cls, field: AprilTagFields) -> "AprilTagFieldLayout":
        """Load one of the bundled field layouts."""
        return cls.from_file(field.resource_file)

    @classmethod
    def from_file(cls, filepath) -> "AprilTagFieldLayout":
        """
        Load a field layout from a JSON file.

        Raises:
            FieldLayoutError: If the file cannot be read or is not a valid layout
        """
        path = Path(filepath)
        try:
            with open(path, "r") as f:
                data = json.load(f)
        except OSError as e:
            raise FieldLayoutError(f"Cannot read field layout {path}: {e}") from e
        except json.JSONDecodeError as e:
            raise FieldLayoutError(f"Invalid JSON in field layout {path}: {e}") from e

        layout = cls.from_dict(data)
        logger.debug(f"Loaded {len(layout)} AprilTag poses from {path}")
        return layout

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "AprilTagFieldLayout":
        """Create a field layout from its parsed JSON form."""
        tags: Dict[int, FieldPose] = {}
        try:
            for tag in data["tags"]:
                translation = tag["pose"]["translation"]
                quaternion = tag["pose"]["rotation"]["quaternion"]
                tags[int(tag["ID"])] = FieldPose(
                    x=float(translation["x"]),
                    y=float(translation["y"]),
                    z=float(translation["z"]),
                    qw=float(quaternion["W"]),
                    qx=float(quaternion["X"]),
                    qy=float(quaternion["Y"]),
                    qz=float(quaternion["Z"]),
                )
            field_length = float(data["field"]["length"])
            field_width = float(data["field"]["width"])
        except (KeyError, TypeError, ValueError) as e:
            raise FieldLayoutError(f"Malformed field layout: {e!r}") from e

        return cls(tags, field_length, field_width)

    def get_tag_pose(self, tag_id: int) -> Optional[FieldPose]:
        """
        Get the field pose of an AprilTag.

        Args:
            tag_id: AprilTag ID

        Returns:
            The tag's field pose, or None if the layout has no such tag
        """
        return self._tags.get(tag_id)

    @property
    def tag_ids(self) -> List[int]:
        return sorted(self._tags)

    def __len__(self) -> int:
        return len(self._tags)

    def __contains__(self, tag_id: int) -> bool:
        return tag_id in self._tags
