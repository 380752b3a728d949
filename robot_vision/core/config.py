"""
Configuration management for the robot vision adapters.

This module provides centralized configuration handling with support for
environment variables, config files, and runtime overrides.
"""

import os
import json
import logging
from dataclasses import dataclass, field, asdict
from typing import Dict, Any, List
from pathlib import Path

logger = logging.getLogger(__name__)


def _default_camera_rect() -> List[List[float]]:
    # Top-left, top-right, bottom-left, bottom-right image corners in pixels
    return [[0.0, 120.0], [639.0, 120.0], [0.0, 479.0], [639.0, 479.0]]


def _default_world_rect() -> List[List[float]]:
    # Matching ground-plane corners in inches relative to the camera
    return [[-60.0, 120.0], [60.0, 120.0], [-12.0, 16.0], [12.0, 16.0]]


@dataclass
class CameraConfig:
    """Configuration for the OpenCV camera."""

    camera_id: int = 0
    resolution_width: int = 640
    resolution_height: int = 480
    framerate: int = 30
    num_image_buffers: int = 2

    # Intrinsics (pixels)
    cam_fx: float = 576.0
    cam_fy: float = 576.0
    cam_cx: float = 320.0
    cam_cy: float = 240.0

    april_tag_size_inches: float = 6.0
    target_z_offset: float = 0.0
    cam_z_offset: float = 10.0

    camera_rect: List[List[float]] = field(default_factory=_default_camera_rect)
    world_rect: List[List[float]] = field(default_factory=_default_world_rect)


@dataclass
class VisionConfig:
    """Configuration for the OpenCV detection loop."""

    initial_object_type: str = "APRILTAG"
    annotate_enabled: bool = True
    video_output_step: int = 1
    detection_rate_hz: float = 20.0


@dataclass
class PhotonVisionConfig:
    """Configuration for the PhotonVision coprocessor client."""

    enabled: bool = False
    table_name: str = "photonvision"
    camera_name: str = "OV9281"
    server: str = "localhost"
    client_identity: str = "robot_vision"


@dataclass
class StreamConfig:
    """Configuration for the MJPEG video output server."""

    enabled: bool = True
    host: str = "0.0.0.0"
    port: int = 1181
    jpeg_quality: int = 80
    max_fps: float = 15.0


@dataclass
class LedConfig:
    """Configuration for the LED indicator."""

    enabled: bool = True
    on_duration_sec: float = 0.5
    on_target_tolerance_m: float = 0.05


@dataclass
class Config:
    """
    Main configuration container for the robot vision adapters.

    Aggregates all sub-configurations and provides methods for loading
    from files or environment variables.

    Usage:
        # Load default configuration
        config = Config()

        # Load from file
        config = Config.from_file("/path/to/config.json")

        # Load with environment overrides
        config = Config.from_environment()
    """

    camera: CameraConfig = field(default_factory=CameraConfig)
    vision: VisionConfig = field(default_factory=VisionConfig)
    photon: PhotonVisionConfig = field(default_factory=PhotonVisionConfig)
    stream: StreamConfig = field(default_factory=StreamConfig)
    led: LedConfig = field(default_factory=LedConfig)

    # General settings
    log_level: str = "INFO"
    debug_mode: bool = False
    simulation_mode: bool = False

    @classmethod
    def from_file(cls, filepath: str) -> "Config":
        """Load configuration from a JSON file."""
        path = Path(filepath)
        if not path.exists():
            logger.warning(f"Config file not found: {filepath}, using defaults")
            return cls()

        try:
            with open(path, "r") as f:
                data = json.load(f)
            return cls._from_dict(data)
        except json.JSONDecodeError as e:
            logger.error(f"Failed to parse config file: {e}")
            raise ValueError(f"Invalid JSON in config file: {filepath}")
        except TypeError as e:
            logger.error(f"Unknown setting in config file: {e}")
            raise ValueError(f"Invalid setting in config file: {filepath}")

    @classmethod
    def from_environment(cls) -> "Config":
        """Load configuration with environment variable overrides."""
        config = cls()

        # Map environment variables to config fields
        env_mappings = {
            "RV_LOG_LEVEL": ("log_level", str),
            "RV_DEBUG_MODE": ("debug_mode", lambda x: x.lower() == "true"),
            "RV_SIMULATION_MODE": ("simulation_mode", lambda x: x.lower() == "true"),
            "RV_CAMERA_ID": ("camera.camera_id", int),
            "RV_OBJECT_TYPE": ("vision.initial_object_type", str.upper),
            "RV_PHOTON_ENABLED": ("photon.enabled", lambda x: x.lower() == "true"),
            "RV_PHOTON_CAMERA": ("photon.camera_name", str),
            "RV_NT_SERVER": ("photon.server", str),
            "RV_STREAM_PORT": ("stream.port", int),
        }

        for env_var, (attr_path, converter) in env_mappings.items():
            value = os.environ.get(env_var)
            if value is not None:
                config._set_nested_attr(attr_path, converter(value))
                logger.debug(f"Config override from env: {env_var}={value}")

        return config

    @classmethod
    def _from_dict(cls, data: Dict[str, Any]) -> "Config":
        """Create config from dictionary."""
        config = cls()

        # Update sub-configs if present
        if "camera" in data:
            config.camera = CameraConfig(**data["camera"])
        if "vision" in data:
            config.vision = VisionConfig(**data["vision"])
        if "photon" in data:
            config.photon = PhotonVisionConfig(**data["photon"])
        if "stream" in data:
            config.stream = StreamConfig(**data["stream"])
        if "led" in data:
            config.led = LedConfig(**data["led"])

        # Update top-level settings
        for key in ["log_level", "debug_mode", "simulation_mode"]:
            if key in data:
                setattr(config, key, data[key])

        return config

    def _set_nested_attr(self, attr_path: str, value: Any) -> None:
        """Set a nested attribute using dot notation."""
        parts = attr_path.split(".")
        obj = self
        for part in parts[:-1]:
            obj = getattr(obj, part)
        setattr(obj, parts[-1], value)

    def to_dict(self) -> Dict[str, Any]:
        """Export configuration to dictionary."""
        return {
            "camera": asdict(self.camera),
            "vision": asdict(self.vision),
            "photon": asdict(self.photon),
            "stream": asdict(self.stream),
            "led": asdict(self.led),
            "log_level": self.log_level,
            "debug_mode": self.debug_mode,
            "simulation_mode": self.simulation_mode,
        }

    def save(self, filepath: str) -> None:
        """Save configuration to a JSON file."""
        with open(filepath, "w") as f:
            json.dump(self.to_dict(), f, indent=2)
        logger.info(f"Configuration saved to {filepath}")
