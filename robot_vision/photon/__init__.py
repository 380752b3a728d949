"""
PhotonVision coprocessor client and game specific wrapper.
"""

from .photon_client import PhotonVisionRawClient, PhotonDetectedObject, NetworkTablesVisionTable
from .photon_vision_raw import PhotonVisionRaw, PipelineType

__all__ = [
    "PhotonVisionRawClient",
    "PhotonDetectedObject",
    "NetworkTablesVisionTable",
    "PhotonVisionRaw",
    "PipelineType",
]
