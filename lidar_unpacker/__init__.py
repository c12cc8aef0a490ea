"""
lidar_unpacker: Decoding of raw LiDAR messages into per-point timestamped
point batches for continuous-time calibration.
"""

from lidar_unpacker.config import ScanConfig
from lidar_unpacker.errors import (
    LidarDecodeError,
    MessageTypeMismatchError,
    ScanParameterInitError,
    UnsupportedModelError,
)
from lidar_unpacker.factory import get_decoder, unpack_scans
from lidar_unpacker.frame import LIDAR_POINT_DTYPE, LidarFrame
from lidar_unpacker.models import LidarModelType, supported_models
from lidar_unpacker import decoders
from lidar_unpacker import messages

__all__ = [
    "ScanConfig",
    "LidarDecodeError",
    "MessageTypeMismatchError",
    "ScanParameterInitError",
    "UnsupportedModelError",
    "get_decoder",
    "unpack_scans",
    "LIDAR_POINT_DTYPE",
    "LidarFrame",
    "LidarModelType",
    "supported_models",
    "decoders",
    "messages",
]
