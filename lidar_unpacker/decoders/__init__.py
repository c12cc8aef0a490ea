"""
lidar_unpacker.decoders

Model-specific LiDAR decoders sharing the :class:`LidarDecoder` contract.
"""

from lidar_unpacker.decoders.base import LidarDecoder, clockwise_azimuth
from lidar_unpacker.decoders.velodyne_packet import Velodyne16Decoder
from lidar_unpacker.decoders.velodyne_points import (
    RotationTracker,
    ScanParameters,
    VelodynePointsDecoder,
)
from lidar_unpacker.decoders.ouster import OusterDecoder
from lidar_unpacker.decoders.pandar import PandarXTDecoder
from lidar_unpacker.decoders.livox import LivoxDecoder

__all__ = [
    "LidarDecoder",
    "clockwise_azimuth",
    "Velodyne16Decoder",
    "RotationTracker",
    "ScanParameters",
    "VelodynePointsDecoder",
    "OusterDecoder",
    "PandarXTDecoder",
    "LivoxDecoder",
]
