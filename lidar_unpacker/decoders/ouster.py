"""
decoders/ouster.py

Decoder for Ouster OS point clouds as published by ``ouster_ros``.

Point layout::

    x, y, z        float32   metres
    intensity      float32
    t              uint32    nanoseconds after the message stamp
    reflectivity   uint16
    ring           uint16    (uint8 on older drivers)
    ambient        uint16
    range          uint32    millimetres

Every point carries its own time, so decoding is a unit conversion of ``t``
plus the range/azimuth filter.  Missing returns are reported as zero points
and are dropped.
"""

from __future__ import annotations

import numpy as np

from lidar_unpacker.decoders.base import LidarDecoder
from lidar_unpacker.frame import LidarFrame
from lidar_unpacker.messages import PointCloud2, pointcloud2_to_array

_REQUIRED_FIELDS = ("x", "y", "z", "t")


class OusterDecoder(LidarDecoder):
    """Decode Ouster ``PointCloud2`` messages (16 to 128 channels)."""

    message_types = (PointCloud2,)

    def unpack_scan(self, msg) -> LidarFrame:
        self._check_message(msg)
        self._require_fields(msg, _REQUIRED_FIELDS)

        cloud = pointcloud2_to_array(msg)
        intensity = cloud["intensity"] if msg.has_field("intensity") else np.zeros(len(cloud))
        timestamp = cloud["t"].astype(np.float64) * 1e-9

        points = self._filtered_points(cloud["x"], cloud["y"], cloud["z"], intensity, timestamp)
        return LidarFrame(timestamp=float(msg.stamp), points=points)
