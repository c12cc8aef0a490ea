"""
decoders/pandar.py

Decoder for Hesai Pandar XT point clouds (``HesaiLidar_General_ROS``).

Point layout::

    x, y, z      float32   metres
    intensity    float32
    timestamp    float64   absolute seconds
    ring         uint16

The driver stamps each point with absolute time; it is re-expressed relative
to the message stamp.
"""

from __future__ import annotations

import numpy as np

from lidar_unpacker.decoders.base import LidarDecoder
from lidar_unpacker.frame import LidarFrame
from lidar_unpacker.messages import PointCloud2, pointcloud2_to_array

_REQUIRED_FIELDS = ("x", "y", "z", "timestamp")


class PandarXTDecoder(LidarDecoder):
    """Decode Pandar XT-16 / XT-32 ``PointCloud2`` messages."""

    message_types = (PointCloud2,)

    def unpack_scan(self, msg) -> LidarFrame:
        self._check_message(msg)
        self._require_fields(msg, _REQUIRED_FIELDS)

        stamp = float(msg.stamp)
        cloud = pointcloud2_to_array(msg)
        intensity = cloud["intensity"] if msg.has_field("intensity") else np.zeros(len(cloud))
        timestamp = cloud["timestamp"].astype(np.float64) - stamp

        points = self._filtered_points(cloud["x"], cloud["y"], cloud["z"], intensity, timestamp)
        return LidarFrame(timestamp=stamp, points=points)
