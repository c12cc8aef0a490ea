"""
decoders/livox.py

Decoder for Livox solid-state LiDARs (Avia, Mid-360) recorded as driver
``CustomMsg``.

The scan pattern is non-repetitive, so there is no azimuth to rebuild time
from; instead each point carries ``offset_time`` in nanoseconds after the
message ``timebase``.  The frame reference time is ``timebase``.
"""

from __future__ import annotations

import numpy as np

from lidar_unpacker.decoders.base import LidarDecoder
from lidar_unpacker.errors import MessageTypeMismatchError
from lidar_unpacker.frame import LidarFrame
from lidar_unpacker.messages import LivoxCustomMsg

_REQUIRED_FIELDS = ("offset_time", "x", "y", "z", "reflectivity")


class LivoxDecoder(LidarDecoder):
    """Decode Livox ``CustomMsg`` messages."""

    message_types = (LivoxCustomMsg,)

    def unpack_scan(self, msg) -> LidarFrame:
        self._check_message(msg)
        points = np.asarray(msg.points)
        names = points.dtype.names or ()
        missing = [name for name in _REQUIRED_FIELDS if name not in names]
        if missing:
            raise MessageTypeMismatchError(
                self._model.value,
                self.expected_message,
                type(msg).__name__,
                detail=f"Missing point fields {missing}.",
            )

        timestamp = points["offset_time"].astype(np.float64) * 1e-9
        kept = self._filtered_points(
            points["x"], points["y"], points["z"], points["reflectivity"], timestamp
        )
        return LidarFrame(timestamp=int(msg.timebase) * 1e-9, points=kept)
