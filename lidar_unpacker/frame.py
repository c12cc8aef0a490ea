"""
frame.py

The decoded point batch.

A :class:`LidarFrame` holds a reference time and a structured numpy array of
points with dtype :data:`LIDAR_POINT_DTYPE`:

===========  =======  ===============================================
Field        Type     Description
===========  =======  ===============================================
x, y, z      f32      Position in the sensor frame (metres)
intensity    f32      Intensity / reflectivity as reported by the sensor
timestamp    f64      Seconds after :attr:`LidarFrame.timestamp`
===========  =======  ===============================================

Only points that passed the range and azimuth filter are stored.  The range
filter is applied to the measured range, before the coordinates are rounded
to float32, so a range recomputed from the stored coordinates can sit outside
the configured bounds by float32 rounding (a relative error of at most
``2 * np.finfo(np.float32).eps``).
"""

from __future__ import annotations

from dataclasses import dataclass

import numpy as np

LIDAR_POINT_DTYPE = np.dtype(
    [
        ("x", np.float32),
        ("y", np.float32),
        ("z", np.float32),
        ("intensity", np.float32),
        ("timestamp", np.float64),
    ]
)


@dataclass
class LidarFrame:
    """One decoded LiDAR message.

    Attributes:
        timestamp: Reference time of the batch in seconds.
        points: Structured array with dtype :data:`LIDAR_POINT_DTYPE`.
    """

    timestamp: float
    points: np.ndarray

    @classmethod
    def empty(cls, timestamp: float) -> "LidarFrame":
        return cls(timestamp=float(timestamp), points=np.empty(0, dtype=LIDAR_POINT_DTYPE))

    def __len__(self) -> int:
        return len(self.points)

    @property
    def is_empty(self) -> bool:
        return len(self.points) == 0

    def xyz(self) -> np.ndarray:
        """Return an ``(N, 3)`` float32 array of ``[x, y, z]`` coordinates."""
        return np.column_stack([self.points["x"], self.points["y"], self.points["z"]])

    def xyz_intensity(self) -> np.ndarray:
        """Return an ``(N, 4)`` float32 array of ``[x, y, z, intensity]``."""
        p = self.points
        return np.column_stack([p["x"], p["y"], p["z"], p["intensity"]])

    def ranges(self) -> np.ndarray:
        """Euclidean distance of every point from the sensor origin.

        Exact only to float32 precision; see the module notes.
        """
        return np.linalg.norm(self.xyz().astype(np.float64), axis=1)

    def absolute_timestamps(self) -> np.ndarray:
        """Per-point times in seconds on the log's clock."""
        return self.timestamp + self.points["timestamp"]


def make_points(x, y, z, intensity, timestamp) -> np.ndarray:
    """Assemble equally long column arrays into a :data:`LIDAR_POINT_DTYPE` array."""
    x = np.asarray(x)
    out = np.empty(x.shape[0], dtype=LIDAR_POINT_DTYPE)
    out["x"] = x
    out["y"] = y
    out["z"] = z
    out["intensity"] = intensity
    out["timestamp"] = timestamp
    return out
