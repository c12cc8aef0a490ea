"""
decoders/velodyne_points.py

Decoder for Velodyne point clouds that were already unpacked by the driver
(``sensor_msgs/PointCloud2`` with ``x``, ``y``, ``z`` and optionally
``intensity``, ``ring`` and ``time``).

When the cloud carries a ``time`` field (seconds after the message stamp) it
is used as is.  Many driver versions leave it out; the time of each point is
then reconstructed from how far the head has rotated since the first point of
the message, assuming the head turns at a constant rate of one revolution
per scan period::

    t = rotation_travelled / one_scan_angle * scan_period

This is an approximation: motor speed variation within a scan is not
modelled.

Points are fed to the tracker in firing order.  Drivers often lay clouds out
ring by ring (one full sweep per ring), so the firing order is rebuilt from
the row/column position of organised clouds, or from the rank of each point
within its ``ring`` otherwise.

The rotation is tracked across messages by a :class:`RotationTracker`, since a
revolution can be split over several messages.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Optional

import numpy as np

from lidar_unpacker.config import ScanConfig
from lidar_unpacker.decoders.base import TWO_PI, LidarDecoder, clockwise_azimuth
from lidar_unpacker.errors import ScanParameterInitError
from lidar_unpacker.frame import LidarFrame
from lidar_unpacker.messages import PointCloud2, pointcloud2_to_array
from lidar_unpacker.models import LidarModelType

logger = logging.getLogger(__name__)

TIME_FIELD = "time"
RING_FIELD = "ring"


@dataclass(frozen=True)
class ScanParameters:
    """Cloud layout established from the first message of a topic.

    Attributes:
        has_time_field: The cloud carries per-point ``time``.
        has_ring_field: The cloud carries per-point ``ring``.
        num_lasers: Distinct rings (or the model's channel count).
        num_firings: Points per ring in the first message.
        one_scan_angle: Clockwise rotation (rad) from the first to the last
            valid point of the first message; ``0.0`` when not needed.
        horizon_resolution: Mean azimuth step between firings (rad).
    """

    has_time_field: bool
    has_ring_field: bool
    num_lasers: int
    num_firings: int
    one_scan_angle: float
    horizon_resolution: float


class RotationTracker:
    """Unwraps the head azimuth into a monotonic rotation counter.

    Consecutive azimuths are differenced, each step is wrapped into
    ``[-π, π)`` (a sharp drop means the head crossed 0°), and the running sum
    is clamped to its running maximum so the counter never goes backwards.
    The last azimuth seen is kept between calls.
    """

    def __init__(self) -> None:
        self._last_azimuth: Optional[float] = None
        self._travelled = 0.0

    @property
    def travelled(self) -> float:
        """Total rotation observed so far, in radians."""
        return self._travelled

    @property
    def last_azimuth(self) -> Optional[float]:
        return self._last_azimuth

    def reset(self) -> None:
        self._last_azimuth = None
        self._travelled = 0.0

    def advance(self, azimuth: np.ndarray) -> np.ndarray:
        """Feed azimuths (rad, clockwise, in firing order).

        Returns:
            The rotation counter after each azimuth, same length as *azimuth*.
        """
        azimuth = np.asarray(azimuth, dtype=np.float64)
        if azimuth.size == 0:
            return np.empty(0, dtype=np.float64)

        if self._last_azimuth is None:
            prev = azimuth[0]
        else:
            prev = self._last_azimuth
        steps = np.diff(np.concatenate(([prev], azimuth)))
        steps = np.mod(steps + np.pi, TWO_PI) - np.pi
        unwrapped = self._travelled + np.cumsum(steps)
        counter = np.maximum.accumulate(np.maximum(unwrapped, self._travelled))

        self._last_azimuth = float(azimuth[-1])
        self._travelled = float(counter[-1])
        return counter


class VelodynePointsDecoder(LidarDecoder):
    """Decode Velodyne ``PointCloud2`` messages.

    The field layout is probed once, on the first message, and kept for the
    lifetime of the decoder.

    Args:
        model: :attr:`LidarModelType.VLP_16_POINTS` or
            :attr:`LidarModelType.VLP_32E_POINTS`.
        config: Range/azimuth filter and scan rate.
    """

    message_types = (PointCloud2,)

    def __init__(self, model: LidarModelType, config: Optional[ScanConfig] = None) -> None:
        super().__init__(model, config)
        self._scan_params: Optional[ScanParameters] = None
        self._tracker = RotationTracker()

    # ------------------------------------------------------------------
    # Public API
    # ------------------------------------------------------------------

    @property
    def scan_parameters(self) -> Optional[ScanParameters]:
        """Layout found on the first message, or ``None`` before it."""
        return self._scan_params

    @property
    def tracker(self) -> RotationTracker:
        return self._tracker

    def init_scan_param(self, msg: PointCloud2) -> ScanParameters:
        """Establish the cloud layout from *msg*.

        Raises:
            ScanParameterInitError: If the message holds no valid points, or
                it has no ``time`` field and the rotation it covers cannot be
                measured.
        """
        cloud = pointcloud2_to_array(msg)
        valid = _valid_xy(cloud)
        n_valid = int(valid.sum())
        if n_valid == 0:
            raise ScanParameterInitError(
                f"Cannot initialise scan parameters for {self._model.value}: "
                f"the first message holds no valid points."
            )

        has_time = msg.has_field(TIME_FIELD)
        has_ring = msg.has_field(RING_FIELD)
        if has_ring:
            num_lasers = int(np.unique(cloud[RING_FIELD][valid]).size)
        else:
            num_lasers = self._model.num_lasers
        num_firings = max(n_valid // max(num_lasers, 1), 1)

        one_scan_angle = 0.0
        if not has_time:
            order = _firing_order(cloud, valid, msg.height, msg.width, has_ring)
            azimuth = clockwise_azimuth(cloud["x"][order], cloud["y"][order])
            travelled = RotationTracker().advance(azimuth)
            one_scan_angle = float(travelled[-1] - travelled[0])
            if one_scan_angle <= 0.0:
                raise ScanParameterInitError(
                    f"Cannot initialise scan parameters for {self._model.value}: "
                    f"the first message has no time field and covers no rotation."
                )

        params = ScanParameters(
            has_time_field=has_time,
            has_ring_field=has_ring,
            num_lasers=num_lasers,
            num_firings=num_firings,
            one_scan_angle=one_scan_angle,
            horizon_resolution=(one_scan_angle or TWO_PI) / num_firings,
        )
        logger.info(
            f"{self._model.value}: time field {'found' if has_time else 'missing'}, "
            f"ring field {'found' if has_ring else 'missing'}, {num_lasers} lasers, "
            f"{num_firings} firings, scan angle {np.degrees(one_scan_angle):.2f} deg."
        )
        return params

    def unpack_scan(self, msg) -> LidarFrame:
        self._check_message(msg)
        self._require_fields(msg, ("x", "y", "z"))

        if self._scan_params is None:
            self._scan_params = self.init_scan_param(msg)
        params = self._scan_params

        cloud = pointcloud2_to_array(msg)
        stamp = float(msg.stamp)
        intensity = cloud["intensity"] if msg.has_field("intensity") else np.zeros(len(cloud))

        if params.has_time_field:
            timestamp = cloud[TIME_FIELD].astype(np.float64)
        else:
            timestamp = self._reconstruct_time(cloud, msg.height, msg.width, params)

        points = self._filtered_points(cloud["x"], cloud["y"], cloud["z"], intensity, timestamp)
        return LidarFrame(timestamp=stamp, points=points)

    # ------------------------------------------------------------------
    # Internals
    # ------------------------------------------------------------------

    def _reconstruct_time(
        self, cloud: np.ndarray, height: int, width: int, params: ScanParameters
    ) -> np.ndarray:
        """Per-point time from rotation travelled since the message's first firing.

        Every valid point goes through the tracker, including points the
        range filter drops later.  Invalid points get NaN and are dropped.
        """
        timestamp = np.full(len(cloud), np.nan)
        valid = _valid_xy(cloud)
        if not valid.any():
            return timestamp
        order = _firing_order(cloud, valid, height, width, params.has_ring_field)
        azimuth = clockwise_azimuth(cloud["x"][order], cloud["y"][order])
        travelled = self._tracker.advance(azimuth)
        rotation = travelled - travelled[0]
        timestamp[order] = rotation / params.one_scan_angle * self._config.scan_period
        return timestamp


def _firing_order(
    cloud: np.ndarray, valid: np.ndarray, height: int, width: int, has_ring: bool
) -> np.ndarray:
    """Indices of the valid points of *cloud*, sorted into firing order.

    Organised clouds hold one ring per row, so a column is one firing.  In
    unorganised clouds with a ring field the n-th point of each ring belongs
    to the n-th firing.  Without either, the cloud order is taken as is.
    """
    idx = np.flatnonzero(valid)
    if height > 1 and height * width == len(cloud):
        firing = idx % width
        ring = idx // width
    elif has_ring:
        ring = cloud[RING_FIELD][idx].astype(np.int64)
        firing = _rank_within_group(ring)
    else:
        return idx
    return idx[np.lexsort((ring, firing))]


def _rank_within_group(keys: np.ndarray) -> np.ndarray:
    """Position of each element among the elements sharing its key."""
    n = keys.size
    order = np.argsort(keys, kind="stable")
    sorted_keys = keys[order]
    starts = np.ones(n, dtype=bool)
    starts[1:] = sorted_keys[1:] != sorted_keys[:-1]
    group_start = np.maximum.accumulate(np.where(starts, np.arange(n), 0))
    rank = np.empty(n, dtype=np.int64)
    rank[order] = np.arange(n) - group_start
    return rank


def _valid_xy(cloud: np.ndarray) -> np.ndarray:
    """Points with finite coordinates off the vertical axis."""
    x = cloud["x"].astype(np.float64)
    y = cloud["y"].astype(np.float64)
    z = cloud["z"].astype(np.float64)
    return np.isfinite(x) & np.isfinite(y) & np.isfinite(z) & ((x != 0.0) | (y != 0.0))
