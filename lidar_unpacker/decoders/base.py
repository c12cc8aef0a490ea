"""
decoders/base.py

Shared decode contract for all LiDAR models.

A decoder is created once per sensor topic and then fed one message at a time
through :meth:`LidarDecoder.unpack_scan`.  Decoders are not re-entrant: calls
on one instance must not overlap.  Separate instances share no state and can
run on different threads.
"""

from __future__ import annotations

from abc import ABC, abstractmethod
from typing import Iterable, Optional, Tuple

import numpy as np

from lidar_unpacker.config import ScanConfig
from lidar_unpacker.errors import MessageTypeMismatchError
from lidar_unpacker.frame import LidarFrame, make_points
from lidar_unpacker.messages import PointCloud2
from lidar_unpacker.models import LidarModelType

TWO_PI = 2.0 * np.pi


class LidarDecoder(ABC):
    """Base class for model-specific decoders.

    Args:
        model: The LiDAR model this decoder handles.
        config: Range/azimuth filter and scan rate.  Defaults to
            :class:`~lidar_unpacker.config.ScanConfig` defaults.
    """

    #: Message classes accepted by :meth:`unpack_scan`.
    message_types: Tuple[type, ...] = ()

    def __init__(self, model: LidarModelType, config: Optional[ScanConfig] = None) -> None:
        self._model = model
        self._config = config if config is not None else ScanConfig()

    # ------------------------------------------------------------------
    # Public API
    # ------------------------------------------------------------------

    @property
    def model(self) -> LidarModelType:
        return self._model

    @property
    def config(self) -> ScanConfig:
        return self._config

    @property
    def expected_message(self) -> str:
        """Name of the wire message type this decoder accepts."""
        return self._model.message_type_name

    @abstractmethod
    def unpack_scan(self, msg) -> LidarFrame:
        """Decode one message into a :class:`~lidar_unpacker.frame.LidarFrame`.

        Raises:
            MessageTypeMismatchError: If *msg* is not the wire type of this
                decoder's model.
        """

    def __repr__(self) -> str:
        return f"{type(self).__name__}(model={self._model.value!r})"

    # ------------------------------------------------------------------
    # Helpers for subclasses
    # ------------------------------------------------------------------

    def _check_message(self, msg) -> None:
        if not isinstance(msg, self.message_types):
            raise MessageTypeMismatchError(
                self._model.value, self.expected_message, type(msg).__name__
            )

    def _require_fields(self, msg: PointCloud2, names: Iterable[str]) -> None:
        """Raise if the cloud's record layout lacks any of *names*."""
        missing = [name for name in names if not msg.has_field(name)]
        if missing:
            raise MessageTypeMismatchError(
                self._model.value,
                self.expected_message,
                type(msg).__name__,
                detail=f"Missing point fields {missing}; available {msg.field_names}.",
            )

    def _filtered_points(self, x, y, z, intensity, timestamp) -> np.ndarray:
        """Drop points outside the configured range and azimuth window.

        Points with non-finite coordinates or time, or zero range (no
        return), are always dropped.
        """
        x = np.asarray(x, dtype=np.float64)
        y = np.asarray(y, dtype=np.float64)
        z = np.asarray(z, dtype=np.float64)
        timestamp = np.asarray(timestamp, dtype=np.float64)
        finite = np.isfinite(x) & np.isfinite(y) & np.isfinite(z) & np.isfinite(timestamp)
        with np.errstate(invalid="ignore"):
            distance = np.sqrt(x * x + y * y + z * z)
            keep = finite & (distance > 0.0) & self._config.range_mask(distance)
        if self._config.has_angle_window:
            keep &= self._config.angle_mask(np.degrees(clockwise_azimuth(x, y)))
        return make_points(
            x[keep],
            y[keep],
            z[keep],
            np.asarray(intensity)[keep],
            timestamp[keep],
        )


def clockwise_azimuth(x, y) -> np.ndarray:
    """Azimuth in ``[0, 2π)`` measured clockwise (seen from above) from +x.

    Spinning LiDARs rotate clockwise, so this angle grows with firing time.
    """
    angle = np.mod(-np.arctan2(np.asarray(y, dtype=np.float64), np.asarray(x, dtype=np.float64)), TWO_PI)
    # mod can round a tiny negative angle up to exactly 2π
    return np.where(angle >= TWO_PI, 0.0, angle)
