"""Tests for the Livox CustomMsg decoder."""

import numpy as np
import pytest

from lidar_unpacker.config import ScanConfig
from lidar_unpacker.decoders.livox import LivoxDecoder
from lidar_unpacker.errors import MessageTypeMismatchError
from lidar_unpacker.messages import LIVOX_CUSTOM_POINT_DTYPE, LivoxCustomMsg, PointCloud2
from lidar_unpacker.models import LidarModelType

_TIMEBASE = 1_700_000_000_123_456_789  # ns


def _livox_msg(n: int = 100) -> LivoxCustomMsg:
    pts = np.zeros(n, dtype=LIVOX_CUSTOM_POINT_DTYPE)
    pts["offset_time"] = np.arange(n) * 1000  # 1 µs apart
    pts["x"] = np.linspace(3.0, 30.0, n)
    pts["y"] = np.linspace(-2.0, 2.0, n)
    pts["z"] = 0.25
    pts["reflectivity"] = np.arange(n) % 255
    pts["line"] = np.arange(n) % 6
    return LivoxCustomMsg(timebase=_TIMEBASE, points=pts, stamp=1_700_000_000.1)


class TestLivoxDecoder:
    def test_reference_time_is_timebase(self):
        frame = LivoxDecoder(LidarModelType.LIVOX_AVIA).unpack_scan(_livox_msg())
        assert frame.timestamp == pytest.approx(_TIMEBASE * 1e-9)

    def test_offset_time_in_seconds(self):
        msg = _livox_msg()
        frame = LivoxDecoder(LidarModelType.LIVOX_AVIA).unpack_scan(msg)
        assert len(frame) == 100
        np.testing.assert_allclose(frame.points["timestamp"], np.arange(100) * 1e-6)

    def test_reflectivity_becomes_intensity(self):
        msg = _livox_msg()
        frame = LivoxDecoder(LidarModelType.LIVOX_MID_360).unpack_scan(msg)
        np.testing.assert_array_equal(frame.points["intensity"], msg.points["reflectivity"])

    def test_range_filter(self):
        decoder = LivoxDecoder(LidarModelType.LIVOX_MID_360, ScanConfig(max_range=10.0))
        frame = decoder.unpack_scan(_livox_msg())
        assert 0 < len(frame) < 100
        assert np.all(frame.ranges() <= 10.0 + 1e-5)

    def test_empty_message(self):
        msg = LivoxCustomMsg(timebase=_TIMEBASE, points=np.zeros(0, dtype=LIVOX_CUSTOM_POINT_DTYPE))
        frame = LivoxDecoder(LidarModelType.LIVOX_AVIA).unpack_scan(msg)
        assert frame.is_empty
        assert msg.point_num == 0

    def test_point_cloud_is_mismatch(self):
        arr = np.zeros(2, dtype=[("x", "f4"), ("y", "f4"), ("z", "f4")])
        with pytest.raises(MessageTypeMismatchError, match="LIVOX_AVIA"):
            LivoxDecoder(LidarModelType.LIVOX_AVIA).unpack_scan(PointCloud2.from_array(0.0, arr))

    def test_missing_offset_time_is_mismatch(self):
        pts = np.zeros(2, dtype=[("x", "f4"), ("y", "f4"), ("z", "f4"), ("reflectivity", "u1")])
        with pytest.raises(MessageTypeMismatchError, match="offset_time"):
            LivoxDecoder(LidarModelType.LIVOX_AVIA).unpack_scan(LivoxCustomMsg(timebase=0, points=pts))
