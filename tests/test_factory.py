"""Tests for the decoder factory."""

import numpy as np
import pytest

from lidar_unpacker import (
    LidarModelType,
    MessageTypeMismatchError,
    ScanConfig,
    UnsupportedModelError,
    get_decoder,
    supported_models,
    unpack_scans,
)
from lidar_unpacker.decoders import (
    LidarDecoder,
    LivoxDecoder,
    OusterDecoder,
    PandarXTDecoder,
    Velodyne16Decoder,
    VelodynePointsDecoder,
)
from lidar_unpacker.messages import (
    LIVOX_CUSTOM_POINT_DTYPE,
    LivoxCustomMsg,
    PointCloud2,
    VelodyneScan,
)

_EXPECTED_CLASS = {
    "VLP_16_PACKET": Velodyne16Decoder,
    "VLP_16_POINTS": VelodynePointsDecoder,
    "VLP_32E_POINTS": VelodynePointsDecoder,
    "OUSTER_16_POINTS": OusterDecoder,
    "OUSTER_32_POINTS": OusterDecoder,
    "OUSTER_64_POINTS": OusterDecoder,
    "OUSTER_128_POINTS": OusterDecoder,
    "PANDAR_XT_16": PandarXTDecoder,
    "PANDAR_XT_32": PandarXTDecoder,
    "LIVOX_MID_360": LivoxDecoder,
    "LIVOX_AVIA": LivoxDecoder,
}


class TestGetDecoder:
    @pytest.mark.parametrize("name", supported_models())
    def test_every_model_has_a_decoder(self, name):
        decoder = get_decoder(name)
        assert isinstance(decoder, LidarDecoder)
        assert isinstance(decoder, _EXPECTED_CLASS[name])
        assert decoder.model is LidarModelType.from_string(name)

    def test_accepts_enum(self):
        decoder = get_decoder(LidarModelType.OUSTER_32_POINTS)
        assert decoder.model is LidarModelType.OUSTER_32_POINTS

    def test_config_is_passed_through(self):
        cfg = ScanConfig(min_range=0.3, max_range=40.0)
        decoder = get_decoder("LIVOX_AVIA", cfg)
        assert decoder.config is cfg

    def test_default_config(self):
        assert get_decoder("VLP_16_POINTS").config == ScanConfig()

    @pytest.mark.parametrize("name", ["VLP_64_PACKET", "velodyne", "", "OUSTER_256_POINTS"])
    def test_unknown_model_raises(self, name):
        with pytest.raises(UnsupportedModelError):
            get_decoder(name)

    def test_instances_are_independent(self):
        a = get_decoder("VLP_16_POINTS")
        b = get_decoder("VLP_16_POINTS")
        assert a is not b
        assert a.tracker is not b.tracker

    def test_expected_message(self):
        assert get_decoder("VLP_16_PACKET").expected_message == "VelodyneScan"
        assert get_decoder("LIVOX_AVIA").expected_message == "LivoxCustomMsg"

    def test_repr(self):
        assert "OUSTER_16_POINTS" in repr(get_decoder("OUSTER_16_POINTS"))


class TestWrongWireType:
    @pytest.mark.parametrize("name", supported_models())
    def test_foreign_message_is_rejected(self, name):
        decoder = get_decoder(name)
        if isinstance(decoder, Velodyne16Decoder):
            msg = LivoxCustomMsg(timebase=0, points=np.zeros(0, dtype=LIVOX_CUSTOM_POINT_DTYPE))
        else:
            msg = VelodyneScan(stamp=0.0)
        with pytest.raises(MessageTypeMismatchError) as info:
            decoder.unpack_scan(msg)
        assert info.value.model == name


class TestUnpackScans:
    def test_yields_one_frame_per_message(self):
        decoder = get_decoder("LIVOX_MID_360")
        msgs = []
        for i in range(3):
            pts = np.zeros(4, dtype=LIVOX_CUSTOM_POINT_DTYPE)
            pts["x"] = 5.0
            pts["offset_time"] = np.arange(4) * 10
            msgs.append(LivoxCustomMsg(timebase=i * 100_000_000, points=pts))
        frames = list(unpack_scans(decoder, msgs))
        assert len(frames) == 3
        assert [len(f) for f in frames] == [4, 4, 4]
        assert frames[2].timestamp == pytest.approx(0.2)

    def test_errors_propagate(self):
        decoder = get_decoder("OUSTER_16_POINTS")
        arr = np.zeros(1, dtype=[("x", "f4"), ("y", "f4"), ("z", "f4")])
        with pytest.raises(MessageTypeMismatchError):
            list(unpack_scans(decoder, [PointCloud2.from_array(0.0, arr)]))
