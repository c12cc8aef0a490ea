"""Tests for the scan filter configuration."""

import numpy as np
import pytest
import yaml

from lidar_unpacker.config import ScanConfig


class TestScanConfigDefaults:
    def test_defaults(self):
        cfg = ScanConfig()
        assert cfg.min_range == 1.0
        assert cfg.max_range == 150.0
        assert cfg.min_angle is None
        assert cfg.max_angle is None
        assert cfg.scan_rate == 10.0
        assert cfg.scan_period == pytest.approx(0.1)
        assert not cfg.has_angle_window


class TestScanConfigValidation:
    def test_negative_min_range(self):
        with pytest.raises(ValueError, match="min_range"):
            ScanConfig(min_range=-1.0)

    def test_inverted_range(self):
        with pytest.raises(ValueError, match="max_range"):
            ScanConfig(min_range=10.0, max_range=5.0)

    def test_angle_out_of_bounds(self):
        with pytest.raises(ValueError, match="max_angle"):
            ScanConfig(max_angle=400.0)

    def test_non_positive_scan_rate(self):
        with pytest.raises(ValueError, match="scan_rate"):
            ScanConfig(scan_rate=0.0)


class TestRangeMask:
    def test_bounds_inclusive(self):
        cfg = ScanConfig(min_range=5.0, max_range=100.0)
        mask = cfg.range_mask(np.array([4.999, 5.0, 50.0, 100.0, 100.002]))
        np.testing.assert_array_equal(mask, [False, True, True, True, False])

    def test_scalar(self):
        assert bool(ScanConfig().range_mask(10.0))


class TestAngleMask:
    def test_no_window_accepts_everything(self):
        mask = ScanConfig().angle_mask(np.array([0.0, 180.0, 359.9]))
        assert mask.all()

    def test_plain_window(self):
        cfg = ScanConfig(min_angle=10.0, max_angle=20.0)
        mask = cfg.angle_mask(np.array([5.0, 10.0, 15.0, 20.0, 25.0]))
        np.testing.assert_array_equal(mask, [False, True, True, True, False])

    def test_window_wrapping_through_zero(self):
        cfg = ScanConfig(min_angle=350.0, max_angle=10.0)
        mask = cfg.angle_mask(np.array([340.0, 350.0, 0.0, 10.0, 20.0]))
        np.testing.assert_array_equal(mask, [False, True, True, True, False])

    def test_only_min_angle(self):
        cfg = ScanConfig(min_angle=270.0)
        mask = cfg.angle_mask(np.array([0.0, 269.0, 270.0, 359.0]))
        np.testing.assert_array_equal(mask, [False, False, True, True])


class TestScanConfigSerialisation:
    def test_round_trip_dict(self):
        cfg = ScanConfig(min_range=0.5, max_range=80.0, min_angle=45.0, max_angle=135.0, scan_rate=20.0)
        assert ScanConfig.from_dict(cfg.to_dict()) == cfg

    def test_from_dict_partial(self):
        cfg = ScanConfig.from_dict({"max_range": 60})
        assert cfg.max_range == 60.0
        assert cfg.min_range == 1.0
        assert cfg.min_angle is None

    def test_yaml_round_trip(self, tmp_path):
        path = tmp_path / "scan.yaml"
        cfg = ScanConfig(min_range=2.0, max_angle=180.0)
        cfg.to_yaml(path)
        raw = yaml.safe_load(path.read_text())
        assert raw["min_range"] == 2.0
        assert raw["max_angle"] == 180.0
        assert ScanConfig.from_yaml(path) == cfg

    def test_empty_yaml_gives_defaults(self, tmp_path):
        path = tmp_path / "empty.yaml"
        path.write_text("")
        assert ScanConfig.from_yaml(path) == ScanConfig()

    def test_invalid_yaml_values_raise(self, tmp_path):
        path = tmp_path / "bad.yaml"
        path.write_text("min_range: 20.0\nmax_range: 10.0\n")
        with pytest.raises(ValueError):
            ScanConfig.from_yaml(path)
