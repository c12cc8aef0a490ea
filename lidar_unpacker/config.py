"""
config.py

Runtime settings shared by all decoders: the range and azimuth window a point
must fall inside to be kept, and the nominal scan rate used when timing has to
be reconstructed from rotation.

Per-model constants (firing cadence, distance resolution, vertical angles) are
not configurable; they live with each decoder.

Example YAML::

    min_range: 1.0
    max_range: 150.0
    min_angle: null   # degrees, clockwise from the sensor's forward axis
    max_angle: null
    scan_rate: 10.0   # Hz
"""

from __future__ import annotations

import os
from dataclasses import dataclass
from pathlib import Path
from typing import Optional

import numpy as np
import yaml


@dataclass
class ScanConfig:
    """Point filter and scan timing settings.

    Attributes:
        min_range: Smallest accepted range in metres (inclusive).
        max_range: Largest accepted range in metres (inclusive).
        min_angle: Start of the accepted azimuth window in degrees, or
            ``None`` for no lower limit.
        max_angle: End of the accepted azimuth window in degrees, or
            ``None`` for no upper limit.  When ``min_angle > max_angle`` the
            window wraps through 0°.
        scan_rate: Rotation rate in Hz (one scan period is ``1 / scan_rate``).
    """

    min_range: float = 1.0
    max_range: float = 150.0
    min_angle: Optional[float] = None
    max_angle: Optional[float] = None
    scan_rate: float = 10.0

    def __post_init__(self) -> None:
        if self.min_range < 0.0:
            raise ValueError(f"min_range must be non-negative, got {self.min_range}.")
        if self.max_range < self.min_range:
            raise ValueError(
                f"max_range ({self.max_range}) must not be smaller than "
                f"min_range ({self.min_range})."
            )
        for name in ("min_angle", "max_angle"):
            value = getattr(self, name)
            if value is not None and not 0.0 <= value <= 360.0:
                raise ValueError(f"{name} must lie in [0, 360] degrees, got {value}.")
        if self.scan_rate <= 0.0:
            raise ValueError(f"scan_rate must be positive, got {self.scan_rate}.")

    # ------------------------------------------------------------------
    # Filters
    # ------------------------------------------------------------------

    @property
    def scan_period(self) -> float:
        """Duration of one revolution in seconds."""
        return 1.0 / self.scan_rate

    @property
    def has_angle_window(self) -> bool:
        return self.min_angle is not None or self.max_angle is not None

    def range_mask(self, distance: np.ndarray) -> np.ndarray:
        """Boolean mask of ranges inside ``[min_range, max_range]``."""
        distance = np.asarray(distance)
        return (distance >= self.min_range) & (distance <= self.max_range)

    def angle_mask(self, azimuth_deg: np.ndarray) -> np.ndarray:
        """Boolean mask of azimuths (degrees, ``[0, 360)``) inside the window."""
        azimuth_deg = np.asarray(azimuth_deg)
        if not self.has_angle_window:
            return np.ones(azimuth_deg.shape, dtype=bool)
        lo = 0.0 if self.min_angle is None else self.min_angle
        hi = 360.0 if self.max_angle is None else self.max_angle
        if lo <= hi:
            return (azimuth_deg >= lo) & (azimuth_deg <= hi)
        return (azimuth_deg >= lo) | (azimuth_deg <= hi)

    # ------------------------------------------------------------------
    # Serialisation
    # ------------------------------------------------------------------

    def to_dict(self) -> dict:
        return {
            "min_range": float(self.min_range),
            "max_range": float(self.max_range),
            "min_angle": None if self.min_angle is None else float(self.min_angle),
            "max_angle": None if self.max_angle is None else float(self.max_angle),
            "scan_rate": float(self.scan_rate),
        }

    @classmethod
    def from_dict(cls, data: dict) -> "ScanConfig":
        defaults = cls()

        def _optional(key: str) -> Optional[float]:
            value = data.get(key)
            return None if value is None else float(value)

        return cls(
            min_range=float(data.get("min_range", defaults.min_range)),
            max_range=float(data.get("max_range", defaults.max_range)),
            min_angle=_optional("min_angle"),
            max_angle=_optional("max_angle"),
            scan_rate=float(data.get("scan_rate", defaults.scan_rate)),
        )

    def to_yaml(self, path: str | os.PathLike) -> None:
        """Write the settings to a YAML file."""
        Path(path).write_text(yaml.dump(self.to_dict(), default_flow_style=False, sort_keys=False))

    @classmethod
    def from_yaml(cls, path: str | os.PathLike) -> "ScanConfig":
        """Load settings from a YAML file.  Missing keys keep their defaults."""
        raw = yaml.safe_load(Path(path).read_text())
        return cls.from_dict(raw or {})
