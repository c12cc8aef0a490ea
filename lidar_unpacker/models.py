"""
models.py

Registry of the LiDAR models that can be decoded.

Every supported sensor is identified by a :class:`LidarModelType` member whose
name doubles as the configuration string, e.g. ``"VLP_16_PACKET"`` or
``"LIVOX_AVIA"``.  The set is closed: anything else is rejected with
:class:`~lidar_unpacker.errors.UnsupportedModelError`.

=====================  ==============  ==================  ========
Configuration string   Decoder family  Wire message        Channels
=====================  ==============  ==================  ========
``VLP_16_PACKET``      raw packets     ``VelodyneScan``       16
``VLP_16_POINTS``      point cloud     ``PointCloud2``        16
``VLP_32E_POINTS``     point cloud     ``PointCloud2``        32
``OUSTER_16_POINTS``   Ouster          ``PointCloud2``        16
``OUSTER_32_POINTS``   Ouster          ``PointCloud2``        32
``OUSTER_64_POINTS``   Ouster          ``PointCloud2``        64
``OUSTER_128_POINTS``  Ouster          ``PointCloud2``       128
``PANDAR_XT_16``       Pandar XT       ``PointCloud2``        16
``PANDAR_XT_32``       Pandar XT       ``PointCloud2``        32
``LIVOX_MID_360``      Livox           ``LivoxCustomMsg``      4
``LIVOX_AVIA``         Livox           ``LivoxCustomMsg``      6
=====================  ==============  ==================  ========
"""

from __future__ import annotations

from enum import Enum
from typing import List

from lidar_unpacker.errors import UnsupportedModelError


class LidarModelType(Enum):
    """Supported LiDAR models.  The value is the configuration string."""

    VLP_16_PACKET = "VLP_16_PACKET"
    VLP_16_POINTS = "VLP_16_POINTS"
    VLP_32E_POINTS = "VLP_32E_POINTS"

    OUSTER_16_POINTS = "OUSTER_16_POINTS"
    OUSTER_32_POINTS = "OUSTER_32_POINTS"
    OUSTER_64_POINTS = "OUSTER_64_POINTS"
    OUSTER_128_POINTS = "OUSTER_128_POINTS"

    PANDAR_XT_16 = "PANDAR_XT_16"
    PANDAR_XT_32 = "PANDAR_XT_32"

    LIVOX_MID_360 = "LIVOX_MID_360"
    LIVOX_AVIA = "LIVOX_AVIA"

    def __str__(self) -> str:
        return self.value

    @classmethod
    def from_string(cls, name: str) -> "LidarModelType":
        """Parse a configuration string into a model.

        Raises:
            UnsupportedModelError: If *name* is not a registered model.
        """
        key = str(name).strip()
        try:
            return cls(key)
        except ValueError:
            raise UnsupportedModelError(name, supported_models()) from None

    @property
    def num_lasers(self) -> int:
        """Number of channels (scan lines for Livox)."""
        return _NUM_LASERS[self]

    @property
    def message_type_name(self) -> str:
        """Name of the wire message type this model is delivered as."""
        return _MESSAGE_TYPE_NAME[self]


_NUM_LASERS: dict[LidarModelType, int] = {
    LidarModelType.VLP_16_PACKET: 16,
    LidarModelType.VLP_16_POINTS: 16,
    LidarModelType.VLP_32E_POINTS: 32,
    LidarModelType.OUSTER_16_POINTS: 16,
    LidarModelType.OUSTER_32_POINTS: 32,
    LidarModelType.OUSTER_64_POINTS: 64,
    LidarModelType.OUSTER_128_POINTS: 128,
    LidarModelType.PANDAR_XT_16: 16,
    LidarModelType.PANDAR_XT_32: 32,
    LidarModelType.LIVOX_MID_360: 4,
    LidarModelType.LIVOX_AVIA: 6,
}

_MESSAGE_TYPE_NAME: dict[LidarModelType, str] = {
    model: "PointCloud2" for model in LidarModelType
}
_MESSAGE_TYPE_NAME[LidarModelType.VLP_16_PACKET] = "VelodyneScan"
_MESSAGE_TYPE_NAME[LidarModelType.LIVOX_MID_360] = "LivoxCustomMsg"
_MESSAGE_TYPE_NAME[LidarModelType.LIVOX_AVIA] = "LivoxCustomMsg"


def supported_models() -> List[str]:
    """Return every accepted configuration string, in registry order."""
    return [model.value for model in LidarModelType]
