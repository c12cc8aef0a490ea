"""
messages.py

In-memory wire messages handed to the decoders by a log reader.

The types mirror the ROS messages LiDAR drivers record:

* :class:`VelodynePacket` / :class:`VelodyneScan` – raw VLP-16 UDP payloads
  (``velodyne_msgs/VelodyneScan``).
* :class:`PointCloud2` with :class:`PointField` – pre-unpacked point clouds
  (``sensor_msgs/PointCloud2``) as published by Velodyne, Ouster and Hesai
  drivers.
* :class:`LivoxCustomMsg` – Livox driver point records with per-point time
  offsets (``livox_ros_driver/CustomMsg``).

Stamps are floating-point seconds.  Reading these messages from a bag is the
caller's job; the decoders only borrow them.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import List

import numpy as np

# ---------------------------------------------------------------------------
# Velodyne raw packets
# ---------------------------------------------------------------------------

VELODYNE_PACKET_SIZE = 1206  # bytes of UDP payload


@dataclass
class VelodynePacket:
    """One raw Velodyne UDP payload.

    Attributes:
        stamp: Receive time of the packet in seconds.
        data: The 1206-byte payload.
    """

    stamp: float
    data: bytes


@dataclass
class VelodyneScan:
    """A group of raw packets covering (about) one revolution."""

    stamp: float
    packets: List[VelodynePacket] = field(default_factory=list)
    frame_id: str = ""


# ---------------------------------------------------------------------------
# PointCloud2
# ---------------------------------------------------------------------------


@dataclass
class PointField:
    """Description of one named field inside a PointCloud2 point record."""

    INT8 = 1
    UINT8 = 2
    INT16 = 3
    UINT16 = 4
    INT32 = 5
    UINT32 = 6
    FLOAT32 = 7
    FLOAT64 = 8

    name: str
    offset: int
    datatype: int
    count: int = 1


# PointField datatype code -> numpy scalar type
_DATATYPE_TO_NUMPY: dict[int, type] = {
    PointField.INT8: np.int8,
    PointField.UINT8: np.uint8,
    PointField.INT16: np.int16,
    PointField.UINT16: np.uint16,
    PointField.INT32: np.int32,
    PointField.UINT32: np.uint32,
    PointField.FLOAT32: np.float32,
    PointField.FLOAT64: np.float64,
}

_NUMPY_TO_DATATYPE: dict[np.dtype, int] = {
    np.dtype(t): code for code, t in _DATATYPE_TO_NUMPY.items()
}


@dataclass
class PointCloud2:
    """A packed point cloud whose record layout is described by ``fields``."""

    stamp: float
    height: int
    width: int
    fields: List[PointField]
    is_bigendian: bool
    point_step: int
    row_step: int
    data: bytes
    is_dense: bool = True
    frame_id: str = ""

    @property
    def num_points(self) -> int:
        return self.height * self.width

    def has_field(self, name: str) -> bool:
        """Return ``True`` if the record layout declares a field *name*."""
        return any(f.name == name for f in self.fields)

    @property
    def field_names(self) -> List[str]:
        return [f.name for f in self.fields]

    @classmethod
    def from_array(
        cls,
        stamp: float,
        points: np.ndarray,
        height: int = 1,
        frame_id: str = "",
    ) -> "PointCloud2":
        """Pack a structured numpy array into a PointCloud2 message.

        Args:
            stamp: Message stamp in seconds.
            points: 1-D structured array; every field must be one of the
                PointField numeric types (optionally a fixed-size sub-array).
            height: Number of rows for organised clouds; ``len(points)`` must
                be divisible by it.
            frame_id: Sensor frame name.

        Raises:
            ValueError: If a field type has no PointField equivalent or the
                point count does not fit *height*.
        """
        points = np.ascontiguousarray(points)
        if points.dtype.names is None:
            raise ValueError("PointCloud2.from_array expects a structured array.")
        if height <= 0 or len(points) % height != 0:
            raise ValueError(f"Cannot arrange {len(points)} points into {height} rows.")

        fields: List[PointField] = []
        for name in points.dtype.names:
            field_dtype, offset = points.dtype.fields[name][:2]
            count = 1
            if field_dtype.subdtype is not None:
                field_dtype, shape = field_dtype.subdtype
                count = int(np.prod(shape))
            code = _NUMPY_TO_DATATYPE.get(field_dtype.newbyteorder("="))
            if code is None:
                raise ValueError(f"Field {name!r} has unsupported type {field_dtype}.")
            fields.append(PointField(name=name, offset=int(offset), datatype=code, count=count))

        width = len(points) // height
        point_step = points.dtype.itemsize
        return cls(
            stamp=float(stamp),
            height=height,
            width=width,
            fields=fields,
            is_bigendian=False,
            point_step=point_step,
            row_step=point_step * width,
            data=points.astype(points.dtype.newbyteorder("<")).tobytes(),
            is_dense=True,
            frame_id=frame_id,
        )


def pointcloud2_dtype(msg: PointCloud2) -> np.dtype:
    """Build the structured dtype that matches ``msg``'s record layout.

    Fields with an unknown datatype code are left out; the bytes they cover
    become padding.
    """
    order = ">" if msg.is_bigendian else "<"
    names, formats, offsets = [], [], []
    for f in msg.fields:
        scalar = _DATATYPE_TO_NUMPY.get(f.datatype)
        if scalar is None:
            continue
        base = np.dtype(scalar).newbyteorder(order)
        names.append(f.name)
        formats.append(base if f.count <= 1 else (base, (f.count,)))
        offsets.append(f.offset)
    return np.dtype(
        {"names": names, "formats": formats, "offsets": offsets, "itemsize": msg.point_step}
    )


def pointcloud2_to_array(msg: PointCloud2) -> np.ndarray:
    """Unpack a PointCloud2 into a 1-D structured numpy array.

    Organised clouds are flattened row by row.  A data buffer shorter than
    ``height * width * point_step`` yields only the complete records.
    """
    dtype = pointcloud2_dtype(msg)
    if msg.point_step <= 0:
        return np.empty(0, dtype=dtype)
    available = len(msg.data) // msg.point_step
    count = min(msg.num_points, available)
    return np.frombuffer(msg.data, dtype=dtype, count=count)


# ---------------------------------------------------------------------------
# Livox
# ---------------------------------------------------------------------------

LIVOX_CUSTOM_POINT_DTYPE = np.dtype(
    [
        ("offset_time", np.uint32),
        ("x", np.float32),
        ("y", np.float32),
        ("z", np.float32),
        ("reflectivity", np.uint8),
        ("tag", np.uint8),
        ("line", np.uint8),
    ]
)


@dataclass
class LivoxCustomMsg:
    """Livox driver message carrying per-point time offsets.

    Attributes:
        timebase: Time of the first point in integer nanoseconds.
        points: Structured array with dtype :data:`LIVOX_CUSTOM_POINT_DTYPE`;
            ``offset_time`` is nanoseconds after ``timebase``.
        lidar_id: Index of the LiDAR on a multi-sensor hub.
        stamp: Header stamp in seconds.
        frame_id: Sensor frame name.
    """

    timebase: int
    points: np.ndarray
    lidar_id: int = 0
    stamp: float = 0.0
    frame_id: str = ""

    @property
    def point_num(self) -> int:
        return len(self.points)
