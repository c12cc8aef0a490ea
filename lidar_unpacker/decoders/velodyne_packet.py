"""
decoders/velodyne_packet.py

Decoder for raw Velodyne VLP-16 packets (``velodyne_msgs/VelodyneScan``).

Packet layout (1206 bytes, little endian)
-----------------------------------------

::

    [ block 0 ] ... [ block 11 ]  12 x 100 bytes
    [ revolution ]                uint32
    [ status ]                    2 x uint8

    block:
    ======  ====  ===============================================
    Offset  Size  Field
    ======  ====  ===============================================
      0      2    bank marker (0xEEFF upper, 0xDDFF lower)
      2      2    rotation, hundredths of a degree (0 - 35999)
      4     96    32 x (uint16 distance, uint8 intensity)
    ======  ====  ===============================================

Each block holds two firings of the 16 lasers.  Lasers fire every 2.304 µs,
a firing sequence repeats every 55.296 µs, so a block spans 110.592 µs.  The
time of every reading relative to the packet stamp is therefore fixed and is
tabulated once per decoder, together with the sine/cosine of every rotation
code and of every laser's vertical angle.

Output coordinates use the ROS convention (x forward, y left, z up); zero
azimuth points along +x and the azimuth grows clockwise seen from above.
"""

from __future__ import annotations

import logging
from typing import List, Optional

import numpy as np

from lidar_unpacker.config import ScanConfig
from lidar_unpacker.decoders.base import LidarDecoder
from lidar_unpacker.frame import LIDAR_POINT_DTYPE, LidarFrame, make_points
from lidar_unpacker.messages import VELODYNE_PACKET_SIZE, VelodynePacket, VelodyneScan
from lidar_unpacker.models import LidarModelType

logger = logging.getLogger(__name__)

# ---------------------------------------------------------------------------
# Constants
# ---------------------------------------------------------------------------

BLOCKS_PER_PACKET = 12
SCANS_PER_BLOCK = 32
FIRINGS_PER_BLOCK = 2
SCANS_PER_FIRING = 16

ROTATION_RESOLUTION = 0.01  # degrees per rotation unit
ROTATION_MAX_UNITS = 36000
DISTANCE_RESOLUTION = 0.002  # metres per distance unit

UPPER_BANK = 0xEEFF
LOWER_BANK = 0xDDFF

BLOCK_TDURATION = 110.592  # µs
DSR_TOFFSET = 2.304  # µs between lasers
FIRING_TOFFSET = 55.296  # µs between firing sequences
PACKET_TIME = BLOCKS_PER_PACKET * FIRINGS_PER_BLOCK * FIRING_TOFFSET  # µs

# Vertical angle of each laser in firing (dsr) order, degrees
VLP16_VERTICAL_ANGLES = (
    -15.0, 1.0, -13.0, 3.0, -11.0, 5.0, -9.0, 7.0,
    -7.0, 9.0, -5.0, 11.0, -3.0, 13.0, -1.0, 15.0,
)

_RAW_READING_DTYPE = np.dtype([("distance", "<u2"), ("intensity", "u1")])
_RAW_BLOCK_DTYPE = np.dtype(
    [
        ("header", "<u2"),
        ("rotation", "<u2"),
        ("readings", _RAW_READING_DTYPE, (SCANS_PER_BLOCK,)),
    ]
)
RAW_PACKET_DTYPE = np.dtype(
    [
        ("blocks", _RAW_BLOCK_DTYPE, (BLOCKS_PER_PACKET,)),
        ("revolution", "<u4"),
        ("status", "u1", (2,)),
    ]
)

class Velodyne16Decoder(LidarDecoder):
    """Decode raw VLP-16 packets into per-point timestamped frames.

    Accepts a :class:`~lidar_unpacker.messages.VelodyneScan` (the frame
    reference time is the scan stamp and each packet contributes its own
    stamp offset) or a single :class:`~lidar_unpacker.messages.VelodynePacket`
    (the reference time is the packet stamp).

    Args:
        model: Must be :attr:`LidarModelType.VLP_16_PACKET`.
        config: Range/azimuth filter.

    Example::

        decoder = Velodyne16Decoder(LidarModelType.VLP_16_PACKET)
        frame = decoder.unpack_scan(scan_msg)
        xyz = frame.xyz()
    """

    message_types = (VelodyneScan, VelodynePacket)

    def __init__(
        self,
        model: LidarModelType = LidarModelType.VLP_16_PACKET,
        config: Optional[ScanConfig] = None,
    ) -> None:
        super().__init__(model, config)

        rotation = np.radians(np.arange(ROTATION_MAX_UNITS) * ROTATION_RESOLUTION)
        self._sin_rot_table = _frozen(np.sin(rotation))
        self._cos_rot_table = _frozen(np.cos(rotation))

        vert = np.radians(np.asarray(VLP16_VERTICAL_ANGLES))
        self._sin_vert_angle = _frozen(np.sin(vert))
        self._cos_vert_angle = _frozen(np.cos(vert))

        # Per-laser azimuth offset in rotation units; the factory VLP-16
        # calibration has none.
        self._rot_correction = _frozen(np.zeros(SCANS_PER_FIRING, dtype=np.int64))

        firing = np.arange(FIRINGS_PER_BLOCK)[:, None]
        dsr = np.arange(SCANS_PER_FIRING)[None, :]
        block = np.arange(BLOCKS_PER_PACKET)[:, None, None]

        # Fraction of a block's azimuth step reached at each (firing, dsr)
        self._azimuth_fraction = _frozen(
            (dsr * DSR_TOFFSET + firing * FIRING_TOFFSET) / BLOCK_TDURATION
        )
        # Seconds after the packet stamp, shape (block, firing, dsr)
        self._time_table = _frozen(
            (block * BLOCK_TDURATION + firing * FIRING_TOFFSET + dsr * DSR_TOFFSET) * 1e-6
        )

    # ------------------------------------------------------------------
    # Public API
    # ------------------------------------------------------------------

    def unpack_scan(self, msg) -> LidarFrame:
        self._check_message(msg)
        if isinstance(msg, VelodynePacket):
            packets: List[VelodynePacket] = [msg]
        else:
            packets = list(msg.packets)
        stamp = float(msg.stamp)

        chunks = []
        for packet in packets:
            pts = self._unpack_packet(packet, float(packet.stamp) - stamp)
            if len(pts) > 0:
                chunks.append(pts)

        if not chunks:
            return LidarFrame.empty(stamp)
        return LidarFrame(timestamp=stamp, points=np.concatenate(chunks))

    def get_exact_time(self, dsr: int, firing: int) -> float:
        """Seconds from the packet stamp to laser *dsr* of firing sequence *firing*.

        *firing* counts firing sequences across the packet (0 - 23).
        """
        block, within = divmod(firing, FIRINGS_PER_BLOCK)
        return float(self._time_table[block, within, dsr])

    def point_in_range(self, distance: float) -> bool:
        return bool(self._config.range_mask(distance))

    # ------------------------------------------------------------------
    # Internals
    # ------------------------------------------------------------------

    def _unpack_packet(self, packet: VelodynePacket, time_offset: float) -> np.ndarray:
        if len(packet.data) != VELODYNE_PACKET_SIZE:
            logger.warning(
                f"Skipping Velodyne packet at {packet.stamp:.6f}: {len(packet.data)} bytes, "
                f"expected {VELODYNE_PACKET_SIZE}."
            )
            return np.empty(0, dtype=LIDAR_POINT_DTYPE)

        blocks = np.frombuffer(packet.data, dtype=RAW_PACKET_DTYPE, count=1)[0]["blocks"]
        headers = blocks["header"]
        rotation = blocks["rotation"].astype(np.int64)
        valid = ((headers == UPPER_BANK) | (headers == LOWER_BANK)) & (rotation < ROTATION_MAX_UNITS)
        if not valid.all():
            logger.debug(
                f"Velodyne packet at {packet.stamp:.6f}: skipping "
                f"{int((~valid).sum())} block(s) with an invalid header."
            )
        idx = np.flatnonzero(valid)
        if idx.size == 0:
            return np.empty(0, dtype=LIDAR_POINT_DTYPE)

        azimuth_diff = _block_azimuth_diff(rotation, valid)

        readings = blocks["readings"][idx].reshape(idx.size, FIRINGS_PER_BLOCK, SCANS_PER_FIRING)
        raw_distance = readings["distance"]

        azimuth = (
            rotation[idx, None, None]
            + azimuth_diff[idx, None, None] * self._azimuth_fraction[None, :, :]
        )
        azimuth_code = np.floor(azimuth + 0.5).astype(np.int64) % ROTATION_MAX_UNITS
        azimuth_code = (azimuth_code - self._rot_correction[None, None, :]) % ROTATION_MAX_UNITS

        distance = raw_distance * DISTANCE_RESOLUTION
        xy_distance = distance * self._cos_vert_angle[None, None, :]
        x = xy_distance * self._cos_rot_table[azimuth_code]
        y = -xy_distance * self._sin_rot_table[azimuth_code]
        z = distance * self._sin_vert_angle[None, None, :]
        t = time_offset + self._time_table[idx]

        keep = (raw_distance > 0) & self._config.range_mask(distance)
        if self._config.has_angle_window:
            keep &= self._config.angle_mask(azimuth_code * ROTATION_RESOLUTION)

        # Boolean indexing walks (block, firing, dsr) in C order, i.e. firing order.
        return make_points(x[keep], y[keep], z[keep], readings["intensity"][keep], t[keep])


def _block_azimuth_diff(rotation: np.ndarray, valid: np.ndarray) -> np.ndarray:
    """Rotation units swept by each block, taken from the following block.

    A block without a valid successor reuses the previous difference.
    """
    diff = np.zeros(rotation.shape[0], dtype=np.int64)
    last_diff = 0
    for b in range(rotation.shape[0]):
        if not valid[b]:
            continue
        if b + 1 < rotation.shape[0] and valid[b + 1]:
            last_diff = (ROTATION_MAX_UNITS + rotation[b + 1] - rotation[b]) % ROTATION_MAX_UNITS
        diff[b] = last_diff
    return diff


def _frozen(arr: np.ndarray) -> np.ndarray:
    arr.setflags(write=False)
    return arr
