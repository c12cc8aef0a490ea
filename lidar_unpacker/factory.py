"""
factory.py

Creates the decoder matching a LiDAR model configuration string.

Example::

    decoder = get_decoder("VLP_16_PACKET", ScanConfig(min_range=0.5))
    for msg in messages_on_topic:
        frame = decoder.unpack_scan(msg)
"""

from __future__ import annotations

import logging
from typing import Iterable, Iterator, Optional, Union

from lidar_unpacker.config import ScanConfig
from lidar_unpacker.decoders import (
    LidarDecoder,
    LivoxDecoder,
    OusterDecoder,
    PandarXTDecoder,
    Velodyne16Decoder,
    VelodynePointsDecoder,
)
from lidar_unpacker.frame import LidarFrame
from lidar_unpacker.models import LidarModelType

logger = logging.getLogger(__name__)

_DECODER_BY_MODEL: dict[LidarModelType, type] = {
    LidarModelType.VLP_16_PACKET: Velodyne16Decoder,
    LidarModelType.VLP_16_POINTS: VelodynePointsDecoder,
    LidarModelType.VLP_32E_POINTS: VelodynePointsDecoder,
    LidarModelType.OUSTER_16_POINTS: OusterDecoder,
    LidarModelType.OUSTER_32_POINTS: OusterDecoder,
    LidarModelType.OUSTER_64_POINTS: OusterDecoder,
    LidarModelType.OUSTER_128_POINTS: OusterDecoder,
    LidarModelType.PANDAR_XT_16: PandarXTDecoder,
    LidarModelType.PANDAR_XT_32: PandarXTDecoder,
    LidarModelType.LIVOX_MID_360: LivoxDecoder,
    LidarModelType.LIVOX_AVIA: LivoxDecoder,
}


def get_decoder(
    model: Union[str, LidarModelType],
    config: Optional[ScanConfig] = None,
) -> LidarDecoder:
    """Build a ready-to-use decoder for *model*.

    Lookup tables are computed here, not per message.

    Args:
        model: Configuration string (e.g. ``"OUSTER_64_POINTS"``) or a
            :class:`~lidar_unpacker.models.LidarModelType`.
        config: Range/azimuth filter and scan rate.

    Raises:
        UnsupportedModelError: If *model* is not a registered model.
    """
    if not isinstance(model, LidarModelType):
        model = LidarModelType.from_string(model)
    decoder = _DECODER_BY_MODEL[model](model, config)
    logger.info(f"Created {type(decoder).__name__} for LiDAR model {model.value}.")
    return decoder


def unpack_scans(decoder: LidarDecoder, messages: Iterable) -> Iterator[LidarFrame]:
    """Decode *messages* one after another with *decoder*.

    Errors propagate to the caller, which decides whether to abandon the
    topic.
    """
    for msg in messages:
        yield decoder.unpack_scan(msg)
