"""
errors.py

Exceptions raised while setting up or running a LiDAR decoder.

Only structural problems are raised: an unknown model, a message of the wrong
wire type, or scan geometry that cannot be established.  Bad individual
points or blocks are filtered out by the decoders and never surface here.
"""

from __future__ import annotations

from typing import Optional, Sequence


class LidarDecodeError(Exception):
    """Base class for all decoder errors."""


class UnsupportedModelError(LidarDecodeError, ValueError):
    """The configuration string does not name a registered LiDAR model."""

    def __init__(self, name: str, supported: Optional[Sequence[str]] = None) -> None:
        self.name = name
        self.supported = list(supported or [])
        msg = f"Unsupported LiDAR model type: {name!r}."
        if self.supported:
            msg += f" Supported: {self.supported}"
        super().__init__(msg)


class MessageTypeMismatchError(LidarDecodeError, TypeError):
    """A message handed to a decoder is not the wire type its model expects.

    This points at a wrong topic-to-model mapping in the configuration, so
    the caller should stop decoding the topic instead of skipping ahead.
    """

    def __init__(self, model: str, expected: str, received: str, detail: str = "") -> None:
        self.model = model
        self.expected = expected
        self.received = received
        msg = (
            f"Message type of LiDAR {model!r} was set incorrectly: expected "
            f"{expected}, got {received}."
        )
        if detail:
            msg += f" {detail}"
        super().__init__(msg)


class ScanParameterInitError(LidarDecodeError, RuntimeError):
    """Scan geometry could not be inferred from the first point-cloud message."""
