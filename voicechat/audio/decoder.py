"""Conversion of captured container bytes into normalized PCM."""

import logging

import numpy as np

from ..errors import DecodeError
from ..models.audio import PcmBuffer

logger = logging.getLogger(__name__)

INT16_FULL_SCALE = 32768.0


def decode_pcm(container: bytes, sample_rate: int, channels: int = 1) -> PcmBuffer:
    """Decode interleaved little-endian int16 frames captured from the device.

    Raises:
        DecodeError: If the buffer is empty, the sample rate is unknown or the
            byte count does not divide into whole frames
    """
    if not container:
        raise DecodeError("No audio data to decode")
    if not sample_rate or sample_rate <= 0:
        raise DecodeError(f"Invalid sample rate: {sample_rate}")
    if channels < 1:
        raise DecodeError(f"Invalid channel count: {channels}")

    frame_size = 2 * channels
    if len(container) % frame_size:
        raise DecodeError(
            f"Captured {len(container)} bytes, not a multiple of the {frame_size}-byte frame size")

    samples = np.frombuffer(container, dtype="<i2").astype(np.float32) / INT16_FULL_SCALE
    pcm = PcmBuffer(samples.reshape(-1, channels), sample_rate)
    logger.debug(f"Decoded {pcm.frame_count} frames ({pcm.duration_seconds:.2f}s) at {sample_rate}Hz")
    return pcm
