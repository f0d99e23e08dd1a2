"""Canonical 16-bit PCM RIFF/WAVE encoding of normalized float samples."""

import logging
from enum import Enum
from typing import Sequence, Union

import numpy as np

from ..models.audio import WAV_HEADER_SIZE, PcmBuffer, WavContainer, WavHeader

logger = logging.getLogger(__name__)

BITS_PER_SAMPLE = 16
BYTES_PER_SAMPLE = BITS_PER_SAMPLE // 8
PCM_FORMAT_TAG = 1
SAMPLE_SCALE = 32767
LEGACY_CHANNELS = 2

SampleInput = Union[np.ndarray, Sequence[float]]


class WavLayout(str, Enum):
    """How sample data is laid out behind the header.

    PCM writes every channel interleaved and declares the true channel
    count. LEGACY_STEREO reproduces the output older clients expect: the
    header declares two channels and the data area is sized for two, but
    only the first channel is written, leaving the second half silent.
    """
    PCM = "pcm"
    LEGACY_STEREO = "legacy_stereo"


def build_header(sample_rate: int, channels: int, data_size: int) -> bytes:
    """Pack a 44-byte header for ``data_size`` bytes of 16-bit samples."""
    block_align = channels * BYTES_PER_SAMPLE
    header = WavHeader(
        riff=b"RIFF",
        riff_size=WAV_HEADER_SIZE - 8 + data_size,
        wave=b"WAVE",
        fmt=b"fmt ",
        fmt_size=16,
        format_tag=PCM_FORMAT_TAG,
        channels=channels,
        sample_rate=sample_rate,
        byte_rate=sample_rate * block_align,
        block_align=block_align,
        bits_per_sample=BITS_PER_SAMPLE,
        data_tag=b"data",
        data_size=data_size,
    )
    return header.pack()


def to_int16(samples: np.ndarray) -> np.ndarray:
    """Clamp to [-1, 1], scale and truncate toward zero into little-endian int16."""
    clean = np.nan_to_num(np.asarray(samples, dtype=np.float64), nan=0.0)
    return (np.clip(clean, -1.0, 1.0) * SAMPLE_SCALE).astype("<i2")


def encode_wav(
    samples: SampleInput,
    sample_rate: int,
    channels: int = 1,
    layout: WavLayout = WavLayout.PCM,
) -> WavContainer:
    """Encode normalized float samples as a WAV container.

    Args:
        samples: 1-D interleaved samples, or a (frames, channels) array
        sample_rate: Sample rate written to the header
        channels: Channel count of ``samples``
        layout: Data layout, see :class:`WavLayout`

    Returns:
        WavContainer holding header and sample data
    """
    if sample_rate <= 0:
        raise ValueError(f"Sample rate must be positive, got {sample_rate}")
    if channels < 1:
        raise ValueError(f"Channel count must be at least 1, got {channels}")

    layout = WavLayout(layout)
    frames = _as_frames(samples, channels)

    if layout is WavLayout.LEGACY_STEREO:
        mono = to_int16(frames[:, 0]).tobytes()
        data_size = frames.shape[0] * BYTES_PER_SAMPLE * LEGACY_CHANNELS
        data = mono + bytes(data_size - len(mono))
        header = build_header(sample_rate, LEGACY_CHANNELS, data_size)
    else:
        data = to_int16(frames.reshape(-1)).tobytes()
        header = build_header(sample_rate, channels, len(data))

    logger.debug(f"Encoded {frames.shape[0]} frames at {sample_rate}Hz "
                 f"({layout.value}): {len(data)} data bytes")
    return WavContainer(header + data)


def encode_pcm_buffer(pcm: PcmBuffer, layout: WavLayout = WavLayout.PCM) -> WavContainer:
    """Encode a decoded capture at its native rate and channel count."""
    return encode_wav(pcm.samples, pcm.sample_rate, pcm.channels, layout)


def _as_frames(samples: SampleInput, channels: int) -> np.ndarray:
    arr = np.asarray(samples, dtype=np.float64)
    if arr.ndim == 2:
        if arr.shape[1] != channels:
            raise ValueError(f"Samples have {arr.shape[1]} channels, expected {channels}")
        return arr
    if arr.ndim != 1:
        raise ValueError(f"Samples must be 1-D or 2-D, got {arr.ndim} dimensions")
    if arr.size % channels:
        raise ValueError(f"{arr.size} interleaved samples do not divide into {channels} channels")
    return arr.reshape(-1, channels)
