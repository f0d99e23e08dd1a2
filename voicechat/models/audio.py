"""Audio-related data models."""

import struct
from dataclasses import dataclass, field
from enum import Enum
from typing import List, NamedTuple, Optional

import numpy as np


WAV_HEADER_SIZE = 44
WAV_HEADER_FORMAT = "<4sI4s4sIHHIIHH4sI"


class CaptureState(str, Enum):
    """States of the capture state machine."""
    IDLE = "idle"
    RECORDING = "recording"
    FINALIZING = "finalizing"


@dataclass
class RecordingSession:
    """One start-to-stop cycle of microphone recording."""
    state: CaptureState = CaptureState.IDLE
    chunks: List[bytes] = field(default_factory=list)
    sample_rate: Optional[int] = None
    channels: int = 1


@dataclass
class AudioStats:
    """Audio recording statistics."""
    state: CaptureState
    sample_rate: Optional[int]
    channels: int
    total_chunks: int
    captured_bytes: int


@dataclass(frozen=True, eq=False)
class PcmBuffer:
    """Decoded linear samples shaped (frames, channels), normalized to [-1, 1]."""
    samples: np.ndarray
    sample_rate: int

    def __post_init__(self):
        samples = np.array(self.samples, dtype=np.float32)
        if samples.ndim == 1:
            samples = samples.reshape(-1, 1)
        if samples.ndim != 2:
            raise ValueError(f"PCM samples must be 1-D or 2-D, got {samples.ndim} dimensions")
        samples.setflags(write=False)
        object.__setattr__(self, "samples", samples)

    @property
    def channels(self) -> int:
        return self.samples.shape[1]

    @property
    def frame_count(self) -> int:
        return self.samples.shape[0]

    @property
    def duration_seconds(self) -> float:
        return self.frame_count / self.sample_rate if self.sample_rate else 0.0

    def channel(self, index: int) -> np.ndarray:
        return self.samples[:, index]


class WavHeader(NamedTuple):
    """Fields of a canonical 44-byte RIFF/WAVE header."""
    riff: bytes
    riff_size: int
    wave: bytes
    fmt: bytes
    fmt_size: int
    format_tag: int
    channels: int
    sample_rate: int
    byte_rate: int
    block_align: int
    bits_per_sample: int
    data_tag: bytes
    data_size: int

    def pack(self) -> bytes:
        return struct.pack(WAV_HEADER_FORMAT, *self)


@dataclass(frozen=True)
class WavContainer:
    """A complete WAV file held in memory."""
    data: bytes

    def __post_init__(self):
        if len(self.data) < WAV_HEADER_SIZE:
            raise ValueError(f"WAV buffer too short: {len(self.data)} bytes")
        header = self.header
        if header.riff != b"RIFF" or header.wave != b"WAVE":
            raise ValueError("Not a RIFF/WAVE buffer")

    def __len__(self) -> int:
        return len(self.data)

    @property
    def header(self) -> WavHeader:
        return WavHeader._make(struct.unpack_from(WAV_HEADER_FORMAT, self.data))

    @property
    def channels(self) -> int:
        return self.header.channels

    @property
    def sample_rate(self) -> int:
        return self.header.sample_rate

    @property
    def data_size(self) -> int:
        return self.header.data_size

    @property
    def frames(self) -> bytes:
        """Sample data following the header."""
        return self.data[WAV_HEADER_SIZE:]
