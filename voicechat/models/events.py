"""Event models for the capture channel and the pub/sub topics."""

import uuid
from dataclasses import dataclass, field
from datetime import datetime
from enum import Enum
from typing import Any, Dict, Optional


class CaptureEventType(Enum):
    """Kinds of device events delivered to the capture state machine."""
    CHUNK = "chunk"
    STOP_COMPLETE = "stop_complete"


@dataclass
class CaptureEvent:
    """Device event queued on the capture controller's channel."""
    kind: CaptureEventType
    data: bytes = b""


@dataclass
class AudioEvent:
    """Audio chunk event with metadata."""
    chunk_id: str
    audio_data: bytes
    timestamp: float  # Unix timestamp when chunk was accepted
    sequence_number: int
    sample_rate: int = 16000
    channels: int = 1
    chunk_duration_ms: Optional[int] = None

    def __post_init__(self):
        """Calculate chunk duration if not provided."""
        if self.chunk_duration_ms is None and self.audio_data and self.sample_rate:
            # 16-bit audio, 2 bytes per sample
            bytes_per_second = self.sample_rate * self.channels * 2
            self.chunk_duration_ms = int(len(self.audio_data) / bytes_per_second * 1000)


class SessionEventType(str, Enum):
    """Conversation lifecycle events published by the conversation service."""
    RECORDING_STARTED = "recording_started"
    PROCESSING = "processing"
    MESSAGE_APPENDED = "message_appended"
    CHAT_STARTED = "chat_started"
    CHAT_SWITCHED = "chat_switched"
    ERROR = "error"


@dataclass
class SessionEvent:
    """Session lifecycle event."""
    event_type: SessionEventType
    event_id: str = field(default_factory=lambda: uuid.uuid4().hex)
    timestamp: datetime = field(default_factory=datetime.now)
    metadata: Dict[str, Any] = field(default_factory=dict)
