"""Data models for the voicechat application."""

from .audio import (
    AudioStats,
    CaptureState,
    PcmBuffer,
    RecordingSession,
    WavContainer,
    WavHeader,
)
from .chat import AnalysisResult, ChatHistory, ChatMessage
from .events import (
    AudioEvent,
    CaptureEvent,
    CaptureEventType,
    SessionEvent,
    SessionEventType,
)

__all__ = [
    "AudioStats",
    "CaptureState",
    "PcmBuffer",
    "RecordingSession",
    "WavContainer",
    "WavHeader",
    "AnalysisResult",
    "ChatHistory",
    "ChatMessage",
    # Pub/sub and channel events
    "AudioEvent",
    "CaptureEvent",
    "CaptureEventType",
    "SessionEvent",
    "SessionEventType",
]
