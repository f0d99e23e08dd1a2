"""Chat messages, histories and the analysis service response schema."""

from dataclasses import dataclass, field
import datetime
from typing import Tuple

from pydantic import BaseModel, ConfigDict, Field


TITLE_LENGTH = 30


class AnalysisResult(BaseModel):
    """Validated response of the analysis service."""
    model_config = ConfigDict(extra="ignore", frozen=True)

    transcription: str = Field(min_length=1)
    emotion: str = Field(min_length=1)
    gemini_response: str = Field(min_length=1)


@dataclass(frozen=True)
class ChatMessage:
    """One analysed utterance and the service's answer to it."""
    id: str
    transcription: str
    emotion: str
    gemini_response: str
    timestamp: datetime.datetime


@dataclass(frozen=True)
class ChatHistory:
    """A saved conversation."""
    id: str
    title: str
    date: datetime.date
    messages: Tuple[ChatMessage, ...] = field(default_factory=tuple)


def make_title(transcription: str) -> str:
    """Sidebar title for a conversation that starts with ``transcription``."""
    return transcription[:TITLE_LENGTH] + "..."
