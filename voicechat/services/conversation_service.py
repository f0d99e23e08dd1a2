"""Sequences capture, encoding, analysis and history updates."""

import asyncio
import logging
import mimetypes
from pathlib import Path
from typing import Awaitable, Callable, Optional, Union

import aiohttp
from pubsub import pub

from ..analysis.client import WAV_MIME_TYPE, AnalysisClient
from ..audio.capture import AudioCaptureController
from ..audio.wav_encoder import WavLayout, encode_pcm_buffer
from ..errors import BusyError, CaptureError, FileTypeError, VoiceChatError
from ..models.chat import ChatMessage
from ..models.events import SessionEvent, SessionEventType
from .session_store import SessionStore

logger = logging.getLogger(__name__)

CONVERSATION_TOPIC = "conversation.events"

# Platform tables often map .wav to audio/x-wav
mimetypes.add_type(WAV_MIME_TYPE, ".wav")


def guess_mime_type(path: Union[str, Path]) -> Optional[str]:
    """MIME type implied by a file name."""
    mime_type, _ = mimetypes.guess_type(str(path))
    return mime_type


class ConversationService:
    """The only component that crosses the audio/session boundary.

    At most one submission is in flight; ``is_processing`` is raised for its
    duration and requests arriving meanwhile are rejected. Every failure is
    converted into one user-visible message in ``last_error`` and published
    as an ``error`` event; nothing is retried.
    """

    def __init__(
        self,
        capture: AudioCaptureController,
        client: AnalysisClient,
        store: SessionStore,
        wav_layout: WavLayout = WavLayout.PCM,
        topic: str = CONVERSATION_TOPIC,
    ):
        self.capture = capture
        self.client = client
        self.store = store
        self.wav_layout = WavLayout(wav_layout)
        self.topic = topic

        self.is_processing = False
        self.last_error: Optional[str] = None

    @property
    def is_recording(self) -> bool:
        return self.capture.is_recording

    async def start_recording(self) -> bool:
        """Begin capturing from the microphone; False if that was not possible."""
        if self.is_processing:
            self._report(BusyError())
            return False
        try:
            await self.capture.start()
        except VoiceChatError as e:
            self._report(e)
            return False
        self.last_error = None
        self._publish(SessionEventType.RECORDING_STARTED)
        return True

    async def stop_recording(self) -> Optional[ChatMessage]:
        """Stop capturing, then submit the recording for analysis."""
        if not self.capture.is_recording:
            logger.warning("stop_recording called with no recording in progress")
            return None
        if self.is_processing:
            # The recording cannot be submitted, so the microphone is released
            await self.capture.abort()
            self._report(BusyError())
            return None
        return await self._submit(self._finish_recording)

    async def toggle_recording(self) -> Optional[ChatMessage]:
        """Microphone button: start when idle, stop and submit when recording."""
        if self.capture.is_recording:
            return await self.stop_recording()
        await self.start_recording()
        return None

    async def submit_file(self, path: Union[str, Path], mime_type: Optional[str] = None) -> Optional[ChatMessage]:
        """Submit an existing WAV file as-is, bypassing capture and decoding.

        Args:
            path: File to upload
            mime_type: Declared MIME type; guessed from the file name when omitted
        """
        path = Path(path)
        declared = mime_type or guess_mime_type(path)
        if declared != WAV_MIME_TYPE:
            logger.warning(f"Rejected upload {path.name}: type {declared!r}")
            self._report(FileTypeError())
            return None

        logger.info(f"Processing file: {path.name}, type: {declared}")
        return await self._submit(lambda: asyncio.to_thread(path.read_bytes))

    def start_new_chat(self) -> None:
        committed = self.store.start_new_chat()
        self._publish(
            SessionEventType.CHAT_STARTED,
            saved_chat_id=committed.id if committed else None,
        )

    def switch_to_chat(self, chat_id: str) -> bool:
        try:
            self.store.switch_to_chat(chat_id)
        except VoiceChatError as e:
            self._report(e)
            return False
        self._publish(SessionEventType.CHAT_SWITCHED, chat_id=chat_id)
        return True

    async def _finish_recording(self) -> bytes:
        pcm = await self.capture.stop()
        if pcm is None:
            raise CaptureError()
        wav = encode_pcm_buffer(pcm, self.wav_layout)
        logger.info(f"Audio encoded: {pcm.duration_seconds:.1f}s, {len(wav)} bytes")
        return wav.data

    async def _submit(self, load_audio: Callable[[], Awaitable[bytes]]) -> Optional[ChatMessage]:
        if self.is_processing:
            self._report(BusyError())
            return None

        self.is_processing = True
        self.last_error = None
        self._publish(SessionEventType.PROCESSING)
        try:
            wav_bytes = await load_audio()
            if not wav_bytes:
                raise CaptureError("No audio data received")

            result = await self.client.analyze(wav_bytes)
            message = self.store.append_message(result)
            self._publish(
                SessionEventType.MESSAGE_APPENDED,
                message=message,
                chat_id=self.store.current_chat_id,
            )
            return message
        except VoiceChatError as e:
            self._report(e)
        except aiohttp.ClientError as e:
            logger.error(f"Transport error talking to analysis service: {e}")
            self._report(e, "Failed to process the audio. Please try again.")
        except asyncio.TimeoutError as e:
            # Subclass of OSError on 3.11+, so it must come first
            logger.error("Analysis service did not answer in time")
            self._report(e, "Failed to process the audio. Please try again.")
        except OSError as e:
            self._report(e, f"Failed to read audio file: {e}")
        finally:
            self.is_processing = False
        return None

    def _report(self, error: Exception, message: Optional[str] = None) -> None:
        self.last_error = message or str(error)
        logger.error(f"{type(error).__name__}: {self.last_error}")
        self._publish(SessionEventType.ERROR, message=self.last_error, error=error)

    def _publish(self, event_type: SessionEventType, **metadata) -> None:
        pub.sendMessage(self.topic, event=SessionEvent(event_type=event_type, metadata=metadata))
