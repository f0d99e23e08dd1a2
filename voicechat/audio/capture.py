"""Microphone capture state machine producing decoded PCM per recording session."""

import asyncio
import logging
from typing import Callable, Optional

from ..errors import DecodeError, InvalidTransitionError
from ..models.audio import AudioStats, CaptureState, PcmBuffer, RecordingSession
from ..models.events import CaptureEvent, CaptureEventType
from .audio_pub import AudioPublisher
from .decoder import decode_pcm
from .device import MicrophoneDevice

logger = logging.getLogger(__name__)


class AudioCaptureController:
    """Owns the microphone for one recording session at a time.

    Idle -> Recording on ``start()``, Recording -> Finalizing -> Idle on
    ``stop()``. Device callbacks never touch the session directly: they
    enqueue ``CaptureEvent``s that a single pump task applies on the event
    loop.
    """

    def __init__(
        self,
        device_factory: Callable[[], MicrophoneDevice] = MicrophoneDevice,
        publisher: Optional[AudioPublisher] = None,
    ):
        """Initialize the controller.

        Args:
            device_factory: Creates a fresh device handle for each session
            publisher: Receives every accepted chunk as an AudioEvent
        """
        self.device_factory = device_factory
        self.publisher = publisher

        self._session: Optional[RecordingSession] = None
        self._device: Optional[MicrophoneDevice] = None
        self._channel: Optional["asyncio.Queue[CaptureEvent]"] = None
        self._pump_task: Optional[asyncio.Task] = None

    @property
    def state(self) -> CaptureState:
        if self._session is None:
            return CaptureState.IDLE
        return self._session.state

    @property
    def is_recording(self) -> bool:
        return self.state is CaptureState.RECORDING

    async def start(self) -> None:
        """Acquire the microphone and begin a new recording session.

        Raises:
            InvalidTransitionError: If a session is already live or starting
            MicrophonePermissionError: If the device cannot be acquired
        """
        if self._session is not None:
            raise InvalidTransitionError(
                f"Cannot start recording while {self.state.value}")

        session = RecordingSession()
        self._session = session

        loop = asyncio.get_running_loop()
        channel: "asyncio.Queue[CaptureEvent]" = asyncio.Queue()

        def on_chunk(data: bytes) -> None:
            # PortAudio thread
            loop.call_soon_threadsafe(
                channel.put_nowait, CaptureEvent(CaptureEventType.CHUNK, data))

        device = self.device_factory()
        try:
            await asyncio.to_thread(device.open, on_chunk)
        except BaseException:
            self._session = None
            raise

        session.sample_rate = device.sample_rate
        session.channels = device.channels
        session.state = CaptureState.RECORDING
        self._device = device
        self._channel = channel
        self._pump_task = asyncio.create_task(self._pump(session, channel))
        logger.info(f"Recording started at {session.sample_rate}Hz, {session.channels} channel(s)")

    async def stop(self) -> Optional[PcmBuffer]:
        """Stop recording and decode everything captured.

        Returns:
            Decoded PCM, or None when not recording, when nothing was
            captured, or when decoding fails
        """
        session = self._session
        if session is None or session.state is not CaptureState.RECORDING:
            logger.warning("No recording in progress")
            return None

        session.state = CaptureState.FINALIZING
        try:
            await self._shutdown_device()

            if not session.chunks:
                logger.warning("Recording stopped before any audio was captured")
                return None

            container = b"".join(session.chunks)
            logger.info(f"Recording stopped. Total chunks: {len(session.chunks)}, "
                        f"{len(container)} bytes")
            try:
                return await asyncio.to_thread(
                    decode_pcm, container, session.sample_rate, session.channels)
            except DecodeError as e:
                logger.error(f"Error converting audio: {e}")
                return None
        finally:
            self._reset(session)

    async def abort(self) -> None:
        """Release the microphone and discard the current session without decoding."""
        session = self._session
        if session is None or session.state is CaptureState.IDLE:
            return
        logger.info("Aborting recording")
        session.state = CaptureState.FINALIZING
        try:
            await self._shutdown_device()
        finally:
            self._reset(session)

    def get_recording_stats(self) -> AudioStats:
        """Get current recording statistics."""
        session = self._session
        if session is None:
            return AudioStats(CaptureState.IDLE, None, 0, 0, 0)
        return AudioStats(
            state=session.state,
            sample_rate=session.sample_rate,
            channels=session.channels,
            total_chunks=len(session.chunks),
            captured_bytes=sum(len(chunk) for chunk in session.chunks),
        )

    async def _shutdown_device(self) -> None:
        """Stop the device, drain the channel up to stop-complete, release the device."""
        device, channel, pump = self._device, self._channel, self._pump_task
        try:
            try:
                await asyncio.to_thread(device.stop)
            finally:
                # Chunks flushed by device.stop() were queued before this event.
                channel.put_nowait(CaptureEvent(CaptureEventType.STOP_COMPLETE))
                await pump
        finally:
            device.close()
            logger.debug("Microphone released")

    async def _pump(self, session: RecordingSession, channel: "asyncio.Queue[CaptureEvent]") -> None:
        while True:
            event = await channel.get()
            if event.kind is CaptureEventType.STOP_COMPLETE:
                return
            if session.state is CaptureState.IDLE or not event.data:
                continue
            session.chunks.append(event.data)
            self._publish(session, event.data)

    def _publish(self, session: RecordingSession, data: bytes) -> None:
        if self.publisher is None:
            return
        self.publisher.publish_chunk(
            data, len(session.chunks), session.sample_rate, session.channels)

    def _reset(self, session: RecordingSession) -> None:
        session.chunks.clear()
        session.state = CaptureState.IDLE
        if self._session is session:
            self._session = None
        self._device = None
        self._channel = None
        self._pump_task = None
