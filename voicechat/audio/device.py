"""PyAudio microphone handle delivering captured chunks through a callback."""

import logging
from typing import Any, Callable, Optional

import pyaudio

from ..errors import MicrophonePermissionError

logger = logging.getLogger(__name__)


class MicrophoneDevice:
    """Exclusive handle on the default input device.

    ``open`` starts a callback-driven input stream; every chunk PortAudio
    delivers is passed to ``on_chunk`` from PortAudio's own thread.
    """

    def __init__(
        self,
        sample_rate: Optional[int] = None,
        channels: int = 1,
        chunk_size: int = 1024,
        format: int = pyaudio.paInt16,
    ):
        """Initialize the device handle.

        Args:
            sample_rate: Requested rate; None uses the device's default rate
            channels: Number of input channels
            chunk_size: Frames per callback buffer
            format: Sample format (16-bit signed int)
        """
        self.requested_rate = sample_rate
        self.sample_rate: Optional[int] = sample_rate
        self.channels = channels
        self.chunk_size = chunk_size
        self.format = format

        self.pyaudio_instance: Optional[pyaudio.PyAudio] = None
        self.stream: Optional[Any] = None
        self._on_chunk: Optional[Callable[[bytes], None]] = None

    @property
    def is_open(self) -> bool:
        return self.stream is not None

    def open(self, on_chunk: Callable[[bytes], None]) -> None:
        """Acquire the microphone and start streaming.

        Raises:
            MicrophonePermissionError: If access is denied or no input device exists
        """
        if self.is_open:
            raise RuntimeError("Microphone stream already open")

        self._on_chunk = on_chunk
        self.pyaudio_instance = pyaudio.PyAudio()
        try:
            if self.requested_rate is None:
                info = self.pyaudio_instance.get_default_input_device_info()
                self.sample_rate = int(info["defaultSampleRate"])
            self.stream = self.pyaudio_instance.open(
                format=self.format,
                channels=self.channels,
                rate=self.sample_rate,
                input=True,
                frames_per_buffer=self.chunk_size,
                stream_callback=self._on_audio,
            )
        except OSError as e:
            logger.error(f"Error accessing microphone: {e}")
            self.close()
            raise MicrophonePermissionError(
                "Failed to access microphone. Please make sure you have granted "
                "microphone permissions.") from e

        logger.info(f"Audio stream opened: {self.sample_rate}Hz, {self.channels} channel(s), "
                    f"{self.chunk_size} samples/chunk")

    def _on_audio(self, in_data: bytes, frame_count: int, time_info: Any, status: int):
        if status:
            logger.debug(f"PortAudio status flags: {status}")
        if in_data and self._on_chunk is not None:
            self._on_chunk(in_data)
        return (None, pyaudio.paContinue)

    def stop(self) -> None:
        """Stop streaming; PortAudio delivers any pending buffer before returning."""
        if self.stream is not None and self.stream.is_active():
            self.stream.stop_stream()

    def close(self) -> None:
        """Release the stream and the PortAudio instance. Safe to call repeatedly."""
        stream, self.stream = self.stream, None
        instance, self.pyaudio_instance = self.pyaudio_instance, None
        try:
            if stream is not None:
                stream.close()
        finally:
            if instance is not None:
                instance.terminate()
        self._on_chunk = None
