"""Pytest configuration and fixtures for voicechat tests."""

import itertools
import logging
import uuid
import wave
from datetime import datetime
from pathlib import Path
from unittest.mock import Mock, patch

import numpy as np
import pytest
from pubsub import pub

from voicechat.errors import MicrophonePermissionError
from voicechat.models.chat import AnalysisResult


# Configure logging for tests
logging.basicConfig(level=logging.INFO)
logger = logging.getLogger(__name__)


def pytest_configure(config):
    config.addinivalue_line("markers", "unit: fast tests without hardware or network")
    config.addinivalue_line("markers", "integration: tests wiring several components together")


@pytest.fixture(autouse=True)
def reset_pubsub():
    """Drop listeners registered by a test."""
    yield
    pub.unsubAll()


@pytest.fixture
def topic():
    """A pub/sub topic name unique to the test."""
    return f"test_{uuid.uuid4().hex}"


class FakeMicrophone:
    """Stands in for MicrophoneDevice; chunks are pushed with emit()."""

    def __init__(self, sample_rate=16000, channels=1, flush_chunk=b"",
                 fail_open=False, fail_stop=False):
        self.sample_rate = sample_rate
        self.channels = channels
        self.flush_chunk = flush_chunk
        self.fail_open = fail_open
        self.fail_stop = fail_stop
        self.on_chunk = None
        self.opened = False
        self.stopped = False
        self.closed = False

    def open(self, on_chunk):
        if self.fail_open:
            raise MicrophonePermissionError()
        self.on_chunk = on_chunk
        self.opened = True

    def emit(self, data: bytes) -> None:
        self.on_chunk(data)

    def stop(self):
        self.stopped = True
        if self.fail_stop:
            raise OSError("device vanished")
        if self.flush_chunk:
            self.on_chunk(self.flush_chunk)

    def close(self):
        self.closed = True


class FakeMicrophoneFactory:
    """Device factory remembering every device it created."""

    def __init__(self, **options):
        self.options = options
        self.created = []

    def __call__(self):
        device = FakeMicrophone(**self.options)
        self.created.append(device)
        return device

    @property
    def last(self) -> FakeMicrophone:
        return self.created[-1]


@pytest.fixture
def fake_microphone():
    """Factory producing 16kHz mono fake microphones."""
    return FakeMicrophoneFactory()


@pytest.fixture
def microphone_factory():
    """Build a fake microphone factory with custom options."""
    return FakeMicrophoneFactory


class FakeAnalysisClient:
    """Counts submissions instead of talking to the network."""

    def __init__(self, result=None, error=None):
        self.result = result or AnalysisResult(
            transcription="Hello there, how are you doing today?",
            emotion="happy",
            gemini_response="I'm doing well, thanks for asking!",
        )
        self.error = error
        self.calls = []
        self.gate = None

    async def analyze(self, wav_bytes: bytes, filename: str = "recording.wav"):
        self.calls.append(wav_bytes)
        if self.gate is not None:
            await self.gate.wait()
        if self.error is not None:
            raise self.error
        return self.result

    async def close(self):
        pass


@pytest.fixture
def fake_client():
    return FakeAnalysisClient()


@pytest.fixture
def fixed_clock():
    """Clock returning the same instant on every call."""
    moment = datetime(2024, 5, 17, 14, 30, 0)
    return lambda: moment


@pytest.fixture
def sequential_ids():
    """Id factory yielding id-1, id-2, ..."""
    counter = itertools.count(1)
    return lambda: f"id-{next(counter)}"


@pytest.fixture
def make_result():
    """Build analysis results with sensible defaults."""
    def _make(transcription="Hello there, how are you doing today?",
              emotion="neutral", response="Fine, thank you."):
        return AnalysisResult(transcription=transcription, emotion=emotion, gemini_response=response)
    return _make


@pytest.fixture
def mock_pyaudio():
    """Mock PyAudio for testing without actual audio hardware."""
    with patch('pyaudio.PyAudio') as mock_pyaudio_class:
        mock_pyaudio_instance = Mock()
        mock_stream = Mock()

        mock_stream.is_active.return_value = True
        mock_stream.stop_stream.return_value = None
        mock_stream.close.return_value = None

        mock_pyaudio_instance.open.return_value = mock_stream
        mock_pyaudio_instance.terminate.return_value = None
        mock_pyaudio_instance.get_default_input_device_info.return_value = {
            "index": 0,
            "name": "Mock Microphone",
            "defaultSampleRate": 48000.0,
        }

        mock_pyaudio_class.return_value = mock_pyaudio_instance

        yield {
            'class': mock_pyaudio_class,
            'instance': mock_pyaudio_instance,
            'stream': mock_stream
        }


@pytest.fixture
def audio_test_data():
    """Generate int16 audio bytes in various patterns."""
    def generate_audio(pattern="sine", duration_seconds=1.0, sample_rate=16000):
        samples = int(duration_seconds * sample_rate)

        if pattern == "sine":
            t = np.linspace(0, duration_seconds, samples, False)
            wave_data = np.sin(2 * np.pi * 440 * t)
        elif pattern == "silence":
            wave_data = np.zeros(samples)
        else:
            raise ValueError(f"Unknown pattern: {pattern}")

        return (wave_data * 32767).astype(np.int16).tobytes()

    return generate_audio


@pytest.fixture
def sample_wav_file(tmp_path, audio_test_data):
    """A short mono 16kHz WAV file on disk."""
    file_path = Path(tmp_path) / "upload.wav"
    with wave.open(str(file_path), 'wb') as wf:
        wf.setnchannels(1)
        wf.setsampwidth(2)
        wf.setframerate(16000)
        wf.writeframes(audio_test_data("sine", duration_seconds=0.25))
    return file_path

