"""Voice conversation client: microphone capture, WAV encoding and chat history."""

__version__ = "0.1.0"
