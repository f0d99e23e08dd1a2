"""Audio capture, decoding and WAV encoding."""

from .capture import AudioCaptureController
from .decoder import decode_pcm
from .device import MicrophoneDevice
from .wav_encoder import WavLayout, encode_pcm_buffer, encode_wav

__all__ = [
    'AudioCaptureController',
    'MicrophoneDevice',
    'WavLayout',
    'decode_pcm',
    'encode_pcm_buffer',
    'encode_wav',
]
