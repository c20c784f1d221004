"""Speech recognition: capture adapter and engines."""

from carevoice.voice.recognition.base import RecognitionEngine
from carevoice.voice.recognition.capture import SpeechCaptureAdapter
from carevoice.voice.recognition.web_speech_config import (
    WebSpeechConfig,
    WebSpeechRelayEngine,
    process_web_speech_result,
)

__all__ = [
    "RecognitionEngine",
    "SpeechCaptureAdapter",
    "WebSpeechConfig",
    "WebSpeechRelayEngine",
    "process_web_speech_result",
]
