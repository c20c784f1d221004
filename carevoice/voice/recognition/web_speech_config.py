"""Web Speech API configuration and result processing.

The actual Web Speech API runs in the browser (JavaScript).
This module defines the config sent to the frontend, the relay engine that
tracks the requested listening state, and the conversion of result batches
sent back from the browser.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Any

from carevoice.voice.models import RecognitionResult
from carevoice.voice.recognition.base import RecognitionEngine


@dataclass
class WebSpeechConfig:
    """Configuration for the browser-side Web Speech API."""

    language: str = "en-US"
    continuous: bool = True
    interim_results: bool = True
    max_alternatives: int = 1

    def to_dict(self) -> dict[str, Any]:
        return {
            "language": self.language,
            "continuous": self.continuous,
            "interimResults": self.interim_results,
            "maxAlternatives": self.max_alternatives,
        }


class WebSpeechRelayEngine(RecognitionEngine):
    """Recognition engine backed by the browser's SpeechRecognition object.

    The browser reports whether SpeechRecognition (or webkitSpeechRecognition)
    exists; that check is passed in as ``supported``. start()/stop() only record
    the requested state, which the frontend polls to drive the real recognizer.
    """

    def __init__(self, config: WebSpeechConfig | None = None, supported: bool = True):
        self.config = config or WebSpeechConfig()
        self._supported = supported
        self.active = False

    @property
    def name(self) -> str:
        return "web_speech"

    @property
    def is_available(self) -> bool:
        return self._supported

    @property
    def supports_interim_results(self) -> bool:
        return self.config.interim_results

    def start(self) -> None:
        self.active = True

    def stop(self) -> None:
        self.active = False


def process_web_speech_result(payload: dict[str, Any]) -> tuple[list[RecognitionResult], int]:
    """Convert a Web Speech API result batch into RecognitionResults.

    Expected format from the browser (one entry per SpeechRecognitionResult,
    using its first alternative):
    {
        "resultIndex": 0,
        "results": [
            {"transcript": "gave aspirin", "confidence": 0.92, "isFinal": true},
            {"transcript": " at 2 PM", "confidence": 0.0, "isFinal": false}
        ]
    }

    Returns:
        (results, result_index)
    """
    results = [
        RecognitionResult(
            transcript=item.get("transcript", ""),
            confidence=float(item.get("confidence", 0.0) or 0.0),
            is_final=bool(item.get("isFinal", False)),
        )
        for item in payload.get("results", [])
    ]
    result_index = int(payload.get("resultIndex", 0) or 0)
    return results, max(0, result_index)
