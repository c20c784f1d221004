"""Abstract base class for speech recognition engines."""

from __future__ import annotations

from abc import ABC, abstractmethod


class RecognitionEngine(ABC):
    """Platform speech-to-text capability injected into the capture adapter.

    Engines only start and stop recognition. Results, errors, and end-of-session
    notifications are pushed into SpeechCaptureAdapter.handle_results(),
    handle_error() and handle_end() by whoever owns the platform callbacks.
    """

    @property
    @abstractmethod
    def name(self) -> str:
        """Engine identifier (e.g. 'web_speech', 'whisper_api')."""

    @property
    @abstractmethod
    def is_available(self) -> bool:
        """Whether the platform supports this engine at all."""

    @property
    def supports_interim_results(self) -> bool:
        """Whether the engine reports partial transcripts while listening."""
        return False

    @abstractmethod
    def start(self) -> None:
        """Begin a recognition session."""

    @abstractmethod
    def stop(self) -> None:
        """End the current recognition session."""
