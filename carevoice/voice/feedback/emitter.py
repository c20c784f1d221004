"""Spoken feedback for hands-free confirmation.

The emitter turns short status strings ("Update confirmed") into speech when
feedback is enabled and the platform can synthesize it. Callers never wait on
or check the result; a failing synthesizer is logged and ignored.
"""

from __future__ import annotations

import logging
from abc import ABC, abstractmethod
from collections import deque
from dataclasses import dataclass
from datetime import datetime
from typing import Any

logger = logging.getLogger(__name__)


@dataclass
class Utterance:
    """A queued phrase for the browser's speechSynthesis to play."""

    text: str
    rate: float = 0.9
    pitch: float = 1.0
    volume: float = 0.8
    created_at: datetime | None = None

    def to_dict(self) -> dict[str, Any]:
        return {
            "text": self.text,
            "rate": self.rate,
            "pitch": self.pitch,
            "volume": self.volume,
            "created_at": self.created_at.isoformat() if self.created_at else None,
        }


class SpeechSynthesizer(ABC):
    """Platform text-to-speech capability."""

    @property
    @abstractmethod
    def is_available(self) -> bool:
        """Whether the platform can synthesize speech."""

    @abstractmethod
    def speak(self, text: str, rate: float = 0.9, pitch: float = 1.0, volume: float = 0.8) -> None:
        """Speak text without blocking."""


class BrowserSpeechSynthesizer(SpeechSynthesizer):
    """Queues utterances for the browser to drain and play.

    The browser polls (or receives with each API response) the pending
    utterances and hands them to window.speechSynthesis.
    """

    def __init__(self, supported: bool = True, max_pending: int = 20):
        self._supported = supported
        self._pending: deque[Utterance] = deque(maxlen=max_pending)

    @property
    def is_available(self) -> bool:
        return self._supported

    def speak(self, text: str, rate: float = 0.9, pitch: float = 1.0, volume: float = 0.8) -> None:
        self._pending.append(
            Utterance(text=text, rate=rate, pitch=pitch, volume=volume, created_at=datetime.now())
        )

    def drain(self) -> list[Utterance]:
        """Return and clear pending utterances."""
        utterances = list(self._pending)
        self._pending.clear()
        return utterances


class SpokenFeedbackEmitter:
    """Fire-and-forget spoken confirmations."""

    def __init__(
        self,
        synthesizer: SpeechSynthesizer | None = None,
        enabled: bool = True,
        rate: float = 0.9,
        pitch: float = 1.0,
        volume: float = 0.8,
    ):
        self.synthesizer = synthesizer
        self.enabled = enabled
        self.rate = rate
        self.pitch = pitch
        self.volume = volume

    @property
    def is_supported(self) -> bool:
        return self.synthesizer is not None and self.synthesizer.is_available

    def speak(self, message: str) -> None:
        """Speak a short status message if enabled and supported."""
        if not self.enabled or not self.is_supported or not message:
            return

        try:
            self.synthesizer.speak(message, rate=self.rate, pitch=self.pitch, volume=self.volume)
        except Exception as e:
            logger.warning("Spoken feedback failed: %s", e)
