"""Speech capture adapter.

Presents a continuous interim-and-final recognition stream as a small
stateful contract: start(), stop(), transcript, confidence, has_support.
Platform callbacks are forwarded to handle_results(), handle_error() and
handle_end(); each results batch produces one TranscriptEvent for subscribers.
"""

from __future__ import annotations

import logging
from typing import Callable

from carevoice.voice.models import RecognitionResult, TranscriptEvent
from carevoice.voice.recognition.base import RecognitionEngine

logger = logging.getLogger(__name__)

# Listener type: function(event) -> None
TranscriptListener = Callable[[TranscriptEvent], None]


class SpeechCaptureAdapter:
    """Wraps a recognition engine with transcript and confidence state."""

    def __init__(self, engine: RecognitionEngine | None, language: str = "en-US"):
        self._engine = engine
        self.language = language
        # Capability is checked once; unsupported stays unsupported
        self._has_support = bool(engine is not None and engine.is_available)
        self._listening = False
        self._transcript = ""
        self._confidence = 0.0
        self._listeners: list[TranscriptListener] = []

    @property
    def has_support(self) -> bool:
        return self._has_support

    @property
    def is_listening(self) -> bool:
        return self._listening

    @property
    def transcript(self) -> str:
        return self._transcript

    @property
    def confidence(self) -> float:
        return self._confidence

    @property
    def engine(self) -> RecognitionEngine | None:
        return self._engine

    @property
    def source(self) -> str:
        return self._engine.name if self._engine else "none"

    def subscribe(self, listener: TranscriptListener) -> None:
        """Register a listener for transcript events."""
        self._listeners.append(listener)

    def start(self) -> None:
        """Start listening. No-op if already listening or unsupported."""
        if not self._has_support or self._listening:
            return

        self._transcript = ""
        try:
            self._engine.start()
        except Exception as e:
            self.handle_error(str(e))
            return
        self._listening = True
        logger.info("Speech capture started (%s)", self.source)

    def stop(self) -> None:
        """Stop listening and flush to a non-listening state."""
        if not self._has_support:
            return

        try:
            self._engine.stop()
        except Exception as e:
            logger.warning("Speech engine failed to stop cleanly: %s", e)
        self._listening = False

    def reset_transcript(self) -> None:
        self._transcript = ""
        self._confidence = 0.0

    def handle_results(
        self,
        results: list[RecognitionResult],
        result_index: int = 0,
    ) -> TranscriptEvent | None:
        """Process a recognition results batch from the platform.

        The transcript becomes the final text followed by the interim text of
        the batch; confidence only moves when a result is final. Results that
        arrive after stop() are discarded.
        """
        if not self._listening:
            logger.debug("Discarding %d recognition results received while stopped", len(results))
            return None

        final_text = ""
        interim_text = ""
        has_final = False

        for result in results[result_index:]:
            if result.is_final:
                final_text += result.transcript
                self._confidence = result.confidence
                has_final = True
            else:
                interim_text += result.transcript

        self._transcript = final_text + interim_text

        event = TranscriptEvent(
            text=self._transcript,
            confidence=self._confidence,
            is_final=has_final,
            source=self.source,
            language=self.language,
        )
        self._notify(event)
        return event

    def deliver(self, event: TranscriptEvent) -> None:
        """Inject a complete event from a non-streaming recognizer."""
        self._transcript = event.text
        if event.is_final:
            self._confidence = event.confidence
        self._notify(event)

    def handle_error(self, error: str) -> None:
        """Platform-reported recognition error: stop listening, log, no event."""
        logger.warning("Speech recognition error: %s", error)
        self._listening = False

    def handle_end(self) -> None:
        """Platform ended the recognition session."""
        self._listening = False

    def _notify(self, event: TranscriptEvent) -> None:
        for listener in self._listeners:
            try:
                listener(event)
            except Exception as e:
                logger.exception(f"Transcript listener failed: {e}")
