"""Server-side transcription of recorded audio through the Whisper API.

Used when the browser has no Web Speech support but can still record audio:
the clip is uploaded, transcribed here, and delivered to the session as one
final TranscriptEvent.
"""

from __future__ import annotations

import io
import logging
import os
from typing import Any

import openai

from carevoice.voice.models import TranscriptEvent

logger = logging.getLogger(__name__)

SUPPORTED_FORMATS = {"webm", "mp3", "mp4", "m4a", "wav", "ogg", "mpeg", "mpga"}

# 25MB Whisper upload limit
MAX_AUDIO_BYTES = 25 * 1024 * 1024


class WhisperTranscriber:
    """Transcribes uploaded audio clips via OpenAI's transcription endpoint."""

    def __init__(self, config: dict[str, Any] | None = None):
        """
        Initialize the transcriber.

        Args:
            config: The ``transcription`` section of args/voice.yaml
        """
        self.config = config or {}

    @property
    def name(self) -> str:
        return "whisper_api"

    @property
    def is_available(self) -> bool:
        return self.config.get("enabled", True) and bool(os.environ.get("OPENAI_API_KEY"))

    def _extension(self, filename: str, mime_type: str) -> str:
        ext = filename.rsplit(".", 1)[-1].lower() if "." in filename else ""
        if ext not in SUPPORTED_FORMATS:
            ext = mime_type.split("/")[-1].split(";")[0].lower()
        return ext if ext in SUPPORTED_FORMATS else "webm"

    async def transcribe(
        self,
        audio_data: bytes,
        filename: str = "recording.webm",
        mime_type: str = "audio/webm",
        language: str = "en-US",
    ) -> TranscriptEvent:
        """Transcribe audio bytes.

        Returns:
            A final TranscriptEvent; empty text with zero confidence on failure.
        """
        empty = TranscriptEvent(
            text="",
            confidence=0.0,
            is_final=True,
            source=self.name,
            language=language,
        )

        if not audio_data:
            return empty
        if len(audio_data) > MAX_AUDIO_BYTES:
            logger.warning("Audio clip too large for transcription (%d bytes)", len(audio_data))
            return empty

        audio_file = io.BytesIO(audio_data)
        audio_file.name = f"audio.{self._extension(filename, mime_type)}"

        try:
            client = openai.AsyncOpenAI()
            response = await client.audio.transcriptions.create(
                model=self.config.get("model", "whisper-1"),
                file=audio_file,
                language=language.split("-")[0],
            )
        except openai.APIError as e:
            logger.error(f"Whisper API error: {e}")
            return empty
        except Exception as e:
            logger.error(f"Transcription failed: {e}")
            return empty

        text = (response.text or "").strip()
        if not text:
            return empty

        return TranscriptEvent(
            text=text,
            # Whisper reports no per-utterance confidence
            confidence=self.config.get("assumed_confidence", 0.95),
            is_final=True,
            source=self.name,
            language=language,
        )


# Module-level singleton
_transcriber: WhisperTranscriber | None = None


def get_whisper_transcriber(config: dict[str, Any] | None = None) -> WhisperTranscriber:
    """Get or create the global WhisperTranscriber instance."""
    global _transcriber
    if _transcriber is None:
        _transcriber = WhisperTranscriber(config)
    return _transcriber
