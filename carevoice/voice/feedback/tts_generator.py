"""
Cloud TTS for spoken feedback

Generates feedback audio through the OpenAI speech API for clients that
cannot synthesize speech locally:
- Voice selection
- Output format handling
- Cost estimation

Usage:
    from carevoice.voice.feedback.tts_generator import TTSGenerator

    generator = TTSGenerator()
    result = await generator.generate("Update saved to care plan")
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Any

import openai

from carevoice.voice import load_config

logger = logging.getLogger(__name__)


@dataclass
class TTSResult:
    """Result from TTS generation."""

    success: bool
    audio_bytes: bytes | None = None
    format: str = "mp3"
    duration_seconds: float | None = None
    cost_usd: float = 0.0
    error: str | None = None

    def to_dict(self) -> dict[str, Any]:
        """Convert to JSON-serializable dict (without audio bytes)."""
        return {
            "success": self.success,
            "format": self.format,
            "duration_seconds": self.duration_seconds,
            "cost_usd": self.cost_usd,
            "error": self.error,
            "has_audio": self.audio_bytes is not None,
        }


class TTSGenerator:
    """
    Generate spoken feedback audio using the OpenAI TTS API.

    Disabled unless ``feedback.tts.enabled`` is set in args/voice.yaml.
    """

    # Available voices (OpenAI TTS)
    VOICES = {
        "alloy": "Neutral and balanced",
        "echo": "Warm and confident",
        "fable": "Expressive and animated",
        "onyx": "Deep and authoritative",
        "nova": "Friendly and upbeat",
        "shimmer": "Clear and pleasant",
    }

    FORMATS = {"mp3", "opus", "aac", "flac", "wav"}

    def __init__(self, config: dict[str, Any] | None = None):
        """
        Initialize TTS generator.

        Args:
            config: Optional config override (defaults to args/voice.yaml)
        """
        self.config = config if config is not None else load_config()

    @property
    def _tts_config(self) -> dict[str, Any]:
        return self.config.get("feedback", {}).get("tts", {})

    def is_enabled(self) -> bool:
        """Check if cloud TTS is enabled."""
        return bool(self._tts_config.get("enabled", False))

    async def generate(
        self,
        text: str,
        voice: str | None = None,
        format: str | None = None,
        speed: float | None = None,
    ) -> TTSResult:
        """
        Generate speech audio from text.

        Args:
            text: Text to convert to speech
            voice: Voice ID (alloy, echo, fable, onyx, nova, shimmer)
            format: Output format (mp3, opus, aac, flac, wav)
            speed: Speech speed (0.25 to 4.0)

        Returns:
            TTSResult with audio bytes and metadata
        """
        tts_config = self._tts_config

        if not self.is_enabled():
            return TTSResult(
                success=False,
                error="TTS generation is disabled. Enable feedback.tts in args/voice.yaml",
            )

        voice = voice or tts_config.get("voice", "alloy")
        format = format or tts_config.get("output_format", "mp3")
        speed = speed or tts_config.get("speed", 1.0)

        if voice not in self.VOICES:
            voice = "alloy"
        if format not in self.FORMATS:
            format = "mp3"
        speed = max(0.25, min(4.0, speed))

        max_chars = tts_config.get("max_chars", 4096)
        if len(text) > max_chars:
            return TTSResult(
                success=False,
                error=f"Text too long ({len(text)} > {max_chars} chars)",
            )

        model = tts_config.get("model", "tts-1")

        try:
            client = openai.AsyncOpenAI()
            response = await client.audio.speech.create(
                model=model,
                voice=voice,
                input=text,
                response_format=format,
                speed=speed,
            )
            audio_bytes = response.read()
        except openai.APIError as e:
            logger.error(f"TTS API error: {e}")
            return TTSResult(success=False, error=f"TTS API error: {str(e)[:100]}")
        except Exception as e:
            logger.error(f"TTS generation failed: {e}")
            return TTSResult(success=False, error=str(e)[:100])

        # Rough estimate: ~150 words per minute
        word_count = len(text.split())
        estimated_duration = (word_count / 150) * 60 / speed

        return TTSResult(
            success=True,
            audio_bytes=audio_bytes,
            format=format,
            duration_seconds=estimated_duration,
            cost_usd=self.estimate_cost(text, hd=model == "tts-1-hd"),
        )

    def get_available_voices(self) -> dict[str, str]:
        """Get available voices with descriptions."""
        return self.VOICES.copy()

    def estimate_cost(self, text: str, hd: bool = False) -> float:
        """
        Estimate TTS cost for given text.

        Args:
            text: Text to generate
            hd: Whether using HD model

        Returns:
            Estimated cost in USD
        """
        pricing = self._tts_config.get("pricing", {})
        if hd:
            rate = pricing.get("hd_per_1k_chars_usd", 0.030)
        else:
            rate = pricing.get("per_1k_chars_usd", 0.015)
        return (len(text) / 1000) * rate


# Module-level singleton
_generator: TTSGenerator | None = None


def get_tts_generator() -> TTSGenerator:
    """Get or create the global TTSGenerator instance."""
    global _generator
    if _generator is None:
        _generator = TTSGenerator()
    return _generator
