"""Spoken feedback: emitter, synthesizers, cloud TTS."""

from carevoice.voice.feedback.emitter import (
    BrowserSpeechSynthesizer,
    SpeechSynthesizer,
    SpokenFeedbackEmitter,
    Utterance,
)

__all__ = [
    "BrowserSpeechSynthesizer",
    "SpeechSynthesizer",
    "SpokenFeedbackEmitter",
    "Utterance",
]
