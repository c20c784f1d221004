"""Voice command parsing: classification and parameter extraction."""

from carevoice.voice.parser.intent_parser import classify, interpret
from carevoice.voice.parser.parameter_extractor import (
    extract_parameters,
    format_command_content,
)

__all__ = [
    "classify",
    "extract_parameters",
    "format_command_content",
    "interpret",
]
