"""Command classification for voice care plan updates.

Uses priority-ordered keyword rules to classify a transcript into one of the
five care plan command types. The first matching rule wins, so a transcript
that mentions several categories ("schedule a note about blood pressure")
resolves to the highest-priority one. Falls back to UNKNOWN with no parameters.
"""

from __future__ import annotations

import argparse
import json
import sys
from typing import Callable

from carevoice.voice.models import CommandType, VoiceCommand
from carevoice.voice.parser.parameter_extractor import (
    extract_parameters,
    find_dosed_medication,
    find_known_medication,
    format_command_content,
)

MEDICATION_TERMS = ("medication", "medicine", "meds", "pill", "tablet", "dose")
ADMINISTRATION_TERMS = ("given", "gave", "administered", "took", "taken")
NOTE_PHRASES = ("add note", "add a note", "record note", "note that")
STATUS_TERMS = ("status", "condition")
SCHEDULE_TERMS = ("schedule", "appointment", "visit")
VITAL_TERMS = ("blood pressure", "temperature", "pulse", "vital")


def _has_any(text: str, terms: tuple[str, ...]) -> bool:
    return any(term in text for term in terms)


def _is_medication(text: str) -> bool:
    # Drug names match on word boundaries, generic terms on substrings
    names_drug = (
        _has_any(text, MEDICATION_TERMS)
        or find_known_medication(text) is not None
        or find_dosed_medication(text) is not None
    )
    return names_drug and _has_any(text, ADMINISTRATION_TERMS)


# Command rules: (command_type, priority, matcher). Higher priority = checked
# first; the first matcher that accepts the lowercased transcript wins.
COMMAND_RULES: list[tuple[CommandType, int, Callable[[str], bool]]] = [
    (CommandType.UPDATE_MEDICATION, 50, _is_medication),
    (CommandType.ADD_NOTE, 40, lambda text: _has_any(text, NOTE_PHRASES)),
    (CommandType.UPDATE_STATUS, 30, lambda text: _has_any(text, STATUS_TERMS)),
    (CommandType.SCHEDULE_VISIT, 20, lambda text: _has_any(text, SCHEDULE_TERMS)),
    (CommandType.RECORD_VITAL, 10, lambda text: _has_any(text, VITAL_TERMS)),
]

# Sorted rule cache
_sorted_rules: list[tuple[CommandType, int, Callable[[str], bool]]] | None = None


def _get_rules() -> list[tuple[CommandType, int, Callable[[str], bool]]]:
    """Get rules sorted by priority (highest first)."""
    global _sorted_rules
    if _sorted_rules is None:
        _sorted_rules = sorted(COMMAND_RULES, key=lambda rule: rule[1], reverse=True)
    return _sorted_rules


def classify(text: str) -> CommandType:
    """Classify a transcript. Deterministic and total."""
    text = text.lower().strip()
    if not text:
        return CommandType.UNKNOWN

    for command_type, _priority, matcher in _get_rules():
        if matcher(text):
            return command_type

    return CommandType.UNKNOWN


def interpret(transcript: str, confidence: float) -> VoiceCommand:
    """Interpret a final transcript as a care plan command.

    This is the main entry point for the voice command pipeline. The
    confidence is carried through unchanged; UNKNOWN has empty parameters.
    """
    transcript = transcript or ""
    command_type = classify(transcript)

    return VoiceCommand(
        type=command_type,
        confidence=confidence,
        parameters=extract_parameters(command_type, transcript.strip()),
        original_text=transcript,
    )


# Example phrases shown in the voice help panel
AVAILABLE_COMMANDS: dict[str, list[dict[str, str]]] = {
    "Medication": [
        {"command": "Gave [medication] at [time]", "example": "Gave aspirin at 2 PM"},
        {"command": "[Medication] administered", "example": "Medication insulin administered this morning"},
    ],
    "Notes": [
        {"command": "Add note [text]", "example": "Add note patient seems tired"},
        {"command": "Note that [text]", "example": "Note that family visit went well"},
    ],
    "Status": [
        {"command": "Status [improved/stable/declined]", "example": "Status improved, condition stable"},
    ],
    "Vitals": [
        {"command": "Blood pressure [value] over [value]", "example": "Blood pressure 120 over 80"},
        {"command": "Temperature [value] degrees", "example": "Temperature 98.6 degrees fahrenheit"},
        {"command": "Pulse [value] bpm", "example": "Pulse 72 bpm"},
    ],
    "Schedule": [
        {"command": "Schedule visit [day] at [time]", "example": "Schedule visit tomorrow at 10 AM"},
    ],
    "Control": [
        {"command": "Confirm last", "example": "Confirm the most recent update"},
        {"command": "Save last / Save all", "example": "Save updates to the care plan"},
        {"command": "Clear all", "example": "Discard every staged update"},
    ],
}


def main():
    parser = argparse.ArgumentParser(
        description="Voice Command Interpreter - classify a care plan transcript"
    )
    parser.add_argument("--text", required=True, help="Transcript text")
    parser.add_argument("--confidence", type=float, default=1.0, help="Recognizer confidence (0-1)")

    args = parser.parse_args()

    if not 0.0 <= args.confidence <= 1.0:
        print(json.dumps({"success": False, "error": "--confidence must be between 0 and 1"}))
        sys.exit(1)

    command = interpret(args.text, args.confidence)
    result = {
        "success": True,
        "data": {
            **command.to_dict(),
            "content": format_command_content(command) if command.is_known else None,
            "needs_review": command.needs_review(),
        },
    }
    print(json.dumps(result, indent=2))


if __name__ == "__main__":
    main()
