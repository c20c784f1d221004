"""Parameter extraction from voice command transcripts.

Each extractor tries an ordered list of patterns and returns the first match,
or a type-specific default. Nothing here raises on unmatched input: a missing
value is always representable (None or a default string).

Extractors receive the transcript with its original casing so that matched
substrings ("2 PM") are returned as spoken. Keyword checks are case-insensitive.
"""

from __future__ import annotations

import re
from typing import Any

from carevoice.voice.models import CommandType, VoiceCommand

UNSPECIFIED_MEDICATION = "unspecified medication"

# Common drugs recognized by name even without "medication"/"pill" in the phrase
MEDICATION_LEXICON = (
    "acetaminophen", "advil", "albuterol", "amlodipine", "amoxicillin",
    "aspirin", "atorvastatin", "cetirizine", "gabapentin", "ibuprofen",
    "insulin", "levothyroxine", "lisinopril", "loratadine", "metformin",
    "methylphenidate", "motrin", "naproxen", "omeprazole", "paracetamol",
    "prednisone", "sertraline", "tylenol",
)

DOSE_UNITS = (
    "mg", "mcg", "milligrams?", "micrograms?", "ml", "milliliters?", "units?",
    "tablets?", "capsules?", "puffs?", "drops?",
)

ROUTES = (
    "orally", "by mouth", "intravenously", "iv", "subcutaneously", "topically",
    "sublingually", "inhaled",
)

# An unlisted drug is only named when a dose or route follows it directly
# ("lorazepam 0.5 mg", "heparin subcutaneously"). The lookahead rejects
# pronouns and the command's own verbs and nouns in the name slot.
DOSED_MEDICATION_PATTERN = (
    r"\b(?!(?:him|her|them|his|their|the|a|an|gave|given|administered|took|taken"
    r"|medication|medicine|meds|pills?|tablets?|dose)\b)([a-z]{3,})\s+"
    rf"(?:\d+(?:\.\d+)?\s*(?:{'|'.join(DOSE_UNITS)})|(?:{'|'.join(ROUTES)}))\b"
)

TIME_PATTERNS = [
    r"\b(\d{1,2}:\d{2}(?:\s*(?:a\.?m\.?|p\.?m\.?)(?![a-z]))?)",
    r"\b(\d{1,2}\s*(?:a\.?m\.?|p\.?m\.?))(?![a-z])",
    r"\b(morning|afternoon|evening|night|noon|midnight)\b",
]

DATE_PATTERNS = [
    r"\b(tomorrow|today|yesterday)\b",
    r"\b(monday|tuesday|wednesday|thursday|friday|saturday|sunday)\b",
    r"\b(\d{1,2}/\d{1,2})(?!/?\d)",
]

NOTE_PATTERNS = [
    r"(?:add(?:\s+a)?\s+note|record(?:\s+a)?\s+note|note\s+that)\s*:?\s+(.+)",
    r"note:\s*(.+)",
]

VITAL_VALUE_PATTERNS = [
    (r"\b(\d{2,3})\s*(?:/|over)\s*(\d{2,3})\b", "pressure"),
    (r"\b(\d+(?:\.\d+)?)\s*degrees?\b", "single"),
    (r"\b(\d+)\s*bpm\b", "single"),
    (r"\b(\d+)\s*(?:percent|%)", "single"),
    (r"\b(\d+(?:\.\d+)?)\b", "single"),
]

# Keyword tables: first matching row wins
NOTE_CATEGORIES = [
    (("medical", "health"), "medical"),
    (("social", "family"), "social"),
    (("behavioral", "mood"), "behavioral"),
]

STATUS_VALUES = [
    (("stable",), "stable"),
    (("improved", "better"), "improved"),
    (("declined", "worse"), "declined"),
    (("critical", "urgent"), "critical"),
]

SEVERITY_VALUES = [
    (("mild", "slight"), "mild"),
    (("moderate",), "moderate"),
    (("severe", "serious"), "severe"),
]

VISIT_TYPES = [
    (("medical", "doctor"), "medical"),
    (("social", "family"), "social"),
    (("therapy", "physical"), "therapy"),
]

VITAL_TYPES = [
    (("blood pressure", "bp"), "blood_pressure"),
    (("temperature", "temp"), "temperature"),
    (("pulse", "heart rate"), "pulse"),
    (("oxygen", "o2"), "oxygen_saturation"),
]

VITAL_UNITS = [
    (("mmhg",), "mmHg"),
    (("celsius", "°c"), "°C"),
    (("fahrenheit", "°f"), "°F"),
    (("bpm",), "bpm"),
    (("percent", "%"), "%"),
]

# Conventional unit when none is spoken
DEFAULT_VITAL_UNITS = {
    "blood_pressure": "mmHg",
    "pulse": "bpm",
    "oxygen_saturation": "%",
}


def _lookup(text: str, table: list[tuple[tuple[str, ...], str]], default: str) -> str:
    text_lower = text.lower()
    for keywords, value in table:
        if any(k in text_lower for k in keywords):
            return value
    return default


def _first_group(text: str, patterns: list[str]) -> str | None:
    for pattern in patterns:
        match = re.search(pattern, text, re.IGNORECASE)
        if match:
            return match.group(1).strip()
    return None


def find_known_medication(text: str) -> str | None:
    """Return the first lexicon drug named in the text, if any."""
    text_lower = text.lower()
    for name in MEDICATION_LEXICON:
        if re.search(rf"\b{name}\b", text_lower):
            return name
    return None


def find_dosed_medication(text: str) -> str | None:
    """Return a drug name spoken with its dose or route, if any."""
    match = re.search(DOSED_MEDICATION_PATTERN, text, re.IGNORECASE)
    return match.group(1).lower() if match else None


def extract_medication(text: str) -> str:
    """Extract the medication name, e.g. "gave aspirin" → "aspirin".

    Only lexicon drugs and names followed by a dose or route count; anything
    else is "unspecified medication".
    """
    return find_known_medication(text) or find_dosed_medication(text) or UNSPECIFIED_MEDICATION


def extract_time(text: str) -> str | None:
    """Extract a time of day as spoken ("2 PM", "10:30", "morning")."""
    return _first_group(text, TIME_PATTERNS)


def extract_date(text: str) -> str | None:
    """Extract a relative day, weekday, or M/D date."""
    date = _first_group(text, DATE_PATTERNS)
    return date.lower() if date and not date[0].isdigit() else date


def extract_note(text: str) -> str:
    """Extract the note body; falls back to the whole transcript."""
    return _first_group(text, NOTE_PATTERNS) or text.strip()


def extract_category(text: str) -> str:
    return _lookup(text, NOTE_CATEGORIES, "general")


def extract_status(text: str) -> str:
    return _lookup(text, STATUS_VALUES, "unchanged")


def extract_severity(text: str) -> str:
    return _lookup(text, SEVERITY_VALUES, "normal")


def extract_visit_type(text: str) -> str:
    return _lookup(text, VISIT_TYPES, "general")


def extract_vital_type(text: str) -> str:
    text_lower = text.lower()
    for keywords, value in VITAL_TYPES:
        for keyword in keywords:
            # Short abbreviations only count as whole words
            if len(keyword) <= 4 and " " not in keyword:
                if re.search(rf"\b{re.escape(keyword)}\b", text_lower):
                    return value
            elif keyword in text_lower:
                return value
    return "general"


def extract_vital_value(text: str) -> str | None:
    """Extract the reading; "120 over 80" becomes "120/80"."""
    for pattern, shape in VITAL_VALUE_PATTERNS:
        match = re.search(pattern, text, re.IGNORECASE)
        if match:
            if shape == "pressure":
                return f"{match.group(1)}/{match.group(2)}"
            return match.group(1)
    return None


def extract_vital_unit(text: str, vital_type: str = "general") -> str:
    spoken = _lookup(text, VITAL_UNITS, "")
    return spoken or DEFAULT_VITAL_UNITS.get(vital_type, "")


def extract_parameters(command_type: CommandType, text: str) -> dict[str, Any]:
    """Build the parameter mapping for a classified transcript.

    Keys are fully determined by the command type (see PARAMETER_KEYS).
    """
    if command_type == CommandType.UPDATE_MEDICATION:
        return {
            "action": "administered",
            "medication": extract_medication(text),
            "time": extract_time(text),
        }
    if command_type == CommandType.ADD_NOTE:
        return {
            "note": extract_note(text),
            "category": extract_category(text),
        }
    if command_type == CommandType.UPDATE_STATUS:
        return {
            "status": extract_status(text),
            "severity": extract_severity(text),
        }
    if command_type == CommandType.SCHEDULE_VISIT:
        return {
            "date": extract_date(text),
            "time": extract_time(text),
            "type": extract_visit_type(text),
        }
    if command_type == CommandType.RECORD_VITAL:
        vital_type = extract_vital_type(text)
        return {
            "type": vital_type,
            "value": extract_vital_value(text),
            "unit": extract_vital_unit(text, vital_type),
        }
    return {}


def format_command_content(command: VoiceCommand) -> str:
    """Render a command as the human-readable care plan update text."""
    p = command.parameters

    if command.type == CommandType.UPDATE_MEDICATION:
        content = f"Medication {p['medication']} {p['action']}"
        return f"{content} at {p['time']}" if p.get("time") else content

    if command.type == CommandType.ADD_NOTE:
        return f"Note ({p['category']}): {p['note']}"

    if command.type == CommandType.UPDATE_STATUS:
        return f"Status updated to {p['status']} ({p['severity']})"

    if command.type == CommandType.SCHEDULE_VISIT:
        content = f"{p['type'].capitalize()} visit scheduled"
        if p.get("date"):
            content += f" for {p['date']}"
        if p.get("time"):
            content += f" at {p['time']}"
        return content

    if command.type == CommandType.RECORD_VITAL:
        value = p.get("value") or "not captured"
        return f"{p['type']}: {value} {p['unit']}".rstrip()

    return command.original_text
