"""Voice care plan data models.

Defines command types, update statuses, and the records that flow through
the voice pipeline:
    TranscriptEvent → VoiceCommand → CarePlanUpdate
"""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime
from enum import Enum
from typing import Any

from carevoice.voice import DEFAULT_REVIEW_THRESHOLD


class CommandType(str, Enum):
    """Voice command types. Closed set; UNKNOWN is a valid outcome."""

    UPDATE_MEDICATION = "update_medication"
    ADD_NOTE = "add_note"
    UPDATE_STATUS = "update_status"
    SCHEDULE_VISIT = "schedule_visit"
    RECORD_VITAL = "record_vital"
    UNKNOWN = "unknown"

    @property
    def label(self) -> str:
        """Spoken/displayed form, e.g. "update medication"."""
        return self.value.replace("_", " ", 1)


class UpdateStatus(str, Enum):
    """Staged update lifecycle: pending → confirmed → saved."""

    PENDING = "pending"
    CONFIRMED = "confirmed"
    SAVED = "saved"


# Parameter keys are fully determined by the command type
PARAMETER_KEYS: dict[CommandType, tuple[str, ...]] = {
    CommandType.UPDATE_MEDICATION: ("action", "medication", "time"),
    CommandType.ADD_NOTE: ("note", "category"),
    CommandType.UPDATE_STATUS: ("status", "severity"),
    CommandType.SCHEDULE_VISIT: ("date", "time", "type"),
    CommandType.RECORD_VITAL: ("type", "value", "unit"),
    CommandType.UNKNOWN: (),
}


@dataclass
class RecognitionResult:
    """One result inside a speech recognition batch."""

    transcript: str
    confidence: float = 0.0
    is_final: bool = False

    def to_dict(self) -> dict[str, Any]:
        return {
            "transcript": self.transcript,
            "confidence": self.confidence,
            "is_final": self.is_final,
        }


@dataclass
class TranscriptEvent:
    """A unit of recognized speech handed to the session."""

    text: str
    confidence: float = 0.0
    is_final: bool = True
    source: str = "web_speech"
    language: str = "en-US"

    def to_dict(self) -> dict[str, Any]:
        return {
            "text": self.text,
            "confidence": self.confidence,
            "is_final": self.is_final,
            "source": self.source,
            "language": self.language,
        }


@dataclass
class VoiceCommand:
    """An interpreted voice command."""

    type: CommandType
    confidence: float = 0.0
    parameters: dict[str, Any] = field(default_factory=dict)
    original_text: str = ""

    @property
    def is_known(self) -> bool:
        return self.type != CommandType.UNKNOWN

    def needs_review(self, threshold: float = DEFAULT_REVIEW_THRESHOLD) -> bool:
        """Low confidence is a prompt for human review, not a rejection."""
        return self.is_known and self.confidence < threshold

    def to_dict(self) -> dict[str, Any]:
        return {
            "type": self.type.value,
            "confidence": self.confidence,
            "parameters": dict(self.parameters),
            "original_text": self.original_text,
        }


@dataclass
class CarePlanUpdate:
    """A care plan change derived from voice input, awaiting confirm/save."""

    id: str
    client_name: str
    update_type: CommandType
    content: str
    timestamp: datetime = field(default_factory=datetime.now)
    confidence: float = 0.0
    status: UpdateStatus = UpdateStatus.PENDING

    def to_dict(self) -> dict[str, Any]:
        return {
            "id": self.id,
            "client_name": self.client_name,
            "update_type": self.update_type.value,
            "content": self.content,
            "timestamp": self.timestamp.isoformat(),
            "confidence": self.confidence,
            "status": self.status.value,
        }
