"""Role-aware navigation voice commands.

Guardians and parents navigate their family portal ("show appointments");
caseworkers and managers drive the staff dashboard ("view cases",
"emergency alert"). The first listed phrase contained in the transcript wins.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from typing import Any

from carevoice.voice.feedback.emitter import SpokenFeedbackEmitter

logger = logging.getLogger(__name__)

FAMILY_ROLES = ("parent", "guardian")


@dataclass
class NavigationCommand:
    """A matched navigation or action command."""

    phrase: str
    action: str
    data: dict[str, Any] = field(default_factory=dict)

    def to_dict(self) -> dict[str, Any]:
        return {
            "phrase": self.phrase,
            "action": self.action,
            "data": self.data,
        }


# phrase → (action, data); order is match priority
FAMILY_COMMANDS: list[tuple[str, str, dict[str, Any]]] = [
    ("show appointments", "navigate", {"tab": "appointments"}),
    ("book appointment", "navigate", {"tab": "book-appointment"}),
    ("view care plan", "navigate", {"tab": "care-plan"}),
    ("show documents", "navigate", {"tab": "documents"}),
    ("find resources", "navigate", {"tab": "resources"}),
    ("contact case worker", "contact", {"type": "caseworker"}),
]

STAFF_COMMANDS: list[tuple[str, str, dict[str, Any]]] = [
    ("show dashboard", "navigate", {"tab": "overview"}),
    ("view cases", "navigate", {"tab": "cases"}),
    ("show trends", "navigate", {"tab": "trends"}),
    ("risk analysis", "navigate", {"tab": "risks"}),
    ("ai insights", "navigate", {"tab": "insights"}),
    ("new case", "action", {"type": "new-case"}),
    ("emergency alert", "action", {"type": "emergency"}),
    ("run analysis", "action", {"type": "ai-analysis"}),
]


def commands_for_role(role: str) -> list[tuple[str, str, dict[str, Any]]]:
    return FAMILY_COMMANDS if role.lower() in FAMILY_ROLES else STAFF_COMMANDS


def match_navigation_command(transcript: str, role: str) -> NavigationCommand | None:
    """Find the navigation command named in a transcript, if any."""
    text = (transcript or "").lower().strip()
    if not text:
        return None

    for phrase, action, data in commands_for_role(role):
        if phrase in text:
            return NavigationCommand(phrase=phrase, action=action, data=dict(data))
    return None


def execute_navigation_command(
    transcript: str,
    role: str,
    emitter: SpokenFeedbackEmitter | None = None,
) -> NavigationCommand | None:
    """Match a transcript and announce the command being executed."""
    command = match_navigation_command(transcript, role)
    if command is None:
        return None

    logger.info("Voice navigation for %s: %s", role, command.phrase)
    if emitter is not None:
        emitter.speak(f"Executing {command.phrase}")
    return command
