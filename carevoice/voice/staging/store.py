"""Staged care plan updates for one session.

Owns the most-recent-first list of updates and enforces the lifecycle:

    pending → confirmed → saved
    pending → saved

Nothing leaves "saved". Confirm and save on an unknown id are silent no-ops.
Successful stage/confirm/save/save_all calls announce themselves through the
spoken feedback emitter, and every change is written through to the care
plan repository when one is attached.
"""

from __future__ import annotations

import logging
import uuid
from datetime import datetime

from carevoice.voice import DEFAULT_REVIEW_THRESHOLD
from carevoice.voice.feedback.emitter import SpokenFeedbackEmitter
from carevoice.voice.models import CarePlanUpdate, UpdateStatus, VoiceCommand
from carevoice.voice.parser.parameter_extractor import format_command_content
from carevoice.voice.staging.repository import CarePlanRepository

logger = logging.getLogger(__name__)

CONFIRMED_MESSAGE = "Update confirmed"
SAVED_MESSAGE = "Update saved to care plan"
ALL_SAVED_MESSAGE = "All updates saved"


class UpdateStagingStore:
    """Session-scoped list of voice-generated care plan updates."""

    def __init__(
        self,
        emitter: SpokenFeedbackEmitter | None = None,
        repository: CarePlanRepository | None = None,
        session_id: str | None = None,
        review_threshold: float = DEFAULT_REVIEW_THRESHOLD,
    ):
        self.emitter = emitter or SpokenFeedbackEmitter(enabled=False)
        self.repository = repository
        self.session_id = session_id
        self.review_threshold = review_threshold
        self.last_saved: datetime | None = None
        self._updates: list[CarePlanUpdate] = []

    @property
    def updates(self) -> list[CarePlanUpdate]:
        """Staged updates, most recent first."""
        return list(self._updates)

    def __len__(self) -> int:
        return len(self._updates)

    def get(self, update_id: str) -> CarePlanUpdate | None:
        for update in self._updates:
            if update.id == update_id:
                return update
        return None

    def stage_command(self, command: VoiceCommand, client_name: str) -> CarePlanUpdate:
        """Build an update from an interpreted command and stage it."""
        update = CarePlanUpdate(
            id=str(uuid.uuid4()),
            client_name=client_name,
            update_type=command.type,
            content=format_command_content(command),
            timestamp=datetime.now(),
            confidence=command.confidence,
            status=UpdateStatus.PENDING,
        )
        return self.stage(update)

    def stage(self, update: CarePlanUpdate) -> CarePlanUpdate:
        """Prepend an update. Similar utterances are not deduplicated."""
        self._updates.insert(0, update)
        self._persist("create", update)
        logger.info(
            "Staged %s update for %s (confidence %.2f)",
            update.update_type.value, update.client_name, update.confidence,
        )
        self.emitter.speak(f"Recorded {update.update_type.label} for {update.client_name}")
        return update

    def confirm(self, update_id: str) -> bool:
        """Mark an update confirmed. Returns False if nothing changed."""
        update = self.get(update_id)
        if update is None or update.status == UpdateStatus.SAVED:
            return False

        update.status = UpdateStatus.CONFIRMED
        self._persist("update_status", update)
        self.emitter.speak(CONFIRMED_MESSAGE)
        return True

    def save(self, update_id: str) -> bool:
        """Save an update to the care plan; confirmation is not required."""
        update = self.get(update_id)
        if update is None or update.status == UpdateStatus.SAVED:
            return False

        update.status = UpdateStatus.SAVED
        self.last_saved = datetime.now()
        self._persist("update_status", update)
        self.emitter.speak(SAVED_MESSAGE)
        return True

    def save_all(self) -> int:
        """Save every staged update regardless of status.

        Returns:
            Number of updates that changed status
        """
        if not self._updates:
            return 0

        changed = 0
        for update in self._updates:
            if update.status != UpdateStatus.SAVED:
                update.status = UpdateStatus.SAVED
                self._persist("update_status", update)
                changed += 1

        self.last_saved = datetime.now()
        self.emitter.speak(ALL_SAVED_MESSAGE)
        return changed

    def clear(self) -> int:
        """Drop every staged update regardless of status."""
        count = len(self._updates)
        self._updates.clear()
        return count

    def pending_review(self) -> list[CarePlanUpdate]:
        """Unsaved updates whose confidence is below the review threshold."""
        return [
            u for u in self._updates
            if u.status != UpdateStatus.SAVED and u.confidence < self.review_threshold
        ]

    def _persist(self, operation: str, update: CarePlanUpdate) -> None:
        """Write through to the repository. Failures are logged, never raised."""
        if self.repository is None:
            return
        try:
            if operation == "create":
                self.repository.create(update, session_id=self.session_id)
            else:
                self.repository.update_status(update.id, update.status)
        except Exception as e:
            logger.warning(f"Failed to persist care plan update {update.id}: {e}")
