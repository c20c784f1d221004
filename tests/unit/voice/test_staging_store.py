"""Tests for the update staging store lifecycle."""

from unittest.mock import MagicMock, call

import pytest

from carevoice.voice.models import CarePlanUpdate, CommandType, UpdateStatus
from carevoice.voice.parser.intent_parser import interpret
from carevoice.voice.staging.repository import CarePlanRepository, InMemoryCarePlanRepository
from carevoice.voice.staging.store import (
    ALL_SAVED_MESSAGE,
    CONFIRMED_MESSAGE,
    SAVED_MESSAGE,
    UpdateStagingStore,
)


def _update(update_id: str, confidence: float = 0.9) -> CarePlanUpdate:
    return CarePlanUpdate(
        id=update_id,
        client_name="Sarah Johnson",
        update_type=CommandType.ADD_NOTE,
        content="Note (general): all good",
        confidence=confidence,
    )


@pytest.fixture
def store(mock_emitter):
    store = UpdateStagingStore(emitter=mock_emitter)
    store.stage(_update("u1"))
    store.stage(_update("u2"))
    mock_emitter.reset_mock()
    return store


# =============================================================================
# Staging
# =============================================================================


class TestStage:

    def test_most_recent_first(self, store):
        assert [u.id for u in store.updates] == ["u2", "u1"]
        assert len(store) == 2

    def test_stage_command(self, mock_emitter):
        store = UpdateStagingStore(emitter=mock_emitter)

        update = store.stage_command(interpret("gave aspirin at 2 PM", 0.9), "Sarah Johnson")

        assert update.status == UpdateStatus.PENDING
        assert update.update_type == CommandType.UPDATE_MEDICATION
        assert update.content == "Medication aspirin administered at 2 PM"
        assert update.confidence == 0.9
        assert update.client_name == "Sarah Johnson"
        mock_emitter.speak.assert_called_once_with("Recorded update medication for Sarah Johnson")

    def test_ids_are_unique(self):
        store = UpdateStagingStore()
        command = interpret("status stable", 0.9)

        first = store.stage_command(command, "Emma Davis")
        second = store.stage_command(command, "Emma Davis")

        assert first.id != second.id
        assert len(store) == 2

    def test_updates_is_a_copy(self, store):
        store.updates.clear()
        assert len(store) == 2


# =============================================================================
# Confirm & Save
# =============================================================================


class TestConfirm:

    def test_confirm_pending(self, store, mock_emitter):
        assert store.confirm("u1") is True

        assert store.get("u1").status == UpdateStatus.CONFIRMED
        mock_emitter.speak.assert_called_once_with(CONFIRMED_MESSAGE)

    def test_confirm_is_idempotent(self, store, mock_emitter):
        store.confirm("u1")
        store.confirm("u1")

        assert store.get("u1").status == UpdateStatus.CONFIRMED
        assert mock_emitter.speak.call_count == 2

    def test_confirm_saved_is_noop(self, store, mock_emitter):
        store.save("u1")
        mock_emitter.reset_mock()

        assert store.confirm("u1") is False

        assert store.get("u1").status == UpdateStatus.SAVED
        mock_emitter.speak.assert_not_called()

    def test_confirm_missing_id(self, store, mock_emitter):
        assert store.confirm("missing") is False

        assert [u.status for u in store.updates] == [UpdateStatus.PENDING, UpdateStatus.PENDING]
        mock_emitter.speak.assert_not_called()


class TestSave:

    def test_save_without_confirm(self, store, mock_emitter):
        assert store.last_saved is None

        assert store.save("u2") is True

        assert store.get("u2").status == UpdateStatus.SAVED
        assert store.get("u1").status == UpdateStatus.PENDING
        assert store.last_saved is not None
        mock_emitter.speak.assert_called_once_with(SAVED_MESSAGE)

    def test_save_confirmed(self, store):
        store.confirm("u1")
        assert store.save("u1") is True
        assert store.get("u1").status == UpdateStatus.SAVED

    def test_save_twice(self, store, mock_emitter):
        store.save("u1")

        assert store.save("u1") is False
        assert mock_emitter.speak.call_count == 1

    def test_save_missing_id(self, store, mock_emitter):
        assert store.save("missing") is False
        assert store.last_saved is None
        mock_emitter.speak.assert_not_called()


class TestSaveAll:

    def test_saves_every_status(self, store, mock_emitter):
        store.confirm("u1")
        store.stage(_update("u3"))
        store.save("u3")
        mock_emitter.reset_mock()

        changed = store.save_all()

        assert changed == 2
        assert all(u.status == UpdateStatus.SAVED for u in store.updates)
        assert store.last_saved is not None
        mock_emitter.speak.assert_called_once_with(ALL_SAVED_MESSAGE)

    def test_empty_store_is_silent(self, mock_emitter):
        store = UpdateStagingStore(emitter=mock_emitter)

        assert store.save_all() == 0

        assert store.last_saved is None
        mock_emitter.speak.assert_not_called()


# =============================================================================
# Clear & Review
# =============================================================================


class TestClear:

    def test_clear_removes_everything(self, store):
        store.save("u1")

        assert store.clear() == 2

        assert store.updates == []
        assert store.get("u1") is None

    def test_clear_keeps_persisted_history(self):
        repository = InMemoryCarePlanRepository()
        store = UpdateStagingStore(repository=repository)
        store.stage(_update("u1"))

        store.clear()

        assert [u.id for u in repository.list()] == ["u1"]


class TestPendingReview:

    def test_low_confidence_unsaved_updates(self):
        store = UpdateStagingStore()
        store.stage(_update("low", confidence=0.75))
        store.stage(_update("high", confidence=0.95))
        store.stage(_update("low-saved", confidence=0.72))
        store.save("low-saved")

        assert [u.id for u in store.pending_review()] == ["low"]

    def test_custom_threshold(self):
        store = UpdateStagingStore(review_threshold=0.9)
        store.stage(_update("u1", confidence=0.85))
        assert [u.id for u in store.pending_review()] == ["u1"]


# =============================================================================
# Repository Write-through
# =============================================================================


class TestRepositoryWriteThrough:

    def test_lifecycle_is_persisted(self):
        repository = MagicMock(spec=CarePlanRepository)
        store = UpdateStagingStore(repository=repository, session_id="s1")
        update = _update("u1")

        store.stage(update)
        store.confirm("u1")
        store.save("u1")

        repository.create.assert_called_once_with(update, session_id="s1")
        assert repository.update_status.call_args_list == [
            call("u1", UpdateStatus.CONFIRMED),
            call("u1", UpdateStatus.SAVED),
        ]

    def test_repository_failure_does_not_block_lifecycle(self, mock_emitter):
        repository = MagicMock(spec=CarePlanRepository)
        repository.create.side_effect = RuntimeError("database locked")
        repository.update_status.side_effect = RuntimeError("database locked")
        store = UpdateStagingStore(emitter=mock_emitter, repository=repository)

        store.stage(_update("u1"))

        assert store.save("u1") is True
        assert store.get("u1").status == UpdateStatus.SAVED
        assert mock_emitter.speak.call_count == 2
