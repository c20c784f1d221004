"""Shared test fixtures for CareVoice tests.

This module provides common fixtures used across all test modules:
- Database isolation with temporary files
- Standard user/session identifiers
- Voice configuration and fully wired sessions

Usage:
    def test_something(temp_db):
        # temp_db is automatically cleaned up after the test
        ...
"""

import os
import tempfile
from collections.abc import Generator
from pathlib import Path
from unittest.mock import MagicMock

import pytest

from carevoice.voice.feedback.emitter import SpokenFeedbackEmitter


# ─────────────────────────────────────────────────────────────────────────────
# Path Constants
# ─────────────────────────────────────────────────────────────────────────────

PROJECT_ROOT = Path(__file__).parent.parent
PACKAGE_DIR = PROJECT_ROOT / "carevoice"


# ─────────────────────────────────────────────────────────────────────────────
# Database Fixtures
# ─────────────────────────────────────────────────────────────────────────────


@pytest.fixture
def temp_db() -> Generator[Path, None, None]:
    """Create a temporary database file for testing.

    The database file (and its WAL side files) is deleted after the test.

    Yields:
        Path to the temporary database file
    """
    with tempfile.NamedTemporaryFile(suffix=".db", delete=False) as f:
        db_path = Path(f.name)

    yield db_path

    # Cleanup
    for suffix in ("", "-wal", "-shm"):
        path = Path(f"{db_path}{suffix}")
        if path.exists():
            os.unlink(path)


# ─────────────────────────────────────────────────────────────────────────────
# Identity Fixtures
# ─────────────────────────────────────────────────────────────────────────────


@pytest.fixture
def mock_user_id() -> str:
    """Standard test caseworker ID."""
    return "test-caseworker-001"


@pytest.fixture
def mock_session_id() -> str:
    """Standard test voice session ID."""
    return "test-session-001"


# ─────────────────────────────────────────────────────────────────────────────
# Voice Fixtures
# ─────────────────────────────────────────────────────────────────────────────


@pytest.fixture
def voice_config() -> dict:
    """Voice configuration with in-memory storage and no cloud services."""
    return {
        "voice": {"clients": ["Sarah Johnson", "Michael Brown", "Emma Davis"]},
        "storage": {"backend": "memory"},
        "transcription": {"enabled": False},
        "feedback": {"tts": {"enabled": False}},
    }


@pytest.fixture
def default_preferences() -> dict:
    """Preferences as returned for a new user."""
    return {
        "enabled": True,
        "voice_feedback_enabled": True,
        "language": "en-US",
        "recognition_threshold": 0.7,
        "review_threshold": 0.8,
        "feedback_rate": 0.9,
        "feedback_pitch": 1.0,
        "feedback_volume": 0.8,
        "default_client": None,
    }


@pytest.fixture
def mock_emitter() -> MagicMock:
    """Spoken feedback emitter that records speak() calls."""
    return MagicMock(spec=SpokenFeedbackEmitter)


@pytest.fixture
def voice_session(voice_config, default_preferences, mock_session_id):
    """A browser-backed voice session with speech supported and listening."""
    from carevoice.voice.session import create_session

    session = create_session(
        session_id=mock_session_id,
        config=voice_config,
        preferences=default_preferences,
    )
    session.start_listening()
    return session
