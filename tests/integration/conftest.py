"""
Integration test fixtures for CareVoice.

Provides fixtures specific to integration testing:
- FastAPI test clients
- Database and config isolation for the dashboard
- A fresh voice session registry per test
"""

import os
import tempfile
from collections.abc import Generator
from pathlib import Path
from unittest.mock import patch

import pytest
import yaml


# Handle optional dependencies gracefully
try:
    from fastapi.testclient import TestClient  # noqa: F401

    HAS_FASTAPI = True
except ImportError:
    HAS_FASTAPI = False


# Skip markers for tests requiring optional dependencies
requires_fastapi = pytest.mark.skipif(not HAS_FASTAPI, reason="FastAPI not installed")


# ─────────────────────────────────────────────────────────────────────────────
# Dashboard API Fixtures
# ─────────────────────────────────────────────────────────────────────────────


@pytest.fixture
def temp_dashboard_db() -> Generator[Path, None, None]:
    """Create a temporary voice database for testing."""
    with tempfile.NamedTemporaryFile(suffix=".db", delete=False) as f:
        db_path = Path(f.name)

    yield db_path

    # Cleanup
    for suffix in ("", "-wal", "-shm"):
        path = Path(f"{db_path}{suffix}")
        if path.exists():
            os.unlink(path)


@pytest.fixture
def temp_voice_config(tmp_path: Path) -> Path:
    """Write an isolated args/voice.yaml with cloud services disabled."""
    config_path = tmp_path / "voice.yaml"
    config_path.write_text(yaml.safe_dump({
        "voice": {"clients": ["Sarah Johnson", "Michael Brown", "Emma Davis"]},
        "storage": {"backend": "memory"},
        "transcription": {"enabled": False},
        "feedback": {"tts": {"enabled": False}},
    }))
    return config_path


@pytest.fixture
def dashboard_app(temp_dashboard_db, temp_voice_config):
    """Create a test FastAPI app with isolated database, config and sessions."""
    with (
        patch("carevoice.voice.DB_PATH", temp_dashboard_db),
        patch("carevoice.voice.CONFIG_PATH", temp_voice_config),
    ):
        # Import app after patching
        from carevoice.dashboard.backend.main import app
        from carevoice.dashboard.backend.routes.voice import get_registry

        get_registry().clear()

        yield app

        get_registry().clear()


@pytest.fixture
def test_client(dashboard_app):
    """Create a test client for the dashboard API."""
    from fastapi.testclient import TestClient

    with TestClient(dashboard_app) as client:
        yield client


@pytest.fixture
def voice_session_id(test_client) -> str:
    """Create a voice session with browser speech support and start listening."""
    response = test_client.post(
        "/api/voice/session",
        json={"session_id": "api-session-001"},
    )
    assert response.status_code == 200
    session_id = response.json()["session"]["session_id"]

    test_client.post("/api/voice/listen/start", params={"session_id": session_id})
    return session_id
