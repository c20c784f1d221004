"""
Integration tests for the voice care plan API.

Tests the FastAPI voice routes end to end:
- Session creation and browser recognition batches
- Staged update confirm/save/save-all/clear
- Spoken feedback queue, preferences, commands and navigation

These tests use an isolated test database and FastAPI TestClient.
"""

from unittest.mock import AsyncMock, MagicMock, patch

import pytest

from carevoice.voice.models import TranscriptEvent


# Skip all tests in this module if FastAPI is not installed
try:
    from fastapi.testclient import TestClient  # noqa: F401

    HAS_FASTAPI = True
except ImportError:
    HAS_FASTAPI = False

pytestmark = [
    pytest.mark.skipif(not HAS_FASTAPI, reason="FastAPI not installed"),
    pytest.mark.integration,
]


def _say(client, session_id: str, text: str, confidence: float = 0.9, is_final: bool = True):
    return client.post(
        "/api/voice/results",
        params={"session_id": session_id},
        json={
            "resultIndex": 0,
            "results": [{"transcript": text, "confidence": confidence, "isFinal": is_final}],
        },
    )


# ─────────────────────────────────────────────────────────────────────────────
# Health & Session Endpoints
# ─────────────────────────────────────────────────────────────────────────────


class TestHealth:

    def test_health(self, test_client):
        response = test_client.get("/api/health")

        assert response.status_code == 200
        data = response.json()
        assert data["status"] == "healthy"
        assert data["services"]["database"] == "healthy"


class TestSession:

    def test_create_session(self, test_client):
        response = test_client.post("/api/voice/session", json={})

        assert response.status_code == 200
        session = response.json()["session"]
        assert session["voice_available"] is True
        assert session["is_listening"] is False
        assert session["selected_client"] == "Sarah Johnson"
        assert session["updates"] == []

    def test_create_is_idempotent(self, test_client):
        first = test_client.post("/api/voice/session", json={"session_id": "tab-1"}).json()
        _say(test_client, "tab-1", "status stable")
        again = test_client.post("/api/voice/session", json={"session_id": "tab-1"}).json()

        assert first["session"]["session_id"] == again["session"]["session_id"] == "tab-1"

    def test_unsupported_browser(self, test_client):
        response = test_client.post(
            "/api/voice/session",
            json={"session_id": "old-browser", "recognition_supported": False},
        )
        assert response.json()["session"]["voice_available"] is False

        started = test_client.post("/api/voice/listen/start", params={"session_id": "old-browser"})
        assert started.json()["session"]["is_listening"] is False

    def test_unknown_session(self, test_client):
        response = test_client.get("/api/voice/status", params={"session_id": "nope"})

        assert response.status_code == 404
        assert response.json()["code"] == "HTTP_404"

    def test_error_body_shape(self, test_client):
        response = test_client.get("/api/voice/status", params={"session_id": "nope"})

        assert set(response.json()) == {"error", "code"}

    def test_end_session(self, test_client):
        test_client.post("/api/voice/session", json={"session_id": "tab-closed"})
        _say(test_client, "tab-closed", "status stable")
        before = test_client.get("/api/health").json()["services"]["sessions"]

        response = test_client.delete("/api/voice/session", params={"session_id": "tab-closed"})

        assert response.status_code == 200
        assert response.json() == {"success": True, "removed": "tab-closed"}
        status = test_client.get("/api/voice/status", params={"session_id": "tab-closed"})
        assert status.status_code == 404
        after = test_client.get("/api/health").json()["services"]["sessions"]
        assert int(after) == int(before) - 1

    def test_end_unknown_session(self, test_client):
        response = test_client.delete("/api/voice/session", params={"session_id": "nope"})

        assert response.status_code == 404
        assert response.json()["code"] == "HTTP_404"

    def test_status(self, test_client, voice_session_id):
        response = test_client.get("/api/voice/status", params={"session_id": voice_session_id})

        assert response.status_code == 200
        data = response.json()
        assert data["session"]["is_listening"] is True
        assert data["listening_requested"] is True
        assert data["web_speech_config"]["interimResults"] is True
        assert "web_speech" in data["available_sources"]

    def test_stop_listening(self, test_client, voice_session_id):
        response = test_client.post("/api/voice/listen/stop", params={"session_id": voice_session_id})
        assert response.json()["session"]["is_listening"] is False


# ─────────────────────────────────────────────────────────────────────────────
# Recognition Endpoints
# ─────────────────────────────────────────────────────────────────────────────


class TestRecognition:

    def test_final_result_stages_update(self, test_client, voice_session_id):
        response = _say(test_client, voice_session_id, "gave aspirin at 2 PM", 0.92)

        assert response.status_code == 200
        data = response.json()
        assert data["event"]["is_final"] is True
        [update] = data["session"]["updates"]
        assert update["update_type"] == "update_medication"
        assert update["content"] == "Medication aspirin administered at 2 PM"
        assert update["status"] == "pending"
        assert data["feedback"][0]["text"] == "Recorded update medication for Sarah Johnson"

    def test_low_confidence_not_staged(self, test_client, voice_session_id):
        data = _say(test_client, voice_session_id, "gave aspirin at 2 PM", 0.6).json()

        assert data["session"]["updates"] == []
        assert data["session"]["transcript"] == "gave aspirin at 2 PM"

    def test_review_warning(self, test_client, voice_session_id):
        data = _say(test_client, voice_session_id, "blood pressure 120 over 80", 0.75).json()

        assert data["session"]["low_confidence_warning"] is True
        assert data["session"]["updates"][0]["content"] == "blood_pressure: 120/80 mmHg"

    def test_results_after_stop_discarded(self, test_client, voice_session_id):
        test_client.post("/api/voice/listen/stop", params={"session_id": voice_session_id})

        data = _say(test_client, voice_session_id, "status stable").json()

        assert data["event"] is None
        assert data["session"]["updates"] == []

    def test_error_stops_listening(self, test_client, voice_session_id):
        response = test_client.post(
            "/api/voice/error",
            params={"session_id": voice_session_id},
            json={"error": "no-speech"},
        )

        assert response.json()["session"]["is_listening"] is False

    def test_end_stops_listening(self, test_client, voice_session_id):
        response = test_client.post("/api/voice/end", params={"session_id": voice_session_id})
        assert response.json()["session"]["is_listening"] is False

    def test_invalid_confidence_rejected(self, test_client, voice_session_id):
        response = _say(test_client, voice_session_id, "status stable", 1.5)
        assert response.status_code == 422

    def test_transcribe_unavailable(self, test_client, voice_session_id):
        transcriber = MagicMock()
        transcriber.is_available = False

        with patch(
            "carevoice.dashboard.backend.routes.voice.get_whisper_transcriber",
            return_value=transcriber,
        ):
            response = test_client.post(
                "/api/voice/transcribe",
                params={"session_id": voice_session_id},
                files={"audio": ("clip.webm", b"audio-bytes", "audio/webm")},
            )

        assert response.status_code == 503
        transcriber.transcribe.assert_not_called()

    def test_transcribe(self, test_client, voice_session_id):
        transcriber = MagicMock()
        transcriber.is_available = True
        transcriber.transcribe = AsyncMock(return_value=TranscriptEvent(
            text="add note slept well", confidence=0.95, source="whisper_api",
        ))

        with patch(
            "carevoice.dashboard.backend.routes.voice.get_whisper_transcriber",
            return_value=transcriber,
        ):
            response = test_client.post(
                "/api/voice/transcribe",
                params={"session_id": voice_session_id},
                files={"audio": ("clip.webm", b"audio-bytes", "audio/webm")},
            )

        assert response.status_code == 200
        data = response.json()
        assert data["event"]["source"] == "whisper_api"
        assert data["session"]["updates"][0]["content"] == "Note (general): slept well"


class TestInterpret:

    def test_interpret_is_stateless(self, test_client):
        response = test_client.post(
            "/api/voice/interpret",
            json={"transcript": "schedule visit tomorrow at 10 AM", "confidence": 0.95},
        )

        assert response.status_code == 200
        data = response.json()
        assert data["command"]["type"] == "schedule_visit"
        assert data["command"]["parameters"] == {"date": "tomorrow", "time": "10 AM", "type": "general"}
        assert data["content"] == "General visit scheduled for tomorrow at 10 AM"
        assert data["needs_review"] is False

    def test_interpret_unknown(self, test_client):
        data = test_client.post(
            "/api/voice/interpret", json={"transcript": "", "confidence": 0.4}
        ).json()

        assert data["command"]["type"] == "unknown"
        assert data["command"]["confidence"] == 0.4
        assert data["content"] is None


# ─────────────────────────────────────────────────────────────────────────────
# Staged Update Endpoints
# ─────────────────────────────────────────────────────────────────────────────


class TestUpdates:

    def _stage(self, client, session_id: str) -> list[str]:
        _say(client, session_id, "status stable")
        _say(client, session_id, "pulse 72 bpm")
        updates = client.get("/api/voice/updates", params={"session_id": session_id}).json()
        return [u["id"] for u in updates["updates"]]

    def test_list_most_recent_first(self, test_client, voice_session_id):
        ids = self._stage(test_client, voice_session_id)

        data = test_client.get("/api/voice/updates", params={"session_id": voice_session_id}).json()

        assert data["total"] == 2
        assert [u["id"] for u in data["updates"]] == ids
        assert data["updates"][0]["update_type"] == "record_vital"

    def test_confirm_then_save(self, test_client, voice_session_id):
        update_id = self._stage(test_client, voice_session_id)[0]
        params = {"session_id": voice_session_id}

        confirmed = test_client.post(f"/api/voice/updates/{update_id}/confirm", params=params).json()
        saved = test_client.post(f"/api/voice/updates/{update_id}/save", params=params).json()

        assert confirmed["changed"] is True
        assert confirmed["feedback"][0]["text"] == "Update confirmed"
        assert saved["changed"] is True
        assert saved["session"]["updates"][0]["status"] == "saved"
        assert saved["session"]["last_saved"] is not None

    def test_missing_id_is_not_an_error(self, test_client, voice_session_id):
        self._stage(test_client, voice_session_id)

        response = test_client.post(
            "/api/voice/updates/missing/save", params={"session_id": voice_session_id}
        )

        assert response.status_code == 200
        data = response.json()
        assert data["changed"] is False
        assert data["feedback"] == []
        assert {u["status"] for u in data["session"]["updates"]} == {"pending"}

    def test_save_all(self, test_client, voice_session_id):
        self._stage(test_client, voice_session_id)

        data = test_client.post(
            "/api/voice/updates/save-all", params={"session_id": voice_session_id}
        ).json()

        assert data["changed"] == 2
        assert {u["status"] for u in data["session"]["updates"]} == {"saved"}
        assert [f["text"] for f in data["feedback"]] == ["All updates saved"]

    def test_save_all_empty(self, test_client, voice_session_id):
        data = test_client.post(
            "/api/voice/updates/save-all", params={"session_id": voice_session_id}
        ).json()

        assert data["changed"] == 0
        assert data["feedback"] == []

    def test_clear(self, test_client, voice_session_id):
        self._stage(test_client, voice_session_id)

        data = test_client.delete("/api/voice/updates", params={"session_id": voice_session_id}).json()

        assert data["session"]["updates"] == []
        assert data["session"]["transcript"] == ""
        assert data["session"]["last_command"] is None

    def test_voice_control_phrase(self, test_client, voice_session_id):
        self._stage(test_client, voice_session_id)

        data = _say(test_client, voice_session_id, "save all").json()

        assert {u["status"] for u in data["session"]["updates"]} == {"saved"}


class TestClientSelection:

    def test_select_client(self, test_client, voice_session_id):
        params = {"session_id": voice_session_id}
        response = test_client.put("/api/voice/client", params=params, json={"client_name": "Emma Davis"})

        assert response.status_code == 200
        data = _say(test_client, voice_session_id, "status improved").json()
        assert data["session"]["updates"][0]["client_name"] == "Emma Davis"

    def test_unknown_client(self, test_client, voice_session_id):
        response = test_client.put(
            "/api/voice/client",
            params={"session_id": voice_session_id},
            json={"client_name": "Nobody"},
        )
        assert response.status_code == 400


class TestFeedback:

    def test_feedback_drained_once(self, test_client, voice_session_id):
        test_client.post(
            "/api/voice/navigate",
            params={"session_id": voice_session_id},
            json={"transcript": "show trends", "role": "caseworker"},
        )
        params = {"session_id": voice_session_id}

        # The navigate response already drained the queue
        assert test_client.get("/api/voice/feedback", params=params).json()["feedback"] == []

    def test_tts_falls_back_to_browser(self, test_client):
        data = test_client.post("/api/voice/tts", json={"text": "Update confirmed"}).json()

        assert data["success"] is True
        assert data["use_browser_tts"] is True


# ─────────────────────────────────────────────────────────────────────────────
# Preferences, Commands & Navigation
# ─────────────────────────────────────────────────────────────────────────────


class TestPreferences:

    def test_get_defaults(self, test_client):
        data = test_client.get("/api/voice/preferences", params={"user_id": "worker-1"}).json()

        assert data["success"] is True
        assert data["data"]["recognition_threshold"] == 0.7
        assert data["data"]["review_threshold"] == 0.8

    def test_update(self, test_client):
        response = test_client.put(
            "/api/voice/preferences",
            params={"user_id": "worker-1"},
            json={"voice_feedback_enabled": False, "default_client": "Michael Brown"},
        )

        assert response.status_code == 200
        assert response.json()["data"]["voice_feedback_enabled"] is False

    def test_preferences_apply_to_new_sessions(self, test_client):
        test_client.put(
            "/api/voice/preferences",
            params={"user_id": "worker-2"},
            json={"default_client": "Michael Brown"},
        )

        data = test_client.post(
            "/api/voice/session", params={"user_id": "worker-2"}, json={"session_id": "w2"}
        ).json()

        assert data["session"]["selected_client"] == "Michael Brown"

    def test_empty_update_rejected(self, test_client):
        response = test_client.put("/api/voice/preferences", json={})
        assert response.status_code == 400

    def test_out_of_range_rejected(self, test_client):
        response = test_client.put("/api/voice/preferences", json={"recognition_threshold": 2})
        assert response.status_code == 422


class TestCommandsAndNavigation:

    def test_commands(self, test_client):
        data = test_client.get("/api/voice/commands").json()["data"]

        assert "Medication" in data["commands"]
        assert data["total"] > 0
        assert "view cases" in data["navigation"]

    def test_family_navigation_phrases(self, test_client):
        data = test_client.get("/api/voice/commands", params={"role": "guardian"}).json()["data"]
        assert "show appointments" in data["navigation"]

    def test_navigate(self, test_client, voice_session_id):
        data = test_client.post(
            "/api/voice/navigate",
            params={"session_id": voice_session_id},
            json={"transcript": "show trends please", "role": "caseworker"},
        ).json()

        assert data["success"] is True
        assert data["command"] == {"phrase": "show trends", "action": "navigate", "data": {"tab": "trends"}}
        assert [f["text"] for f in data["feedback"]] == ["Executing show trends"]

    def test_navigate_no_match(self, test_client):
        data = test_client.post(
            "/api/voice/navigate", json={"transcript": "hello", "role": "parent"}
        ).json()

        assert data["success"] is False
        assert data["command"] is None
