"""Voice care plan session.

Wires the pipeline for one caseworker session:

    SpeechCaptureAdapter → interpret() → UpdateStagingStore → SpokenFeedbackEmitter

Only final transcripts above the recognition threshold are interpreted.
Short control phrases ("save all", "clear all") are handled before
interpretation so confirmation and saving can also be done hands-free.
Sessions are never shared; the registry keeps one per session id.
"""

from __future__ import annotations

import logging
import re
import uuid
from pathlib import Path
from typing import Any

from structlog.contextvars import bound_contextvars

from carevoice.voice import (
    DEFAULT_RECOGNITION_THRESHOLD,
    DEFAULT_REVIEW_THRESHOLD,
    load_config,
)
from carevoice.voice.feedback.emitter import BrowserSpeechSynthesizer, SpokenFeedbackEmitter
from carevoice.voice.models import TranscriptEvent, VoiceCommand
from carevoice.voice.parser.intent_parser import interpret
from carevoice.voice.preferences.user_preferences import get_preferences
from carevoice.voice.recognition.capture import SpeechCaptureAdapter
from carevoice.voice.recognition.web_speech_config import WebSpeechConfig, WebSpeechRelayEngine
from carevoice.voice.staging.repository import (
    CarePlanRepository,
    InMemoryCarePlanRepository,
    SqliteCarePlanRepository,
)
from carevoice.voice.staging.store import UpdateStagingStore

logger = logging.getLogger(__name__)

DEFAULT_CLIENTS = [
    "Sarah Johnson",
    "Michael Brown",
    "Emma Davis",
    "Robert Wilson",
    "Linda Garcia",
]

# Control phrases: (pattern, action). Anchored so they never shadow updates.
CONTROL_PATTERNS: list[tuple[str, str]] = [
    (r"^confirm(?:\s+(?:the\s+)?(?:last|that|it))?(?:\s+update)?$", "confirm_last"),
    (r"^save\s+(?:all|everything)(?:\s+updates?)?$", "save_all"),
    (r"^save(?:\s+(?:the\s+)?(?:last|that|it))?(?:\s+update)?$", "save_last"),
    (r"^clear\s+all(?:\s+updates?)?$", "clear_all"),
]

_compiled_controls = [(re.compile(p, re.IGNORECASE), action) for p, action in CONTROL_PATTERNS]


def match_control_phrase(text: str) -> str | None:
    """Return the control action named by a transcript, if any."""
    text = re.sub(r"[.!?,]+$", "", (text or "").strip())
    for pattern, action in _compiled_controls:
        if pattern.match(text):
            return action
    return None


class VoiceCarePlanSession:
    """Voice-driven care plan updates for one caseworker session."""

    def __init__(
        self,
        adapter: SpeechCaptureAdapter,
        emitter: SpokenFeedbackEmitter,
        store: UpdateStagingStore | None = None,
        clients: list[str] | None = None,
        selected_client: str | None = None,
        recognition_threshold: float = DEFAULT_RECOGNITION_THRESHOLD,
        review_threshold: float = DEFAULT_REVIEW_THRESHOLD,
        session_id: str | None = None,
    ):
        self.session_id = session_id or str(uuid.uuid4())
        self.adapter = adapter
        self.emitter = emitter
        self.store = store or UpdateStagingStore(
            emitter=emitter,
            session_id=self.session_id,
            review_threshold=review_threshold,
        )
        self.clients = list(clients) if clients is not None else list(DEFAULT_CLIENTS)
        self.selected_client = self.clients[0] if self.clients else "Unassigned"
        if selected_client and not self.select_client(selected_client):
            logger.warning(
                "Default client %r is not on the caseload, using %s",
                selected_client, self.selected_client,
            )
        self.recognition_threshold = recognition_threshold
        self.review_threshold = review_threshold
        self.last_command: VoiceCommand | None = None
        self.last_control: str | None = None

        self.adapter.subscribe(self.handle_transcript)

    @property
    def voice_available(self) -> bool:
        """False means the caller should hide voice affordances."""
        return self.adapter.has_support

    @property
    def low_confidence_warning(self) -> bool:
        return self.last_command is not None and self.last_command.needs_review(self.review_threshold)

    def select_client(self, client_name: str) -> bool:
        if self.clients and client_name not in self.clients:
            return False
        self.selected_client = client_name
        return True

    def handle_transcript(self, event: TranscriptEvent) -> VoiceCommand | None:
        """Interpret a final, confident transcript and stage the result.

        Returns:
            The interpreted command, or None if the event was not interpreted
            (interim, low confidence, or a control phrase).
        """
        if not event.is_final or not event.text.strip():
            return None
        if event.confidence <= self.recognition_threshold:
            logger.debug("Ignoring transcript below recognition threshold (%.2f)", event.confidence)
            return None

        # Store log lines carry this session's id
        with bound_contextvars(session_id=self.session_id):
            return self._interpret_final(event)

    def _interpret_final(self, event: TranscriptEvent) -> VoiceCommand | None:
        control = match_control_phrase(event.text)
        if control:
            self.apply_control(control)
            return None

        command = interpret(event.text, event.confidence)
        self.last_command = command

        if command.is_known:
            self.store.stage_command(command, self.selected_client)
            if command.needs_review(self.review_threshold):
                logger.info("Low confidence %s command staged for review", command.type.value)
        else:
            logger.info("Unrecognized voice command: %r", event.text)

        return command

    def apply_control(self, action: str) -> None:
        """Run a spoken control action against the staged updates."""
        self.last_control = action
        updates = self.store.updates

        if action == "confirm_last" and updates:
            self.store.confirm(updates[0].id)
        elif action == "save_last" and updates:
            self.store.save(updates[0].id)
        elif action == "save_all":
            self.store.save_all()
        elif action == "clear_all":
            self.clear()

    def start_listening(self) -> None:
        self.adapter.start()

    def stop_listening(self) -> None:
        self.adapter.stop()

    def clear(self) -> None:
        """Full session reset: updates, transcript, and last command."""
        self.store.clear()
        self.adapter.reset_transcript()
        self.last_command = None

    def snapshot(self) -> dict[str, Any]:
        """Current session state for the UI."""
        return {
            "session_id": self.session_id,
            "voice_available": self.voice_available,
            "is_listening": self.adapter.is_listening,
            "transcript": self.adapter.transcript,
            "confidence": self.adapter.confidence,
            "selected_client": self.selected_client,
            "clients": self.clients,
            "last_command": self.last_command.to_dict() if self.last_command else None,
            "low_confidence_warning": self.low_confidence_warning,
            "updates": [u.to_dict() for u in self.store.updates],
            "pending_review": [u.id for u in self.store.pending_review()],
            "last_saved": self.store.last_saved.isoformat() if self.store.last_saved else None,
        }


def _build_repository(storage_config: dict[str, Any], db_path: Path | None) -> CarePlanRepository:
    backend = storage_config.get("backend", "memory")
    if backend == "sqlite":
        return SqliteCarePlanRepository(db_path)
    if backend != "memory":
        logger.warning("Unknown care plan storage backend %r, using memory", backend)
    return InMemoryCarePlanRepository()


def create_session(
    user_id: str = "default",
    session_id: str | None = None,
    recognition_supported: bool = True,
    synthesis_supported: bool = True,
    config: dict[str, Any] | None = None,
    preferences: dict[str, Any] | None = None,
    repository: CarePlanRepository | None = None,
    db_path: Path | None = None,
) -> VoiceCarePlanSession:
    """Create a session wired with browser recognition and synthesis.

    Args:
        user_id: Caseworker whose preferences apply
        session_id: Explicit session id (generated if omitted)
        recognition_supported: Browser capability check for SpeechRecognition
        synthesis_supported: Browser capability check for speechSynthesis
        config: Voice config override (defaults to args/voice.yaml)
        preferences: Preferences override (defaults to the stored preferences)
        repository: Care plan repository override
        db_path: Database override for preferences and sqlite storage
    """
    config = config if config is not None else load_config()
    voice_config = config.get("voice", {})
    prefs = preferences if preferences is not None else get_preferences(user_id, db_path)["data"]

    language = prefs.get("language", "en-US")
    engine = WebSpeechRelayEngine(
        WebSpeechConfig(language=language),
        supported=recognition_supported and prefs.get("enabled", True),
    )
    adapter = SpeechCaptureAdapter(engine, language=language)

    emitter = SpokenFeedbackEmitter(
        BrowserSpeechSynthesizer(supported=synthesis_supported),
        enabled=prefs.get("voice_feedback_enabled", True),
        rate=prefs.get("feedback_rate", 0.9),
        pitch=prefs.get("feedback_pitch", 1.0),
        volume=prefs.get("feedback_volume", 0.8),
    )

    session_id = session_id or str(uuid.uuid4())
    review_threshold = prefs.get("review_threshold", DEFAULT_REVIEW_THRESHOLD)
    store = UpdateStagingStore(
        emitter=emitter,
        repository=repository or _build_repository(config.get("storage", {}), db_path),
        session_id=session_id,
        review_threshold=review_threshold,
    )

    clients = voice_config.get("clients", DEFAULT_CLIENTS)
    return VoiceCarePlanSession(
        adapter=adapter,
        emitter=emitter,
        store=store,
        clients=clients,
        selected_client=prefs.get("default_client"),
        recognition_threshold=prefs.get("recognition_threshold", DEFAULT_RECOGNITION_THRESHOLD),
        review_threshold=review_threshold,
        session_id=session_id,
    )


class SessionRegistry:
    """One session per session id. Sessions are never shared."""

    def __init__(self):
        self._sessions: dict[str, VoiceCarePlanSession] = {}

    def get(self, session_id: str) -> VoiceCarePlanSession | None:
        return self._sessions.get(session_id)

    def get_or_create(self, session_id: str, user_id: str = "default", **kwargs: Any) -> VoiceCarePlanSession:
        session = self._sessions.get(session_id)
        if session is None:
            session = create_session(user_id=user_id, session_id=session_id, **kwargs)
            self._sessions[session_id] = session
            logger.info("Created voice session %s for %s", session_id, user_id)
        return session

    def remove(self, session_id: str) -> bool:
        session = self._sessions.pop(session_id, None)
        if session is None:
            return False
        session.stop_listening()
        return True

    def clear(self) -> None:
        self._sessions.clear()

    def __len__(self) -> int:
        return len(self._sessions)
