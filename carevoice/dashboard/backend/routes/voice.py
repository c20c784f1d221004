"""
Voice Care Plan API Routes

Provides endpoints for the voice care plan updater:
- POST   /api/voice/session                 - Create a session (browser capability flags)
- DELETE /api/voice/session                 - End a session and drop its staged updates
- GET    /api/voice/status                  - Session state and Web Speech config
- POST   /api/voice/listen/start            - Start listening
- POST   /api/voice/listen/stop             - Stop listening
- POST   /api/voice/results                 - Browser recognition results batch
- POST   /api/voice/error                   - Browser recognition error
- POST   /api/voice/end                     - Browser recognition session ended
- POST   /api/voice/transcribe              - Server-side audio transcription
- POST   /api/voice/interpret               - Interpret a transcript (stateless)
- GET    /api/voice/updates                 - List staged updates
- POST   /api/voice/updates/{id}/confirm    - Confirm an update
- POST   /api/voice/updates/{id}/save       - Save an update
- POST   /api/voice/updates/save-all        - Save every staged update
- DELETE /api/voice/updates                 - Clear all (full session reset)
- PUT    /api/voice/client                  - Select the active client
- GET    /api/voice/feedback                - Drain queued spoken feedback
- POST   /api/voice/tts                     - Cloud text-to-speech
- GET    /api/voice/preferences             - Get user voice preferences
- PUT    /api/voice/preferences             - Update voice preferences
- GET    /api/voice/commands                - List available voice commands
- POST   /api/voice/navigate                - Role-aware navigation command
"""

import base64
import logging
import uuid
from typing import Any, Optional

from fastapi import APIRouter, File, HTTPException, Query, UploadFile
from pydantic import BaseModel, Field
from structlog.contextvars import bind_contextvars

from carevoice.voice import load_config
from carevoice.voice.commands.navigation_commands import (
    commands_for_role,
    execute_navigation_command,
)
from carevoice.voice.feedback.emitter import BrowserSpeechSynthesizer, SpokenFeedbackEmitter
from carevoice.voice.feedback.tts_generator import get_tts_generator
from carevoice.voice.parser.intent_parser import AVAILABLE_COMMANDS, interpret
from carevoice.voice.parser.parameter_extractor import format_command_content
from carevoice.voice.preferences.user_preferences import (
    get_preferences,
    update_preferences,
)
from carevoice.voice.recognition.web_speech_config import process_web_speech_result
from carevoice.voice.recognition.whisper_adapter import (
    MAX_AUDIO_BYTES,
    get_whisper_transcriber,
)
from carevoice.voice.session import SessionRegistry, VoiceCarePlanSession

logger = logging.getLogger(__name__)

router = APIRouter()

# Shared session registry
_registry: SessionRegistry | None = None


def get_registry() -> SessionRegistry:
    global _registry
    if _registry is None:
        _registry = SessionRegistry()
    return _registry


def _get_session(session_id: str) -> VoiceCarePlanSession:
    bind_contextvars(session_id=session_id)
    session = get_registry().get(session_id)
    if session is None:
        raise HTTPException(status_code=404, detail=f"Voice session not found: {session_id}")
    return session


def _drain_feedback(session: VoiceCarePlanSession) -> list[dict[str, Any]]:
    synthesizer = session.emitter.synthesizer
    if isinstance(synthesizer, BrowserSpeechSynthesizer):
        return [u.to_dict() for u in synthesizer.drain()]
    return []


def _session_response(session: VoiceCarePlanSession, **extra: Any) -> dict[str, Any]:
    return {
        "success": True,
        **extra,
        "session": session.snapshot(),
        "feedback": _drain_feedback(session),
    }


# =============================================================================
# Request Models
# =============================================================================


class SessionCreateRequest(BaseModel):
    """Browser capability flags sent when the voice panel mounts."""

    session_id: Optional[str] = None
    recognition_supported: bool = True
    synthesis_supported: bool = True


class RecognitionResultItem(BaseModel):
    transcript: str = Field(default="", max_length=2000)
    confidence: float = Field(default=0.0, ge=0.0, le=1.0)
    isFinal: bool = False


class RecognitionResultsRequest(BaseModel):
    """One SpeechRecognition onresult event."""

    resultIndex: int = Field(default=0, ge=0)
    results: list[RecognitionResultItem] = Field(default_factory=list)


class RecognitionErrorRequest(BaseModel):
    error: str = Field(..., min_length=1, max_length=200)
    message: str = Field(default="")


class InterpretRequest(BaseModel):
    transcript: str = Field(..., max_length=2000)
    confidence: float = Field(default=0.0, ge=0.0, le=1.0)


class ClientSelectRequest(BaseModel):
    client_name: str = Field(..., min_length=1, max_length=200)


class NavigateRequest(BaseModel):
    transcript: str = Field(..., max_length=2000)
    role: str = Field(default="caseworker")


class TTSRequest(BaseModel):
    text: str = Field(..., min_length=1, max_length=4096)
    voice: Optional[str] = None
    speed: Optional[float] = Field(default=None, ge=0.25, le=4.0)
    format: Optional[str] = None


class VoicePreferencesUpdate(BaseModel):
    enabled: Optional[bool] = None
    voice_feedback_enabled: Optional[bool] = None
    language: Optional[str] = None
    recognition_threshold: Optional[float] = Field(default=None, ge=0.0, le=1.0)
    review_threshold: Optional[float] = Field(default=None, ge=0.0, le=1.0)
    feedback_rate: Optional[float] = Field(default=None, gt=0.0, le=10.0)
    feedback_pitch: Optional[float] = Field(default=None, ge=0.0, le=2.0)
    feedback_volume: Optional[float] = Field(default=None, ge=0.0, le=1.0)
    default_client: Optional[str] = None


# =============================================================================
# Session & Recognition Endpoints
# =============================================================================


@router.post("/session")
async def create_voice_session(
    request: SessionCreateRequest,
    user_id: str = Query(default="default"),
) -> dict[str, Any]:
    """Create (or return) a voice session for this browser tab."""
    session = get_registry().get_or_create(
        request.session_id or str(uuid.uuid4()),
        user_id=user_id,
        recognition_supported=request.recognition_supported,
        synthesis_supported=request.synthesis_supported,
    )
    bind_contextvars(session_id=session.session_id)
    return _session_response(session)


@router.delete("/session")
async def end_voice_session(session_id: str = Query(...)) -> dict[str, Any]:
    """Drop a session when its tab closes; unsaved staged updates are discarded."""
    bind_contextvars(session_id=session_id)
    if not get_registry().remove(session_id):
        raise HTTPException(status_code=404, detail=f"Voice session not found: {session_id}")
    logger.info("Voice session ended")
    return {"success": True, "removed": session_id}


@router.get("/status")
async def get_voice_status(session_id: str = Query(...)) -> dict[str, Any]:
    """Session state plus the Web Speech config for the browser."""
    session = _get_session(session_id)
    engine = session.adapter.engine
    transcriber = get_whisper_transcriber(load_config().get("transcription", {}))

    sources = ["web_speech"] if session.voice_available else []
    if transcriber.is_available:
        sources.append(transcriber.name)

    return {
        "success": True,
        "session": session.snapshot(),
        "web_speech_config": engine.config.to_dict() if hasattr(engine, "config") else {},
        "listening_requested": getattr(engine, "active", False),
        "available_sources": sources,
    }


@router.post("/listen/start")
async def start_listening(session_id: str = Query(...)) -> dict[str, Any]:
    session = _get_session(session_id)
    session.start_listening()
    return _session_response(session)


@router.post("/listen/stop")
async def stop_listening(session_id: str = Query(...)) -> dict[str, Any]:
    session = _get_session(session_id)
    session.stop_listening()
    return _session_response(session)


@router.post("/results")
async def submit_recognition_results(
    request: RecognitionResultsRequest,
    session_id: str = Query(...),
) -> dict[str, Any]:
    """Receive a browser recognition batch and run it through the pipeline."""
    session = _get_session(session_id)
    results, result_index = process_web_speech_result(request.model_dump())
    event = session.adapter.handle_results(results, result_index)
    return _session_response(session, event=event.to_dict() if event else None)


@router.post("/error")
async def report_recognition_error(
    request: RecognitionErrorRequest,
    session_id: str = Query(...),
) -> dict[str, Any]:
    session = _get_session(session_id)
    session.adapter.handle_error(request.error)
    return _session_response(session)


@router.post("/end")
async def report_recognition_end(session_id: str = Query(...)) -> dict[str, Any]:
    session = _get_session(session_id)
    session.adapter.handle_end()
    return _session_response(session)


@router.post("/transcribe")
async def transcribe_audio(
    audio: UploadFile = File(...),
    session_id: str = Query(...),
) -> dict[str, Any]:
    """Transcribe an uploaded clip and feed it to the session."""
    session = _get_session(session_id)
    audio_bytes = await audio.read()

    if len(audio_bytes) > MAX_AUDIO_BYTES:
        logger.warning(f"Rejected {len(audio_bytes)} byte audio upload for session {session_id}")
        raise HTTPException(status_code=413, detail="Audio file too large (max 25MB)")

    transcriber = get_whisper_transcriber(load_config().get("transcription", {}))
    if not transcriber.is_available:
        raise HTTPException(status_code=503, detail="Server-side transcription is not configured")

    event = await transcriber.transcribe(
        audio_bytes,
        filename=audio.filename or "recording.webm",
        mime_type=audio.content_type or "audio/webm",
        language=session.adapter.language,
    )
    if event.text:
        session.adapter.deliver(event)

    return _session_response(session, event=event.to_dict())


@router.post("/interpret")
async def interpret_transcript(request: InterpretRequest) -> dict[str, Any]:
    """Interpret a transcript without staging anything."""
    command = interpret(request.transcript, request.confidence)
    return {
        "success": True,
        "command": command.to_dict(),
        "content": format_command_content(command) if command.is_known else None,
        "needs_review": command.needs_review(),
    }


# =============================================================================
# Staged Update Endpoints
# =============================================================================


@router.get("/updates")
async def list_updates(session_id: str = Query(...)) -> dict[str, Any]:
    session = _get_session(session_id)
    updates = session.store.updates
    return {
        "success": True,
        "updates": [u.to_dict() for u in updates],
        "total": len(updates),
    }


@router.post("/updates/save-all")
async def save_all_updates(session_id: str = Query(...)) -> dict[str, Any]:
    session = _get_session(session_id)
    changed = session.store.save_all()
    return _session_response(session, changed=changed)


@router.post("/updates/{update_id}/confirm")
async def confirm_update(update_id: str, session_id: str = Query(...)) -> dict[str, Any]:
    """Confirm an update. Unknown ids are not an error."""
    session = _get_session(session_id)
    changed = session.store.confirm(update_id)
    return _session_response(session, changed=changed)


@router.post("/updates/{update_id}/save")
async def save_update(update_id: str, session_id: str = Query(...)) -> dict[str, Any]:
    """Save an update. Unknown ids are not an error."""
    session = _get_session(session_id)
    changed = session.store.save(update_id)
    return _session_response(session, changed=changed)


@router.delete("/updates")
async def clear_updates(session_id: str = Query(...)) -> dict[str, Any]:
    """Clear all staged updates, the transcript, and the last command."""
    session = _get_session(session_id)
    session.clear()
    return _session_response(session)


@router.put("/client")
async def select_client(
    request: ClientSelectRequest,
    session_id: str = Query(...),
) -> dict[str, Any]:
    session = _get_session(session_id)
    if not session.select_client(request.client_name):
        raise HTTPException(status_code=400, detail=f"Unknown client: {request.client_name}")
    return _session_response(session)


@router.get("/feedback")
async def drain_feedback(session_id: str = Query(...)) -> dict[str, Any]:
    """Return queued utterances for the browser's speechSynthesis."""
    session = _get_session(session_id)
    return {"success": True, "feedback": _drain_feedback(session)}


@router.post("/tts")
async def generate_tts(request: TTSRequest) -> dict[str, Any]:
    """Generate spoken feedback audio through cloud TTS.

    Falls back to telling the browser to use its own speech synthesis.
    """
    generator = get_tts_generator()

    if not generator.is_enabled():
        return {
            "success": True,
            "use_browser_tts": True,
            "text": request.text,
            "message": "Cloud TTS disabled. Use browser speech synthesis.",
        }

    result = await generator.generate(
        text=request.text,
        voice=request.voice,
        format=request.format,
        speed=request.speed,
    )

    if not result.success:
        return {
            "success": False,
            "error": result.error,
            "use_browser_tts": True,
            "text": request.text,
        }

    audio_b64 = base64.b64encode(result.audio_bytes).decode() if result.audio_bytes else ""

    return {
        "success": True,
        "audio_base64": audio_b64,
        "format": result.format,
        "duration_seconds": result.duration_seconds,
        "cost_usd": result.cost_usd,
    }


# =============================================================================
# Preferences & Commands
# =============================================================================


@router.get("/preferences")
async def get_voice_preferences(
    user_id: str = Query(default="default"),
) -> dict[str, Any]:
    """Get voice preferences for the current user."""
    result = get_preferences(user_id)
    if not result.get("success"):
        raise HTTPException(status_code=500, detail="Failed to load preferences")
    return result


@router.put("/preferences")
async def update_voice_preferences(
    request: VoicePreferencesUpdate,
    user_id: str = Query(default="default"),
) -> dict[str, Any]:
    """Update voice preferences."""
    updates = {k: v for k, v in request.model_dump().items() if v is not None}
    if not updates:
        raise HTTPException(status_code=400, detail="No fields to update")

    result = update_preferences(user_id, updates)
    if not result.get("success"):
        raise HTTPException(
            status_code=400,
            detail=result.get("error", "Update failed"),
        )
    return result


@router.get("/commands")
async def list_voice_commands(role: str = Query(default="caseworker")) -> dict[str, Any]:
    """List care plan voice commands and the navigation phrases for a role."""
    return {
        "success": True,
        "data": {
            "commands": AVAILABLE_COMMANDS,
            "total": sum(len(v) for v in AVAILABLE_COMMANDS.values()),
            "navigation": [phrase for phrase, _action, _data in commands_for_role(role)],
        },
    }


@router.post("/navigate")
async def navigate(
    request: NavigateRequest,
    session_id: Optional[str] = Query(default=None),
) -> dict[str, Any]:
    """Match a role-aware navigation command."""
    emitter: SpokenFeedbackEmitter | None = None
    session = get_registry().get(session_id) if session_id else None
    if session is not None:
        emitter = session.emitter

    command = execute_navigation_command(request.transcript, request.role, emitter)
    response: dict[str, Any] = {
        "success": command is not None,
        "command": command.to_dict() if command else None,
    }
    if session is not None:
        response["feedback"] = _drain_feedback(session)
    return response
