"""
CareVoice Dashboard Backend - FastAPI Application

REST API behind the caseworker dashboard's voice care plan updater.

Usage:
    uvicorn carevoice.dashboard.backend.main:app --host 127.0.0.1 --port 8080 --reload

    Or run directly:
    python -m carevoice.dashboard.backend.main
"""

import logging
from contextlib import asynccontextmanager
from datetime import datetime

# Load .env file before anything else
from dotenv import load_dotenv
load_dotenv()

import structlog
from fastapi import FastAPI, HTTPException, Request, status
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse

from carevoice import __version__
from carevoice.dashboard.backend.models import ErrorResponse, HealthCheck
from carevoice.dashboard.backend.routes import api_router
from carevoice.dashboard.backend.routes.voice import get_registry
from carevoice.logging_config import setup_logging
from carevoice.voice import get_connection, load_config
from carevoice.voice.feedback.tts_generator import get_tts_generator
from carevoice.voice.recognition.whisper_adapter import get_whisper_transcriber


setup_logging()
logger = logging.getLogger(__name__)

# Global config
config = load_config()
dashboard_config = config.get("dashboard", {})


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Application lifespan events."""
    logger.info("Starting CareVoice Dashboard Backend...")

    storage = config.get("storage", {}).get("backend", "memory")
    logger.info(f"Care plan storage backend: {storage}")

    yield

    # Shutdown
    registry = get_registry()
    logger.info(f"Shutting down, dropping {len(registry)} voice sessions")
    registry.clear()


# Create FastAPI application
app = FastAPI(
    title="CareVoice Dashboard API",
    description="REST API for voice-driven care plan updates",
    version=__version__,
    docs_url="/api/docs",
    redoc_url="/api/redoc",
    openapi_url="/api/openapi.json",
    lifespan=lifespan,
)

# Configure CORS
allowed_origins = dashboard_config.get(
    "cors_origins", ["http://localhost:3000", "http://127.0.0.1:3000"]
)

app.add_middleware(
    CORSMiddleware,
    allow_origins=allowed_origins,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)


@app.middleware("http")
async def scope_log_context(request: Request, call_next):
    """Start every request with an empty log context; routes bind session_id."""
    structlog.contextvars.clear_contextvars()
    structlog.contextvars.bind_contextvars(method=request.method, path=request.url.path)
    return await call_next(request)


@app.get("/api/health", response_model=HealthCheck, tags=["health"])
async def health_check():
    """
    Check system health status.

    The database backs preferences (and updates with sqlite storage); the
    cloud speech services are optional and reported as enabled/disabled.
    """
    services = {}

    try:
        conn = get_connection()
        conn.execute("SELECT 1")
        conn.close()
        services["database"] = "healthy"
    except Exception as e:
        logger.error(f"Database health check failed: {e}")
        services["database"] = "unhealthy"

    transcriber = get_whisper_transcriber(config.get("transcription", {}))
    services["transcription"] = "enabled" if transcriber.is_available else "disabled"
    services["tts"] = "enabled" if get_tts_generator().is_enabled() else "disabled"
    services["sessions"] = str(len(get_registry()))

    overall = "healthy" if services["database"] == "healthy" else "degraded"

    return HealthCheck(
        status=overall,
        version=__version__,
        timestamp=datetime.now(),
        services=services,
    )


# =============================================================================
# Error Handlers
# =============================================================================


@app.exception_handler(HTTPException)
async def http_exception_handler(request: Request, exc: HTTPException):
    """Handle HTTP exceptions with consistent format."""
    return JSONResponse(
        status_code=exc.status_code,
        content=ErrorResponse(error=str(exc.detail), code=f"HTTP_{exc.status_code}").model_dump(),
    )


@app.exception_handler(Exception)
async def general_exception_handler(request: Request, exc: Exception):
    """Handle unexpected exceptions."""
    logger.error(f"Unhandled exception: {exc}", exc_info=True)
    return JSONResponse(
        status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
        content=ErrorResponse(error="Internal server error", code="INTERNAL_ERROR").model_dump(),
    )


# =============================================================================
# Include Routers
# =============================================================================

app.include_router(api_router)


# =============================================================================
# Main Entry Point
# =============================================================================

if __name__ == "__main__":
    import uvicorn

    host = dashboard_config.get("host", "127.0.0.1")
    port = dashboard_config.get("api_port", 8080)

    uvicorn.run(
        "carevoice.dashboard.backend.main:app", host=host, port=port, reload=True, log_level="info"
    )
