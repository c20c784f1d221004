"""
Structured logging for the CareVoice API and voice pipeline.

Voice modules log through ``logging.getLogger(__name__)``; structlog renders
every record (JSON with CAREVOICE_LOG_FORMAT=json, console otherwise) and
merges request-scoped context into it. The API binds ``session_id`` per
request and the session binds it while handling a transcript, so lines such
as "Staged medication update" can be tied back to one browser tab without
threading the id through the parser and store.

Usage:
    from carevoice.logging_config import setup_logging
    setup_logging()
"""

from __future__ import annotations

import logging
import os
import sys

import structlog

# HTTP clients and the upload parser log every request at INFO/DEBUG
QUIET_LOGGERS = ("httpx", "httpcore", "openai", "multipart", "uvicorn.access")


def setup_logging(level: str | None = None, json_output: bool | None = None) -> None:
    """Route all stdlib logging through structlog.

    Args:
        level: Root level name; defaults to CAREVOICE_LOG_LEVEL or INFO
        json_output: JSON lines instead of console rendering; defaults to
            CAREVOICE_LOG_FORMAT=json
    """
    if level is None:
        level = os.environ.get("CAREVOICE_LOG_LEVEL", "INFO")

    if json_output is None:
        json_output = os.environ.get("CAREVOICE_LOG_FORMAT", "").lower() == "json"

    numeric_level = getattr(logging, level.upper(), logging.INFO)

    shared_processors: list[structlog.types.Processor] = [
        structlog.contextvars.merge_contextvars,
        structlog.stdlib.add_log_level,
        structlog.stdlib.add_logger_name,
        structlog.processors.TimeStamper(fmt="iso"),
        structlog.processors.StackInfoRenderer(),
        structlog.processors.UnicodeDecoder(),
    ]

    if json_output:
        renderer: structlog.types.Processor = structlog.processors.JSONRenderer()
    else:
        renderer = structlog.dev.ConsoleRenderer()

    structlog.configure(
        processors=[
            *shared_processors,
            structlog.stdlib.ProcessorFormatter.wrap_for_formatter,
        ],
        logger_factory=structlog.stdlib.LoggerFactory(),
        wrapper_class=structlog.stdlib.BoundLogger,
        cache_logger_on_first_use=True,
    )

    # foreign_pre_chain gives stdlib records the same level/name/timestamp keys
    formatter = structlog.stdlib.ProcessorFormatter(
        foreign_pre_chain=shared_processors,
        processors=[
            structlog.stdlib.ProcessorFormatter.remove_processors_meta,
            renderer,
        ],
    )

    handler = logging.StreamHandler(sys.stderr)
    handler.setFormatter(formatter)

    root = logging.getLogger()
    root.handlers.clear()
    root.addHandler(handler)
    root.setLevel(numeric_level)

    for name in QUIET_LOGGERS:
        logging.getLogger(name).setLevel(max(numeric_level, logging.WARNING))
