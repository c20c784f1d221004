"""carevoice - Voice-driven care plan updates for caseworkers.

Packages:
    voice/: Speech capture, command interpretation, update staging, feedback
    dashboard/: FastAPI backend exposing the voice session to the browser
    logging_config.py: structlog setup shared by every entry point
"""

__version__ = "0.1.0"
