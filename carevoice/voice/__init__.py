"""Voice Care Plan Updates - Hands-free care plan capture for caseworkers

Philosophy:
    Caseworkers are often mid-visit with their hands full. Voice lets them
    record what just happened ("gave aspirin at 2 PM") before it is forgotten,
    while a human still confirms every update before it reaches the care plan.

Components:
    models.py: Data models (CommandType, UpdateStatus, dataclasses)
    recognition/: Speech capture adapter, Web Speech relay, Whisper adapter
    parser/: Intent classification and parameter extraction
    staging/: Staged update lifecycle and the care plan repository seam
    feedback/: Spoken confirmations (browser synthesis, cloud TTS)
    commands/: Role-aware navigation commands
    preferences/: Per-user voice settings
    session.py: Wires the pieces together for one caseworker session

Usage:
    from carevoice.voice.parser.intent_parser import interpret
    from carevoice.voice.session import create_session

    command = interpret("gave aspirin at 2 PM", 0.9)
    session = create_session(user_id="caseworker_1")
"""

import sqlite3
from pathlib import Path
from typing import Any

import yaml

# Path constants
PROJECT_ROOT = Path(__file__).parent.parent.parent
DB_PATH = PROJECT_ROOT / "data" / "carevoice.db"
CONFIG_PATH = PROJECT_ROOT / "args" / "voice.yaml"

# Only final transcripts above this confidence are interpreted
DEFAULT_RECOGNITION_THRESHOLD = 0.7

# Commands below this confidence are staged with a review warning
DEFAULT_REVIEW_THRESHOLD = 0.8


def load_config() -> dict[str, Any]:
    """Load voice configuration from YAML."""
    if CONFIG_PATH.exists():
        with open(CONFIG_PATH) as f:
            return yaml.safe_load(f) or {}
    return {}


def get_connection(db_path: Path | None = None) -> sqlite3.Connection:
    """Get database connection, creating tables on first use."""
    path = Path(db_path) if db_path else DB_PATH
    path.parent.mkdir(parents=True, exist_ok=True)
    conn = sqlite3.connect(str(path))
    conn.row_factory = sqlite3.Row
    conn.execute("PRAGMA journal_mode=WAL")
    _ensure_tables(conn)
    return conn


def _ensure_tables(conn: sqlite3.Connection) -> None:
    """Create voice tables if they don't exist."""
    conn.executescript("""
        CREATE TABLE IF NOT EXISTS care_plan_updates (
            id TEXT PRIMARY KEY,
            session_id TEXT,
            client_name TEXT NOT NULL,
            update_type TEXT NOT NULL,
            content TEXT NOT NULL,
            confidence REAL,
            status TEXT DEFAULT 'pending',
            created_at DATETIME DEFAULT CURRENT_TIMESTAMP,
            updated_at DATETIME DEFAULT CURRENT_TIMESTAMP
        );

        CREATE TABLE IF NOT EXISTS voice_preferences (
            user_id TEXT PRIMARY KEY,
            enabled BOOLEAN DEFAULT TRUE,
            voice_feedback_enabled BOOLEAN DEFAULT TRUE,
            language TEXT DEFAULT 'en-US',
            recognition_threshold REAL DEFAULT 0.7,
            review_threshold REAL DEFAULT 0.8,
            feedback_rate REAL DEFAULT 0.9,
            feedback_pitch REAL DEFAULT 1.0,
            feedback_volume REAL DEFAULT 0.8,
            default_client TEXT,
            updated_at DATETIME DEFAULT CURRENT_TIMESTAMP
        );

        CREATE INDEX IF NOT EXISTS idx_care_plan_updates_client
            ON care_plan_updates(client_name, created_at);
        CREATE INDEX IF NOT EXISTS idx_care_plan_updates_status
            ON care_plan_updates(status);
    """)
    conn.commit()


__all__ = [
    "CONFIG_PATH",
    "DB_PATH",
    "DEFAULT_RECOGNITION_THRESHOLD",
    "DEFAULT_REVIEW_THRESHOLD",
    "PROJECT_ROOT",
    "get_connection",
    "load_config",
]
