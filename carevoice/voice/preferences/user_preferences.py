"""Per-user voice settings management.

Handles CRUD operations on the voice_preferences table.
"""

from __future__ import annotations

from pathlib import Path
from typing import Any

from carevoice.voice import get_connection

# Default preferences for new users
DEFAULT_PREFERENCES = {
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

BOOLEAN_FIELDS = ("enabled", "voice_feedback_enabled")

THRESHOLD_FIELDS = ("recognition_threshold", "review_threshold", "feedback_volume")


def get_preferences(user_id: str, db_path: Path | None = None) -> dict[str, Any]:
    """Get voice preferences for a user, creating defaults if needed."""
    conn = get_connection(db_path)
    row = conn.execute(
        "SELECT * FROM voice_preferences WHERE user_id = ?", (user_id,)
    ).fetchone()

    if row:
        prefs = dict(row)
        # Convert sqlite booleans
        for key in BOOLEAN_FIELDS:
            if key in prefs:
                prefs[key] = bool(prefs[key])
        prefs.pop("updated_at", None)
        conn.close()
        return {"success": True, "data": prefs}

    # Create defaults
    conn.execute(
        "INSERT INTO voice_preferences (user_id) VALUES (?)",
        (user_id,),
    )
    conn.commit()
    conn.close()

    return {"success": True, "data": {**DEFAULT_PREFERENCES, "user_id": user_id}}


def update_preferences(
    user_id: str,
    updates: dict[str, Any],
    db_path: Path | None = None,
) -> dict[str, Any]:
    """Update voice preferences for a user."""
    valid_fields = set(DEFAULT_PREFERENCES.keys())
    invalid = set(updates.keys()) - valid_fields
    if invalid:
        return {"success": False, "error": f"Invalid fields: {sorted(invalid)}"}

    for key in THRESHOLD_FIELDS:
        if key in updates and not 0.0 <= float(updates[key]) <= 1.0:
            return {"success": False, "error": f"{key} must be between 0 and 1"}

    if not updates:
        return {"success": False, "error": "No valid fields to update"}

    # Ensure user has preferences
    get_preferences(user_id, db_path)

    set_clauses = []
    values = []
    for key, value in updates.items():
        set_clauses.append(f"{key} = ?")
        values.append(value)

    set_clauses.append("updated_at = CURRENT_TIMESTAMP")
    values.append(user_id)

    conn = get_connection(db_path)
    conn.execute(
        f"UPDATE voice_preferences SET {', '.join(set_clauses)} WHERE user_id = ?",
        values,
    )
    conn.commit()
    conn.close()

    return get_preferences(user_id, db_path)
