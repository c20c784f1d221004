"""Voice preferences management."""

from carevoice.voice.preferences.user_preferences import (
    DEFAULT_PREFERENCES,
    get_preferences,
    update_preferences,
)

__all__ = [
    "DEFAULT_PREFERENCES",
    "get_preferences",
    "update_preferences",
]
