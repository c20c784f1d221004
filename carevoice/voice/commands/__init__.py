"""Voice navigation commands."""

from carevoice.voice.commands.navigation_commands import (
    NavigationCommand,
    commands_for_role,
    execute_navigation_command,
    match_navigation_command,
)

__all__ = [
    "NavigationCommand",
    "commands_for_role",
    "execute_navigation_command",
    "match_navigation_command",
]
