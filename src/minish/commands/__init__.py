"""Builtin commands for minish."""

from .registry import BUILTIN_COMMANDS, COMMAND_NAMES, create_command_registry

__all__ = [
    "BUILTIN_COMMANDS",
    "COMMAND_NAMES",
    "create_command_registry",
]
