"""Builtin command registry."""

from ..types import Command
from .cat import CatCommand
from .cd import CdCommand
from .echo import EchoCommand
from .exit import ExitCommand
from .grep import GrepCommand
from .ls import LsCommand
from .pwd import PwdCommand
from .wc import WcCommand

BUILTIN_COMMANDS: tuple[type, ...] = (
    CatCommand,
    CdCommand,
    EchoCommand,
    ExitCommand,
    GrepCommand,
    LsCommand,
    PwdCommand,
    WcCommand,
)

COMMAND_NAMES: tuple[str, ...] = tuple(cls.name for cls in BUILTIN_COMMANDS)


def create_command_registry() -> dict[str, Command]:
    """Create a name -> command map holding one instance of every builtin."""
    registry: dict[str, Command] = {}
    for cls in BUILTIN_COMMANDS:
        command = cls()
        registry[command.name] = command
    return registry
