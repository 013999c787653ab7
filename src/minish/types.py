"""Shared types for minish."""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Protocol

from .streams import ByteSink, ByteSource


@dataclass
class CommandContext:
    """Everything a builtin command gets to work with."""

    env: dict[str, str]
    """Merged view of the shell variables, local values winning."""

    stdin: ByteSource
    stdout: ByteSink
    stderr: ByteSink

    async def out(self, text: str) -> None:
        """Write text to stdout."""
        await self.stdout.write(text.encode("utf-8"))

    async def err(self, text: str) -> None:
        """Write text to stderr."""
        await self.stderr.write(text.encode("utf-8"))


class Command(Protocol):
    """A builtin command.

    Builtins expose a ``name`` and an async ``execute`` that returns the
    command's exit code.
    """

    name: str

    async def execute(self, args: list[str], ctx: CommandContext) -> int:
        ...


@dataclass
class ExecResult:
    """Captured outcome of running one line through :meth:`Shell.exec`."""

    stdout: str = ""
    stderr: str = ""
    exit_code: int = 0
    env: dict[str, str] = field(default_factory=dict)
    """Local variables after the line ran."""
