"""Exit command implementation.

Usage: exit [N]

Terminate the shell with status N reduced modulo 256 (default 0). A
non-numeric N is reported and the shell exits with status 2.
"""

import re

from ...errors import ExitError
from ...types import CommandContext

_INTEGER_RE = re.compile(r"[+-]?[0-9]+")


class ExitCommand:
    """The exit command."""

    name = "exit"

    async def execute(self, args: list[str], ctx: CommandContext) -> int:
        """Execute the exit command. Never returns normally."""
        if not args:
            raise ExitError(0)

        if not _INTEGER_RE.fullmatch(args[0]):
            await ctx.err(f"exit: {args[0]}: numeric argument required\n")
            raise ExitError(2)

        # Python's modulo already maps negative codes into 0..255
        raise ExitError(int(args[0]) % 256)
