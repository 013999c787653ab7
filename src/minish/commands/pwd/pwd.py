"""Pwd command implementation.

Usage: pwd

Print the name of the current working directory.
"""

import os

from ...types import CommandContext


class PwdCommand:
    """The pwd command."""

    name = "pwd"

    async def execute(self, args: list[str], ctx: CommandContext) -> int:
        """Execute the pwd command."""
        try:
            cwd = os.getcwd()
        except OSError as e:
            await ctx.err(f"pwd: {e.strerror or e}\n")
            return 1
        await ctx.out(f"{cwd}\n")
        return 0
