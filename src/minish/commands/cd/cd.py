"""Cd command implementation.

Usage: cd [DIR]

Change the current working directory to DIR. With no DIR, change to the
home directory.
"""

import os

from ...types import CommandContext


class CdCommand:
    """The cd command."""

    name = "cd"

    async def execute(self, args: list[str], ctx: CommandContext) -> int:
        """Execute the cd command."""
        if len(args) > 1:
            await ctx.err("cd: too many arguments\n")
            return 1

        if args:
            target = args[0]
        else:
            target = ctx.env.get("HOME") or os.path.expanduser("~")
            if target == "~":
                await ctx.err("cd: cannot determine home directory\n")
                return 1

        try:
            os.chdir(target)
        except OSError as e:
            await ctx.err(f"cd: {target}: {e.strerror or e}\n")
            return 1
        return 0
