"""Ls command implementation.

Usage: ls [PATH]

List the entries of directory PATH (default: the current directory), one
per line in sorted order. For a file, print its name.
"""

import os

from ...types import CommandContext


class LsCommand:
    """The ls command."""

    name = "ls"

    async def execute(self, args: list[str], ctx: CommandContext) -> int:
        """Execute the ls command."""
        if len(args) > 1:
            await ctx.err("ls: too many arguments\n")
            return 1
        target = args[0] if args else "."

        try:
            if not os.path.isdir(target):
                os.stat(target)
                await ctx.out(os.path.basename(os.path.normpath(target)) + "\n")
                return 0
            names = sorted(os.listdir(target))
        except OSError as e:
            await ctx.err(f"ls: {target}: {e.strerror or e}\n")
            return 2

        if names:
            await ctx.out("".join(f"{name}\n" for name in names))
        return 0
