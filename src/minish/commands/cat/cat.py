"""Cat command implementation.

Usage: cat [FILE]...

Concatenate FILE(s) to standard output.
With no FILE, read standard input.
"""

from ...streams import FileSource, copy_stream
from ...types import CommandContext


class CatCommand:
    """The cat command."""

    name = "cat"

    async def execute(self, args: list[str], ctx: CommandContext) -> int:
        """Execute the cat command."""
        if not args:
            try:
                await copy_stream(ctx.stdin, ctx.stdout)
            except BrokenPipeError:
                raise
            except OSError as e:
                await ctx.err(f"cat: error reading from stdin: {e}\n")
                return 1
            return 0

        for filename in args:
            try:
                with open(filename, "rb") as f:
                    await copy_stream(FileSource(f), ctx.stdout)
            except BrokenPipeError:
                raise
            except OSError as e:
                await ctx.err(f"cat: {filename}: {e.strerror or e}\n")
                return 1

        return 0
