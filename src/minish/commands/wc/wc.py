"""Wc command implementation.

Usage: wc [FILE]

Print the line, word and byte counts of FILE, or of standard input when no
FILE is given, as ``LINES WORDS BYTES [FILE]``.
"""

from ...streams import ByteSource, FileSource, iter_lines
from ...types import CommandContext


class WcCommand:
    """The wc command."""

    name = "wc"

    async def execute(self, args: list[str], ctx: CommandContext) -> int:
        """Execute the wc command."""
        if not args:
            lines, words, nbytes = await self.count(ctx.stdin)
            await ctx.out(f"{lines} {words} {nbytes}\n")
            return 0

        filename = args[0]
        try:
            with open(filename, "rb") as f:
                lines, words, nbytes = await self.count(FileSource(f))
        except OSError as e:
            await ctx.err(f"wc: {filename}: {e.strerror or e}\n")
            return 1

        await ctx.out(f"{lines} {words} {nbytes} {filename}\n")
        return 0

    async def count(self, source: ByteSource) -> tuple[int, int, int]:
        """Count lines, words and bytes.

        Every line is counted with its newline, including a final line that
        has none.
        """
        lines = words = nbytes = 0
        async for line in iter_lines(source):
            lines += 1
            nbytes += len(line) + 1
            words += len(line.split())
        return lines, words, nbytes
