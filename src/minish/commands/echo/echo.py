"""Echo command implementation.

Usage: echo [ARG]...

Write the arguments to standard output, separated by single spaces and
followed by a newline.
"""

from ...types import CommandContext


class EchoCommand:
    """The echo command."""

    name = "echo"

    async def execute(self, args: list[str], ctx: CommandContext) -> int:
        """Execute the echo command."""
        await ctx.out(" ".join(args) + "\n")
        return 0
