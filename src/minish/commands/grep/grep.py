"""Grep command implementation.

Usage: grep [OPTION]... PATTERN [FILE]...

Search for PATTERN in each FILE.
With no FILE, read standard input.

Options:
  -i        ignore case distinctions
  -w        match PATTERN literally, as a whole word
  -A NUM    print NUM lines of trailing context after matching lines

Matching lines from a FILE are prefixed with ``FILE:`` and context lines
with ``FILE-`` (just ``-`` for standard input).

Exit status is 0 if a line matched, 1 if none did, and 2 on error.
"""

import re
from typing import Optional

from ...streams import ByteSource, FileSource, iter_lines
from ...types import CommandContext

USAGE = "Usage: grep [-i] [-w] [-A NUM] PATTERN [FILE]...\n"


class GrepCommand:
    """The grep command."""

    name = "grep"

    async def execute(self, args: list[str], ctx: CommandContext) -> int:
        """Execute the grep command."""
        ignore_case = False
        word_regexp = False
        after_context = 0

        # Options must come before the pattern
        i = 0
        while i < len(args):
            arg = args[i]
            if arg == "--":
                i += 1
                break
            if not arg.startswith("-") or arg == "-":
                break
            if arg in ("-h", "--help"):
                await ctx.out(USAGE)
                return 0
            if arg.startswith("-A"):
                value = arg[2:]
                if value.startswith("="):
                    value = value[1:]
                if not value:
                    i += 1
                    if i >= len(args):
                        await ctx.err("grep: flag needs an argument: -A\n")
                        return 2
                    value = args[i]
                try:
                    after_context = int(value)
                except ValueError:
                    await ctx.err(f"grep: invalid context length argument: {value}\n")
                    return 2
                if after_context < 0:
                    await ctx.err(f"grep: invalid context length argument: {value}\n")
                    return 2
            else:
                for c in arg[1:]:
                    if c == "i":
                        ignore_case = True
                    elif c == "w":
                        word_regexp = True
                    else:
                        await ctx.err(f"grep: flag provided but not defined: -{c}\n")
                        return 2
            i += 1

        remaining = args[i:]
        if not remaining:
            await ctx.err("grep: pattern required\n")
            return 2

        pattern, filenames = remaining[0], remaining[1:]
        if word_regexp:
            pattern = r"\b" + re.escape(pattern) + r"\b"
        try:
            regex = re.compile(pattern, re.IGNORECASE if ignore_case else 0)
        except re.error as e:
            await ctx.err(f"grep: invalid regular expression: {e}\n")
            return 2

        if not filenames:
            return await self.search(ctx.stdin, regex, after_context, ctx, None)

        exit_code = 0
        for filename in filenames:
            try:
                with open(filename, "rb") as f:
                    file_exit_code = await self.search(
                        FileSource(f), regex, after_context, ctx, filename
                    )
            except BrokenPipeError:
                raise
            except OSError as e:
                await ctx.err(f"grep: {filename}: {e.strerror or e}\n")
                exit_code = 1
                continue
            if file_exit_code != 0:
                exit_code = file_exit_code

        return exit_code

    async def search(
        self,
        source: ByteSource,
        regex: re.Pattern,
        after_context: int,
        ctx: CommandContext,
        filename: Optional[str],
    ) -> int:
        """Print matching lines from source. Returns 0 if any line matched."""
        match_prefix = f"{filename}:".encode() if filename else b""
        context_prefix = f"{filename}-".encode() if filename else b"-"
        found = False
        lines_after = 0

        async for line in iter_lines(source):
            if regex.search(line.decode("utf-8", errors="replace")):
                found = True
                await ctx.stdout.write(match_prefix + line + b"\n")
                lines_after = after_context
            elif lines_after > 0:
                await ctx.stdout.write(context_prefix + line + b"\n")
                lines_after -= 1

        return 0 if found else 1
