"""Command-line entry point.

Usage: minish [-c LINE] [--prompt PROMPT] [--log-level LEVEL]

Without ``-c``, read and run lines from standard input until end of input or
``exit``.
"""

from __future__ import annotations

import argparse
import asyncio
import logging
import sys
from typing import Optional

from . import __version__
from .config import ShellConfig
from .errors import ExitError, ShellError
from .shell import Shell, exit_code_for


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(prog="minish", description="A small interactive shell.")
    parser.add_argument("-c", dest="command", metavar="LINE", help="run LINE and exit")
    parser.add_argument("--prompt", help="interactive prompt (default: %(default)s)", default=None)
    parser.add_argument(
        "--log-level",
        dest="log_level",
        metavar="LEVEL",
        help="logging level, e.g. DEBUG or WARNING",
    )
    parser.add_argument("--version", action="version", version=f"%(prog)s {__version__}")
    return parser


async def run_command(shell: Shell, line: str) -> int:
    """Run a single line on the shell's own streams and return its status."""
    if not line.strip():
        return 0
    try:
        await shell.execute_line(line)
    except ExitError as error:
        return error.exit_code
    except ShellError as error:
        sys.stderr.write(f"Error: {error}\n")
        return exit_code_for(error)
    return 0


def main(argv: Optional[list[str]] = None) -> int:
    args = build_parser().parse_args(argv)

    try:
        config = ShellConfig.from_env().with_overrides(
            prompt=args.prompt, log_level=args.log_level
        )
    except ValueError as error:
        sys.stderr.write(f"minish: {error}\n")
        return 2

    logging.basicConfig(
        level=config.log_level.upper(),
        stream=sys.stderr,
        format="%(asctime)s %(name)s %(levelname)s: %(message)s",
    )

    shell = Shell(config=config)
    if args.command is not None:
        return asyncio.run(run_command(shell, args.command))
    return shell.repl()


if __name__ == "__main__":
    sys.exit(main())
