"""Main Shell class - the primary API for minish.

Example usage:
    from minish import Shell

    # Synchronous usage (for scripts)
    shell = Shell()
    result = shell.run("echo hello world")
    print(result.stdout)  # "hello world\\n"

    # Async usage (for async applications)
    shell = Shell()
    result = await shell.exec("echo hello | wc")

    # Interactive loop on the process's own streams
    Shell().repl()
"""

from __future__ import annotations

import asyncio
import logging
import sys
from typing import Mapping, Optional

import nest_asyncio  # type: ignore[import-untyped]

from .commands import create_command_registry
from .config import ShellConfig
from .environment import Environment
from .errors import ExecError, ExitError, LexError, ParseError, ShellError
from .interpreter import Executor, Expander
from .parser import parse, tokenize
from .streams import BufferSink, ByteSink, ByteSource, BytesSource, FileSink, FileSource
from .types import Command, ExecResult

logger = logging.getLogger(__name__)


class Shell:
    """A shell session: one environment, one builtin registry."""

    def __init__(
        self,
        *,
        env: Optional[Mapping[str, str]] = None,
        commands: Optional[dict[str, Command]] = None,
        config: Optional[ShellConfig] = None,
        stdin: Optional[ByteSource] = None,
        stdout: Optional[ByteSink] = None,
        stderr: Optional[ByteSink] = None,
    ):
        """Initialize the shell.

        Args:
            env: Variables for the global tier. Defaults to the process
                environment.
            commands: Builtin registry. Defaults to the standard builtins.
            config: Session settings.
            stdin: Input stream for the interactive loop and commands.
            stdout: Output stream for the prompt and commands.
            stderr: Error stream for error reports and commands.
        """
        self._config = config or ShellConfig()
        self._env = Environment(env)
        self._commands = commands if commands is not None else create_command_registry()
        self._expander = Expander(self._env, prefix_fallback=self._config.prefix_fallback)
        self._stdin = stdin if stdin is not None else FileSource(sys.stdin.buffer)
        self._stdout = stdout if stdout is not None else FileSink(sys.stdout.buffer)
        self._stderr = stderr if stderr is not None else FileSink(sys.stderr.buffer)

    @property
    def env(self) -> Environment:
        """Get the shell variables."""
        return self._env

    @property
    def config(self) -> ShellConfig:
        return self._config

    @property
    def commands(self) -> dict[str, Command]:
        return self._commands

    async def execute_line(
        self,
        line: str,
        *,
        stdin: Optional[ByteSource] = None,
        stdout: Optional[ByteSink] = None,
        stderr: Optional[ByteSink] = None,
    ) -> None:
        """Tokenize, parse, expand and execute one line.

        Nothing runs unless the line lexes, parses and expands cleanly.

        Raises:
            ShellError: The line failed at some stage.
            ExitError: The exit builtin ran.
        """
        logger.debug("executing line %r", line)
        node = parse(tokenize(line))
        expanded = self._expander.expand(node)
        executor = Executor(
            self._env,
            self._commands,
            stdin=stdin if stdin is not None else self._stdin,
            stdout=stdout if stdout is not None else self._stdout,
            stderr=stderr if stderr is not None else self._stderr,
            pipe_capacity=self._config.pipe_capacity,
        )
        await executor.execute(expanded)

    async def exec(self, line: str, *, stdin: bytes | str = b"") -> ExecResult:
        """Execute a line with captured output.

        Args:
            line: The command line.
            stdin: Input for the first command.

        Returns:
            ExecResult with stdout, stderr, exit code and local variables.
            Errors are reported on stderr as ``Error: <message>``.
        """
        if isinstance(stdin, str):
            stdin = stdin.encode("utf-8")
        out = BufferSink()
        err = BufferSink()
        exit_code = 0

        if line.strip():
            try:
                await self.execute_line(line, stdin=BytesSource(stdin), stdout=out, stderr=err)
            except ExitError as error:
                exit_code = error.exit_code
            except ShellError as error:
                await err.write(f"Error: {error}\n".encode("utf-8"))
                exit_code = exit_code_for(error)

        return ExecResult(
            stdout=out.text(),
            stderr=err.text(),
            exit_code=exit_code,
            env=self._env.list_local(),
        )

    def run(self, line: str, *, stdin: bytes | str = b"") -> ExecResult:
        """Execute a line synchronously.

        This is a convenience wrapper around exec() that also works inside
        a running event loop (Jupyter, async frameworks).
        """
        try:
            asyncio.get_running_loop()
            # Already inside a loop: allow asyncio.run() to nest
            nest_asyncio.apply()
        except RuntimeError:
            pass
        return asyncio.run(self.exec(line, stdin=stdin))

    async def interact(self) -> int:
        """Run the read-execute loop until end of input or exit.

        Returns:
            The status the process should exit with.
        """
        readline = getattr(self._stdin, "readline", None)
        if readline is None:
            raise TypeError(f"{type(self._stdin).__name__} does not support readline()")

        while True:
            await self._stdout.write(self._config.prompt.encode("utf-8"))
            raw = await readline()
            if not raw:
                return 0

            line = raw.decode("utf-8", errors="replace").strip()
            if not line:
                continue

            try:
                await self.execute_line(line)
            except ExitError as error:
                return error.exit_code
            except ShellError as error:
                await self._stderr.write(f"Error: {error}\n".encode("utf-8"))

    def repl(self) -> int:
        """Run the interactive loop on a fresh event loop."""
        return asyncio.run(self.interact())


def exit_code_for(error: ShellError) -> int:
    """Map a line error to the status a shell would report for it."""
    if isinstance(error, (LexError, ParseError)):
        return 2
    if isinstance(error, ExecError):
        return error.exit_code
    return 1
