"""Executor - runs expanded command lines.

A command is looked up in the builtin registry first and otherwise spawned
as an external process found on ``PATH``. Prefix assignments
(``NAME=value cmd``) are visible to the command only while it runs.

Pipeline stages run concurrently as asyncio tasks connected by bounded
:class:`~minish.streams.Pipe` buffers. Running them one after another would
deadlock as soon as a stage wrote more than a pipe holds, since nothing would
be reading the other end.
"""

from __future__ import annotations

import asyncio
import logging
import signal
import sys
from typing import Mapping, Optional

from ..ast.types import Command, Node, Pipeline
from ..environment import Environment
from ..errors import ExecError, ExitError, ShellError
from ..streams import (
    DEFAULT_PIPE_CAPACITY,
    READ_CHUNK_SIZE,
    ByteSink,
    ByteSource,
    FileSink,
    FileSource,
    Pipe,
    fileno_of,
)
from ..types import Command as BuiltinCommand
from ..types import CommandContext

logger = logging.getLogger(__name__)

# Exit status of a process killed by SIGPIPE, as reported by POSIX shells
SIGPIPE_EXIT_CODE = 141


class Executor:
    """Runs Command and Pipeline nodes."""

    def __init__(
        self,
        env: Environment,
        commands: Mapping[str, BuiltinCommand],
        *,
        stdin: Optional[ByteSource] = None,
        stdout: Optional[ByteSink] = None,
        stderr: Optional[ByteSink] = None,
        pipe_capacity: int = DEFAULT_PIPE_CAPACITY,
    ):
        """Initialize the executor.

        Args:
            env: Shell variables, shared with the expander.
            commands: Builtin registry.
            stdin: Input for the first command. Defaults to the process stdin.
            stdout: Output of the last command. Defaults to the process stdout.
            stderr: Error output of every command. Defaults to the process stderr.
            pipe_capacity: Buffer size of the pipes between pipeline stages.
        """
        self.env = env
        self.commands = commands
        self.stdin = stdin if stdin is not None else FileSource(sys.stdin.buffer)
        self.stdout = stdout if stdout is not None else FileSink(sys.stdout.buffer)
        self.stderr = stderr if stderr is not None else FileSink(sys.stderr.buffer)
        self.pipe_capacity = pipe_capacity

    async def execute(self, node: Node) -> None:
        """Execute an expanded AST node.

        Raises:
            ExecError: The command (or the last pipeline stage) failed.
            ExitError: The exit builtin ran, in any stage of a pipeline.
        """
        if isinstance(node, Command):
            await self.execute_command(node)
        elif isinstance(node, Pipeline):
            await self.execute_pipeline(node)
        else:
            raise ExecError(f"unknown node type: {type(node).__name__}")

    async def execute_command(self, command: Command) -> None:
        """Execute a single command with the executor's own streams."""
        assignments = [(a.name, a.value.value) for a in command.assignments]

        if not command.name:
            # Standalone assignment: keep the variables
            for name, value in assignments:
                self.env.set(name, value)
            return

        with self.env.scoped(assignments):
            await self._run(
                command, self.env.get_all_map(), self.stdin, self.stdout, self.stderr
            )

    async def execute_pipeline(self, pipeline: Pipeline) -> None:
        """Execute all stages of a pipeline concurrently.

        Only the last stage's failure is reported. Earlier stages may fail
        without affecting the others. If any stage ran exit, the exit request
        of the rightmost such stage is raised once every stage has finished.
        """
        stages = pipeline.stages
        if not stages:
            raise ExecError("empty pipeline")
        if len(stages) == 1:
            await self.execute_command(stages[0])
            return

        pipes = [Pipe(self.pipe_capacity) for _ in range(len(stages) - 1)]
        last = len(stages) - 1
        tasks = []

        for i, stage in enumerate(stages):
            stdin = self.stdin if i == 0 else pipes[i - 1]
            stdout = self.stdout if i == last else pipes[i]

            # Each stage gets a frozen view of the variables, taken with its
            # own assignments applied. Stages never write to the environment.
            with self.env.scoped((a.name, a.value.value) for a in stage.assignments):
                env_view = self.env.get_all_map()

            tasks.append(
                asyncio.create_task(
                    self._run_stage(stage, env_view, stdin, stdout),
                    name=f"stage-{i}-{stage.name or 'assign'}",
                )
            )

        results = await asyncio.gather(*tasks, return_exceptions=True)

        exit_request = None
        for i, outcome in enumerate(results):
            if isinstance(outcome, ExitError):
                exit_request = outcome
            elif isinstance(outcome, BaseException) and not isinstance(outcome, ShellError):
                raise outcome
            elif i < last and outcome is not None:
                logger.debug("pipeline stage %d (%s) failed: %s", i, stages[i].name, outcome)

        # exit anywhere in the pipeline terminates the shell
        if exit_request is not None:
            raise exit_request
        if results[last] is not None:
            raise results[last]

    async def _run_stage(
        self,
        command: Command,
        env_view: dict[str, str],
        stdin: ByteSource,
        stdout: ByteSink,
    ) -> None:
        try:
            if command.name:
                await self._run(command, env_view, stdin, stdout, self.stderr)
        finally:
            if isinstance(stdout, Pipe):
                await stdout.close()
            if isinstance(stdin, Pipe):
                # Unblocks an upstream writer that would otherwise wait forever
                await stdin.close_reader()

    async def _run(
        self,
        command: Command,
        env_view: dict[str, str],
        stdin: ByteSource,
        stdout: ByteSink,
        stderr: ByteSink,
    ) -> None:
        args = [arg.value for arg in command.args]
        builtin = self.commands.get(command.name)
        if builtin is None:
            await self._run_external(command.name, args, env_view, stdin, stdout, stderr)
            return

        ctx = CommandContext(env=dict(env_view), stdin=stdin, stdout=stdout, stderr=stderr)
        try:
            exit_code = await builtin.execute(args, ctx)
        except BrokenPipeError:
            exit_code = SIGPIPE_EXIT_CODE
        logger.debug("builtin %s exited with code %d", builtin.name, exit_code)
        if exit_code != 0:
            raise ExecError(
                f"command {builtin.name} exited with code {exit_code}",
                exit_code=exit_code,
            )

    async def _run_external(
        self,
        name: str,
        args: list[str],
        env_view: dict[str, str],
        stdin: ByteSource,
        stdout: ByteSink,
        stderr: ByteSink,
    ) -> None:
        # Streams backed by a real descriptor are inherited by the child;
        # anything else is connected through an OS pipe and a pump task.
        stdin_fd = fileno_of(stdin)
        stdout_fd = fileno_of(stdout)
        stderr_fd = fileno_of(stderr)

        logger.debug("spawning external command %s %s", name, args)
        try:
            process = await asyncio.create_subprocess_exec(
                name,
                *args,
                stdin=stdin_fd if stdin_fd is not None else asyncio.subprocess.PIPE,
                stdout=stdout_fd if stdout_fd is not None else asyncio.subprocess.PIPE,
                stderr=stderr_fd if stderr_fd is not None else asyncio.subprocess.PIPE,
                env=env_view,
            )
        except PermissionError as error:
            # Found but not executable
            raise ExecError(f"external command failed: {error}", exit_code=126) from error
        except (OSError, ValueError) as error:
            raise ExecError(f"external command failed: {error}", exit_code=127) from error

        feeder = None
        if stdin_fd is None:
            feeder = asyncio.create_task(_feed(stdin, process.stdin))
        drains = []
        if stdout_fd is None:
            drains.append(_drain(process.stdout, stdout, process))
        if stderr_fd is None:
            drains.append(_drain(process.stderr, stderr, process))

        try:
            await asyncio.gather(*drains)
            returncode = await process.wait()
        finally:
            if feeder is not None:
                # The child may exit without consuming all of its input
                feeder.cancel()
                await asyncio.wait([feeder])
                if not feeder.cancelled() and feeder.exception() is not None:
                    logger.debug("stdin feed for %s failed: %s", name, feeder.exception())

        logger.debug("external command %s exited with status %d", name, returncode)
        if returncode != 0:
            raise ExecError(
                f"external command failed: {_describe_status(returncode)}",
                exit_code=_shell_status(returncode),
            )


async def _feed(source: ByteSource, writer: asyncio.StreamWriter) -> None:
    """Copy a byte source into a child's stdin, then close it."""
    try:
        while True:
            chunk = await source.read(READ_CHUNK_SIZE)
            if not chunk:
                break
            writer.write(chunk)
            await writer.drain()
    except (BrokenPipeError, ConnectionResetError):
        # Child closed its stdin early
        pass
    finally:
        writer.close()


async def _drain(reader: asyncio.StreamReader, sink: ByteSink, process) -> None:
    """Copy a child's output into a sink until the child closes it."""
    broken = False
    while True:
        chunk = await reader.read(READ_CHUNK_SIZE)
        if not chunk:
            return
        if broken:
            continue
        try:
            await sink.write(chunk)
        except BrokenPipeError:
            # Downstream is gone: deliver what the kernel would have
            broken = True
            _signal_broken_pipe(process)


def _signal_broken_pipe(process) -> None:
    try:
        if hasattr(signal, "SIGPIPE"):
            process.send_signal(signal.SIGPIPE)
        else:
            process.terminate()
    except ProcessLookupError:
        pass


def _describe_status(returncode: int) -> str:
    if returncode < 0:
        try:
            return f"signal: {signal.Signals(-returncode).name}"
        except ValueError:
            return f"signal: {-returncode}"
    return f"exit status {returncode}"


def _shell_status(returncode: int) -> int:
    return 128 - returncode if returncode < 0 else returncode
