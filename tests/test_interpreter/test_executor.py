"""Tests for the executor."""

import os
import shutil
import sys

import pytest

from minish.ast import Argument, Assignment, Command, Pipeline
from minish.commands import create_command_registry
from minish.environment import Environment
from minish.errors import ExecError, ExitError
from minish.interpreter import SIGPIPE_EXIT_CODE, Executor
from minish.streams import BufferSink, BytesSource, FileSink, Pipe
from minish.types import CommandContext

requires_posix_tools = pytest.mark.skipif(
    sys.platform == "win32" or not all(shutil.which(t) for t in ("printf", "head", "sh")),
    reason="needs POSIX command-line tools",
)


def cmd(name, *args, **assignments):
    return Command(
        name=name,
        args=tuple(Argument(a) for a in args),
        assignments=tuple(Assignment(k, Argument(v)) for k, v in assignments.items()),
    )


class RecordingCommand:
    """Builtin that records the variables it was run with."""

    name = "record"

    def __init__(self):
        self.seen = []

    async def execute(self, args, ctx: CommandContext) -> int:
        self.seen.append(dict(ctx.env))
        return 0


class FailingCommand:
    name = "fail"

    async def execute(self, args, ctx: CommandContext) -> int:
        await ctx.err("fail: " + " ".join(args) + "\n")
        return int(args[0]) if args else 1


class Harness:
    def __init__(self, stdin=b"", env=None, **kwargs):
        self.env = Environment(env if env is not None else {"PATH": os.environ.get("PATH", "")})
        self.commands = create_command_registry()
        self.recorder = RecordingCommand()
        self.commands["record"] = self.recorder
        self.commands["fail"] = FailingCommand()
        self.stdout = BufferSink()
        self.stderr = BufferSink()
        self.executor = Executor(
            self.env,
            self.commands,
            stdin=BytesSource(stdin),
            stdout=self.stdout,
            stderr=self.stderr,
            **kwargs,
        )

    async def run(self, node):
        await self.executor.execute(node)
        return self.stdout.text()


class TestCommands:
    """Test single command execution."""

    @pytest.mark.asyncio
    async def test_builtin(self):
        h = Harness()
        assert await h.run(cmd("echo", "hello", "world")) == "hello world\n"

    @pytest.mark.asyncio
    async def test_builtin_reads_stdin(self):
        h = Harness(stdin=b"from stdin\n")
        assert await h.run(cmd("cat")) == "from stdin\n"

    @pytest.mark.asyncio
    async def test_standalone_assignment_persists(self):
        h = Harness()
        await h.run(Command(assignments=(Assignment("X", Argument("5")),)))
        assert h.env.get_local("X") == "5"

    @pytest.mark.asyncio
    async def test_prefix_assignment_scoped(self):
        h = Harness()
        await h.run(cmd("record", TEMP="t"))
        assert h.recorder.seen[0]["TEMP"] == "t"
        assert "TEMP" not in h.env

    @pytest.mark.asyncio
    async def test_prefix_assignment_restores_local(self):
        h = Harness()
        h.env.set("X", "outer")
        await h.run(cmd("record", X="inner"))
        assert h.recorder.seen[0]["X"] == "inner"
        assert h.env.get_local("X") == "outer"

    @pytest.mark.asyncio
    async def test_builtin_failure(self):
        h = Harness()
        with pytest.raises(ExecError, match="command fail exited with code 3") as exc:
            await h.run(cmd("fail", "3"))
        assert exc.value.exit_code == 3
        assert h.stderr.text() == "fail: 3\n"

    @pytest.mark.asyncio
    async def test_failure_still_restores_assignments(self):
        h = Harness()
        with pytest.raises(ExecError):
            await h.run(cmd("fail", X="1"))
        assert "X" not in h.env

    @pytest.mark.asyncio
    async def test_exit_propagates(self):
        h = Harness()
        with pytest.raises(ExitError) as exc:
            await h.run(cmd("exit", "4"))
        assert exc.value.exit_code == 4

    @pytest.mark.asyncio
    async def test_unknown_node(self):
        h = Harness()
        with pytest.raises(ExecError, match="unknown node type: str"):
            await h.executor.execute("echo")

    @pytest.mark.asyncio
    async def test_missing_external(self):
        h = Harness()
        with pytest.raises(ExecError, match="external command failed") as exc:
            await h.run(cmd("definitely-not-a-command-xyz"))
        assert exc.value.exit_code == 127

    @requires_posix_tools
    @pytest.mark.asyncio
    async def test_non_executable_file(self, tmp_path):
        script = tmp_path / "script.sh"
        script.write_text("echo hi\n")
        script.chmod(0o644)
        h = Harness()
        with pytest.raises(ExecError, match="external command failed") as exc:
            await h.run(cmd(str(script)))
        assert exc.value.exit_code == 126


@requires_posix_tools
class TestExternalCommands:
    """Test spawned processes."""

    @pytest.mark.asyncio
    async def test_output_captured(self):
        h = Harness()
        assert await h.run(cmd("printf", "%s-%s", "a", "b")) == "a-b"

    @pytest.mark.asyncio
    async def test_stdin_fed(self):
        h = Harness(stdin=b"one\ntwo\nthree\n")
        assert await h.run(cmd("head", "-n", "2")) == "one\ntwo\n"

    @pytest.mark.asyncio
    async def test_environment_passed(self):
        h = Harness()
        h.env.set("GREETING", "hi")
        out = await h.run(cmd("sh", "-c", 'printf "$GREETING $TEMP"', TEMP="there"))
        assert out == "hi there"

    @pytest.mark.asyncio
    async def test_exit_status(self):
        h = Harness()
        with pytest.raises(ExecError, match="external command failed: exit status 7") as exc:
            await h.run(cmd("sh", "-c", "exit 7"))
        assert exc.value.exit_code == 7

    @pytest.mark.asyncio
    async def test_killed_by_signal(self):
        h = Harness()
        with pytest.raises(ExecError, match="signal: SIGTERM") as exc:
            await h.run(cmd("sh", "-c", "kill -TERM $$"))
        assert exc.value.exit_code == 143

    @pytest.mark.asyncio
    async def test_stderr_captured(self):
        h = Harness()
        await h.run(cmd("sh", "-c", "echo oops >&2"))
        assert h.stderr.text() == "oops\n"

    @pytest.mark.asyncio
    async def test_inherits_file_descriptor(self, tmp_path):
        path = tmp_path / "out.txt"
        with open(path, "wb") as f:
            executor = Executor(
                Environment({"PATH": os.environ.get("PATH", "")}),
                create_command_registry(),
                stdin=BytesSource(b""),
                stdout=FileSink(f),
                stderr=BufferSink(),
            )
            await executor.execute(cmd("printf", "direct"))
        assert path.read_bytes() == b"direct"


class TestPipelines:
    """Test concurrent pipeline execution."""

    @pytest.mark.asyncio
    async def test_two_builtins(self):
        h = Harness()
        out = await h.run(Pipeline((cmd("echo", "hello world"), cmd("wc"))))
        assert out == "1 2 12\n"

    @pytest.mark.asyncio
    async def test_single_stage_pipeline(self):
        h = Harness()
        assert await h.run(Pipeline((cmd("echo", "x"),))) == "x\n"

    @pytest.mark.asyncio
    async def test_empty_pipeline(self):
        h = Harness()
        with pytest.raises(ExecError, match="empty pipeline"):
            await h.run(Pipeline(()))

    @pytest.mark.asyncio
    async def test_output_larger_than_pipe(self):
        data = b"".join(b"line %d\n" % i for i in range(20000))
        h = Harness(stdin=data, pipe_capacity=512)
        out = await h.run(Pipeline((cmd("cat"), cmd("cat"), cmd("wc"))))
        assert out == f"20000 40000 {len(data)}\n"

    @pytest.mark.asyncio
    async def test_stage_assignments_never_persist(self):
        h = Harness()
        await h.run(
            Pipeline((Command(assignments=(Assignment("X", Argument("1")),)), cmd("echo", "done")))
        )
        assert "X" not in h.env

    @pytest.mark.asyncio
    async def test_stage_sees_own_assignments_only(self):
        h = Harness()
        await h.run(Pipeline((cmd("echo", "a", A="1"), cmd("record", B="2"))))
        seen = h.recorder.seen[0]
        assert seen["B"] == "2"
        assert "A" not in seen
        assert "A" not in h.env and "B" not in h.env

    @pytest.mark.asyncio
    async def test_only_last_error_reported(self):
        h = Harness()
        out = await h.run(Pipeline((cmd("fail", "5"), cmd("echo", "ok"))))
        assert out == "ok\n"
        assert h.stderr.text() == "fail: 5\n"

    @pytest.mark.asyncio
    async def test_last_stage_error(self):
        h = Harness()
        with pytest.raises(ExecError, match="command grep exited with code 1"):
            await h.run(Pipeline((cmd("echo", "hello"), cmd("grep", "xyz"))))

    @pytest.mark.asyncio
    async def test_exit_in_first_stage_terminates(self):
        h = Harness()
        with pytest.raises(ExitError) as exc:
            await h.run(Pipeline((cmd("exit", "3"), cmd("echo", "after"))))
        assert exc.value.exit_code == 3
        # Sibling stages are still allowed to finish
        assert h.stdout.text() == "after\n"

    @pytest.mark.asyncio
    async def test_exit_as_last_stage(self):
        h = Harness()
        with pytest.raises(ExitError) as exc:
            await h.run(Pipeline((cmd("echo", "x"), cmd("exit", "5"))))
        assert exc.value.exit_code == 5

    @pytest.mark.asyncio
    async def test_exit_zero_in_pipeline_terminates(self):
        h = Harness()
        with pytest.raises(ExitError) as exc:
            await h.run(Pipeline((cmd("echo", "x"), cmd("exit"))))
        assert exc.value.exit_code == 0

    @pytest.mark.asyncio
    async def test_rightmost_exit_wins(self):
        h = Harness()
        with pytest.raises(ExitError) as exc:
            await h.run(Pipeline((cmd("exit", "2"), cmd("echo", "x"), cmd("exit", "7"))))
        assert exc.value.exit_code == 7

    @pytest.mark.asyncio
    async def test_exit_beats_last_stage_error(self):
        h = Harness()
        with pytest.raises(ExitError) as exc:
            await h.run(Pipeline((cmd("exit", "4"), cmd("fail", "1"))))
        assert exc.value.exit_code == 4

    @requires_posix_tools
    @pytest.mark.asyncio
    async def test_consumer_exits_early(self):
        data = b"y\n" * 200000
        h = Harness(stdin=data, pipe_capacity=1024)
        out = await h.run(Pipeline((cmd("cat"), cmd("head", "-n", "1"))))
        assert out == "y\n"

    @requires_posix_tools
    @pytest.mark.asyncio
    async def test_external_producer_stopped_by_consumer(self):
        # An endless producer is ended by the broken pipe, not by a hang
        h = Harness()
        out = await h.run(
            Pipeline((cmd("sh", "-c", "while :; do echo y; done"), cmd("head", "-n", "2")))
        )
        assert out == "y\ny\n"

    @requires_posix_tools
    @pytest.mark.asyncio
    async def test_mixed_external_and_builtin(self):
        h = Harness(stdin=b"b\na\nc\n")
        out = await h.run(Pipeline((cmd("cat"), cmd("head", "-n", "2"), cmd("wc"))))
        assert out == "2 2 4\n"


class TestBrokenPipe:
    """Test builtins writing to a closed reader."""

    @pytest.mark.asyncio
    async def test_sigpipe_exit_code(self):
        pipe = Pipe(16)
        await pipe.close_reader()
        env = Environment({})
        executor = Executor(
            env,
            create_command_registry(),
            stdin=BytesSource(b""),
            stdout=pipe,
            stderr=BufferSink(),
        )
        with pytest.raises(ExecError) as exc:
            await executor.execute(cmd("echo", "hi"))
        assert exc.value.exit_code == SIGPIPE_EXIT_CODE
