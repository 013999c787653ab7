"""Tests for the command-line entry point."""

import io
import sys

import pytest

from minish.__main__ import build_parser, main


@pytest.fixture
def fake_stdin(monkeypatch):
    def install(data: bytes):
        monkeypatch.setattr(sys, "stdin", io.TextIOWrapper(io.BytesIO(data)))

    return install


class TestCommandMode:
    """Test -c LINE."""

    def test_runs_line(self, capsys):
        assert main(["-c", "echo hi | wc"]) == 0
        assert capsys.readouterr().out == "1 1 3\n"

    def test_exit_status(self):
        assert main(["-c", "exit 3"]) == 3

    def test_exit_in_pipeline(self, capsys):
        assert main(["-c", "echo x | exit 6"]) == 6
        assert capsys.readouterr().err == ""

    def test_blank_line(self, capsys):
        assert main(["-c", "  "]) == 0
        assert capsys.readouterr().out == ""

    def test_lex_error(self, capsys):
        assert main(["-c", "echo 'x"]) == 2
        assert capsys.readouterr().err == "Error: unclosed single quote\n"

    def test_command_failure(self, capsys):
        assert main(["-c", "grep"]) == 2
        assert "Error: command grep exited with code 2" in capsys.readouterr().err


class TestInteractiveMode:
    """Test the loop on standard input."""

    def test_reads_until_exit(self, capsys, fake_stdin):
        fake_stdin(b"echo hi\nexit 5\necho never\n")
        assert main([]) == 5
        out = capsys.readouterr().out
        assert out == "> hi\n> "

    def test_end_of_input(self, capsys, fake_stdin):
        fake_stdin(b"")
        assert main([]) == 0
        assert capsys.readouterr().out == "> "

    def test_prompt_flag(self, capsys, fake_stdin):
        fake_stdin(b"")
        main(["--prompt", "$ "])
        assert capsys.readouterr().out == "$ "

    def test_prompt_from_environment(self, capsys, fake_stdin, monkeypatch):
        monkeypatch.setenv("MINISH_PROMPT", "% ")
        fake_stdin(b"")
        main([])
        assert capsys.readouterr().out == "% "

    def test_flag_beats_environment(self, capsys, fake_stdin, monkeypatch):
        monkeypatch.setenv("MINISH_PROMPT", "% ")
        fake_stdin(b"")
        main(["--prompt", "$ "])
        assert capsys.readouterr().out == "$ "


class TestArguments:
    """Test argument and configuration errors."""

    def test_bad_environment_config(self, capsys, monkeypatch):
        monkeypatch.setenv("MINISH_PIPE_CAPACITY", "lots")
        assert main(["-c", "echo hi"]) == 2
        assert "minish: MINISH_PIPE_CAPACITY: not an integer" in capsys.readouterr().err

    def test_bad_log_level(self, capsys):
        assert main(["--log-level", "LOUD", "-c", "echo hi"]) == 2
        assert "unknown log level" in capsys.readouterr().err

    def test_parser_options(self):
        args = build_parser().parse_args(["-c", "ls", "--log-level", "DEBUG"])
        assert args.command == "ls"
        assert args.log_level == "DEBUG"
        assert args.prompt is None

    def test_version(self, capsys):
        with pytest.raises(SystemExit) as exc:
            main(["--version"])
        assert exc.value.code == 0
        assert "minish 0.1.0" in capsys.readouterr().out
