"""Tests for exit command."""

import pytest

from minish import Shell


class TestExit:
    """Test exit status handling."""

    @pytest.mark.asyncio
    async def test_default_status(self):
        shell = Shell(env={})
        result = await shell.exec("exit")
        assert result.exit_code == 0
        assert result.stderr == ""

    @pytest.mark.asyncio
    @pytest.mark.parametrize(
        "arg,expected",
        [("7", 7), ("+3", 3), ("255", 255), ("256", 0), ("300", 44), ("-1", 255)],
    )
    async def test_status_wraps(self, arg, expected):
        shell = Shell(env={})
        result = await shell.exec(f"exit {arg}")
        assert result.exit_code == expected

    @pytest.mark.asyncio
    async def test_non_numeric(self):
        shell = Shell(env={})
        result = await shell.exec("exit abc")
        assert result.exit_code == 2
        assert result.stderr == "exit: abc: numeric argument required\n"

    @pytest.mark.asyncio
    async def test_status_from_variable(self):
        shell = Shell(env={"CODE": "9"})
        result = await shell.exec("exit $CODE")
        assert result.exit_code == 9

    @pytest.mark.asyncio
    async def test_in_pipeline_terminates(self):
        shell = Shell(env={})
        result = await shell.exec("echo x | exit 3")
        assert result.exit_code == 3
        assert result.stderr == ""

    @pytest.mark.asyncio
    async def test_zero_in_pipeline(self):
        shell = Shell(env={})
        result = await shell.exec("exit | echo done")
        assert result.stdout == "done\n"
        assert result.exit_code == 0
        assert "Error" not in result.stderr
