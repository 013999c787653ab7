"""minish - a small interactive shell.

Lines are tokenized, parsed into a command or pipeline, expanded against a
two-tier variable environment and executed. Builtins run in process; any
other command is spawned from ``PATH``. Pipeline stages run concurrently.

Example usage:
    from minish import Shell

    shell = Shell(env={"GREETING": "hello"})
    result = shell.run("echo $GREETING world | wc")
    print(result.stdout)  # "1 2 12\\n"
"""

from .config import ShellConfig
from .environment import Environment
from .errors import ExecError, ExitError, ExpandError, LexError, ParseError, ShellError
from .shell import Shell
from .types import CommandContext, ExecResult

__version__ = "0.1.0"

__all__ = [
    "CommandContext",
    "Environment",
    "ExecError",
    "ExecResult",
    "ExitError",
    "ExpandError",
    "LexError",
    "ParseError",
    "Shell",
    "ShellConfig",
    "ShellError",
]
