"""Error types for minish.

Lex, parse and expand errors abort a line before anything runs. Exec errors
describe a command that ran and failed. ``ExitError`` is not an error in the
usual sense: it asks the shell to terminate with a status code.
"""


class ShellError(Exception):
    """Base class for errors reported to the user for a single line."""


class LexError(ShellError):
    """Raised by the lexer, e.g. for an unclosed quote."""


class ParseError(ShellError):
    """Raised by the parser for malformed command lines."""


class ExpandError(ShellError):
    """Raised during variable expansion."""


class ExecError(ShellError):
    """Raised when a command fails to run or exits non-zero."""

    def __init__(self, message: str, exit_code: int = 1):
        super().__init__(message)
        self.exit_code = exit_code


class ExitError(Exception):
    """Raised by the exit builtin to terminate the shell."""

    def __init__(self, exit_code: int = 0):
        super().__init__(f"exit {exit_code}")
        self.exit_code = exit_code
