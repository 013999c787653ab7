"""Interpreter module for minish: variable expansion and execution."""

from .executor import SIGPIPE_EXIT_CODE, Executor
from .expansion import Expander, expand, expand_string

__all__ = [
    "Executor",
    "SIGPIPE_EXIT_CODE",
    "Expander",
    "expand",
    "expand_string",
]
