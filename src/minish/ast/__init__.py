"""AST types for minish."""

from .types import Argument, Assignment, Command, Node, Pipeline, Quoting

__all__ = [
    "Argument",
    "Assignment",
    "Command",
    "Node",
    "Pipeline",
    "Quoting",
]
