"""AST node types for minish command lines.

A line parses to either a single :class:`Command` or a :class:`Pipeline` of
two or more commands. Nodes are immutable; expansion builds new nodes.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum
from typing import Union


class Quoting(Enum):
    """How an argument was quoted, which decides whether it is expanded."""

    NONE = "none"
    SINGLE = "single"
    DOUBLE = "double"


@dataclass(frozen=True)
class Argument:
    """A command argument or assignment value."""

    value: str
    quoting: Quoting = Quoting.NONE

    def __str__(self) -> str:
        if self.quoting is Quoting.SINGLE:
            return f"'{self.value}'"
        if self.quoting is Quoting.DOUBLE:
            return f'"{self.value}"'
        return self.value


@dataclass(frozen=True)
class Assignment:
    """A NAME=value prefix of a command."""

    name: str
    value: Argument

    def __str__(self) -> str:
        return f"{self.name}={self.value}"


@dataclass(frozen=True)
class Command:
    """A simple command.

    An empty name with assignments is a standalone assignment, which sets
    variables without running anything.
    """

    name: str = ""
    args: tuple[Argument, ...] = field(default_factory=tuple)
    assignments: tuple[Assignment, ...] = field(default_factory=tuple)

    @property
    def is_standalone_assignment(self) -> bool:
        return not self.name and bool(self.assignments)

    def __str__(self) -> str:
        words = [str(a) for a in self.assignments]
        if self.name:
            words.append(self.name)
        words.extend(str(arg) for arg in self.args)
        return " ".join(words)


@dataclass(frozen=True)
class Pipeline:
    """Commands connected stdout-to-stdin."""

    stages: tuple[Command, ...]

    def __str__(self) -> str:
        return " | ".join(str(stage) for stage in self.stages)


Node = Union[Command, Pipeline]
