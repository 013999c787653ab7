"""Variable expansion.

Handles ``$NAME`` and ``${NAME}`` substitution in command names, arguments
and assignment values. Single-quoted arguments are left untouched.

A ``$`` preceded by an odd number of backslashes is literal; with an even
number, each backslash pair collapses to one backslash and the variable is
expanded. Backslashes anywhere else are kept as they are.

Assignments are applied to the environment as they are expanded, so later
words of the same command can refer to them (``X=foo Y=$X``).
"""

from __future__ import annotations

import logging

from ..ast.types import Argument, Assignment, Command, Node, Pipeline, Quoting
from ..environment import Environment
from ..errors import ExecError, ExpandError

logger = logging.getLogger(__name__)


def _is_name_start(char: str) -> bool:
    return char == "_" or ("a" <= char <= "z") or ("A" <= char <= "Z")


def _is_name_char(char: str) -> bool:
    return _is_name_start(char) or ("0" <= char <= "9")


def expand_string(text: str, env: Environment, prefix_fallback: bool = True) -> str:
    """Substitute variables in text.

    Undefined variables expand to the empty string.

    Raises:
        ExpandError: A ``${`` has no closing brace.
    """
    result: list[str] = []
    i = 0
    n = len(text)

    while i < n:
        dollar = text.find("$", i)
        if dollar < 0:
            result.append(text[i:])
            break

        backslashes = 0
        k = dollar - 1
        while k >= i and text[k] == "\\":
            backslashes += 1
            k -= 1

        if backslashes % 2 == 1:
            # Escaped: drop only the escaping backslash
            result.append(text[i:dollar - 1])
            result.append("$")
            i = dollar + 1
            continue

        result.append(text[i:dollar - backslashes])
        result.append("\\" * (backslashes // 2))
        i = _expand_variable(text, dollar, env, result, prefix_fallback)

    return "".join(result)


def _expand_variable(
    text: str,
    dollar: int,
    env: Environment,
    result: list[str],
    prefix_fallback: bool,
) -> int:
    """Expand the variable at text[dollar] and return the resume position."""
    start = dollar + 1
    if start >= len(text):
        result.append("$")
        return start

    if text[start] == "{":
        close = text.find("}", start + 1)
        if close < 0:
            raise ExpandError("unterminated ${ variable")
        result.append(env.get(text[start + 1:close]) or "")
        return close + 1

    if not _is_name_start(text[start]):
        result.append("$")
        return start

    end = start + 1
    while end < len(text) and _is_name_char(text[end]):
        end += 1

    value = env.get(text[start:end])
    if value is None and prefix_fallback:
        # $HOME_dir with only HOME set expands HOME and keeps "_dir"
        for stop in range(end - 1, start, -1):
            value = env.get(text[start:stop])
            if value is not None:
                end = stop
                break

    result.append(value or "")
    return end


class Expander:
    """Expands variables throughout an AST."""

    def __init__(self, env: Environment, prefix_fallback: bool = True):
        self.env = env
        self.prefix_fallback = prefix_fallback

    def expand(self, node: Node) -> Node:
        """Return a copy of node with all variables substituted.

        Assignments of a standalone assignment command persist in the
        environment. Assignments prefixed to a named command, or made by a
        pipeline stage, are rolled back once the command is expanded; the
        executor applies them again while the command runs.

        Raises:
            ExpandError: A variable reference is malformed. Assignments the
                failing command already applied are rolled back.
            ExecError: node is neither a Command nor a Pipeline.
        """
        if isinstance(node, Command):
            return self._expand_command(node, keep_assignments=node.is_standalone_assignment)
        if isinstance(node, Pipeline):
            return Pipeline(
                stages=tuple(
                    self._expand_command(stage, keep_assignments=False)
                    for stage in node.stages
                )
            )
        raise ExecError(f"unknown node type: {type(node).__name__}")

    def _expand_command(self, command: Command, keep_assignments: bool) -> Command:
        saved = self.env.save(a.name for a in command.assignments)
        try:
            assignments = []
            for assignment in command.assignments:
                value = self.expand_argument(assignment.value)
                self.env.set(assignment.name, value.value)
                assignments.append(Assignment(assignment.name, value))

            name = self.expand_text(command.name)
            args = tuple(self.expand_argument(arg) for arg in command.args)
        except ExpandError:
            self.env.restore(saved)
            raise

        if not keep_assignments:
            self.env.restore(saved)

        expanded = Command(name=name, args=args, assignments=tuple(assignments))
        logger.debug("expanded %r -> %r", str(command), str(expanded))
        return expanded

    def expand_argument(self, arg: Argument) -> Argument:
        """Expand an argument according to its quoting."""
        if arg.quoting is Quoting.SINGLE:
            return arg
        return Argument(self.expand_text(arg.value), arg.quoting)

    def expand_text(self, text: str) -> str:
        return expand_string(text, self.env, self.prefix_fallback)


def expand(node: Node, env: Environment, prefix_fallback: bool = True) -> Node:
    """Expand variables in node using env."""
    return Expander(env, prefix_fallback).expand(node)
