"""Parser for minish command lines.

Grammar::

    line     := command ("|" command)*
    command  := (assign value | word)+
    value    := WORD | SINGLE_QUOTED | DOUBLE_QUOTED

The first non-assignment token of a command is its name, the rest are its
arguments. A single command is returned as is; two or more are wrapped in a
:class:`~minish.ast.types.Pipeline`.
"""

from __future__ import annotations

from ..ast.types import Argument, Assignment, Command, Node, Pipeline, Quoting
from ..errors import ParseError
from .lexer import Token, TokenType, tokenize

_VALUE_TYPES = (TokenType.WORD, TokenType.SINGLE_QUOTED, TokenType.DOUBLE_QUOTED)

_QUOTING = {
    TokenType.WORD: Quoting.NONE,
    TokenType.SINGLE_QUOTED: Quoting.SINGLE,
    TokenType.DOUBLE_QUOTED: Quoting.DOUBLE,
}


class Parser:
    """Builds an AST from a token list."""

    def __init__(self, tokens: list[Token]):
        self.tokens = tokens

    def parse(self) -> Node:
        """Parse the tokens into a Command or Pipeline.

        Raises:
            ParseError: The tokens do not form a valid command line.
        """
        if not self.tokens:
            raise ParseError("empty command")

        stages = [self.parse_command(segment) for segment in self._split_segments()]
        if len(stages) == 1:
            return stages[0]
        return Pipeline(stages=tuple(stages))

    def _split_segments(self) -> list[list[Token]]:
        segments: list[list[Token]] = []
        current: list[Token] = []
        for token in self.tokens:
            if token.type is TokenType.PIPE:
                if not current:
                    raise ParseError("empty command before pipe")
                segments.append(current)
                current = []
            else:
                current.append(token)
        if not current:
            raise ParseError("empty command after pipe")
        segments.append(current)
        return segments

    def parse_command(self, tokens: list[Token]) -> Command:
        """Parse one pipeline segment."""
        if not tokens:
            raise ParseError("empty command")

        name = ""
        args: list[Argument] = []
        assignments: list[Assignment] = []

        i = 0
        while i < len(tokens):
            token = tokens[i]
            if token.type is TokenType.ASSIGN:
                if i + 1 >= len(tokens):
                    raise ParseError("assignment without value")
                value = tokens[i + 1]
                if value.type not in _VALUE_TYPES:
                    raise ParseError("invalid assignment value")
                assignments.append(Assignment(token.value, _to_argument(value)))
                i += 2
                continue
            if not name:
                name = token.value
            else:
                args.append(_to_argument(token))
            i += 1

        if not name and not assignments:
            raise ParseError("command name or assignment is required")

        return Command(name=name, args=tuple(args), assignments=tuple(assignments))


def _to_argument(token: Token) -> Argument:
    return Argument(token.value, _QUOTING[token.type])


def parse(tokens: list[Token]) -> Node:
    """Parse a token list into an AST."""
    return Parser(tokens).parse()


def parse_line(line: str) -> Node:
    """Tokenize and parse a command line."""
    return parse(tokenize(line))
