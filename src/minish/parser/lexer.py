"""Lexer for minish command lines.

Splits a line into WORD, PIPE, SINGLE_QUOTED, DOUBLE_QUOTED and ASSIGN
tokens. Quote characters are stripped from quoted tokens, and an ASSIGN
token carries only the variable name (its ``=`` is consumed). Backslashes
are not interpreted here; they reach the expander untouched.
"""

from __future__ import annotations

import re
from dataclasses import dataclass
from enum import Enum, auto

from ..errors import LexError

_NAME_RE = re.compile(r"[A-Za-z_][A-Za-z0-9_]*")


class TokenType(Enum):
    """Token kinds produced by the lexer."""

    WORD = auto()
    PIPE = auto()
    SINGLE_QUOTED = auto()
    DOUBLE_QUOTED = auto()
    ASSIGN = auto()


@dataclass(frozen=True)
class Token:
    """A lexical token."""

    type: TokenType
    value: str

    def __str__(self) -> str:
        if self.type is TokenType.PIPE:
            return "PIPE"
        return f"{self.type.name}({self.value})"


def is_valid_name(text: str) -> bool:
    """Check if text is a valid variable name."""
    return _NAME_RE.fullmatch(text) is not None


class Lexer:
    """Character-at-a-time tokenizer for a single line."""

    def __init__(self, line: str):
        self.line = line
        self.tokens: list[Token] = []
        self._buffer: list[str] = []
        self._in_single = False
        self._in_double = False

    def tokenize(self) -> list[Token]:
        """Tokenize the whole line.

        Raises:
            LexError: A quote was left open.
        """
        for char in self.line:
            self._consume(char)

        # Checked before flushing so a dangling quoted buffer is never emitted
        if self._in_single:
            raise LexError("unclosed single quote")
        if self._in_double:
            raise LexError("unclosed double quote")

        self._flush_word()
        return self.tokens

    def _consume(self, char: str) -> None:
        quoted = self._in_single or self._in_double
        if char == "'" and not self._in_double:
            self._toggle_single()
        elif char == '"' and not self._in_single:
            self._toggle_double()
        elif quoted:
            self._buffer.append(char)
        elif char == "|":
            self._flush_word()
            self.tokens.append(Token(TokenType.PIPE, "|"))
        elif char.isspace():
            self._flush_word()
        elif char == "=":
            self._handle_equals()
        else:
            self._buffer.append(char)

    def _toggle_single(self) -> None:
        if self._in_single:
            # Closing quote: emit even when empty
            self._emit(TokenType.SINGLE_QUOTED)
            self._in_single = False
        else:
            self._flush_word()
            self._in_single = True

    def _toggle_double(self) -> None:
        if self._in_double:
            self._emit(TokenType.DOUBLE_QUOTED)
            self._in_double = False
        else:
            self._flush_word()
            self._in_double = True

    def _handle_equals(self) -> None:
        pending = "".join(self._buffer)
        if pending and is_valid_name(pending):
            self._emit(TokenType.ASSIGN)
        else:
            # Not an assignment: =foo or --opt=x stay literal words
            self._buffer.append("=")

    def _flush_word(self) -> None:
        if self._buffer:
            self._emit(TokenType.WORD)

    def _emit(self, token_type: TokenType) -> None:
        self.tokens.append(Token(token_type, "".join(self._buffer)))
        self._buffer.clear()


def tokenize(line: str) -> list[Token]:
    """Tokenize a command line.

    Raises:
        LexError: A quote was left open.
    """
    return Lexer(line).tokenize()
