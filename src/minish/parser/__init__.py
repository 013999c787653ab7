"""Parser module for minish."""

from .lexer import Lexer, Token, TokenType, is_valid_name, tokenize
from .parser import Parser, parse, parse_line

__all__ = [
    # Lexer
    "Lexer",
    "Token",
    "TokenType",
    "tokenize",
    "is_valid_name",
    # Parser
    "Parser",
    "parse",
    "parse_line",
]
