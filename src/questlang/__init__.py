"""Lexer and parser for the quest definition language."""

from __future__ import annotations

from questlang.ast_nodes import Quest, ValueKind
from questlang.errors import CompileError, LexError, ParseError, QuestError
from questlang.lexer import tokenize
from questlang.parser import parse, parse_source
from questlang.tokens import Token, TokenKind

__version__ = "0.1.0"

__all__ = [
    "CompileError",
    "LexError",
    "ParseError",
    "Quest",
    "QuestError",
    "Token",
    "TokenKind",
    "ValueKind",
    "__version__",
    "parse",
    "parse_source",
    "tokenize",
]
