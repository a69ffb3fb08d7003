"""Lexer for quest definitions.

Produces a list of tokens from source text in a single forward scan with
one character of look-ahead. The first malformed token aborts the scan.
"""

from __future__ import annotations

from questlang.errors import (
    InvalidNumber,
    LexError,
    UnexpectedCharacter,
    UnterminatedString,
)
from questlang.source import Span
from questlang.tokens import KEYWORDS, PUNCTUATION, Token, TokenKind, integer_value

INT_MIN = -(2**31)
INT_MAX = 2**31 - 1

_WHITESPACE = frozenset(" \t\r\n")
_DIGITS = frozenset("0123456789")


class Lexer:
    """Tokenizes quest source text."""

    def __init__(self, source: str, filename: str = "<stdin>") -> None:
        self.source = source
        self.filename = filename
        self.pos = 0
        self.line = 1
        self.col = 1
        self.tokens: list[Token] = []

    def lex(self) -> list[Token]:
        """Tokenize the entire source and return the token list."""
        while True:
            self._skip_whitespace()
            if self.pos >= len(self.source):
                break
            ch = self.source[self.pos]
            if ch in PUNCTUATION:
                start_line, start_col = self.line, self.col
                self._advance()
                self._emit(PUNCTUATION[ch], ch, start_line, start_col)
            elif ch == '"':
                self._lex_string()
            elif ch in _DIGITS or (ch == '-' and self._peek(1) in _DIGITS):
                self._lex_number()
            elif ch.isalpha():
                self._lex_identifier()
            else:
                span = Span(self.filename, self.line, self.col, self.line, self.col)
                raise LexError(UnexpectedCharacter(ch, span))

        self._emit(TokenKind.EOF, "", self.line, self.col)
        return self.tokens

    # ── Helpers ───────────────────────────────────────────────────

    def _peek(self, offset: int = 0) -> str:
        idx = self.pos + offset
        if idx < len(self.source):
            return self.source[idx]
        return '\0'

    def _advance(self) -> str:
        ch = self.source[self.pos]
        self.pos += 1
        if ch == '\n':
            self.line += 1
            self.col = 1
        else:
            self.col += 1
        return ch

    def _emit(self, kind: TokenKind, value: str, start_line: int, start_col: int) -> Token:
        end_col = self.col - 1 if self.col > 1 else 1
        if kind is TokenKind.EOF:
            end_col = start_col
        span = Span(self.filename, start_line, start_col, self.line, end_col)
        tok = Token(kind, value, span)
        self.tokens.append(tok)
        return tok

    def _skip_whitespace(self) -> None:
        while self.pos < len(self.source) and self.source[self.pos] in _WHITESPACE:
            self._advance()

    # ── Strings ──────────────────────────────────────────────────

    def _lex_string(self) -> None:
        start_line = self.line
        start_col = self.col
        self._advance()  # skip opening "
        text = []
        while self.pos < len(self.source) and self.source[self.pos] != '"':
            text.append(self._advance())

        if self.pos >= len(self.source):
            span = Span(self.filename, start_line, start_col, start_line, start_col)
            raise LexError(UnterminatedString(span))

        self._advance()  # skip closing "
        self._emit(TokenKind.STRING_LIT, ''.join(text), start_line, start_col)

    # ── Numbers ──────────────────────────────────────────────────

    def _lex_number(self) -> None:
        start_line = self.line
        start_col = self.col
        text = [self._advance()]  # leading digit or '-'
        while self.pos < len(self.source) and self.source[self.pos] in _DIGITS:
            text.append(self._advance())
        literal = ''.join(text)

        # Checked by length first so huge literals never reach int().
        significant = literal.lstrip('-').lstrip('0')
        if len(significant) > 10 or not INT_MIN <= integer_value(literal) <= INT_MAX:
            span = Span(self.filename, start_line, start_col, self.line, self.col - 1)
            raise LexError(InvalidNumber(literal, span))
        self._emit(TokenKind.INTEGER_LIT, literal, start_line, start_col)

    # ── Identifiers and Keywords ─────────────────────────────────

    def _lex_identifier(self) -> None:
        start_line = self.line
        start_col = self.col
        text = []
        while self.pos < len(self.source) and (
            self.source[self.pos].isalnum() or self.source[self.pos] == '_'
        ):
            text.append(self._advance())
        word = ''.join(text)
        self._emit(KEYWORDS.get(word, TokenKind.IDENTIFIER), word, start_line, start_col)


def tokenize(source: str, filename: str = "<stdin>") -> list[Token]:
    """Tokenize quest source text. Raises LexError on the first bad token."""
    return Lexer(source, filename).lex()
