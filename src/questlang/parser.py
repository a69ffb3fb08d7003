"""Parser for quest definitions.

Recursive descent over the token list, one method per grammar production:

    quest_def  := "quest" (IDENTIFIER | STRING) "{" body "}" EOF
    body       := (property ","?)*
    property   := key ":" value
    key        := "reward" | "active" | "step"
    value      := INTEGER | BOOLEAN | STRING

The first token that does not fit the grammar raises ParseError; there is
no recovery and no partial result.
"""

from __future__ import annotations

from dataclasses import dataclass, field

from questlang.ast_nodes import (
    PROPERTY_KINDS,
    BooleanValue,
    IntegerValue,
    Quest,
    StringValue,
    Value,
    ValueKind,
    value_kind,
)
from questlang.errors import (
    ExpectedKeyword,
    ExpectedName,
    ExpectedToken,
    ParseError,
    ParseIssue,
    TrailingInput,
    TypeMismatch,
    UnexpectedEndOfInput,
    UnknownKey,
)
from questlang.lexer import tokenize
from questlang.source import Span
from questlang.tokens import TOKEN_TEXT, Token, TokenKind


@dataclass
class _QuestBuilder:
    """Field values collected while the body is parsed."""

    name: str
    active: bool = False
    reward: int = 0
    steps: list[str] = field(default_factory=list)

    def apply(self, key: str, value: Value) -> None:
        match key, value:
            case "active", BooleanValue(value=flag):
                self.active = flag
            case "reward", IntegerValue(value=amount):
                self.reward = amount
            case "step", StringValue(value=text):
                self.steps.append(text)
            case _:
                raise AssertionError(f"value {value!r} does not belong to key {key!r}")

    def build(self, span: Span) -> Quest:
        return Quest(
            name=self.name,
            active=self.active,
            reward=self.reward,
            steps=tuple(self.steps),
            span=span,
        )


class Parser:
    """Parses a list of tokens into a Quest."""

    def __init__(self, tokens: list[Token], filename: str = "<stdin>") -> None:
        if not tokens or tokens[-1].kind is not TokenKind.EOF:
            raise ValueError("token list must end with an EOF token")
        self.tokens = tokens
        self.pos = 0
        self.filename = filename

    # ── Token access ─────────────────────────────────────────────

    def _current(self) -> Token:
        return self.tokens[self.pos]

    def _at(self, kind: TokenKind) -> bool:
        return self._current().kind == kind

    def _advance(self) -> Token:
        tok = self._current()
        if tok.kind is TokenKind.EOF:
            raise RuntimeError("parser advanced past the end of the token stream")
        self.pos += 1
        return tok

    def _fail(self, issue: ParseIssue, expected: str) -> ParseError:
        """Build the error for the current token, preferring end-of-input."""
        tok = self._current()
        if tok.kind is TokenKind.EOF:
            return ParseError(UnexpectedEndOfInput(expected, tok.span))
        return ParseError(issue)

    def _expect(self, kind: TokenKind) -> Token:
        if self._at(kind):
            return self._advance()
        tok = self._current()
        raise self._fail(ExpectedToken(kind, tok), f"'{TOKEN_TEXT[kind]}'")

    def _span(self, start: Span, end: Span) -> Span:
        """Build a Span from a start span to an end span."""
        return Span(
            self.filename,
            start.start_line, start.start_col,
            end.end_line, end.end_col,
        )

    # ── Productions ──────────────────────────────────────────────

    def parse(self) -> Quest:
        """Parse the entire token stream into a Quest."""
        quest = self._parse_quest_def()
        tok = self._current()
        if tok.kind is not TokenKind.EOF:
            raise ParseError(TrailingInput(tok))
        return quest

    def _parse_quest_def(self) -> Quest:
        start = self._current()
        if not self._at(TokenKind.QUEST):
            raise self._fail(ExpectedKeyword("quest", start), "keyword 'quest'")
        self._advance()

        builder = _QuestBuilder(name=self._parse_name())
        self._expect(TokenKind.LBRACE)
        self._parse_body(builder)
        end = self._expect(TokenKind.RBRACE)
        return builder.build(self._span(start.span, end.span))

    def _parse_name(self) -> str:
        tok = self._current()
        if tok.kind in (TokenKind.IDENTIFIER, TokenKind.STRING_LIT):
            return self._advance().value
        raise self._fail(ExpectedName(tok), "a quest name")

    def _parse_body(self, builder: _QuestBuilder) -> None:
        while not self._at(TokenKind.RBRACE):
            key, value = self._parse_property()
            builder.apply(key, value)
            if self._at(TokenKind.COMMA):
                self._advance()

    def _parse_property(self) -> tuple[str, Value]:
        key = self._parse_key()
        self._expect(TokenKind.COLON)
        return key, self._parse_value(key)

    def _parse_key(self) -> str:
        tok = self._current()
        if tok.kind is TokenKind.IDENTIFIER and tok.value in PROPERTY_KINDS:
            return self._advance().value
        raise self._fail(UnknownKey(tok.value, tok.span), "a property key or '}'")

    def _parse_value(self, key: str) -> Value:
        expected = PROPERTY_KINDS[key]
        tok = self._current()
        if value_kind(tok) is not expected:
            raise self._fail(TypeMismatch(key, expected, tok), f"{expected.value} value")
        self._advance()
        match expected:
            case ValueKind.INTEGER:
                return IntegerValue(tok.integer, tok.span)
            case ValueKind.BOOLEAN:
                return BooleanValue(tok.kind is TokenKind.TRUE, tok.span)
            case ValueKind.STRING:
                return StringValue(tok.value, tok.span)


def parse(tokens: list[Token], filename: str = "<stdin>") -> Quest:
    """Parse a token list into a Quest. Raises ParseError."""
    return Parser(tokens, filename).parse()


def parse_source(source: str, filename: str = "<stdin>") -> Quest:
    """Tokenize and parse quest source text.

    Raises LexError or ParseError, both QuestError subclasses.
    """
    return parse(tokenize(source, filename), filename)
