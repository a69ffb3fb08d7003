"""Token kinds and token representation for the quest lexer."""

from __future__ import annotations

from dataclasses import dataclass
from enum import Enum, auto
from types import MappingProxyType
from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from questlang.source import Span


class TokenKind(Enum):
    # Keywords
    QUEST = auto()

    # Literals
    IDENTIFIER = auto()
    STRING_LIT = auto()
    INTEGER_LIT = auto()
    TRUE = auto()
    FALSE = auto()

    # Punctuation
    COLON = auto()
    COMMA = auto()
    LBRACE = auto()
    RBRACE = auto()

    # Special
    EOF = auto()


@dataclass(frozen=True)
class Token:
    kind: TokenKind
    value: str
    span: Span

    @property
    def integer(self) -> int:
        """The numeric value of an INTEGER_LIT token."""
        if self.kind is not TokenKind.INTEGER_LIT:
            raise TypeError(f"{self.kind.name} token has no integer value")
        return integer_value(self.value)

    def describe(self) -> str:
        """Short human-readable form used in error messages."""
        match self.kind:
            case TokenKind.EOF:
                return "end of input"
            case TokenKind.STRING_LIT:
                return f'string "{self.value}"'
            case TokenKind.INTEGER_LIT:
                return f"integer {self.value}"
            case TokenKind.IDENTIFIER:
                return f"identifier '{self.value}'"
            case TokenKind.QUEST | TokenKind.TRUE | TokenKind.FALSE:
                return f"keyword '{self.value}'"
            case _:
                return f"'{self.value}'"


KEYWORDS: MappingProxyType[str, TokenKind] = MappingProxyType({
    "quest": TokenKind.QUEST,
    "true": TokenKind.TRUE,
    "false": TokenKind.FALSE,
})

PUNCTUATION: MappingProxyType[str, TokenKind] = MappingProxyType({
    "{": TokenKind.LBRACE,
    "}": TokenKind.RBRACE,
    ":": TokenKind.COLON,
    ",": TokenKind.COMMA,
})

# Display text for kinds that have a fixed spelling.
TOKEN_TEXT: MappingProxyType[TokenKind, str] = MappingProxyType({
    **{kind: text for text, kind in KEYWORDS.items()},
    **{kind: text for text, kind in PUNCTUATION.items()},
})


def integer_value(literal: str) -> int:
    """Convert an integer literal, ignoring leading zeros."""
    digits = literal.lstrip("-").lstrip("0") or "0"
    value = int(digits)
    return -value if literal.startswith("-") else value
