"""AST node definitions for quest definitions."""

from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum
from types import MappingProxyType
from typing import Union

from questlang.source import Span
from questlang.tokens import Token, TokenKind

# ── Property values ──────────────────────────────────────────────


class ValueKind(Enum):
    INTEGER = "integer"
    BOOLEAN = "boolean"
    STRING = "string"


@dataclass(frozen=True)
class IntegerValue:
    value: int
    span: Span


@dataclass(frozen=True)
class BooleanValue:
    value: bool
    span: Span


@dataclass(frozen=True)
class StringValue:
    value: str
    span: Span


Value = Union[IntegerValue, BooleanValue, StringValue]


def value_kind(token: Token) -> ValueKind | None:
    """Return the kind of value a token spells, or None for non-values."""
    match token.kind:
        case TokenKind.INTEGER_LIT:
            return ValueKind.INTEGER
        case TokenKind.TRUE | TokenKind.FALSE:
            return ValueKind.BOOLEAN
        case TokenKind.STRING_LIT:
            return ValueKind.STRING
        case _:
            return None


# ── Quest ────────────────────────────────────────────────────────

# Property key -> the one value kind it accepts.
PROPERTY_KINDS: MappingProxyType[str, ValueKind] = MappingProxyType({
    "active": ValueKind.BOOLEAN,
    "reward": ValueKind.INTEGER,
    "step": ValueKind.STRING,
})


@dataclass(frozen=True)
class Quest:
    name: str
    active: bool = False
    reward: int = 0
    steps: tuple[str, ...] = ()
    span: Span | None = field(default=None, compare=False)
