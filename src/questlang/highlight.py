"""Pygments lexer and terminal highlighting for quest files."""

from __future__ import annotations

from pygments import highlight as _pygments_highlight
from pygments.formatters import TerminalFormatter
from pygments.lexer import RegexLexer, words
from pygments.token import (
    Error,
    Keyword,
    Name,
    Number,
    Punctuation,
    String,
    Text,
)

from questlang.ast_nodes import PROPERTY_KINDS


class QuestLexer(RegexLexer):
    """Pygments lexer for quest definitions."""

    name = "Quest"
    aliases = ["quest"]
    filenames = ["*.quest"]
    mimetypes = ["text/x-quest"]

    tokens = {
        "root": [
            (r"\s+", Text),
            (r"\bquest\b", Keyword.Declaration),
            (r"\b(true|false)\b", Keyword.Constant),
            # Property keys (known keys followed by a colon)
            (
                words(tuple(sorted(PROPERTY_KINDS)), prefix=r"\b", suffix=r"(?=\s*:)"),
                Name.Attribute,
            ),
            (r'"[^"]*"', String.Double),
            (r'"[^"]*\Z', Error),
            (r"-?[0-9]+", Number.Integer),
            (r"[^\W\d]\w*", Name),
            (r"[{}:,]", Punctuation),
            (r".", Error),
        ],
    }


def highlight(source: str, *, color: bool = True) -> str:
    """Return source highlighted with ANSI colors, or unchanged without color."""
    if not color:
        return source
    return _pygments_highlight(source, QuestLexer(), TerminalFormatter())
