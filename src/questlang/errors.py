"""Error variants, Rust-style diagnostics and their colored rendering."""

from __future__ import annotations

import difflib
from dataclasses import dataclass, field
from enum import Enum
from pathlib import Path
from typing import ClassVar, Union

from questlang.ast_nodes import PROPERTY_KINDS, ValueKind, value_kind
from questlang.source import SourceFile, Span
from questlang.tokens import TOKEN_TEXT, Token, TokenKind


class Severity(Enum):
    ERROR = "error"
    WARNING = "warning"
    NOTE = "note"


# ANSI color codes
_COLORS = {
    Severity.ERROR: "\033[1;31m",    # bold red
    Severity.WARNING: "\033[1;33m",  # bold yellow
    Severity.NOTE: "\033[1;36m",     # bold cyan
}
_BOLD = "\033[1m"
_BLUE = "\033[1;34m"
_RESET = "\033[0m"


@dataclass(frozen=True)
class DiagnosticLabel:
    """Points to a specific source location."""

    span: Span
    message: str


@dataclass(frozen=True)
class Suggestion:
    """A suggested fix."""

    message: str
    replacement: str


@dataclass
class Diagnostic:
    """A single diagnostic message with optional labels and suggestions."""

    severity: Severity
    code: str
    message: str
    labels: list[DiagnosticLabel] = field(default_factory=list)
    suggestions: list[Suggestion] = field(default_factory=list)
    notes: list[str] = field(default_factory=list)


class DiagnosticRenderer:
    """Renders diagnostics in Rust-style format with colors."""

    def __init__(self, *, color: bool = True) -> None:
        self.color = color
        self._sources: dict[str, SourceFile] = {}

    def _c(self, code: str) -> str:
        return code if self.color else ""

    def add_source(self, filename: str, text: str) -> None:
        """Register in-memory source text so labels can quote it."""
        self._sources[filename] = SourceFile(Path(filename), content=text)

    def _get_source_line(self, filename: str, line_num: int) -> str | None:
        """Load and cache the source file, return the 1-indexed line."""
        if filename not in self._sources:
            path = Path(filename)
            try:
                if path.is_file():
                    self._sources[filename] = SourceFile(path)
                else:
                    self._sources[filename] = SourceFile(path, content="")
            except (OSError, UnicodeDecodeError):
                self._sources[filename] = SourceFile(path, content="")
        return self._sources[filename].line_at(line_num)

    def render(self, diag: Diagnostic) -> str:
        lines: list[str] = []
        sev = diag.severity
        color = _COLORS[sev]

        # Header: error[E205]: message
        lines.append(
            f"{self._c(color)}{sev.value}[{diag.code}]{self._c(_RESET)}"
            f"{self._c(_BOLD)}: {diag.message}{self._c(_RESET)}"
        )

        for label in diag.labels:
            span = label.span
            lines.append(f"  {self._c(_BLUE)}-->{self._c(_RESET)} {span}")
            gutter = f"{span.start_line:>4}"
            lines.append(f"  {self._c(_BLUE)}     |{self._c(_RESET)}")

            source_line = self._get_source_line(span.file, span.start_line)
            if source_line is not None:
                lines.append(
                    f"  {self._c(_BLUE)}{gutter} |{self._c(_RESET)} {source_line}"
                )
                if span.start_line == span.end_line:
                    caret_len = max(1, span.end_col - span.start_col + 1)
                else:
                    caret_len = max(1, len(source_line) - span.start_col + 1)
                padding = " " * (span.start_col - 1)
                lines.append(
                    f"  {self._c(_BLUE)}     |{self._c(_RESET)} "
                    f"{padding}{self._c(color)}{'^' * caret_len}{self._c(_RESET)}"
                )

            if label.message:
                lines.append(
                    f"  {self._c(_BLUE)}     |{self._c(_RESET)}   "
                    f"{self._c(color)}{label.message}{self._c(_RESET)}"
                )

        for note in diag.notes:
            lines.append(f"  {self._c(_BLUE)}={self._c(_RESET)} note: {note}")

        for suggestion in diag.suggestions:
            lines.append(
                f"  {self._c(_BLUE)}try:{self._c(_RESET)} {suggestion.replacement}"
            )

        return "\n".join(lines)


class CompileError(Exception):
    """Error carrying one or more diagnostics."""

    def __init__(self, diagnostics: list[Diagnostic]) -> None:
        self.diagnostics = diagnostics
        messages = [d.message for d in diagnostics]
        super().__init__(f"{len(diagnostics)} error(s): {'; '.join(messages)}")


class _IssueBase:
    """Shared behavior of the error variants."""

    def to_diagnostic(self) -> Diagnostic:
        return diagnostic_for(self)


# ── Lexer errors ─────────────────────────────────────────────────


@dataclass(frozen=True)
class UnterminatedString(_IssueBase):
    span: Span

    code: ClassVar[str] = "E101"

    @property
    def message(self) -> str:
        return "unterminated string literal"


@dataclass(frozen=True)
class InvalidNumber(_IssueBase):
    text: str
    span: Span

    code: ClassVar[str] = "E102"

    @property
    def message(self) -> str:
        return f"invalid number '{self.text}': does not fit a 32-bit integer"


@dataclass(frozen=True)
class UnexpectedCharacter(_IssueBase):
    char: str
    span: Span

    code: ClassVar[str] = "E103"

    @property
    def message(self) -> str:
        return f"unexpected character {self.char!r}"


LexIssue = Union[UnterminatedString, InvalidNumber, UnexpectedCharacter]


# ── Parser errors ────────────────────────────────────────────────


@dataclass(frozen=True)
class ExpectedKeyword(_IssueBase):
    expected: str
    found: Token

    code: ClassVar[str] = "E201"

    @property
    def span(self) -> Span:
        return self.found.span

    @property
    def message(self) -> str:
        return f"expected keyword '{self.expected}', found {self.found.describe()}"


@dataclass(frozen=True)
class ExpectedName(_IssueBase):
    found: Token

    code: ClassVar[str] = "E202"

    @property
    def span(self) -> Span:
        return self.found.span

    @property
    def message(self) -> str:
        return f"expected quest name, found {self.found.describe()}"


@dataclass(frozen=True)
class ExpectedToken(_IssueBase):
    expected: TokenKind
    found: Token

    code: ClassVar[str] = "E203"

    @property
    def span(self) -> Span:
        return self.found.span

    @property
    def message(self) -> str:
        text = TOKEN_TEXT.get(self.expected, self.expected.name)
        return f"expected '{text}', found {self.found.describe()}"


@dataclass(frozen=True)
class UnknownKey(_IssueBase):
    text: str
    span: Span

    code: ClassVar[str] = "E204"

    @property
    def message(self) -> str:
        return f"unknown property key '{self.text}'"


@dataclass(frozen=True)
class TypeMismatch(_IssueBase):
    key: str
    expected_kind: ValueKind
    found: Token

    code: ClassVar[str] = "E205"

    @property
    def span(self) -> Span:
        return self.found.span

    @property
    def found_kind(self) -> ValueKind | None:
        return value_kind(self.found)

    @property
    def message(self) -> str:
        return (
            f"type mismatch for '{self.key}': expected {self.expected_kind.value}, "
            f"found {self.found.describe()}"
        )


@dataclass(frozen=True)
class TrailingInput(_IssueBase):
    found: Token

    code: ClassVar[str] = "E206"

    @property
    def span(self) -> Span:
        return self.found.span

    @property
    def message(self) -> str:
        return f"unexpected {self.found.describe()} after the quest definition"


@dataclass(frozen=True)
class UnexpectedEndOfInput(_IssueBase):
    expected: str
    span: Span

    code: ClassVar[str] = "E207"

    @property
    def message(self) -> str:
        return f"unexpected end of input, expected {self.expected}"


ParseIssue = Union[
    ExpectedKeyword,
    ExpectedName,
    ExpectedToken,
    UnknownKey,
    TypeMismatch,
    TrailingInput,
    UnexpectedEndOfInput,
]

Issue = Union[LexIssue, ParseIssue]


def diagnostic_for(issue: Issue) -> Diagnostic:
    """Build the renderable diagnostic for an error variant."""
    label = ""
    notes: list[str] = []
    suggestions: list[Suggestion] = []

    match issue:
        case UnterminatedString():
            label = "string starts here"
        case InvalidNumber():
            notes.append("integers range from -2147483648 to 2147483647")
        case UnexpectedCharacter():
            label = "not valid here"
        case ExpectedKeyword(expected=expected):
            label = f"expected '{expected}'"
        case ExpectedName():
            label = "expected an identifier or a string"
        case ExpectedToken(expected=expected):
            label = f"expected '{TOKEN_TEXT.get(expected, expected.name)}'"
        case UnknownKey(text=text):
            label = "unknown key"
            notes.append(f"valid keys are {', '.join(sorted(PROPERTY_KINDS))}")
            for match_ in difflib.get_close_matches(text, list(PROPERTY_KINDS), n=1):
                suggestions.append(Suggestion(f"did you mean '{match_}'?", match_))
        case TypeMismatch(key=key, expected_kind=expected_kind):
            label = f"expected {expected_kind.value}"
            notes.append(f"'{key}' values must be of type {expected_kind.value}")
        case TrailingInput():
            label = "nothing may follow the closing '}'"
        case UnexpectedEndOfInput(expected=expected):
            label = f"expected {expected}"

    return Diagnostic(
        severity=Severity.ERROR,
        code=issue.code,
        message=issue.message,
        labels=[DiagnosticLabel(span=issue.span, message=label)],
        suggestions=suggestions,
        notes=notes,
    )


class QuestError(CompileError):
    """A failed tokenize or parse, carrying the typed error variant."""

    def __init__(self, issue: Issue) -> None:
        self.issue = issue
        super().__init__([issue.to_diagnostic()])

    def __str__(self) -> str:
        return f"{self.issue.span}: {self.issue.message}"


class LexError(QuestError):
    """Raised by the lexer; ``issue`` is a LexIssue variant."""

    issue: LexIssue


class ParseError(QuestError):
    """Raised by the parser; ``issue`` is a ParseIssue variant."""

    issue: ParseIssue
