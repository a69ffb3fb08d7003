"""Quest Language Server — pygls-based LSP for .quest files.

Provides diagnostics, hover, completion, document symbols and formatting
via stdio transport.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, field

from lsprotocol import types as lsp
from pygls.lsp.server import LanguageServer

from questlang import __version__
from questlang.ast_nodes import PROPERTY_KINDS, Quest
from questlang.errors import QuestError, Severity
from questlang.formatter import QuestFormatter
from questlang.lexer import tokenize
from questlang.parser import parse
from questlang.source import Span
from questlang.tokens import KEYWORDS, Token, TokenKind

logger = logging.getLogger(__name__)

# ── Conversion helpers ────────────────────────────────────────────

_SEVERITY_MAP = {
    Severity.ERROR: lsp.DiagnosticSeverity.Error,
    Severity.WARNING: lsp.DiagnosticSeverity.Warning,
    Severity.NOTE: lsp.DiagnosticSeverity.Information,
}

_KEY_DOCS = {
    "active": "**active**: `boolean`: whether the quest is currently active (default `false`).",
    "reward": "**reward**: `integer`: reward granted on completion (default `0`).",
    "step": "**step**: `string`: one quest step; repeat the key to add steps in order.",
    "quest": "**quest** `Name { ... }`: starts a quest definition.",
}


def span_to_range(span: Span) -> lsp.Range:
    """Convert a 1-indexed Span to a 0-indexed LSP Range."""
    return lsp.Range(
        start=lsp.Position(line=span.start_line - 1, character=span.start_col - 1),
        end=lsp.Position(line=span.end_line - 1, character=span.end_col),
    )


# ── Per-document state ────────────────────────────────────────────


@dataclass
class DocumentState:
    """Cached analysis results for a single open document."""

    source: str = ""
    tokens: list[Token] = field(default_factory=list)
    quest: Quest | None = None
    diagnostics: list[lsp.Diagnostic] = field(default_factory=list)


server = LanguageServer(
    "quest-lsp", __version__,
    text_document_sync_kind=lsp.TextDocumentSyncKind.Full,
)
_state: dict[str, DocumentState] = {}


def _compile_diag(err: QuestError) -> lsp.Diagnostic:
    """Convert a QuestError to an LSP Diagnostic."""
    diag = err.diagnostics[0]
    return lsp.Diagnostic(
        range=span_to_range(err.issue.span),
        severity=_SEVERITY_MAP[diag.severity],
        source="quest",
        code=diag.code,
        message=f"[{diag.code}] {diag.message}",
    )


def _analyze(uri: str, source: str) -> DocumentState:
    """Run Lexer → Parser, cache results, return state."""
    ds = DocumentState(source=source)
    try:
        ds.tokens = tokenize(source, uri)
        ds.quest = parse(ds.tokens, uri)
    except QuestError as e:
        ds.diagnostics = [_compile_diag(e)]
    except Exception as e:
        logger.exception("analysis of %s failed", uri)
        ds.diagnostics = [lsp.Diagnostic(
            range=lsp.Range(start=lsp.Position(0, 0), end=lsp.Position(0, 0)),
            severity=lsp.DiagnosticSeverity.Error, source="quest",
            message=f"[internal] {e}",
        )]
    _state[uri] = ds
    return ds


def _get_word_at(source: str, line: int, character: int) -> str:
    """Extract the word at the given 0-indexed position."""
    lines = source.splitlines()
    if line < 0 or line >= len(lines):
        return ""
    text = lines[line]
    if character < 0 or character >= len(text):
        # Cursor may sit right after the word
        if 0 < character <= len(text):
            character -= 1
        else:
            return ""

    start = character
    while start > 0 and (text[start - 1].isalnum() or text[start - 1] == "_"):
        start -= 1
    end = character
    while end < len(text) and (text[end].isalnum() or text[end] == "_"):
        end += 1
    return text[start:end]


def _property_symbols(tokens: list[Token]) -> list[lsp.DocumentSymbol]:
    """One symbol per `key: value` triple in a successfully parsed stream."""
    symbols: list[lsp.DocumentSymbol] = []
    for key, colon, value in zip(tokens, tokens[1:], tokens[2:]):
        if (key.kind is TokenKind.IDENTIFIER and key.value in PROPERTY_KINDS
                and colon.kind is TokenKind.COLON):
            detail = f'"{value.value}"' if value.kind is TokenKind.STRING_LIT else value.value
            symbols.append(lsp.DocumentSymbol(
                name=key.value,
                detail=detail,
                kind=lsp.SymbolKind.Property,
                range=span_to_range(Span(
                    key.span.file,
                    key.span.start_line, key.span.start_col,
                    value.span.end_line, value.span.end_col,
                )),
                selection_range=span_to_range(key.span),
            ))
    return symbols


# ── LSP Feature Handlers ─────────────────────────────────────────


@server.feature(lsp.TEXT_DOCUMENT_DID_OPEN)
def did_open(params: lsp.DidOpenTextDocumentParams) -> None:
    uri = params.text_document.uri
    ds = _analyze(uri, params.text_document.text)
    server.text_document_publish_diagnostics(lsp.PublishDiagnosticsParams(
        uri=uri,
        diagnostics=ds.diagnostics,
    ))


@server.feature(lsp.TEXT_DOCUMENT_DID_CHANGE)
def did_change(params: lsp.DidChangeTextDocumentParams) -> None:
    uri = params.text_document.uri
    # Full sync: the last change holds the whole text
    source = params.content_changes[-1].text if params.content_changes else ""
    ds = _analyze(uri, source)
    server.text_document_publish_diagnostics(lsp.PublishDiagnosticsParams(
        uri=uri,
        diagnostics=ds.diagnostics,
    ))


@server.feature(lsp.TEXT_DOCUMENT_DID_CLOSE)
def did_close(params: lsp.DidCloseTextDocumentParams) -> None:
    _state.pop(params.text_document.uri, None)


@server.feature(lsp.TEXT_DOCUMENT_HOVER)
def hover(params: lsp.HoverParams) -> lsp.Hover | None:
    ds = _state.get(params.text_document.uri)
    if ds is None:
        return None
    word = _get_word_at(ds.source, params.position.line, params.position.character)
    doc = _KEY_DOCS.get(word)
    if doc is None:
        return None
    return lsp.Hover(contents=lsp.MarkupContent(
        kind=lsp.MarkupKind.Markdown,
        value=doc,
    ))


@server.feature(lsp.TEXT_DOCUMENT_COMPLETION)
def completion(params: lsp.CompletionParams) -> lsp.CompletionList:
    items = [
        lsp.CompletionItem(
            label=key,
            kind=lsp.CompletionItemKind.Property,
            detail=kind.value,
            insert_text=f"{key}: ",
            insert_text_format=lsp.InsertTextFormat.PlainText,
        )
        for key, kind in sorted(PROPERTY_KINDS.items())
    ]
    items.extend(
        lsp.CompletionItem(label=kw, kind=lsp.CompletionItemKind.Keyword)
        for kw in sorted(KEYWORDS)
    )
    return lsp.CompletionList(is_incomplete=False, items=items)


@server.feature(lsp.TEXT_DOCUMENT_DOCUMENT_SYMBOL)
def document_symbol(params: lsp.DocumentSymbolParams) -> list[lsp.DocumentSymbol]:
    ds = _state.get(params.text_document.uri)
    if ds is None or ds.quest is None or ds.quest.span is None:
        return []
    quest_range = span_to_range(ds.quest.span)
    return [lsp.DocumentSymbol(
        name=ds.quest.name,
        kind=lsp.SymbolKind.Class,
        range=quest_range,
        selection_range=quest_range,
        children=_property_symbols(ds.tokens),
    )]


@server.feature(lsp.TEXT_DOCUMENT_FORMATTING)
def formatting(params: lsp.DocumentFormattingParams) -> list[lsp.TextEdit] | None:
    ds = _state.get(params.text_document.uri)
    if ds is None or ds.quest is None:
        return None

    formatted = QuestFormatter(indent=max(1, params.options.tab_size)).format(ds.quest)
    if formatted == ds.source:
        return None

    # Replace entire document
    lines = ds.source.splitlines()
    end_line = len(lines)
    end_char = len(lines[-1]) if lines else 0
    return [lsp.TextEdit(
        range=lsp.Range(
            start=lsp.Position(0, 0),
            end=lsp.Position(end_line, end_char),
        ),
        new_text=formatted,
    )]


# ── Entry point ──────────────────────────────────────────────────


def main() -> None:
    """Start the quest language server on stdio."""
    server.start_io()
