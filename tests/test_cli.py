"""Tests for the quest CLI, config, and error rendering."""

from __future__ import annotations

from pathlib import Path

import pytest
from click.testing import CliRunner

from questlang.ast_nodes import ValueKind
from questlang.cli import main
from questlang.config import QuestConfig, find_config, load_config, resolve_config
from questlang.errors import (
    CompileError,
    Diagnostic,
    DiagnosticLabel,
    DiagnosticRenderer,
    ExpectedKeyword,
    ExpectedName,
    ExpectedToken,
    InvalidNumber,
    ParseError,
    Severity,
    Suggestion,
    TrailingInput,
    TypeMismatch,
    UnexpectedCharacter,
    UnexpectedEndOfInput,
    UnknownKey,
    UnterminatedString,
)
from questlang.parser import parse_source
from questlang.source import SourceFile, Span
from questlang.tokens import Token, TokenKind

LOST_SWORD = (
    'quest "The Lost Sword" {\n'
    "    active: true,\n"
    "    reward: 500,\n"
    '    step: "Talk to the blacksmith",\n'
    '    step: "Find the cave entrance",\n'
    '    step: "Defeat the skeleton king"\n'
    "}\n"
)


@pytest.fixture
def runner():
    return CliRunner()


@pytest.fixture
def tmp_quests(tmp_path):
    """A directory holding one canonical and one messy quest file."""
    (tmp_path / "quest.toml").write_text(
        "[format]\nindent = 4\n[output]\ncolor = false\n"
    )
    (tmp_path / "sword.quest").write_text(LOST_SWORD)
    sub = tmp_path / "side"
    sub.mkdir()
    (sub / "bob.quest").write_text('quest Bob{reward:5 step:"x"}')
    return tmp_path


# --- CLI tests ---


class TestCLI:
    def test_help(self, runner):
        result = runner.invoke(main, ["--help"])
        assert result.exit_code == 0
        for command in ["parse", "check", "format", "tokens", "view", "credits", "lsp"]:
            assert command in result.output

    def test_version(self, runner):
        result = runner.invoke(main, ["--version"])
        assert result.exit_code == 0
        assert "0.1.0" in result.output

    def test_credits(self, runner):
        result = runner.invoke(main, ["credits"])
        assert result.exit_code == 0
        assert "Quest Parser v0.1.0" in result.output
        assert "RPG Quests" in result.output

    def test_parse_prints_fields(self, runner, tmp_quests):
        result = runner.invoke(main, ["parse", "--file", str(tmp_quests / "sword.quest")])
        assert result.exit_code == 0
        assert "name:   The Lost Sword" in result.output
        assert "active: true" in result.output
        assert "reward: 500" in result.output
        assert "  1. Talk to the blacksmith" in result.output
        assert "  3. Defeat the skeleton king" in result.output

    def test_parse_failure(self, runner, tmp_quests):
        bad = tmp_quests / "bad.quest"
        bad.write_text('quest Bob { reward: "oops" }\n')
        result = runner.invoke(main, ["parse", "-f", str(bad)])
        assert result.exit_code == 1
        assert "error[E205]" in result.output
        assert "expected integer" in result.output
        assert "bad.quest:1:21" in result.output

    def test_parse_requires_file(self, runner):
        result = runner.invoke(main, ["parse"])
        assert result.exit_code != 0

    def test_check_directory(self, runner, tmp_quests):
        result = runner.invoke(main, ["check", str(tmp_quests)])
        assert result.exit_code == 0
        assert "checked 2 file(s)" in result.output

    def test_check_reports_failures(self, runner, tmp_quests):
        (tmp_quests / "broken.quest").write_text("quest Broken {")
        result = runner.invoke(main, ["check", str(tmp_quests)])
        assert result.exit_code == 1
        assert "E207" in result.output
        assert "1 failed" in result.output

    def test_check_empty_directory(self, runner, tmp_path):
        result = runner.invoke(main, ["check", str(tmp_path)])
        assert result.exit_code == 0
        assert "no .quest files found" in result.output

    def test_format_check(self, runner, tmp_quests):
        result = runner.invoke(main, ["format", "--check", str(tmp_quests)])
        assert result.exit_code == 1
        assert "would reformat" in result.output
        assert "bob.quest" in result.output
        assert "sword.quest" not in result.output

    def test_format_rewrites(self, runner, tmp_quests):
        result = runner.invoke(main, ["format", str(tmp_quests)])
        assert result.exit_code == 0
        bob = (tmp_quests / "side" / "bob.quest").read_text()
        assert bob == 'quest Bob {\n    reward: 5,\n    step: "x"\n}\n'
        assert (tmp_quests / "sword.quest").read_text() == LOST_SWORD

    def test_format_uses_config(self, runner, tmp_quests):
        (tmp_quests / "quest.toml").write_text(
            "[format]\nindent = 2\ntrailing_comma = true\n"
        )
        runner.invoke(main, ["format", str(tmp_quests / "side" / "bob.quest")])
        bob = (tmp_quests / "side" / "bob.quest").read_text()
        assert bob == 'quest Bob {\n  reward: 5,\n  step: "x",\n}\n'

    def test_format_stdin(self, runner, tmp_quests):
        result = runner.invoke(
            main, ["format", "--stdin", str(tmp_quests)], input="quest A{reward:1}",
        )
        assert result.exit_code == 0
        assert result.output == "quest A {\n    reward: 1\n}\n"

    def test_format_stdin_error(self, runner, tmp_quests):
        result = runner.invoke(
            main, ["format", "--stdin", str(tmp_quests)], input="quest A{reward:}",
        )
        assert result.exit_code == 1
        assert "<stdin>" in result.output

    def test_tokens(self, runner, tmp_quests):
        result = runner.invoke(main, ["tokens", str(tmp_quests / "side" / "bob.quest")])
        assert result.exit_code == 0
        assert "QUEST" in result.output
        assert "INTEGER_LIT" in result.output
        assert "EOF" in result.output

    def test_tokens_lex_error(self, runner, tmp_quests):
        bad = tmp_quests / "bad.quest"
        bad.write_text("quest Bob { reward: 1; }")
        result = runner.invoke(main, ["tokens", str(bad)])
        assert result.exit_code == 1
        assert "E103" in result.output

    def test_view(self, runner, tmp_quests):
        result = runner.invoke(main, ["view", str(tmp_quests / "sword.quest")])
        assert result.exit_code == 0
        assert "Quest" in result.output
        assert "name: 'The Lost Sword'" in result.output
        assert "'Find the cave entrance'" in result.output

    def test_view_source(self, runner, tmp_quests):
        result = runner.invoke(
            main, ["view", "--source", str(tmp_quests / "side" / "bob.quest")],
        )
        assert result.exit_code == 0
        # color = false in quest.toml
        assert result.output == 'quest Bob {\n    reward: 5,\n    step: "x"\n}\n'

    def test_parse_invalid_utf8(self, runner, tmp_quests):
        bad = tmp_quests / "latin.quest"
        bad.write_bytes(b'quest Bob { step: "caf\xe9" }')
        result = runner.invoke(main, ["parse", "-f", str(bad)])
        assert result.exit_code == 1
        assert "error: cannot read" in result.output
        assert "latin.quest" in result.output

    def test_check_counts_unreadable_file(self, runner, tmp_quests):
        (tmp_quests / "latin.quest").write_bytes(b"\xff\xfe")
        result = runner.invoke(main, ["check", str(tmp_quests)])
        assert result.exit_code == 1
        assert "error: cannot read" in result.output
        assert "checked 3 file(s), 1 failed" in result.output

    def test_format_skips_unreadable_file(self, runner, tmp_quests):
        (tmp_quests / "latin.quest").write_bytes(b"\xff\xfe")
        result = runner.invoke(main, ["format", str(tmp_quests)])
        assert result.exit_code == 1
        assert "error: cannot read" in result.output
        assert (tmp_quests / "latin.quest").read_bytes() == b"\xff\xfe"
        assert "formatted" in result.output

    def test_tokens_invalid_utf8(self, runner, tmp_quests):
        bad = tmp_quests / "latin.quest"
        bad.write_bytes(b"\xff")
        result = runner.invoke(main, ["tokens", str(bad)])
        assert result.exit_code == 1
        assert "error: cannot read" in result.output

    def test_bad_config(self, runner, tmp_quests):
        (tmp_quests / "quest.toml").write_text("[format]\nindent = 0\n")
        result = runner.invoke(main, ["check", str(tmp_quests)])
        assert result.exit_code == 1
        assert "indent" in result.output

    def test_verbose(self, runner, tmp_quests):
        result = runner.invoke(main, ["-v", "check", str(tmp_quests)])
        assert result.exit_code == 0

    def test_lsp_help(self, runner):
        result = runner.invoke(main, ["lsp", "--help"])
        assert result.exit_code == 0
        assert "language server" in result.output


# --- Config tests ---


class TestConfig:
    def test_load_config(self, tmp_path):
        toml = tmp_path / "quest.toml"
        toml.write_text(
            "[format]\nindent = 2\ntrailing_comma = true\n[output]\ncolor = false\n"
        )
        config = load_config(toml)
        assert config.format.indent == 2
        assert config.format.trailing_comma is True
        assert config.output.color is False

    def test_load_config_defaults(self, tmp_path):
        toml = tmp_path / "quest.toml"
        toml.write_text("")
        config = load_config(toml)
        assert config == QuestConfig()
        assert config.format.indent == 4
        assert config.output.color is True

    def test_invalid_indent(self, tmp_path):
        toml = tmp_path / "quest.toml"
        toml.write_text('[format]\nindent = "wide"\n')
        with pytest.raises(ValueError):
            load_config(toml)

    def test_find_config(self, tmp_path):
        (tmp_path / "quest.toml").write_text("")
        nested = tmp_path / "a" / "b"
        nested.mkdir(parents=True)
        assert find_config(nested) == (tmp_path / "quest.toml").resolve()

    def test_find_config_from_file(self, tmp_path):
        (tmp_path / "quest.toml").write_text("")
        quest_file = tmp_path / "x.quest"
        quest_file.write_text("quest X {}")
        assert find_config(quest_file).name == "quest.toml"

    def test_resolve_config_without_file(self, tmp_path):
        assert resolve_config(tmp_path) == QuestConfig()

    def test_resolve_config_with_file(self, tmp_path):
        (tmp_path / "quest.toml").write_text("[output]\ncolor = false\n")
        assert resolve_config(tmp_path).output.color is False


# --- Diagnostic tests ---


class TestDiagnostics:
    def test_render_error(self):
        span = Span("main.quest", 3, 13, 3, 18)
        diag = Diagnostic(
            severity=Severity.ERROR,
            code="E204",
            message="unknown property key 'rewrd'",
            labels=[DiagnosticLabel(span=span, message="unknown key")],
            suggestions=[Suggestion("did you mean 'reward'?", "reward")],
            notes=["valid keys are active, reward, step"],
        )
        output = DiagnosticRenderer(color=False).render(diag)
        assert "error[E204]" in output
        assert "main.quest:3:13" in output
        assert "note: valid keys" in output
        assert "try: reward" in output

    def test_render_warning(self):
        diag = Diagnostic(Severity.WARNING, "W001", "something odd")
        output = DiagnosticRenderer(color=False).render(diag)
        assert output == "warning[W001]: something odd"

    def test_color(self):
        diag = Diagnostic(Severity.ERROR, "E001", "boom")
        assert "\033[1;31m" in DiagnosticRenderer(color=True).render(diag)
        assert "\033[" not in DiagnosticRenderer(color=False).render(diag)

    def test_compile_error(self):
        diags = [
            Diagnostic(Severity.ERROR, "E001", "first error"),
            Diagnostic(Severity.ERROR, "E002", "second error"),
        ]
        err = CompileError(diags)
        assert len(err.diagnostics) == 2
        assert "2 error(s)" in str(err)

    def test_source_line_and_carets(self):
        source = 'quest Bob { reward: "oops" }\n'
        with pytest.raises(ParseError) as exc_info:
            parse_source(source, "bob.quest")
        renderer = DiagnosticRenderer(color=False)
        renderer.add_source("bob.quest", source)
        output = renderer.render(exc_info.value.diagnostics[0])
        lines = output.splitlines()
        assert lines[0] == (
            "error[E205]: type mismatch for 'reward': expected integer, "
            'found string "oops"'
        )
        source_line = next(line for line in lines if "quest Bob" in line)
        caret_line = lines[lines.index(source_line) + 1]
        assert caret_line.index("^") == source_line.index('"oops"')
        assert caret_line.count("^") == len('"oops"')
        assert "note: 'reward' values must be of type integer" in output

    def test_source_line_from_file(self, tmp_path):
        quest_file = tmp_path / "typo.quest"
        quest_file.write_text("quest Bob {\n  rewrd: 1\n}\n")
        with pytest.raises(ParseError) as exc_info:
            parse_source(quest_file.read_text(), str(quest_file))
        output = DiagnosticRenderer(color=False).render(exc_info.value.diagnostics[0])
        assert "rewrd: 1" in output
        assert "^^^^^" in output
        assert "try: reward" in output

    def test_variant_to_diagnostic(self):
        with pytest.raises(ParseError) as exc_info:
            parse_source("quest Bob { rewrd: 1 }", "bob.quest")
        issue = exc_info.value.issue
        diag = issue.to_diagnostic()
        assert diag == exc_info.value.diagnostics[0]
        assert diag.code == "E204"
        assert diag.labels[0].span == issue.span
        assert diag.suggestions[0].replacement == "reward"

    def test_every_variant_has_to_diagnostic(self):
        span = Span("t.quest", 1, 1, 1, 1)
        tok = Token(TokenKind.EOF, "", span)
        issues = [
            UnterminatedString(span),
            InvalidNumber("99999999999", span),
            UnexpectedCharacter("@", span),
            ExpectedKeyword("quest", tok),
            ExpectedName(tok),
            ExpectedToken(TokenKind.LBRACE, tok),
            UnknownKey("x", span),
            TypeMismatch("reward", ValueKind.INTEGER, tok),
            TrailingInput(tok),
            UnexpectedEndOfInput("'}'", span),
        ]
        codes = [issue.to_diagnostic().code for issue in issues]
        assert codes == [
            "E101", "E102", "E103",
            "E201", "E202", "E203", "E204", "E205", "E206", "E207",
        ]

    def test_missing_file_renders_without_source(self):
        with pytest.raises(ParseError) as exc_info:
            parse_source("quest", "nowhere.quest")
        output = DiagnosticRenderer(color=False).render(exc_info.value.diagnostics[0])
        assert "error[E207]" in output
        assert "nowhere.quest:1:6" in output


# --- Source tests ---


class TestSource:
    def test_source_file(self, tmp_path):
        f = tmp_path / "test.quest"
        f.write_text("line one\nline two\nline three\n")
        sf = SourceFile(f)
        assert sf.line_at(1) == "line one"
        assert sf.line_at(3) == "line three"
        assert sf.line_at(0) is None
        assert sf.line_at(99) is None

    def test_in_memory_content(self):
        sf = SourceFile(Path("virtual.quest"), content="a\nb")
        assert sf.line_at(2) == "b"

    def test_span_str(self):
        assert str(Span("file.quest", 10, 5, 10, 20)) == "file.quest:10:5"
