"""Quest parser CLI."""

from __future__ import annotations

import logging
import sys
from pathlib import Path

import click

from questlang import __version__
from questlang.ast_nodes import Quest
from questlang.config import QuestConfig, resolve_config
from questlang.errors import DiagnosticRenderer, QuestError
from questlang.formatter import QuestFormatter
from questlang.lexer import tokenize
from questlang.parser import parse

logger = logging.getLogger(__name__)

QUEST_SUFFIX = ".quest"


def _load_config(path: Path) -> QuestConfig:
    try:
        return resolve_config(path)
    except (ValueError, OSError) as e:
        click.echo(f"error: {e}", err=True)
        raise SystemExit(1)


def _collect_files(target: Path) -> list[Path]:
    """A single file as-is, or every .quest file under a directory."""
    if target.is_dir():
        files = sorted(target.rglob(f"*{QUEST_SUFFIX}"))
        logger.debug("found %d quest file(s) under %s", len(files), target)
        return files
    return [target]


def _read_source(path: Path) -> str | None:
    try:
        return path.read_text(encoding="utf-8")
    except (OSError, UnicodeDecodeError) as e:
        click.echo(f"error: cannot read {path}: {e}", err=True)
        return None


def _parse_file(
    path: Path, renderer: DiagnosticRenderer, source: str | None = None,
) -> Quest | None:
    """Parse one file, echoing diagnostics on failure."""
    filename = str(path)
    if source is None:
        source = _read_source(path)
        if source is None:
            return None
    renderer.add_source(filename, source)
    logger.debug("parsing %s (%d chars)", filename, len(source))
    try:
        return parse(tokenize(source, filename), filename)
    except QuestError as e:
        for diag in e.diagnostics:
            click.echo(renderer.render(diag), err=True)
        return None


def _print_quest(quest: Quest) -> None:
    click.echo(f"name:   {quest.name}")
    click.echo(f"active: {str(quest.active).lower()}")
    click.echo(f"reward: {quest.reward}")
    if quest.steps:
        click.echo("steps:")
        for i, step in enumerate(quest.steps, start=1):
            click.echo(f"  {i}. {step}")
    else:
        click.echo("steps:  []")


@click.group()
@click.version_option(__version__, prog_name="quest")
@click.option("-v", "--verbose", is_flag=True, help="Log progress to stderr.")
def main(verbose: bool) -> None:
    """Parse and format quest definition files."""
    logging.basicConfig(
        level=logging.DEBUG if verbose else logging.WARNING,
        format="%(levelname)s %(name)s: %(message)s",
    )


@main.command(name="parse")
@click.option(
    "-f", "--file", "file", required=True,
    type=click.Path(exists=True, dir_okay=False, path_type=Path),
    help="Quest file to parse.",
)
def parse_cmd(file: Path) -> None:
    """Parse a quest file and print its fields."""
    config = _load_config(file)
    renderer = DiagnosticRenderer(color=config.output.color)
    quest = _parse_file(file, renderer)
    if quest is None:
        raise SystemExit(1)
    _print_quest(quest)


@main.command()
@click.argument("path", default=".", type=click.Path(exists=True, path_type=Path))
def check(path: Path) -> None:
    """Check that quest files parse, reporting every failure."""
    config = _load_config(path)
    renderer = DiagnosticRenderer(color=config.output.color)
    files = _collect_files(path)
    if not files:
        click.echo("warning: no .quest files found", err=True)
        return

    failed = 0
    for quest_file in files:
        if _parse_file(quest_file, renderer) is None:
            failed += 1

    if failed:
        click.echo(f"checked {len(files)} file(s), {failed} failed", err=True)
        raise SystemExit(1)
    click.echo(f"checked {len(files)} file(s), no errors")


@main.command(name="format")
@click.argument("path", default=".", type=click.Path(exists=True, path_type=Path))
@click.option("--check", is_flag=True, help="Check formatting without modifying files.")
@click.option("--stdin", "use_stdin", is_flag=True, help="Read from stdin, write to stdout.")
def format_cmd(path: Path, check: bool, use_stdin: bool) -> None:
    """Rewrite quest files in canonical form."""
    config = _load_config(path)
    formatter = QuestFormatter(
        indent=config.format.indent,
        trailing_comma=config.format.trailing_comma,
    )
    renderer = DiagnosticRenderer(color=config.output.color)

    if use_stdin:
        source = sys.stdin.read()
        quest = _parse_file(Path("<stdin>"), renderer, source=source)
        if quest is None:
            raise SystemExit(1)
        formatted = formatter.format(quest)
        if check:
            if formatted != source:
                raise SystemExit(1)
        else:
            click.echo(formatted, nl=False)
        return

    files = _collect_files(path)
    if not files:
        click.echo("no .quest files found", err=True)
        return

    needs_formatting = False
    had_errors = False
    for quest_file in files:
        source = _read_source(quest_file)
        if source is None:
            had_errors = True
            continue
        quest = _parse_file(quest_file, renderer, source=source)
        if quest is None:
            had_errors = True
            continue

        formatted = formatter.format(quest)
        if formatted != source:
            if check:
                click.echo(f"would reformat {quest_file}")
                needs_formatting = True
            else:
                quest_file.write_text(formatted, encoding="utf-8")
                click.echo(f"formatted {quest_file}")

    if had_errors or (check and needs_formatting):
        raise SystemExit(1)


@main.command()
@click.argument("file", type=click.Path(exists=True, dir_okay=False, path_type=Path))
def tokens(file: Path) -> None:
    """Dump the token stream of a quest file."""
    source = _read_source(file)
    if source is None:
        raise SystemExit(1)
    filename = str(file)
    try:
        token_list = tokenize(source, filename)
    except QuestError as e:
        renderer = DiagnosticRenderer(color=_load_config(file).output.color)
        renderer.add_source(filename, source)
        for diag in e.diagnostics:
            click.echo(renderer.render(diag), err=True)
        raise SystemExit(1)

    for tok in token_list:
        loc = f"{tok.span.start_line}:{tok.span.start_col}"
        click.echo(f"{loc:>7}  {tok.kind.name:<12} {tok.value!r}")


@main.command()
@click.argument("file", type=click.Path(exists=True, dir_okay=False, path_type=Path))
@click.option("--source", "as_source", is_flag=True, help="Print highlighted canonical source.")
def view(file: Path, as_source: bool) -> None:
    """View the parsed quest of a file."""
    from questlang.highlight import highlight

    config = _load_config(file)
    quest = _parse_file(file, DiagnosticRenderer(color=config.output.color))
    if quest is None:
        raise SystemExit(1)

    if as_source:
        formatter = QuestFormatter(
            indent=config.format.indent,
            trailing_comma=config.format.trailing_comma,
        )
        click.echo(highlight(formatter.format(quest), color=config.output.color), nl=False)
        return

    click.echo("Quest")
    click.echo(f"  name: {quest.name!r}")
    click.echo(f"  active: {quest.active!r}")
    click.echo(f"  reward: {quest.reward!r}")
    if quest.steps:
        click.echo("  steps:")
        for step in quest.steps:
            click.echo(f"    {step!r}")
    else:
        click.echo("  steps: []")


@main.command()
def credits() -> None:
    """Show version and author information."""
    click.echo(f"Quest Parser v{__version__}")
    click.echo("Created by: f1ore vita")
    click.echo("Theme: Custom Language for RPG Quests")


@main.command()
def lsp() -> None:
    """Start the quest language server."""
    from questlang.lsp import main as lsp_main

    lsp_main()
