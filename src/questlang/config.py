"""TOML config loading for quest.toml."""

from __future__ import annotations

import tomllib
from dataclasses import dataclass, field
from pathlib import Path

CONFIG_NAME = "quest.toml"


@dataclass
class FormatConfig:
    indent: int = 4
    trailing_comma: bool = False


@dataclass
class OutputConfig:
    color: bool = True


@dataclass
class QuestConfig:
    format: FormatConfig = field(default_factory=FormatConfig)
    output: OutputConfig = field(default_factory=OutputConfig)


def find_config(start_path: Path | None = None) -> Path:
    """Walk up directories to find quest.toml. Raises FileNotFoundError."""
    path = (start_path or Path.cwd()).resolve()
    if path.is_file():
        path = path.parent
    while True:
        candidate = path / CONFIG_NAME
        if candidate.exists():
            return candidate
        parent = path.parent
        if parent == path:
            raise FileNotFoundError(f"No {CONFIG_NAME} found in any parent directory")
        path = parent


def load_config(path: Path) -> QuestConfig:
    """Parse a quest.toml file into a QuestConfig."""
    with open(path, "rb") as f:
        data = tomllib.load(f)

    config = QuestConfig()

    if "format" in data:
        fmt = data["format"]
        indent = fmt.get("indent", 4)
        if not isinstance(indent, int) or isinstance(indent, bool) or indent < 1:
            raise ValueError(f"{path}: format.indent must be a positive integer")
        config.format = FormatConfig(
            indent=indent,
            trailing_comma=bool(fmt.get("trailing_comma", False)),
        )

    if "output" in data:
        out = data["output"]
        config.output = OutputConfig(color=bool(out.get("color", True)))

    return config


def resolve_config(start_path: Path | None = None) -> QuestConfig:
    """Load the nearest quest.toml, or the defaults when there is none."""
    try:
        return load_config(find_config(start_path))
    except FileNotFoundError:
        return QuestConfig()
