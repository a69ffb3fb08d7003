"""Pretty-printer producing canonical quest source text.

Properties are written in a fixed order (active, reward, then the steps in
their original order). Scalars equal to their defaults are omitted, so the
output re-parses to an equal Quest.
"""

from __future__ import annotations

from questlang.ast_nodes import Quest
from questlang.tokens import KEYWORDS


class QuestFormatter:
    """Format a parsed Quest back to canonical source text."""

    def __init__(self, *, indent: int = 4, trailing_comma: bool = False) -> None:
        if indent < 1:
            raise ValueError(f"indent must be positive, got {indent}")
        self.indent = indent
        self.trailing_comma = trailing_comma

    def format(self, quest: Quest) -> str:
        """Format a quest to canonical source text."""
        header = f"quest {self._format_name(quest.name)}"
        properties = self._format_properties(quest)
        if not properties:
            return f"{header} {{}}\n"

        pad = " " * self.indent
        lines = [f"{header} {{"]
        for i, prop in enumerate(properties):
            last = i == len(properties) - 1
            sep = "," if not last or self.trailing_comma else ""
            lines.append(f"{pad}{prop}{sep}")
        lines.append("}")
        return "\n".join(lines) + "\n"

    def _format_properties(self, quest: Quest) -> list[str]:
        props: list[str] = []
        if quest.active:
            props.append("active: true")
        if quest.reward != 0:
            props.append(f"reward: {quest.reward}")
        for step in quest.steps:
            props.append(f"step: {self._quote(step)}")
        return props

    @staticmethod
    def _format_name(name: str) -> str:
        if is_bare_name(name):
            return name
        return QuestFormatter._quote(name)

    @staticmethod
    def _quote(text: str) -> str:
        if '"' in text:
            raise ValueError(f"cannot quote text containing '\"': {text!r}")
        return f'"{text}"'


def is_bare_name(name: str) -> bool:
    """Whether a quest name can be written without quotes."""
    if not name or not name[0].isalpha() or name in KEYWORDS:
        return False
    return all(c.isalnum() or c == "_" for c in name)
