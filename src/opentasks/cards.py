"""Structured output blocks passed to ``OutputBuilder.add_card``.

A card is a titled block that renders its own plain-text body. Builders
treat cards like sections: verbose collects them, stream emits them
immediately, and quiet and summary drop them.
"""

from __future__ import annotations

import json
from collections.abc import Mapping, Sequence
from dataclasses import dataclass, field
from typing import Any, Protocol, runtime_checkable


@runtime_checkable
class Card(Protocol):
    title: str

    def render(self) -> str: ...


def _format_value(value: Any) -> str:
    if isinstance(value, (dict, list, tuple)):
        return json.dumps(value, indent=2, ensure_ascii=False, default=str)
    return str(value)


@dataclass
class KeyValueCard:
    """``key: value`` lines; ``None`` values are skipped."""

    title: str
    items: Mapping[str, Any]

    def render(self) -> str:
        return "\n".join(
            f"{key}: {_format_value(value)}" for key, value in self.items.items() if value is not None
        )


@dataclass
class ListCard:
    title: str
    items: Sequence[str]
    ordered: bool = False

    def render(self) -> str:
        return "\n".join(
            f"{i}. {item}" if self.ordered else f"• {item}" for i, item in enumerate(self.items, 1)
        )


@dataclass
class TableCard:
    """Column-aligned rows under a header. Short rows are padded with blanks."""

    title: str
    headers: Sequence[str]
    rows: Sequence[Sequence[Any]]
    footer: str | None = None

    def render(self) -> str:
        width = max([len(self.headers), *(len(row) for row in self.rows)])
        cells = [[str(c) for c in self.headers]] + [[str(c) for c in row] for row in self.rows]
        cells = [row + [""] * (width - len(row)) for row in cells]
        widths = [max(len(row[i]) for row in cells) for i in range(width)]

        def line(row: list[str]) -> str:
            return " │ ".join(cell.ljust(w) for cell, w in zip(row, widths)).rstrip()

        lines = [line(cells[0]), "─┼─".join("─" * w for w in widths)]
        lines.extend(line(row) for row in cells[1:])
        if self.footer:
            lines.extend(["", self.footer])
        return "\n".join(lines)


@dataclass
class TreeNode:
    label: str
    children: list[TreeNode] = field(default_factory=list)
    icon: str | None = None


@dataclass
class TreeCard:
    title: str
    root: TreeNode

    def render(self) -> str:
        lines: list[str] = []

        def walk(node: TreeNode, prefix: str, last: bool) -> None:
            icon = f"{node.icon} " if node.icon else ""
            lines.append(f"{prefix}{'└── ' if last else '├── '}{icon}{node.label}")
            child_prefix = prefix + ("    " if last else "│   ")
            for i, child in enumerate(node.children):
                walk(child, child_prefix, i == len(node.children) - 1)

        walk(self.root, "", True)
        return "\n".join(lines)


@dataclass
class MessageCard:
    title: str
    message: str

    def render(self) -> str:
        return self.message
