"""Read files into the context and write stored values back out."""

from __future__ import annotations

import asyncio
from collections.abc import Sequence
from dataclasses import dataclass
from pathlib import Path
from typing import TYPE_CHECKING, Any

from opentasks.errors import NotFoundError, ValidationError, require
from opentasks.workflow import decorators

if TYPE_CHECKING:
    from opentasks.workflow.base import Context, Pending, RefLike


def resolve_path(path: str | Path, cwd: str) -> Path:
    """Expand ``~`` and anchor relative paths at cwd."""
    p = Path(path).expanduser()
    return p if p.is_absolute() else Path(cwd) / p


@dataclass
class ReadCommand:
    """Load a UTF-8 text file relative to the context's cwd."""

    path: str
    token: str | None = None

    async def execute(self, context: Context, args: Sequence[Any]) -> list[Pending]:
        target = resolve_path(self.path, context.cwd)
        if not await asyncio.to_thread(target.is_file):
            raise NotFoundError(f"File not found: {self.path}")
        try:
            content = await asyncio.to_thread(target.read_text, encoding="utf-8")
        except UnicodeDecodeError as e:
            raise ValidationError(f"File is not UTF-8 text: {self.path}") from e
        extra = [decorators.token(self.token)] if self.token else []
        return [(content, extra)]


@dataclass
class WriteCommand:
    """Write a stored value to a file; the stored result is the absolute path."""

    path: str
    source: RefLike

    async def execute(self, context: Context, args: Sequence[Any]) -> list[Pending]:
        content = require(await context.get(self.source), self.source, "Content reference")
        target = resolve_path(self.path, context.cwd)
        await asyncio.to_thread(self._write, target, str(content))
        return [(str(target), [])]

    @staticmethod
    def _write(target: Path, content: str) -> None:
        target.parent.mkdir(parents=True, exist_ok=True)
        target.write_text(content, encoding="utf-8")
