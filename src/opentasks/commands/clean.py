"""Remove run directories older than a retention window."""

from __future__ import annotations

import asyncio
import logging
import shutil
from collections.abc import Sequence
from dataclasses import dataclass, field
from datetime import datetime, timedelta
from pathlib import Path
from typing import TYPE_CHECKING, Any

from opentasks.errors import ValidationError

if TYPE_CHECKING:
    from opentasks.workflow.base import Context, Pending

logger = logging.getLogger(__name__)


def format_size(size: int) -> str:
    units = ["B", "KB", "MB", "GB", "TB"]
    value = float(size)
    for unit in units:
        if value < 1024 or unit == units[-1]:
            return f"{int(value)} {unit}" if unit == "B" else f"{value:.2f} {unit}"
        value /= 1024
    return f"{size} B"


def _dir_size(path: Path) -> int:
    return sum(f.stat().st_size for f in path.rglob("*") if f.is_file())


@dataclass
class CleanResult:
    removed: list[str] = field(default_factory=list)
    freed: int = 0
    scanned: int = 0


@dataclass
class CleanCommand:
    """Delete run directories under ``output_root`` last modified before the cutoff.

    The directory of the context running this command is never removed.
    """

    output_root: Path
    days: int = 7
    now: datetime | None = None

    async def execute(self, context: Context, args: Sequence[Any]) -> list[Pending]:
        if self.days < 0:
            raise ValidationError("Retention days must be a non-negative number")
        cutoff = (self.now or datetime.now()) - timedelta(days=self.days)
        keep = getattr(context, "run_dir", None)
        result = await asyncio.to_thread(self._clean, cutoff, keep)

        noun = "directory" if len(result.removed) == 1 else "directories"
        message = "\n".join(
            [
                f"Cleaned {len(result.removed)} old run {noun}",
                f"Directories scanned: {result.scanned}",
                f"Retention: {self.days} days",
                f"Space freed: {format_size(result.freed)}",
                f"Cutoff date: {cutoff.date().isoformat()}",
            ]
        )
        return [(message, [])]

    def _clean(self, cutoff: datetime, keep: Path | None) -> CleanResult:
        result = CleanResult()
        if not self.output_root.is_dir():
            return result
        for entry in sorted(self.output_root.iterdir()):
            if not entry.is_dir() or (keep is not None and entry == keep):
                continue
            result.scanned += 1
            try:
                modified = datetime.fromtimestamp(entry.stat().st_mtime)
                if modified >= cutoff:
                    continue
                size = _dir_size(entry)
                shutil.rmtree(entry)
            except OSError as e:
                logger.warning("Could not remove %s: %s", entry, e)
                continue
            result.removed.append(entry.name)
            result.freed += size
            logger.info("Removed run directory %s (%s)", entry.name, format_size(size))
        return result
