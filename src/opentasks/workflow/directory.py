"""Persisted context — one file per Reference under a per-run directory.

Layout:
    {output_root}/
    └── 20261019T142501-my-task/          # one directory per invocation
        ├── 20261019T142501-123-greeting.txt
        └── 20261019T142502-004-<uuid>.txt

Files whose Reference carries transform history start with a YAML
front-matter block. Reads are served from the in-process index; the
directory is output, not a cache.
"""

from __future__ import annotations

import asyncio
import json
import logging
from datetime import datetime, timezone
from pathlib import Path
from typing import TYPE_CHECKING

import frontmatter

from opentasks.errors import ValidationError
from opentasks.workflow.decorators import slugify
from opentasks.workflow.memory import InMemoryContext
from opentasks.workflow.reference import Reference

if TYPE_CHECKING:
    from opentasks.config import Config

logger = logging.getLogger(__name__)


def render_content(ref: Reference) -> str:
    """File body for a reference: text as-is, anything else as JSON."""
    value = ref.content
    text = value if isinstance(value, str) else json.dumps(
        value, indent=2, ensure_ascii=False, default=str
    )
    if ref.metadata:
        post = frontmatter.Post(text, transforms=[r.to_dict() for r in ref.metadata])
        return frontmatter.dumps(post) + "\n"
    return text


class DirectoryContext(InMemoryContext):
    """Context that also writes every stored Reference into its run directory."""

    def __init__(
        self,
        output_root: Path | str,
        task_name: str,
        cwd: str | None = None,
        config: Config | None = None,
    ) -> None:
        super().__init__(cwd=cwd, config=config)
        self.output_root = Path(output_root)
        self.task_name = task_name
        self.started_at = datetime.now(timezone.utc)
        self._run_dir: Path | None = None

    @property
    def run_dir(self) -> Path | None:
        """The run directory, or None until the first reference is written."""
        return self._run_dir

    @property
    def run_dir_name(self) -> str:
        return f"{self.started_at.strftime('%Y%m%dT%H%M%S')}-{slugify(self.task_name)}"

    def path_for(self, ref: Reference) -> Path | None:
        """Absolute path of a persisted reference's file."""
        if self._run_dir is None or not ref.file_name:
            return None
        return self._run_dir / ref.file_name

    async def _persist(self, ref: Reference) -> None:
        await asyncio.to_thread(self._write, ref)

    # ── Internal: filesystem (runs in a worker thread) ───────

    def _ensure_run_dir(self) -> Path:
        """Create the run directory on first use, never reusing an existing one."""
        if self._run_dir is not None:
            return self._run_dir
        self.output_root.mkdir(parents=True, exist_ok=True)
        base = self.run_dir_name
        path = self.output_root / base
        counter = 2
        while True:
            try:
                path.mkdir()
                break
            except FileExistsError:
                path = self.output_root / f"{base}-{counter}"
                counter += 1
        self._run_dir = path
        logger.info("Run directory: %s", path)
        return path

    def _target(self, run_dir: Path, name: str) -> Path:
        target = (run_dir / name).resolve()
        if not target.is_relative_to(run_dir.resolve()):
            raise ValidationError(f"File name escapes run directory: {name}")
        return target

    def _write(self, ref: Reference) -> None:
        body = render_content(ref)
        if self._run_dir is not None:
            target = self._target(self._run_dir, ref.file_name)
        else:
            # Validate against the would-be directory before creating anything
            self._target(self.output_root / self.run_dir_name, ref.file_name)
            target = self._target(self._ensure_run_dir(), ref.file_name)
        target.parent.mkdir(parents=True, exist_ok=True)
        target.write_text(body, encoding="utf-8")
        logger.debug("Wrote %s (%d chars)", target, len(body))
