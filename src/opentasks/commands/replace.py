"""Placeholder substitution: explicit replacements and context-driven templates."""

from __future__ import annotations

import asyncio
import re
from collections.abc import Mapping, Sequence
from dataclasses import dataclass, field
from pathlib import Path
from typing import TYPE_CHECKING, Any

from opentasks.errors import require
from opentasks.workflow import decorators
from opentasks.workflow.reference import Reference

if TYPE_CHECKING:
    from opentasks.workflow.base import Context, Pending, RefLike

PLACEHOLDER = re.compile(r"\{\{([^}]+)\}\}")


@dataclass
class ReplaceCommand:
    """Replace every ``{{key}}`` in a stored template with the given value."""

    template: RefLike
    replacements: Mapping[str, str] = field(default_factory=dict)
    token: str | None = None

    async def execute(self, context: Context, args: Sequence[Any]) -> list[Pending]:
        text = str(require(await context.get(self.template), self.template, "Template reference"))
        for key, value in self.replacements.items():
            text = text.replace(f"{{{{{key}}}}}", str(value))

        key = self.template.key if isinstance(self.template, Reference) else self.template
        extra = [decorators.transform("Replace", [key], {"keys": sorted(self.replacements)})]
        if self.token:
            extra.insert(0, decorators.token(self.token))
        return [(text, extra)]


@dataclass
class TemplateCommand:
    """Fill ``{{ token }}`` placeholders from values stored in the context.

    ``source`` is a Reference, a path to a template file relative to the
    context's cwd, or the template text itself. Placeholders naming an
    unknown token are left as they are.
    """

    source: str | Reference
    token: str | None = None

    async def execute(self, context: Context, args: Sequence[Any]) -> list[Pending]:
        if isinstance(self.source, Reference):
            template = str(require(await context.get(self.source), self.source, "Template reference"))
            origin = self.source.key
        else:
            template, origin = await self._load(context.cwd)

        values: dict[str, str] = {}
        for name in {m.strip() for m in PLACEHOLDER.findall(template)}:
            content = await context.get(name)
            if content is not None:
                values[name] = str(content)

        def substitute(match: re.Match) -> str:
            return values.get(match.group(1).strip(), match.group(0))

        result = PLACEHOLDER.sub(substitute, template)
        extra = [decorators.transform("Template", [origin], {"tokens": sorted(values)})]
        if self.token:
            extra.insert(0, decorators.token(self.token))
        return [(result, extra)]

    async def _load(self, cwd: str) -> tuple[str, str]:
        path = Path(self.source)
        if not path.is_absolute():
            path = Path(cwd) / path
        try:
            if await asyncio.to_thread(path.is_file):
                return await asyncio.to_thread(path.read_text, encoding="utf-8"), str(path)
        except (OSError, ValueError):
            # Too long or otherwise not a usable path: it's template text
            pass
        return self.source, "inline"
