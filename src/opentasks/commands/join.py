"""Concatenate literal strings and stored references."""

from __future__ import annotations

from collections.abc import Sequence
from dataclasses import dataclass
from typing import TYPE_CHECKING, Any

from opentasks.errors import require
from opentasks.workflow import decorators
from opentasks.workflow.reference import Reference

if TYPE_CHECKING:
    from opentasks.workflow.base import Context, Pending


@dataclass
class JoinCommand:
    """Join parts into one string.

    Plain strings are taken literally; References are resolved through the
    context and must exist.
    """

    parts: Sequence[str | Reference]
    separator: str = ""
    token: str | None = None

    async def execute(self, context: Context, args: Sequence[Any]) -> list[Pending]:
        resolved: list[str] = []
        inputs: list[str] = []
        for part in self.parts:
            if isinstance(part, Reference):
                content = require(await context.get(part), part)
                resolved.append(str(content))
                inputs.append(part.key)
            else:
                resolved.append(part)

        extra = [decorators.transform("Join", inputs, {"separator": self.separator})]
        if self.token:
            extra.insert(0, decorators.token(self.token))
        return [(self.separator.join(resolved), extra)]
