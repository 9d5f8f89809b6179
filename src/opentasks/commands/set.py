"""Store a literal value, optionally under a token."""

from __future__ import annotations

from collections.abc import Sequence
from dataclasses import dataclass
from typing import TYPE_CHECKING, Any

from opentasks.workflow import decorators

if TYPE_CHECKING:
    from opentasks.workflow.base import Context, Pending


@dataclass
class SetCommand:
    """Hand a value to the context unchanged.

    Usage:
        refs = await context.run(SetCommand("Hello, World!", token="greeting"))
    """

    value: Any
    token: str | None = None

    async def execute(self, context: Context, args: Sequence[Any]) -> list[Pending]:
        extra = [decorators.token(self.token)] if self.token else []
        return [(self.value, extra)]
