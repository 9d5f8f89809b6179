"""Apply an arbitrary text transformation to a stored value."""

from __future__ import annotations

import json
from collections.abc import Callable, Sequence
from dataclasses import dataclass
from typing import TYPE_CHECKING, Any

from opentasks.errors import ValidationError, require
from opentasks.workflow import decorators
from opentasks.workflow.reference import Reference

if TYPE_CHECKING:
    from opentasks.workflow.base import Context, Pending, RefLike

# Named transforms available from the command line
TRANSFORMS: dict[str, Callable[[str], str]] = {
    "upper": str.upper,
    "lower": str.lower,
    "strip": str.strip,
    "title": str.title,
    "reverse": lambda s: s[::-1],
}


@dataclass
class TextTransformCommand:
    source: RefLike
    fn: Callable[[str], str]
    name: str = "TextTransform"
    token: str | None = None

    async def execute(self, context: Context, args: Sequence[Any]) -> list[Pending]:
        content = require(await context.get(self.source), self.source, "Content reference")
        result = self.fn(str(content))
        key = self.source.key if isinstance(self.source, Reference) else self.source
        extra = [decorators.transform(self.name, [key])]
        if self.token:
            extra.insert(0, decorators.token(self.token))
        return [(result, extra)]


@dataclass
class JsonTransformCommand:
    """Parse a stored JSON document, apply ``fn`` and store the result.

    A string result is stored as-is; anything else is re-serialized with
    two-space indentation.
    """

    source: RefLike
    fn: Callable[[Any], Any]
    token: str | None = None

    async def execute(self, context: Context, args: Sequence[Any]) -> list[Pending]:
        content = require(await context.get(self.source), self.source, "Content reference")
        try:
            data = json.loads(str(content))
        except json.JSONDecodeError as e:
            raise ValidationError(f"Failed to parse JSON: {e}") from e
        result = self.fn(data)
        if not isinstance(result, str):
            result = json.dumps(result, indent=2, ensure_ascii=False)
        key = self.source.key if isinstance(self.source, Reference) else self.source
        extra = [decorators.transform("JsonTransform", [key])]
        if self.token:
            extra.insert(0, decorators.token(self.token))
        return [(result, extra)]
