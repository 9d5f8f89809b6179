"""Regular-expression commands: capture groups to tokens, and extraction."""

from __future__ import annotations

import re
from collections.abc import Sequence
from dataclasses import dataclass, field
from typing import TYPE_CHECKING, Any

from opentasks.errors import ValidationError, require
from opentasks.workflow import decorators
from opentasks.workflow.reference import Reference

if TYPE_CHECKING:
    from opentasks.workflow.base import Context, Pending, RefLike


def compile_pattern(pattern: str | re.Pattern, flags: int = 0) -> re.Pattern:
    if isinstance(pattern, re.Pattern):
        return pattern
    try:
        return re.compile(pattern, flags)
    except re.error as e:
        raise ValidationError(f"Invalid regex pattern {pattern!r}: {e}") from e


def _key(ref: RefLike) -> str:
    return ref.key if isinstance(ref, Reference) else ref


@dataclass
class MatchCommand:
    """Match a pattern and store each capture group under the next token.

    Usage:
        text = await context.run(SetCommand("John Doe, age 30"))
        await context.run(
            MatchCommand(text[0], r"(\\w+) (\\w+), age (\\d+)", ["firstName", "lastName", "age"])
        )

    Produces one Reference per group that both matched and has a token, in
    group order. Groups without a token, and tokens without a group, are
    ignored.
    """

    source: RefLike
    pattern: str | re.Pattern
    tokens: Sequence[str] = field(default_factory=list)

    async def execute(self, context: Context, args: Sequence[Any]) -> list[Pending]:
        content = require(await context.get(self.source), self.source, "Content reference")
        regex = compile_pattern(self.pattern)
        match = regex.search(str(content))
        if match is None:
            raise ValidationError(f"No match found for pattern: {regex.pattern}")

        results: list[Pending] = []
        for index, (value, name) in enumerate(zip(match.groups(), self.tokens), start=1):
            if value is None or not name:
                continue
            results.append(
                (
                    value,
                    [
                        decorators.token(name),
                        decorators.transform(
                            "Match",
                            [_key(self.source)],
                            {"pattern": regex.pattern, "group": index},
                        ),
                    ],
                )
            )
        return results


@dataclass
class ExtractCommand:
    """Extract the first match (or every match) of a pattern as one value.

    With capture groups, each match contributes its groups joined by ", ";
    otherwise the whole match. Multiple matches are joined by newlines.
    """

    source: RefLike
    pattern: str | re.Pattern
    all: bool = False
    token: str | None = None

    async def execute(self, context: Context, args: Sequence[Any]) -> list[Pending]:
        content = str(require(await context.get(self.source), self.source, "Content reference"))
        regex = compile_pattern(self.pattern)

        if self.all:
            found = [self._render(m) for m in regex.finditer(content)]
            result = "\n".join(found) if found else "No matches found"
        else:
            match = regex.search(content)
            result = self._render(match) if match else "No match found"

        extra = [
            decorators.transform(
                "Extract", [_key(self.source)], {"pattern": regex.pattern, "all": self.all}
            )
        ]
        if self.token:
            extra.insert(0, decorators.token(self.token))
        return [(result, extra)]

    @staticmethod
    def _render(match: re.Match) -> str:
        if match.groups():
            return ", ".join(g for g in match.groups() if g is not None)
        return match.group(0)
