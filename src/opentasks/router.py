"""Command router — maps names to TaskHandlers and runs one invocation.

For each ``execute`` call:
1. Resolve the handler. An unknown name is still reported through a builder
   at the configured default level, then raised as UnknownCommandError
2. Pick the verbosity: explicit flag > handler default > configured default
3. Run the handler against the context, timing it
4. Report exactly one summary to the builder and render it
5. On failure, report through the builder's error path and raise CommandFailure
"""

from __future__ import annotations

import logging
import time
from collections.abc import Sequence
from dataclasses import dataclass, field
from typing import TYPE_CHECKING

from opentasks.errors import CommandFailure, UnknownCommandError
from opentasks.output import (
    DEFAULT_VERBOSITY,
    Emit,
    SummaryData,
    create_output_builder,
    resolve_verbosity,
)

if TYPE_CHECKING:
    from opentasks.handler import TaskHandler
    from opentasks.workflow.base import Context
    from opentasks.workflow.reference import Reference

logger = logging.getLogger(__name__)

_RESULT_PREVIEW = 200


@dataclass
class Invocation:
    """What one successful routed call produced."""

    command: str
    references: list[Reference] = field(default_factory=list)
    output: str = ""
    verbosity: str = DEFAULT_VERBOSITY
    exit_code: int = 0


class CommandRouter:
    """Registry of named handlers plus the per-invocation pipeline."""

    def __init__(self, default_verbosity: str = DEFAULT_VERBOSITY, emit: Emit | None = None) -> None:
        self.default_verbosity = default_verbosity
        self._emit = emit
        self._handlers: dict[str, TaskHandler] = {}

    # ── Registry ─────────────────────────────────────────────

    def register(self, handler: TaskHandler) -> None:
        if not handler.name:
            raise ValueError(f"{type(handler).__name__} has no name")
        if handler.name in self._handlers:
            logger.warning("Command '%s' re-registered; replacing previous handler", handler.name)
        self._handlers[handler.name] = handler
        logger.debug("Registered command: %s", handler.name)

    def get(self, name: str) -> TaskHandler | None:
        return self._handlers.get(name)

    def list_commands(self) -> list[TaskHandler]:
        return [self._handlers[name] for name in sorted(self._handlers)]

    def command_help(self, name: str) -> str:
        handler = self._require(name)
        lines = [f"{handler.name} — {handler.description}" if handler.description else handler.name]
        if handler.default_verbosity:
            lines.append(f"Default verbosity: {handler.default_verbosity}")
        if handler.examples:
            lines.append("")
            lines.append("Examples:")
            lines.extend(f"  {example}" for example in handler.examples)
        return "\n".join(lines)

    def _require(self, name: str) -> TaskHandler:
        handler = self._handlers.get(name)
        if handler is None:
            raise UnknownCommandError(name, sorted(self._handlers))
        return handler

    # ── Invocation ───────────────────────────────────────────

    async def execute(
        self,
        name: str,
        args: Sequence[str],
        context: Context,
        verbosity: str | None = None,
    ) -> Invocation:
        handler = self._handlers.get(name)
        if handler is None:
            raise self._unknown(name, args, verbosity)
        level = resolve_verbosity(verbosity, handler.default_verbosity, self.default_verbosity)
        builder = create_output_builder(level, self._emit)
        args = list(args)

        start = time.monotonic()
        try:
            refs = await handler.run(args, context, builder)
            handler.report(refs, builder)
        except Exception as e:
            elapsed = int((time.monotonic() - start) * 1000)
            logger.debug("Command %s failed after %dms: %s", name, elapsed, e)
            builder.add_error(e, {"command": name, "args": args})
            builder.add_summary(SummaryData(name, elapsed, success=False))
            raise CommandFailure(name, e, builder.build()) from e

        elapsed = int((time.monotonic() - start) * 1000)
        builder.add_summary(self._summary(name, elapsed, refs, context))
        return Invocation(name, refs, builder.build(), level)

    def _unknown(self, name: str, args: Sequence[str], verbosity: str | None) -> UnknownCommandError:
        error = UnknownCommandError(name, sorted(self._handlers))
        level = resolve_verbosity(verbosity, None, self.default_verbosity)
        builder = create_output_builder(level, self._emit)
        builder.add_error(error, {"command": name, "args": list(args)})
        builder.add_summary(SummaryData(name, 0, success=False))
        error.output = builder.build()
        return error

    @staticmethod
    def _summary(
        name: str, elapsed: int, refs: list[Reference], context: Context
    ) -> SummaryData:
        data = SummaryData(
            command_name=name,
            execution_time_ms=elapsed,
            metadata={"references": [ref.summary() for ref in refs]} if refs else {},
        )
        if not refs:
            return data
        last = refs[-1]
        path_for = getattr(context, "path_for", None)
        if path_for is not None:
            path = path_for(last)
            data.output_file = str(path) if path is not None else None
        data.reference_token = last.token
        preview = last.content if isinstance(last.content, str) else repr(last.content)
        if len(preview) > _RESULT_PREVIEW:
            preview = preview[:_RESULT_PREVIEW] + "..."
        data.result = preview
        return data
