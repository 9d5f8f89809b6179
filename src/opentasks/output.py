"""Verbosity-scoped output builders.

Every invocation gets exactly one builder. Handlers call the same
operations at every level (add_progress, add_section, add_card, add_error)
and the router makes the single add_summary call; the builder alone
decides what becomes visible:

    quiet    one line
    summary  status line + output location + token            (default)
    verbose  progress, sections, cards and a detailed summary with metadata
    stream   everything emitted immediately; build() returns ""
"""

from __future__ import annotations

import json
import logging
import time
import traceback
from collections.abc import Callable
from dataclasses import dataclass, field
from typing import TYPE_CHECKING, Any, Literal, Protocol, runtime_checkable

from opentasks.config import VERBOSITY_LEVELS

if TYPE_CHECKING:
    from opentasks.cards import Card

logger = logging.getLogger(__name__)

VerbosityLevel = Literal["quiet", "summary", "verbose", "stream"]
DEFAULT_VERBOSITY: VerbosityLevel = "summary"

# Sink for streamed lines
Emit = Callable[[str], None]

_RULE = "─"


def _print(line: str) -> None:
    print(line, flush=True)


@dataclass
class SummaryData:
    """Outcome of one invocation, reported once by the router."""

    command_name: str
    execution_time_ms: int
    success: bool = True
    output_file: str | None = None
    reference_token: str | None = None
    result: str | None = None
    metadata: dict[str, Any] = field(default_factory=dict)

    @property
    def icon(self) -> str:
        return "✓" if self.success else "✗"

    @property
    def status_line(self) -> str:
        verb = "completed" if self.success else "failed"
        return f"{self.icon} {self.command_name} {verb} in {self.execution_time_ms}ms"


@runtime_checkable
class OutputBuilder(Protocol):
    """Protocol shared by all verbosity levels."""

    level: str

    def add_progress(self, message: str) -> None: ...

    def add_section(self, title: str, content: str) -> None: ...

    def add_card(self, card: Card) -> None: ...

    def add_error(self, error: BaseException, context: dict[str, Any] | None = None) -> None: ...

    def add_summary(self, data: SummaryData) -> None: ...

    def build(self) -> str:
        """Render the final output. Called exactly once, after add_summary."""
        ...


class _BaseBuilder:
    """Enforces the add_* → add_summary → build() lifecycle."""

    level: str = ""

    def __init__(self) -> None:
        self._summary: SummaryData | None = None
        self._built = False

    def _check_open(self) -> None:
        if self._built:
            raise RuntimeError(f"{type(self).__name__} already built")

    def add_progress(self, message: str) -> None:
        self._check_open()
        self._on_progress(message)

    def add_section(self, title: str, content: str) -> None:
        self._check_open()
        self._on_section(title, content)

    def add_card(self, card: Card) -> None:
        self._check_open()
        self._on_card(card)

    def add_error(self, error: BaseException, context: dict[str, Any] | None = None) -> None:
        self._check_open()
        self._on_error(error, context or {})

    def add_summary(self, data: SummaryData) -> None:
        self._check_open()
        if self._summary is not None:
            raise RuntimeError("Summary already recorded")
        self._summary = data
        self._on_summary(data)

    def build(self) -> str:
        self._check_open()
        if self._summary is None:
            raise RuntimeError("build() called before add_summary()")
        self._built = True
        return self._render(self._summary)

    # Hooks, discarded unless overridden
    def _on_progress(self, message: str) -> None:
        pass

    def _on_section(self, title: str, content: str) -> None:
        pass

    def _on_card(self, card: Card) -> None:
        pass

    def _on_error(self, error: BaseException, context: dict[str, Any]) -> None:
        pass

    def _on_summary(self, data: SummaryData) -> None:
        pass

    def _render(self, data: SummaryData) -> str:
        raise NotImplementedError


class QuietOutputBuilder(_BaseBuilder):
    """Single line for scripting and CI."""

    level = "quiet"

    def __init__(self) -> None:
        super().__init__()
        self._error: str | None = None

    def _on_error(self, error: BaseException, context: dict[str, Any]) -> None:
        self._error = str(error)

    def _render(self, data: SummaryData) -> str:
        if self._error and not data.success:
            return f"{data.status_line}: {self._error}"
        return data.status_line


class SummaryOutputBuilder(_BaseBuilder):
    """Default: status, where the output went, and how to refer to it."""

    level = "summary"

    def __init__(self) -> None:
        super().__init__()
        self._error: str | None = None

    def _on_error(self, error: BaseException, context: dict[str, Any]) -> None:
        self._error = str(error)

    def _render(self, data: SummaryData) -> str:
        lines = [data.status_line]
        if data.output_file:
            lines.append(f"📁 Saved to: {data.output_file}")
        if data.reference_token:
            lines.append(f"🔗 Reference: @{data.reference_token}")
        if self._error and not data.success:
            lines.append(f"Error: {self._error}")
        return "\n".join(lines)


class VerboseOutputBuilder(_BaseBuilder):
    """Everything, rendered after completion."""

    level = "verbose"

    def __init__(self) -> None:
        super().__init__()
        self._progress: list[str] = []
        self._sections: list[tuple[str, str]] = []

    def _on_progress(self, message: str) -> None:
        self._progress.append(message)

    def _on_section(self, title: str, content: str) -> None:
        self._sections.append((title, content))

    def _on_card(self, card: Card) -> None:
        self._sections.append((card.title, card.render()))

    def _on_error(self, error: BaseException, context: dict[str, Any]) -> None:
        self._sections.append(("❌ Error Details", _format_error(error, context)))

    def _render(self, data: SummaryData) -> str:
        lines: list[str] = []
        if self._progress:
            lines.append("⏳ Progress")
            lines.append(_RULE * 10)
            lines.extend(f"- {message}" for message in self._progress)
        for title, content in self._sections:
            lines.append("")
            lines.append(title)
            lines.append(_RULE * min(len(title), 80))
            lines.append(content)

        lines.append("")
        lines.append("📊 Execution Summary")
        lines.append(_RULE * 80)
        lines.append(f"{data.icon} Command: {data.command_name}")
        lines.append(f"⏱️  Duration: {data.execution_time_ms}ms")
        if data.output_file:
            lines.append(f"📁 Output File: {data.output_file}")
        if data.reference_token:
            lines.append(f"🔗 Reference Token: @{data.reference_token}")
        if data.result is not None:
            lines.append(f"📄 Result: {data.result}")
        if data.metadata:
            lines.append("")
            lines.append("📋 Metadata:")
            lines.append(json.dumps(data.metadata, indent=2, ensure_ascii=False, default=str))
        return "\n".join(lines).lstrip("\n")


class StreamingOutputBuilder(_BaseBuilder):
    """Emits each call as it happens, prefixed with elapsed time."""

    level = "stream"

    def __init__(self, emit: Emit | None = None) -> None:
        super().__init__()
        self._emit = emit or _print
        self._start = time.monotonic()

    def _elapsed(self) -> str:
        return f"[{int((time.monotonic() - self._start) * 1000)}ms]"

    def _on_progress(self, message: str) -> None:
        self._emit(f"{self._elapsed()} ⏳ {message}")

    def _on_section(self, title: str, content: str) -> None:
        self._emit(f"{self._elapsed()} {title}")
        self._emit(_RULE * min(len(title) + 10, 80))
        self._emit(content)

    def _on_card(self, card: Card) -> None:
        self._on_section(card.title, card.render())

    def _on_error(self, error: BaseException, context: dict[str, Any]) -> None:
        self._emit(f"{self._elapsed()} ❌ Error")
        self._emit(_RULE * 80)
        self._emit(_format_error(error, context))

    def _on_summary(self, data: SummaryData) -> None:
        self._emit(f"{self._elapsed()} 📊 Summary")
        self._emit(_RULE * 80)
        self._emit(data.status_line)
        if data.output_file:
            self._emit(f"📁 Saved to: {data.output_file}")
        if data.reference_token:
            self._emit(f"🔗 Reference: @{data.reference_token}")

    def _render(self, data: SummaryData) -> str:
        return ""


def _format_error(error: BaseException, context: dict[str, Any]) -> str:
    text = f"Error: {error}"
    if error.__traceback__ is not None:
        trace = "".join(traceback.format_exception(type(error), error, error.__traceback__))
        text += f"\n\nStack Trace:\n{trace.rstrip()}"
    if context:
        text += f"\n\nContext:\n{json.dumps(context, indent=2, ensure_ascii=False, default=str)}"
    return text


def resolve_verbosity(
    flag: str | None = None,
    command_default: str | None = None,
    global_default: str = DEFAULT_VERBOSITY,
) -> str:
    """Explicit flag > command-declared default > global default."""
    for candidate in (flag, command_default, global_default):
        if candidate:
            return candidate
    return DEFAULT_VERBOSITY


def create_output_builder(level: str = DEFAULT_VERBOSITY, emit: Emit | None = None) -> OutputBuilder:
    """Builder for a verbosity level; unknown levels fall back to summary."""
    if level == "quiet":
        return QuietOutputBuilder()
    if level == "summary":
        return SummaryOutputBuilder()
    if level == "verbose":
        return VerboseOutputBuilder()
    if level == "stream":
        return StreamingOutputBuilder(emit)
    logger.warning(
        "Unknown verbosity level: %s (expected one of %s). Using 'summary'.",
        level,
        ", ".join(VERBOSITY_LEVELS),
    )
    return SummaryOutputBuilder()
