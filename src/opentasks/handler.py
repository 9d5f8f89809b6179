"""TaskHandler — the CLI-facing adapter in front of a Command.

A handler turns raw CLI arguments into one or more ``context.run()`` calls.
It owns help text and an optional default verbosity; the Command it builds
owns the behaviour, so the same Command runs unchanged from code and from
the command line.
"""

from __future__ import annotations

from collections.abc import Iterable, Sequence
from dataclasses import dataclass, field
from typing import TYPE_CHECKING

from opentasks.cards import KeyValueCard
from opentasks.errors import NotFoundError, ValidationError

if TYPE_CHECKING:
    from opentasks.output import OutputBuilder
    from opentasks.workflow.base import Command, Context
    from opentasks.workflow.reference import Reference


@dataclass
class ParsedArgs:
    """Positionals plus ``--name value`` options and bare ``--flag``s."""

    positionals: list[str] = field(default_factory=list)
    options: dict[str, list[str]] = field(default_factory=dict)
    flags: set[str] = field(default_factory=set)

    def option(self, name: str, default: str | None = None) -> str | None:
        values = self.options.get(name)
        return values[-1] if values else default

    def all(self, name: str) -> list[str]:
        return list(self.options.get(name, []))


def parse_args(
    args: Sequence[str],
    options: Iterable[str] = (),
    flags: Iterable[str] = (),
) -> ParsedArgs:
    """Split handler arguments. Unknown ``--x`` arguments are rejected."""
    options = set(options)
    flags = set(flags)
    parsed = ParsedArgs()
    i = 0
    while i < len(args):
        arg = args[i]
        if arg.startswith("--") and len(arg) > 2:
            name = arg[2:]
            if name in flags:
                parsed.flags.add(name)
            elif name in options:
                if i + 1 >= len(args):
                    raise ValidationError(f"Option --{name} requires a value")
                parsed.options.setdefault(name, []).append(args[i + 1])
                i += 1
            else:
                raise ValidationError(f"Unknown option: {arg}")
        else:
            parsed.positionals.append(arg)
        i += 1
    return parsed


class TaskHandler:
    """Base class for named, routable commands."""

    name: str = ""
    description: str = ""
    examples: Sequence[str] = ()
    default_verbosity: str | None = None

    async def create_command(
        self,
        args: list[str],
        context: Context,
        builder: OutputBuilder,
    ) -> Command:
        """Translate CLI arguments into a programmatic Command."""
        raise NotImplementedError

    async def run(
        self,
        args: list[str],
        context: Context,
        builder: OutputBuilder,
    ) -> list[Reference]:
        """Execute against the context and return the produced references."""
        command = await self.create_command(args, context, builder)
        builder.add_progress(f"Running {type(command).__name__}")
        return await context.run(command)

    def report(self, refs: list[Reference], builder: OutputBuilder) -> None:
        """Describe results as a content section plus a metadata card.

        Visible only at verbose/stream.
        """
        for ref in refs:
            preview = ref.content if isinstance(ref.content, str) else repr(ref.content)
            if len(preview) > 500:
                preview = preview[:500] + "..."
            label = ref.token or ref.id
            builder.add_section(f"📄 {label}", preview)
            builder.add_card(KeyValueCard(f"🔖 {label} metadata", ref.summary()))

    # ── Shared helpers for subclasses ────────────────────────

    def lookup(self, context: Context, key: str) -> Reference:
        """Resolve ``--ref`` to a stored Reference or fail."""
        ref = context.lookup(key)
        if ref is None:
            raise NotFoundError(f"Reference not found: {key}")
        return ref

    async def input_reference(
        self,
        parsed: ParsedArgs,
        context: Context,
        builder: OutputBuilder,
        literal: str | None = None,
    ) -> Reference:
        """Input from ``--ref``, ``--file`` or a literal, as a stored Reference."""
        from opentasks.commands.files import ReadCommand
        from opentasks.commands.set import SetCommand

        key = parsed.option("ref")
        if key:
            return self.lookup(context, key)
        path = parsed.option("file")
        if path:
            builder.add_progress(f"Reading {path}")
            return (await context.run(ReadCommand(path)))[0]
        if literal is None:
            raise ValidationError(f"{self.name} needs input: --ref, --file or a text argument")
        return (await context.run(SetCommand(literal)))[0]
