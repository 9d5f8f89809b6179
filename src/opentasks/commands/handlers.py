"""Built-in CLI handlers — thin adapters from argv to the built-in Commands."""

from __future__ import annotations

from typing import TYPE_CHECKING

from opentasks.agents import AGENTS, agent_config
from opentasks.commands.agent import AgentCommand
from opentasks.commands.clean import CleanCommand
from opentasks.commands.files import ReadCommand, WriteCommand
from opentasks.commands.join import JoinCommand
from opentasks.commands.regex import ExtractCommand, MatchCommand
from opentasks.commands.replace import ReplaceCommand, TemplateCommand
from opentasks.commands.set import SetCommand
from opentasks.commands.transform import TRANSFORMS, TextTransformCommand
from opentasks.config import AgentSettings, Config
from opentasks.errors import ValidationError
from opentasks.handler import TaskHandler, parse_args

if TYPE_CHECKING:
    from opentasks.workflow.base import Command, Context
    from opentasks.workflow.reference import Reference


def _config(context: Context) -> Config:
    return getattr(context, "config", None) or Config()


class StoreHandler(TaskHandler):
    name = "store"
    description = "Store a value in the context"
    examples = ('opentasks store "Hello World" --token greeting',)

    async def create_command(self, args, context, builder) -> Command:
        parsed = parse_args(args, options=["token"])
        if not parsed.positionals:
            raise ValidationError("store requires a value")
        return SetCommand(" ".join(parsed.positionals), token=parsed.option("token"))


class JoinHandler(TaskHandler):
    name = "join"
    description = "Concatenate text arguments and stored references"
    examples = (
        'opentasks join "Hello, " "World"',
        'opentasks join --ref first --ref second --separator " " --token both',
    )

    async def create_command(self, args, context, builder) -> Command:
        parsed = parse_args(args, options=["token", "ref", "separator"])
        parts: list[str | Reference] = list(parsed.positionals)
        parts.extend(self.lookup(context, key) for key in parsed.all("ref"))
        if not parts:
            raise ValidationError("join requires at least one text argument or --ref")
        return JoinCommand(
            parts,
            separator=parsed.option("separator", ""),
            token=parsed.option("token"),
        )


class MatchHandler(TaskHandler):
    name = "match"
    description = "Match a regex and store each capture group under a token"
    examples = ('opentasks match "(\\w+) (\\w+)" "John Doe" --token first --token last',)

    async def create_command(self, args, context, builder) -> Command:
        parsed = parse_args(args, options=["token", "ref", "file"])
        if not parsed.positionals:
            raise ValidationError("match requires a pattern")
        literal = " ".join(parsed.positionals[1:]) or None
        source = await self.input_reference(parsed, context, builder, literal)
        return MatchCommand(source, parsed.positionals[0], parsed.all("token"))


class ExtractHandler(TaskHandler):
    name = "extract"
    description = "Extract the first (or every) regex match from a value"
    examples = (
        'opentasks extract "\\d+" --ref input',
        'opentasks extract "\\w+@\\w+\\.\\w+" --file contacts.txt --all',
    )

    async def create_command(self, args, context, builder) -> Command:
        parsed = parse_args(args, options=["token", "ref", "file"], flags=["all"])
        if not parsed.positionals:
            raise ValidationError("extract requires a pattern")
        literal = " ".join(parsed.positionals[1:]) or None
        source = await self.input_reference(parsed, context, builder, literal)
        return ExtractCommand(
            source,
            parsed.positionals[0],
            all="all" in parsed.flags,
            token=parsed.option("token"),
        )


class ReplaceHandler(TaskHandler):
    name = "replace"
    description = "Replace {{key}} placeholders with --set values or stored references"
    examples = (
        'opentasks replace "Hello {{name}}" --set name=World',
        'opentasks replace "{{greeting}} {{name}}" --ref greeting --ref name --token message',
    )

    async def create_command(self, args, context, builder) -> Command:
        parsed = parse_args(args, options=["token", "ref", "file", "set"])
        replacements: dict[str, str] = {}
        for key in parsed.all("ref"):
            replacements[key] = str(self.lookup(context, key).content)
        for pair in parsed.all("set"):
            key, sep, value = pair.partition("=")
            if not sep or not key:
                raise ValidationError(f"--set expects key=value, got {pair!r}")
            replacements[key] = value

        path = parsed.option("file")
        if path:
            builder.add_progress(f"Reading {path}")
            template = (await context.run(ReadCommand(path)))[0]
        elif parsed.positionals:
            template = (await context.run(SetCommand(" ".join(parsed.positionals))))[0]
        else:
            raise ValidationError("replace requires a template argument or --file")
        return ReplaceCommand(template, replacements, token=parsed.option("token"))


class TemplateHandler(TaskHandler):
    name = "template"
    description = "Fill {{token}} placeholders from values stored in the context"
    examples = (
        "opentasks template prompts/review.md --token prompt",
        'opentasks template "Dear {{name}}"',
    )

    async def create_command(self, args, context, builder) -> Command:
        parsed = parse_args(args, options=["token", "ref"])
        key = parsed.option("ref")
        if key:
            source: str | Reference = self.lookup(context, key)
        elif parsed.positionals:
            source = " ".join(parsed.positionals)
        else:
            raise ValidationError("template requires a file path, template text or --ref")
        return TemplateCommand(source, token=parsed.option("token"))


class TransformHandler(TaskHandler):
    name = "transform"
    description = f"Apply a named text transform ({', '.join(TRANSFORMS)})"
    examples = ('opentasks transform upper "hello" --token loud',)

    async def create_command(self, args, context, builder) -> Command:
        parsed = parse_args(args, options=["token", "ref", "file"])
        if not parsed.positionals:
            raise ValidationError("transform requires a transform name")
        fn_name = parsed.positionals[0]
        fn = TRANSFORMS.get(fn_name)
        if fn is None:
            raise ValidationError(
                f"Unknown transform: {fn_name}. Available: {', '.join(TRANSFORMS)}"
            )
        literal = " ".join(parsed.positionals[1:]) or None
        source = await self.input_reference(parsed, context, builder, literal)
        return TextTransformCommand(source, fn, name=fn_name, token=parsed.option("token"))


class ReadHandler(TaskHandler):
    name = "read"
    description = "Read a text file into the context"
    examples = ("opentasks read notes.md --token notes",)

    async def create_command(self, args, context, builder) -> Command:
        parsed = parse_args(args, options=["token"])
        if len(parsed.positionals) != 1:
            raise ValidationError("read requires exactly one file path")
        return ReadCommand(parsed.positionals[0], token=parsed.option("token"))


class WriteHandler(TaskHandler):
    name = "write"
    description = "Write text or a stored reference to a file"
    examples = (
        'opentasks write out/hello.txt "Hello"',
        "opentasks write out/summary.md --ref summary",
    )

    async def create_command(self, args, context, builder) -> Command:
        parsed = parse_args(args, options=["ref", "file"])
        if not parsed.positionals:
            raise ValidationError("write requires a destination path")
        literal = " ".join(parsed.positionals[1:]) or None
        source = await self.input_reference(parsed, context, builder, literal)
        return WriteCommand(parsed.positionals[0], source)


class AgentHandler(TaskHandler):
    name = "agent"
    description = f"Run an AI agent CLI ({', '.join(AGENTS)}) on a prompt"
    examples = (
        'opentasks agent claude "Summarize this" --file README.md',
        'opentasks agent gemini "Compare these" --ref a --ref b --model gemini-2.5-pro',
    )
    default_verbosity = "verbose"

    async def create_command(self, args, context, builder) -> Command:
        parsed = parse_args(
            args,
            options=["token", "ref", "file", "model", "timeout"],
            flags=["dry-run", "allow-all-tools"],
        )
        if not parsed.positionals:
            raise ValidationError("agent requires an agent name")
        agent_name = parsed.positionals[0]
        settings = _config(context).agent

        prompt_refs: list[Reference] = []
        text = " ".join(parsed.positionals[1:])
        if text:
            prompt_refs.extend(await context.run(SetCommand(text)))
        prompt_refs.extend(self.lookup(context, key) for key in parsed.all("ref"))
        for path in parsed.all("file"):
            builder.add_progress(f"Reading {path}")
            prompt_refs.extend(await context.run(ReadCommand(path)))
        if not prompt_refs:
            raise ValidationError("agent requires a prompt, --ref or --file")

        config = agent_config(
            agent_name,
            model=parsed.option("model"),
            allow_all_tools="allow-all-tools" in parsed.flags,
            cwd=context.cwd,
            timeout=_timeout(parsed.option("timeout"), settings),
            dry_run="dry-run" in parsed.flags or settings.dry_run,
        )
        builder.add_progress(f"Prompt assembled from {len(prompt_refs)} reference(s)")
        return AgentCommand(config, prompt_refs, token=parsed.option("token"))


def _timeout(raw: str | None, settings: AgentSettings) -> float | None:
    if raw is None:
        return settings.timeout
    try:
        value = float(raw)
    except ValueError as e:
        raise ValidationError(f"--timeout must be a number of seconds, got {raw!r}") from e
    return value if value > 0 else None


class CleanHandler(TaskHandler):
    name = "clean"
    description = "Delete run directories older than the retention window"
    examples = ("opentasks clean", "opentasks clean --days 30")

    async def create_command(self, args, context, builder) -> Command:
        parsed = parse_args(args, options=["days"])
        raw = parsed.option("days", "7")
        try:
            days = int(raw)
        except ValueError as e:
            raise ValidationError(f"--days must be a whole number, got {raw!r}") from e
        output_root = getattr(context, "output_root", None)
        if output_root is None:
            output_root = _config(context).output_root(context.cwd)
        builder.add_progress(f"Scanning {output_root}")
        return CleanCommand(output_root, days=days)


def builtin_handlers() -> list[TaskHandler]:
    """One fresh instance of every built-in handler."""
    return [
        StoreHandler(),
        JoinHandler(),
        MatchHandler(),
        ExtractHandler(),
        ReplaceHandler(),
        TemplateHandler(),
        TransformHandler(),
        ReadHandler(),
        WriteHandler(),
        AgentHandler(),
        CleanHandler(),
    ]
