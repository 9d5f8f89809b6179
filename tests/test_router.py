"""Tests for the command router, built-in handlers and the custom command loader."""

import textwrap
from pathlib import Path

import pytest

from opentasks.commands import SetCommand, builtin_handlers
from opentasks.errors import CommandFailure, NotFoundError, UnknownCommandError, ValidationError
from opentasks.handler import TaskHandler, parse_args
from opentasks.loader import CommandLoader
from opentasks.router import CommandRouter
from opentasks.workflow import DirectoryContext, InMemoryContext


class LoudHandler(TaskHandler):
    name = "loud"
    description = "Store text in upper case"
    examples = ("opentasks loud hi",)
    default_verbosity = "verbose"

    async def create_command(self, args, context, builder):
        return SetCommand(" ".join(args).upper(), token="loud")


class BrokenHandler(TaskHandler):
    name = "broken"

    async def create_command(self, args, context, builder):
        raise ValidationError("bad arguments")


def make_router(**kwargs) -> CommandRouter:
    router = CommandRouter(**kwargs)
    for handler in builtin_handlers():
        router.register(handler)
    return router


class TestParseArgs:
    def test_options_flags_positionals(self):
        parsed = parse_args(
            ["a", "--token", "t", "b", "--all", "--ref", "x", "--ref", "y"],
            options=["token", "ref"],
            flags=["all"],
        )
        assert parsed.positionals == ["a", "b"]
        assert parsed.option("token") == "t"
        assert parsed.all("ref") == ["x", "y"]
        assert parsed.flags == {"all"}

    def test_unknown_option(self):
        with pytest.raises(ValidationError, match="Unknown option: --nope"):
            parse_args(["--nope"])

    def test_missing_value(self):
        with pytest.raises(ValidationError, match="requires a value"):
            parse_args(["--token"], options=["token"])


class TestRegistry:
    def test_builtins_listed_sorted(self):
        names = [h.name for h in make_router().list_commands()]
        assert names == sorted(names)
        assert {"store", "join", "match", "extract", "replace", "template", "read", "write", "agent", "clean"} <= set(names)

    def test_get(self):
        router = make_router()
        assert router.get("store").name == "store"
        assert router.get("missing") is None

    def test_command_help(self):
        router = CommandRouter()
        router.register(LoudHandler())
        text = router.command_help("loud")
        assert "Store text in upper case" in text
        assert "opentasks loud hi" in text
        assert "Default verbosity: verbose" in text


class TestExecute:
    @pytest.mark.asyncio
    async def test_unknown_command_lists_available(self):
        router = make_router()
        with pytest.raises(UnknownCommandError) as exc:
            await router.execute("nope", [], InMemoryContext())
        assert "Available commands:" in str(exc.value)
        assert "store" in exc.value.available
        assert isinstance(exc.value, NotFoundError)

    @pytest.mark.asyncio
    async def test_unknown_command_reported_through_builder(self):
        router = make_router(default_verbosity="verbose")
        with pytest.raises(UnknownCommandError) as exc:
            await router.execute("nope", ["x"], InMemoryContext())
        output = exc.value.output
        assert "❌ Error Details" in output
        assert "Unknown command: nope" in output
        assert "✗ Command: nope" in output

    @pytest.mark.asyncio
    async def test_unknown_command_respects_explicit_level(self):
        lines: list[str] = []
        router = make_router(emit=lines.append)
        with pytest.raises(UnknownCommandError) as exc:
            await router.execute("nope", [], InMemoryContext(), verbosity="quiet")
        assert exc.value.output.startswith("✗ nope failed in 0ms: Unknown command: nope")

        with pytest.raises(UnknownCommandError):
            await router.execute("nope", [], InMemoryContext(), verbosity="stream")
        assert "✗ nope failed in 0ms" in lines

    @pytest.mark.asyncio
    async def test_store_summary_output(self, tmp_path: Path):
        router = make_router()
        ctx = DirectoryContext(tmp_path, "store")
        result = await router.execute("store", ["hello", "--token", "greeting"], ctx)

        assert result.exit_code == 0
        assert result.verbosity == "summary"
        [ref] = result.references
        lines = result.output.splitlines()
        assert lines[0].startswith("✓ store completed in ")
        assert lines[1] == f"📁 Saved to: {ctx.path_for(ref)}"
        assert lines[2] == "🔗 Reference: @greeting"

    @pytest.mark.asyncio
    async def test_verbosity_precedence(self):
        router = CommandRouter(default_verbosity="quiet")
        router.register(LoudHandler())
        router.register(BrokenHandler())
        ctx = InMemoryContext()

        assert (await router.execute("loud", ["a"], ctx)).verbosity == "verbose"
        assert (await router.execute("loud", ["a"], ctx, verbosity="summary")).verbosity == "summary"
        with pytest.raises(CommandFailure) as exc:
            await router.execute("broken", [], ctx)
        assert exc.value.output.startswith("✗ broken failed in ")

    @pytest.mark.asyncio
    async def test_verbose_shows_sections(self):
        router = CommandRouter()
        router.register(LoudHandler())
        result = await router.execute("loud", ["hi", "there"], InMemoryContext())
        assert "📄 loud" in result.output
        assert "HI THERE" in result.output
        assert "📋 Metadata:" in result.output
        assert "🔖 loud metadata" in result.output
        assert "token: loud" in result.output

    @pytest.mark.asyncio
    async def test_failure_is_wrapped(self):
        router = CommandRouter()
        router.register(BrokenHandler())
        with pytest.raises(CommandFailure) as exc:
            await router.execute("broken", ["x"], InMemoryContext(), verbosity="verbose")
        failure = exc.value
        assert isinstance(failure.cause, ValidationError)
        assert failure.exit_code == 1
        assert "❌ Error Details" in failure.output
        assert "bad arguments" in failure.output

    @pytest.mark.asyncio
    async def test_stream_emits(self):
        lines: list[str] = []
        router = CommandRouter(emit=lines.append)
        router.register(LoudHandler())
        result = await router.execute("loud", ["x"], InMemoryContext(), verbosity="stream")
        assert result.output == ""
        assert any("✓ loud completed" in line for line in lines)


class TestBuiltinHandlers:
    @pytest.mark.asyncio
    async def test_chain_in_one_context(self):
        router = make_router()
        ctx = InMemoryContext()
        await router.execute("store", ["John Doe, age 30", "--token", "person"], ctx)
        await router.execute(
            "match",
            [r"(\w+) (\w+), age (\d+)", "--ref", "person", "--token", "first", "--token", "last", "--token", "age"],
            ctx,
        )
        result = await router.execute(
            "join", ["--ref", "first", "--ref", "age", "--separator", " is ", "--token", "line"], ctx
        )
        assert result.references[-1].content == "John is 30"
        assert await ctx.get("line") == "John is 30"

    @pytest.mark.asyncio
    async def test_replace_with_set_and_ref(self):
        router = make_router()
        ctx = InMemoryContext()
        await router.execute("store", ["Ada", "--token", "name"], ctx)
        result = await router.execute(
            "replace", ["{{greeting}} {{name}}", "--ref", "name", "--set", "greeting=Hi"], ctx
        )
        assert result.references[-1].content == "Hi Ada"

    @pytest.mark.asyncio
    async def test_transform_from_file(self, tmp_path: Path):
        (tmp_path / "in.txt").write_text("shout", encoding="utf-8")
        router = make_router()
        ctx = InMemoryContext(cwd=str(tmp_path))
        result = await router.execute("transform", ["upper", "--file", "in.txt"], ctx)
        assert result.references[-1].content == "SHOUT"

    @pytest.mark.asyncio
    async def test_extract_literal_text(self):
        result = await make_router().execute("extract", [r"\d+", "a1b22", "--all"], InMemoryContext())
        assert result.references[-1].content == "1\n22"

    @pytest.mark.asyncio
    async def test_missing_ref_fails(self):
        with pytest.raises(CommandFailure) as exc:
            await make_router().execute("extract", [r"\d", "--ref", "ghost"], InMemoryContext())
        assert isinstance(exc.value.cause, NotFoundError)

    @pytest.mark.asyncio
    async def test_bad_days(self, tmp_path: Path):
        with pytest.raises(CommandFailure) as exc:
            await make_router().execute("clean", ["--days", "soon"], DirectoryContext(tmp_path, "clean"))
        assert isinstance(exc.value.cause, ValidationError)

    @pytest.mark.asyncio
    async def test_agent_dry_run(self, tmp_path: Path):
        router = make_router()
        ctx = InMemoryContext(cwd=str(tmp_path))
        await router.execute("store", ["context text", "--token", "doc"], ctx)
        result = await router.execute(
            "agent", ["claude", "Summarize", "--ref", "doc", "--dry-run", "--model", "sonnet"], ctx
        )
        line = result.references[-1].content
        assert line.startswith("claude -p --output-format json --model sonnet")
        assert "Summarize" in line and "context text" in line
        assert result.verbosity == "verbose"


class TestLoader:
    def write(self, directory: Path, name: str, body: str) -> Path:
        directory.mkdir(parents=True, exist_ok=True)
        path = directory / name
        path.write_text(textwrap.dedent(body), encoding="utf-8")
        return path

    def test_loads_factory(self, tmp_path: Path):
        self.write(
            tmp_path,
            "shout.py",
            """
            from opentasks.commands import SetCommand
            from opentasks.handler import TaskHandler

            class Shout(TaskHandler):
                name = "shout"
                description = "Upper-case the arguments"

                async def create_command(self, args, context, builder):
                    return SetCommand(" ".join(args).upper())

            def create_handler():
                return Shout()
            """,
        )
        router = CommandRouter()
        report = CommandLoader(router).load_directories([tmp_path])
        assert report.loaded == ["shout"]
        assert report.ok
        assert router.get("shout").description == "Upper-case the arguments"

    @pytest.mark.asyncio
    async def test_loaded_command_runs(self, tmp_path: Path):
        self.write(
            tmp_path,
            "echo.py",
            """
            from opentasks.commands import SetCommand
            from opentasks.handler import TaskHandler

            class Echo(TaskHandler):
                name = "echo"

                async def create_command(self, args, context, builder):
                    return SetCommand(" ".join(args), token="echo")

            def create_handler():
                return Echo()
            """,
        )
        router = CommandRouter()
        CommandLoader(router).load_directories([tmp_path])
        ctx = InMemoryContext()
        await router.execute("echo", ["hi"], ctx)
        assert await ctx.get("echo") == "hi"

    def test_failures_collected_without_stopping(self, tmp_path: Path, caplog):
        self.write(tmp_path, "a_syntax.py", "def broken(:\n")
        self.write(tmp_path, "b_nofactory.py", "X = 1\n")
        self.write(tmp_path, "c_wrongtype.py", "def create_handler():\n    return object()\n")
        self.write(tmp_path, "_private.py", "raise RuntimeError('never imported')\n")
        self.write(
            tmp_path,
            "d_good.py",
            """
            from opentasks.handler import TaskHandler

            class Good(TaskHandler):
                name = "good"

            def create_handler():
                return Good()
            """,
        )
        router = CommandRouter()
        report = CommandLoader(router).load_directories([tmp_path, tmp_path / "missing"])

        assert report.loaded == ["good"]
        assert not report.ok
        reasons = {Path(path).name: reason for path, reason in report.failures.items()}
        assert set(reasons) == {"a_syntax.py", "b_nofactory.py", "c_wrongtype.py"}
        assert reasons["a_syntax.py"].startswith("SyntaxError")
        assert "missing create_handler()" in reasons["b_nofactory.py"]
        assert "not a TaskHandler" in reasons["c_wrongtype.py"]
        assert "Failed to load command" in caplog.text

    @pytest.mark.asyncio
    async def test_dataclass_with_postponed_annotations(self, tmp_path: Path):
        self.write(
            tmp_path,
            "prefixed.py",
            """
            from __future__ import annotations

            from dataclasses import dataclass

            from opentasks.commands import SetCommand
            from opentasks.handler import TaskHandler

            @dataclass
            class Options:
                prefix: str = ">>"

            class Prefixed(TaskHandler):
                name = "prefixed"

                def __init__(self, options: Options) -> None:
                    self.options = options

                async def create_command(self, args, context, builder):
                    return SetCommand(f"{self.options.prefix} {' '.join(args)}", token="prefixed")

            def create_handler():
                return Prefixed(Options())
            """,
        )
        router = CommandRouter()
        report = CommandLoader(router).load_directories([tmp_path])
        assert report.ok, report.failures
        assert report.loaded == ["prefixed"]

        ctx = InMemoryContext()
        await router.execute("prefixed", ["hi"], ctx)
        assert await ctx.get("prefixed") == ">> hi"
