"""End-to-end tests for the command-line entry point."""

import textwrap
from pathlib import Path

import frontmatter
import pytest

from opentasks import config as config_module
from opentasks.__main__ import _split_global_flags, main
from opentasks.errors import ValidationError


@pytest.fixture(autouse=True)
def workspace(tmp_path: Path, monkeypatch):
    for key in ["OPENTASKS_OUTPUT_DIR", "OPENTASKS_VERBOSITY", "OPENTASKS_LOG_LEVEL", "OPENTASKS_AGENT_TIMEOUT"]:
        monkeypatch.delenv(key, raising=False)
    monkeypatch.setenv("HOME", str(tmp_path / "home"))
    monkeypatch.setattr(config_module, "_USER_CONFIG", tmp_path / "home" / ".open-tasks" / "config.toml")
    monkeypatch.chdir(tmp_path)
    return tmp_path


def run_dirs(root: Path) -> list[Path]:
    return sorted(p for p in root.iterdir() if p.is_dir()) if root.exists() else []


class TestGlobalFlags:
    def test_flags_anywhere(self):
        rest, level, out = _split_global_flags(["--quiet", "store", "x", "--dir", "o", "--token", "t"])
        assert rest == ["store", "x", "--token", "t"]
        assert level == "quiet"
        assert out == "o"

    def test_conflicting_levels(self):
        with pytest.raises(ValidationError, match="Conflicting verbosity flags"):
            _split_global_flags(["store", "x", "--quiet", "--verbose"])


class TestMain:
    def test_lists_commands(self, capsys):
        assert main([]) == 0
        out = capsys.readouterr().out
        assert out.startswith("Usage: opentasks <command>")
        assert "  store" in out
        assert "  clean" in out

    def test_command_help(self, capsys):
        assert main(["extract", "--help"]) == 0
        out = capsys.readouterr().out
        assert out.startswith("extract")
        assert "Examples:" in out

    def test_store_writes_run_directory(self, workspace: Path, capsys):
        assert main(["store", "hello", "--token", "greeting"]) == 0
        out = capsys.readouterr().out.splitlines()

        [run_dir] = run_dirs(workspace / ".open-tasks" / "logs")
        assert run_dir.name.endswith("-store")
        [written] = list(run_dir.iterdir())
        assert written.read_text(encoding="utf-8") == "hello"
        assert written.name.endswith("-greeting.txt")
        assert out[0].startswith("✓ store completed in ")
        assert out[1] == f"📁 Saved to: {written}"
        assert out[2] == "🔗 Reference: @greeting"

    def test_quiet_and_custom_dir(self, workspace: Path, capsys):
        assert main(["join", "a", "b", "--quiet", "--dir", "out"]) == 0
        out = capsys.readouterr().out
        assert len(out.strip().splitlines()) == 1
        [run_dir] = run_dirs(workspace / "out")
        [written] = list(run_dir.iterdir())
        assert frontmatter.load(written).content == "ab"

    def test_conflicting_flags_exit_code(self, capsys):
        assert main(["store", "x", "--quiet", "--stream"]) == 1
        assert "Conflicting verbosity flags" in capsys.readouterr().err

    def test_unknown_command(self, capsys):
        assert main(["frobnicate"]) == 1
        err = capsys.readouterr().err
        assert "Unknown command: frobnicate" in err
        assert "Available commands:" in err

    def test_command_failure_renders_output(self, workspace: Path, capsys):
        assert main(["read", "missing.txt"]) == 1
        out = capsys.readouterr().out
        assert out.startswith("✗ read failed in ")
        assert "File not found: missing.txt" in out
        assert run_dirs(workspace / ".open-tasks" / "logs") == []

    def test_invalid_config(self, workspace: Path, capsys):
        path = workspace / ".open-tasks" / "config.toml"
        path.parent.mkdir(parents=True)
        path.write_text("verbosity = [", encoding="utf-8")
        assert main(["store", "x"]) == 1
        assert "Invalid config file" in capsys.readouterr().err

    def test_custom_command_from_project(self, workspace: Path, capsys):
        commands = workspace / ".open-tasks" / "commands"
        commands.mkdir(parents=True)
        (commands / "shout.py").write_text(
            textwrap.dedent(
                """
                from opentasks.commands import SetCommand
                from opentasks.handler import TaskHandler

                class Shout(TaskHandler):
                    name = "shout"
                    description = "Upper-case the arguments"

                    async def create_command(self, args, context, builder):
                        return SetCommand(" ".join(args).upper(), token="shout")

                def create_handler():
                    return Shout()
                """
            ),
            encoding="utf-8",
        )
        assert main(["shout", "hi", "there"]) == 0
        out = capsys.readouterr().out
        assert "✓ shout completed" in out
        [run_dir] = run_dirs(workspace / ".open-tasks" / "logs")
        [written] = list(run_dir.iterdir())
        assert written.read_text(encoding="utf-8") == "HI THERE"

    def test_broken_custom_command_does_not_block_builtins(self, workspace: Path, capsys):
        commands = workspace / ".open-tasks" / "commands"
        commands.mkdir(parents=True)
        (commands / "broken.py").write_text("def create_handler(:\n", encoding="utf-8")
        assert main(["store", "ok"]) == 0
        assert "✓ store completed" in capsys.readouterr().out
