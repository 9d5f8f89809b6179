"""Tests for configuration loading."""

import pytest
from pathlib import Path

from opentasks import config as config_module
from opentasks.config import load_config
from opentasks.errors import ConfigurationError

ENV_KEYS = [
    "OPENTASKS_OUTPUT_DIR",
    "OPENTASKS_VERBOSITY",
    "OPENTASKS_LOG_LEVEL",
    "OPENTASKS_AGENT_TIMEOUT",
]


@pytest.fixture(autouse=True)
def isolated(tmp_path: Path, monkeypatch):
    for key in ENV_KEYS:
        monkeypatch.delenv(key, raising=False)
    monkeypatch.setattr(config_module, "_USER_CONFIG", tmp_path / "home" / "config.toml")


def write_project_config(cwd: Path, body: str) -> Path:
    path = cwd / ".open-tasks" / "config.toml"
    path.parent.mkdir(parents=True, exist_ok=True)
    path.write_text(body, encoding="utf-8")
    return path


class TestConfig:
    def test_defaults(self, tmp_path: Path):
        config = load_config(tmp_path)
        assert config.output_dir == ".open-tasks/logs"
        assert config.output_root(tmp_path) == tmp_path / ".open-tasks" / "logs"
        assert config.verbosity == "summary"
        assert config.default_extension == "txt"
        assert config.agent.timeout == 600.0
        assert config.agent.dry_run is False
        assert config.command_paths(tmp_path)[0] == tmp_path / ".open-tasks" / "commands"

    def test_env_override(self, tmp_path: Path, monkeypatch):
        monkeypatch.setenv("OPENTASKS_OUTPUT_DIR", "/var/runs")
        monkeypatch.setenv("OPENTASKS_VERBOSITY", "quiet")
        monkeypatch.setenv("OPENTASKS_AGENT_TIMEOUT", "60")

        config = load_config(tmp_path)
        assert config.output_root(tmp_path) == Path("/var/runs")
        assert config.verbosity == "quiet"
        assert config.agent.timeout == 60

    def test_project_toml(self, tmp_path: Path):
        write_project_config(
            tmp_path,
            """
output_dir = "runs"
default_extension = ".md"
commands_dirs = "custom"

[agent]
timeout = 0
dry_run = true
""",
        )
        config = load_config(tmp_path)
        assert config.output_root(tmp_path) == tmp_path / "runs"
        assert config.default_extension == "md"
        assert config.command_paths(tmp_path) == [tmp_path / "custom"]
        assert config.agent.timeout is None
        assert config.agent.dry_run is True

    def test_project_overrides_user(self, tmp_path: Path):
        user = tmp_path / "home" / "config.toml"
        user.parent.mkdir(parents=True)
        user.write_text('verbosity = "verbose"\nlog_level = "DEBUG"\n', encoding="utf-8")
        write_project_config(tmp_path, 'verbosity = "stream"\n')

        config = load_config(tmp_path)
        assert config.verbosity == "stream"
        assert config.log_level == "DEBUG"

    def test_env_overrides_toml(self, tmp_path: Path, monkeypatch):
        monkeypatch.setenv("OPENTASKS_VERBOSITY", "quiet")
        write_project_config(tmp_path, 'verbosity = "verbose"\n')
        assert load_config(tmp_path).verbosity == "quiet"

    def test_explicit_path(self, tmp_path: Path):
        path = tmp_path / "other.toml"
        path.write_text('output_dir = "elsewhere"\n', encoding="utf-8")
        write_project_config(tmp_path, 'output_dir = "ignored"\n')
        assert load_config(tmp_path, path).output_dir == "elsewhere"

    def test_missing_explicit_path(self, tmp_path: Path):
        with pytest.raises(ConfigurationError, match="not found"):
            load_config(tmp_path, tmp_path / "absent.toml")

    def test_malformed_toml(self, tmp_path: Path):
        write_project_config(tmp_path, "output_dir = [unclosed\n")
        with pytest.raises(ConfigurationError, match="Invalid config file"):
            load_config(tmp_path)

    def test_invalid_verbosity(self, tmp_path: Path, monkeypatch):
        monkeypatch.setenv("OPENTASKS_VERBOSITY", "loud")
        with pytest.raises(ConfigurationError, match="verbosity must be one of"):
            load_config(tmp_path)

    def test_invalid_timeout(self, tmp_path: Path, monkeypatch):
        monkeypatch.setenv("OPENTASKS_AGENT_TIMEOUT", "soon")
        with pytest.raises(ConfigurationError, match="agent.timeout"):
            load_config(tmp_path)
