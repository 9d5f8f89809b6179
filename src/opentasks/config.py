"""Configuration loading from environment variables and config.toml files."""

from __future__ import annotations

import os
import sys
from dataclasses import dataclass, field
from pathlib import Path

if sys.version_info >= (3, 11):
    import tomllib
else:
    import tomli as tomllib

from opentasks.errors import ConfigurationError

_PROJECT_DIR = ".open-tasks"
_CONFIG_FILENAME = "config.toml"
_USER_CONFIG = Path.home() / _PROJECT_DIR / _CONFIG_FILENAME

VERBOSITY_LEVELS = ("quiet", "summary", "verbose", "stream")


@dataclass
class AgentSettings:
    """Defaults for agent subprocesses."""

    timeout: float | None = 600.0
    dry_run: bool = False


@dataclass
class Config:
    """Top-level open-tasks configuration."""

    output_dir: str = f"{_PROJECT_DIR}/logs"
    commands_dirs: list[str] = field(
        default_factory=lambda: [f"{_PROJECT_DIR}/commands", f"~/{_PROJECT_DIR}/commands"]
    )
    default_extension: str = "txt"
    verbosity: str = "summary"
    log_level: str = "WARNING"
    agent: AgentSettings = field(default_factory=AgentSettings)

    def output_root(self, cwd: str | Path) -> Path:
        """Absolute output root; relative paths resolve against cwd."""
        path = Path(self.output_dir).expanduser()
        return path if path.is_absolute() else Path(cwd) / path

    def command_paths(self, cwd: str | Path) -> list[Path]:
        paths = []
        for entry in self.commands_dirs:
            path = Path(entry).expanduser()
            paths.append(path if path.is_absolute() else Path(cwd) / path)
        return paths


def _read_toml(path: Path) -> dict:
    try:
        return tomllib.loads(path.read_text(encoding="utf-8"))
    except tomllib.TOMLDecodeError as e:
        raise ConfigurationError(f"Invalid config file {path}: {e}") from e


def _merge(base: dict, override: dict) -> dict:
    merged = dict(base)
    for key, value in override.items():
        if isinstance(value, dict) and isinstance(merged.get(key), dict):
            merged[key] = _merge(merged[key], value)
        else:
            merged[key] = value
    return merged


def _float_or_none(raw, name: str) -> float | None:
    """Parse a timeout; empty or non-positive means no limit."""
    if raw is None or raw == "":
        return None
    try:
        value = float(raw)
    except (TypeError, ValueError) as e:
        raise ConfigurationError(f"{name} must be a number, got {raw!r}") from e
    return value if value > 0 else None


def load_config(cwd: str | Path | None = None, config_path: Path | None = None) -> Config:
    """Load configuration from environment variables and optional config.toml.

    Priority: environment variables > project config > user config > defaults.
    An explicit ``config_path`` replaces both files.
    """
    cwd = Path(cwd or Path.cwd())
    file_data: dict = {}
    if config_path is not None:
        if not config_path.exists():
            raise ConfigurationError(f"Config file not found: {config_path}")
        file_data = _read_toml(config_path)
    else:
        for candidate in [_USER_CONFIG, cwd / _PROJECT_DIR / _CONFIG_FILENAME]:
            if candidate.exists():
                file_data = _merge(file_data, _read_toml(candidate))

    agent_data = file_data.get("agent", {})
    defaults = Config()

    commands_dirs = file_data.get("commands_dirs", defaults.commands_dirs)
    if isinstance(commands_dirs, str):
        commands_dirs = [commands_dirs]

    config = Config(
        output_dir=os.getenv("OPENTASKS_OUTPUT_DIR", file_data.get("output_dir", defaults.output_dir)),
        commands_dirs=list(commands_dirs),
        default_extension=str(file_data.get("default_extension", defaults.default_extension)).lstrip("."),
        verbosity=os.getenv("OPENTASKS_VERBOSITY", file_data.get("verbosity", defaults.verbosity)),
        log_level=os.getenv("OPENTASKS_LOG_LEVEL", file_data.get("log_level", defaults.log_level)),
        agent=AgentSettings(
            timeout=_float_or_none(
                os.getenv("OPENTASKS_AGENT_TIMEOUT", agent_data.get("timeout", AgentSettings.timeout)),
                "agent.timeout",
            ),
            dry_run=bool(agent_data.get("dry_run", False)),
        ),
    )

    if config.verbosity not in VERBOSITY_LEVELS:
        raise ConfigurationError(
            f"verbosity must be one of {', '.join(VERBOSITY_LEVELS)}, got {config.verbosity!r}"
        )
    return config
