"""AI agent CLI adapters."""

from __future__ import annotations

from typing import Any

from opentasks.agents.aider import AiderConfig
from opentasks.agents.base import AgentConfig, run_agent
from opentasks.agents.claude import ClaudeConfig
from opentasks.agents.copilot import CopilotConfig
from opentasks.agents.gemini import GeminiConfig
from opentasks.agents.llm import LlmConfig
from opentasks.agents.qwen import QwenConfig
from opentasks.errors import ConfigurationError

AGENTS: dict[str, type] = {
    "claude": ClaudeConfig,
    "gemini": GeminiConfig,
    "aider": AiderConfig,
    "copilot": CopilotConfig,
    "qwen": QwenConfig,
    "llm": LlmConfig,
}


def agent_config(name: str, **options: Any) -> AgentConfig:
    """Build the config for a named agent, dropping options it does not take."""
    cls = AGENTS.get(name)
    if cls is None:
        raise ConfigurationError(f"Unknown agent: {name}. Available: {', '.join(AGENTS)}")
    accepted = cls.__dataclass_fields__
    return cls(**{k: v for k, v in options.items() if k in accepted and v is not None})


__all__ = [
    "AGENTS",
    "AgentConfig",
    "AiderConfig",
    "ClaudeConfig",
    "CopilotConfig",
    "GeminiConfig",
    "LlmConfig",
    "QwenConfig",
    "agent_config",
    "run_agent",
]
