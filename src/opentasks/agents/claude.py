"""Claude Code CLI agent — single-shot ``claude -p`` with JSON output."""

from __future__ import annotations

import json
import logging
from dataclasses import dataclass, field

logger = logging.getLogger(__name__)


@dataclass
class ClaudeConfig:
    """How to invoke the ``claude`` CLI for one prompt."""

    model: str | None = None
    allowed_tools: list[str] = field(default_factory=list)
    allow_all_tools: bool = False
    system_prompt: str | None = None
    api_key: str | None = None
    cwd: str | None = None
    timeout: float | None = None
    dry_run: bool = False

    @property
    def name(self) -> str:
        return "claude"

    def build_command(self, prompt: str) -> list[str]:
        cmd = ["claude", "-p", "--output-format", "json"]
        if self.model:
            cmd.extend(["--model", self.model])
        if self.allowed_tools:
            cmd.extend(["--allowedTools", ",".join(self.allowed_tools)])
        elif self.allow_all_tools:
            cmd.append("--dangerously-skip-permissions")
        if self.system_prompt:
            cmd.extend(["--append-system-prompt", self.system_prompt])
        cmd.append(prompt)
        return cmd

    def environment(self) -> dict[str, str]:
        return {"ANTHROPIC_API_KEY": self.api_key} if self.api_key else {}

    def parse_output(self, stdout: str) -> str:
        try:
            data = json.loads(stdout)
        except json.JSONDecodeError:
            return stdout.strip()
        if not isinstance(data, dict):
            return stdout.strip()
        if data.get("total_cost_usd") is not None:
            logger.info("claude cost: $%.4f", data["total_cost_usd"])
        return data.get("result", stdout.strip())
