"""GitHub Copilot CLI agent."""

from __future__ import annotations

from dataclasses import dataclass


@dataclass
class CopilotConfig:
    model: str | None = None
    allow_all_tools: bool = False
    cwd: str | None = None
    timeout: float | None = None
    dry_run: bool = False

    @property
    def name(self) -> str:
        return "copilot"

    def build_command(self, prompt: str) -> list[str]:
        cmd = ["copilot", "-p", prompt]
        if self.allow_all_tools:
            cmd.append("--allow-all-tools")
        if self.model:
            cmd.extend(["--model", self.model])
        return cmd

    def environment(self) -> dict[str, str]:
        return {}

    def parse_output(self, stdout: str) -> str:
        return stdout.strip()
