"""Qwen Code CLI agent."""

from __future__ import annotations

from dataclasses import dataclass, field


@dataclass
class QwenConfig:
    model: str | None = None
    context_files: list[str] = field(default_factory=list)
    planning_mode: bool = False
    cwd: str | None = None
    timeout: float | None = None
    dry_run: bool = False

    @property
    def name(self) -> str:
        return "qwen"

    def build_command(self, prompt: str) -> list[str]:
        cmd = ["qwen", "-p", prompt]
        if self.model:
            cmd.extend(["--model", self.model])
        cmd.extend(self.context_files)
        if self.planning_mode:
            cmd.append("--plan")
        return cmd

    def environment(self) -> dict[str, str]:
        return {}

    def parse_output(self, stdout: str) -> str:
        return stdout.strip()
