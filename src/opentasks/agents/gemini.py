"""Gemini CLI agent."""

from __future__ import annotations

from dataclasses import dataclass


@dataclass
class GeminiConfig:
    model: str | None = None
    allow_all_tools: bool = False
    api_key: str | None = None
    cwd: str | None = None
    timeout: float | None = None
    dry_run: bool = False

    @property
    def name(self) -> str:
        return "gemini"

    def build_command(self, prompt: str) -> list[str]:
        cmd = ["gemini"]
        if self.model:
            cmd.extend(["--model", self.model])
        if self.allow_all_tools:
            cmd.append("--yolo")
        cmd.extend(["-p", prompt])
        return cmd

    def environment(self) -> dict[str, str]:
        return {"GEMINI_API_KEY": self.api_key} if self.api_key else {}

    def parse_output(self, stdout: str) -> str:
        return stdout.strip()
