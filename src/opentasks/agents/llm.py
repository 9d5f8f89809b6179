"""Simon Willison's ``llm`` CLI. The prompt is always the last argument."""

from __future__ import annotations

from dataclasses import dataclass


@dataclass
class LlmConfig:
    model: str | None = None
    system: str | None = None
    temperature: float | None = None
    stream: bool = False
    cwd: str | None = None
    timeout: float | None = None
    dry_run: bool = False

    @property
    def name(self) -> str:
        return "llm"

    def build_command(self, prompt: str) -> list[str]:
        cmd = ["llm"]
        if self.stream:
            cmd.append("--stream")
        if self.system:
            cmd.extend(["--system", self.system])
        if self.temperature is not None:
            cmd.extend(["--temperature", str(self.temperature)])
        if self.model:
            cmd.extend(["-m", self.model])
        cmd.append(prompt)
        return cmd

    def environment(self) -> dict[str, str]:
        return {}

    def parse_output(self, stdout: str) -> str:
        return stdout.strip()
