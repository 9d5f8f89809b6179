"""Aider CLI agent, one ``--message`` turn against a set of files."""

from __future__ import annotations

from dataclasses import dataclass, field


@dataclass
class AiderConfig:
    model: str | None = None
    files: list[str] = field(default_factory=list)
    read_files: list[str] = field(default_factory=list)
    auto_commit: bool | None = None
    commit_message: str | None = None
    edit_format: str | None = None  # whole, diff or udiff
    use_repo_map: bool = False
    cwd: str | None = None
    timeout: float | None = None
    dry_run: bool = False

    @property
    def name(self) -> str:
        return "aider"

    def build_command(self, prompt: str) -> list[str]:
        cmd = ["aider", "--message", prompt]
        if self.model:
            cmd.extend(["--model", self.model])
        cmd.extend(self.files)
        for path in self.read_files:
            cmd.extend(["--read", path])
        if self.auto_commit is False:
            cmd.append("--no-auto-commits")
        if self.commit_message:
            cmd.extend(["--commit-prompt", self.commit_message])
        if self.edit_format:
            cmd.extend(["--edit-format", self.edit_format])
        if self.use_repo_map:
            cmd.extend(["--map-tokens", "2048"])
        return cmd

    def environment(self) -> dict[str, str]:
        return {}

    def parse_output(self, stdout: str) -> str:
        return stdout.strip()
