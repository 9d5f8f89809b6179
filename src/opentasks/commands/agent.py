"""Run an AI agent CLI over prompts assembled from the context."""

from __future__ import annotations

from collections.abc import Sequence
from dataclasses import dataclass
from typing import TYPE_CHECKING, Any

from opentasks.agents.base import AgentConfig, run_agent
from opentasks.errors import require
from opentasks.workflow import decorators
from opentasks.workflow.reference import Reference

if TYPE_CHECKING:
    from opentasks.workflow.base import Context, Pending, RefLike


@dataclass
class AgentCommand:
    """Join the prompt references (blank line between) and run the agent.

    The agent's parsed stdout becomes the stored value. Timeouts and
    non-zero exits surface as AgentTimeoutError / ExecutionError.
    """

    config: AgentConfig
    prompt_refs: Sequence[RefLike]
    token: str | None = None

    async def execute(self, context: Context, args: Sequence[Any]) -> list[Pending]:
        parts = []
        for ref in self.prompt_refs:
            parts.append(str(require(await context.get(ref), ref, "Prompt reference")))
        prompt = "\n\n".join(parts)

        stdout = await run_agent(
            self.config.build_command(prompt),
            cwd=self.config.cwd or context.cwd,
            env=self.config.environment(),
            timeout=self.config.timeout,
            dry_run=self.config.dry_run,
        )
        result = stdout if self.config.dry_run else self.config.parse_output(stdout)

        inputs = [r.key if isinstance(r, Reference) else r for r in self.prompt_refs]
        extra = [decorators.transform("Agent", inputs, {"agent": self.config.name})]
        if self.token:
            extra.insert(0, decorators.token(self.token))
        return [(result, extra)]
