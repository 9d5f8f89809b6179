"""Agent configuration protocol and the subprocess runner shared by all agents.

An agent is an external AI CLI (claude, gemini, ...). A config knows how to
turn a prompt into an argv and which environment it needs; ``run_agent``
owns spawning, timeout and exit-status handling.
"""

from __future__ import annotations

import asyncio
import logging
import os
import shlex
from typing import Protocol, runtime_checkable

from opentasks.errors import AgentTimeoutError, ExecutionError

logger = logging.getLogger(__name__)


@runtime_checkable
class AgentConfig(Protocol):
    """Protocol that every agent CLI configuration implements."""

    cwd: str | None
    timeout: float | None
    dry_run: bool

    @property
    def name(self) -> str: ...

    def build_command(self, prompt: str) -> list[str]:
        """Full argv for a single non-interactive run."""
        ...

    def environment(self) -> dict[str, str]:
        """Extra environment variables for the subprocess."""
        ...

    def parse_output(self, stdout: str) -> str:
        """Turn raw stdout into the value to store."""
        ...


async def run_agent(
    argv: list[str],
    *,
    cwd: str | None = None,
    env: dict[str, str] | None = None,
    timeout: float | None = None,
    dry_run: bool = False,
) -> str:
    """Run an agent CLI to completion and return its stdout.

    Raises ExecutionError on spawn failure or non-zero exit and
    AgentTimeoutError (after killing the child) when ``timeout`` elapses.
    """
    if dry_run:
        line = shlex.join(argv)
        logger.info("Dry run: %s", line)
        return line

    logger.debug("Running: %s", " ".join(argv[:4]) + (" ..." if len(argv) > 4 else ""))
    try:
        process = await asyncio.create_subprocess_exec(
            *argv,
            stdout=asyncio.subprocess.PIPE,
            stderr=asyncio.subprocess.PIPE,
            cwd=cwd,
            env={**os.environ, **(env or {})},
        )
    except FileNotFoundError as e:
        raise ExecutionError(f"`{argv[0]}` not found. Is it installed and on PATH?") from e
    except OSError as e:
        raise ExecutionError(f"Failed to execute {argv[0]}: {e}") from e

    try:
        stdout, stderr = await asyncio.wait_for(process.communicate(), timeout=timeout)
    except asyncio.TimeoutError:
        logger.warning("%s exceeded %ss, killing (pid=%d)", argv[0], timeout, process.pid)
        process.kill()
        await process.wait()
        raise AgentTimeoutError(f"{argv[0]} timed out after {timeout}s") from None

    out = stdout.decode("utf-8", errors="replace")
    if process.returncode != 0:
        err = stderr.decode("utf-8", errors="replace").strip()
        logger.error("%s error (rc=%d): %s", argv[0], process.returncode, err)
        raise ExecutionError(
            f"{argv[0]} failed with code {process.returncode}:\n{err or out.strip() or 'unknown error'}"
        )
    return out
