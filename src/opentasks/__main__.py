"""Entry point: python -m opentasks <command> [args...] [flags]

Global flags (accepted anywhere on the line):
    --quiet | --summary | --verbose | --stream   output verbosity (pick one)
    --dir PATH                                   output root for run directories

- No args / "--help": list available commands
- "<command> --help": help for one command
"""

from __future__ import annotations

import asyncio
import logging
import os
import sys
from pathlib import Path
from typing import TYPE_CHECKING

from opentasks.config import VERBOSITY_LEVELS, Config, load_config
from opentasks.errors import CommandFailure, TaskError, ValidationError

if TYPE_CHECKING:
    from opentasks.router import CommandRouter

logger = logging.getLogger(__name__)

USAGE = "Usage: opentasks <command> [args...] [--quiet|--summary|--verbose|--stream] [--dir PATH]"


def _setup_logging(level: str) -> None:
    logging.basicConfig(
        level=getattr(logging, level.upper(), logging.WARNING),
        format="%(asctime)s [%(levelname)s] %(name)s: %(message)s",
        datefmt="%H:%M:%S",
        stream=sys.stderr,
    )


def _split_global_flags(argv: list[str]) -> tuple[list[str], str | None, str | None]:
    """Remove verbosity flags and --dir from argv, wherever they appear."""
    rest: list[str] = []
    levels: list[str] = []
    output_dir: str | None = None
    i = 0
    while i < len(argv):
        arg = argv[i]
        if arg.startswith("--") and arg[2:] in VERBOSITY_LEVELS:
            levels.append(arg[2:])
        elif arg == "--dir":
            if i + 1 >= len(argv):
                raise ValidationError("Option --dir requires a value")
            output_dir = argv[i + 1]
            i += 1
        else:
            rest.append(arg)
        i += 1
    if len(set(levels)) > 1:
        raise ValidationError(
            "Conflicting verbosity flags: " + ", ".join(f"--{level}" for level in levels)
        )
    return rest, (levels[0] if levels else None), output_dir


def _build_router(config: Config, cwd: str) -> CommandRouter:
    from opentasks.commands import builtin_handlers
    from opentasks.loader import CommandLoader
    from opentasks.router import CommandRouter

    router = CommandRouter(default_verbosity=config.verbosity)
    for handler in builtin_handlers():
        router.register(handler)
    report = CommandLoader(router).load_directories(config.command_paths(cwd))
    if report.failures:
        logger.warning("%d custom command(s) failed to load", len(report.failures))
    return router


def _print_commands(router: CommandRouter) -> None:
    print(USAGE)
    print()
    print("Commands:")
    handlers = router.list_commands()
    width = max((len(h.name) for h in handlers), default=0)
    for handler in handlers:
        print(f"  {handler.name.ljust(width)}  {handler.description}")
    print()
    print("Run 'opentasks <command> --help' for details on a command.")


def main(argv: list[str] | None = None) -> int:
    argv = list(sys.argv[1:] if argv is None else argv)
    cwd = os.getcwd()

    try:
        config = load_config(cwd)
    except TaskError as e:
        print(f"Error: {e}", file=sys.stderr)
        return e.exit_code
    _setup_logging(config.log_level)

    from opentasks.workflow import DirectoryContext

    try:
        rest, verbosity, output_dir = _split_global_flags(argv)
        router = _build_router(config, cwd)

        if not rest or rest[0] in ("--help", "-h", "help"):
            _print_commands(router)
            return 0

        name, args = rest[0], rest[1:]
        if "--help" in args or "-h" in args:
            print(router.command_help(name))
            return 0

        output_root = Path(output_dir).expanduser() if output_dir else config.output_root(cwd)
        context = DirectoryContext(output_root, task_name=name, cwd=cwd, config=config)
        invocation = asyncio.run(router.execute(name, args, context, verbosity))
    except CommandFailure as e:
        if e.output:
            print(e.output)
        return e.exit_code
    except TaskError as e:
        print(f"Error: {e}", file=sys.stderr)
        return e.exit_code
    except KeyboardInterrupt:
        return 130

    if invocation.output:
        print(invocation.output)
    return invocation.exit_code


if __name__ == "__main__":
    sys.exit(main())
