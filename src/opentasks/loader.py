"""Discover custom commands from Python files in the configured directories.

Each ``*.py`` file (files starting with ``_`` are skipped) must define a
module-level ``create_handler()`` returning a TaskHandler:

    # .open-tasks/commands/shout.py
    from opentasks.commands import SetCommand
    from opentasks.handler import TaskHandler

    class Shout(TaskHandler):
        name = "shout"

        async def create_command(self, args, context, builder):
            return SetCommand(" ".join(args).upper())

    def create_handler():
        return Shout()

A broken module is recorded in the LoadReport and never stops the others.
"""

from __future__ import annotations

import hashlib
import importlib.util
import logging
import sys
import types
from collections.abc import Iterable
from dataclasses import dataclass, field
from pathlib import Path
from typing import TYPE_CHECKING

from opentasks.handler import TaskHandler

if TYPE_CHECKING:
    from opentasks.router import CommandRouter

logger = logging.getLogger(__name__)

FACTORY_NAME = "create_handler"


@dataclass
class LoadReport:
    loaded: list[str] = field(default_factory=list)  # command names
    failures: dict[str, str] = field(default_factory=dict)  # path → reason

    @property
    def ok(self) -> bool:
        return not self.failures


class LoaderError(Exception):
    """A single module could not provide a handler."""


def import_module_from_path(path: Path) -> types.ModuleType:
    digest = hashlib.sha1(str(path.resolve()).encode()).hexdigest()[:12]
    spec = importlib.util.spec_from_file_location(f"opentasks_custom_{path.stem}_{digest}", path)
    if spec is None or spec.loader is None:
        raise LoaderError("cannot create an import spec")
    module = importlib.util.module_from_spec(spec)
    # dataclasses and typing resolve annotations through sys.modules
    sys.modules[spec.name] = module
    try:
        spec.loader.exec_module(module)
    except BaseException:
        sys.modules.pop(spec.name, None)
        raise
    return module


def handler_from_module(module: types.ModuleType) -> TaskHandler:
    factory = getattr(module, FACTORY_NAME, None)
    if factory is None:
        raise LoaderError(f"missing {FACTORY_NAME}() factory")
    if not callable(factory):
        raise LoaderError(f"{FACTORY_NAME} is not callable")
    handler = factory()
    if not isinstance(handler, TaskHandler):
        raise LoaderError(f"{FACTORY_NAME}() returned {type(handler).__name__}, not a TaskHandler")
    if not handler.name:
        raise LoaderError("handler has no name")
    return handler


class CommandLoader:
    """Loads custom handlers into a router."""

    def __init__(self, router: CommandRouter) -> None:
        self.router = router

    def load_file(self, path: Path) -> TaskHandler:
        return handler_from_module(import_module_from_path(path))

    def load_directories(self, directories: Iterable[Path]) -> LoadReport:
        report = LoadReport()
        for directory in directories:
            if not directory.is_dir():
                logger.debug("Commands directory not found, skipping: %s", directory)
                continue
            for path in sorted(directory.glob("*.py")):
                if path.name.startswith("_"):
                    continue
                try:
                    handler = self.load_file(path)
                except Exception as e:
                    reason = f"{type(e).__name__}: {e}"
                    report.failures[str(path)] = reason
                    logger.warning("Failed to load command from %s: %s", path, reason)
                    continue
                self.router.register(handler)
                report.loaded.append(handler.name)
                logger.info("Loaded command '%s' from %s", handler.name, path)
        return report
