"""Ephemeral context — references live only in process memory."""

from __future__ import annotations

import logging
import os
from collections.abc import Sequence
from typing import TYPE_CHECKING, Any

from opentasks.workflow.decorators import DEFAULT_EXTENSION, Decorator, apply_decorators
from opentasks.workflow.reference import Reference

if TYPE_CHECKING:
    from opentasks.config import Config
    from opentasks.workflow.base import Command, RefLike

logger = logging.getLogger(__name__)


class InMemoryContext:
    """Context that keeps every Reference in a per-instance index.

    The id index and token index belong to this instance only, so any
    number of contexts can coexist in one process.
    """

    def __init__(self, cwd: str | None = None, config: Config | None = None) -> None:
        self._cwd = cwd or os.getcwd()
        self.config = config
        self._refs: dict[str, Reference] = {}
        self._tokens: dict[str, str] = {}  # token → id of the latest reference

    @property
    def cwd(self) -> str:
        return self._cwd

    @property
    def extension(self) -> str:
        if self.config is not None:
            return self.config.default_extension
        return DEFAULT_EXTENSION

    # ── Context protocol ─────────────────────────────────────

    async def store(self, value: Any, decorators: Sequence[Decorator] = ()) -> Reference:
        ref = apply_decorators(Reference(content=value), decorators, self.extension)
        await self._persist(ref)
        self._register(ref)
        return ref

    async def get(self, ref: RefLike) -> Any | None:
        found = self.lookup(ref)
        return found.content if found is not None else None

    async def run(self, command: Command, args: Sequence[Any] = ()) -> list[Reference]:
        pending = await command.execute(self, list(args))
        refs: list[Reference] = []
        for value, decorators in pending:
            refs.append(await self.store(value, decorators))
        return refs

    # ── Index ────────────────────────────────────────────────

    def lookup(self, ref: RefLike) -> Reference | None:
        """Resolve a Reference, id or token to the indexed Reference."""
        if isinstance(ref, Reference):
            found = self._refs.get(ref.id)
            if found is not None:
                return found
            return self._by_token(ref.token) if ref.token else None
        found = self._refs.get(ref)
        if found is not None:
            return found
        return self._by_token(ref)

    def _by_token(self, name: str) -> Reference | None:
        ref_id = self._tokens.get(name)
        return self._refs.get(ref_id) if ref_id else None

    def references(self) -> list[Reference]:
        """All stored references in insertion order."""
        return list(self._refs.values())

    def clear(self) -> None:
        self._refs.clear()
        self._tokens.clear()

    def _register(self, ref: Reference) -> None:
        self._refs[ref.id] = ref
        if ref.token:
            previous = self._tokens.get(ref.token)
            if previous is not None and previous != ref.id:
                # Last write wins; the older reference stays reachable by id.
                logger.warning(
                    "Token '%s' already exists. Overwriting with new reference %s",
                    ref.token,
                    ref.id,
                )
            self._tokens[ref.token] = ref.id

    async def _persist(self, ref: Reference) -> None:
        """Nothing to write for the ephemeral variant."""
