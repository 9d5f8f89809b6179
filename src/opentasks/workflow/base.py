"""Command and Context protocols shared by every workflow component."""

from __future__ import annotations

from collections.abc import Sequence
from typing import Any, Protocol, Union, runtime_checkable

from opentasks.workflow.decorators import Decorator
from opentasks.workflow.reference import Reference

# What a Command hands back to the Context: a value and how to decorate it
Pending = tuple[Any, Sequence[Decorator]]

# Anything Context.get() can resolve
RefLike = Union[Reference, str]


@runtime_checkable
class Command(Protocol):
    """A unit of work that computes values but never persists them."""

    async def execute(self, context: Context, args: Sequence[Any]) -> list[Pending]:
        """Compute zero or more (value, decorators) pairs, in order."""
        ...


@runtime_checkable
class Context(Protocol):
    """Execution environment exposed to Commands."""

    @property
    def cwd(self) -> str: ...

    async def store(self, value: Any, decorators: Sequence[Decorator] = ()) -> Reference:
        """Decorate, persist if needed, index and return a new Reference."""
        ...

    async def get(self, ref: RefLike) -> Any | None:
        """Content by id, then by token; None when absent."""
        ...

    async def run(self, command: Command, args: Sequence[Any] = ()) -> list[Reference]:
        """Execute a command and store its pairs in order."""
        ...

    def lookup(self, ref: RefLike) -> Reference | None:
        """The indexed Reference itself, resolved like get()."""
        ...
