"""Workflow core — references, decorators and the contexts that store them.

Layout:
    reference.py   Reference + TransformRecord (immutable)
    decorators.py  pure Reference → Reference functions, default file naming
    base.py        Command / Context protocols
    memory.py      InMemoryContext (ephemeral)
    directory.py   DirectoryContext (one file per reference, per-run directory)
"""

from opentasks.workflow.base import Command, Context, Pending, RefLike
from opentasks.workflow.decorators import (
    Decorator,
    apply_decorators,
    file_name,
    timestamped_file_name,
    token,
    transform,
)
from opentasks.workflow.directory import DirectoryContext
from opentasks.workflow.memory import InMemoryContext
from opentasks.workflow.reference import Reference, TransformRecord

__all__ = [
    "Command",
    "Context",
    "Decorator",
    "DirectoryContext",
    "InMemoryContext",
    "Pending",
    "RefLike",
    "Reference",
    "TransformRecord",
    "apply_decorators",
    "file_name",
    "timestamped_file_name",
    "token",
    "transform",
]
