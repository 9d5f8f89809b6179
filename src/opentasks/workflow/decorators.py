"""Reference decorators — pure functions applied before a value is persisted.

A decorator takes a Reference and returns a new one; it never mutates its
input. ``apply_decorators`` composes them left to right and assigns a
timestamped file name when none of them set one.
"""

from __future__ import annotations

import re
from collections.abc import Callable, Iterable, Mapping
from dataclasses import replace
from typing import Any

from opentasks.errors import ValidationError
from opentasks.workflow.reference import Reference, TransformRecord

Decorator = Callable[[Reference], Reference]

DEFAULT_EXTENSION = "txt"


def slugify(name: str) -> str:
    """Minimal slug: strip illegal path chars, spaces to hyphens."""
    slug = re.sub(r'[<>:"/\\|?*\n\r\t]', "", name)
    slug = slug.strip().replace(" ", "-")
    return slug or "unnamed"


def compact_timestamp(ref: Reference) -> str:
    """``YYYYMMDDTHHMMSS`` of the reference's creation time."""
    return ref.timestamp.strftime("%Y%m%dT%H%M%S")


def token(name: str) -> Decorator:
    """Tag a Reference with a human-chosen token.

    A Reference carries at most one token; re-tagging with a different name
    is rejected.
    """
    if not name:
        raise ValidationError("Token name must not be empty")

    def decorate(ref: Reference) -> Reference:
        if ref.token is not None and ref.token != name:
            raise ValidationError(
                f"Reference {ref.id} already has token '{ref.token}', cannot set '{name}'"
            )
        return replace(ref, token=name)

    decorate.__qualname__ = f"token({name!r})"
    return decorate


def file_name(name: str) -> Decorator:
    """Set an explicit file name relative to the run directory. Last one wins."""
    if not name:
        raise ValidationError("File name must not be empty")

    def decorate(ref: Reference) -> Reference:
        return replace(ref, file_name=name)

    decorate.__qualname__ = f"file_name({name!r})"
    return decorate


def timestamped_file_name(token_or_id: str, extension: str = DEFAULT_EXTENSION) -> Decorator:
    """``<YYYYMMDDTHHMMSS>-<mmm>-<token-or-id>.<ext>`` from the creation time."""

    def decorate(ref: Reference) -> Reference:
        ms = ref.timestamp.microsecond // 1000
        name = f"{compact_timestamp(ref)}-{ms:03d}-{slugify(token_or_id)}.{extension}"
        return replace(ref, file_name=name)

    return decorate


def transform(
    type: str,
    inputs: Iterable[str] = (),
    params: Mapping[str, Any] | None = None,
) -> Decorator:
    """Append a TransformRecord describing how the content was produced."""

    def decorate(ref: Reference) -> Reference:
        record = TransformRecord(type=type, inputs=tuple(inputs), params=dict(params or {}))
        return replace(ref, metadata=ref.metadata + (record,))

    decorate.__qualname__ = f"transform({type!r})"
    return decorate


def apply_decorators(
    ref: Reference,
    decorators: Iterable[Decorator] = (),
    extension: str = DEFAULT_EXTENSION,
) -> Reference:
    """Run the decorator pipeline. Any exception aborts the whole pipeline."""
    for decorator in decorators:
        decorated = decorator(ref)
        if decorated.id != ref.id:
            raise ValidationError(f"Decorator {decorator!r} changed reference id")
        ref = decorated
    if not ref.file_name:
        ref = timestamped_file_name(ref.key, extension)(ref)
    return ref
