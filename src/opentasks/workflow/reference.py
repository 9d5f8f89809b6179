"""Reference: an immutable handle to a stored value plus its history."""

from __future__ import annotations

import uuid
from dataclasses import dataclass, field
from datetime import datetime, timezone
from typing import Any


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


@dataclass(frozen=True)
class TransformRecord:
    """One operation applied to produce a Reference's content."""

    type: str
    inputs: tuple[str, ...] = ()
    params: dict[str, Any] = field(default_factory=dict)
    timestamp: datetime = field(default_factory=_utcnow)

    def to_dict(self) -> dict[str, Any]:
        data: dict[str, Any] = {"type": self.type}
        if self.inputs:
            data["inputs"] = list(self.inputs)
        if self.params:
            data["params"] = dict(self.params)
        data["timestamp"] = self.timestamp.isoformat()
        return data


@dataclass(frozen=True)
class Reference:
    """A stored value.

    Frozen: decorators derive new References with ``dataclasses.replace``
    and the id never changes after creation.
    """

    content: Any
    id: str = field(default_factory=lambda: str(uuid.uuid4()))
    timestamp: datetime = field(default_factory=_utcnow)
    token: str | None = None
    file_name: str | None = None
    metadata: tuple[TransformRecord, ...] = ()

    @property
    def key(self) -> str:
        """Token if present, else id."""
        return self.token or self.id

    def summary(self) -> dict[str, Any]:
        """Flat description for verbose output."""
        data: dict[str, Any] = {
            "id": self.id,
            "token": self.token,
            "file_name": self.file_name,
            "timestamp": self.timestamp.isoformat(),
        }
        if self.metadata:
            data["transforms"] = [record.to_dict() for record in self.metadata]
        return data
