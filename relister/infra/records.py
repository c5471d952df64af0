"""Processing-record store contract shared by every backend."""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any, Iterable, Protocol


@dataclass(slots=True)
class UpsertRequest:
    """Single-key write: ``overwrite`` always lands, ``create_only`` only if absent."""

    key: str
    overwrite: dict[str, Any] = field(default_factory=dict)
    create_only: dict[str, Any] = field(default_factory=dict)

    def __post_init__(self) -> None:
        clash = set(self.overwrite) & set(self.create_only)
        if clash:
            raise ValueError(f"Attributes both overwritten and create-only: {sorted(clash)}")
        if not (self.overwrite or self.create_only):
            raise ValueError("UpsertRequest needs at least one attribute")


class RecordStore(Protocol):
    batch_read_limit: int

    def batch_get(self, keys: Iterable[str]) -> dict[str, dict[str, Any]]:
        """Fetch records by key; missing keys are absent from the result."""
        ...

    def upsert(self, request: UpsertRequest) -> None:
        ...


__all__ = ["RecordStore", "UpsertRequest"]
