"""Candidate de-duplication against in-batch repeats and stored records."""

from __future__ import annotations

from dataclasses import dataclass
from typing import Iterable, Sequence

import structlog

from ..infra.records import RecordStore
from .contracts import Candidate
from .records import RecordKeys, is_terminal


def unique_by_id(candidates: Iterable[Candidate]) -> list[Candidate]:
    """Collapse repeated ids, keeping the first occurrence."""

    seen: dict[str, Candidate] = {}
    for candidate in candidates:
        seen.setdefault(candidate.id, candidate)
    return list(seen.values())


def admit(
    candidates: Iterable[Candidate],
    *,
    item_type: str,
    min_age_seconds: int,
    now_seconds: float,
) -> list[Candidate]:
    """Keep candidates of the monitored type that are old enough."""

    return [
        candidate
        for candidate in candidates
        if candidate.item_type == item_type
        and candidate.created is not None
        and now_seconds - candidate.created >= min_age_seconds
    ]


@dataclass
class DedupStats:
    checked: int = 0
    excluded: int = 0


class DedupFilter:
    """Drop candidates whose stored record marks them as already handled."""

    def __init__(self, store: RecordStore, keys: RecordKeys) -> None:
        self.store = store
        self.keys = keys
        self.logger = structlog.get_logger("relister.dedup")
        self.last_stats = DedupStats()

    def filter(self, candidates: Sequence[Candidate]) -> list[Candidate]:
        stats = DedupStats()
        kept: list[Candidate] = []
        width = self.store.batch_read_limit
        for start in range(0, len(candidates), width):
            chunk = candidates[start : start + width]
            records = self.store.batch_get(self.keys.key(c.id) for c in chunk)
            excluded = {key for key, record in records.items() if is_terminal(record)}
            stats.checked += len(chunk)
            stats.excluded += sum(1 for c in chunk if self.keys.key(c.id) in excluded)
            kept.extend(c for c in chunk if self.keys.key(c.id) not in excluded)
        self.last_stats = stats
        self.logger.debug("dedup_filtered", checked=stats.checked, excluded=stats.excluded)
        return kept


__all__ = ["DedupFilter", "DedupStats", "admit", "unique_by_id"]
