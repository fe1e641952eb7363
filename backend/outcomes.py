"""
Write-outcome classification and per-kind aggregation.

Every persistence write returns a MigrationOutcome. Writes of one batch run
concurrently (bounded thread pool); each unit only returns its outcome and
the tracker merges the results sequentially once the whole batch is done, so
the counters are never touched by worker threads.
"""

from __future__ import annotations

from concurrent.futures import ThreadPoolExecutor
from dataclasses import dataclass
from enum import Enum
from typing import Any, Callable, Iterable


class MigrationOutcome(str, Enum):
    CREATED = "created"
    UPDATED = "updated"
    UNCHANGED = "unchanged"


@dataclass
class BatchCounts:
    kind: str
    created: int = 0
    updated: int = 0
    unchanged: int = 0
    linked: int = 0
    skipped: int = 0

    def add(self, outcome: MigrationOutcome) -> None:
        if outcome is MigrationOutcome.CREATED:
            self.created += 1
        elif outcome is MigrationOutcome.UPDATED:
            self.updated += 1
        else:
            self.unchanged += 1

    @property
    def total(self) -> int:
        return self.created + self.updated + self.unchanged

    def summary(self) -> str:
        return (
            f"{self.kind}: created={self.created} "
            f"updated={self.updated} unchanged={self.unchanged}"
        )

    def as_row(self) -> dict:
        return {
            "kind": self.kind,
            "created": self.created,
            "updated": self.updated,
            "unchanged": self.unchanged,
            "linked": self.linked,
            "skipped": self.skipped,
        }


def fan_out(func: Callable[[Any], Any], items: Iterable, workers: int = 1) -> list:
    """
    Apply `func` to every item with at most `workers` threads.

    Results come back in input order. Returns only after every submitted call
    has finished; the first exception is re-raised after its siblings ran.
    """
    items = list(items)
    if workers <= 1 or len(items) <= 1:
        return [func(item) for item in items]
    with ThreadPoolExecutor(max_workers=workers) as pool:
        futures = [pool.submit(func, item) for item in items]
    return [future.result() for future in futures]


class UpsertTracker:
    """Classifies and counts create-or-identify writes for one migration run."""

    def __init__(self, store, workers: int = 1):
        self.store = store
        self.workers = max(1, int(workers))
        self.counts: dict[str, BatchCounts] = {}
        self.warnings: list[tuple[str, str]] = []

    def _counts(self, kind: str) -> BatchCounts:
        if kind not in self.counts:
            self.counts[kind] = BatchCounts(kind)
        return self.counts[kind]

    def upsert(self, kind: str, key: dict, payload: dict) -> tuple[dict, MigrationOutcome]:
        """Delegate one write to the store. Safe to call from worker threads."""
        return self.store.create_or_identify(kind, key, payload)

    def run_batch(self, kind: str, items: list[tuple[dict, dict]]) -> list[dict]:
        """
        Upsert every (key, payload) pair of one entity kind and log the totals.

        Returns the stored entities in input order.
        """
        results = fan_out(lambda item: self.upsert(kind, item[0], item[1]), items, self.workers)
        counts = self._counts(kind)
        for _, outcome in results:
            counts.add(outcome)
        print(f"[INFO] {counts.summary()}")
        return [entity for entity, _ in results]

    def record_links(self, kind: str, linked: int) -> None:
        counts = self._counts(kind)
        counts.linked += linked
        print(f"[INFO] {kind}: linked={counts.linked}")

    def skip(self, kind: str, message: str) -> None:
        self._counts(kind).skipped += 1
        self.warnings.append((kind, message))
        print(f"[WARN] {kind}: {message}")

    def summary_rows(self) -> list[dict]:
        return [counts.as_row() for counts in self.counts.values()]
