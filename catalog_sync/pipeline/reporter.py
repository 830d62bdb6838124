"""Per-run outcome accounting."""

from __future__ import annotations

import threading
from dataclasses import dataclass, field
from enum import Enum
from typing import Dict, List


class Entity(str, Enum):
    CATEGORY = "category"
    SUBCATEGORY = "subcategory"
    RESOURCE = "resource"


class Outcome(str, Enum):
    CREATED = "created"
    UPDATED = "updated"
    SKIPPED = "skipped"
    FAILED = "failed"


@dataclass(slots=True)
class FailureDetail:
    entity: Entity
    key: str
    reason: str


def _empty_counts() -> Dict[Entity, Dict[Outcome, int]]:
    return {entity: {outcome: 0 for outcome in Outcome} for entity in Entity}


@dataclass
class SyncSummary:
    counts: Dict[Entity, Dict[Outcome, int]] = field(default_factory=_empty_counts)
    failures: List[FailureDetail] = field(default_factory=list)
    invalid_rows: List[str] = field(default_factory=list)

    def count(self, entity: Entity, outcome: Outcome) -> int:
        return self.counts[entity][outcome]

    @property
    def total_failed(self) -> int:
        return sum(self.counts[entity][Outcome.FAILED] for entity in Entity)

    @property
    def ok(self) -> bool:
        return self.total_failed == 0

    def format_lines(self) -> List[str]:
        lines: List[str] = []
        for entity in Entity:
            parts = ", ".join(
                f"{self.counts[entity][outcome]} {outcome.value}" for outcome in Outcome
            )
            lines.append(f"{entity.value}: {parts}")
        if self.invalid_rows:
            lines.append(f"invalid rows dropped: {len(self.invalid_rows)}")
            lines.extend(f"  {message}" for message in self.invalid_rows)
        for failure in self.failures:
            lines.append(
                f"FAILED {failure.entity.value} {failure.key}: {failure.reason}"
            )
        return lines


class RunReporter:
    """Thread-safe accumulator of item outcomes."""

    def __init__(self) -> None:
        self._lock = threading.Lock()
        self._summary = SyncSummary()

    def record(self, entity: Entity, outcome: Outcome) -> None:
        with self._lock:
            self._summary.counts[entity][outcome] += 1

    def record_failure(self, entity: Entity, key: str, reason: str) -> None:
        with self._lock:
            self._summary.counts[entity][Outcome.FAILED] += 1
            self._summary.failures.append(FailureDetail(entity, key, reason))

    def record_invalid_row(self, message: str) -> None:
        with self._lock:
            self._summary.invalid_rows.append(message)

    def summary(self) -> SyncSummary:
        with self._lock:
            return SyncSummary(
                counts={
                    entity: dict(outcomes)
                    for entity, outcomes in self._summary.counts.items()
                },
                failures=list(self._summary.failures),
                invalid_rows=list(self._summary.invalid_rows),
            )
