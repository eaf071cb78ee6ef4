"""
Completion ledger: which habits are already done on a given day.

Pure lookups over a snapshot of completion records; no I/O. The workflow
consults the ledger before allowing a submission. The store's unique
constraint remains the authority; the ledger only keeps the client from
issuing calls it already knows are redundant.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import date
from typing import AbstractSet, Iterable, Union

from src.domain.models.garden import CompletionRecord
from src.modules.shared.validators import parse_day

DayLike = Union[date, str]


def has_completed_today(
    habit_id: int, day: DayLike, completed_habit_ids: AbstractSet[int]
) -> bool:
    """
    True if ``habit_id`` is in the set of habits completed on ``day``.

    ``completed_habit_ids`` must already be the set for ``day``; ``day`` is
    validated but not otherwise consulted.
    """
    parse_day(day)
    return habit_id in completed_habit_ids


@dataclass(frozen=True)
class CompletionLedger:
    """Snapshot of the habits completed on one calendar day."""

    day: date
    habit_ids: frozenset[int] = field(default_factory=frozenset)

    @classmethod
    def from_records(
        cls, day: DayLike, records: Iterable[CompletionRecord]
    ) -> CompletionLedger:
        ledger_day = parse_day(day)
        return cls(
            day=ledger_day,
            habit_ids=frozenset(r.habit_id for r in records if r.day == ledger_day),
        )

    @classmethod
    def empty(cls, day: DayLike) -> CompletionLedger:
        return cls(day=parse_day(day))

    def has_completed(self, habit_id: int, day: DayLike) -> bool:
        # A ledger knows nothing about days other than its own
        if parse_day(day) != self.day:
            return False
        return habit_id in self.habit_ids

    def __contains__(self, habit_id: object) -> bool:
        return habit_id in self.habit_ids

    def __len__(self) -> int:
        return len(self.habit_ids)
