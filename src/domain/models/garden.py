"""
Garden snapshot models for Habit Garden.

Purpose
-------
Immutable, point-in-time views of habits, plants and completion records
as read from the store. Every derived view (stage, progress, today's
completed set) is computed from these snapshots after a fresh read and
never patched in place.

Design Notes
------------
- ``Plant.stage`` is always derived from ``xp``; ``stored_stage`` is the
  column value and only a hint. ``stage_hint_stale`` reports disagreement.
- ``from_db`` converts ORM rows; the ORM objects never leave the store.

Usage Example
-------------
>>> plant = Plant(id=1, name="Fern", species="sprout", xp=60, stored_stage=0)
>>> plant.stage
2
>>> plant.stage_hint_stale
True
"""

from __future__ import annotations

from dataclasses import dataclass
from datetime import date
from typing import TYPE_CHECKING, Optional

from src.database.models.enums import HabitFrequency
from src.domain.models.base import (
    validate_non_negative,
    validate_positive,
    validate_range,
)
from src.modules.shared.constants import MAX_XP_REWARD
from src.modules.shared.formulas import StageProgress, progress_within_stage, stage_of

if TYPE_CHECKING:
    from src.database.models.garden import Habit as HabitRow
    from src.database.models.garden import HabitCompletion as HabitCompletionRow
    from src.database.models.garden import Plant as PlantRow


@dataclass(frozen=True)
class Habit:
    """A recurring task that awards ``xp_reward`` when completed."""

    id: int
    title: str
    frequency: HabitFrequency
    xp_reward: int
    is_active: bool = True
    description: Optional[str] = None

    def __post_init__(self) -> None:
        validate_positive(self.id, "id")
        validate_range(self.xp_reward, "xp_reward", 0, MAX_XP_REWARD)

    @classmethod
    def from_db(cls, row: HabitRow) -> Habit:
        return cls(
            id=row.id,
            title=row.title,
            frequency=HabitFrequency(row.frequency),
            xp_reward=row.xp_reward,
            is_active=row.is_active,
            description=row.description,
        )


@dataclass(frozen=True)
class Plant:
    """A progression target that accumulates XP."""

    id: int
    name: str
    species: str
    xp: int
    stored_stage: int = 0
    is_dead: bool = False

    def __post_init__(self) -> None:
        validate_positive(self.id, "id")
        validate_non_negative(self.xp, "xp")

    @property
    def stage(self) -> int:
        return stage_of(self.xp)

    @property
    def progress(self) -> StageProgress:
        return progress_within_stage(self.xp)

    @property
    def stage_hint_stale(self) -> bool:
        return self.stored_stage != self.stage

    @property
    def is_live(self) -> bool:
        return not self.is_dead

    @classmethod
    def from_db(cls, row: PlantRow) -> Plant:
        return cls(
            id=row.id,
            name=row.name,
            species=row.species,
            xp=row.xp,
            stored_stage=row.stage,
            is_dead=row.is_dead,
        )


@dataclass(frozen=True)
class CompletionRecord:
    """The immutable fact that ``habit_id`` was completed on ``day``."""

    habit_id: int
    day: date
    plant_id: int
    xp_awarded: int = 0

    @classmethod
    def from_db(cls, row: HabitCompletionRow) -> CompletionRecord:
        return cls(
            habit_id=row.habit_id,
            day=row.completed_on,
            plant_id=row.plant_id,
            xp_awarded=row.xp_awarded,
        )
