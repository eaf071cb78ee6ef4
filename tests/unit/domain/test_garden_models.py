"""
Unit tests for garden domain snapshots.

Purpose
-------
Verify that Habit, Plant and CompletionRecord snapshots enforce their
invariants and that plant stage is always derived from XP.

Testing Strategy
----------------
- Pure Python (no database)
- Fake ORM rows via SimpleNamespace for ``from_db``
"""

from datetime import date
from types import SimpleNamespace

import pytest

from src.database.models.enums import HabitFrequency
from src.domain.models.base import DomainValidationError
from src.domain.models.garden import CompletionRecord, Habit, Plant


@pytest.mark.unit
@pytest.mark.domain
class TestPlantStage:
    """Plant stage derivation."""

    def test_stage_derived_from_xp(self):
        """Stage ignores the stored column."""
        # Arrange
        plant = Plant(id=1, name="Fern", species="sprout", xp=60, stored_stage=0)

        # Act / Assert
        assert plant.stage == 2
        assert plant.stage_hint_stale is True

    def test_consistent_hint_not_stale(self):
        plant = Plant(id=1, name="Fern", species="sprout", xp=60, stored_stage=2)

        assert plant.stage_hint_stale is False

    def test_progress_uses_xp(self):
        plant = Plant(id=1, name="Fern", species="sprout", xp=30)

        assert plant.progress.fraction_complete == pytest.approx(0.2)

    def test_dead_plant_not_live(self):
        plant = Plant(id=1, name="Fern", species="sprout", xp=0, is_dead=True)

        assert plant.is_live is False

    def test_negative_xp_rejected(self):
        with pytest.raises(DomainValidationError):
            Plant(id=1, name="Fern", species="sprout", xp=-1)

    def test_non_positive_id_rejected(self):
        with pytest.raises(DomainValidationError):
            Plant(id=0, name="Fern", species="sprout", xp=0)


@pytest.mark.unit
@pytest.mark.domain
class TestHabit:
    def test_reward_range_enforced(self):
        with pytest.raises(DomainValidationError):
            Habit(id=1, title="Run", frequency=HabitFrequency.DAILY, xp_reward=1001)

    def test_from_db_converts_row(self):
        """ORM rows become frozen snapshots."""
        # Arrange
        row = SimpleNamespace(
            id=4,
            title="Stretch",
            frequency="weekly",
            xp_reward=15,
            is_active=False,
            description=None,
        )

        # Act
        habit = Habit.from_db(row)

        # Assert
        assert habit.frequency is HabitFrequency.WEEKLY
        assert habit.xp_reward == 15
        assert habit.is_active is False

    def test_snapshot_is_immutable(self):
        habit = Habit(id=1, title="Run", frequency=HabitFrequency.DAILY, xp_reward=5)

        with pytest.raises(AttributeError):
            habit.xp_reward = 50  # type: ignore[misc]


@pytest.mark.unit
@pytest.mark.domain
class TestCompletionRecord:
    def test_from_db(self):
        row = SimpleNamespace(
            habit_id=7, completed_on=date(2024, 6, 10), plant_id=3, xp_awarded=10
        )

        record = CompletionRecord.from_db(row)

        assert record == CompletionRecord(
            habit_id=7, day=date(2024, 6, 10), plant_id=3, xp_awarded=10
        )
