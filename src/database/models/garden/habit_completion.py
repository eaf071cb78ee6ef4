"""
HabitCompletion Model - Idempotency Guard for XP Awards
========================================================

Purpose
-------
Immutable record that a habit was completed on a calendar day, plus the
plant that received the XP.

Schema Design
-------------
- Unique constraint on (habit_id, completed_on) is the single source of
  truth for "at most one completion per habit per day"
- Writers insert with ON CONFLICT DO NOTHING; zero affected rows means the
  day was already completed by another request
- ``garden_id`` is denormalized so window counts need no join
"""

from __future__ import annotations

from datetime import date, datetime
from typing import TYPE_CHECKING

from sqlalchemy import (
    Date,
    DateTime,
    ForeignKey,
    Index,
    Integer,
    UniqueConstraint,
    func,
)
from sqlalchemy.orm import Mapped, mapped_column, relationship

from src.core.database.base import Base, IdMixin, utc_now

if TYPE_CHECKING:
    from .habit import Habit
    from .plant import Plant


class HabitCompletion(Base, IdMixin):
    """One completion of one habit on one day."""

    __tablename__ = "habit_completions"
    __table_args__ = (
        UniqueConstraint(
            "habit_id",
            "completed_on",
            name="uq_habit_completions_habit_day",
        ),
        Index("ix_habit_completions_garden_day", "garden_id", "completed_on"),
    )

    habit_id: Mapped[int] = mapped_column(
        ForeignKey("habits.id", ondelete="CASCADE"),
        nullable=False,
    )

    plant_id: Mapped[int] = mapped_column(
        ForeignKey("plants.id", ondelete="CASCADE"),
        nullable=False,
    )

    garden_id: Mapped[int] = mapped_column(
        ForeignKey("gardens.id", ondelete="CASCADE"),
        nullable=False,
    )

    completed_on: Mapped[date] = mapped_column(Date, nullable=False)

    xp_awarded: Mapped[int] = mapped_column(Integer, nullable=False)

    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        nullable=False,
        default=utc_now,
        server_default=func.now(),
    )

    habit: Mapped["Habit"] = relationship(back_populates="completions")
    plant: Mapped["Plant"] = relationship(back_populates="completions")

    def __repr__(self) -> str:
        return (
            f"<HabitCompletion(habit_id={self.habit_id}, "
            f"completed_on={self.completed_on}, plant_id={self.plant_id})>"
        )
