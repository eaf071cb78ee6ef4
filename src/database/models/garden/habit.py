"""
Habit Model
===========

Schema-only representation of a recurring habit.

Habits are never mutated by the completion engine. Deactivation
(``is_active = False``) is a soft delete: the habit drops out of future
completion but its completion history is kept.
"""

from __future__ import annotations

from typing import TYPE_CHECKING, List, Optional

from sqlalchemy import (
    Boolean,
    CheckConstraint,
    Enum,
    ForeignKey,
    Index,
    Integer,
    String,
    Text,
)
from sqlalchemy.orm import Mapped, mapped_column, relationship

from src.core.database.base import Base, IdMixin, TimestampMixin
from src.database.models.enums import HabitFrequency

if TYPE_CHECKING:
    from .garden import Garden
    from .habit_completion import HabitCompletion


class Habit(Base, IdMixin, TimestampMixin):
    """A user-defined recurring task with an XP reward."""

    __tablename__ = "habits"
    __table_args__ = (
        CheckConstraint(
            "xp_reward >= 0 AND xp_reward <= 1000",
            name="ck_habits_xp_reward_range",
        ),
        Index("ix_habits_garden_active", "garden_id", "is_active"),
    )

    garden_id: Mapped[int] = mapped_column(
        ForeignKey("gardens.id", ondelete="CASCADE"),
        nullable=False,
    )

    title: Mapped[str] = mapped_column(String(200), nullable=False)

    description: Mapped[Optional[str]] = mapped_column(Text, nullable=True)

    frequency: Mapped[HabitFrequency] = mapped_column(
        Enum(
            HabitFrequency,
            name="habit_frequency",
            values_callable=lambda enum_cls: [member.value for member in enum_cls],
        ),
        nullable=False,
        default=HabitFrequency.DAILY,
    )

    xp_reward: Mapped[int] = mapped_column(Integer, nullable=False, default=5)

    is_active: Mapped[bool] = mapped_column(Boolean, nullable=False, default=True)

    garden: Mapped["Garden"] = relationship(back_populates="habits")
    completions: Mapped[List["HabitCompletion"]] = relationship(
        back_populates="habit"
    )

    def __repr__(self) -> str:
        return (
            f"<Habit(id={self.id}, title='{self.title}', "
            f"xp_reward={self.xp_reward}, is_active={self.is_active})>"
        )
