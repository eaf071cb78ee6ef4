"""
Plant Model
===========

Schema-only representation of a tracked plant.

``xp`` only ever grows. ``stage`` is stored redundantly as a hint for
readers that cannot compute it; the authoritative value is always
``xp // STAGE_XP_UNIT`` and the completion engine rewrites the stored
column whenever it changes ``xp``.
"""

from __future__ import annotations

from typing import TYPE_CHECKING, List

from sqlalchemy import Boolean, CheckConstraint, ForeignKey, Index, Integer, String
from sqlalchemy.orm import Mapped, mapped_column, relationship

from src.core.database.base import Base, IdMixin, TimestampMixin

if TYPE_CHECKING:
    from .garden import Garden
    from .habit_completion import HabitCompletion


class Plant(Base, IdMixin, TimestampMixin):
    """A progression target that accumulates XP."""

    __tablename__ = "plants"
    __table_args__ = (
        CheckConstraint("xp >= 0", name="ck_plants_xp_non_negative"),
        CheckConstraint("stage >= 0", name="ck_plants_stage_non_negative"),
        Index("ix_plants_garden_alive", "garden_id", "is_dead"),
    )

    garden_id: Mapped[int] = mapped_column(
        ForeignKey("gardens.id", ondelete="CASCADE"),
        nullable=False,
    )

    name: Mapped[str] = mapped_column(String(100), nullable=False)

    species: Mapped[str] = mapped_column(
        String(50),
        nullable=False,
        default="sprout",
        doc="Free-form category label",
    )

    xp: Mapped[int] = mapped_column(Integer, nullable=False, default=0)

    stage: Mapped[int] = mapped_column(
        Integer,
        nullable=False,
        default=0,
        doc="Cached stage hint; never trusted over xp",
    )

    is_dead: Mapped[bool] = mapped_column(Boolean, nullable=False, default=False)

    garden: Mapped["Garden"] = relationship(back_populates="plants")
    completions: Mapped[List["HabitCompletion"]] = relationship(
        back_populates="plant"
    )

    def __repr__(self) -> str:
        return (
            f"<Plant(id={self.id}, name='{self.name}', xp={self.xp}, "
            f"stage={self.stage}, is_dead={self.is_dead})>"
        )
