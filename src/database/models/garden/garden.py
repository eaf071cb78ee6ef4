"""
Garden Model
============

Owner partition for habits and plants. One garden per user; every other
garden table hangs off ``gardens.id``.
"""

from __future__ import annotations

from typing import TYPE_CHECKING, List

from sqlalchemy import Index, String
from sqlalchemy.orm import Mapped, mapped_column, relationship

from src.core.database.base import Base, IdMixin, TimestampMixin

if TYPE_CHECKING:
    from .habit import Habit
    from .plant import Plant


class Garden(Base, IdMixin, TimestampMixin):
    """A user's garden."""

    __tablename__ = "gardens"
    __table_args__ = (
        Index("ix_gardens_owner_id", "owner_id", unique=True),
    )

    owner_id: Mapped[str] = mapped_column(
        String(64),
        nullable=False,
        doc="Opaque user identity supplied by the session provider",
    )

    name: Mapped[str] = mapped_column(
        String(100),
        nullable=False,
        default="My Garden",
    )

    habits: Mapped[List["Habit"]] = relationship(back_populates="garden")
    plants: Mapped[List["Plant"]] = relationship(back_populates="garden")

    def __repr__(self) -> str:
        return f"<Garden(id={self.id}, owner_id='{self.owner_id}')>"
