"""
Database Models Package
========================

SQLAlchemy ORM models for Habit Garden.

All models are schema-only:
- Use Mapped[] syntax with mapped_column()
- Inherit from IdMixin / TimestampMixin
- Explicit foreign key constraints with CASCADE rules
- Uniqueness rules live in the schema, not in service code

Domain Organization:
--------------------
- garden: gardens, habits, plants and habit completions
- enums: shared type-safe enumerations
"""

from src.core.database.base import Base

from .enums import HabitFrequency
from .garden import Garden, Habit, HabitCompletion, Plant

__all__ = [
    "Base",
    "HabitFrequency",
    "Garden",
    "Habit",
    "HabitCompletion",
    "Plant",
]
