"""
Domain models package for Habit Garden.

Immutable snapshots of store rows, separate from the SQLAlchemy models in
``src.database.models``. The garden store converts rows to snapshots; the
services work only with snapshots.
"""

from .base import (
    DomainValidationError,
    validate_non_negative,
    validate_positive,
    validate_range,
)
from .garden import CompletionRecord, Habit, Plant

__all__ = [
    "DomainValidationError",
    "validate_positive",
    "validate_non_negative",
    "validate_range",
    "Habit",
    "Plant",
    "CompletionRecord",
]
