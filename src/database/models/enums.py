"""
Database Model Enums
====================

Lightweight enumerations for database models.

These enums are declarative schema helpers; services reference them for
validation but they carry no behavior.
"""

from __future__ import annotations

import enum


class HabitFrequency(str, enum.Enum):
    """
    How often a habit is meant to be performed.

    Purely a label: completion is always keyed per calendar day.
    """

    DAILY = "daily"
    WEEKLY = "weekly"
