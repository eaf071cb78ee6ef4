"""
Habit Garden Domain Validators

Purpose
-------
Validation helpers that run before any store I/O. Each raises a
structured ``ValidationError`` on failure and returns the normalized value
on success.

Usage
-----
    from src.modules.shared.validators import parse_day

    parse_day("2024-06-10")   # date(2024, 6, 10)
    parse_day("2024-6-10")    # raises ValidationError
"""

from __future__ import annotations

import re
from datetime import date, datetime
from typing import Any, Optional

from .constants import MAX_HABIT_TITLE_LENGTH, MAX_XP_REWARD, MIN_XP_REWARD
from .exceptions import ValidationError

_DAY_PATTERN = re.compile(r"^\d{4}-\d{2}-\d{2}$")


def parse_day(value: Any, field: str = "day") -> date:
    """
    Parse a calendar day in strict ``YYYY-MM-DD`` form.

    ``date`` instances pass through unchanged; a ``datetime`` is reduced
    to its calendar day.

    Raises:
        ValidationError: If the value is not a real calendar day
    """
    if isinstance(value, datetime):
        return value.date()
    if isinstance(value, date):
        return value
    if not isinstance(value, str) or not _DAY_PATTERN.match(value):
        raise ValidationError(field, f"expected YYYY-MM-DD, got {value!r}")
    try:
        return date.fromisoformat(value)
    except ValueError as exc:
        raise ValidationError(field, f"not a calendar day: {value!r}") from exc


def validate_entity_id(value: Any, field: str) -> int:
    """
    Validate a database identity.

    Raises:
        ValidationError: If value is missing or not a positive integer
    """
    if value is None:
        raise ValidationError(field, "no target selected")
    if isinstance(value, bool) or not isinstance(value, int) or value <= 0:
        raise ValidationError(field, f"must be a positive integer, got {value!r}")
    return value


def validate_xp_reward(value: Any, max_reward: Optional[int] = None) -> int:
    """
    Validate a habit XP reward (0..1000 by default).

    Raises:
        ValidationError: If reward is not an integer in range
    """
    upper = MAX_XP_REWARD if max_reward is None else max_reward
    if isinstance(value, bool) or not isinstance(value, int):
        raise ValidationError("xp_reward", f"must be an integer, got {value!r}")
    if not (MIN_XP_REWARD <= value <= upper):
        raise ValidationError(
            "xp_reward",
            f"must be between {MIN_XP_REWARD} and {upper}, got {value}",
        )
    return value


def validate_title(value: Any, field: str = "title") -> str:
    """
    Validate and trim a user-entered title or name.

    Raises:
        ValidationError: If empty after trimming or too long
    """
    if not isinstance(value, str) or not value.strip():
        raise ValidationError(field, f"{field} is required")
    trimmed = value.strip()
    if len(trimmed) > MAX_HABIT_TITLE_LENGTH:
        raise ValidationError(
            field, f"{field} must be at most {MAX_HABIT_TITLE_LENGTH} characters"
        )
    return trimmed
