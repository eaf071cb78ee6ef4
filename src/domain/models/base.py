"""
Invariant checks for the frozen snapshot dataclasses.

Snapshots call these from ``__post_init__`` so a malformed row fails at
conversion time instead of inside the progression arithmetic.
"""

from __future__ import annotations

from typing import Optional


class DomainValidationError(Exception):
    """A snapshot field broke its invariant; ``field`` names it."""

    def __init__(self, message: str, field: Optional[str] = None):
        super().__init__(message)
        self.field = field


def _check(ok: bool, field_name: str, requirement: str, value: int) -> None:
    if not ok:
        raise DomainValidationError(f"{field_name} {requirement}, got {value}", field=field_name)


def validate_positive(value: int, field_name: str) -> None:
    _check(value > 0, field_name, "must be > 0", value)


def validate_non_negative(value: int, field_name: str) -> None:
    _check(value >= 0, field_name, "must be >= 0", value)


def validate_range(value: int, field_name: str, min_val: int, max_val: int) -> None:
    _check(min_val <= value <= max_val, field_name, f"must be in [{min_val}, {max_val}]", value)
