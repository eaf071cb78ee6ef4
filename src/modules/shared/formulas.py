"""
Plant Progression Formulas

Purpose
-------
Pure calculation functions mapping accumulated XP to a growth stage and to
progress within that stage. Stage is always derived from XP here; a stage
stored alongside a plant row is only a hint and never consulted instead.

Design Notes
------------
- Pure functions only (no side effects, no I/O, no config access)
- Total: negative XP from an inconsistent upstream is clamped to 0
- Results are frozen dataclasses

Usage
-----
    from src.modules.shared.formulas import stage_of, progress_within_stage

    stage_of(60)                  # 2
    progress_within_stage(60)     # StageProgress(stage=2, ..., fraction_complete=0.4)
"""

from __future__ import annotations

from dataclasses import dataclass

from .constants import STAGE_XP_UNIT


@dataclass(frozen=True)
class StageProgress:
    """Position of an XP total inside its growth stage."""

    stage: int
    stage_start_xp: int
    next_stage_xp: int
    within_stage: int
    fraction_complete: float


@dataclass(frozen=True)
class AwardPreview:
    """What awarding ``reward`` XP would do to a plant."""

    from_xp: int
    to_xp: int
    from_stage: int
    to_stage: int

    @property
    def levelled_up(self) -> bool:
        return self.to_stage > self.from_stage

    @property
    def stages_gained(self) -> int:
        return self.to_stage - self.from_stage


def stage_of(xp: int) -> int:
    """
    Calculate the growth stage for an XP total.

    Example:
        >>> stage_of(0)
        0
        >>> stage_of(24)
        0
        >>> stage_of(25)
        1
    """
    return max(0, xp) // STAGE_XP_UNIT


def progress_within_stage(xp: int) -> StageProgress:
    """
    Calculate progress through the current stage.

    ``fraction_complete`` is clamped to [0, 1] and is 0 exactly at stage
    boundaries.

    Example:
        >>> progress_within_stage(30).fraction_complete
        0.2
    """
    safe_xp = max(0, xp)
    stage = stage_of(safe_xp)
    start = stage * STAGE_XP_UNIT
    within = safe_xp - start
    fraction = min(1.0, max(0.0, within / STAGE_XP_UNIT))
    return StageProgress(
        stage=stage,
        stage_start_xp=start,
        next_stage_xp=start + STAGE_XP_UNIT,
        within_stage=within,
        fraction_complete=fraction,
    )


def preview_award(xp: int, reward: int) -> AwardPreview:
    """
    Preview the effect of awarding ``reward`` XP to a plant at ``xp``.

    Example:
        >>> preview_award(20, 5).levelled_up
        True
    """
    from_xp = max(0, xp)
    to_xp = from_xp + max(0, reward)
    return AwardPreview(
        from_xp=from_xp,
        to_xp=to_xp,
        from_stage=stage_of(from_xp),
        to_stage=stage_of(to_xp),
    )
