"""
Unit tests for plant progression formulas.

Tests stage derivation, progress within a stage, and award previews.
"""

import pytest

from src.modules.shared.formulas import preview_award, progress_within_stage, stage_of


@pytest.mark.unit
class TestStageOf:
    """Stage is floor(xp / 25)."""

    @pytest.mark.parametrize(
        "xp, expected",
        [(0, 0), (24, 0), (25, 1), (49, 1), (50, 2), (60, 2), (1000, 40)],
    )
    def test_stage_boundaries(self, xp, expected):
        """Stages change exactly at multiples of 25."""
        assert stage_of(xp) == expected

    def test_stage_is_monotonic(self):
        """More XP never means a lower stage."""
        stages = [stage_of(xp) for xp in range(0, 500)]
        assert stages == sorted(stages)

    def test_negative_xp_clamped(self):
        """Negative XP from inconsistent data maps to stage 0."""
        assert stage_of(-30) == 0


@pytest.mark.unit
class TestProgressWithinStage:
    """Fraction of the way through the current stage."""

    def test_mid_stage_fraction(self):
        """60 XP is 10 of 25 into stage 2."""
        progress = progress_within_stage(60)

        assert progress.stage == 2
        assert progress.stage_start_xp == 50
        assert progress.next_stage_xp == 75
        assert progress.within_stage == 10
        assert progress.fraction_complete == pytest.approx(0.4)

    def test_zero_at_stage_boundary(self):
        """Exactly on a boundary the new stage has no progress yet."""
        progress = progress_within_stage(75)

        assert progress.stage == 3
        assert progress.fraction_complete == 0.0

    def test_fraction_always_in_unit_interval(self):
        """Fraction stays within [0, 1) for every XP total."""
        for xp in range(-10, 300):
            fraction = progress_within_stage(xp).fraction_complete
            assert 0.0 <= fraction < 1.0


@pytest.mark.unit
class TestPreviewAward:
    """Effect of an award before it is applied."""

    def test_crossing_boundary_levels_up(self):
        """20 XP + 5 reaches 25 and stage 1."""
        preview = preview_award(20, 5)

        assert preview.to_xp == 25
        assert preview.from_stage == 0
        assert preview.to_stage == 1
        assert preview.levelled_up is True
        assert preview.stages_gained == 1

    def test_within_stage_does_not_level(self):
        preview = preview_award(26, 10)

        assert preview.levelled_up is False
        assert preview.stages_gained == 0

    def test_large_reward_gains_several_stages(self):
        """A reward may skip stages; stages_gained reports all of them."""
        preview = preview_award(0, 100)

        assert preview.to_stage == 4
        assert preview.stages_gained == 4

    def test_zero_reward_is_noop(self):
        preview = preview_award(40, 0)

        assert preview.from_xp == preview.to_xp == 40
        assert preview.levelled_up is False
