"""
Unit tests for pre-I/O validators.
"""

from datetime import date, datetime

import pytest

from src.modules.shared.exceptions import ValidationError
from src.modules.shared.validators import (
    parse_day,
    validate_entity_id,
    validate_title,
    validate_xp_reward,
)


@pytest.mark.unit
class TestParseDay:
    def test_parses_iso_day(self):
        assert parse_day("2024-06-10") == date(2024, 6, 10)

    def test_date_passes_through(self):
        day = date(2024, 6, 10)
        assert parse_day(day) is day

    def test_datetime_reduced_to_day(self):
        assert parse_day(datetime(2024, 6, 10, 9, 30)) == date(2024, 6, 10)
        assert type(parse_day(datetime(2024, 6, 10, 9, 30))) is date

    @pytest.mark.parametrize(
        "value",
        ["2024-6-10", "10/06/2024", "2024-06-10T00:00:00", "", None, 20240610],
    )
    def test_rejects_malformed_values(self, value):
        """Only strict YYYY-MM-DD strings are accepted."""
        with pytest.raises(ValidationError) as exc_info:
            parse_day(value)

        assert exc_info.value.field == "day"

    def test_rejects_impossible_calendar_day(self):
        """Well-formed but non-existent days are rejected."""
        with pytest.raises(ValidationError, match="not a calendar day"):
            parse_day("2024-02-30")

    def test_custom_field_name(self):
        with pytest.raises(ValidationError) as exc_info:
            parse_day("bad", field="today")

        assert exc_info.value.error_code == "VALIDATION_TODAY"


@pytest.mark.unit
class TestValidateEntityId:
    def test_accepts_positive_int(self):
        assert validate_entity_id(7, "habit_id") == 7

    def test_missing_means_no_target(self):
        with pytest.raises(ValidationError, match="no target selected"):
            validate_entity_id(None, "plant_id")

    @pytest.mark.parametrize("value", [0, -1, "7", 7.0, True])
    def test_rejects_non_positive_or_non_int(self, value):
        with pytest.raises(ValidationError):
            validate_entity_id(value, "habit_id")


@pytest.mark.unit
class TestValidateXpReward:
    @pytest.mark.parametrize("value", [0, 10, 1000])
    def test_accepts_range(self, value):
        assert validate_xp_reward(value) == value

    @pytest.mark.parametrize("value", [-1, 1001, "10", False])
    def test_rejects_out_of_range(self, value):
        with pytest.raises(ValidationError):
            validate_xp_reward(value)

    def test_custom_upper_bound(self):
        with pytest.raises(ValidationError, match="between 0 and 50"):
            validate_xp_reward(60, max_reward=50)


@pytest.mark.unit
class TestValidateTitle:
    def test_trims(self):
        assert validate_title("  Stretch  ") == "Stretch"

    def test_rejects_blank(self):
        with pytest.raises(ValidationError, match="title is required"):
            validate_title("   ")

    def test_rejects_too_long(self):
        with pytest.raises(ValidationError):
            validate_title("x" * 201)
