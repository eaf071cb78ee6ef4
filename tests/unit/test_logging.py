"""
Unit tests for log context binding and formatting.
"""

import json
import logging

import pytest

from src.core.logging.logger import (
    ContextFilter,
    JSONFormatter,
    LogContext,
    get_log_context,
)


def _record(**extra):
    record = logging.makeLogRecord(
        {"name": "tests", "levelno": logging.INFO, "levelname": "INFO", "msg": "hello"}
    )
    for key, value in extra.items():
        setattr(record, key, value)
    return record


@pytest.mark.unit
class TestLogContext:
    def test_binds_and_restores(self):
        assert "user_id" not in get_log_context()

        with LogContext(user_id="user-1", garden_id=4, operation="complete_habit"):
            bound = get_log_context()

        assert bound["user_id"] == "user-1"
        assert bound["garden_id"] == 4
        assert bound["correlation_id"]
        assert "user_id" not in get_log_context()

    async def test_nested_contexts_merge(self):
        """An inner context keeps the outer owner and replaces the operation."""
        async with LogContext(user_id="user-1", operation="outer"):
            async with LogContext(operation="inner", correlation_id="abc"):
                bound = get_log_context()

        assert bound["user_id"] == "user-1"
        assert bound["operation"] == "inner"
        assert bound["correlation_id"] == "abc"


@pytest.mark.unit
class TestContextFilter:
    def test_fills_missing_fields(self):
        record = _record()

        with LogContext(user_id="user-1"):
            ContextFilter().filter(record)

        assert record.user_id == "user-1"
        assert record.garden_id == "-"

    def test_explicit_extra_wins(self):
        record = _record(user_id="from-extra")

        with LogContext(user_id="from-context"):
            ContextFilter().filter(record)

        assert record.user_id == "from-extra"


@pytest.mark.unit
class TestJSONFormatter:
    def test_nests_extra_fields(self):
        # Arrange
        record = _record(habit_id=7)
        with LogContext(user_id="user-1", correlation_id="c-1"):
            ContextFilter().filter(record)

        # Act
        payload = json.loads(JSONFormatter().format(record))

        # Assert
        assert payload["msg"] == "hello"
        assert payload["user_id"] == "user-1"
        assert payload["correlation_id"] == "c-1"
        assert "garden_id" not in payload
        assert payload["extra"] == {"habit_id": 7}
