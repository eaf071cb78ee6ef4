"""
Integration Tests for DatabaseService
=====================================

Purpose
-------
Test database operations against a real SQLite file.
Verifies initialization, schema creation, transactions and health checks.

Test Coverage
-------------
- Schema creation for the garden tables
- Transaction commit and rollback
- Health check before and after initialization

Testing Strategy
----------------
- Integration tests (real aiosqlite engine, one file per test)
- Tests actual database behavior, not mocks
"""

import pytest
from sqlalchemy import select, text

from src.core.database.service import (
    DatabaseInitializationError,
    DatabaseNotInitializedError,
    DatabaseService,
)
from src.database.models.garden import Garden


# ============================================================================
# CONNECTION & SCHEMA
# ============================================================================


@pytest.mark.integration
@pytest.mark.database
class TestDatabaseConnection:
    """Test database connection and schema."""

    async def test_health_check(self, garden_db):
        assert await garden_db.health_check() is True

    async def test_schema_created(self, garden_db):
        """Garden tables exist after create_schema."""
        # Act
        async with garden_db.get_session() as session:
            result = await session.execute(
                text("SELECT name FROM sqlite_master WHERE type = 'table'")
            )
            tables = {row.name for row in result.fetchall()}

        # Assert
        assert {"gardens", "habits", "plants", "habit_completions"} <= tables

    async def test_uninitialized_service(self):
        await DatabaseService.shutdown()

        assert await DatabaseService.health_check() is False
        with pytest.raises(DatabaseNotInitializedError):
            async with DatabaseService.get_session():
                pass

    async def test_unusable_url_rejected(self):
        """A malformed URL fails initialization without leaving an engine behind."""
        await DatabaseService.shutdown()

        with pytest.raises(DatabaseInitializationError):
            await DatabaseService.initialize("not a database url")

        assert await DatabaseService.health_check() is False


# ============================================================================
# TRANSACTIONS
# ============================================================================


@pytest.mark.integration
@pytest.mark.database
class TestDatabaseTransactions:
    """Test transaction management."""

    async def test_transaction_commit(self, garden_db):
        # Arrange / Act
        async with garden_db.get_transaction() as session:
            session.add(Garden(owner_id="owner-a", name="A"))

        # Assert
        async with garden_db.get_session() as session:
            garden = (
                await session.execute(select(Garden).where(Garden.owner_id == "owner-a"))
            ).scalar_one_or_none()
        assert garden is not None
        assert garden.name == "A"

    async def test_transaction_rollback_on_error(self, garden_db):
        """An exception inside the block discards every write."""
        # Act
        with pytest.raises(RuntimeError):
            async with garden_db.get_transaction() as session:
                session.add(Garden(owner_id="owner-b", name="B"))
                await session.flush()
                raise RuntimeError("abort")

        # Assert
        async with garden_db.get_session() as session:
            garden = (
                await session.execute(select(Garden).where(Garden.owner_id == "owner-b"))
            ).scalar_one_or_none()
        assert garden is None

    async def test_snapshot_read_does_not_wait_for_writer(self, garden_db):
        """A read session sees committed data while a write transaction is open."""
        # Arrange
        async with garden_db.get_transaction() as writer:
            writer.add(Garden(owner_id="owner-c", name="C"))
            await writer.flush()

            # Act
            async with garden_db.get_session() as reader:
                visible = (
                    await reader.execute(select(Garden).where(Garden.owner_id == "owner-c"))
                ).scalar_one_or_none()

        # Assert
        assert visible is None
        async with garden_db.get_session() as reader:
            committed = (
                await reader.execute(select(Garden).where(Garden.owner_id == "owner-c"))
            ).scalar_one_or_none()
        assert committed is not None
