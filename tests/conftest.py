"""
Pytest Configuration and Fixtures for Habit Garden Tests
========================================================

Purpose
-------
Centralized test fixtures for the completion and progression engine.
Provides reusable fixtures for the database, garden services, domain
snapshots and mocks.

Responsibilities
----------------
- Test environment variables (set before any ``src`` import, since
  Config loads at import time)
- File-backed SQLite database per test for integration tests
- Garden store, scope and service wiring
- Domain snapshot factories for unit tests
- Event bus and preference store doubles

Architecture Notes
------------------
- Unit tests use mocks (fast, isolated)
- Integration tests use a real SQLite database through DatabaseService
- Database fixtures provide a clean slate per test
"""

from __future__ import annotations

import os

os.environ["ENVIRONMENT"] = "testing"
os.environ["LOG_LEVEL"] = "DEBUG"
os.environ["LOG_TO_FILE"] = "false"
os.environ["PREFERENCE_BACKEND"] = "memory"

from datetime import date
from typing import AsyncGenerator, Callable
from unittest.mock import AsyncMock, MagicMock

import pytest
import pytest_asyncio

from src.core.config.config import Config
from src.core.database.service import DatabaseService
from src.core.event.bus import EventBus
from src.core.logging.logger import get_logger
from src.core.preferences.store import InMemoryPreferenceStore
from src.database.models.enums import HabitFrequency
from src.domain.models.garden import CompletionRecord, Habit, Plant
from src.modules.garden.session import OwnerScope
from src.modules.garden.store import GardenStore

logger = get_logger(__name__)

TODAY = date(2024, 6, 10)


# ============================================================================
# DATABASE FIXTURES (SQLite)
# ============================================================================


@pytest_asyncio.fixture
async def garden_db(tmp_path) -> AsyncGenerator[type[DatabaseService], None]:
    """
    Initialize DatabaseService against a fresh SQLite file.

    Scope: function (clean database per test)
    """
    await DatabaseService.shutdown()
    url = f"sqlite+aiosqlite:///{tmp_path / 'garden.db'}"
    await DatabaseService.initialize(url)
    await DatabaseService.create_schema()

    yield DatabaseService

    await DatabaseService.shutdown()


@pytest_asyncio.fixture
async def garden_store(garden_db) -> GardenStore:
    return GardenStore(garden_db, get_logger("tests.garden_store"), Config)


@pytest_asyncio.fixture
async def scope(garden_store: GardenStore) -> OwnerScope:
    """Owner scope for a freshly created garden."""
    garden_id = await garden_store.ensure_garden("user-1")
    return OwnerScope(user_id="user-1", garden_id=garden_id)


# ============================================================================
# SERVICE DEPENDENCY FIXTURES
# ============================================================================


@pytest.fixture
def event_bus() -> EventBus:
    """Real, isolated event bus."""
    return EventBus()


@pytest.fixture
def mock_event_bus(mocker) -> MagicMock:
    """Mock event bus recording publish calls."""
    bus = mocker.MagicMock(spec=EventBus)
    bus.publish = AsyncMock(return_value=[])
    return bus


@pytest.fixture
def mock_store(mocker) -> MagicMock:
    """Mock GardenStore with async methods."""
    store = mocker.MagicMock(spec=GardenStore)
    store.complete_habit = AsyncMock()
    store.fetch_active_habits = AsyncMock(return_value=[])
    store.fetch_live_plants = AsyncMock(return_value=[])
    store.fetch_completions_on = AsyncMock(return_value=[])
    store.count_completions_between = AsyncMock(return_value=0)
    return store


@pytest.fixture
def preferences() -> InMemoryPreferenceStore:
    return InMemoryPreferenceStore()


@pytest.fixture
def test_logger():
    return get_logger("tests")


@pytest.fixture
def owner_scope() -> OwnerScope:
    """Scope for unit tests that never touch the database."""
    return OwnerScope(user_id="user-1", garden_id=1)


# ============================================================================
# DOMAIN SNAPSHOT FACTORIES
# ============================================================================


@pytest.fixture
def make_habit() -> Callable[..., Habit]:
    """Factory for Habit snapshots."""

    def _make(
        id: int = 7,
        title: str = "Read 20 pages",
        xp_reward: int = 10,
        is_active: bool = True,
        frequency: HabitFrequency = HabitFrequency.DAILY,
    ) -> Habit:
        return Habit(
            id=id,
            title=title,
            frequency=frequency,
            xp_reward=xp_reward,
            is_active=is_active,
        )

    return _make


@pytest.fixture
def make_plant() -> Callable[..., Plant]:
    """Factory for Plant snapshots."""

    def _make(
        id: int = 3,
        name: str = "Fern",
        xp: int = 0,
        is_dead: bool = False,
        species: str = "sprout",
        stored_stage: int | None = None,
    ) -> Plant:
        return Plant(
            id=id,
            name=name,
            species=species,
            xp=xp,
            stored_stage=xp // 25 if stored_stage is None else stored_stage,
            is_dead=is_dead,
        )

    return _make


@pytest.fixture
def make_completion() -> Callable[..., CompletionRecord]:
    def _make(habit_id: int = 7, day: date = TODAY, plant_id: int = 3) -> CompletionRecord:
        return CompletionRecord(habit_id=habit_id, day=day, plant_id=plant_id)

    return _make
