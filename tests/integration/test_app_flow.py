"""
Integration Tests for the wired application
===========================================

Purpose
-------
Drive the complete habit flow through ``create_app``: workflow submit,
atomic award, refresh request, and the reloaded activity view.

Testing Strategy
----------------
- garden_db initializes DatabaseService first, so create_app reuses it
- Real EventBus and in-memory preferences
"""

from datetime import date

import pytest

from src.core.event.bus import EventBus
from src.core.preferences.store import InMemoryPreferenceStore
from src.main import create_app, shutdown_app
from src.modules.garden.completion_ledger import CompletionLedger
from src.modules.garden.completion_workflow import WorkflowState
from src.modules.garden.session import StaticSessionProvider
from src.modules.shared.constants import EVENT_PLANT_LEVELLED_UP

TODAY = date(2024, 6, 10)


@pytest.fixture
async def app(garden_db, scope):
    app = await create_app(
        sessions=StaticSessionProvider(scope),
        events=EventBus(),
        preferences=InMemoryPreferenceStore(),
    )
    yield app
    await shutdown_app(app)


@pytest.mark.integration
@pytest.mark.database
class TestCompleteHabitFlow:
    async def test_submit_refreshes_activity_view(self, app, scope):
        """A settled completion reloads the view through the event bus."""
        # Arrange
        habit = await app.store.insert_habit(scope, "Stretch", xp_reward=5)
        plant = await app.store.insert_plant(scope, "Fern")
        before = await app.activity.load(scope, TODAY)
        levelled = []
        app.events.subscribe(EVENT_PLANT_LEVELLED_UP, levelled.append)

        # Act
        notice = await app.workflow.submit(habit, plant, before.ledger, TODAY)

        # Assert
        assert notice.state is WorkflowState.SETTLED_SUCCESS
        assert notice.message == "+5 XP to Fern"
        after = app.activity.latest_view(scope)
        assert after is not before
        assert after.done_count == 1
        assert after.ledger.has_completed(habit.id, TODAY) is True
        assert after.focal_plant_id == plant.id
        assert levelled == []

    async def test_resubmit_blocked_by_ledger(self, app, scope):
        habit = await app.store.insert_habit(scope, "Stretch", xp_reward=5)
        plant = await app.store.insert_plant(scope, "Fern")
        await app.workflow.submit(habit, plant, CompletionLedger.empty(TODAY), TODAY)
        ledger = app.activity.latest_view(scope).ledger

        notice = await app.workflow.submit(habit, plant, ledger, TODAY)

        assert notice.accepted is False
        plants = await app.store.fetch_plants(scope)
        assert plants[0].xp == 5

    async def test_stale_ledger_reports_already_done(self, app, scope):
        """A second client with a stale ledger learns the habit is done."""
        # Arrange
        habit = await app.store.insert_habit(scope, "Stretch", xp_reward=5)
        plant = await app.store.insert_plant(scope, "Fern")
        stale = CompletionLedger.empty(TODAY)
        await app.store.complete_habit(scope, habit.id, plant.id, TODAY)

        # Act
        notice = await app.workflow.submit(habit, plant, stale, TODAY)

        # Assert
        assert notice.state is WorkflowState.SETTLED_ALREADY_DONE
        assert (await app.store.fetch_plants(scope))[0].xp == 5
