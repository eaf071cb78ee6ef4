"""
Unit tests for the in-process EventBus.
"""

import pytest

from src.core.event.bus import EventBus


@pytest.mark.unit
class TestSubscription:
    def test_rejects_wrong_arity(self, event_bus):
        with pytest.raises(ValueError):
            event_bus.subscribe("garden.habit.completed", lambda a, b: None)

    def test_duplicate_identifier_ignored(self, event_bus):
        event_bus.subscribe("x", lambda p: None, identifier="one")
        event_bus.subscribe("x", lambda p: None, identifier="one")

        assert event_bus.get_listener_count("x") == 1

    def test_unsubscribe(self, event_bus):
        listener_id = event_bus.subscribe("x", lambda p: None)

        assert event_bus.unsubscribe("x", listener_id) is True
        assert event_bus.unsubscribe("x", listener_id) is False
        assert event_bus.get_listener_count() == 0


@pytest.mark.unit
class TestPublish:
    async def test_exact_and_wildcard_listeners(self, event_bus):
        """Exact listeners run before wildcard ones."""
        # Arrange
        event_bus.subscribe("garden.plant.levelled_up", lambda p: "exact")
        event_bus.subscribe("garden.*", lambda p: "wildcard")
        event_bus.subscribe("other.*", lambda p: "never")

        # Act
        results = await event_bus.publish("garden.plant.levelled_up", {"plant_id": 3})

        # Assert
        assert results == ["exact", "wildcard"]

    async def test_async_listener_awaited(self, event_bus):
        received = []

        async def on_event(payload):
            received.append(payload["habit_id"])
            return "done"

        event_bus.subscribe("garden.habit.completed", on_event)

        results = await event_bus.publish("garden.habit.completed", {"habit_id": 7})

        assert received == [7]
        assert results == ["done"]

    async def test_failing_listener_isolated(self, event_bus):
        """One failing listener never blocks the others."""

        def broken(payload):
            raise RuntimeError("boom")

        event_bus.subscribe("x", broken)
        event_bus.subscribe("x", lambda p: "ok")

        results = await event_bus.publish("x", {})

        assert results == [None, "ok"]
        assert event_bus.get_metrics_summary()["errors_by_event"] == {"x": 1}

    async def test_once_listener_removed(self, event_bus):
        event_bus.subscribe("x", lambda p: 1, once=True)

        first = await event_bus.publish("x", {})
        second = await event_bus.publish("x", {})

        assert first == [1]
        assert second == []

    async def test_publish_without_listeners(self, event_bus):
        assert await event_bus.publish("nobody.listens", {}) == []
        assert event_bus.get_metrics_summary()["events_by_type"] == {"nobody.listens": 1}
