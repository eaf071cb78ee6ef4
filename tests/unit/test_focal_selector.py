"""
Unit tests for focal plant resolution and persistence.

Test Coverage
-------------
- resolve_focal_plant: stored pointer, highest XP fallback, ties, dead plants
- FocalPlantSelector.current: persists reselection, tolerates backend failures
- FocalPlantSelector.choose: validation and surfaced backend failures
"""

import pytest

from src.core.preferences.store import PreferenceUnavailableError
from src.modules.garden.focal_selector import (
    FocalPlantSelector,
    focal_preference_key,
    resolve_focal_plant,
)
from src.modules.shared.constants import EVENT_FOCAL_CHANGED
from src.modules.shared.exceptions import TransientStoreError, ValidationError


class _Config:
    FOCAL_PREFERENCE_PREFIX = "habit-garden:mainPlantId"


@pytest.fixture
def plants(make_plant):
    return [
        make_plant(id=1, name="a", xp=10),
        make_plant(id=2, name="b", xp=30),
        make_plant(id=3, name="c", xp=30),
    ]


@pytest.fixture
def selector(preferences, mock_event_bus, test_logger):
    return FocalPlantSelector(preferences, _Config, mock_event_bus, test_logger)


# ============================================================================
# resolve_focal_plant
# ============================================================================


@pytest.mark.unit
class TestResolveFocalPlant:
    def test_stored_live_pointer_wins(self, plants):
        """A pointer to a live plant is kept even if it has less XP."""
        assert resolve_focal_plant("1", plants) == 1

    def test_deleted_pointer_falls_back_to_highest_xp(self, plants):
        """Ties on XP go to the first plant in order."""
        assert resolve_focal_plant(99, plants) == 2

    def test_no_pointer_uses_highest_xp(self, plants):
        assert resolve_focal_plant(None, plants) == 2

    def test_dead_pointer_ignored(self, make_plant):
        plants = [
            make_plant(id=1, xp=10),
            make_plant(id=2, xp=90, is_dead=True),
        ]

        assert resolve_focal_plant(2, plants) == 1

    def test_no_live_plants(self, make_plant):
        assert resolve_focal_plant(1, []) is None
        assert resolve_focal_plant(1, [make_plant(id=1, is_dead=True)]) is None

    def test_garbage_pointer_treated_as_empty(self, plants):
        assert resolve_focal_plant("not-a-number", plants) == 2


# ============================================================================
# FocalPlantSelector
# ============================================================================


@pytest.mark.unit
class TestFocalPlantSelectorCurrent:
    async def test_persists_reselected_pointer(
        self, selector, preferences, plants, owner_scope, mock_event_bus
    ):
        """A stale pointer is replaced and the change is announced."""
        # Arrange
        key = focal_preference_key(owner_scope.user_id)
        await preferences.set(key, "99")

        # Act
        focal = await selector.current(owner_scope, plants)

        # Assert
        assert focal == 2
        assert await preferences.get(key) == "2"
        mock_event_bus.publish.assert_awaited_once()
        event_name, payload = mock_event_bus.publish.await_args.args
        assert event_name == EVENT_FOCAL_CHANGED
        assert payload["plant_id"] == 2
        assert payload["explicit"] is False
        assert payload["user_id"] == owner_scope.user_id

    async def test_valid_pointer_not_rewritten(
        self, selector, preferences, plants, owner_scope, mock_event_bus
    ):
        key = focal_preference_key(owner_scope.user_id)
        await preferences.set(key, "1")

        focal = await selector.current(owner_scope, plants)

        assert focal == 1
        mock_event_bus.publish.assert_not_awaited()

    async def test_pointer_scoped_per_user(self, selector, preferences, plants, owner_scope):
        await selector.current(owner_scope, plants)

        assert preferences.snapshot() == {"habit-garden:mainPlantId:user-1": "2"}

    async def test_unreadable_backend_tolerated(
        self, mocker, mock_event_bus, test_logger, plants, owner_scope
    ):
        """Resolution still works when preferences are down."""
        # Arrange
        backend = mocker.MagicMock()
        backend.get = mocker.AsyncMock(
            side_effect=PreferenceUnavailableError("GET", "k", "down")
        )
        backend.set = mocker.AsyncMock(
            side_effect=PreferenceUnavailableError("SET", "k", "down")
        )
        selector = FocalPlantSelector(backend, _Config, mock_event_bus, test_logger)

        # Act
        focal = await selector.current(owner_scope, plants)

        # Assert
        assert focal == 2
        mock_event_bus.publish.assert_not_awaited()


@pytest.mark.unit
class TestFocalPlantSelectorChoose:
    async def test_choose_live_plant(
        self, selector, preferences, plants, owner_scope, mock_event_bus
    ):
        chosen = await selector.choose(owner_scope, 3, plants)

        assert chosen == 3
        assert await preferences.get(focal_preference_key("user-1")) == "3"
        payload = mock_event_bus.publish.await_args.args[1]
        assert payload["explicit"] is True

    async def test_choose_unknown_plant_rejected(self, selector, plants, owner_scope):
        with pytest.raises(ValidationError):
            await selector.choose(owner_scope, 42, plants)

    async def test_choose_surfaces_backend_failure(
        self, mocker, mock_event_bus, test_logger, plants, owner_scope
    ):
        backend = mocker.MagicMock()
        backend.set = mocker.AsyncMock(
            side_effect=PreferenceUnavailableError("SET", "k", "down")
        )
        selector = FocalPlantSelector(backend, _Config, mock_event_bus, test_logger)

        with pytest.raises(TransientStoreError) as exc_info:
            await selector.choose(owner_scope, 2, plants)

        assert exc_info.value.is_retryable is True
