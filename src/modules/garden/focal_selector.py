"""
Focal plant selection.

The focal ("main") plant is a per-user preference, persisted in the
preference store rather than the garden tables. Consumers never read the
stored value directly; they call ``resolve_focal_plant`` (pure) or
``FocalPlantSelector.current`` (reads, resolves, persists).

Resolution
----------
1. A stored pointer naming a live plant wins unchanged.
2. Otherwise the live plant with the most XP; ties go to the first one in
   the given order.
3. Otherwise None.
"""

from __future__ import annotations

from typing import TYPE_CHECKING, Any, Optional, Sequence, Union

from src.core.preferences.store import PreferenceUnavailableError
from src.modules.shared.base_service import BaseService
from src.modules.shared.constants import EVENT_FOCAL_CHANGED
from src.modules.shared.exceptions import TransientStoreError, ValidationError

if TYPE_CHECKING:
    from logging import Logger

    from src.core.event.bus import EventBus
    from src.core.preferences.store import PreferenceStore
    from src.domain.models.garden import Plant
    from src.modules.garden.session import OwnerScope

DEFAULT_PREFERENCE_PREFIX = "habit-garden:mainPlantId"


def focal_preference_key(user_id: str, prefix: str = DEFAULT_PREFERENCE_PREFIX) -> str:
    return f"{prefix}:{user_id}"


def _coerce_plant_id(value: Union[int, str, None]) -> Optional[int]:
    if value is None or isinstance(value, bool):
        return None
    if isinstance(value, int):
        return value
    text = str(value).strip()
    return int(text) if text.isdigit() else None


def resolve_focal_plant(
    stored: Union[int, str, None], plants: Sequence[Plant]
) -> Optional[int]:
    """
    Pick the focal plant id from a stored pointer and the plant list.

    Dead plants in ``plants`` are ignored.

    Example:
        >>> resolve_focal_plant(99, [a_xp10, b_xp30, c_xp30])  # 99 deleted
        b.id
    """
    live = [plant for plant in plants if plant.is_live]
    stored_id = _coerce_plant_id(stored)

    if stored_id is not None and any(plant.id == stored_id for plant in live):
        return stored_id

    if not live:
        return None

    best = live[0]
    for plant in live[1:]:
        if plant.xp > best.xp:
            best = plant
    return best.id


class FocalPlantSelector(BaseService):
    """
    Reads, resolves and persists the focal plant pointer.

    A preference backend that is down is tolerated on read (the pointer is
    treated as empty) and on automatic writes (the choice holds for this
    view only). An explicit ``choose`` surfaces the failure.
    """

    def __init__(
        self,
        preferences: PreferenceStore,
        config: Any,
        event_bus: Optional[EventBus],
        logger: Logger,
    ) -> None:
        super().__init__(config, event_bus, logger)
        self._preferences = preferences
        self._prefix = self.get_config("FOCAL_PREFERENCE_PREFIX", DEFAULT_PREFERENCE_PREFIX)

    def _key(self, scope: OwnerScope) -> str:
        return focal_preference_key(scope.user_id, self._prefix)

    async def stored_pointer(self, scope: OwnerScope) -> Optional[str]:
        try:
            return await self._preferences.get(self._key(scope))
        except PreferenceUnavailableError as exc:
            self.log.warning(
                "Focal pointer unreadable; treating as empty",
                extra={"operation": "focal_current", "error": exc.reason},
            )
            return None

    async def current(self, scope: OwnerScope, plants: Sequence[Plant]) -> Optional[int]:
        """Resolve the focal plant, persisting a newly selected pointer."""
        stored = await self.stored_pointer(scope)
        resolved = resolve_focal_plant(stored, plants)

        if resolved is not None and resolved != _coerce_plant_id(stored):
            self.log.info(
                "Focal plant reselected",
                extra={"stored_pointer": stored, "plant_id": resolved},
            )
            try:
                await self._preferences.set(self._key(scope), str(resolved))
            except PreferenceUnavailableError as exc:
                self.log.warning(
                    "Focal pointer not persisted",
                    extra={"plant_id": resolved, "error": exc.reason},
                )
            else:
                await self.emit_event(
                    EVENT_FOCAL_CHANGED,
                    {"plant_id": resolved, "previous": stored, "explicit": False},
                    {"user_id": scope.user_id, "garden_id": scope.garden_id},
                )

        return resolved

    async def choose(
        self, scope: OwnerScope, plant_id: int, plants: Sequence[Plant]
    ) -> int:
        """
        Make ``plant_id`` the focal plant.

        Raises:
            ValidationError: If ``plant_id`` is not a live plant in ``plants``
            TransientStoreError: If the preference could not be saved
        """
        if not any(plant.id == plant_id and plant.is_live for plant in plants):
            raise ValidationError("plant_id", f"plant {plant_id} is not a live plant")

        try:
            await self._preferences.set(self._key(scope), str(plant_id))
        except PreferenceUnavailableError as exc:
            raise TransientStoreError("choose_focal_plant", exc.reason) from exc

        self.log_operation("choose_focal_plant", plant_id=plant_id)
        await self.emit_event(
            EVENT_FOCAL_CHANGED,
            {"plant_id": plant_id, "explicit": True},
            {"user_id": scope.user_id, "garden_id": scope.garden_id},
        )
        return plant_id
