"""
Activity Service - derived, read-only views of a garden's activity.

Purpose
-------
Fetches four independent snapshots concurrently and combines them into one
coherent ``ActivityView``:

- active habits
- live plants
- today's completion records
- the completion count over a trailing window of W days (today included)

If any fetch fails, ``load`` raises ``PartialLoadError`` naming every
failed snapshot; the snapshots that did arrive are not presented as a
complete view.

Refresh
-------
Views are never patched. ``subscribe_refresh`` listens for
``garden.activity.refresh_requested`` and reloads the view for the scope
named in the payload.
"""

from __future__ import annotations

import asyncio
from collections import OrderedDict
from dataclasses import dataclass
from datetime import date, timedelta
from typing import TYPE_CHECKING, Any, Dict, Optional, Sequence, Tuple, Union

from src.modules.garden.completion_ledger import CompletionLedger
from src.modules.garden.session import OwnerScope
from src.modules.shared.base_service import BaseService
from src.modules.shared.constants import (
    DEFAULT_ACTIVITY_WINDOW_DAYS,
    EVENT_ACTIVITY_REFRESH_REQUESTED,
    MAX_RETAINED_VIEWS,
)
from src.modules.shared.exceptions import PartialLoadError, ValidationError
from src.modules.shared.validators import parse_day

if TYPE_CHECKING:
    from logging import Logger

    from src.core.event.bus import EventBus
    from src.domain.models.garden import CompletionRecord, Habit, Plant
    from src.modules.garden.focal_selector import FocalPlantSelector
    from src.modules.garden.store import GardenStore

SNAPSHOT_NAMES: Tuple[str, ...] = (
    "active_habits",
    "live_plants",
    "today_completions",
    "rolling_count",
)


@dataclass(frozen=True)
class PlantProgress:
    plant_id: int
    name: str
    species: str
    xp: int
    stage: int
    stage_start_xp: int
    next_stage_xp: int
    fraction_complete: float


@dataclass(frozen=True)
class ActivityView:
    today: date
    window_start: date
    window_end: date
    habits: Tuple[Habit, ...]
    plants: Tuple[Plant, ...]
    ledger: CompletionLedger
    done_count: int
    total_count: int
    rolling_count: int
    plant_progress: Tuple[PlantProgress, ...]
    focal_plant_id: Optional[int] = None

    @property
    def completed_habit_ids(self) -> frozenset[int]:
        return self.ledger.habit_ids

    @property
    def completion_ratio(self) -> float:
        if self.total_count == 0:
            return 0.0
        return self.done_count / self.total_count

    @property
    def focal_plant(self) -> Optional[Plant]:
        for plant in self.plants:
            if plant.id == self.focal_plant_id:
                return plant
        return None

    def progress_for(self, plant_id: int) -> Optional[PlantProgress]:
        for progress in self.plant_progress:
            if progress.plant_id == plant_id:
                return progress
        return None


def rolling_window(today: Union[date, str], window_days: int) -> Tuple[date, date]:
    """
    Inclusive bounds of a W-day window ending today.

    Example:
        >>> rolling_window(date(2024, 6, 10), 7)
        (datetime.date(2024, 6, 4), datetime.date(2024, 6, 10))
    """
    if isinstance(window_days, bool) or not isinstance(window_days, int) or window_days < 1:
        raise ValidationError("window_days", f"must be at least 1, got {window_days!r}")
    end = parse_day(today)
    return end - timedelta(days=window_days - 1), end


def build_activity_view(
    today: date,
    window: Tuple[date, date],
    habits: Sequence[Habit],
    plants: Sequence[Plant],
    completions: Sequence[CompletionRecord],
    rolling_count: int,
    focal_plant_id: Optional[int] = None,
) -> ActivityView:
    """Combine fetched snapshots into a view. Pure."""
    ledger = CompletionLedger.from_records(today, completions)
    active_ids = {habit.id for habit in habits}

    progress = []
    for plant in plants:
        stage = plant.progress
        progress.append(
            PlantProgress(
                plant_id=plant.id,
                name=plant.name,
                species=plant.species,
                xp=plant.xp,
                stage=stage.stage,
                stage_start_xp=stage.stage_start_xp,
                next_stage_xp=stage.next_stage_xp,
                fraction_complete=stage.fraction_complete,
            )
        )

    return ActivityView(
        today=today,
        window_start=window[0],
        window_end=window[1],
        habits=tuple(habits),
        plants=tuple(plants),
        ledger=ledger,
        done_count=len(ledger.habit_ids & active_ids),
        total_count=len(active_ids),
        rolling_count=rolling_count,
        plant_progress=tuple(progress),
        focal_plant_id=focal_plant_id,
    )


class ActivityService(BaseService):
    """
    Loads activity views from the store.

    Args:
        store: Garden store
        config: Configuration (``ACTIVITY_WINDOW_DAYS``)
        event_bus: Event bus (refresh subscription)
        logger: Logger
        focal_selector: Optional selector; when given, views carry the
            resolved focal plant
    """

    def __init__(
        self,
        store: GardenStore,
        config: Any,
        event_bus: Optional[EventBus],
        logger: Logger,
        focal_selector: Optional[FocalPlantSelector] = None,
    ) -> None:
        super().__init__(config, event_bus, logger)
        self._store = store
        self._focal = focal_selector
        self._window_days = int(
            self.get_config("ACTIVITY_WINDOW_DAYS", DEFAULT_ACTIVITY_WINDOW_DAYS)
        )
        self._latest: OrderedDict[OwnerScope, ActivityView] = OrderedDict()
        self._refresh_listener_id: Optional[str] = None

    @property
    def window_days(self) -> int:
        return self._window_days

    async def load(self, scope: OwnerScope, today: Union[date, str]) -> ActivityView:
        """
        Fetch all snapshots concurrently and build the view.

        Raises:
            ValidationError: If ``today`` is malformed
            PartialLoadError: If any snapshot failed to load
        """
        day = parse_day(today, field="today")
        window = rolling_window(day, self._window_days)

        results = await asyncio.gather(
            self._store.fetch_active_habits(scope),
            self._store.fetch_live_plants(scope),
            self._store.fetch_completions_on(scope, day),
            self._store.count_completions_between(scope, *window),
            return_exceptions=True,
        )

        for result in results:
            if isinstance(result, BaseException) and not isinstance(result, Exception):
                raise result

        failures = {
            name: result
            for name, result in zip(SNAPSHOT_NAMES, results)
            if isinstance(result, Exception)
        }
        if failures:
            error = PartialLoadError(failures)
            self.log.warning(
                f"Activity load incomplete: {', '.join(failures)}",
                extra={
                    "operation": "load_activity",
                    "failed_snapshots": list(failures),
                    "retryable": error.is_retryable,
                },
            )
            raise error

        habits, plants, completions, rolling_count = results

        for plant in plants:
            if plant.stage_hint_stale:
                self.log.warning(
                    "Stored stage disagrees with xp; using derived stage",
                    extra={
                        "plant_id": plant.id,
                        "xp": plant.xp,
                        "stored_stage": plant.stored_stage,
                        "derived_stage": plant.stage,
                    },
                )

        focal_plant_id = None
        if self._focal is not None:
            focal_plant_id = await self._focal.current(scope, plants)

        view = build_activity_view(
            day,
            window,
            habits,
            plants,
            completions,
            rolling_count,
            focal_plant_id,
        )
        self._retain(scope, view)

        self.log.debug(
            "Activity view loaded",
            extra={
                "done_count": view.done_count,
                "total_count": view.total_count,
                "rolling_count": view.rolling_count,
                "plant_count": len(view.plants),
            },
        )
        return view

    def _retain(self, scope: OwnerScope, view: ActivityView) -> None:
        self._latest[scope] = view
        self._latest.move_to_end(scope)
        while len(self._latest) > MAX_RETAINED_VIEWS:
            self._latest.popitem(last=False)

    def latest_view(self, scope: OwnerScope) -> Optional[ActivityView]:
        """Most recent view for ``scope``; least recently loaded scopes are evicted."""
        return self._latest.get(scope)

    def subscribe_refresh(self) -> Optional[str]:
        """Reload views whenever a refresh is requested on the event bus."""
        if self._events is None or self._refresh_listener_id is not None:
            return self._refresh_listener_id
        self._refresh_listener_id = self._events.subscribe(
            EVENT_ACTIVITY_REFRESH_REQUESTED,
            self._on_refresh_requested,
            identifier=f"activity_service@{id(self)}",
        )
        return self._refresh_listener_id

    def unsubscribe_refresh(self) -> None:
        if self._events is not None and self._refresh_listener_id is not None:
            self._events.unsubscribe(
                EVENT_ACTIVITY_REFRESH_REQUESTED, self._refresh_listener_id
            )
        self._refresh_listener_id = None
        self._latest.clear()

    async def _on_refresh_requested(self, payload: Dict[str, Any]) -> Optional[ActivityView]:
        scope = OwnerScope(user_id=payload["user_id"], garden_id=payload["garden_id"])
        try:
            return await self.load(scope, payload["day"])
        except PartialLoadError:
            # Already logged; drop the stale view
            self._latest.pop(scope, None)
            return None
