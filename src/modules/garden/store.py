"""
Garden Store - transactional access to habits, plants and completions.

Purpose
-------
The single remote collaborator of the completion engine. Reads return
immutable snapshots; ``complete_habit`` is one atomic transaction that
records the completion and credits the plant, or does neither.

Guarantees
----------
- At most one completion per (habit, day), enforced by the unique
  constraint ``uq_habit_completions_habit_day`` and
  ``INSERT ... ON CONFLICT DO NOTHING``. Zero inserted rows means another
  request already completed the day; no XP is added.
- The plant row is locked (SELECT FOR UPDATE on PostgreSQL, BEGIN
  IMMEDIATE on SQLite) before the insert, so concurrent awards to the same
  plant serialize.
- The stored ``stage`` column is rewritten from ``xp`` on every award.
- Driver and connection failures surface as ``TransientStoreError``.

Usage
-----
    store = GardenStore()
    receipt = await store.complete_habit(scope, habit_id=7, plant_id=3, day=date(2024, 6, 10))
    if receipt.applied:
        ...
"""

from __future__ import annotations

import asyncio
from contextlib import asynccontextmanager
from dataclasses import dataclass
from datetime import date
from logging import Logger
from typing import Any, AsyncIterator, List, Optional

from sqlalchemy.dialects.postgresql import insert as pg_insert
from sqlalchemy.dialects.sqlite import insert as sqlite_insert
from sqlalchemy.exc import DBAPIError, IntegrityError
from sqlalchemy.exc import TimeoutError as PoolTimeoutError
from sqlalchemy.ext.asyncio import AsyncSession

from src.core.config.config import Config
from src.core.database.service import DatabaseService
from src.core.logging.logger import get_logger
from src.database.models.enums import HabitFrequency
from src.database.models.garden import Garden as GardenRow
from src.database.models.garden import Habit as HabitRow
from src.database.models.garden import HabitCompletion as HabitCompletionRow
from src.database.models.garden import Plant as PlantRow
from src.domain.models.garden import CompletionRecord, Habit, Plant
from src.modules.garden.repositories import (
    CompletionRepository,
    GardenRepository,
    HabitRepository,
    PlantRepository,
)
from src.modules.garden.session import OwnerScope
from src.modules.shared.constants import (
    DEFAULT_GARDEN_NAME,
    DEFAULT_PLANT_SPECIES,
    DEFAULT_XP_REWARD,
    INITIAL_PLANT_STAGE,
    INITIAL_PLANT_XP,
    MAX_XP_REWARD,
)
from src.modules.shared.exceptions import (
    InvalidOperationError,
    NotFoundError,
    TransientStoreError,
    ValidationError,
)
from src.modules.shared.formulas import stage_of
from src.modules.shared.validators import validate_title, validate_xp_reward


@dataclass(frozen=True)
class CompletionReceipt:
    """
    Result of one ``complete_habit`` transaction.

    ``applied`` is False when the (habit, day) completion already existed;
    in that case no XP moved and the xp/stage fields describe nothing.
    """

    applied: bool
    habit_id: int
    plant_id: int
    day: date
    xp_awarded: int = 0
    from_xp: int = 0
    to_xp: int = 0
    from_stage: int = 0
    to_stage: int = 0

    @property
    def levelled_up(self) -> bool:
        return self.applied and self.to_stage > self.from_stage


def _insert_for(session: AsyncSession, model: Any) -> Any:
    """Dialect-specific INSERT supporting ON CONFLICT."""
    dialect = session.get_bind().dialect.name
    if dialect == "postgresql":
        return pg_insert(model)
    if dialect == "sqlite":
        return sqlite_insert(model)
    raise InvalidOperationError(
        "insert", f"dialect '{dialect}' has no ON CONFLICT support"
    )


class GardenStore:
    """
    SQLAlchemy-backed garden store.

    Args:
        db: Database service providing sessions (defaults to DatabaseService)
        logger: Optional logger
        config: Configuration (``MAX_XP_REWARD``, capped at the schema limit)
    """

    def __init__(
        self,
        db: Any = DatabaseService,
        logger: Optional[Logger] = None,
        config: Any = Config,
    ) -> None:
        self._db = db
        self.log = logger or get_logger(__name__)
        self._max_reward = min(
            int(getattr(config, "MAX_XP_REWARD", MAX_XP_REWARD)), MAX_XP_REWARD
        )
        self._gardens = GardenRepository(GardenRow, self.log)
        self._habits = HabitRepository(HabitRow, self.log)
        self._plants = PlantRepository(PlantRow, self.log)
        self._completions = CompletionRepository(HabitCompletionRow, self.log)

    @asynccontextmanager
    async def _translate_errors(self, operation: str) -> AsyncIterator[None]:
        try:
            yield
        except IntegrityError as exc:
            self.log.warning(
                f"Constraint violated during {operation}",
                extra={"operation": operation, "error": str(exc.orig)},
            )
            raise InvalidOperationError(operation, "constraint violated") from exc
        except (DBAPIError, PoolTimeoutError, OSError, asyncio.TimeoutError) as exc:
            reason = str(getattr(exc, "orig", None) or exc)
            self.log.warning(
                f"Store unavailable during {operation}",
                extra={
                    "operation": operation,
                    "error_type": type(exc).__name__,
                    "error": reason,
                },
            )
            raise TransientStoreError(operation, reason) from exc

    # ------------------------------------------------------------------ #
    # Reads
    # ------------------------------------------------------------------ #

    async def fetch_active_habits(self, scope: OwnerScope) -> List[Habit]:
        async with self._translate_errors("fetch_active_habits"):
            async with self._db.get_session() as session:
                rows = await self._habits.find_active(session, scope.garden_id)
                return [Habit.from_db(row) for row in rows]

    async def fetch_live_plants(self, scope: OwnerScope) -> List[Plant]:
        """Live plants, newest first."""
        async with self._translate_errors("fetch_live_plants"):
            async with self._db.get_session() as session:
                rows = await self._plants.find_live(session, scope.garden_id)
                return [Plant.from_db(row) for row in rows]

    async def fetch_plants(self, scope: OwnerScope) -> List[Plant]:
        """All plants including dead ones, newest first."""
        async with self._translate_errors("fetch_plants"):
            async with self._db.get_session() as session:
                rows = await self._plants.find_all(session, scope.garden_id)
                return [Plant.from_db(row) for row in rows]

    async def fetch_completions_on(
        self, scope: OwnerScope, day: date
    ) -> List[CompletionRecord]:
        async with self._translate_errors("fetch_completions_on"):
            async with self._db.get_session() as session:
                rows = await self._completions.find_on(session, scope.garden_id, day)
                return [CompletionRecord.from_db(row) for row in rows]

    async def count_completions_between(
        self, scope: OwnerScope, start: date, end: date
    ) -> int:
        """Number of completions with ``start <= completed_on <= end``."""
        async with self._translate_errors("count_completions_between"):
            async with self._db.get_session() as session:
                return await self._completions.count_between(
                    session, scope.garden_id, start, end
                )

    # ------------------------------------------------------------------ #
    # Completion
    # ------------------------------------------------------------------ #

    async def complete_habit(
        self, scope: OwnerScope, habit_id: int, plant_id: int, day: date
    ) -> CompletionReceipt:
        """
        Record a completion of ``habit_id`` on ``day`` and credit ``plant_id``.

        Raises:
            NotFoundError: Habit or plant missing from the scope's garden
            ValidationError: Habit inactive or plant not live
            TransientStoreError: Store unreachable or timed out
        """
        async with self._translate_errors("complete_habit"):
            async with self._db.get_transaction() as session:
                habit = await self._habits.find_in_garden(
                    session, scope.garden_id, habit_id
                )
                if habit is None:
                    raise NotFoundError("Habit", habit_id)

                existing = await self._completions.find_for_habit_day(
                    session, habit_id, day
                )
                if existing is not None:
                    self.log.info(
                        "Completion already recorded",
                        extra={
                            "habit_id": habit_id,
                            "day": day.isoformat(),
                            "credited_plant_id": existing.plant_id,
                        },
                    )
                    return CompletionReceipt(
                        applied=False,
                        habit_id=habit_id,
                        plant_id=existing.plant_id,
                        day=day,
                    )

                if not habit.is_active:
                    raise ValidationError("habit_id", f"habit {habit_id} is inactive")

                plant = await self._plants.get_for_update(session, plant_id)
                if plant is None or plant.garden_id != scope.garden_id:
                    raise NotFoundError("Plant", plant_id)
                if plant.is_dead:
                    raise ValidationError("plant_id", f"plant {plant_id} is not live")

                reward = habit.xp_reward
                stmt = (
                    _insert_for(session, HabitCompletionRow)
                    .values(
                        habit_id=habit_id,
                        plant_id=plant_id,
                        garden_id=scope.garden_id,
                        completed_on=day,
                        xp_awarded=reward,
                    )
                    .on_conflict_do_nothing(index_elements=["habit_id", "completed_on"])
                )
                result = await session.execute(stmt)

                # Another request won the (habit, day) slot
                if result.rowcount == 0:  # type: ignore[attr-defined]
                    self.log.info(
                        "Completion lost race; already recorded",
                        extra={"habit_id": habit_id, "day": day.isoformat()},
                    )
                    return CompletionReceipt(
                        applied=False, habit_id=habit_id, plant_id=plant_id, day=day
                    )

                from_xp = plant.xp
                from_stage = stage_of(from_xp)
                plant.xp = from_xp + reward
                plant.stage = stage_of(plant.xp)
                await self._plants.flush(session)

                receipt = CompletionReceipt(
                    applied=True,
                    habit_id=habit_id,
                    plant_id=plant_id,
                    day=day,
                    xp_awarded=reward,
                    from_xp=from_xp,
                    to_xp=plant.xp,
                    from_stage=from_stage,
                    to_stage=plant.stage,
                )

        self.log.info(
            "Completion recorded",
            extra={
                "habit_id": habit_id,
                "plant_id": plant_id,
                "day": day.isoformat(),
                "xp_awarded": reward,
                "to_xp": receipt.to_xp,
                "to_stage": receipt.to_stage,
            },
        )
        return receipt

    # ------------------------------------------------------------------ #
    # Creation & soft delete
    # ------------------------------------------------------------------ #

    async def ensure_garden(self, owner_id: str, name: str = DEFAULT_GARDEN_NAME) -> int:
        """
        Return the owner's garden id, creating the garden on first use.

        Concurrent first calls for one owner converge on a single row.
        """
        if not owner_id:
            raise ValidationError("owner_id", "owner_id is required")

        async with self._translate_errors("ensure_garden"):
            async with self._db.get_transaction() as session:
                garden = await self._gardens.find_by_owner(session, owner_id)
                if garden is not None:
                    return garden.id

                stmt = (
                    _insert_for(session, GardenRow)
                    .values(owner_id=owner_id, name=name)
                    .on_conflict_do_nothing(index_elements=["owner_id"])
                )
                await session.execute(stmt)
                garden = await self._gardens.find_by_owner(session, owner_id)
                if garden is None:
                    raise NotFoundError("Garden", owner_id)

                self.log.info(
                    "Garden ready",
                    extra={"user_id": owner_id, "garden_id": garden.id},
                )
                return garden.id

    async def insert_habit(
        self,
        scope: OwnerScope,
        title: str,
        xp_reward: int = DEFAULT_XP_REWARD,
        frequency: HabitFrequency | str = HabitFrequency.DAILY,
        description: Optional[str] = None,
    ) -> Habit:
        clean_title = validate_title(title)
        reward = validate_xp_reward(xp_reward, max_reward=self._max_reward)
        try:
            freq = HabitFrequency(frequency)
        except ValueError as exc:
            raise ValidationError(
                "frequency", f"expected daily or weekly, got {frequency!r}"
            ) from exc
        clean_description = description.strip() if description else None

        async with self._translate_errors("insert_habit"):
            async with self._db.get_transaction() as session:
                row = self._habits.add(
                    session,
                    HabitRow(
                        garden_id=scope.garden_id,
                        title=clean_title,
                        description=clean_description or None,
                        frequency=freq,
                        xp_reward=reward,
                        is_active=True,
                    ),
                )
                await self._habits.flush(session)
                habit = Habit.from_db(row)

        self.log.info(
            "Habit created",
            extra={"habit_id": habit.id, "xp_reward": reward, "frequency": freq.value},
        )
        return habit

    async def insert_plant(
        self, scope: OwnerScope, name: str, species: str = DEFAULT_PLANT_SPECIES
    ) -> Plant:
        clean_name = validate_title(name, field="name")
        clean_species = (species or "").strip() or DEFAULT_PLANT_SPECIES

        async with self._translate_errors("insert_plant"):
            async with self._db.get_transaction() as session:
                row = self._plants.add(
                    session,
                    PlantRow(
                        garden_id=scope.garden_id,
                        name=clean_name,
                        species=clean_species,
                        xp=INITIAL_PLANT_XP,
                        stage=INITIAL_PLANT_STAGE,
                        is_dead=False,
                    ),
                )
                await self._plants.flush(session)
                plant = Plant.from_db(row)

        self.log.info(
            "Plant created",
            extra={"plant_id": plant.id, "species": clean_species},
        )
        return plant

    async def deactivate_habit(self, scope: OwnerScope, habit_id: int) -> Habit:
        """Soft-delete a habit; its completion history is kept."""
        async with self._translate_errors("deactivate_habit"):
            async with self._db.get_transaction() as session:
                row = await self._habits.find_in_garden(session, scope.garden_id, habit_id)
                if row is None:
                    raise NotFoundError("Habit", habit_id)
                row.is_active = False
                await self._habits.flush(session)
                habit = Habit.from_db(row)

        self.log.info("Habit deactivated", extra={"habit_id": habit_id})
        return habit
