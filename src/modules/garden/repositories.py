"""
Garden repositories.

Thin ``BaseRepository`` subclasses holding the garden queries. All of them
are scoped by ``garden_id``; none manage transactions.
"""

from __future__ import annotations

from datetime import date
from typing import List, Optional

from sqlalchemy.ext.asyncio import AsyncSession

from src.database.models.garden import Garden, Habit, HabitCompletion, Plant
from src.modules.shared.base_repository import BaseRepository


class GardenRepository(BaseRepository[Garden]):
    async def find_by_owner(self, session: AsyncSession, owner_id: str) -> Optional[Garden]:
        return await self.find_one_where(session, Garden.owner_id == owner_id)


class HabitRepository(BaseRepository[Habit]):
    async def find_in_garden(
        self, session: AsyncSession, garden_id: int, habit_id: int
    ) -> Optional[Habit]:
        return await self.find_one_where(
            session, Habit.id == habit_id, Habit.garden_id == garden_id
        )

    async def find_active(self, session: AsyncSession, garden_id: int) -> List[Habit]:
        return await self.find_many_where(
            session,
            Habit.garden_id == garden_id,
            Habit.is_active.is_(True),
            order_by=[Habit.created_at.desc(), Habit.id.desc()],
        )


class PlantRepository(BaseRepository[Plant]):
    async def find_all(self, session: AsyncSession, garden_id: int) -> List[Plant]:
        return await self.find_many_where(
            session,
            Plant.garden_id == garden_id,
            order_by=[Plant.created_at.desc(), Plant.id.desc()],
        )

    async def find_live(self, session: AsyncSession, garden_id: int) -> List[Plant]:
        return await self.find_many_where(
            session,
            Plant.garden_id == garden_id,
            Plant.is_dead.is_(False),
            order_by=[Plant.created_at.desc(), Plant.id.desc()],
        )


class CompletionRepository(BaseRepository[HabitCompletion]):
    async def find_for_habit_day(
        self, session: AsyncSession, habit_id: int, day: date
    ) -> Optional[HabitCompletion]:
        return await self.find_one_where(
            session,
            HabitCompletion.habit_id == habit_id,
            HabitCompletion.completed_on == day,
        )

    async def find_on(
        self, session: AsyncSession, garden_id: int, day: date
    ) -> List[HabitCompletion]:
        return await self.find_many_where(
            session,
            HabitCompletion.garden_id == garden_id,
            HabitCompletion.completed_on == day,
            order_by=[HabitCompletion.id],
        )

    async def count_between(
        self, session: AsyncSession, garden_id: int, start: date, end: date
    ) -> int:
        return await self.count(
            session,
            HabitCompletion.garden_id == garden_id,
            HabitCompletion.completed_on >= start,
            HabitCompletion.completed_on <= end,
        )
