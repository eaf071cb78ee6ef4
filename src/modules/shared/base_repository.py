"""
Generic repository over SQLAlchemy async sessions.

A repository owns the queries for one mapped class. It never opens,
commits or rolls back; the caller's session decides the transaction.

    class PlantRepository(BaseRepository[Plant]):
        async def find_live(self, session, garden_id):
            return await self.find_many_where(
                session, Plant.garden_id == garden_id, Plant.is_dead.is_(False)
            )
"""

from __future__ import annotations

from typing import TYPE_CHECKING, Any, Generic, List, Optional, Sequence, Type, TypeVar

from sqlalchemy import Select, func, select

if TYPE_CHECKING:
    from logging import Logger

    from sqlalchemy import ColumnElement
    from sqlalchemy.ext.asyncio import AsyncSession

T = TypeVar("T")


class BaseRepository(Generic[T]):
    def __init__(self, model_class: Type[T], logger: Logger) -> None:
        self.model_class = model_class
        self.log = logger

    @property
    def model_name(self) -> str:
        return self.model_class.__name__

    def _trace(self, call: str, **fields: Any) -> None:
        self.log.debug(
            f"{self.model_name}.{call}", extra={"model": self.model_name, **fields}
        )

    def _select(self, *conditions: ColumnElement[bool]) -> Select[Any]:
        return select(self.model_class).where(*conditions)

    async def get_for_update(self, session: AsyncSession, id_value: int) -> Optional[T]:
        """
        Load one row by id and lock it until the transaction ends.

        PostgreSQL takes a row lock; SQLite ignores FOR UPDATE and relies on
        the connection's BEGIN IMMEDIATE.
        """
        stmt = self._select(self.model_class.id == id_value).with_for_update()  # type: ignore[attr-defined]
        row = (await session.execute(stmt)).scalar_one_or_none()
        self._trace("get_for_update", id=id_value, found=row is not None)
        return row

    async def find_one_where(
        self, session: AsyncSession, *conditions: ColumnElement[bool]
    ) -> Optional[T]:
        row = (await session.execute(self._select(*conditions))).scalar_one_or_none()
        self._trace("find_one_where", found=row is not None)
        return row

    async def find_many_where(
        self,
        session: AsyncSession,
        *conditions: ColumnElement[bool],
        order_by: Sequence[Any] = (),
    ) -> List[T]:
        stmt = self._select(*conditions).order_by(*order_by)
        rows = list((await session.execute(stmt)).scalars())
        self._trace("find_many_where", found_count=len(rows))
        return rows

    async def count(self, session: AsyncSession, *conditions: ColumnElement[bool]) -> int:
        stmt = select(func.count()).select_from(self.model_class).where(*conditions)
        total = int((await session.execute(stmt)).scalar_one())
        self._trace("count", count=total)
        return total

    def add(self, session: AsyncSession, instance: T) -> T:
        session.add(instance)
        self._trace("add")
        return instance

    async def flush(self, session: AsyncSession) -> None:
        await session.flush()
        self._trace("flush")
