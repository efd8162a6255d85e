"""
Shared query helpers for the CRUD classes.

Subclasses bind a table model and inherit lookups by primary key,
equality-filtered listing, counting, insert and removal.
"""
from typing import Any, Dict, Generic, List, Optional, Type, TypeVar

from sqlalchemy import Select, func, select
from sqlalchemy.ext.asyncio import AsyncSession
from sqlmodel import SQLModel

ModelType = TypeVar("ModelType", bound=SQLModel)


class BaseCRUD(Generic[ModelType]):
    """
    Generic table access.

    Usage:
        class EngineerCRUD(BaseCRUD[Engineer]):
            model = Engineer
    """

    model: Type[ModelType] = None

    @classmethod
    def _where(cls, stmt: Select, filters: Optional[Dict[str, Any]]) -> Select:
        # None means "don't filter on this column", not "IS NULL"
        for column, value in (filters or {}).items():
            if value is not None:
                stmt = stmt.where(getattr(cls.model, column) == value)
        return stmt

    @classmethod
    async def find_by_id(cls, db: AsyncSession, id_value: Any) -> Optional[ModelType]:
        """Row by primary key, or None."""
        return await db.get(cls.model, id_value)

    @classmethod
    async def find_all(
        cls,
        db: AsyncSession,
        *,
        filters: Optional[Dict[str, Any]] = None,
        order_by: Optional[Any] = None,
        limit: Optional[int] = None,
        offset: Optional[int] = None,
    ) -> List[ModelType]:
        """
        Rows matching every equality filter.

        Args:
            filters: column name -> value
            order_by: a column expression or a tuple of them
        """
        stmt = cls._where(select(cls.model), filters)

        if order_by is not None:
            ordering = order_by if isinstance(order_by, (list, tuple)) else (order_by,)
            stmt = stmt.order_by(*ordering)
        if offset:
            stmt = stmt.offset(offset)
        if limit:
            stmt = stmt.limit(limit)

        rows = await db.scalars(stmt)
        return list(rows)

    @classmethod
    async def count(cls, db: AsyncSession, *, filters: Optional[Dict[str, Any]] = None) -> int:
        stmt = cls._where(select(func.count()).select_from(cls.model), filters)
        return (await db.scalar(stmt)) or 0

    @classmethod
    async def create(
        cls,
        db: AsyncSession,
        *,
        obj_in: Dict[str, Any],
        commit: bool = True,
    ) -> ModelType:
        """
        Insert one row.

        With commit=False the row is only flushed so the caller's
        transaction decides its fate; the primary key is populated either way.
        """
        instance = cls.model(**obj_in)
        db.add(instance)

        if not commit:
            await db.flush()
            return instance

        await db.commit()
        await db.refresh(instance)
        return instance

    @classmethod
    async def remove(cls, db: AsyncSession, instance: ModelType) -> ModelType:
        """Delete an already loaded row. Flushes, does not commit."""
        await db.delete(instance)
        await db.flush()
        return instance
