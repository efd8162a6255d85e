"""
Engineer CRUD for database operations.

Handles engineer lookups, presence status updates, per-department counts and
series identifier allocation.
"""
import logging
from typing import List, Optional, Tuple

from sqlalchemy import case, func, select, update
from sqlalchemy.ext.asyncio import AsyncSession

from crud.base_repository import BaseCRUD
from db import Department, DepartmentSequence, Engineer, PresenceStatus

logger = logging.getLogger(__name__)


def format_series_id(department: Department, sequence: int) -> str:
    """ENG-<DEPT>-<sequence>, zero-padded to at least 3 digits."""
    return f"{department.series_prefix}-{sequence:03d}"


def parse_series_number(engineer_id: Optional[str]) -> Optional[int]:
    """Numeric suffix of a series id, or None if it has none."""
    if not engineer_id:
        return None
    parts = engineer_id.split("-")
    if len(parts) < 3:
        return None
    try:
        return int(parts[2])
    except ValueError:
        return None


class EngineerCRUD(BaseCRUD[Engineer]):
    """CRUD for Engineer database operations."""

    model = Engineer

    @classmethod
    async def find_by_department(cls, db: AsyncSession, department: Department) -> List[Engineer]:
        """All engineers in a department, ordered by id ascending."""
        return await cls.find_all(
            db,
            filters={"group_type": department.value},
            order_by=Engineer.id.asc(),
        )

    @classmethod
    async def find_by_credentials(
        cls, db: AsyncSession, email: str, password: str
    ) -> Optional[Engineer]:
        stmt = (
            select(Engineer)
            .where(Engineer.email == email, Engineer.password == password)
            .order_by(Engineer.id.asc())
            .limit(1)
        )
        result = await db.execute(stmt)
        return result.scalar_one_or_none()

    @classmethod
    async def email_exists(cls, db: AsyncSession, email: str) -> bool:
        stmt = select(func.count()).select_from(Engineer).where(
            func.lower(Engineer.email) == email.lower()
        )
        result = await db.execute(stmt)
        return (result.scalar() or 0) > 0

    @classmethod
    async def set_status(
        cls, db: AsyncSession, engineer_id: int, status: PresenceStatus
    ) -> bool:
        """
        Set presence status with a single UPDATE statement.

        Returns:
            True if a row was updated, False if the engineer does not exist
        """
        result = await db.execute(
            update(Engineer)
            .where(Engineer.id == engineer_id)
            .values(status=status.value)
        )
        return (result.rowcount or 0) > 0

    @classmethod
    async def reset_all_status(cls, db: AsyncSession, status: PresenceStatus) -> int:
        result = await db.execute(
            update(Engineer).where(Engineer.status != status.value).values(status=status.value)
        )
        return result.rowcount or 0

    @classmethod
    async def department_counts(cls, db: AsyncSession) -> List[Tuple[Optional[str], int, int]]:
        """
        Per-department (group_type, total, online) rows.

        group_type is returned raw; callers normalize it.
        """
        online = func.sum(
            case((Engineer.status == PresenceStatus.ONLINE.value, 1), else_=0)
        )
        stmt = select(
            Engineer.group_type,
            func.count(Engineer.id),
            online,
        ).group_by(Engineer.group_type)

        result = await db.execute(stmt)
        return [(row[0], int(row[1] or 0), int(row[2] or 0)) for row in result.all()]

    @classmethod
    async def max_series_number(cls, db: AsyncSession, department: Department) -> int:
        """Largest numeric suffix among existing series ids of a department (0 if none)."""
        stmt = select(Engineer.engineer_id).where(
            Engineer.engineer_id.like(f"{department.series_prefix}-%")
        )
        result = await db.execute(stmt)
        numbers = [parse_series_number(value) for value in result.scalars().all()]
        return max((n for n in numbers if n is not None), default=0)

    @classmethod
    async def _lock_sequence(
        cls, db: AsyncSession, department: Department
    ) -> Optional[DepartmentSequence]:
        stmt = (
            select(DepartmentSequence)
            .where(DepartmentSequence.group_type == department.value)
            .with_for_update()
        )
        result = await db.execute(stmt)
        return result.scalar_one_or_none()

    @classmethod
    async def ensure_sequence(cls, db: AsyncSession, department: Department) -> DepartmentSequence:
        """
        Create the department counter if missing, seeded from existing series ids.

        Does not commit.
        """
        sequence = await cls._lock_sequence(db, department)
        if sequence is None:
            sequence = DepartmentSequence(
                group_type=department.value,
                last_value=await cls.max_series_number(db, department),
            )
            db.add(sequence)
            await db.flush()
        return sequence

    @classmethod
    async def allocate_series_id(cls, db: AsyncSession, department: Department) -> str:
        """
        Atomically take the next series id for a department.

        The counter row stays locked until the caller's transaction ends, so
        concurrent registrations for the same department serialize here.
        Existing ids are also consulted so rows inserted outside this path
        can never be handed out twice. Does not commit.
        """
        sequence = await cls.ensure_sequence(db, department)
        highest = await cls.max_series_number(db, department)
        sequence.last_value = max(sequence.last_value, highest) + 1
        await db.flush()

        series_id = format_series_id(department, sequence.last_value)
        logger.debug(f"Allocated series id {series_id}")
        return series_id

    @classmethod
    async def create_engineer(
        cls,
        db: AsyncSession,
        *,
        name: str,
        department: Department,
        email: str,
        password: str,
        phone: Optional[str],
    ) -> Engineer:
        """Allocate a series id and insert the engineer in the same transaction. Does not commit."""
        series_id = await cls.allocate_series_id(db, department)
        return await cls.create(
            db,
            obj_in={
                "name": name,
                "engineer_id": series_id,
                "group_type": department.value,
                "email": email,
                "password": password,
                "phone": phone,
                "status": PresenceStatus.OFFLINE.value,
            },
            commit=False,
        )
