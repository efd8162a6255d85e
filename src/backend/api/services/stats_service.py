"""
Per-department engineer statistics.
"""

import logging
from typing import Dict

from sqlalchemy.ext.asyncio import AsyncSession

from api.schemas.stats import DepartmentStats, GroupStats
from core.decorators import critical_database_operation, log_database_operation
from crud.engineer_crud import EngineerCRUD
from db import Department

logger = logging.getLogger(__name__)


class StatsService:
    """Read-and-fold over the engineers table."""

    @staticmethod
    def fold(rows) -> GroupStats:
        """
        Fold (group_type, total, online) rows into GroupStats.

        Tags are normalized; rows with a blank or unknown tag are skipped.
        Every department is present, with zero counts when it has no rows.
        """
        counts: Dict[str, DepartmentStats] = {
            department.value: DepartmentStats() for department in Department
        }
        for group_type, total, online in rows:
            key = (group_type or "").strip().lower()
            if key not in counts:
                if key:
                    logger.debug(f"Ignoring engineers with unknown group_type {group_type!r}")
                continue
            bucket = counts[key]
            bucket.total += total
            bucket.online += min(online, total)

        return GroupStats(**counts)

    @staticmethod
    @critical_database_operation("compute group stats")
    @log_database_operation("group stats computation", level="debug")
    async def get_group_stats(db: AsyncSession) -> GroupStats:
        rows = await EngineerCRUD.department_counts(db)
        return StatsService.fold(rows)
