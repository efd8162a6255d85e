"""
Database setup module for initializing default values.

- Seeds one department_sequences row per department from existing series ids
- Resets presence: live sessions do not survive a restart, so nobody is Online
"""

import logging

from sqlalchemy.ext.asyncio import AsyncSession

from crud.engineer_crud import EngineerCRUD
from db import Department, PresenceStatus

logger = logging.getLogger(__name__)


class DatabaseSetup:
    """Handles default data setup."""

    async def seed_department_sequences(self, db: AsyncSession) -> bool:
        """Create missing series counters for every department."""
        try:
            for department in Department:
                sequence = await EngineerCRUD.ensure_sequence(db, department)
                logger.info(
                    f"Series counter {department.series_prefix}: last value {sequence.last_value}"
                )
            await db.commit()
            return True
        except Exception as e:
            logger.error(f"Error seeding department sequences: {e}")
            await db.rollback()
            return False

    async def reset_presence(self, db: AsyncSession) -> bool:
        """Mark every engineer Offline; live connections re-register after restart."""
        try:
            count = await EngineerCRUD.reset_all_status(db, PresenceStatus.OFFLINE)
            await db.commit()
            if count:
                logger.info(f"Reset {count} stale Online engineers to Offline")
            return True
        except Exception as e:
            logger.error(f"Error resetting presence: {e}")
            await db.rollback()
            return False

    async def run_setup(self, db: AsyncSession) -> bool:
        """Execute all default values creation."""
        logger.info("Database setup process started...")

        success = await self.seed_department_sequences(db)
        success = await self.reset_presence(db) and success

        if success:
            logger.info("Database setup completed successfully")
        else:
            logger.error("Database setup failed")

        return success


# Global database setup instance
database_setup = DatabaseSetup()


async def setup_database_default_data(db: AsyncSession) -> bool:
    """
    Convenience function to setup database default data.

    Returns:
        True if setup was successful, False otherwise
    """
    return await database_setup.run_setup(db)
