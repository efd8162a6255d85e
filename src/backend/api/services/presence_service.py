"""
Presence orchestration: session registry, persisted status and live broadcasts.

Every presence transition follows the same sequence:
1. persist the engineer's status (committed)
2. broadcast `update_group_stats` with freshly computed stats
3. broadcast `status_changed` with {id, status}
"""

from typing import Optional

from sqlalchemy.ext.asyncio import AsyncSession

from api.schemas.engineer import StatusChangedEvent
from api.services.broadcaster import Broadcaster
from api.services.presence_tracker import PresenceTracker
from api.services.stats_service import StatsService
from core.decorators import critical_database_operation
from core.exceptions import NotFound
from core.logging_config import PresenceLogger
from crud.engineer_crud import EngineerCRUD
from db import PresenceStatus

presence_logger = PresenceLogger("service")


class PresenceService:
    """Connects the session registry to the engineers table and the live channel."""

    def __init__(self, tracker: PresenceTracker, broadcaster: Broadcaster):
        self.tracker = tracker
        self.broadcaster = broadcaster

    @critical_database_operation("register engineer session")
    async def engineer_connected(self, db: AsyncSession, sid: str, engineer_id: int) -> int:
        """
        Register a live session for an engineer and mark them Online.

        Raises:
            NotFound: Unknown engineer id; no mapping is kept

        Returns:
            Number of open sessions for the engineer
        """
        engineer = await EngineerCRUD.find_by_id(db, engineer_id)
        if engineer is None:
            raise NotFound(f"Engineer {engineer_id} not found")

        previous = self.tracker.engineer_for(sid)
        session_count = self.tracker.register(sid, engineer_id)
        presence_logger.engineer_registered(sid, engineer_id, session_count)

        try:
            await self._persist_status(db, engineer_id, PresenceStatus.ONLINE)
        except Exception:
            # Put the registry back exactly as it was before this call
            if previous != engineer_id:
                self.tracker.unregister(sid)
                if previous is not None:
                    self.tracker.register(sid, previous)
            raise

        # A sid moved away from another engineer may have been that engineer's last session
        moved = previous is not None and previous != engineer_id
        if moved and not self.tracker.session_count(previous):
            await self._persist_status(db, previous, PresenceStatus.OFFLINE)
            await self._broadcast_transition(db, previous, PresenceStatus.OFFLINE, "re-register")

        await self._broadcast_transition(db, engineer_id, PresenceStatus.ONLINE, "register")
        return session_count

    @critical_database_operation("close engineer session")
    async def engineer_disconnected(self, db: AsyncSession, sid: str) -> Optional[int]:
        """
        Drop a closed session; mark the engineer Offline when it was their last one.

        Returns:
            The engineer the session belonged to, or None for an unregistered sid
        """
        engineer_id = self.tracker.unregister(sid)
        if engineer_id is None:
            return None

        remaining = self.tracker.session_count(engineer_id)
        presence_logger.engineer_disconnected(sid, engineer_id, remaining)
        if remaining:
            return engineer_id

        await self._persist_status(db, engineer_id, PresenceStatus.OFFLINE)
        await self._broadcast_transition(db, engineer_id, PresenceStatus.OFFLINE, "disconnect")
        return engineer_id

    @critical_database_operation("set engineer status")
    async def set_status(
        self,
        db: AsyncSession,
        engineer_id: int,
        status: PresenceStatus,
        source: str = "http",
    ) -> None:
        """
        Persist a status set outside the live channel (login/logout) and broadcast it.

        Raises:
            NotFound: Unknown engineer id
        """
        updated = await self._persist_status(db, engineer_id, status)
        if not updated:
            raise NotFound(f"Engineer {engineer_id} not found")
        await self._broadcast_transition(db, engineer_id, status, source)

    async def broadcast_stats(self, db: AsyncSession) -> None:
        stats = await StatsService.get_group_stats(db)
        await self.broadcaster.to_everyone("update_group_stats", stats.model_dump())

    @critical_database_operation("persist presence status")
    async def _persist_status(
        self, db: AsyncSession, engineer_id: int, status: PresenceStatus
    ) -> bool:
        try:
            updated = await EngineerCRUD.set_status(db, engineer_id, status)
            await db.commit()
        except Exception as e:
            await db.rollback()
            presence_logger.error_occurred("persist status", engineer_id=engineer_id, error=str(e))
            raise
        return updated

    async def _broadcast_transition(
        self, db: AsyncSession, engineer_id: int, status: PresenceStatus, source: str
    ) -> None:
        presence_logger.status_changed(engineer_id, status.value, source)
        await self.broadcast_stats(db)
        event = StatusChangedEvent(id=engineer_id, status=status.value)
        await self.broadcaster.to_everyone("status_changed", event.model_dump())
