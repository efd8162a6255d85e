"""
Live event fan-out over the Socket.IO server.

Two subscriber classes exist:
- conversation subscribers: connections that joined one engineer's room
  (room name is the engineer database id as a string)
- observers: admin dashboards that see every new message indicator

Services only talk to this class, never to the socket server directly, so they
can be exercised with a recording double in tests.
"""

import logging
from typing import Any, Optional

import socketio

from core.config import settings

logger = logging.getLogger(__name__)


def conversation_room(engineer_db_id: int) -> str:
    """Room name of an engineer's conversation."""
    return str(engineer_db_id)


class Broadcaster:
    """Thin wrapper around socketio.AsyncServer emit/enter_room."""

    def __init__(self, server: socketio.AsyncServer, observers_room: Optional[str] = None):
        self._server = server
        self.observers_room = observers_room or settings.realtime.observers_room

    async def to_everyone(self, event: str, data: Any) -> None:
        logger.debug(f"Broadcasting {event} to all connections")
        await self._server.emit(event, data)

    async def to_conversation(self, engineer_db_id: int, event: str, data: Any) -> None:
        room = conversation_room(engineer_db_id)
        logger.debug(f"Emitting {event} to room {room}")
        await self._server.emit(event, data, to=room)

    async def to_conversation_and_observers(
        self, engineer_db_id: int, event: str, data: Any
    ) -> None:
        """
        Emit once to the union of the conversation room and the observers room.

        A connection subscribed to both still receives a single copy.
        """
        rooms = [conversation_room(engineer_db_id), self.observers_room]
        logger.debug(f"Emitting {event} to rooms {rooms}")
        await self._server.emit(event, data, to=rooms)

    async def to_connection(self, sid: str, event: str, data: Any) -> None:
        await self._server.emit(event, data, to=sid)

    async def join_conversation(self, sid: str, engineer_db_id: int) -> None:
        # enter_room is a no-op for a sid already in the room
        await self._server.enter_room(sid, conversation_room(engineer_db_id))

    async def join_observers(self, sid: str) -> None:
        await self._server.enter_room(sid, self.observers_room)
