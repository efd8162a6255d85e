"""
Live channel event handlers.

RealtimeGateway holds the handler logic and returns ack payloads, so it can be
driven directly in tests. register_handlers() binds it to a Socket.IO server.

Client -> server events:
- register_engineer(engineerId)
- join_chat(engineerId)
- join_observers()             admin dashboards
- send_message(messageData)

Acks are {"success": true, ...} or {"success": false, "error", "message"}.
A failed send_message additionally emits `message_error` to the sender.
"""

import logging
from typing import Any, AsyncContextManager, Callable, Dict, Optional

import socketio
from pydantic import ValidationError
from sqlalchemy.ext.asyncio import AsyncSession

from api.schemas.chat_message import ChatMessageCreate
from api.services.chat_relay import ChatRelay
from api.services.presence_service import PresenceService
from core.database import session_scope
from core.exceptions import CRMError, ValidationFailure

logger = logging.getLogger(__name__)

SessionFactory = Callable[[], AsyncContextManager[AsyncSession]]


def parse_engineer_id(value: Any) -> int:
    """
    Accept an integer id, a numeric string, or {"engineerId": ...}.

    Raises:
        ValidationFailure: Anything else
    """
    if isinstance(value, dict):
        value = value.get("engineerId", value.get("engineer_id"))
    if isinstance(value, bool):
        raise ValidationFailure("Engineer id must be an integer")
    if isinstance(value, int):
        return value
    if isinstance(value, str) and value.strip().lstrip("-").isdigit():
        return int(value.strip())
    raise ValidationFailure("Engineer id must be an integer")


def _error_ack(exc: CRMError) -> Dict[str, Any]:
    return exc.to_dict()


class RealtimeGateway:
    """Handler logic for live channel events."""

    def __init__(
        self,
        presence: PresenceService,
        relay: ChatRelay,
        session_factory: SessionFactory = session_scope,
    ):
        self.presence = presence
        self.relay = relay
        self.session_factory = session_factory

    async def register_engineer(self, sid: str, engineer_id: Any) -> Dict[str, Any]:
        try:
            engineer_id = parse_engineer_id(engineer_id)
            async with self.session_factory() as db:
                sessions = await self.presence.engineer_connected(db, sid, engineer_id)
        except CRMError as e:
            logger.warning(f"register_engineer rejected for {sid}: {e.message}")
            return _error_ack(e)
        return {"success": True, "id": engineer_id, "sessions": sessions}

    async def join_chat(self, sid: str, engineer_id: Any) -> Dict[str, Any]:
        try:
            engineer_id = parse_engineer_id(engineer_id)
        except ValidationFailure as e:
            logger.warning(f"join_chat rejected for {sid}: {e.message}")
            return _error_ack(e)
        await self.relay.join_room(sid, engineer_id)
        return {"success": True, "room": str(engineer_id)}

    async def join_observers(self, sid: str) -> Dict[str, Any]:
        await self.relay.join_observers(sid)
        return {"success": True}

    async def send_message(self, sid: str, message_data: Any) -> Dict[str, Any]:
        try:
            if not isinstance(message_data, dict):
                raise ValidationFailure("Message data must be an object")
            try:
                data = ChatMessageCreate.model_validate(message_data)
            except ValidationError as e:
                raise ValidationFailure(f"Invalid message data: {e.errors()[0]['msg']}") from e

            async with self.session_factory() as db:
                payload = await self.relay.send_message(db, data)
        except CRMError as e:
            logger.warning(f"send_message failed for {sid}: {e.message}")
            error = _error_ack(e)
            await self.relay.broadcaster.to_connection(
                sid, "message_error", {"error": error["error"], "message": error["message"]}
            )
            return error
        return {"success": True, "message": payload}

    async def disconnect(self, sid: str) -> Optional[int]:
        try:
            async with self.session_factory() as db:
                return await self.presence.engineer_disconnected(db, sid)
        except CRMError as e:
            # Nobody left to report to; the tracker has already dropped the sid
            logger.error(f"Presence update failed on disconnect of {sid}: {e.message}")
            return None


def register_handlers(sio: socketio.AsyncServer, gateway: RealtimeGateway) -> None:
    """Bind gateway methods to Socket.IO events."""

    @sio.event
    async def connect(sid, environ, auth=None):
        logger.debug(f"Connection opened: {sid}")

    @sio.on("register_engineer")
    async def register_engineer(sid, engineer_id=None):
        return await gateway.register_engineer(sid, engineer_id)

    @sio.on("join_chat")
    async def join_chat(sid, engineer_id=None):
        return await gateway.join_chat(sid, engineer_id)

    @sio.on("join_observers")
    async def join_observers(sid, *args):
        return await gateway.join_observers(sid)

    @sio.on("send_message")
    async def send_message(sid, message_data=None):
        return await gateway.send_message(sid, message_data)

    @sio.event
    async def disconnect(sid, *args):
        logger.debug(f"Connection closed: {sid}")
        await gateway.disconnect(sid)
