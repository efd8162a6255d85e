"""
Chat relay: persist, then deliver.

A message is only broadcast after its insert has been committed. If storing
fails the exception propagates to the caller (the socket handler reports it to
the sender) and nothing is emitted.
"""

import logging
from typing import Any, Dict, Optional

from sqlalchemy.ext.asyncio import AsyncSession

from api.schemas.chat_message import (
    ChatMessageCreate,
    ChatMessageRead,
    MessageDeletedEvent,
    MessageEditedEvent,
)
from api.services.broadcaster import Broadcaster
from api.services.chat_service import ChatService

logger = logging.getLogger(__name__)


class ChatRelay:
    """Routes chat traffic to storage, conversation rooms and observers."""

    def __init__(self, broadcaster: Broadcaster):
        self.broadcaster = broadcaster

    async def send_message(self, db: AsyncSession, data: ChatMessageCreate) -> Dict[str, Any]:
        """
        Store a message and deliver `receive_message` to its conversation room
        and to the observers room.

        Returns:
            The serialized stored message, as broadcast
        """
        message = await ChatService.create_message(db, data)
        payload = ChatMessageRead.model_validate(message).model_dump(mode="json")

        await self.broadcaster.to_conversation_and_observers(
            message.engineer_db_id, "receive_message", payload
        )
        logger.debug(f"Relayed message {message.id} for conversation {message.engineer_db_id}")
        return payload

    async def join_room(self, sid: str, engineer_db_id: int) -> None:
        await self.broadcaster.join_conversation(sid, engineer_db_id)
        logger.debug(f"Connection {sid} joined conversation {engineer_db_id}")

    async def join_observers(self, sid: str) -> None:
        await self.broadcaster.join_observers(sid)
        logger.debug(f"Connection {sid} joined observers")

    async def edit_message(
        self,
        db: AsyncSession,
        message_id: int,
        new_text: str,
        engineer_db_id: Optional[int] = None,
    ) -> Dict[str, Any]:
        message = await ChatService.edit_message(db, message_id, new_text, engineer_db_id)
        event = MessageEditedEvent(
            message_id=message.id,
            new_text=message.message_text,
            engineer_db_id=message.engineer_db_id,
            is_edited=True,
        )
        payload = event.model_dump()
        await self.broadcaster.to_conversation(message.engineer_db_id, "message_edited", payload)
        return payload

    async def delete_message(self, db: AsyncSession, message_id: int) -> Dict[str, Any]:
        message = await ChatService.delete_message(db, message_id)
        payload = MessageDeletedEvent(message_id=message_id).model_dump()
        await self.broadcaster.to_conversation(message.engineer_db_id, "message_deleted", payload)
        return payload
