"""
Chat CRUD for database operations.

Handles all database queries related to chat messages.
"""
from datetime import datetime
from typing import List, Optional

from sqlalchemy import delete
from sqlalchemy.ext.asyncio import AsyncSession

from crud.base_repository import BaseCRUD
from db import ChatMessage, utc_now


class ChatMessageCRUD(BaseCRUD[ChatMessage]):
    """CRUD for ChatMessage database operations."""

    model = ChatMessage

    @classmethod
    async def find_by_engineer(cls, db: AsyncSession, engineer_db_id: int) -> List[ChatMessage]:
        """
        Full conversation for one engineer in display order.

        Ordered by creation timestamp ascending; id breaks ties between
        messages stored within the same clock tick.
        """
        return await cls.find_all(
            db,
            filters={"engineer_db_id": engineer_db_id},
            order_by=(ChatMessage.created_at.asc(), ChatMessage.id.asc()),
        )

    @classmethod
    async def delete_older_than(cls, db: AsyncSession, cutoff: datetime) -> int:
        """
        Bulk delete messages created before cutoff. Does not commit.

        Returns:
            Number of deleted rows
        """
        result = await db.execute(delete(ChatMessage).where(ChatMessage.created_at < cutoff))
        return result.rowcount or 0

    @classmethod
    async def create_message(
        cls,
        db: AsyncSession,
        *,
        engineer_db_id: int,
        sender: str,
        sender_type: str,
        message_text: Optional[str],
        file_info: Optional[dict],
    ) -> ChatMessage:
        """Insert a message stamped with the server clock. Does not commit."""
        return await cls.create(
            db,
            obj_in={
                "engineer_db_id": engineer_db_id,
                "sender": sender,
                "sender_type": sender_type,
                "message_text": message_text,
                "file_info": file_info,
                "is_edited": False,
                "created_at": utc_now(),
            },
            commit=False,
        )
