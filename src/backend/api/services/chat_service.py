"""
Chat service: persistence rules for chat messages.

Message lifecycle:
- created with text, an attachment, or both
- editable and deletable only within the edit window after creation
- read-only afterwards until the retention sweep removes it
"""

import logging
from datetime import datetime, timedelta
from typing import List, Optional

from sqlalchemy.ext.asyncio import AsyncSession

from api.schemas.chat_message import ChatMessageCreate
from core.config import settings
from core.decorators import (
    critical_database_operation,
    log_database_operation,
    transactional_database_operation,
)
from core.exceptions import (
    DeleteWindowExpired,
    EditWindowExpired,
    NotFound,
    ValidationFailure,
)
from core.sanitizer import sanitize_message_text
from crud.chat_crud import ChatMessageCRUD
from crud.engineer_crud import EngineerCRUD
from db import ChatMessage, utc_now

logger = logging.getLogger(__name__)


def within_edit_window(created_at: datetime, now: Optional[datetime] = None) -> bool:
    """True while a message created at created_at may still be edited or deleted."""
    now = now or utc_now()
    return now - created_at <= timedelta(minutes=settings.chat.edit_window_minutes)


def _clean_text(text: Optional[str]) -> Optional[str]:
    try:
        return sanitize_message_text(text, settings.chat.max_message_length)
    except ValueError as e:
        raise ValidationFailure(str(e)) from e


class ChatService:
    """Service for chat message persistence."""

    @staticmethod
    @transactional_database_operation("create chat message")
    @log_database_operation("chat message creation", level="debug")
    async def create_message(db: AsyncSession, data: ChatMessageCreate) -> ChatMessage:
        """
        Store a new message; id and created_at are assigned here.

        Raises:
            ValidationFailure: Neither text nor attachment present
            NotFound: The conversation's engineer does not exist
        """
        text = _clean_text(data.message_text)
        if text is None and data.file_info is None:
            raise ValidationFailure("Message must contain text or a file")

        engineer = await EngineerCRUD.find_by_id(db, data.engineer_db_id)
        if engineer is None:
            raise NotFound(f"Engineer {data.engineer_db_id} not found")

        message = await ChatMessageCRUD.create_message(
            db,
            engineer_db_id=data.engineer_db_id,
            sender=data.sender.strip(),
            sender_type=data.sender_type.value,
            message_text=text,
            file_info=data.file_info.model_dump() if data.file_info else None,
        )
        await db.refresh(message)
        logger.info(f"Stored message {message.id} in conversation {data.engineer_db_id}")
        return message

    @staticmethod
    @critical_database_operation("get chat history")
    async def get_history(db: AsyncSession, engineer_db_id: int) -> List[ChatMessage]:
        return await ChatMessageCRUD.find_by_engineer(db, engineer_db_id)

    @staticmethod
    async def _get_message(
        db: AsyncSession, message_id: int, engineer_db_id: Optional[int] = None
    ) -> ChatMessage:
        message = await ChatMessageCRUD.find_by_id(db, message_id)
        if message is None:
            raise NotFound("Message not found")
        if engineer_db_id is not None and message.engineer_db_id != engineer_db_id:
            raise NotFound("Message not found")
        return message

    @staticmethod
    @transactional_database_operation("edit chat message")
    async def edit_message(
        db: AsyncSession,
        message_id: int,
        new_text: str,
        engineer_db_id: Optional[int] = None,
    ) -> ChatMessage:
        """
        Replace the text of a message and flag it as edited.

        Raises:
            ValidationFailure: Empty new text
            NotFound: Unknown message, or not part of the given conversation
            EditWindowExpired: Message is older than the edit window
        """
        text = _clean_text(new_text)
        if text is None:
            raise ValidationFailure("Message text cannot be empty")

        message = await ChatService._get_message(db, message_id, engineer_db_id)
        if not within_edit_window(message.created_at):
            raise EditWindowExpired(
                f"Edit time expired. Messages can only be edited within "
                f"{settings.chat.edit_window_minutes} minutes."
            )

        message.message_text = text
        message.is_edited = True
        await db.flush()
        return message

    @staticmethod
    @transactional_database_operation("delete chat message")
    async def delete_message(db: AsyncSession, message_id: int) -> ChatMessage:
        """
        Delete a message still inside the edit window.

        Returns:
            The deleted message (detached), so callers know its conversation
        """
        message = await ChatService._get_message(db, message_id)
        if not within_edit_window(message.created_at):
            raise DeleteWindowExpired(
                f"Delete time expired. Messages can only be deleted within "
                f"{settings.chat.edit_window_minutes} minutes."
            )

        return await ChatMessageCRUD.remove(db, message)

    @staticmethod
    @transactional_database_operation("purge expired chat messages")
    async def purge_expired(db: AsyncSession, retention_days: Optional[int] = None) -> int:
        """
        Delete messages older than the retention period.

        Returns:
            Number of deleted messages
        """
        days = retention_days if retention_days is not None else settings.chat.retention_days
        cutoff = utc_now() - timedelta(days=days)
        deleted = await ChatMessageCRUD.delete_older_than(db, cutoff)
        logger.info(f"Retention sweep removed {deleted} messages older than {cutoff.isoformat()}")
        return deleted
