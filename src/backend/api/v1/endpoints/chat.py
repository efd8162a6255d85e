"""
Chat history and message edit/delete endpoints.

Sending happens over the live channel; edits and deletes made here are pushed
to the conversation room as well.
"""

import logging
from typing import List

from fastapi import APIRouter, Depends
from sqlalchemy.ext.asyncio import AsyncSession

from api.schemas.chat_message import ChatMessageRead, MessageEditRequest
from api.schemas.engineer import SuccessResponse
from api.services.chat_relay import ChatRelay
from api.services.chat_service import ChatService
from core.database import get_session
from core.dependencies import get_chat_relay

logger = logging.getLogger(__name__)

router = APIRouter()


@router.get("/chat/{engineer_id}", response_model=List[ChatMessageRead])
async def get_chat_history(engineer_id: int, db: AsyncSession = Depends(get_session)):
    """Messages of one engineer's conversation, oldest first."""
    messages = await ChatService.get_history(db, engineer_id)
    return [ChatMessageRead.model_validate(message) for message in messages]


@router.put("/chat/edit", response_model=SuccessResponse)
async def edit_message(
    edit_data: MessageEditRequest,
    db: AsyncSession = Depends(get_session),
    relay: ChatRelay = Depends(get_chat_relay),
):
    await relay.edit_message(
        db,
        edit_data.message_id,
        edit_data.new_text,
        edit_data.engineer_db_id,
    )
    return SuccessResponse()


@router.delete("/chat/delete/{message_id}", response_model=SuccessResponse)
async def delete_message(
    message_id: int,
    db: AsyncSession = Depends(get_session),
    relay: ChatRelay = Depends(get_chat_relay),
):
    await relay.delete_message(db, message_id)
    return SuccessResponse()
