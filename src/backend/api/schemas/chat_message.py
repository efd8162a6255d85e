"""
Chat message schemas for API validation and serialization.

Payloads keep the stored column names (engineer_db_id, message_text, file_info)
because the same shape travels over HTTP and the live channel.
"""

import json
from datetime import datetime
from typing import Optional

from pydantic import ConfigDict, Field, field_validator

from core.schema_base import HTTPSchemaModel
from db import SenderType


class FileInfo(HTTPSchemaModel):
    """Attachment metadata returned by the upload endpoint."""

    url: str = Field(..., min_length=1)
    name: str = Field(..., min_length=1, max_length=255)
    type: Optional[str] = Field(None, max_length=255, description="MIME type")


def _decode_file_info(v):
    # Older rows stored the attachment as a JSON string
    if isinstance(v, str):
        if not v.strip():
            return None
        return json.loads(v)
    return v


class ChatMessageCreate(HTTPSchemaModel):
    """
    Data of a `send_message` event.

    Clients also send fields such as sender_id and a client-side created_at;
    they are ignored; the server assigns id and created_at.
    """

    model_config = ConfigDict(from_attributes=True, populate_by_name=True, extra="ignore")

    engineer_db_id: int
    sender: str = Field(..., min_length=1, max_length=150)
    sender_type: SenderType
    message_text: Optional[str] = None
    file_info: Optional[FileInfo] = None

    @field_validator("sender_type", mode="before")
    @classmethod
    def normalize_sender_type(cls, v):
        return v.strip().lower() if isinstance(v, str) else v

    @field_validator("file_info", mode="before")
    @classmethod
    def decode_file_info(cls, v):
        return _decode_file_info(v)


class ChatMessageRead(HTTPSchemaModel):
    """Stored chat message as returned by history and `receive_message`."""

    id: int
    engineer_db_id: int
    sender: str
    sender_type: str
    message_text: Optional[str] = None
    file_info: Optional[FileInfo] = None
    is_edited: bool = False
    created_at: datetime

    @field_validator("file_info", mode="before")
    @classmethod
    def decode_file_info(cls, v):
        return _decode_file_info(v)


class MessageEditRequest(HTTPSchemaModel):
    """Body of PUT /chat/edit."""

    message_id: int
    new_text: str = Field(..., min_length=1)
    engineer_db_id: Optional[int] = None


class MessageEditedEvent(HTTPSchemaModel):
    """Payload of the `message_edited` live event."""

    message_id: int
    new_text: str
    engineer_db_id: int
    is_edited: bool = True


class MessageDeletedEvent(HTTPSchemaModel):
    """Payload of the `message_deleted` live event."""

    message_id: int
