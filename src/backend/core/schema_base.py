"""
Base schema model for API payloads.

Field names stay snake_case on the wire because the dashboard and the engineer
portal read rows exactly as stored (engineer_db_id, message_text, ...).
Datetimes are serialized as ISO 8601 with a 'Z' suffix.
"""

from datetime import datetime, timezone
from typing import Any

from pydantic import BaseModel, ConfigDict, field_serializer


def serialize_datetime(dt: datetime | None) -> str | None:
    """
    Serialize datetime to ISO 8601 format with UTC timezone indicator.

    All datetimes in the database are stored as naive UTC.

    Returns:
        ISO 8601 string with 'Z' suffix (e.g., "2025-12-18T14:30:00Z")
        or None if input is None
    """
    if dt is None:
        return None

    if dt.tzinfo is not None:
        dt = dt.astimezone(timezone.utc).replace(tzinfo=None)

    return dt.isoformat() + "Z"


class HTTPSchemaModel(BaseModel):
    """
    Base model for all HTTP and live-channel schemas.

    - Conversion from ORM models (from_attributes=True)
    - Consistent datetime serialization with 'Z' suffix
    """

    model_config = ConfigDict(
        from_attributes=True,
        populate_by_name=True,
    )

    @field_serializer("*", mode="wrap")
    @classmethod
    def serialize_any_datetime(cls, value: Any, handler: Any) -> Any:
        if isinstance(value, datetime):
            return serialize_datetime(value)
        return handler(value)
