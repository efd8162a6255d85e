"""
Database models using SQLModel.

Tables:
- engineers: field engineers with department tag, series id and presence status
- chat_messages: one conversation per engineer, admin <-> engineer
- department_sequences: per-department counter backing series id allocation
"""

from datetime import datetime, timezone
from enum import Enum
from typing import Optional

from sqlalchemy import (
    JSON,
    Boolean,
    Column,
    DateTime,
    ForeignKey,
    Index,
    Integer,
    String,
    Text,
    false,
    func,
)
from sqlmodel import Field, SQLModel


def utc_now() -> datetime:
    """
    Current time in UTC (timezone-naive) for database storage.

    The API layer appends 'Z' when serializing so clients convert to local time.
    """
    return datetime.now(timezone.utc).replace(tzinfo=None)


class Department(str, Enum):
    """Fixed engineer departments. Also the series id prefix source."""

    UPS = "ups"
    LAN = "lan"
    CCTV = "cctv"

    @property
    def series_prefix(self) -> str:
        return f"ENG-{self.value.upper()}"

    @classmethod
    def parse(cls, value) -> "Department":
        """Case/whitespace-insensitive lookup. Raises ValueError for unknown tags."""
        if isinstance(value, cls):
            return value
        if not isinstance(value, str):
            raise ValueError(f"Unknown department: {value!r}")
        try:
            return cls(value.strip().lower())
        except ValueError:
            raise ValueError(f"Unknown department: {value!r}") from None


class PresenceStatus(str, Enum):
    ONLINE = "Online"
    OFFLINE = "Offline"


class SenderType(str, Enum):
    ADMIN = "admin"
    ENGINEER = "engineer"


class TableModel(SQLModel):
    """Base table model with common functionality."""

    pass


class Engineer(TableModel, table=True):
    """Field engineer. Only `status` changes after registration."""

    __tablename__ = "engineers"

    id: Optional[int] = Field(default=None, primary_key=True)
    name: str = Field(
        sa_column=Column(String(150), nullable=False),
        description="Display name",
    )
    engineer_id: str = Field(
        sa_column=Column(String(32), nullable=False, unique=True),
        description="Series identifier, ENG-<DEPT>-<seq>",
    )
    group_type: str = Field(
        sa_column=Column(String(16), nullable=False, index=True),
        description="Department tag (ups/lan/cctv)",
    )
    # Unique case-insensitively, see uq_engineers_email_lower below
    email: str = Field(
        sa_column=Column(String(255), nullable=False),
    )
    # Stored as entered; credential hardening is out of scope
    password: str = Field(sa_column=Column(String(255), nullable=False))
    phone: Optional[str] = Field(
        default=None,
        sa_column=Column(String(32), nullable=True),
    )
    status: str = Field(
        default=PresenceStatus.OFFLINE.value,
        sa_column=Column(
            String(16),
            nullable=False,
            default=PresenceStatus.OFFLINE.value,
            server_default=PresenceStatus.OFFLINE.value,
        ),
        description="Presence status (Online/Offline)",
    )


Index(
    "uq_engineers_email_lower",
    func.lower(Engineer.__table__.c.email),
    unique=True,
)


class ChatMessage(TableModel, table=True):
    """Chat message in one engineer's conversation."""

    __tablename__ = "chat_messages"
    __table_args__ = (
        Index("ix_chat_messages_engineer_created", "engineer_db_id", "created_at"),
    )

    id: Optional[int] = Field(default=None, primary_key=True)
    engineer_db_id: int = Field(
        sa_column=Column(
            Integer,
            ForeignKey("engineers.id", ondelete="CASCADE"),
            nullable=False,
        ),
        description="Engineer whose conversation this message belongs to",
    )
    sender: str = Field(
        sa_column=Column(String(150), nullable=False),
        description="Sender display name",
    )
    sender_type: str = Field(
        sa_column=Column(String(16), nullable=False),
        description="admin or engineer",
    )
    message_text: Optional[str] = Field(
        default=None,
        sa_column=Column(Text, nullable=True),
    )
    file_info: Optional[dict] = Field(
        default=None,
        sa_column=Column(JSON, nullable=True),
        description="Attachment metadata {url, name, type}",
    )
    is_edited: bool = Field(
        default=False,
        sa_column=Column(Boolean, nullable=False, default=False, server_default=false()),
    )
    created_at: datetime = Field(
        default_factory=utc_now,
        sa_column=Column(DateTime, nullable=False, index=True, default=utc_now),
        description="Assigned on insert; source of truth for display order",
    )


class DepartmentSequence(TableModel, table=True):
    """Last series number handed out per department."""

    __tablename__ = "department_sequences"

    group_type: str = Field(sa_column=Column(String(16), primary_key=True))
    last_value: int = Field(
        default=0,
        sa_column=Column(Integer, nullable=False, default=0),
    )
