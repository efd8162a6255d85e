"""
Database models and enums.
"""
from .models import (
    ChatMessage,
    Department,
    DepartmentSequence,
    Engineer,
    PresenceStatus,
    SenderType,
    TableModel,
    utc_now,
)

__all__ = [
    "ChatMessage",
    "Department",
    "DepartmentSequence",
    "Engineer",
    "PresenceStatus",
    "SenderType",
    "TableModel",
    "utc_now",
]
