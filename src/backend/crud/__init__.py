"""
CRUD repositories for database access.

Repositories are classmethod-only; they flush but leave commits to the
service layer unless told otherwise.
"""
from crud.base_repository import BaseCRUD
from crud.chat_crud import ChatMessageCRUD
from crud.engineer_crud import EngineerCRUD, format_series_id, parse_series_number

__all__ = [
    "BaseCRUD",
    "ChatMessageCRUD",
    "EngineerCRUD",
    "format_series_id",
    "parse_series_number",
]
