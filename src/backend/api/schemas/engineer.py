"""
Engineer schemas for API validation and serialization.
"""

from typing import Optional

from pydantic import EmailStr, Field, field_validator

from core.schema_base import HTTPSchemaModel
from db import Department


class EngineerCreate(HTTPSchemaModel):
    """Body of POST /engineers/add."""

    name: str = Field(..., min_length=1, max_length=150)
    group_type: Department
    email: EmailStr
    password: str = Field(..., min_length=1, max_length=255)
    phone: Optional[str] = Field(None, max_length=32)

    @field_validator("group_type", mode="before")
    @classmethod
    def parse_group_type(cls, v):
        return Department.parse(v)

    @field_validator("name", mode="before")
    @classmethod
    def strip_name(cls, v):
        return v.strip() if isinstance(v, str) else v


class EngineerRead(HTTPSchemaModel):
    """Engineer row as listed on the dashboard. The credential is never returned."""

    id: int
    name: str
    engineer_id: str
    group_type: str
    email: str
    phone: Optional[str] = None
    status: str


class EngineerCreateResponse(HTTPSchemaModel):
    success: bool = True
    engineer: EngineerRead


class LoginRequest(HTTPSchemaModel):
    email: str = Field(..., min_length=1)
    password: str = Field(..., min_length=1)


class LoginResponse(HTTPSchemaModel):
    """Flat login payload; the engineer portal stores it as-is."""

    success: bool = True
    id: int
    name: str
    engineer_id: str
    email: str
    group_type: str


class LogoutRequest(HTTPSchemaModel):
    engineer_id: int = Field(..., description="Engineer database id")


class SuccessResponse(HTTPSchemaModel):
    success: bool = True


class StatusChangedEvent(HTTPSchemaModel):
    """Payload of the `status_changed` live event."""

    id: int
    status: str
