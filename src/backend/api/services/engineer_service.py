"""
Engineer service: registration, department listing and login/logout.
"""

import logging
from typing import List

from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession

from api.schemas.engineer import EngineerCreate, LoginRequest
from core.decorators import (
    critical_database_operation,
    log_database_operation,
    transactional_database_operation,
)
from core.exceptions import AuthFailure, NotFound, ValidationFailure
from crud.engineer_crud import EngineerCRUD
from db import Department, Engineer

logger = logging.getLogger(__name__)


class EngineerService:
    """Service for engineer management."""

    @staticmethod
    @transactional_database_operation("register engineer")
    @log_database_operation("engineer registration", level="info")
    async def register_engineer(db: AsyncSession, data: EngineerCreate) -> Engineer:
        """
        Create an engineer with the next series id of their department.

        Raises:
            ValidationFailure: Email already registered
        """
        if await EngineerCRUD.email_exists(db, data.email):
            raise ValidationFailure("An engineer with this email already exists")

        try:
            engineer = await EngineerCRUD.create_engineer(
                db,
                name=data.name,
                department=data.group_type,
                email=data.email,
                password=data.password,
                phone=data.phone,
            )
        except IntegrityError as e:
            # A concurrent add with the same email won the unique index
            if "email" not in str(e.orig).lower():
                raise
            raise ValidationFailure("An engineer with this email already exists") from e
        logger.info(f"Registered engineer {engineer.engineer_id} ({engineer.name})")
        return engineer

    @staticmethod
    @critical_database_operation("list engineers by department")
    async def list_by_department(db: AsyncSession, group_type: str) -> List[Engineer]:
        """
        Raises:
            NotFound: Unknown department tag
        """
        try:
            department = Department.parse(group_type)
        except ValueError as e:
            raise NotFound(str(e)) from e
        return await EngineerCRUD.find_by_department(db, department)

    @staticmethod
    @critical_database_operation("engineer login")
    async def authenticate(db: AsyncSession, credentials: LoginRequest) -> Engineer:
        """
        Raises:
            AuthFailure: No engineer with these credentials
        """
        engineer = await EngineerCRUD.find_by_credentials(
            db, credentials.email.strip(), credentials.password
        )
        if engineer is None:
            logger.info(f"Failed login attempt for {credentials.email}")
            raise AuthFailure()
        return engineer
