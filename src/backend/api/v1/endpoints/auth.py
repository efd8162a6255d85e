"""
Engineer login/logout.

Login and logout flip the persisted presence status and broadcast the change,
independently of any live sessions the engineer has open.
"""

import logging

from fastapi import APIRouter, Depends, Request
from sqlalchemy.ext.asyncio import AsyncSession

from api.schemas.engineer import LoginRequest, LoginResponse, LogoutRequest, SuccessResponse
from api.services.engineer_service import EngineerService
from api.services.presence_service import PresenceService
from core.database import get_session
from core.dependencies import get_presence_service
from core.rate_limit import LOGIN_LIMIT, limiter
from db import PresenceStatus

logger = logging.getLogger(__name__)

router = APIRouter()


@router.post("/engineer/login", response_model=LoginResponse)
@limiter.limit(LOGIN_LIMIT)
async def login(
    request: Request,  # Must be first param for rate limiter
    credentials: LoginRequest,
    db: AsyncSession = Depends(get_session),
    presence: PresenceService = Depends(get_presence_service),
):
    engineer = await EngineerService.authenticate(db, credentials)
    await presence.set_status(db, engineer.id, PresenceStatus.ONLINE, source="login")
    logger.info(f"Engineer {engineer.engineer_id} logged in")
    return LoginResponse(
        id=engineer.id,
        name=engineer.name,
        engineer_id=engineer.engineer_id,
        email=engineer.email,
        group_type=engineer.group_type,
    )


@router.post("/engineer/logout", response_model=SuccessResponse)
async def logout(
    logout_data: LogoutRequest,
    db: AsyncSession = Depends(get_session),
    presence: PresenceService = Depends(get_presence_service),
):
    await presence.set_status(db, logout_data.engineer_id, PresenceStatus.OFFLINE, source="logout")
    return SuccessResponse()
