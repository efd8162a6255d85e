"""
Engineer endpoints: registration, department listing and group stats.
"""

import logging
from typing import List

from fastapi import APIRouter, Depends
from sqlalchemy.ext.asyncio import AsyncSession

from api.schemas.engineer import EngineerCreate, EngineerCreateResponse, EngineerRead
from api.schemas.stats import GroupStats
from api.services.engineer_service import EngineerService
from api.services.presence_service import PresenceService
from api.services.stats_service import StatsService
from core.database import get_session
from core.dependencies import get_presence_service

logger = logging.getLogger(__name__)

router = APIRouter()


@router.post("/engineers/add", response_model=EngineerCreateResponse)
async def add_engineer(
    engineer_data: EngineerCreate,
    db: AsyncSession = Depends(get_session),
    presence: PresenceService = Depends(get_presence_service),
):
    """
    Register an engineer. The series id is allocated server-side.

    Dashboards receive refreshed `update_group_stats`.
    """
    engineer = await EngineerService.register_engineer(db, engineer_data)
    await presence.broadcast_stats(db)
    return EngineerCreateResponse(engineer=EngineerRead.model_validate(engineer))


@router.get("/engineers/stats", response_model=GroupStats)
async def get_group_stats(db: AsyncSession = Depends(get_session)):
    """Total and online engineers per department."""
    return await StatsService.get_group_stats(db)


@router.get("/engineers/{group_type}", response_model=List[EngineerRead])
async def list_engineers(group_type: str, db: AsyncSession = Depends(get_session)):
    engineers = await EngineerService.list_by_department(db, group_type)
    return [EngineerRead.model_validate(engineer) for engineer in engineers]
