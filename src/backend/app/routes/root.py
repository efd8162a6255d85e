"""
Root endpoint handler.
"""

from fastapi import APIRouter

from core.config import settings

router = APIRouter()


@router.get("/")
async def root():
    """Service info."""
    return {
        "name": settings.api.app_name,
        "version": settings.api.app_version,
        "status": "operational",
        "api_prefix": settings.api.api_prefix,
        "socketio_path": f"/{settings.realtime.socketio_path.strip('/')}",
    }
