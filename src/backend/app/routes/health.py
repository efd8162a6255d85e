"""
Health check endpoint handler.
"""

from fastapi import APIRouter, status
from fastapi.responses import JSONResponse

from core.database import ping_database

router = APIRouter()


@router.get("/health")
async def health_check():
    """
    Health check endpoint for monitoring.
    Probes the database with a trivial query.
    """
    database_ok = await ping_database()
    health_status = {
        "status": "healthy" if database_ok else "unhealthy",
        "services": {"database": {"status": "healthy" if database_ok else "unhealthy"}},
    }
    if not database_ok:
        return JSONResponse(status_code=status.HTTP_503_SERVICE_UNAVAILABLE, content=health_status)
    return health_status
