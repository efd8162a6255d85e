"""
Application factory for FastAPI.

create_app() builds the HTTP application; create_asgi_app() wraps it with the
Socket.IO ASGI app so both share one server and one port.
"""

import logging
from pathlib import Path

import socketio
from fastapi import FastAPI, Request, status
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from fastapi.staticfiles import StaticFiles
from slowapi import _rate_limit_exceeded_handler
from slowapi.errors import RateLimitExceeded
from sqlalchemy.exc import SQLAlchemyError

from api.realtime import register_handlers, sio
from api.services.file_service import UPLOAD_URL_PATH, ensure_upload_dir
from api.v1 import api_router
from app.routes import health_router, root_router
from core.config import settings
from core.dependencies import get_gateway
from core.exceptions import CRMError, PersistenceFailure
from core.lifespan import lifespan
from core.rate_limit import limiter

logger = logging.getLogger(__name__)


async def crm_error_handler(request: Request, exc: CRMError) -> JSONResponse:
    if isinstance(exc, PersistenceFailure):
        logger.error(f"{request.method} {request.url.path} failed: {exc.message}")
    return JSONResponse(status_code=exc.status_code, content=exc.to_dict())


async def database_error_handler(request: Request, exc: SQLAlchemyError) -> JSONResponse:
    # Errors that escaped the service decorators, e.g. the commit in get_session
    logger.error(f"{request.method} {request.url.path} database error: {exc}", exc_info=exc)
    return JSONResponse(
        status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
        content=PersistenceFailure().to_dict(),
    )


def create_app() -> FastAPI:
    """
    Application factory function.

    Creates and configures the FastAPI application with middleware, error
    handlers, routes and the /uploads static mount.

    Returns:
        FastAPI: Configured FastAPI application instance
    """
    app = FastAPI(
        title=settings.api.app_name,
        version=settings.api.app_version,
        description="Field engineer support CRM: presence, chat relay and group stats",
        lifespan=lifespan,
        docs_url=f"{settings.api.api_prefix}/docs",
        redoc_url=f"{settings.api.api_prefix}/redoc",
        openapi_url=f"{settings.api.api_prefix}/openapi.json",
    )

    # Add rate limiter
    app.state.limiter = limiter
    app.add_exception_handler(RateLimitExceeded, _rate_limit_exceeded_handler)

    app.add_exception_handler(CRMError, crm_error_handler)
    app.add_exception_handler(SQLAlchemyError, database_error_handler)

    # CORS middleware
    app.add_middleware(
        CORSMiddleware,
        allow_origins=settings.cors.origins,
        allow_credentials="*" not in settings.cors.origins,
        allow_methods=["GET", "POST", "PUT", "DELETE", "OPTIONS"],
        allow_headers=["Content-Type", "Authorization", "Accept", "Origin", "X-Requested-With"],
    )

    # Include routers
    app.include_router(root_router)
    app.include_router(health_router)
    app.include_router(api_router, prefix=settings.api.api_prefix)

    # Attachments written by the upload endpoint
    upload_path: Path = ensure_upload_dir()
    app.mount(UPLOAD_URL_PATH, StaticFiles(directory=str(upload_path)), name="uploads")

    return app


def create_asgi_app(fastapi_app: FastAPI = None) -> socketio.ASGIApp:
    """Serve Socket.IO at settings.realtime.socketio_path, everything else via FastAPI."""
    fastapi_app = fastapi_app or create_app()
    register_handlers(sio, get_gateway())
    return socketio.ASGIApp(
        sio,
        other_asgi_app=fastapi_app,
        socketio_path=settings.realtime.socketio_path,
    )
