"""
API routes, mounted under settings.api.api_prefix.
"""

from fastapi import APIRouter

from .endpoints import auth, chat, engineers, files

api_router = APIRouter()

api_router.include_router(engineers.router, tags=["engineers"])
api_router.include_router(auth.router, tags=["auth"])
api_router.include_router(chat.router, tags=["chat"])
api_router.include_router(files.router, tags=["files"])

__all__ = ["api_router"]
