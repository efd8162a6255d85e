"""
Application factory and configuration.

This package provides the app factory functions for creating the FastAPI
application and the combined FastAPI + Socket.IO ASGI app.
"""

from .factory import create_app, create_asgi_app

__all__ = ["create_app", "create_asgi_app"]
