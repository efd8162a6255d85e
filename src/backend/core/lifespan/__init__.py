"""Startup/shutdown hooks for the CRM backend."""

from .manager import lifespan

__all__ = ["lifespan"]
