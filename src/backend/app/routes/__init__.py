"""Routes served outside the /api prefix (service info, health)."""

from .health import router as health_router
from .root import router as root_router

__all__ = ["health_router", "root_router"]
