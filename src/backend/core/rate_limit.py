"""
Shared slowapi limiter.

Endpoints decorated with limiter.limit() must take `request: Request`.
"""

from slowapi import Limiter
from slowapi.util import get_remote_address

from core.config import settings

limiter = Limiter(key_func=get_remote_address, enabled=settings.rate_limit.enabled)

LOGIN_LIMIT = f"{settings.rate_limit.login_per_minute}/minute"
UPLOAD_LIMIT = f"{settings.rate_limit.upload_per_minute}/minute"
