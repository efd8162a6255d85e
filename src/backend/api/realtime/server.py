"""
Socket.IO server instance shared by the gateway and the broadcaster.
"""

import socketio

from core.config import settings


def _allowed_origins():
    origins = settings.cors.origins
    return "*" if "*" in origins else origins


sio = socketio.AsyncServer(
    async_mode="asgi",
    cors_allowed_origins=_allowed_origins(),
    ping_interval=settings.realtime.ping_interval,
    ping_timeout=settings.realtime.ping_timeout,
    logger=False,
    engineio_logger=False,
)
