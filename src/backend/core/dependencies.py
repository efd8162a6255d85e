"""
Process-wide live channel components and their FastAPI dependencies.

The tracker, broadcaster, presence service and chat relay are created once
per process and shared by HTTP endpoints and Socket.IO handlers. Tests swap
them through app.dependency_overrides.
"""

from functools import lru_cache

from api.realtime.gateway import RealtimeGateway
from api.realtime.server import sio
from api.services.broadcaster import Broadcaster
from api.services.chat_relay import ChatRelay
from api.services.presence_service import PresenceService
from api.services.presence_tracker import PresenceTracker


@lru_cache
def get_broadcaster() -> Broadcaster:
    return Broadcaster(sio)


@lru_cache
def get_presence_tracker() -> PresenceTracker:
    return PresenceTracker()


@lru_cache
def get_presence_service() -> PresenceService:
    return PresenceService(get_presence_tracker(), get_broadcaster())


@lru_cache
def get_chat_relay() -> ChatRelay:
    return ChatRelay(get_broadcaster())


@lru_cache
def get_gateway() -> RealtimeGateway:
    return RealtimeGateway(get_presence_service(), get_chat_relay())
