"""
Socket.IO live channel.
"""

from .gateway import RealtimeGateway, parse_engineer_id, register_handlers
from .server import sio

__all__ = ["RealtimeGateway", "parse_engineer_id", "register_handlers", "sio"]
