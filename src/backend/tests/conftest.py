"""
Pytest configuration and fixtures for testing.

Provides:
- Database fixtures (in-memory SQLite via aiosqlite, fresh schema per test)
- FakeBroadcaster recording live events instead of emitting them
- Presence/relay/gateway wired to the fake broadcaster
- httpx client over the FastAPI app with dependencies overridden

Usage:
    pytest src/backend/tests -v
"""

import os
import tempfile

# Settings are read at import time; point them at throwaway resources first
os.environ.setdefault("DATABASE_URL", "sqlite+aiosqlite:///:memory:")
os.environ.setdefault("UPLOAD_UPLOAD_DIR", tempfile.mkdtemp(prefix="crm-uploads-"))
os.environ.setdefault("RATE_LIMIT_ENABLED", "false")
os.environ.setdefault("LOG_ENABLE_FILE_LOGGING", "false")

from contextlib import asynccontextmanager  # noqa: E402
from typing import Any, AsyncGenerator, Dict, List, Set, Tuple  # noqa: E402

import pytest  # noqa: E402
import pytest_asyncio  # noqa: E402
from httpx import ASGITransport, AsyncClient  # noqa: E402
from sqlalchemy.ext.asyncio import (  # noqa: E402
    AsyncSession,
    async_sessionmaker,
    create_async_engine,
)
from sqlalchemy.pool import StaticPool  # noqa: E402
from sqlmodel import SQLModel  # noqa: E402

import db.models  # noqa: E402,F401
from api.realtime.gateway import RealtimeGateway  # noqa: E402
from api.services.broadcaster import conversation_room  # noqa: E402
from api.services.chat_relay import ChatRelay  # noqa: E402
from api.services.presence_service import PresenceService  # noqa: E402
from api.services.presence_tracker import PresenceTracker  # noqa: E402
from core.database import get_session  # noqa: E402
from core.dependencies import get_chat_relay, get_presence_service  # noqa: E402


# ============================================================================
# Database Fixtures
# ============================================================================

@pytest_asyncio.fixture
async def test_engine():
    """In-memory SQLite engine; StaticPool keeps the single connection alive."""
    engine = create_async_engine(
        "sqlite+aiosqlite://",
        poolclass=StaticPool,
        connect_args={"check_same_thread": False},
        echo=False,
    )
    async with engine.begin() as conn:
        await conn.run_sync(SQLModel.metadata.create_all)

    yield engine

    await engine.dispose()


@pytest_asyncio.fixture
async def db_session(test_engine) -> AsyncGenerator[AsyncSession, None]:
    """Fresh session per test, configured like the application's session factory."""
    session_maker = async_sessionmaker(
        test_engine,
        class_=AsyncSession,
        expire_on_commit=False,
        autoflush=False,
    )
    async with session_maker() as session:
        yield session


@pytest.fixture
def session_factory(db_session):
    """Stand-in for core.database.session_scope bound to the test session."""

    @asynccontextmanager
    async def factory():
        yield db_session

    return factory


# ============================================================================
# Live channel fakes
# ============================================================================

class FakeBroadcaster:
    """
    Records emitted events as (target, event, data) tuples.

    Targets: "everyone", ("room", name), ("rooms", (name, ...)), ("sid", sid).
    Room joins are tracked so tests can resolve which connections receive an event.
    """

    def __init__(self, observers_room: str = "observers"):
        self.observers_room = observers_room
        self.events: List[Tuple[Any, str, Any]] = []
        self.rooms: Dict[str, Set[str]] = {}

    async def to_everyone(self, event: str, data: Any) -> None:
        self.events.append(("everyone", event, data))

    async def to_conversation(self, engineer_db_id: int, event: str, data: Any) -> None:
        self.events.append((("room", conversation_room(engineer_db_id)), event, data))

    async def to_conversation_and_observers(
        self, engineer_db_id: int, event: str, data: Any
    ) -> None:
        rooms = (conversation_room(engineer_db_id), self.observers_room)
        self.events.append((("rooms", rooms), event, data))

    async def to_connection(self, sid: str, event: str, data: Any) -> None:
        self.events.append((("sid", sid), event, data))

    async def join_conversation(self, sid: str, engineer_db_id: int) -> None:
        self.rooms.setdefault(conversation_room(engineer_db_id), set()).add(sid)

    async def join_observers(self, sid: str) -> None:
        self.rooms.setdefault(self.observers_room, set()).add(sid)

    def named(self, event: str) -> List[Tuple[Any, str, Any]]:
        return [entry for entry in self.events if entry[1] == event]

    def event_names(self) -> List[str]:
        return [entry[1] for entry in self.events]

    def recipients(self, target: Any) -> List[str]:
        """Connections reached by a target, one entry per delivered copy."""
        kind, value = target
        if kind == "room":
            return sorted(self.rooms.get(value, set()))
        if kind == "rooms":
            union: Set[str] = set()
            for room in value:
                union |= self.rooms.get(room, set())
            return sorted(union)
        if kind == "sid":
            return [value]
        raise ValueError(f"Unsupported target {target!r}")


@pytest.fixture
def broadcaster() -> FakeBroadcaster:
    return FakeBroadcaster()


@pytest.fixture
def tracker() -> PresenceTracker:
    return PresenceTracker()


@pytest.fixture
def presence_service(tracker, broadcaster) -> PresenceService:
    return PresenceService(tracker, broadcaster)


@pytest.fixture
def chat_relay(broadcaster) -> ChatRelay:
    return ChatRelay(broadcaster)


@pytest.fixture
def gateway(presence_service, chat_relay, session_factory) -> RealtimeGateway:
    return RealtimeGateway(presence_service, chat_relay, session_factory=session_factory)


# ============================================================================
# HTTP client
# ============================================================================

@pytest_asyncio.fixture
async def client(db_session, presence_service, chat_relay) -> AsyncGenerator[AsyncClient, None]:
    """
    httpx client over the FastAPI app.

    ASGITransport does not run the lifespan, so no scheduler or logging setup happens.
    """
    from app.factory import create_app

    app = create_app()

    async def override_get_session():
        yield db_session

    app.dependency_overrides[get_session] = override_get_session
    app.dependency_overrides[get_presence_service] = lambda: presence_service
    app.dependency_overrides[get_chat_relay] = lambda: chat_relay

    async with AsyncClient(transport=ASGITransport(app=app), base_url="http://test") as ac:
        yield ac

    app.dependency_overrides.clear()


# ============================================================================
# Sample data
# ============================================================================

@pytest_asyncio.fixture
async def sample_engineer(db_session: AsyncSession):
    """One LAN engineer, Offline."""
    from tests.factories import EngineerFactory, persist

    engineer = EngineerFactory.create(department="lan", sequence=1)
    await persist(db_session, engineer)
    return engineer

