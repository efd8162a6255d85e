"""
Unit tests for presence orchestration.

Tests cover:
- register marks Online, then broadcasts stats and status_changed
- unknown engineer or failed status write leaves the registry as it was
- Offline only when the last session of an engineer closes
- login/logout style status updates
"""

import pytest
from sqlalchemy.exc import OperationalError

from core.exceptions import NotFound, PersistenceFailure
from crud.engineer_crud import EngineerCRUD
from db import PresenceStatus
from tests.factories import EngineerFactory, persist


async def _status(db_session, engineer_id: int) -> str:
    engineer = await EngineerCRUD.find_by_id(db_session, engineer_id)
    await db_session.refresh(engineer)
    return engineer.status


@pytest.mark.asyncio
class TestEngineerConnected:
    async def test_marks_online_and_broadcasts(
        self, db_session, presence_service, broadcaster, sample_engineer
    ):
        count = await presence_service.engineer_connected(db_session, "sid-1", sample_engineer.id)

        assert count == 1
        assert await _status(db_session, sample_engineer.id) == "Online"
        assert broadcaster.event_names() == ["update_group_stats", "status_changed"]

        target, _, stats = broadcaster.events[0]
        assert target == "everyone"
        assert stats["lan"] == {"total": 1, "online": 1}

        target, _, change = broadcaster.events[1]
        assert target == "everyone"
        assert change == {"id": sample_engineer.id, "status": "Online"}

    async def test_unknown_engineer_leaves_no_mapping(
        self, db_session, presence_service, tracker, broadcaster
    ):
        with pytest.raises(NotFound):
            await presence_service.engineer_connected(db_session, "sid-1", 9999)

        assert tracker.engineer_for("sid-1") is None
        assert broadcaster.events == []

    async def test_moving_last_session_takes_previous_engineer_offline(
        self, db_session, presence_service, broadcaster
    ):
        first = EngineerFactory.create(department="ups")
        second = EngineerFactory.create(department="ups")
        await persist(db_session, first, second)

        await presence_service.engineer_connected(db_session, "shared", first.id)
        await presence_service.engineer_connected(db_session, "shared", second.id)

        assert await _status(db_session, first.id) == "Offline"
        assert await _status(db_session, second.id) == "Online"
        changes = [data for _, _, data in broadcaster.named("status_changed")]
        assert {"id": first.id, "status": "Offline"} in changes

    async def test_failed_reregister_on_same_session_keeps_mapping(
        self, db_session, presence_service, tracker, broadcaster, sample_engineer, monkeypatch
    ):
        engineer_id = sample_engineer.id
        await presence_service.engineer_connected(db_session, "sid-1", engineer_id)
        broadcaster.events.clear()

        async def failing_set_status(*args, **kwargs):
            raise OperationalError("UPDATE engineers", {}, Exception("connection lost"))

        monkeypatch.setattr(EngineerCRUD, "set_status", failing_set_status)

        with pytest.raises(PersistenceFailure):
            await presence_service.engineer_connected(db_session, "sid-1", engineer_id)

        assert tracker.engineer_for("sid-1") == engineer_id
        assert tracker.session_count(engineer_id) == 1
        assert broadcaster.events == []

    async def test_failed_move_restores_previous_engineer(
        self, db_session, presence_service, tracker, monkeypatch
    ):
        first = EngineerFactory.create(department="ups")
        second = EngineerFactory.create(department="ups")
        await persist(db_session, first, second)
        first_id, second_id = first.id, second.id
        await presence_service.engineer_connected(db_session, "shared", first_id)

        async def failing_set_status(*args, **kwargs):
            raise OperationalError("UPDATE engineers", {}, Exception("connection lost"))

        monkeypatch.setattr(EngineerCRUD, "set_status", failing_set_status)

        with pytest.raises(PersistenceFailure):
            await presence_service.engineer_connected(db_session, "shared", second_id)

        assert tracker.engineer_for("shared") == first_id
        assert tracker.session_count(second_id) == 0


@pytest.mark.asyncio
class TestEngineerDisconnected:
    async def test_sole_session_goes_offline(
        self, db_session, presence_service, broadcaster, sample_engineer
    ):
        await presence_service.engineer_connected(db_session, "sid-1", sample_engineer.id)
        broadcaster.events.clear()

        engineer_id = await presence_service.engineer_disconnected(db_session, "sid-1")

        assert engineer_id == sample_engineer.id
        assert await _status(db_session, sample_engineer.id) == "Offline"
        assert broadcaster.event_names() == ["update_group_stats", "status_changed"]
        assert broadcaster.events[0][2]["lan"] == {"total": 1, "online": 0}
        assert broadcaster.events[1][2] == {"id": sample_engineer.id, "status": "Offline"}

    async def test_stays_online_while_another_session_is_open(
        self, db_session, presence_service, tracker, broadcaster, sample_engineer
    ):
        await presence_service.engineer_connected(db_session, "phone", sample_engineer.id)
        await presence_service.engineer_connected(db_session, "laptop", sample_engineer.id)
        broadcaster.events.clear()

        await presence_service.engineer_disconnected(db_session, "phone")

        assert tracker.session_count(sample_engineer.id) == 1
        assert await _status(db_session, sample_engineer.id) == "Online"
        assert broadcaster.events == []

        await presence_service.engineer_disconnected(db_session, "laptop")

        assert await _status(db_session, sample_engineer.id) == "Offline"
        assert broadcaster.named("status_changed")[-1][2]["status"] == "Offline"

    async def test_unregistered_connection_is_ignored(self, db_session, presence_service, broadcaster):
        assert await presence_service.engineer_disconnected(db_session, "anonymous") is None
        assert broadcaster.events == []


@pytest.mark.asyncio
class TestSetStatus:
    async def test_set_status_persists_and_broadcasts(
        self, db_session, presence_service, broadcaster, sample_engineer
    ):
        await presence_service.set_status(db_session, sample_engineer.id, PresenceStatus.ONLINE)

        assert await _status(db_session, sample_engineer.id) == "Online"
        assert broadcaster.event_names() == ["update_group_stats", "status_changed"]

    async def test_unknown_engineer(self, db_session, presence_service, broadcaster):
        with pytest.raises(NotFound):
            await presence_service.set_status(db_session, 424242, PresenceStatus.OFFLINE)
        assert broadcaster.events == []

    async def test_broadcast_stats(self, db_session, presence_service, broadcaster, sample_engineer):
        await presence_service.broadcast_stats(db_session)

        assert broadcaster.events == [
            (
                "everyone",
                "update_group_stats",
                {
                    "ups": {"total": 0, "online": 0},
                    "lan": {"total": 1, "online": 0},
                    "cctv": {"total": 0, "online": 0},
                },
            )
        ]
