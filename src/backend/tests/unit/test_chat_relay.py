"""
Unit tests for the chat relay.

Tests cover:
- Persist first, broadcast second; broadcast carries the stored row
- One copy per connection across conversation room and observers
- Persistence failure prevents the broadcast
- Edit/delete notifications go to the conversation room
"""

import pytest
from sqlalchemy.exc import OperationalError

from api.schemas.chat_message import ChatMessageCreate
from core.exceptions import EditWindowExpired, PersistenceFailure, ValidationFailure
from crud.chat_crud import ChatMessageCRUD
from tests.factories import ChatMessageFactory, persist


def _payload(engineer_db_id: int, **overrides) -> ChatMessageCreate:
    data = {
        "engineer_db_id": engineer_db_id,
        "sender": "Omar",
        "sender_type": "engineer",
        "message_text": "hello",
        "file_info": None,
    }
    data.update(overrides)
    return ChatMessageCreate.model_validate(data)


@pytest.mark.asyncio
class TestSendMessage:
    async def test_persists_then_broadcasts_to_room_and_observers(
        self, db_session, chat_relay, broadcaster, sample_engineer
    ):
        payload = await chat_relay.send_message(db_session, _payload(sample_engineer.id))

        stored = await ChatMessageCRUD.find_by_engineer(db_session, sample_engineer.id)
        assert len(stored) == 1
        assert payload["id"] == stored[0].id

        assert len(broadcaster.events) == 1
        target, event, data = broadcaster.events[0]
        assert event == "receive_message"
        assert target == ("rooms", (str(sample_engineer.id), "observers"))
        assert data == payload
        assert data["engineer_db_id"] == sample_engineer.id
        assert data["sender_type"] == "engineer"
        assert data["message_text"] == "hello"
        assert data["file_info"] is None
        assert data["created_at"].endswith("Z")

    async def test_file_info_is_delivered_as_object(
        self, db_session, chat_relay, broadcaster, sample_engineer
    ):
        file_info = {"url": "http://localhost:5000/uploads/17.pdf", "name": "r.pdf", "type": None}
        await chat_relay.send_message(
            db_session, _payload(sample_engineer.id, message_text=None, file_info=file_info)
        )

        data = broadcaster.events[0][2]
        assert data["file_info"] == file_info

    async def test_each_connection_gets_one_copy(
        self, db_session, chat_relay, broadcaster, sample_engineer
    ):
        await chat_relay.join_room("engineer-sid", sample_engineer.id)
        await chat_relay.join_room("admin-sid", sample_engineer.id)
        await chat_relay.join_observers("admin-sid")
        await chat_relay.join_observers("dashboard-sid")

        await chat_relay.send_message(db_session, _payload(sample_engineer.id))

        target = broadcaster.named("receive_message")[0][0]
        assert broadcaster.recipients(target) == ["admin-sid", "dashboard-sid", "engineer-sid"]

    async def test_other_conversations_do_not_receive(
        self, db_session, chat_relay, broadcaster, sample_engineer
    ):
        await chat_relay.join_room("other-engineer", sample_engineer.id + 100)

        await chat_relay.send_message(db_session, _payload(sample_engineer.id))

        target = broadcaster.named("receive_message")[0][0]
        assert "other-engineer" not in broadcaster.recipients(target)

    async def test_join_room_is_idempotent(self, chat_relay, broadcaster):
        await chat_relay.join_room("sid-1", 5)
        await chat_relay.join_room("sid-1", 5)
        assert broadcaster.rooms["5"] == {"sid-1"}

    async def test_persistence_failure_prevents_broadcast(
        self, db_session, chat_relay, broadcaster, sample_engineer, monkeypatch
    ):
        async def failing_create(*args, **kwargs):
            raise OperationalError("INSERT INTO chat_messages", {}, Exception("disk full"))

        monkeypatch.setattr(ChatMessageCRUD, "create_message", failing_create)

        with pytest.raises(PersistenceFailure):
            await chat_relay.send_message(db_session, _payload(sample_engineer.id))

        assert broadcaster.events == []

    async def test_empty_message_is_not_broadcast(
        self, db_session, chat_relay, broadcaster, sample_engineer
    ):
        with pytest.raises(ValidationFailure):
            await chat_relay.send_message(db_session, _payload(sample_engineer.id, message_text=""))

        assert broadcaster.events == []


@pytest.mark.asyncio
class TestEditAndDelete:
    async def test_edit_notifies_room(self, db_session, chat_relay, broadcaster, sample_engineer):
        message = ChatMessageFactory.create(sample_engineer, minutes_ago=2)
        await persist(db_session, message)

        await chat_relay.edit_message(db_session, message.id, "fixed typo")

        assert broadcaster.events == [
            (
                ("room", str(sample_engineer.id)),
                "message_edited",
                {
                    "message_id": message.id,
                    "new_text": "fixed typo",
                    "engineer_db_id": sample_engineer.id,
                    "is_edited": True,
                },
            )
        ]

    async def test_expired_edit_is_not_broadcast(
        self, db_session, chat_relay, broadcaster, sample_engineer
    ):
        message = ChatMessageFactory.create(sample_engineer, minutes_ago=6)
        await persist(db_session, message)

        with pytest.raises(EditWindowExpired):
            await chat_relay.edit_message(db_session, message.id, "late")

        assert broadcaster.events == []

    async def test_delete_notifies_room(self, db_session, chat_relay, broadcaster, sample_engineer):
        message = ChatMessageFactory.create(sample_engineer)
        await persist(db_session, message)
        message_id = message.id

        await chat_relay.delete_message(db_session, message_id)

        assert broadcaster.events == [
            (("room", str(sample_engineer.id)), "message_deleted", {"message_id": message_id})
        ]
