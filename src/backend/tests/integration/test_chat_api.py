"""
Integration tests for chat endpoints.

Tests:
- History returns what was sent over the live channel
- Edit/delete inside and outside the 5-minute window
"""

import pytest

from tests.factories import ChatMessageFactory, persist


@pytest.mark.asyncio
class TestChatHistory:
    async def test_round_trip_from_live_channel(self, client, gateway, sample_engineer):
        file_info = {"url": "http://localhost:5000/uploads/1.png", "name": "site.png", "type": "image/png"}
        ack = await gateway.send_message(
            "sid-1",
            {
                "engineer_db_id": sample_engineer.id,
                "sender": sample_engineer.name,
                "sender_type": "engineer",
                "message_text": "hello",
                "file_info": file_info,
            },
        )

        response = await client.get(f"/api/chat/{sample_engineer.id}")

        assert response.status_code == 200
        rows = response.json()
        assert len(rows) == 1
        assert rows[0]["id"] == ack["message"]["id"]
        assert rows[0]["created_at"] == ack["message"]["created_at"]
        assert rows[0]["message_text"] == "hello"
        assert rows[0]["file_info"] == file_info
        assert rows[0]["sender_type"] == "engineer"
        assert rows[0]["is_edited"] is False

    async def test_special_characters_round_trip(self, client, gateway, broadcaster, sample_engineer):
        text = "UPS 3 < 5 amps & fuse R&D > rated"
        ack = await gateway.send_message(
            "sid-1",
            {
                "engineer_db_id": sample_engineer.id,
                "sender": "Admin",
                "sender_type": "admin",
                "message_text": text,
            },
        )

        assert ack["success"] is True
        assert ack["message"]["message_text"] == text
        assert broadcaster.named("receive_message")[0][2]["message_text"] == text

        rows = (await client.get(f"/api/chat/{sample_engineer.id}")).json()
        assert rows[0]["message_text"] == text

    async def test_history_order(self, client, db_session, sample_engineer):
        await persist(
            db_session,
            ChatMessageFactory.create(sample_engineer, message_text="b", minutes_ago=1),
            ChatMessageFactory.create(sample_engineer, message_text="a", minutes_ago=2),
        )

        response = await client.get(f"/api/chat/{sample_engineer.id}")

        assert [row["message_text"] for row in response.json()] == ["a", "b"]


@pytest.mark.asyncio
class TestEditDelete:
    async def test_edit_recent_message(self, client, db_session, broadcaster, sample_engineer):
        message = ChatMessageFactory.create(sample_engineer, minutes_ago=4)
        await persist(db_session, message)

        response = await client.put(
            "/api/chat/edit",
            json={
                "message_id": message.id,
                "new_text": "corrected",
                "engineer_db_id": sample_engineer.id,
            },
        )

        assert response.status_code == 200
        assert response.json() == {"success": True}
        assert broadcaster.named("message_edited")[0][2]["new_text"] == "corrected"

        rows = (await client.get(f"/api/chat/{sample_engineer.id}")).json()
        assert rows[0]["message_text"] == "corrected"
        assert rows[0]["is_edited"] is True

    async def test_edit_old_message(self, client, db_session, broadcaster, sample_engineer):
        message = ChatMessageFactory.create(sample_engineer, minutes_ago=6)
        await persist(db_session, message)

        response = await client.put(
            "/api/chat/edit",
            json={"message_id": message.id, "new_text": "late", "engineer_db_id": sample_engineer.id},
        )

        assert response.status_code == 403
        assert response.json()["message"].startswith("Edit time expired")
        assert broadcaster.events == []

    async def test_edit_unknown_message(self, client):
        response = await client.put("/api/chat/edit", json={"message_id": 404, "new_text": "x"})
        assert response.status_code == 404

    async def test_delete_recent_message(self, client, db_session, broadcaster, sample_engineer):
        message = ChatMessageFactory.create(sample_engineer, minutes_ago=1)
        await persist(db_session, message)

        response = await client.delete(f"/api/chat/delete/{message.id}")

        assert response.status_code == 200
        assert response.json() == {"success": True}
        assert broadcaster.named("message_deleted")[0][2] == {"message_id": message.id}
        assert (await client.get(f"/api/chat/{sample_engineer.id}")).json() == []

    async def test_delete_old_message(self, client, db_session, sample_engineer):
        message = ChatMessageFactory.create(sample_engineer, minutes_ago=30)
        await persist(db_session, message)

        response = await client.delete(f"/api/chat/delete/{message.id}")

        assert response.status_code == 403

    async def test_delete_unknown_message(self, client):
        response = await client.delete("/api/chat/delete/12345")
        assert response.status_code == 404
