# tests for conversations router — chat threads with the ai companion

import asyncio

from calmmind.config import settings
from calmmind.main import app
from calmmind.services.gemini import get_gateway
from calmmind.services.mood_orchestrator import _background_tasks
from tests.conftest import USER_ID, OTHER_USER_ID, ScriptedModel, make_gateway


async def _drain_background():
    """let fire-and-forget mood classification finish"""
    if _background_tasks:
        await asyncio.gather(*list(_background_tasks), return_exceptions=True)


def _conversation(conversation_id, title="", user_id=USER_ID, updated_at="2025-06-10T10:00:00+00:00"):
    return {
        "conversation_id": conversation_id,
        "user_id": user_id,
        "title": title,
        "created_at": "2025-06-10T09:00:00+00:00",
        "updated_at": updated_at,
    }


class TestConversationCrud:
    """create, list, rename, delete"""

    async def test_create_untitled(self, user_client):
        resp = await user_client.post("/conversations", json={})
        assert resp.status_code == 201
        assert resp.json()["title"] == "New conversation"

    async def test_list_most_recent_first(self, user_client, mock_db):
        mock_db.conversations._data.extend([
            _conversation("c_old", "Old", updated_at="2025-06-01T10:00:00+00:00"),
            _conversation("c_new", "New", updated_at="2025-06-09T10:00:00+00:00"),
            _conversation("c_theirs", "Theirs", user_id=OTHER_USER_ID),
        ])
        resp = await user_client.get("/conversations")
        assert [c["id"] for c in resp.json()] == ["c_new", "c_old"]

    async def test_get_with_messages(self, user_client, mock_db):
        mock_db.conversations._data.append(_conversation("c1", "Talk"))
        mock_db.messages._data.append({
            "message_id": "m1", "conversation_id": "c1", "user_id": USER_ID,
            "role": "user", "content": "hello", "created_at": "2025-06-10T09:01:00+00:00",
        })
        resp = await user_client.get("/conversations/c1")
        assert resp.status_code == 200
        data = resp.json()
        assert data["title"] == "Talk"
        assert data["messages"][0]["content"] == "hello"
        assert data["messages"][0]["conversationId"] == "c1"

    async def test_other_users_conversation_is_hidden(self, user_client, mock_db):
        mock_db.conversations._data.append(_conversation("c_theirs", user_id=OTHER_USER_ID))
        resp = await user_client.get("/conversations/c_theirs")
        assert resp.status_code == 404
        assert resp.json()["detail"] == "Conversation not found"

    async def test_rename(self, user_client, mock_db):
        mock_db.conversations._data.append(_conversation("c1", "Talk"))
        resp = await user_client.patch("/conversations/c1", json={"title": "  Sunday thoughts "})
        assert resp.status_code == 200
        assert resp.json()["title"] == "Sunday thoughts"

    async def test_delete(self, user_client, mock_db):
        mock_db.conversations._data.append(_conversation("c1", "Talk"))
        mock_db.messages._data.append({
            "message_id": "m1", "conversation_id": "c1", "user_id": USER_ID,
            "role": "user", "content": "hello", "created_at": "2025-06-10T09:01:00+00:00",
        })
        resp = await user_client.delete("/conversations/c1")
        assert resp.status_code == 204
        assert mock_db.messages._data == []

        resp = await user_client.delete("/conversations/c1")
        assert resp.status_code == 404


class TestSendMessage:
    """one chat turn"""

    async def test_first_message_gets_reply_and_title(self, user_client, mock_db, gateway):
        mock_db.conversations._data.append(_conversation("c1"))

        resp = await user_client.post("/conversations/c1/messages", json={"content": "Deadlines are crushing me"})
        await _drain_background()

        assert resp.status_code == 201
        data = resp.json()
        assert data["degraded"] is False
        assert data["userMessage"]["role"] == "user"
        assert data["reply"]["role"] == "model"
        assert data["reply"]["content"] == "That sounds really hard. What feels heaviest right now?"
        assert data["conversation"]["title"] == "Deadline Worries"

        assert [m["role"] for m in mock_db.messages._data] == ["user", "model"]
        analysis = mock_db.mood_analyses._data[0]
        assert analysis["source"] == "chat"
        assert analysis["source_id"] == data["userMessage"]["id"]

    async def test_follow_up_carries_history(self, user_client, mock_db, gateway):
        mock_db.conversations._data.append(_conversation("c1", "Talk"))
        mock_db.messages._data.extend([
            {"message_id": "m1", "conversation_id": "c1", "user_id": USER_ID, "role": "user",
             "content": "my dog is unwell", "created_at": "2025-06-10T09:01:00+00:00"},
            {"message_id": "m2", "conversation_id": "c1", "user_id": USER_ID, "role": "model",
             "content": "I'm sorry to hear that.", "created_at": "2025-06-10T09:01:05+00:00"},
        ])

        resp = await user_client.post("/conversations/c1/messages", json={"content": "the vet is tomorrow"})
        await _drain_background()

        assert resp.status_code == 201
        assert resp.json()["conversation"]["title"] == "Talk"
        prompt = gateway.chat_model.calls[-1]
        assert "my dog is unwell" in prompt
        assert "the vet is tomorrow" in prompt

    async def test_ai_failure_returns_supportive_fallback(self, user_client, mock_db):
        failing = make_gateway(chat=ScriptedModel(default=RuntimeError("gemini unavailable")))
        app.dependency_overrides[get_gateway] = lambda: failing
        mock_db.conversations._data.append(_conversation("c1", "Talk"))

        resp = await user_client.post("/conversations/c1/messages", json={"content": "are you there?"})
        await _drain_background()

        assert resp.status_code == 201
        assert resp.json()["degraded"] is True
        assert resp.json()["reply"]["content"] == settings.CHAT_FALLBACK_MESSAGE
        assert len(mock_db.messages._data) == 2

    async def test_blank_message(self, user_client, mock_db):
        mock_db.conversations._data.append(_conversation("c1", "Talk"))
        resp = await user_client.post("/conversations/c1/messages", json={"content": "   "})
        assert resp.status_code == 422
        assert mock_db.messages._data == []

    async def test_unknown_conversation(self, user_client):
        resp = await user_client.post("/conversations/nope/messages", json={"content": "hi"})
        assert resp.status_code == 404
