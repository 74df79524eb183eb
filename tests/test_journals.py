# tests for journals router — entries with inline mood analysis

from calmmind.main import app
from calmmind.services.dates import local_today
from calmmind.services.gemini import get_gateway
from tests.conftest import USER_ID, ScriptedModel, make_gateway

ENTRY = {
    "title": "Work week",
    "content": "I keep thinking about the deadlines at work and cannot switch off",
    "promptId": "emotions-2",
}


class TestCreateJournal:
    """writing an entry"""

    async def test_create_with_analysis(self, user_client, mock_db):
        resp = await user_client.post("/journals", json=ENTRY)
        assert resp.status_code == 201
        data = resp.json()

        assert data["entry"]["title"] == "Work week"
        assert data["entry"]["promptId"] == "emotions-2"
        assert data["entry"]["wordCount"] == 12
        assert data["analysis"]["source"] == "journal"
        assert data["analysis"]["sourceId"] == data["entry"]["id"]
        assert data["analysis"]["primaryMood"] == "anxious"
        assert data["analysis"]["keyEmotions"] == ["worry", "pressure"]

        summary = mock_db.daily_mood_summaries._data[0]
        assert summary["date"] == local_today()
        assert summary["analysis_count"] == 1

    async def test_create_when_ai_unavailable(self, user_client, mock_db):
        failing = make_gateway(analysis=ScriptedModel(default=RuntimeError("quota exceeded")))
        app.dependency_overrides[get_gateway] = lambda: failing

        resp = await user_client.post("/journals", json=ENTRY)
        assert resp.status_code == 201
        assert resp.json()["analysis"]["primaryMood"] == "neutral"
        assert resp.json()["analysis"]["confidence"] == 0.3
        assert len(mock_db.journals._data) == 1

    async def test_whitespace_only_content(self, user_client, mock_db):
        resp = await user_client.post("/journals", json={"title": "", "content": "   \n  "})
        assert resp.status_code == 422
        assert mock_db.journals._data == []

    async def test_missing_content(self, user_client):
        resp = await user_client.post("/journals", json={"title": "empty"})
        assert resp.status_code == 422

    async def test_requires_auth(self, client):
        resp = await client.post("/journals", json=ENTRY)
        assert resp.status_code in (401, 403)


class TestJournalCrud:
    """reading, editing and deleting entries"""

    async def _create(self, user_client) -> dict:
        resp = await user_client.post("/journals", json=ENTRY)
        return resp.json()["entry"]

    async def test_list_newest_first(self, user_client, mock_db):
        mock_db.journals._data.extend([
            {"journal_id": "old", "user_id": USER_ID, "title": "Old",
             "content": "first", "word_count": 1, "created_at": "2025-06-01T08:00:00+00:00"},
            {"journal_id": "new", "user_id": USER_ID, "title": "New",
             "content": "second", "word_count": 1, "created_at": "2025-06-02T08:00:00+00:00"},
        ])
        resp = await user_client.get("/journals")
        assert resp.status_code == 200
        assert [j["id"] for j in resp.json()] == ["new", "old"]

        resp = await user_client.get("/journals", params={"limit": 1, "skip": 1})
        assert [j["id"] for j in resp.json()] == ["old"]

    async def test_get_one(self, user_client):
        entry = await self._create(user_client)
        resp = await user_client.get(f"/journals/{entry['id']}")
        assert resp.status_code == 200
        assert resp.json()["content"] == ENTRY["content"]

    async def test_get_missing(self, user_client):
        resp = await user_client.get("/journals/nope")
        assert resp.status_code == 404
        assert resp.json()["detail"] == "Journal entry not found"

    async def test_update(self, user_client):
        entry = await self._create(user_client)
        resp = await user_client.patch(f"/journals/{entry['id']}", json={"content": "feeling better now"})
        assert resp.status_code == 200
        assert resp.json()["wordCount"] == 3
        assert resp.json()["updatedAt"] is not None

    async def test_update_nothing(self, user_client):
        entry = await self._create(user_client)
        resp = await user_client.patch(f"/journals/{entry['id']}", json={})
        assert resp.status_code == 422

    async def test_update_missing(self, user_client):
        resp = await user_client.patch("/journals/nope", json={"title": "x"})
        assert resp.status_code == 404

    async def test_delete_refreshes_rollup(self, user_client, mock_db):
        entry = await self._create(user_client)
        assert mock_db.daily_mood_summaries._data[0]["analysis_count"] == 1

        resp = await user_client.delete(f"/journals/{entry['id']}")
        assert resp.status_code == 204
        assert mock_db.journals._data == []
        assert mock_db.mood_analyses._data == []
        assert mock_db.daily_mood_summaries._data[0]["analysis_count"] == 0

    async def test_delete_missing(self, user_client):
        resp = await user_client.delete("/journals/nope")
        assert resp.status_code == 404
