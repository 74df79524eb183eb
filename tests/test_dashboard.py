# tests for dashboard router — counts and mood dashboard

from tests.conftest import USER_ID, OTHER_USER_ID, make_summary
from calmmind.services.dates import local_today


class TestStats:

    async def test_counts(self, user_client, mock_db):
        mock_db.journals._data.extend([
            {"journal_id": "j1", "user_id": USER_ID},
            {"journal_id": "j2", "user_id": USER_ID},
            {"journal_id": "j3", "user_id": OTHER_USER_ID},
        ])
        mock_db.checkins._data.append({"checkin_id": "c1", "user_id": USER_ID})

        resp = await user_client.get("/dashboard/stats")
        assert resp.status_code == 200
        assert resp.json() == {
            "journalCount": 2,
            "conversationCount": 0,
            "checkinCount": 1,
            "analysisCount": 0,
        }


class TestMoodDashboard:

    async def test_empty(self, user_client):
        resp = await user_client.get("/dashboard/mood")
        assert resp.status_code == 200
        data = resp.json()
        assert data["daysTracked"] == 0
        assert data["moodTrend"] == "N/A"
        assert data["weeklyData"] == []

    async def test_with_summaries(self, user_client, mock_db):
        today = local_today()
        mock_db.daily_mood_summaries._data.append(make_summary(today, mood="happy", intensity=8, count=4))

        resp = await user_client.get("/dashboard/mood", params={"days": 30})
        data = resp.json()
        assert data["daysTracked"] == 1
        assert data["positiveDaysPercentage"] == 100
        assert len(data["weeklyData"]) == 7
        assert data["weeklyData"][-1]["date"] == today
        assert data["weeklyData"][-1]["mood"] == "happy"
        assert data["weeklyData"][-1]["analysisCount"] == 4
        assert any("staying engaged" in line for line in data["insights"])
