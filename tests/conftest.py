# shared fixtures for calmmind api tests
# provides an in-memory motor mock, a scripted gemini gateway, test users and httpx clients

import json
import re

import pytest
import pytest_asyncio
from unittest.mock import MagicMock
from bson import ObjectId
from httpx import AsyncClient, ASGITransport
from langchain_core.runnables import RunnableLambda
from pymongo.errors import ServerSelectionTimeoutError

from calmmind.main import app
from calmmind.services.db import get_db
from calmmind.services.auth_service import hash_password
from calmmind.services.gemini import GeminiGateway, get_gateway
from calmmind.dependencies import get_current_user


# test ids (fixed so they survive conftest being imported twice)
USER_OID = ObjectId("65f1a0000000000000000001")
OTHER_USER_OID = ObjectId("65f1a0000000000000000002")
USER_ID = str(USER_OID)
OTHER_USER_ID = str(OTHER_USER_OID)

USER_DOC = {
    "_id": USER_OID,
    "email": "maya@calmmind.app",
    "hashed_password": hash_password("calmmind123"),
    "name": "Maya Patel",
    "avatar_url": None,
    "created_at": "2025-06-01T00:00:00+00:00",
}


# sample model replies

CLASSIFICATION_JSON = json.dumps({
    "primaryMood": "anxious",
    "secondaryMood": "sad",
    "intensity": 7,
    "confidence": 0.8,
    "reasoning": "worry about deadlines",
    "keyEmotions": ["worry", "pressure"],
})

PLAN_JSON = json.dumps({
    "title": "Steadying Week",
    "description": "Small daily practices to ease worry",
    "targetArea": "Anxiety Management",
    "insights": ["Worry peaks in the evening", "Movement helps"],
    "exercises": [
        {
            "title": "Box Breathing",
            "description": "Four-count breathing",
            "type": "breathing",
            "duration": 10,
            "difficulty": "easy",
            "instructions": ["Inhale 4", "Hold 4", "Exhale 4"],
            "benefits": ["Calms the body"],
        },
        {
            "title": "Worry Journal",
            "description": "Write worries down",
            "type": "journaling",
            "duration": 15,
            "difficulty": "medium",
            "instructions": ["Write", "Reflect"],
            "benefits": ["Clarity"],
        },
        {
            "title": "Evening Walk",
            "description": "A gentle walk",
            "type": "physical",
            "duration": 20,
            "difficulty": "easy",
            "instructions": ["Walk slowly"],
            "benefits": ["Releases tension"],
        },
    ],
})


# async cursor mock

class AsyncCursorMock:
    """mock for motor's async cursor — supports async for and chained methods"""

    def __init__(self, data=None):
        self._data = list(data or [])
        self._index = 0

    def sort(self, key, direction=1):
        self._data = sorted(
            self._data,
            key=lambda d: d.get(key) if d.get(key) is not None else "",
            reverse=direction == -1,
        )
        return self

    def skip(self, n):
        self._data = self._data[n:]
        return self

    def limit(self, n):
        self._data = self._data[:n]
        return self

    def __aiter__(self):
        self._index = 0
        return self

    async def __anext__(self):
        if self._index >= len(self._data):
            raise StopAsyncIteration
        item = self._data[self._index]
        self._index += 1
        return item

    async def to_list(self, length=None):
        if length is not None:
            return self._data[:length]
        return self._data


class MockCollection:
    """mock for a motor collection with async methods"""

    def __init__(self, data=None):
        self._data = data or []
        self.inserted = []

    def find(self, query=None, projection=None):
        results = self._data
        if query:
            results = [d for d in results if self._matches(d, query)]
        return AsyncCursorMock(results)

    async def find_one(self, query=None, projection=None):
        if not query:
            return self._data[0] if self._data else None
        for doc in self._data:
            if self._matches(doc, query):
                return doc
        return None

    async def insert_one(self, doc):
        oid = doc.get("_id", ObjectId())
        doc["_id"] = oid
        self._data.append(doc)
        self.inserted.append(doc)
        result = MagicMock()
        result.inserted_id = oid
        return result

    async def count_documents(self, query=None):
        if not query:
            return len(self._data)
        return len([d for d in self._data if self._matches(d, query)])

    async def update_one(self, query, update, upsert=False):
        result = MagicMock()
        result.matched_count = 0
        result.modified_count = 0
        for doc in self._data:
            if self._matches(doc, query):
                if "$set" in update:
                    doc.update(update["$set"])
                result.matched_count = 1
                result.modified_count = 1
                return result
        if upsert:
            doc = {k: v for k, v in query.items() if not isinstance(v, dict)}
            doc.update(update.get("$set", {}))
            await self.insert_one(doc)
        return result

    async def delete_one(self, query):
        result = MagicMock()
        result.deleted_count = 0
        for doc in self._data:
            if self._matches(doc, query):
                self._data.remove(doc)
                result.deleted_count = 1
                break
        return result

    async def delete_many(self, query):
        keep = [d for d in self._data if not self._matches(d, query)]
        result = MagicMock()
        result.deleted_count = len(self._data) - len(keep)
        self._data[:] = keep
        return result

    async def create_index(self, *args, **kwargs):
        return "mock_index"

    def _matches(self, doc, query):
        """basic mongodb query matching for tests"""
        for key, value in query.items():
            if key == "$or":
                if not any(self._matches(doc, cond) for cond in value):
                    return False
                continue
            doc_val = doc.get(key)
            if isinstance(value, dict):
                if "$in" in value and doc_val not in value["$in"]:
                    return False
                if "$ne" in value and doc_val == value["$ne"]:
                    return False
                if "$gte" in value and (doc_val is None or doc_val < value["$gte"]):
                    return False
                if "$lte" in value and (doc_val is None or doc_val > value["$lte"]):
                    return False
                if "$regex" in value:
                    flags = re.IGNORECASE if value.get("$options") == "i" else 0
                    if doc_val is None or not re.search(value["$regex"], str(doc_val), flags):
                        return False
            elif doc_val != value:
                return False
        return True


class FailingCollection(MockCollection):
    """collection whose every driver call fails"""

    def find(self, query=None, projection=None):
        raise ServerSelectionTimeoutError("mongodb unreachable")

    async def find_one(self, query=None, projection=None):
        raise ServerSelectionTimeoutError("mongodb unreachable")

    async def insert_one(self, doc):
        raise ServerSelectionTimeoutError("mongodb unreachable")

    async def update_one(self, query, update, upsert=False):
        raise ServerSelectionTimeoutError("mongodb unreachable")

    async def count_documents(self, query=None):
        raise ServerSelectionTimeoutError("mongodb unreachable")


class MockDatabase:
    """mock database that mimics the Database class"""

    def __init__(self):
        self.users = MockCollection([USER_DOC.copy()])
        self.conversations = MockCollection([])
        self.messages = MockCollection([])
        self.journals = MockCollection([])
        self.checkins = MockCollection([])
        self.mood_entries = MockCollection([])
        self.mood_analyses = MockCollection([])
        self.daily_mood_summaries = MockCollection([])
        self.weekly_plans = MockCollection([])
        self.exercises = MockCollection([])

    async def connect(self):
        pass

    async def close(self):
        pass


# scripted gemini

class ScriptedModel:
    """stands in for a chat model inside langchain chains.
    replies are picked by matching the rendered prompt text"""

    def __init__(self, replies=None, default="I hear you."):
        self.replies = dict(replies or {})
        self.default = default
        self.calls = []

    def __call__(self, prompt):
        text = prompt.to_string() if hasattr(prompt, "to_string") else str(prompt)
        self.calls.append(text)
        for marker, reply in self.replies.items():
            if marker in text:
                if isinstance(reply, Exception):
                    raise reply
                return reply
        if isinstance(self.default, Exception):
            raise self.default
        return self.default

    def runnable(self):
        return RunnableLambda(lambda prompt: self(prompt))


def make_gateway(chat=None, analysis=None) -> GeminiGateway:
    """gateway over scripted models; analysis defaults cover mood, titles and plans"""
    chat = chat or ScriptedModel(default="That sounds really hard. What feels heaviest right now?")
    analysis = analysis or ScriptedModel({
        "Classify the mood": CLASSIFICATION_JSON,
        "Write a short, gentle title": "Deadline Worries",
        "weekly wellness plan": PLAN_JSON,
    })
    gateway = GeminiGateway(chat_llm=chat.runnable(), analysis_llm=analysis.runnable())
    gateway.chat_model = chat
    gateway.analysis_model = analysis
    return gateway


def make_analysis(day="2025-06-10", mood="anxious", intensity=7, confidence=0.8, source="journal",
                  created_at=None, key_emotions=None, raw_content="", source_id="src_1", user_id=USER_ID):
    """a stored mood analysis document"""
    return {
        "analysis_id": f"an_{day}_{mood}_{created_at or ''}",
        "user_id": user_id,
        "source": source,
        "source_id": source_id,
        "primary_mood": mood,
        "secondary_mood": None,
        "intensity": intensity,
        "confidence": confidence,
        "reasoning": "",
        "key_emotions": key_emotions or [],
        "raw_content": raw_content,
        "duration_minutes": None,
        "date": day,
        "created_at": created_at or f"{day}T12:00:00+00:00",
    }


def make_summary(day, mood="neutral", intensity=5.0, count=1, confidence=0.8, key_emotions=None, user_id=USER_ID):
    """a stored daily mood summary document"""
    return {
        "user_id": user_id,
        "date": day,
        "primary_mood": mood,
        "secondary_mood": None,
        "average_intensity": intensity,
        "overall_confidence": confidence,
        "reasoning": "",
        "key_emotions": key_emotions or [],
        "analysis_count": count,
        "last_updated": f"{day}T23:00:00+00:00",
    }


@pytest.fixture
def mock_db():
    """create a fresh mock database for each test"""
    return MockDatabase()


@pytest.fixture
def gateway():
    return make_gateway()


def _user_dict():
    """user dict as get_current_user would return it"""
    doc = USER_DOC.copy()
    doc["id"] = USER_ID
    del doc["_id"]
    return doc


@pytest_asyncio.fixture
async def client(mock_db, gateway):
    """httpx async test client with mocked db and gateway, no user override"""

    async def override_get_db():
        return mock_db

    app.dependency_overrides[get_db] = override_get_db
    app.dependency_overrides[get_gateway] = lambda: gateway

    transport = ASGITransport(app=app)
    async with AsyncClient(transport=transport, base_url="http://test") as ac:
        yield ac

    app.dependency_overrides.clear()


@pytest_asyncio.fixture
async def user_client(mock_db, gateway):
    """client authenticated as the test user"""

    async def override_get_db():
        return mock_db

    async def override_get_current_user():
        return _user_dict()

    app.dependency_overrides[get_db] = override_get_db
    app.dependency_overrides[get_current_user] = override_get_current_user
    app.dependency_overrides[get_gateway] = lambda: gateway

    transport = ASGITransport(app=app)
    async with AsyncClient(transport=transport, base_url="http://test") as ac:
        yield ac

    app.dependency_overrides.clear()
