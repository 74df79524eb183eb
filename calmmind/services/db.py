# mongodb access for calmmind
# one motor client per process; collections are looked up by name

import logging
from typing import Optional

from motor.motor_asyncio import AsyncIOMotorClient, AsyncIOMotorCollection, AsyncIOMotorDatabase
from pymongo import ASCENDING, DESCENDING

from calmmind.config import settings

logger = logging.getLogger(__name__)

# every collection the app reads or writes
COLLECTIONS = (
    "users",
    "conversations",
    "messages",
    "journals",
    "checkins",
    "mood_entries",
    "mood_analyses",
    "daily_mood_summaries",
    "weekly_plans",
    "exercises",
)


class Database:
    """holds the motor client and exposes collections as attributes (db.journals, db.messages, ...)"""

    def __init__(self):
        self.client: Optional[AsyncIOMotorClient] = None
        self.db: Optional[AsyncIOMotorDatabase] = None

    def __getattr__(self, name: str) -> AsyncIOMotorCollection:
        if name not in COLLECTIONS:
            raise AttributeError(name)
        if self.db is None:
            raise RuntimeError(f"Database not connected, cannot open '{name}'")
        return self.db[name]

    async def connect(self):
        if self.client is not None:
            return

        logger.info(f"Opening MongoDB database '{settings.MONGODB_DATABASE}'")
        self.client = AsyncIOMotorClient(
            settings.MONGODB_URI,
            serverSelectionTimeoutMS=settings.MONGODB_TIMEOUT_MS,
        )
        self.db = self.client[settings.MONGODB_DATABASE]

        await self.client.admin.command("ping")
        await self.ensure_indexes()
        logger.info(f"MongoDB ready ({len(COLLECTIONS)} collections)")

    async def ensure_indexes(self):
        """indexes backing the per-user queries and the daily rollup upsert"""
        await self.users.create_index("email", unique=True)
        await self.daily_mood_summaries.create_index(
            [("user_id", ASCENDING), ("date", ASCENDING)], unique=True,
        )
        await self.mood_analyses.create_index([("user_id", ASCENDING), ("date", ASCENDING)])
        await self.mood_analyses.create_index([("user_id", ASCENDING), ("created_at", DESCENDING)])
        await self.mood_analyses.create_index([("user_id", ASCENDING), ("source", ASCENDING), ("source_id", ASCENDING)])
        await self.messages.create_index([("conversation_id", ASCENDING), ("created_at", ASCENDING)])
        await self.exercises.create_index([("plan_id", ASCENDING), ("position", ASCENDING)])

    async def close(self):
        if self.client is None:
            return
        self.client.close()
        self.client = None
        self.db = None
        logger.info("MongoDB client closed")


db = Database()


async def get_db() -> Database:
    return db
