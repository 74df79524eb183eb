# persistence gateway — per-entity crud scoped to one authenticated user
# every query filters by user_id; driver failures surface as StorageError

import functools
import hashlib
import logging
import secrets
from datetime import timedelta
from typing import Optional

from pymongo import ASCENDING, DESCENDING
from pymongo.errors import PyMongoError

from calmmind.errors import AuthError, StorageError
from calmmind.services.db import Database
from calmmind.services.dates import now_utc, local_date

logger = logging.getLogger(__name__)


def _storage_call(func):
    """re-raise driver errors as StorageError so callers see one failure type"""

    @functools.wraps(func)
    async def wrapper(self, *args, **kwargs):
        try:
            return await func(self, *args, **kwargs)
        except PyMongoError as e:
            logger.error(f"Storage operation {func.__name__} failed for user {self.user_id}: {e}")
            raise StorageError(f"{func.__name__} failed") from e

    return wrapper


def _clean(doc: Optional[dict]) -> Optional[dict]:
    """drop the mongodb _id so documents can be returned as plain dicts"""
    if doc is None:
        return None
    return {k: v for k, v in doc.items() if k != "_id"}


async def _collect(cursor) -> list[dict]:
    return [_clean(doc) async for doc in cursor]


class Persistence:
    """crud operations for a single user's data"""

    def __init__(self, db: Database, user_id: Optional[str]):
        if not user_id:
            raise AuthError("No authenticated user")
        self.db = db
        self.user_id = user_id

    def _new_id(self, kind: str) -> str:
        raw = f"{self.user_id}:{kind}:{now_utc().isoformat()}:{secrets.token_hex(4)}"
        return hashlib.md5(raw.encode()).hexdigest()[:12]

    # conversations

    @_storage_call
    async def list_conversations(self) -> list[dict]:
        cursor = self.db.conversations.find({"user_id": self.user_id}).sort("updated_at", DESCENDING)
        return await _collect(cursor)

    @_storage_call
    async def get_conversation(self, conversation_id: str) -> Optional[dict]:
        doc = await self.db.conversations.find_one(
            {"conversation_id": conversation_id, "user_id": self.user_id}
        )
        return _clean(doc)

    @_storage_call
    async def create_conversation(self, title: str) -> dict:
        now = now_utc().isoformat()
        doc = {
            "conversation_id": self._new_id("conversation"),
            "user_id": self.user_id,
            "title": title,
            "created_at": now,
            "updated_at": now,
        }
        await self.db.conversations.insert_one(doc)
        return _clean(doc)

    @_storage_call
    async def update_conversation_title(self, conversation_id: str, title: str) -> None:
        await self.db.conversations.update_one(
            {"conversation_id": conversation_id, "user_id": self.user_id},
            {"$set": {"title": title, "updated_at": now_utc().isoformat()}},
        )

    @_storage_call
    async def touch_conversation(self, conversation_id: str) -> None:
        await self.db.conversations.update_one(
            {"conversation_id": conversation_id, "user_id": self.user_id},
            {"$set": {"updated_at": now_utc().isoformat()}},
        )

    @_storage_call
    async def delete_conversation(self, conversation_id: str) -> bool:
        """delete a conversation and all of its messages"""
        await self.db.messages.delete_many(
            {"conversation_id": conversation_id, "user_id": self.user_id}
        )
        result = await self.db.conversations.delete_one(
            {"conversation_id": conversation_id, "user_id": self.user_id}
        )
        return result.deleted_count > 0

    # messages

    @_storage_call
    async def list_messages(self, conversation_id: str) -> list[dict]:
        cursor = self.db.messages.find(
            {"conversation_id": conversation_id, "user_id": self.user_id}
        ).sort("created_at", ASCENDING)
        return await _collect(cursor)

    @_storage_call
    async def create_message(self, conversation_id: str, role: str, content: str) -> dict:
        doc = {
            "message_id": self._new_id("message"),
            "conversation_id": conversation_id,
            "user_id": self.user_id,
            "role": role,
            "content": content,
            "created_at": now_utc().isoformat(),
        }
        await self.db.messages.insert_one(doc)
        return _clean(doc)

    # journals

    @_storage_call
    async def list_journals(self, limit: int = 50, skip: int = 0) -> list[dict]:
        cursor = (
            self.db.journals.find({"user_id": self.user_id})
            .sort("created_at", DESCENDING)
            .skip(skip)
            .limit(limit)
        )
        return await _collect(cursor)

    @_storage_call
    async def get_journal(self, journal_id: str) -> Optional[dict]:
        doc = await self.db.journals.find_one({"journal_id": journal_id, "user_id": self.user_id})
        return _clean(doc)

    @_storage_call
    async def create_journal(self, title: str, content: str, prompt_id: Optional[str] = None) -> dict:
        doc = {
            "journal_id": self._new_id("journal"),
            "user_id": self.user_id,
            "title": title,
            "content": content,
            "prompt_id": prompt_id,
            "word_count": len(content.split()),
            "created_at": now_utc().isoformat(),
            "updated_at": None,
        }
        await self.db.journals.insert_one(doc)
        return _clean(doc)

    @_storage_call
    async def update_journal(self, journal_id: str, fields: dict) -> Optional[dict]:
        update = dict(fields)
        if "content" in update:
            update["word_count"] = len(update["content"].split())
        update["updated_at"] = now_utc().isoformat()
        await self.db.journals.update_one(
            {"journal_id": journal_id, "user_id": self.user_id},
            {"$set": update},
        )
        doc = await self.db.journals.find_one({"journal_id": journal_id, "user_id": self.user_id})
        return _clean(doc)

    @_storage_call
    async def delete_journal(self, journal_id: str) -> bool:
        """delete a journal and the mood analyses derived from it"""
        result = await self.db.journals.delete_one({"journal_id": journal_id, "user_id": self.user_id})
        if result.deleted_count == 0:
            return False
        await self.db.mood_analyses.delete_many(
            {"user_id": self.user_id, "source": "journal", "source_id": journal_id}
        )
        return True

    # daily check-ins

    @_storage_call
    async def create_checkin(self, mood: str, reflection: str = "") -> dict:
        now = now_utc()
        doc = {
            "checkin_id": self._new_id("checkin"),
            "user_id": self.user_id,
            "mood": mood,
            "reflection": reflection,
            "date": local_date(now),
            "created_at": now.isoformat(),
        }
        await self.db.checkins.insert_one(doc)
        return _clean(doc)

    @_storage_call
    async def list_checkins(self, limit: int = 30) -> list[dict]:
        cursor = self.db.checkins.find({"user_id": self.user_id}).sort("created_at", DESCENDING).limit(limit)
        return await _collect(cursor)

    # manual mood entries

    @_storage_call
    async def create_mood_entry(self, mood: str, intensity: int, note: str = "") -> dict:
        doc = {
            "entry_id": self._new_id("mood_entry"),
            "user_id": self.user_id,
            "mood": mood,
            "intensity": intensity,
            "note": note,
            "created_at": now_utc().isoformat(),
        }
        await self.db.mood_entries.insert_one(doc)
        return _clean(doc)

    @_storage_call
    async def list_mood_entries(self, limit: int = 50) -> list[dict]:
        cursor = self.db.mood_entries.find({"user_id": self.user_id}).sort("created_at", DESCENDING).limit(limit)
        return await _collect(cursor)

    # mood analyses

    @_storage_call
    async def create_mood_analysis(
        self,
        classification: dict,
        source: str,
        source_id: str,
        raw_content: str,
        duration_minutes: Optional[int] = None,
    ) -> dict:
        now = now_utc()
        doc = {
            "analysis_id": self._new_id("analysis"),
            "user_id": self.user_id,
            "source": source,
            "source_id": source_id,
            "primary_mood": classification["primary_mood"],
            "secondary_mood": classification.get("secondary_mood"),
            "intensity": classification["intensity"],
            "confidence": classification["confidence"],
            "reasoning": classification.get("reasoning", ""),
            "key_emotions": list(classification.get("key_emotions", [])),
            "raw_content": raw_content,
            "duration_minutes": duration_minutes,
            "date": local_date(now),
            "created_at": now.isoformat(),
        }
        await self.db.mood_analyses.insert_one(doc)
        return _clean(doc)

    @_storage_call
    async def list_mood_analyses(self, limit: int = 20) -> list[dict]:
        cursor = self.db.mood_analyses.find({"user_id": self.user_id}).sort("created_at", DESCENDING).limit(limit)
        return await _collect(cursor)

    @_storage_call
    async def mood_analyses_for_date(self, day: str) -> list[dict]:
        """all analyses for one local calendar day, oldest first"""
        cursor = self.db.mood_analyses.find({"user_id": self.user_id, "date": day}).sort("created_at", ASCENDING)
        return await _collect(cursor)

    @_storage_call
    async def analyzed_source_ids(self, source: str) -> set[str]:
        cursor = self.db.mood_analyses.find({"user_id": self.user_id, "source": source}, {"source_id": 1})
        return {doc.get("source_id") async for doc in cursor}

    @_storage_call
    async def analysis_dates_for_source(self, source: str, source_id: str) -> list[str]:
        """calendar days holding analyses derived from one source item"""
        cursor = self.db.mood_analyses.find(
            {"user_id": self.user_id, "source": source, "source_id": source_id}, {"date": 1},
        )
        return sorted({doc.get("date") async for doc in cursor})

    # daily mood summaries

    @_storage_call
    async def upsert_daily_summary(self, day: str, fields: dict) -> dict:
        """write the rollup for (user, day), replacing any previous one"""
        doc = {"user_id": self.user_id, "date": day, **fields}
        await self.db.daily_mood_summaries.update_one(
            {"user_id": self.user_id, "date": day},
            {"$set": doc},
            upsert=True,
        )
        return doc

    @_storage_call
    async def get_daily_summary(self, day: str) -> Optional[dict]:
        doc = await self.db.daily_mood_summaries.find_one({"user_id": self.user_id, "date": day})
        return _clean(doc)

    @_storage_call
    async def list_daily_summaries(self, days: int = 7) -> list[dict]:
        """most recent summaries first"""
        cursor = (
            self.db.daily_mood_summaries.find({"user_id": self.user_id})
            .sort("date", DESCENDING)
            .limit(days)
        )
        return await _collect(cursor)

    # weekly plans and exercises

    @_storage_call
    async def create_weekly_plan(self, plan: dict, exercises: list[dict], week_of: str) -> dict:
        now = now_utc()
        plan_id = self._new_id("plan")
        plan_doc = {
            "plan_id": plan_id,
            "user_id": self.user_id,
            "title": plan["title"],
            "description": plan["description"],
            "target_area": plan["target_area"],
            "confidence": plan["confidence"],
            "insights": list(plan.get("insights", [])),
            "week_of": week_of,
            "progress": 0.0,
            "completed": False,
            "created_at": now.isoformat(),
        }
        await self.db.weekly_plans.insert_one(plan_doc)

        exercise_docs = []
        for index, exercise in enumerate(exercises):
            exercise_doc = {
                "exercise_id": f"{plan_id}_{index}",
                "plan_id": plan_id,
                "user_id": self.user_id,
                "position": index,
                "title": exercise["title"],
                "description": exercise["description"],
                "type": exercise["type"],
                "duration": exercise["duration"],
                "difficulty": exercise["difficulty"],
                "instructions": list(exercise.get("instructions", [])),
                "benefits": list(exercise.get("benefits", [])),
                "due_date": (now + timedelta(days=index + 1)).isoformat(),
                "completed": False,
            }
            await self.db.exercises.insert_one(exercise_doc)
            exercise_docs.append(_clean(exercise_doc))

        result = _clean(plan_doc)
        result["exercises"] = exercise_docs
        return result

    async def _attach_exercises(self, plan_doc: dict) -> dict:
        cursor = self.db.exercises.find(
            {"plan_id": plan_doc["plan_id"], "user_id": self.user_id}
        ).sort("position", ASCENDING)
        plan = _clean(plan_doc)
        plan["exercises"] = await _collect(cursor)
        return plan

    @_storage_call
    async def list_weekly_plans(self, limit: int = 20) -> list[dict]:
        cursor = self.db.weekly_plans.find({"user_id": self.user_id}).sort("created_at", DESCENDING).limit(limit)
        return [await self._attach_exercises(doc) async for doc in cursor]

    @_storage_call
    async def get_weekly_plan(self, plan_id: str) -> Optional[dict]:
        doc = await self.db.weekly_plans.find_one({"plan_id": plan_id, "user_id": self.user_id})
        if not doc:
            return None
        return await self._attach_exercises(doc)

    @_storage_call
    async def set_exercise_completed(self, plan_id: str, exercise_id: str, completed: bool) -> Optional[dict]:
        """mark an exercise done or not done and recompute plan progress"""
        result = await self.db.exercises.update_one(
            {"exercise_id": exercise_id, "plan_id": plan_id, "user_id": self.user_id},
            {"$set": {"completed": completed}},
        )
        if result.matched_count == 0:
            return None

        cursor = self.db.exercises.find({"plan_id": plan_id, "user_id": self.user_id})
        exercises = await _collect(cursor)
        done = len([e for e in exercises if e.get("completed")])
        progress = round(done / len(exercises) * 100, 1) if exercises else 0.0

        await self.db.weekly_plans.update_one(
            {"plan_id": plan_id, "user_id": self.user_id},
            {"$set": {"progress": progress, "completed": progress >= 100}},
        )
        doc = await self.db.weekly_plans.find_one({"plan_id": plan_id, "user_id": self.user_id})
        return await self._attach_exercises(doc)

    # counts

    @_storage_call
    async def count_documents(self, collection: str) -> int:
        """number of the user's documents in one collection"""
        return await getattr(self.db, collection).count_documents({"user_id": self.user_id})
