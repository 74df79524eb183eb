# mood orchestrator — text -> gemini classification -> mood_analyses -> daily rollup
#
# pipeline for every piece of user content:
#   1. classify the text with the ai gateway (fallback entry on any failure)
#   2. persist the classification as an immutable mood analysis
#   3. recompute the daily summary for the analysis' calendar day
#
# the daily summary is a pure function of that day's analyses, so recomputing
# is an idempotent upsert and can run any number of times

import asyncio
import logging
from collections import Counter
from typing import Optional

from calmmind.config import settings
from calmmind.errors import GatewayError, StorageError
from calmmind.services.dates import date_range, local_today, now_utc
from calmmind.services.gemini import SOURCE_KINDS, GeminiGateway, fallback_classification
from calmmind.services.persistence import Persistence

logger = logging.getLogger(__name__)

MAX_SUMMARY_EMOTIONS = 10
MAX_RECALCULATE_DAYS = 366
TREND_THRESHOLD = 0.5
TREND_WINDOW = 7
MIN_RETRO_CONTENT_LENGTH = 10

EMPTY_DAY_REASONING = "No mood data recorded for this day yet."


def _rank_moods(moods: list[str]) -> list[str]:
    """moods ordered by frequency; ties go to the mood seen most recently.
    moods must be ordered oldest first."""
    counts = Counter(moods)
    last_seen = {mood: index for index, mood in enumerate(moods)}
    return sorted(counts, key=lambda mood: (counts[mood], last_seen[mood]), reverse=True)


def empty_day_fields() -> dict:
    return {
        "primary_mood": "neutral",
        "secondary_mood": None,
        "average_intensity": 5,
        "overall_confidence": 0.1,
        "reasoning": EMPTY_DAY_REASONING,
        "key_emotions": [],
        "analysis_count": 0,
    }


def summarize_day(analyses: list[dict]) -> dict:
    """rollup fields for one day's analyses (oldest first)"""
    if not analyses:
        return empty_day_fields()

    count = len(analyses)
    average_intensity = sum(a["intensity"] for a in analyses) / count
    overall_confidence = round(sum(a["confidence"] for a in analyses) / count, 2)

    ranked = _rank_moods([a["primary_mood"] for a in analyses])
    primary_mood = ranked[0]
    secondary_mood = ranked[1] if len(ranked) > 1 else None

    key_emotions: list[str] = []
    for analysis in analyses:
        for emotion in analysis.get("key_emotions") or []:
            if emotion not in key_emotions:
                key_emotions.append(emotion)
    key_emotions = key_emotions[:MAX_SUMMARY_EMOTIONS]

    source_counts = Counter(a["source"] for a in analyses)
    breakdown = ", ".join(
        f"{source_counts[source]} {source}" for source in SOURCE_KINDS if source_counts[source]
    )
    noun = "analysis" if count == 1 else "analyses"
    reasoning = (
        f"Based on {count} {noun} ({breakdown}), the dominant mood was {primary_mood} "
        f"with an average intensity of {average_intensity:.1f}/10."
    )

    return {
        "primary_mood": primary_mood,
        "secondary_mood": secondary_mood,
        "average_intensity": average_intensity,
        "overall_confidence": overall_confidence,
        "reasoning": reasoning,
        "key_emotions": key_emotions,
        "analysis_count": count,
    }


def compute_trends(summaries: list[dict]) -> dict:
    """trend summary over daily rollups ordered most recent first"""
    if not summaries:
        return {
            "average_intensity": 5,
            "dominant_mood": "neutral",
            "mood_distribution": {},
            "intensity_trend": "stable",
            "days_with_data": 0,
        }

    total = len(summaries)
    average_intensity = sum(s["average_intensity"] for s in summaries) / total

    # rank oldest first so ties resolve to the most recent day
    ranked = _rank_moods([s["primary_mood"] for s in reversed(summaries)])
    counts = Counter(s["primary_mood"] for s in summaries)
    mood_distribution = {mood: round(counts[mood] / total * 100) for mood in ranked}

    earliest = summaries[-TREND_WINDOW:]
    latest = summaries[:TREND_WINDOW]
    earliest_avg = sum(s["average_intensity"] for s in earliest) / len(earliest)
    latest_avg = sum(s["average_intensity"] for s in latest) / len(latest)

    intensity_trend = "stable"
    if latest_avg > earliest_avg + TREND_THRESHOLD:
        intensity_trend = "improving"
    elif latest_avg < earliest_avg - TREND_THRESHOLD:
        intensity_trend = "declining"

    return {
        "average_intensity": round(average_intensity, 1),
        "dominant_mood": ranked[0],
        "mood_distribution": mood_distribution,
        "intensity_trend": intensity_trend,
        "days_with_data": total,
    }


class MoodOrchestrator:
    """mood analysis orchestration for one user"""

    def __init__(self, gateway: GeminiGateway, store: Persistence):
        self.gateway = gateway
        self.store = store

    async def classify(
        self,
        source: str,
        source_id: str,
        text: str,
        duration_minutes: Optional[int] = None,
    ) -> dict:
        """classify, persist and roll up. gateway failures become a fallback
        entry; storage failures propagate."""
        if source not in SOURCE_KINDS:
            raise ValueError(f"Unsupported source type: {source}")

        try:
            classification = await self.gateway.classify(text, source)
        except GatewayError as e:
            logger.warning(f"Mood classification failed for {source}:{source_id}, using fallback: {e}")
            classification = fallback_classification()

        entry = await self.store.create_mood_analysis(
            classification, source, source_id, text, duration_minutes,
        )
        logger.info(
            f"Mood analysis stored for {source}:{source_id} "
            f"({entry['primary_mood']}, intensity {entry['intensity']})"
        )

        await self.recompute_daily(entry["date"])
        return entry

    async def analyze_journal_entry(self, entry_id: str, content: str, duration_minutes: Optional[int] = None) -> dict:
        return await self.classify("journal", entry_id, content, duration_minutes)

    async def analyze_chat_message(self, message_id: str, content: str, duration_minutes: Optional[int] = None) -> dict:
        return await self.classify("chat", message_id, content, duration_minutes)

    async def analyze_voice_session(self, session_id: str, content: str, duration_minutes: Optional[int] = None) -> dict:
        return await self.classify("voice", session_id, content, duration_minutes)

    async def recompute_daily(self, day: str) -> dict:
        """rebuild and upsert the rollup for one calendar day"""
        analyses = await self.store.mood_analyses_for_date(day)
        fields = summarize_day(analyses)
        fields["last_updated"] = now_utc().isoformat()
        summary = await self.store.upsert_daily_summary(day, fields)
        logger.info(f"Daily mood summary updated for {day}: {fields['analysis_count']} analyses")
        return summary

    async def get_todays_summary(self) -> dict:
        return await self.recompute_daily(local_today())

    async def handle_realtime_update(
        self,
        source: str,
        source_id: str,
        content: str,
        duration_minutes: Optional[int] = None,
    ) -> dict:
        """classify one piece of content and return it with today's rollup"""
        analysis = await self.classify(source, source_id, content, duration_minutes)
        todays_summary = await self.get_todays_summary()
        return {"analysis": analysis, "todays_summary": todays_summary}

    async def get_mood_analytics(self, days: int = 7) -> dict:
        summaries = await self.store.list_daily_summaries(days)
        recent_analyses = await self.store.list_mood_analyses(20)
        todays_summary = await self.get_todays_summary()
        return {
            "summaries": summaries,
            "recent_analyses": recent_analyses,
            "todays_summary": todays_summary,
        }

    async def get_mood_insights(self, day: str) -> dict:
        """stored rollup plus the day's analyses grouped by source"""
        summary, analyses = await asyncio.gather(
            self.store.get_daily_summary(day),
            self.store.mood_analyses_for_date(day),
        )
        by_source: dict[str, list[dict]] = {}
        for analysis in analyses:
            by_source.setdefault(analysis["source"], []).append(analysis)
        return {
            "summary": summary,
            "analyses": analyses,
            "analyses_by_source": by_source,
            "total_analyses": len(analyses),
        }

    async def recalculate_summaries(self, start: str, end: str) -> list[dict]:
        """recompute every day in an inclusive range"""
        days = date_range(start, end)
        if len(days) > MAX_RECALCULATE_DAYS:
            raise ValueError(f"Date range is limited to {MAX_RECALCULATE_DAYS} days")
        summaries = []
        for day in days:
            summaries.append(await self.recompute_daily(day))
        return summaries

    async def get_trends(self, days: int = 30) -> dict:
        summaries = await self.store.list_daily_summaries(days)
        return compute_trends(summaries)

    async def process_unanalyzed_journal_entries(self, delay_seconds: Optional[float] = None) -> dict:
        """classify journals that never received a mood analysis"""
        delay = settings.RETRO_ANALYSIS_DELAY_SECONDS if delay_seconds is None else delay_seconds
        logger.info("Starting retroactive journal analysis...")

        journals = await self.store.list_journals(limit=1000)
        analyzed = await self.store.analyzed_source_ids("journal")
        pending = [
            j for j in journals
            if j["journal_id"] not in analyzed
            and len((j.get("content") or "").strip()) > MIN_RETRO_CONTENT_LENGTH
        ]
        logger.info(f"Found {len(pending)} unanalyzed journal entries out of {len(journals)}")

        processed = 0
        errors: list[str] = []
        for journal in pending:
            try:
                await self.analyze_journal_entry(journal["journal_id"], journal["content"])
                processed += 1
            except StorageError as e:
                message = f"Failed to process entry {journal['journal_id']}: {e}"
                logger.error(message)
                errors.append(message)
            if delay > 0:
                await asyncio.sleep(delay)

        logger.info(f"Retroactive analysis complete. Processed: {processed}, Errors: {len(errors)}")
        return {"processed": processed, "errors": errors}


# strong references so fire-and-forget tasks are not garbage collected
_background_tasks: set[asyncio.Task] = set()


def _log_background_result(task: asyncio.Task) -> None:
    _background_tasks.discard(task)
    if task.cancelled():
        logger.warning("Background mood classification was cancelled")
        return
    exc = task.exception()
    if exc is not None:
        logger.error(f"Background mood classification failed: {exc}")


def classify_in_background(
    orchestrator: MoodOrchestrator,
    source: str,
    source_id: str,
    text: str,
    duration_minutes: Optional[int] = None,
) -> asyncio.Task:
    """fire-and-forget classification; failures are logged, never raised"""
    task = asyncio.create_task(orchestrator.classify(source, source_id, text, duration_minutes))
    _background_tasks.add(task)
    task.add_done_callback(_log_background_result)
    return task
