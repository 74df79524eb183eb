# dashboard router — home screen counts and the mood dashboard

import logging
from datetime import date
from fastapi import APIRouter, Depends, Query

from calmmind.models.dashboard import DashboardStatsResponse, MoodDashboardResponse, WeeklyMoodPoint
from calmmind.services.dates import local_today
from calmmind.services.mood_insights import process_mood_data
from calmmind.services.persistence import Persistence
from calmmind.dependencies import get_persistence

logger = logging.getLogger(__name__)
router = APIRouter(prefix="/dashboard", tags=["dashboard"])


@router.get("/stats", response_model=DashboardStatsResponse)
async def get_stats(store: Persistence = Depends(get_persistence)):
    """how much the user has written, said and tracked"""
    return DashboardStatsResponse(
        journalCount=await store.count_documents("journals"),
        conversationCount=await store.count_documents("conversations"),
        checkinCount=await store.count_documents("checkins"),
        analysisCount=await store.count_documents("mood_analyses"),
    )


@router.get("/mood", response_model=MoodDashboardResponse)
async def get_mood_dashboard(
    days: int = Query(30, ge=1, le=365),
    store: Persistence = Depends(get_persistence),
):
    """stats, the 7-day series and insights from recent daily rollups"""
    summaries = await store.list_daily_summaries(days)
    data = process_mood_data(summaries, date.fromisoformat(local_today()))
    return MoodDashboardResponse(
        daysTracked=data["days_tracked"],
        positiveDaysPercentage=data["positive_days_percentage"],
        moodTrend=data["mood_trend"],
        weeklyData=[
            WeeklyMoodPoint(
                date=point["date"],
                day=point["day"],
                mood=point["mood"],
                emoji=point["emoji"],
                intensity=point["intensity"],
                confidence=point["confidence"],
                analysisCount=point["analysis_count"],
            )
            for point in data["weekly_data"]
        ],
        insights=data["insights"],
    )
