# mood router — daily rollups, trends, analytics and on-demand classification

import logging
from fastapi import APIRouter, Depends, HTTPException, status, Query, Path

from calmmind.models.mood import (
    MoodAnalysisResponse, DailyMoodSummaryResponse, MoodTrendsResponse, MoodAnalyticsResponse,
    MoodInsightsResponse, AnalyzeRequest, RealtimeUpdateResponse, RecalculateRequest,
    RecalculateResponse, RetroAnalysisResponse, MoodEntryCreate, MoodEntryResponse,
)
from calmmind.services.mood_orchestrator import MoodOrchestrator
from calmmind.services.persistence import Persistence
from calmmind.dependencies import get_orchestrator, get_persistence

logger = logging.getLogger(__name__)
router = APIRouter(prefix="/mood", tags=["mood"])


def doc_to_analysis(doc: dict) -> MoodAnalysisResponse:
    """convert a stored mood analysis to its response model"""
    return MoodAnalysisResponse(
        id=doc.get("analysis_id", ""),
        source=doc["source"],
        sourceId=doc.get("source_id", ""),
        primaryMood=doc.get("primary_mood", "neutral"),
        secondaryMood=doc.get("secondary_mood"),
        intensity=doc.get("intensity", 5),
        confidence=doc.get("confidence", 0.0),
        reasoning=doc.get("reasoning", ""),
        keyEmotions=doc.get("key_emotions", []),
        durationMinutes=doc.get("duration_minutes"),
        date=doc.get("date", ""),
        createdAt=doc.get("created_at", ""),
    )


def doc_to_summary(doc: dict) -> DailyMoodSummaryResponse:
    return DailyMoodSummaryResponse(
        date=doc["date"],
        primaryMood=doc.get("primary_mood", "neutral"),
        secondaryMood=doc.get("secondary_mood"),
        averageIntensity=doc.get("average_intensity", 5),
        overallConfidence=doc.get("overall_confidence", 0.1),
        reasoning=doc.get("reasoning", ""),
        keyEmotions=doc.get("key_emotions", []),
        analysisCount=doc.get("analysis_count", 0),
        lastUpdated=doc.get("last_updated"),
    )


def _doc_to_entry(doc: dict) -> MoodEntryResponse:
    return MoodEntryResponse(
        id=doc.get("entry_id", ""),
        mood=doc.get("mood", "neutral"),
        intensity=doc.get("intensity", 5),
        note=doc.get("note", ""),
        createdAt=doc.get("created_at", ""),
    )


@router.get("/today", response_model=DailyMoodSummaryResponse)
async def get_today(orchestrator: MoodOrchestrator = Depends(get_orchestrator)):
    """recompute and return today's rollup"""
    return doc_to_summary(await orchestrator.get_todays_summary())


@router.get("/trends", response_model=MoodTrendsResponse)
async def get_trends(
    days: int = Query(30, ge=1, le=365),
    orchestrator: MoodOrchestrator = Depends(get_orchestrator),
):
    trends = await orchestrator.get_trends(days)
    return MoodTrendsResponse(
        averageIntensity=trends["average_intensity"],
        dominantMood=trends["dominant_mood"],
        moodDistribution=trends["mood_distribution"],
        intensityTrend=trends["intensity_trend"],
        daysWithData=trends["days_with_data"],
    )


@router.get("/analytics", response_model=MoodAnalyticsResponse)
async def get_analytics(
    days: int = Query(7, ge=1, le=365),
    orchestrator: MoodOrchestrator = Depends(get_orchestrator),
):
    analytics = await orchestrator.get_mood_analytics(days)
    return MoodAnalyticsResponse(
        summaries=[doc_to_summary(s) for s in analytics["summaries"]],
        recentAnalyses=[doc_to_analysis(a) for a in analytics["recent_analyses"]],
        todaysSummary=doc_to_summary(analytics["todays_summary"]),
    )


@router.get("/insights/{day}", response_model=MoodInsightsResponse)
async def get_insights(
    day: str = Path(..., pattern=r"^\d{4}-\d{2}-\d{2}$"),
    orchestrator: MoodOrchestrator = Depends(get_orchestrator),
):
    """stored rollup and analyses for one calendar day"""
    insights = await orchestrator.get_mood_insights(day)
    summary = insights["summary"]
    return MoodInsightsResponse(
        summary=doc_to_summary(summary) if summary else None,
        analyses=[doc_to_analysis(a) for a in insights["analyses"]],
        analysesBySource={
            source: [doc_to_analysis(a) for a in items]
            for source, items in insights["analyses_by_source"].items()
        },
        totalAnalyses=insights["total_analyses"],
    )


@router.post("/analyze", response_model=RealtimeUpdateResponse, status_code=status.HTTP_201_CREATED)
async def analyze(
    body: AnalyzeRequest,
    orchestrator: MoodOrchestrator = Depends(get_orchestrator),
):
    """classify content now and return it with today's rollup"""
    result = await orchestrator.handle_realtime_update(
        body.source, body.source_id, body.content, body.duration_minutes,
    )
    return RealtimeUpdateResponse(
        analysis=doc_to_analysis(result["analysis"]),
        todaysSummary=doc_to_summary(result["todays_summary"]),
    )


@router.post("/recalculate", response_model=RecalculateResponse)
async def recalculate(
    body: RecalculateRequest,
    orchestrator: MoodOrchestrator = Depends(get_orchestrator),
):
    """rebuild the rollups for an inclusive date range"""
    try:
        summaries = await orchestrator.recalculate_summaries(body.start_date, body.end_date)
    except ValueError as e:
        raise HTTPException(
            status_code=status.HTTP_422_UNPROCESSABLE_ENTITY,
            detail=str(e),
        )
    return RecalculateResponse(summaries=[doc_to_summary(s) for s in summaries], days=len(summaries))


@router.post("/process-unanalyzed", response_model=RetroAnalysisResponse)
async def process_unanalyzed(orchestrator: MoodOrchestrator = Depends(get_orchestrator)):
    """classify journals written before mood analysis existed"""
    result = await orchestrator.process_unanalyzed_journal_entries()
    return RetroAnalysisResponse(**result)


@router.get("/entries", response_model=list[MoodEntryResponse])
async def list_entries(
    limit: int = Query(50, ge=1, le=200),
    store: Persistence = Depends(get_persistence),
):
    return [_doc_to_entry(e) for e in await store.list_mood_entries(limit)]


@router.post("/entries", response_model=MoodEntryResponse, status_code=status.HTTP_201_CREATED)
async def create_entry(
    body: MoodEntryCreate,
    store: Persistence = Depends(get_persistence),
):
    """log a mood by hand"""
    return _doc_to_entry(await store.create_mood_entry(body.mood, body.intensity, body.note))
