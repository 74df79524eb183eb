# mood models — analyses, daily rollups, trends and manual mood entries

from typing import Literal, Optional
from pydantic import BaseModel, Field

MoodType = Literal["happy", "peaceful", "excited", "sad", "anxious", "frustrated", "neutral"]
SourceKind = Literal["journal", "voice", "chat"]


class MoodAnalysisResponse(BaseModel):
    id: str
    source: SourceKind
    source_id: str = Field(..., alias="sourceId")
    primary_mood: str = Field(..., alias="primaryMood")
    secondary_mood: Optional[str] = Field(None, alias="secondaryMood")
    intensity: int
    confidence: float
    reasoning: str = ""
    key_emotions: list[str] = Field(default_factory=list, alias="keyEmotions")
    duration_minutes: Optional[int] = Field(None, alias="durationMinutes")
    date: str
    created_at: str = Field(..., alias="createdAt")

    model_config = {"populate_by_name": True}


class DailyMoodSummaryResponse(BaseModel):
    date: str
    primary_mood: str = Field(..., alias="primaryMood")
    secondary_mood: Optional[str] = Field(None, alias="secondaryMood")
    average_intensity: float = Field(..., alias="averageIntensity")
    overall_confidence: float = Field(..., alias="overallConfidence")
    reasoning: str = ""
    key_emotions: list[str] = Field(default_factory=list, alias="keyEmotions")
    analysis_count: int = Field(0, alias="analysisCount")
    last_updated: Optional[str] = Field(None, alias="lastUpdated")

    model_config = {"populate_by_name": True}


class MoodTrendsResponse(BaseModel):
    average_intensity: float = Field(..., alias="averageIntensity")
    dominant_mood: str = Field(..., alias="dominantMood")
    mood_distribution: dict[str, int] = Field(default_factory=dict, alias="moodDistribution")
    intensity_trend: Literal["improving", "declining", "stable"] = Field(..., alias="intensityTrend")
    days_with_data: int = Field(0, alias="daysWithData")

    model_config = {"populate_by_name": True}


class MoodAnalyticsResponse(BaseModel):
    summaries: list[DailyMoodSummaryResponse]
    recent_analyses: list[MoodAnalysisResponse] = Field(..., alias="recentAnalyses")
    todays_summary: DailyMoodSummaryResponse = Field(..., alias="todaysSummary")

    model_config = {"populate_by_name": True}


class MoodInsightsResponse(BaseModel):
    summary: Optional[DailyMoodSummaryResponse] = None
    analyses: list[MoodAnalysisResponse]
    analyses_by_source: dict[str, list[MoodAnalysisResponse]] = Field(..., alias="analysesBySource")
    total_analyses: int = Field(..., alias="totalAnalyses")

    model_config = {"populate_by_name": True}


class AnalyzeRequest(BaseModel):
    """classify one piece of content right away"""
    source: SourceKind
    source_id: str = Field(..., alias="sourceId", min_length=1)
    content: str = Field(..., min_length=1, max_length=20000)
    duration_minutes: Optional[int] = Field(None, alias="durationMinutes", ge=1)

    model_config = {"populate_by_name": True}


class RealtimeUpdateResponse(BaseModel):
    analysis: MoodAnalysisResponse
    todays_summary: DailyMoodSummaryResponse = Field(..., alias="todaysSummary")

    model_config = {"populate_by_name": True}


class RecalculateRequest(BaseModel):
    start_date: str = Field(..., alias="startDate", pattern=r"^\d{4}-\d{2}-\d{2}$")
    end_date: str = Field(..., alias="endDate", pattern=r"^\d{4}-\d{2}-\d{2}$")

    model_config = {"populate_by_name": True}


class RecalculateResponse(BaseModel):
    summaries: list[DailyMoodSummaryResponse]
    days: int


class RetroAnalysisResponse(BaseModel):
    processed: int
    errors: list[str] = Field(default_factory=list)


class MoodEntryCreate(BaseModel):
    mood: MoodType
    intensity: int = Field(..., ge=1, le=10)
    note: str = Field("", max_length=2000)


class MoodEntryResponse(BaseModel):
    id: str
    mood: str
    intensity: int
    note: str = ""
    created_at: str = Field(..., alias="createdAt")

    model_config = {"populate_by_name": True}
