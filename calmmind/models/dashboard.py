# dashboard models — stats cards, weekly series and insight lines

from pydantic import BaseModel, Field


class WeeklyMoodPoint(BaseModel):
    date: str
    day: str
    mood: str
    emoji: str
    intensity: float
    confidence: int
    analysis_count: int = Field(0, alias="analysisCount")

    model_config = {"populate_by_name": True}


class MoodDashboardResponse(BaseModel):
    days_tracked: int = Field(..., alias="daysTracked")
    positive_days_percentage: int = Field(..., alias="positiveDaysPercentage")
    mood_trend: str = Field(..., alias="moodTrend")
    weekly_data: list[WeeklyMoodPoint] = Field(default_factory=list, alias="weeklyData")
    insights: list[str] = Field(default_factory=list)

    model_config = {"populate_by_name": True}


class DashboardStatsResponse(BaseModel):
    """counts for the home screen"""
    journal_count: int = Field(0, alias="journalCount")
    conversation_count: int = Field(0, alias="conversationCount")
    checkin_count: int = Field(0, alias="checkinCount")
    analysis_count: int = Field(0, alias="analysisCount")

    model_config = {"populate_by_name": True}
