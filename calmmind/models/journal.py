# journal models — entry creation, update and response schemas

from typing import Optional
from pydantic import BaseModel, Field

from calmmind.config import settings
from calmmind.models.mood import MoodAnalysisResponse


class JournalCreate(BaseModel):
    title: str = Field("", max_length=200)
    content: str = Field(
        ...,
        min_length=settings.JOURNAL_MIN_LENGTH,
        max_length=settings.JOURNAL_MAX_LENGTH,
        description="journal entry text",
    )
    prompt_id: Optional[str] = Field(None, alias="promptId", description="journal prompt the entry responds to")

    model_config = {"populate_by_name": True}


class JournalUpdate(BaseModel):
    title: Optional[str] = Field(None, max_length=200)
    content: Optional[str] = Field(None, min_length=settings.JOURNAL_MIN_LENGTH, max_length=settings.JOURNAL_MAX_LENGTH)


class JournalEntryResponse(BaseModel):
    id: str
    title: str = ""
    content: str
    prompt_id: Optional[str] = Field(None, alias="promptId")
    word_count: int = Field(0, alias="wordCount")
    created_at: str = Field(..., alias="createdAt")
    updated_at: Optional[str] = Field(None, alias="updatedAt")

    model_config = {"populate_by_name": True}


class JournalCreateResponse(BaseModel):
    """new entry together with its inline mood analysis"""
    entry: JournalEntryResponse
    analysis: MoodAnalysisResponse
