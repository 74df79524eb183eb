# weekly plan models — generated plans and their exercises

from typing import Literal
from pydantic import BaseModel, Field


class ExerciseResponse(BaseModel):
    id: str
    title: str
    description: str
    type: Literal["breathing", "journaling", "mindfulness", "behavioral", "cognitive", "physical"]
    duration: int
    difficulty: Literal["easy", "medium", "hard"]
    instructions: list[str] = Field(default_factory=list)
    benefits: list[str] = Field(default_factory=list)
    due_date: str = Field(..., alias="dueDate")
    completed: bool = False

    model_config = {"populate_by_name": True}


class WeeklyPlanResponse(BaseModel):
    id: str
    title: str
    description: str
    target_area: str = Field(..., alias="targetArea")
    confidence: float
    insights: list[str] = Field(default_factory=list)
    week_of: str = Field(..., alias="weekOf")
    progress: float = 0.0
    completed: bool = False
    created_at: str = Field(..., alias="createdAt")
    exercises: list[ExerciseResponse] = Field(default_factory=list)

    model_config = {"populate_by_name": True}


class ExerciseToggle(BaseModel):
    completed: bool
