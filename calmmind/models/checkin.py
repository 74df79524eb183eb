# check-in models — one mood pick plus a short reflection

from pydantic import BaseModel, Field

from calmmind.models.mood import MoodType


class CheckinCreate(BaseModel):
    mood: MoodType
    reflection: str = Field("", max_length=2000)


class CheckinResponse(BaseModel):
    id: str
    mood: str
    reflection: str = ""
    date: str
    created_at: str = Field(..., alias="createdAt")

    model_config = {"populate_by_name": True}
