# journal prompt models — library prompts and their filters

from typing import Literal
from pydantic import BaseModel


class JournalPromptResponse(BaseModel):
    id: str
    text: str
    category: str
    difficulty: Literal["easy", "medium", "hard"]


class PromptCategoriesResponse(BaseModel):
    categories: list[str]
    difficulties: list[str]
