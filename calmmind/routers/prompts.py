# prompts router — journal prompt library

import logging
from typing import Optional
from fastapi import APIRouter, HTTPException, status, Query

from calmmind.models.prompt import JournalPromptResponse, PromptCategoriesResponse
from calmmind.services.journal_prompts import (
    JOURNAL_PROMPTS, get_prompt, get_random_prompt, get_categories, get_difficulties,
)

logger = logging.getLogger(__name__)
router = APIRouter(prefix="/prompts", tags=["prompts"])


@router.get("", response_model=list[JournalPromptResponse])
async def list_prompts(
    category: Optional[str] = Query(None),
    difficulty: Optional[str] = Query(None),
):
    return [
        JournalPromptResponse(**p) for p in JOURNAL_PROMPTS
        if (not category or p["category"] == category)
        and (not difficulty or p["difficulty"] == difficulty)
    ]


@router.get("/random", response_model=JournalPromptResponse)
async def random_prompt(
    category: Optional[str] = Query(None),
    difficulty: Optional[str] = Query(None),
):
    """random prompt for the filters, any prompt when none match"""
    return JournalPromptResponse(**get_random_prompt(category, difficulty))


@router.get("/categories", response_model=PromptCategoriesResponse)
async def list_categories():
    return PromptCategoriesResponse(categories=get_categories(), difficulties=get_difficulties())


@router.get("/{prompt_id}", response_model=JournalPromptResponse)
async def get_one(prompt_id: str):
    prompt = get_prompt(prompt_id)
    if not prompt:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Prompt not found")
    return JournalPromptResponse(**prompt)
