# plans router — weekly wellness plans generated from recent mood analyses

import logging
from datetime import date
from fastapi import APIRouter, Depends, HTTPException, status, Query

from calmmind.models.plan import WeeklyPlanResponse, ExerciseResponse, ExerciseToggle
from calmmind.services.dates import local_today, start_of_week
from calmmind.services.gemini import GeminiGateway, get_gateway
from calmmind.services.persistence import Persistence
from calmmind.services.plan_generator import PlanGenerator, build_mood_pattern
from calmmind.dependencies import get_persistence

logger = logging.getLogger(__name__)
router = APIRouter(prefix="/plans", tags=["plans"])

# analyses considered when building the mood pattern
PATTERN_WINDOW = 50


def _doc_to_exercise(doc: dict) -> ExerciseResponse:
    return ExerciseResponse(
        id=doc.get("exercise_id", ""),
        title=doc.get("title", ""),
        description=doc.get("description", ""),
        type=doc.get("type", "mindfulness"),
        duration=doc.get("duration", 10),
        difficulty=doc.get("difficulty", "easy"),
        instructions=doc.get("instructions", []),
        benefits=doc.get("benefits", []),
        dueDate=doc.get("due_date", ""),
        completed=doc.get("completed", False),
    )


def _doc_to_plan(doc: dict) -> WeeklyPlanResponse:
    """convert a stored plan (with exercises attached) to response model"""
    return WeeklyPlanResponse(
        id=doc.get("plan_id", ""),
        title=doc.get("title", ""),
        description=doc.get("description", ""),
        targetArea=doc.get("target_area", ""),
        confidence=doc.get("confidence", 0.0),
        insights=doc.get("insights", []),
        weekOf=doc.get("week_of", ""),
        progress=doc.get("progress", 0.0),
        completed=doc.get("completed", False),
        createdAt=doc.get("created_at", ""),
        exercises=[_doc_to_exercise(e) for e in doc.get("exercises", [])],
    )


@router.post("/generate", response_model=WeeklyPlanResponse, status_code=status.HTTP_201_CREATED)
async def generate_plan(
    store: Persistence = Depends(get_persistence),
    gateway: GeminiGateway = Depends(get_gateway),
):
    """build a plan from the user's recent mood analyses"""
    analyses = await store.list_mood_analyses(PATTERN_WINDOW)
    pattern = build_mood_pattern(analyses)
    if pattern is None:
        raise HTTPException(
            status_code=status.HTTP_422_UNPROCESSABLE_ENTITY,
            detail="No mood data available",
        )

    plan = await PlanGenerator(gateway).generate_weekly_plan(pattern)
    week_of = start_of_week(date.fromisoformat(local_today())).isoformat()
    stored = await store.create_weekly_plan(plan, plan["exercises"], week_of)
    logger.info(f"Weekly plan {stored['plan_id']} created for mood {pattern['primary_mood']}")
    return _doc_to_plan(stored)


@router.get("", response_model=list[WeeklyPlanResponse])
async def list_plans(
    limit: int = Query(20, ge=1, le=100),
    store: Persistence = Depends(get_persistence),
):
    return [_doc_to_plan(p) for p in await store.list_weekly_plans(limit)]


@router.get("/{plan_id}", response_model=WeeklyPlanResponse)
async def get_plan(plan_id: str, store: Persistence = Depends(get_persistence)):
    plan = await store.get_weekly_plan(plan_id)
    if not plan:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Plan not found")
    return _doc_to_plan(plan)


@router.patch("/{plan_id}/exercises/{exercise_id}", response_model=WeeklyPlanResponse)
async def toggle_exercise(
    plan_id: str,
    exercise_id: str,
    body: ExerciseToggle,
    store: Persistence = Depends(get_persistence),
):
    """mark an exercise done or not done; plan progress follows"""
    plan = await store.set_exercise_completed(plan_id, exercise_id, body.completed)
    if not plan:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Exercise not found")
    return _doc_to_plan(plan)
