# checkins router — daily mood check-in with a short reflection

import logging
from fastapi import APIRouter, Depends, status, Query

from calmmind.models.checkin import CheckinCreate, CheckinResponse
from calmmind.services.persistence import Persistence
from calmmind.dependencies import get_persistence

logger = logging.getLogger(__name__)
router = APIRouter(prefix="/checkins", tags=["checkins"])


def _doc_to_checkin(doc: dict) -> CheckinResponse:
    return CheckinResponse(
        id=doc.get("checkin_id", ""),
        mood=doc.get("mood", "neutral"),
        reflection=doc.get("reflection", ""),
        date=doc.get("date", ""),
        createdAt=doc.get("created_at", ""),
    )


@router.get("", response_model=list[CheckinResponse])
async def list_checkins(
    limit: int = Query(30, ge=1, le=365),
    store: Persistence = Depends(get_persistence),
):
    return [_doc_to_checkin(doc) for doc in await store.list_checkins(limit)]


@router.post("", response_model=CheckinResponse, status_code=status.HTTP_201_CREATED)
async def create_checkin(body: CheckinCreate, store: Persistence = Depends(get_persistence)):
    doc = await store.create_checkin(body.mood, body.reflection.strip())
    logger.info(f"Check-in saved for {doc['date']}: {doc['mood']}")
    return _doc_to_checkin(doc)
