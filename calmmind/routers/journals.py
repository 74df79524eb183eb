# journals router — list, write, edit and delete journal entries
# writing an entry classifies its mood inline

import logging
from fastapi import APIRouter, Depends, HTTPException, status, Query

from calmmind.models.journal import JournalCreate, JournalUpdate, JournalEntryResponse, JournalCreateResponse
from calmmind.services.mood_orchestrator import MoodOrchestrator
from calmmind.services.persistence import Persistence
from calmmind.dependencies import get_orchestrator, get_persistence
from calmmind.routers.mood import doc_to_analysis

logger = logging.getLogger(__name__)
router = APIRouter(prefix="/journals", tags=["journals"])


def _doc_to_journal(doc: dict) -> JournalEntryResponse:
    """convert a mongodb journal document to response model"""
    return JournalEntryResponse(
        id=doc.get("journal_id", ""),
        title=doc.get("title", ""),
        content=doc.get("content", ""),
        promptId=doc.get("prompt_id"),
        wordCount=doc.get("word_count", 0),
        createdAt=doc.get("created_at", ""),
        updatedAt=doc.get("updated_at"),
    )


@router.get("", response_model=list[JournalEntryResponse])
async def list_journals(
    limit: int = Query(50, ge=1, le=200),
    skip: int = Query(0, ge=0),
    store: Persistence = Depends(get_persistence),
):
    """list the user's journal entries, newest first"""
    return [_doc_to_journal(doc) for doc in await store.list_journals(limit=limit, skip=skip)]


@router.post("", response_model=JournalCreateResponse, status_code=status.HTTP_201_CREATED)
async def create_journal(
    body: JournalCreate,
    store: Persistence = Depends(get_persistence),
    orchestrator: MoodOrchestrator = Depends(get_orchestrator),
):
    """save an entry and classify its mood"""
    content = body.content.strip()
    if not content:
        raise HTTPException(
            status_code=status.HTTP_422_UNPROCESSABLE_ENTITY,
            detail="Journal content cannot be empty",
        )

    entry = await store.create_journal(body.title.strip(), content, body.prompt_id)
    analysis = await orchestrator.analyze_journal_entry(entry["journal_id"], content)
    logger.info(f"Journal {entry['journal_id']} saved ({entry['word_count']} words, {analysis['primary_mood']})")

    return JournalCreateResponse(entry=_doc_to_journal(entry), analysis=doc_to_analysis(analysis))


@router.get("/{journal_id}", response_model=JournalEntryResponse)
async def get_journal(journal_id: str, store: Persistence = Depends(get_persistence)):
    doc = await store.get_journal(journal_id)
    if not doc:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Journal entry not found")
    return _doc_to_journal(doc)


@router.patch("/{journal_id}", response_model=JournalEntryResponse)
async def update_journal(
    journal_id: str,
    body: JournalUpdate,
    store: Persistence = Depends(get_persistence),
):
    updates = body.model_dump(exclude_none=True)
    if not updates:
        raise HTTPException(
            status_code=status.HTTP_422_UNPROCESSABLE_ENTITY,
            detail="No fields to update",
        )

    if not await store.get_journal(journal_id):
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Journal entry not found")

    return _doc_to_journal(await store.update_journal(journal_id, updates))


@router.delete("/{journal_id}", status_code=status.HTTP_204_NO_CONTENT)
async def delete_journal(
    journal_id: str,
    store: Persistence = Depends(get_persistence),
    orchestrator: MoodOrchestrator = Depends(get_orchestrator),
):
    """delete an entry and its mood analyses, then refresh the affected rollups"""
    affected_days = await store.analysis_dates_for_source("journal", journal_id)
    if not await store.delete_journal(journal_id):
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Journal entry not found")
    for day in affected_days:
        await orchestrator.recompute_daily(day)
