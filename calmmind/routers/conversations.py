# conversations router — text chat threads with the ai companion
# each reply is built from the thread's stored history; user messages are
# mood-classified in the background

import logging
from fastapi import APIRouter, Depends, HTTPException, status

from calmmind.config import settings
from calmmind.errors import GatewayError
from calmmind.models.conversation import (
    ConversationCreate, ConversationUpdate, ConversationResponse, ConversationDetailResponse,
    MessageCreate, MessageResponse, ChatTurnResponse,
)
from calmmind.services.gemini import ChatSession, GeminiGateway, get_gateway
from calmmind.services.mood_orchestrator import MoodOrchestrator, classify_in_background
from calmmind.services.persistence import Persistence
from calmmind.dependencies import get_orchestrator, get_persistence

logger = logging.getLogger(__name__)
router = APIRouter(prefix="/conversations", tags=["conversations"])

DEFAULT_TITLE = "New conversation"


def _doc_to_conversation(doc: dict) -> ConversationResponse:
    """convert a mongodb conversation document to response model"""
    return ConversationResponse(
        id=doc.get("conversation_id", ""),
        title=doc.get("title") or DEFAULT_TITLE,
        createdAt=doc.get("created_at", ""),
        updatedAt=doc.get("updated_at", ""),
    )


def _doc_to_message(doc: dict) -> MessageResponse:
    return MessageResponse(
        id=doc.get("message_id", ""),
        conversationId=doc.get("conversation_id", ""),
        role=doc.get("role", "user"),
        content=doc.get("content", ""),
        createdAt=doc.get("created_at", ""),
    )


async def _get_or_404(store: Persistence, conversation_id: str) -> dict:
    conversation = await store.get_conversation(conversation_id)
    if not conversation:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Conversation not found")
    return conversation


@router.get("", response_model=list[ConversationResponse])
async def list_conversations(store: Persistence = Depends(get_persistence)):
    """list the user's conversations, most recently active first"""
    return [_doc_to_conversation(doc) for doc in await store.list_conversations()]


@router.post("", response_model=ConversationResponse, status_code=status.HTTP_201_CREATED)
async def create_conversation(body: ConversationCreate, store: Persistence = Depends(get_persistence)):
    title = (body.title or "").strip()
    return _doc_to_conversation(await store.create_conversation(title))


@router.get("/{conversation_id}", response_model=ConversationDetailResponse)
async def get_conversation(conversation_id: str, store: Persistence = Depends(get_persistence)):
    conversation = await _get_or_404(store, conversation_id)
    messages = await store.list_messages(conversation_id)
    return ConversationDetailResponse(
        **_doc_to_conversation(conversation).model_dump(by_alias=True),
        messages=[_doc_to_message(m) for m in messages],
    )


@router.patch("/{conversation_id}", response_model=ConversationResponse)
async def rename_conversation(
    conversation_id: str,
    body: ConversationUpdate,
    store: Persistence = Depends(get_persistence),
):
    await _get_or_404(store, conversation_id)
    await store.update_conversation_title(conversation_id, body.title.strip())
    return _doc_to_conversation(await store.get_conversation(conversation_id))


@router.delete("/{conversation_id}", status_code=status.HTTP_204_NO_CONTENT)
async def delete_conversation(conversation_id: str, store: Persistence = Depends(get_persistence)):
    """delete a conversation and its messages"""
    if not await store.delete_conversation(conversation_id):
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Conversation not found")


@router.post("/{conversation_id}/messages", response_model=ChatTurnResponse, status_code=status.HTTP_201_CREATED)
async def send_message(
    conversation_id: str,
    body: MessageCreate,
    store: Persistence = Depends(get_persistence),
    gateway: GeminiGateway = Depends(get_gateway),
    orchestrator: MoodOrchestrator = Depends(get_orchestrator),
):
    """send a user message and get the companion's reply"""
    conversation = await _get_or_404(store, conversation_id)
    content = body.content.strip()
    if not content:
        raise HTTPException(
            status_code=status.HTTP_422_UNPROCESSABLE_ENTITY,
            detail="Message cannot be empty",
        )

    history = await store.list_messages(conversation_id)
    session = ChatSession.from_messages(history)

    user_message = await store.create_message(conversation_id, "user", content)

    degraded = False
    try:
        reply_text = await gateway.chat(session, content)
    except GatewayError as e:
        logger.error(f"Chat reply failed for conversation {conversation_id}: {e}")
        reply_text = settings.CHAT_FALLBACK_MESSAGE
        degraded = True

    reply = await store.create_message(conversation_id, "model", reply_text)

    if not history and not conversation.get("title"):
        title = await gateway.generate_title(content)
        await store.update_conversation_title(conversation_id, title)
    else:
        await store.touch_conversation(conversation_id)

    classify_in_background(orchestrator, "chat", user_message["message_id"], content)

    return ChatTurnResponse(
        conversation=_doc_to_conversation(await store.get_conversation(conversation_id)),
        userMessage=_doc_to_message(user_message),
        reply=_doc_to_message(reply),
        degraded=degraded,
    )
