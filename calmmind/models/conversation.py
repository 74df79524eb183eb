# conversation models — text chat threads and their messages

from typing import Literal, Optional
from pydantic import BaseModel, Field


class ConversationCreate(BaseModel):
    title: Optional[str] = Field(None, max_length=200)


class ConversationUpdate(BaseModel):
    title: str = Field(..., min_length=1, max_length=200)


class ConversationResponse(BaseModel):
    id: str
    title: str
    created_at: str = Field(..., alias="createdAt")
    updated_at: str = Field(..., alias="updatedAt")

    model_config = {"populate_by_name": True}


class MessageCreate(BaseModel):
    content: str = Field(..., min_length=1, max_length=5000)


class MessageResponse(BaseModel):
    id: str
    conversation_id: str = Field(..., alias="conversationId")
    role: Literal["user", "model"]
    content: str
    created_at: str = Field(..., alias="createdAt")

    model_config = {"populate_by_name": True}


class ConversationDetailResponse(ConversationResponse):
    messages: list[MessageResponse] = Field(default_factory=list)


class ChatTurnResponse(BaseModel):
    """result of posting a user message"""
    conversation: ConversationResponse
    user_message: MessageResponse = Field(..., alias="userMessage")
    reply: MessageResponse
    degraded: bool = False

    model_config = {"populate_by_name": True}
