# ai gateway — langchain-powered access to gemini
# free-text chat replies, structured mood classification, titles and plan text
#
# every model call goes through a langchain chain; failures are raised as
# GatewayError and malformed structured output is replaced by a documented
# fallback instead of being partially trusted

import json
import logging
import math
import re
from dataclasses import dataclass, field
from typing import Any, Optional

from langchain_core.language_models import BaseChatModel
from langchain_core.messages import AIMessage, BaseMessage, HumanMessage, SystemMessage
from langchain_core.output_parsers import StrOutputParser
from langchain_core.prompts import ChatPromptTemplate
from langchain_google_genai import ChatGoogleGenerativeAI
from pydantic import BaseModel, Field, ValidationError, field_validator

from calmmind.config import settings
from calmmind.errors import GatewayError

logger = logging.getLogger(__name__)

MOOD_TYPES = ("happy", "peaceful", "excited", "sad", "anxious", "frustrated", "neutral")
SOURCE_KINDS = ("journal", "voice", "chat")

MAX_KEY_EMOTIONS = 5
TITLE_FALLBACK_LENGTH = 40

# max conversation history messages sent to the llm
MAX_HISTORY_MESSAGES = 20

CHAT_SYSTEM_PROMPT = """You are CalmMind, a compassionate AI therapy companion. Your role is to provide emotional support, active listening, and gentle guidance.

Guidelines:
- Be warm, empathetic, and non-judgmental
- Use reflective listening techniques
- Ask open-ended questions to help users explore their feelings
- Offer coping strategies when appropriate
- Validate emotions and experiences
- If someone expresses crisis thoughts, gently suggest professional help
- Keep responses to 2-3 sentences"""


def get_llm(temperature: float = 0.7, max_output_tokens: int = 2048) -> ChatGoogleGenerativeAI:
    """create a gemini chat model"""
    return ChatGoogleGenerativeAI(
        model=settings.GEMINI_MODEL,
        google_api_key=settings.GEMINI_API_KEY,
        temperature=temperature,
        max_output_tokens=max_output_tokens,
    )


# mood classification

MOOD_PROMPT = ChatPromptTemplate.from_messages([
    ("system", """You analyze the emotional content of text written or spoken by a user of a mental wellness app.
Classify the mood using ONLY these labels: happy, peaceful, excited, sad, anxious, frustrated, neutral.

Respond with ONLY a JSON object of this shape:
{{
  "primaryMood": "one of the labels",
  "secondaryMood": "one of the labels or null",
  "intensity": 1-10,
  "confidence": 0.0-1.0,
  "reasoning": "one or two sentences",
  "keyEmotions": ["up to five short emotion words"]
}}"""),
    ("human", "Source: {source}\n\nText:\n{text}"),
])


class MoodClassification(BaseModel):
    """strictly decoded classification payload"""
    primary_mood: str = Field(..., alias="primaryMood")
    secondary_mood: Optional[str] = Field(None, alias="secondaryMood")
    intensity: int
    confidence: float
    reasoning: str = ""
    key_emotions: list[str] = Field(default_factory=list, alias="keyEmotions")

    model_config = {"populate_by_name": True}

    @field_validator("primary_mood", mode="before")
    @classmethod
    def _coerce_primary(cls, value: Any) -> str:
        return coerce_mood(value)

    @field_validator("secondary_mood", mode="before")
    @classmethod
    def _coerce_secondary(cls, value: Any) -> Optional[str]:
        if value is None or (isinstance(value, str) and value.strip().lower() in ("", "null", "none")):
            return None
        return coerce_mood(value)

    @field_validator("intensity", mode="before")
    @classmethod
    def _clamp_intensity(cls, value: Any) -> int:
        if isinstance(value, bool):
            raise ValueError("intensity must be numeric")
        return max(1, min(10, round(_finite(value))))

    @field_validator("confidence", mode="before")
    @classmethod
    def _clamp_confidence(cls, value: Any) -> float:
        if isinstance(value, bool):
            raise ValueError("confidence must be numeric")
        return max(0.0, min(1.0, _finite(value)))

    @field_validator("reasoning", mode="before")
    @classmethod
    def _reasoning_text(cls, value: Any) -> str:
        return "" if value is None else str(value)

    @field_validator("key_emotions", mode="before")
    @classmethod
    def _trim_emotions(cls, value: Any) -> list[str]:
        if value is None:
            return []
        if not isinstance(value, list):
            raise ValueError("keyEmotions must be a list")
        emotions = [str(e).strip() for e in value if str(e).strip()]
        return emotions[:MAX_KEY_EMOTIONS]


def _finite(value: Any) -> float:
    try:
        number = float(value)
    except TypeError as e:
        raise ValueError("value must be numeric") from e
    if not math.isfinite(number):
        raise ValueError("value must be finite")
    return number


def coerce_mood(value: Any) -> str:
    """map any label onto the mood enum, unknown labels become neutral"""
    label = str(value).strip().lower() if value is not None else ""
    return label if label in MOOD_TYPES else "neutral"


def fallback_classification() -> dict:
    return {
        "primary_mood": "neutral",
        "secondary_mood": None,
        "intensity": 5,
        "confidence": 0.3,
        "reasoning": "analysis failed",
        "key_emotions": [],
    }


def extract_json_object(text: str) -> dict:
    """decode the first json object in a model reply.
    tries the whole reply first (after stripping code fences), then the
    outermost {...} span. raises ValueError when no object can be decoded."""
    cleaned = text.strip()
    if cleaned.startswith("```"):
        cleaned = re.sub(r"^```(?:json)?\s*", "", cleaned)
        cleaned = re.sub(r"\s*```$", "", cleaned)

    try:
        parsed = json.loads(cleaned)
    except json.JSONDecodeError:
        match = re.search(r"\{[\s\S]*\}", cleaned)
        if not match:
            raise ValueError("no json object in response")
        try:
            parsed = json.loads(match.group(0))
        except json.JSONDecodeError as e:
            raise ValueError(f"invalid json in response: {e}") from e

    if not isinstance(parsed, dict):
        raise ValueError("response json is not an object")
    return parsed


def parse_classification(text: str) -> dict:
    """strict parse-or-fallback of a classification reply"""
    try:
        payload = extract_json_object(text)
        return MoodClassification.model_validate(payload).model_dump()
    except (ValueError, ValidationError) as e:
        logger.warning(f"Unusable mood classification, using fallback: {e}")
        return fallback_classification()


# titles

TITLE_PROMPT = ChatPromptTemplate.from_messages([
    ("system", "Write a short, gentle title (at most 6 words) for a conversation that starts with the user's message. "
     "Respond with ONLY the title, no quotes or punctuation at the end."),
    ("human", "{seed}"),
])


def fallback_title(seed: str) -> str:
    text = " ".join(seed.split())
    if len(text) <= TITLE_FALLBACK_LENGTH:
        return text or "New conversation"
    return text[:TITLE_FALLBACK_LENGTH].rstrip() + "..."


# chat sessions

@dataclass
class ChatSession:
    """conversation context owned by exactly one chat surface"""
    system_prompt: str = CHAT_SYSTEM_PROMPT
    history: list[BaseMessage] = field(default_factory=list)

    @classmethod
    def from_messages(cls, messages: list[dict], system_prompt: str = CHAT_SYSTEM_PROMPT) -> "ChatSession":
        """rebuild a session from stored {role, content} messages"""
        history: list[BaseMessage] = []
        for msg in messages:
            if msg.get("role") == "user":
                history.append(HumanMessage(content=msg.get("content", "")))
            else:
                history.append(AIMessage(content=msg.get("content", "")))
        return cls(system_prompt=system_prompt, history=history)


class GeminiGateway:
    """all calls to the hosted language model"""

    def __init__(
        self,
        chat_llm: Optional[BaseChatModel] = None,
        analysis_llm: Optional[BaseChatModel] = None,
    ):
        self._chat_llm = chat_llm
        self._analysis_llm = analysis_llm

    @property
    def chat_llm(self):
        if self._chat_llm is None:
            self._chat_llm = get_llm(temperature=settings.CHAT_TEMPERATURE, max_output_tokens=1024)
        return self._chat_llm

    @property
    def analysis_llm(self):
        if self._analysis_llm is None:
            self._analysis_llm = get_llm(temperature=settings.ANALYSIS_TEMPERATURE, max_output_tokens=4096)
        return self._analysis_llm

    async def generate(self, prompt: ChatPromptTemplate, inputs: dict) -> str:
        """run a prompt through the analysis model and return the raw text"""
        chain = prompt | self.analysis_llm | StrOutputParser()
        try:
            text = await chain.ainvoke(inputs)
        except Exception as e:
            raise GatewayError(f"Gemini generation failed: {e}") from e
        if not text or not text.strip():
            raise GatewayError("Gemini returned an empty response")
        return text

    async def chat(self, session: ChatSession, message: str) -> str:
        """send one user turn; history is only extended when the call succeeds"""
        messages = [
            SystemMessage(content=session.system_prompt),
            *session.history[-MAX_HISTORY_MESSAGES:],
            HumanMessage(content=message),
        ]
        chain = self.chat_llm | StrOutputParser()
        try:
            reply = await chain.ainvoke(messages)
        except Exception as e:
            logger.error(f"Gemini chat failed: {e}")
            raise GatewayError(f"Gemini chat failed: {e}") from e

        reply = (reply or "").strip()
        if not reply:
            raise GatewayError("Gemini returned an empty chat reply")

        session.history.append(HumanMessage(content=message))
        session.history.append(AIMessage(content=reply))
        return reply

    async def classify(self, text: str, source: str) -> dict:
        """classify mood of a text. malformed replies become the fallback,
        call failures raise GatewayError."""
        raw = await self.generate(MOOD_PROMPT, {"text": text, "source": source})
        return parse_classification(raw)

    async def generate_title(self, seed: str) -> str:
        """short conversation title, falls back to the truncated seed"""
        try:
            raw = await self.generate(TITLE_PROMPT, {"seed": seed})
        except GatewayError as e:
            logger.warning(f"Title generation failed, using seed text: {e}")
            return fallback_title(seed)

        title = raw.strip().splitlines()[0].strip().strip("\"'").strip()
        if not title:
            return fallback_title(seed)
        return title[:60]


# shared gateway instance for request handlers
_gateway: Optional[GeminiGateway] = None


def get_gateway() -> GeminiGateway:
    """dependency injection for the ai gateway"""
    global _gateway
    if _gateway is None:
        _gateway = GeminiGateway()
    return _gateway
