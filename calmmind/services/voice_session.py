# voice session — speak, get an ai reply, hear it spoken back
#
# idle/error --start--> listening --stop--> processing --reply--> speaking --done--> idle
#
# the session owns exactly one chat handle, never reorders its turns and
# ignores start/stop calls made from the wrong state or while a start is
# still waiting on the microphone. recognition results keep arriving after
# stop until capture ends. once end() runs every late callback and any
# in-flight chat result is discarded; the chat call itself runs to completion.

import asyncio
import logging
import time
import uuid
from dataclasses import dataclass, field
from enum import Enum
from typing import Callable, Optional

from calmmind.errors import DeviceError, GatewayError
from calmmind.services.dates import now_utc
from calmmind.services.gemini import CHAT_SYSTEM_PROMPT, ChatSession, GeminiGateway
from calmmind.services.mood_orchestrator import MoodOrchestrator, classify_in_background
from calmmind.services.speech import SpeechBridge, describe_recognition_error, prepare_for_speech

logger = logging.getLogger(__name__)

VOICE_SYSTEM_PROMPT = CHAT_SYSTEM_PROMPT + "\n\nThe user will be speaking to you, so keep replies natural to hear aloud."
AI_FAILURE_MESSAGE = "Failed to get AI response. Please try again."


class VoiceState(str, Enum):
    IDLE = "idle"
    LISTENING = "listening"
    PROCESSING = "processing"
    SPEAKING = "speaking"
    ERROR = "error"


@dataclass
class Turn:
    speaker: str  # user | ai
    text: str
    timestamp: str = field(default_factory=lambda: now_utc().isoformat())


class VoiceSession:
    def __init__(
        self,
        gateway: GeminiGateway,
        bridge: SpeechBridge,
        orchestrator: Optional[MoodOrchestrator] = None,
        system_prompt: str = VOICE_SYSTEM_PROMPT,
        on_change: Optional[Callable[[dict], None]] = None,
        session_id: Optional[str] = None,
        clock: Callable[[], float] = time.monotonic,
    ):
        self.gateway = gateway
        self.bridge = bridge
        self.orchestrator = orchestrator
        self.session_id = session_id or f"voice_{uuid.uuid4().hex[:12]}"
        self.chat = ChatSession(system_prompt=system_prompt)
        self.on_change = on_change
        self._clock = clock
        self._started_at = clock()

        self.state = VoiceState.IDLE
        self.final_transcript = ""
        self.interim_transcript = ""
        self.turns: list[Turn] = []
        self.error: Optional[str] = None
        self.alive = True
        self.mood_task: Optional[asyncio.Task] = None
        self._turn_task: Optional[asyncio.Task] = None
        self._starting = False

    # state

    @property
    def transcript(self) -> str:
        return (self.final_transcript + self.interim_transcript).strip()

    def snapshot(self) -> dict:
        return {
            "type": "state",
            "state": self.state.value,
            "transcript": self.transcript,
            "turns": [{"speaker": t.speaker, "text": t.text, "timestamp": t.timestamp} for t in self.turns],
            "error": self.error,
        }

    def _set_state(self, state: VoiceState, error: Optional[str] = None) -> None:
        self.state = state
        self.error = error
        logger.info(f"Voice session {self.session_id} -> {state.value}")
        self._notify()

    def _notify(self) -> None:
        if self.alive and self.on_change:
            self.on_change(self.snapshot())

    # controls

    async def start(self) -> None:
        if not self.alive or self._starting or self.state not in (VoiceState.IDLE, VoiceState.ERROR):
            logger.info(f"Ignoring start in state {self.state.value}")
            return

        self._starting = True
        try:
            await self.bridge.request_microphone()
        except DeviceError as e:
            logger.warning(f"Microphone unavailable for voice session {self.session_id}: {e}")
            if self.alive:
                self._set_state(VoiceState.ERROR, str(e))
            return
        finally:
            self._starting = False

        if not self.alive:
            return
        self.final_transcript = ""
        self.interim_transcript = ""
        self._set_state(VoiceState.LISTENING)
        await self.bridge.start_capture(self._on_result, self._on_capture_error, self._on_capture_end)

    async def stop(self) -> None:
        if not self.alive or self.state != VoiceState.LISTENING:
            logger.info(f"Ignoring stop in state {self.state.value}")
            return
        self._set_state(VoiceState.PROCESSING)
        await self.bridge.stop_capture()

    # capture callbacks

    def _on_result(self, text: str, is_final: bool) -> None:
        # the recogniser flushes its last result between stop and end
        if not self.alive or self.state not in (VoiceState.LISTENING, VoiceState.PROCESSING):
            return
        if is_final:
            self.final_transcript += text + " "
            self.interim_transcript = ""
        else:
            self.interim_transcript = text
        self._notify()

    def _on_capture_error(self, code: str) -> None:
        if not self.alive:
            return
        logger.error(f"Speech recognition error in voice session {self.session_id}: {code}")
        self._set_state(VoiceState.ERROR, describe_recognition_error(code))

    def _on_capture_end(self) -> None:
        if not self.alive:
            return
        if self.state == VoiceState.LISTENING:
            # capture ended on its own
            self._set_state(VoiceState.IDLE)
        elif self.state == VoiceState.PROCESSING:
            self._turn_task = asyncio.create_task(self._respond(self.transcript))

    # turn

    async def _respond(self, text: str) -> None:
        if not text:
            self._set_state(VoiceState.IDLE)
            return

        try:
            reply = await self.gateway.chat(self.chat, text)
        except GatewayError as e:
            logger.error(f"Voice session {self.session_id} chat failed: {e}")
            if self.alive:
                self._set_state(VoiceState.ERROR, AI_FAILURE_MESSAGE)
            return

        if not self.alive:
            return

        self.turns.append(Turn(speaker="user", text=text))
        self.turns.append(Turn(speaker="ai", text=reply))
        self.final_transcript = ""
        self.interim_transcript = ""
        self._set_state(VoiceState.SPEAKING)
        await self.bridge.speak(prepare_for_speech(reply), self._on_speech_end, self._on_speech_error)

    def _on_speech_end(self) -> None:
        if self.alive and self.state == VoiceState.SPEAKING:
            self._set_state(VoiceState.IDLE)

    def _on_speech_error(self, code: str) -> None:
        if not self.alive:
            return
        logger.warning(f"Speech playback error in voice session {self.session_id}: {code}")
        if self.state == VoiceState.SPEAKING:
            self._set_state(VoiceState.IDLE)

    # teardown

    def duration_minutes(self) -> int:
        return max(1, round((self._clock() - self._started_at) / 60))

    async def end(self) -> Optional[asyncio.Task]:
        """tear down the session. returns the background mood task, if any"""
        if not self.alive:
            return self.mood_task
        self.alive = False

        for action in (self.bridge.stop_capture, self.bridge.cancel_speech):
            try:
                await action()
            except Exception as e:
                logger.warning(f"Speech teardown failed for voice session {self.session_id}: {e}")

        if self.turns and self.orchestrator is not None:
            user_text = " ".join(t.text for t in self.turns if t.speaker == "user")
            self.mood_task = classify_in_background(
                self.orchestrator, "voice", self.session_id, user_text, self.duration_minutes(),
            )

        logger.info(f"Voice session {self.session_id} ended after {len(self.turns)} turns")
        self.turns = []
        self.final_transcript = ""
        self.interim_transcript = ""
        self.error = None
        self.chat = ChatSession(system_prompt=self.chat.system_prompt)
        return self.mood_task
