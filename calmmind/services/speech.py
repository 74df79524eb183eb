# speech bridge — speech-to-text capture and text-to-speech playback
# the browser owns the microphone and the speaker; the backend drives them
# through this interface and receives their events back over a websocket

import asyncio
import logging
import re
from abc import ABC, abstractmethod
from typing import Awaitable, Callable, Optional

from fastapi import WebSocket

from calmmind.errors import DeviceError

logger = logging.getLogger(__name__)

ResultCallback = Callable[[str, bool], None]
ErrorCallback = Callable[[str], None]
EndCallback = Callable[[], None]

MICROPHONE_TIMEOUT_SECONDS = 30.0

RECOGNITION_ERRORS = {
    "network": "Network error. Please check your internet connection and try again.",
    "not-allowed": "Microphone access denied. Please allow microphone permissions.",
    "no-speech": "No speech detected. Please try speaking again.",
}

MICROPHONE_DENIED_MESSAGE = (
    "Microphone access denied. Please allow microphone access in your browser settings and try again."
)


def describe_recognition_error(code: str) -> str:
    """user-facing text for a capture engine error; always carries the raw code"""
    message = RECOGNITION_ERRORS.get(code, "Speech recognition failed.")
    return f"{message} (error: {code})"


def prepare_for_speech(text: str) -> str:
    """pause markers after sentence ends, spacing after clause punctuation"""
    spoken = re.sub(r"([.!?])(?=\s|$)", r"\1.. ", text)
    spoken = re.sub(r"([,;:])(?=\S)", r"\1 ", spoken)
    return re.sub(r" {2,}", " ", spoken).strip()


class SpeechBridge(ABC):
    """operations against the device speech engines"""

    @abstractmethod
    async def request_microphone(self) -> None:
        """ask for microphone permission; raises DeviceError when refused"""

    @abstractmethod
    async def start_capture(self, on_result: ResultCallback, on_error: ErrorCallback, on_end: EndCallback) -> None:
        ...

    @abstractmethod
    async def stop_capture(self) -> None:
        ...

    @abstractmethod
    async def speak(self, text: str, on_end: EndCallback, on_error: ErrorCallback) -> None:
        ...

    @abstractmethod
    async def cancel_speech(self) -> None:
        ...


class WebSocketSpeechBridge(SpeechBridge):
    """relays speech commands to a connected browser and routes its events
    back to the registered callbacks"""

    def __init__(
        self,
        send: Callable[[dict], Awaitable[None]],
        microphone_timeout: float = MICROPHONE_TIMEOUT_SECONDS,
    ):
        self._send = send
        self._microphone_timeout = microphone_timeout
        self._microphone: Optional[asyncio.Future] = None
        self._on_result: Optional[ResultCallback] = None
        self._on_capture_error: Optional[ErrorCallback] = None
        self._on_capture_end: Optional[EndCallback] = None
        self._on_speech_end: Optional[EndCallback] = None
        self._on_speech_error: Optional[ErrorCallback] = None
        self._closed = False

    @classmethod
    def for_websocket(cls, websocket: WebSocket, **kwargs) -> "WebSocketSpeechBridge":
        return cls(websocket.send_json, **kwargs)

    async def _command(self, command: str, **payload) -> None:
        if self._closed:
            return
        await self._send({"type": command, **payload})

    async def request_microphone(self) -> None:
        loop = asyncio.get_running_loop()
        self._microphone = loop.create_future()
        await self._command("request_microphone")
        try:
            granted = await asyncio.wait_for(self._microphone, timeout=self._microphone_timeout)
        except asyncio.TimeoutError as e:
            raise DeviceError("Microphone permission request timed out") from e
        finally:
            self._microphone = None
        if not granted:
            raise DeviceError(MICROPHONE_DENIED_MESSAGE)

    async def start_capture(self, on_result: ResultCallback, on_error: ErrorCallback, on_end: EndCallback) -> None:
        self._on_result = on_result
        self._on_capture_error = on_error
        self._on_capture_end = on_end
        await self._command("start_capture")

    async def stop_capture(self) -> None:
        await self._command("stop_capture")

    async def speak(self, text: str, on_end: EndCallback, on_error: ErrorCallback) -> None:
        self._on_speech_end = on_end
        self._on_speech_error = on_error
        await self._command("speak", text=text)

    async def cancel_speech(self) -> None:
        self._on_speech_end = None
        self._on_speech_error = None
        await self._command("cancel_speech")

    def handle_client_event(self, event: dict) -> bool:
        """route one browser event to its callback. returns False for events
        this bridge does not own."""
        kind = event.get("type")

        if kind == "microphone":
            if self._microphone is not None and not self._microphone.done():
                self._microphone.set_result(bool(event.get("granted")))
        elif kind == "transcript":
            if self._on_result:
                self._on_result(str(event.get("text", "")), bool(event.get("final", False)))
        elif kind == "capture_error":
            if self._on_capture_error:
                self._on_capture_error(str(event.get("error", "unknown")))
        elif kind == "capture_end":
            if self._on_capture_end:
                self._on_capture_end()
        elif kind == "speech_end":
            callback, self._on_speech_end = self._on_speech_end, None
            if callback:
                callback()
        elif kind == "speech_error":
            callback, self._on_speech_error = self._on_speech_error, None
            self._on_speech_end = None
            if callback:
                callback(str(event.get("error", "unknown")))
        else:
            return False
        return True

    def close(self) -> None:
        """stop relaying commands; pending permission requests are refused"""
        self._closed = True
        if self._microphone is not None and not self._microphone.done():
            self._microphone.set_result(False)
        self._on_result = None
        self._on_capture_error = None
        self._on_capture_end = None
        self._on_speech_end = None
        self._on_speech_error = None
