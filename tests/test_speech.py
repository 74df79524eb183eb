# tests for the speech bridge and spoken-text helpers

import asyncio

import pytest

from calmmind.errors import DeviceError
from calmmind.services.speech import (
    MICROPHONE_DENIED_MESSAGE,
    WebSocketSpeechBridge,
    describe_recognition_error,
    prepare_for_speech,
)


class TestSpeechText:
    """text helpers"""

    def test_known_error(self):
        assert describe_recognition_error("no-speech") == (
            "No speech detected. Please try speaking again. (error: no-speech)"
        )

    def test_unknown_error_keeps_code(self):
        assert describe_recognition_error("aborted") == "Speech recognition failed. (error: aborted)"

    def test_sentence_pauses(self):
        assert prepare_for_speech("Hello there. How are you?") == "Hello there... How are you?.."

    def test_clause_spacing(self):
        assert prepare_for_speech("first,second;third") == "first, second; third"

    def test_decimals_untouched(self):
        assert prepare_for_speech("Breathe for 2.5 minutes") == "Breathe for 2.5 minutes"


@pytest.fixture
def sent():
    return []


@pytest.fixture
def bridge(sent):
    async def send(message):
        sent.append(message)

    return WebSocketSpeechBridge(send, microphone_timeout=0.05)


class TestMicrophone:
    """permission handshake with the browser"""

    async def test_granted(self, bridge, sent):
        task = asyncio.create_task(bridge.request_microphone())
        await asyncio.sleep(0)
        assert sent == [{"type": "request_microphone"}]

        assert bridge.handle_client_event({"type": "microphone", "granted": True})
        await task

    async def test_denied(self, bridge):
        task = asyncio.create_task(bridge.request_microphone())
        await asyncio.sleep(0)
        bridge.handle_client_event({"type": "microphone", "granted": False})
        with pytest.raises(DeviceError) as exc_info:
            await task
        assert str(exc_info.value) == MICROPHONE_DENIED_MESSAGE

    async def test_timeout(self, bridge):
        with pytest.raises(DeviceError):
            await bridge.request_microphone()

    async def test_close_refuses_pending_request(self, bridge):
        task = asyncio.create_task(bridge.request_microphone())
        await asyncio.sleep(0)
        bridge.close()
        with pytest.raises(DeviceError):
            await task


class TestEventRouting:
    """browser events reach the registered callbacks"""

    async def test_capture_events(self, bridge, sent):
        results, errors, ends = [], [], []
        await bridge.start_capture(lambda text, final: results.append((text, final)), errors.append, lambda: ends.append(True))
        assert sent[-1] == {"type": "start_capture"}

        bridge.handle_client_event({"type": "transcript", "text": "I feel", "final": False})
        bridge.handle_client_event({"type": "transcript", "text": "I feel tired", "final": True})
        bridge.handle_client_event({"type": "capture_error", "error": "network"})
        bridge.handle_client_event({"type": "capture_end"})

        assert results == [("I feel", False), ("I feel tired", True)]
        assert errors == ["network"]
        assert ends == [True]

    async def test_speech_callbacks_fire_once(self, bridge, sent):
        ends = []
        await bridge.speak("Hello..", lambda: ends.append(True), lambda code: None)
        assert sent[-1] == {"type": "speak", "text": "Hello.."}

        bridge.handle_client_event({"type": "speech_end"})
        bridge.handle_client_event({"type": "speech_end"})
        assert ends == [True]

    async def test_speech_error_clears_end_callback(self, bridge):
        ends, errors = [], []
        await bridge.speak("Hi", lambda: ends.append(True), errors.append)
        bridge.handle_client_event({"type": "speech_error", "error": "interrupted"})
        bridge.handle_client_event({"type": "speech_end"})
        assert errors == ["interrupted"]
        assert ends == []

    async def test_cancel_drops_speech_callbacks(self, bridge, sent):
        ends = []
        await bridge.speak("Hi", lambda: ends.append(True), lambda code: None)
        await bridge.cancel_speech()
        bridge.handle_client_event({"type": "speech_end"})
        assert ends == []
        assert sent[-1] == {"type": "cancel_speech"}

    def test_unknown_event(self, bridge):
        assert bridge.handle_client_event({"type": "hello"}) is False

    async def test_closed_bridge_sends_nothing(self, bridge, sent):
        bridge.close()
        await bridge.stop_capture()
        assert sent == []
