# tests for the voice websocket — auth, microphone handshake and a full turn

import pytest
from fastapi import WebSocketDisconnect
from fastapi.testclient import TestClient

from calmmind.main import app
from calmmind.services.auth_service import create_access_token, create_refresh_token
from calmmind.services.db import get_db
from calmmind.services.gemini import get_gateway
from calmmind.services.speech import MICROPHONE_DENIED_MESSAGE
from tests.conftest import USER_ID


@pytest.fixture
def ws_client(mock_db, gateway):
    """sync test client for websocket routes with mocked db and gateway"""

    async def override_get_db():
        return mock_db

    app.dependency_overrides[get_db] = override_get_db
    app.dependency_overrides[get_gateway] = lambda: gateway
    yield TestClient(app)
    app.dependency_overrides.clear()


def _url(token=None):
    return f"/voice/ws?token={token or create_access_token(USER_ID)}"


class TestVoiceAuth:
    """the socket is closed for unknown users"""

    def test_invalid_token(self, ws_client):
        with ws_client.websocket_connect("/voice/ws?token=garbage") as ws:
            assert ws.receive_json() == {"type": "error", "detail": "Invalid or expired token"}
            with pytest.raises(WebSocketDisconnect) as exc_info:
                ws.receive_json()
            assert exc_info.value.code == 1008

    def test_refresh_token_rejected(self, ws_client):
        with ws_client.websocket_connect(_url(create_refresh_token(USER_ID))) as ws:
            assert ws.receive_json()["detail"] == "Invalid token type"

    def test_missing_token(self, ws_client):
        with ws_client.websocket_connect("/voice/ws") as ws:
            assert ws.receive_json()["type"] == "error"

    def test_bearer_header(self, ws_client):
        headers = {"Authorization": f"Bearer {create_access_token(USER_ID)}"}
        with ws_client.websocket_connect("/voice/ws", headers=headers) as ws:
            assert ws.receive_json()["state"] == "idle"
            ws.send_json({"type": "end"})


class TestVoiceConversation:
    """driving a session as the browser would"""

    def test_full_turn(self, ws_client, gateway):
        with ws_client.websocket_connect(_url()) as ws:
            assert ws.receive_json() == {"type": "state", "state": "idle", "transcript": "", "turns": [], "error": None}

            ws.send_json({"type": "start"})
            assert ws.receive_json() == {"type": "request_microphone"}
            ws.send_json({"type": "microphone", "granted": True})
            assert ws.receive_json()["state"] == "listening"
            assert ws.receive_json() == {"type": "start_capture"}

            ws.send_json({"type": "transcript", "text": "I can't stop worrying", "final": True})
            assert ws.receive_json()["transcript"] == "I can't stop worrying"

            ws.send_json({"type": "stop"})
            assert ws.receive_json()["state"] == "processing"
            assert ws.receive_json() == {"type": "stop_capture"}

            ws.send_json({"type": "capture_end"})
            speaking = ws.receive_json()
            assert speaking["state"] == "speaking"
            assert [t["speaker"] for t in speaking["turns"]] == ["user", "ai"]
            assert ws.receive_json() == {
                "type": "speak",
                "text": "That sounds really hard... What feels heaviest right now?..",
            }

            ws.send_json({"type": "speech_end"})
            assert ws.receive_json()["state"] == "idle"
            ws.send_json({"type": "end"})

        assert "I can't stop worrying" in gateway.chat_model.calls[-1]

    def test_microphone_denied(self, ws_client):
        with ws_client.websocket_connect(_url()) as ws:
            ws.receive_json()
            ws.send_json({"type": "start"})
            assert ws.receive_json() == {"type": "request_microphone"}
            ws.send_json({"type": "microphone", "granted": False})

            state = ws.receive_json()
            assert state["state"] == "error"
            assert state["error"] == MICROPHONE_DENIED_MESSAGE
            ws.send_json({"type": "end"})

    def test_capture_error(self, ws_client):
        with ws_client.websocket_connect(_url()) as ws:
            ws.receive_json()
            ws.send_json({"type": "start"})
            ws.receive_json()
            ws.send_json({"type": "microphone", "granted": True})
            ws.receive_json()
            ws.receive_json()

            ws.send_json({"type": "capture_error", "error": "network"})
            state = ws.receive_json()
            assert state["state"] == "error"
            assert state["error"].endswith("(error: network)")
            ws.send_json({"type": "end"})

    def test_unknown_message(self, ws_client):
        with ws_client.websocket_connect(_url()) as ws:
            ws.receive_json()
            ws.send_json({"type": "wave"})
            assert ws.receive_json() == {"type": "error", "detail": "Unknown message type: wave"}
            ws.send_json({"type": "end"})
