# voice router — websocket that drives a voice session for the browser
# the browser captures speech and plays replies; this side runs the state
# machine and talks to gemini

import asyncio
import logging
from typing import Optional
from fastapi import APIRouter, Depends, WebSocket, WebSocketDisconnect, Query, status

from calmmind.errors import AuthError
from calmmind.services.db import Database, get_db
from calmmind.services.gemini import GeminiGateway, get_gateway
from calmmind.services.mood_orchestrator import MoodOrchestrator
from calmmind.services.persistence import Persistence
from calmmind.services.speech import WebSocketSpeechBridge
from calmmind.services.voice_session import VoiceSession
from calmmind.dependencies import resolve_user

logger = logging.getLogger(__name__)
router = APIRouter(prefix="/voice", tags=["voice"])


def _websocket_token(websocket: WebSocket, token: Optional[str]) -> str:
    """token from the query string, or a bearer authorization header"""
    if token:
        return token
    header = websocket.headers.get("authorization", "")
    return header.removeprefix("Bearer ").strip()


async def _pump(websocket: WebSocket, outbox: asyncio.Queue) -> None:
    while True:
        message = await outbox.get()
        await websocket.send_json(message)


@router.websocket("/ws")
async def voice_session(
    websocket: WebSocket,
    token: Optional[str] = Query(None),
    db: Database = Depends(get_db),
    gateway: GeminiGateway = Depends(get_gateway),
):
    """client commands: start, stop, end. client events: microphone,
    transcript, capture_error, capture_end, speech_end, speech_error.
    server messages: state snapshots, speech commands, error."""
    await websocket.accept()

    try:
        user = await resolve_user(_websocket_token(websocket, token), db)
    except AuthError as e:
        await websocket.send_json({"type": "error", "detail": str(e)})
        await websocket.close(code=status.WS_1008_POLICY_VIOLATION)
        return

    outbox: asyncio.Queue = asyncio.Queue()

    async def send(message: dict) -> None:
        outbox.put_nowait(message)

    bridge = WebSocketSpeechBridge(send)
    orchestrator = MoodOrchestrator(gateway, Persistence(db, user["id"]))
    session = VoiceSession(gateway, bridge, orchestrator, on_change=outbox.put_nowait)
    sender = asyncio.create_task(_pump(websocket, outbox))
    pending: set[asyncio.Task] = set()
    logger.info(f"Voice session {session.session_id} opened for user {user['id']}")

    outbox.put_nowait(session.snapshot())
    try:
        while True:
            message = await websocket.receive_json()
            kind = message.get("type")

            if kind == "start":
                # start waits on the microphone reply, which arrives on this loop
                task = asyncio.create_task(session.start())
                pending.add(task)
                task.add_done_callback(pending.discard)
            elif kind == "stop":
                await session.stop()
            elif kind == "end":
                break
            elif not bridge.handle_client_event(message):
                outbox.put_nowait({"type": "error", "detail": f"Unknown message type: {kind}"})
    except WebSocketDisconnect:
        logger.info(f"Voice websocket disconnected for session {session.session_id}")
    finally:
        bridge.close()
        for task in pending:
            task.cancel()
        await session.end()
        # flush queued messages before closing
        while not outbox.empty() and not sender.done():
            await asyncio.sleep(0)
        sender.cancel()
