# breathing router — pattern catalogue and a websocket that runs a guided session
# the server owns the timer; the client renders phase changes and completion

import asyncio
import logging
from fastapi import APIRouter, WebSocket, WebSocketDisconnect
from pydantic import ValidationError

from calmmind.models.breathing import (
    PATTERNS, SESSION_DURATIONS, BreathingPatternResponse, BreathingPatternsResponse, BreathingStartRequest,
)
from calmmind.services.breathing import TICK_MS, BreathingSession, BreathingTimer

logger = logging.getLogger(__name__)
router = APIRouter(prefix="/breathing", tags=["breathing"])

# seconds between ticks of the session timer
TICK_INTERVAL = TICK_MS / 1000


@router.get("/patterns", response_model=BreathingPatternsResponse)
async def list_patterns():
    return BreathingPatternsResponse(
        patterns=[
            BreathingPatternResponse(key=key, **pattern.model_dump())
            for key, pattern in PATTERNS.items()
        ],
        durations=list(SESSION_DURATIONS),
    )


async def _pump(websocket: WebSocket, outbox: asyncio.Queue) -> None:
    while True:
        message = await outbox.get()
        await websocket.send_json(message)


@router.websocket("/ws")
async def breathing_session(websocket: WebSocket):
    """commands: start {pattern|customPattern, durationSeconds}, pause,
    resume, toggle, stop, status. events: state, phase, complete, error."""
    await websocket.accept()
    outbox: asyncio.Queue = asyncio.Queue()
    sender = asyncio.create_task(_pump(websocket, outbox))
    timer = None

    try:
        while True:
            message = await websocket.receive_json()
            command = message.get("type")

            if command == "start":
                try:
                    request = BreathingStartRequest.model_validate(message)
                except ValidationError as e:
                    outbox.put_nowait({"type": "error", "detail": e.errors(include_url=False, include_context=False)})
                    continue
                if timer is not None:
                    timer.stop()
                session = BreathingSession(
                    request.resolve_pattern(),
                    request.duration_seconds,
                    on_phase_change=lambda s: outbox.put_nowait(s.snapshot("phase")),
                    on_complete=lambda s: outbox.put_nowait(s.snapshot("complete")),
                )
                timer = BreathingTimer(session, TICK_INTERVAL)
                timer.start()
            elif timer is None:
                outbox.put_nowait({"type": "error", "detail": "No breathing session started"})
                continue
            elif command == "pause":
                timer.pause()
            elif command == "resume":
                timer.resume()
            elif command == "toggle":
                timer.toggle_pause()
            elif command == "stop":
                timer.stop()
            elif command != "status":
                outbox.put_nowait({"type": "error", "detail": f"Unknown command: {command}"})
                continue

            outbox.put_nowait(timer.session.snapshot("state"))
    except WebSocketDisconnect:
        logger.info("Breathing websocket disconnected")
    finally:
        if timer is not None:
            timer.stop()
        sender.cancel()
