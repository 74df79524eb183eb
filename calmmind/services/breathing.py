# breathing exercise — guided inhale/hold/exhale/hold cycles
#
# two orthogonal pieces of state: the current phase (cycling through
# inhale -> hold1 -> exhale -> hold2, skipping zero-length phases) and the
# run state (not_started / running / paused / complete). time is counted in
# integer milliseconds and advanced by a fixed 100ms tick.

import asyncio
import logging
import math
from enum import Enum
from typing import Callable, Optional

from calmmind.models.breathing import PHASES, SESSION_DURATIONS, BreathingPattern

logger = logging.getLogger(__name__)

TICK_MS = 100
SMALL_SCALE = 0.6
LARGE_SCALE = 1.0

PHASE_TEXT = {
    "inhale": "Breathe In",
    "hold1": "Hold",
    "exhale": "Breathe Out",
    "hold2": "Hold",
}


class RunState(str, Enum):
    NOT_STARTED = "not_started"
    RUNNING = "running"
    PAUSED = "paused"
    COMPLETE = "complete"


class BreathingSession:
    def __init__(
        self,
        pattern: BreathingPattern,
        duration_seconds: int = 60,
        on_phase_change: Optional[Callable[["BreathingSession"], None]] = None,
        on_complete: Optional[Callable[["BreathingSession"], None]] = None,
    ):
        if duration_seconds not in SESSION_DURATIONS:
            raise ValueError(f"duration must be one of {list(SESSION_DURATIONS)}")
        self.pattern = pattern
        self.duration_ms = duration_seconds * 1000
        self.on_phase_change = on_phase_change
        self.on_complete = on_complete
        self._reset()

    def _reset(self) -> None:
        self.phase = self._first_phase()
        self.phase_elapsed_ms = 0
        self.session_elapsed_ms = 0
        self.total_cycles = 0
        self.run_state = RunState.NOT_STARTED

    def _first_phase(self) -> str:
        return next(p for p in PHASES if self.pattern.phase_ms(p) > 0)

    def _next_phase(self, phase: str) -> str:
        # the pattern guarantees a non-zero phase, so this terminates
        index = PHASES.index(phase)
        while True:
            index = (index + 1) % len(PHASES)
            if self.pattern.phase_ms(PHASES[index]) > 0:
                return PHASES[index]

    # controls

    def start(self) -> None:
        self._reset()
        self.run_state = RunState.RUNNING
        logger.info(f"Breathing session started: {self.pattern.name}, {self.duration_ms // 1000}s")

    def pause(self) -> None:
        if self.run_state == RunState.RUNNING:
            self.run_state = RunState.PAUSED

    def resume(self) -> None:
        if self.run_state == RunState.PAUSED:
            self.run_state = RunState.RUNNING

    def toggle_pause(self) -> None:
        if self.run_state == RunState.RUNNING:
            self.pause()
        else:
            self.resume()

    def stop(self) -> None:
        self._reset()

    def tick(self, elapsed_ms: int = TICK_MS) -> None:
        if self.run_state != RunState.RUNNING:
            return

        self.session_elapsed_ms += elapsed_ms
        self.phase_elapsed_ms += elapsed_ms

        if self.session_elapsed_ms >= self.duration_ms:
            self.session_elapsed_ms = self.duration_ms
            self.phase_elapsed_ms = min(self.phase_elapsed_ms, self.pattern.phase_ms(self.phase))
            self.run_state = RunState.COMPLETE
            logger.info(f"Breathing session complete after {self.total_cycles} cycles")
            if self.on_complete:
                self.on_complete(self)
            return

        if self.phase_elapsed_ms >= self.pattern.phase_ms(self.phase):
            self.phase = self._next_phase(self.phase)
            self.phase_elapsed_ms = 0
            if self.phase == "inhale":
                self.total_cycles += 1
            if self.on_phase_change:
                self.on_phase_change(self)

    async def run(self, interval: float = TICK_MS / 1000) -> None:
        """tick on a fixed wall-clock interval until paused, stopped or complete"""
        while self.run_state == RunState.RUNNING:
            await asyncio.sleep(interval)
            self.tick(TICK_MS)

    # derived values

    @property
    def phase_progress(self) -> float:
        phase_ms = self.pattern.phase_ms(self.phase)
        return min(1.0, self.phase_elapsed_ms / phase_ms) if phase_ms else 1.0

    def breathing_scale(self) -> float:
        spread = LARGE_SCALE - SMALL_SCALE
        if self.phase == "inhale":
            return SMALL_SCALE + self.phase_progress * spread
        if self.phase == "exhale":
            return LARGE_SCALE - self.phase_progress * spread
        if self.phase == "hold1":
            return LARGE_SCALE
        return SMALL_SCALE

    @property
    def remaining_seconds(self) -> int:
        return math.ceil((self.duration_ms - self.session_elapsed_ms) / 1000)

    @property
    def progress_percent(self) -> float:
        return round(self.session_elapsed_ms / self.duration_ms * 100, 1)

    @property
    def phase_text(self) -> str:
        return PHASE_TEXT[self.phase]

    def snapshot(self, kind: str = "state") -> dict:
        return {
            "type": kind,
            "runState": self.run_state.value,
            "phase": self.phase,
            "phaseText": self.phase_text,
            "scale": round(self.breathing_scale(), 3),
            "remainingSeconds": self.remaining_seconds,
            "progressPercent": self.progress_percent,
            "totalCycles": self.total_cycles,
        }


class BreathingTimer:
    """owns the single ticking task for a session"""

    def __init__(self, session: BreathingSession, interval: float = TICK_MS / 1000):
        self.session = session
        self.interval = interval
        self._task: Optional[asyncio.Task] = None

    @property
    def running(self) -> bool:
        return self._task is not None and not self._task.done()

    def _spawn(self) -> None:
        self._cancel()
        self._task = asyncio.create_task(self.session.run(self.interval))

    def _cancel(self) -> None:
        if self._task is not None and not self._task.done():
            self._task.cancel()
        self._task = None

    def start(self) -> None:
        self.session.start()
        self._spawn()

    def pause(self) -> None:
        self.session.pause()
        self._cancel()

    def resume(self) -> None:
        self.session.resume()
        if self.session.run_state == RunState.RUNNING:
            self._spawn()

    def toggle_pause(self) -> None:
        if self.session.run_state == RunState.RUNNING:
            self.pause()
        else:
            self.resume()

    def stop(self) -> None:
        self._cancel()
        self.session.stop()
