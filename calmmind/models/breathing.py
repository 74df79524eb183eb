# breathing models — patterns and session requests

from typing import Optional
from pydantic import BaseModel, Field, model_validator

PHASES = ("inhale", "hold1", "exhale", "hold2")
SESSION_DURATIONS = (30, 60, 90, 120)


class BreathingPattern(BaseModel):
    """phase lengths in seconds; a phase that rounds to zero milliseconds is skipped"""
    name: str
    inhale: float = Field(..., ge=0)
    hold1: float = Field(0, ge=0)
    exhale: float = Field(..., ge=0)
    hold2: float = Field(0, ge=0)

    @model_validator(mode="after")
    def _has_a_phase(self):
        if not any(self.phase_ms(p) > 0 for p in PHASES):
            raise ValueError("a breathing pattern needs at least one non-zero phase")
        return self

    def phase_seconds(self, phase: str) -> float:
        return getattr(self, phase)

    def phase_ms(self, phase: str) -> int:
        return round(self.phase_seconds(phase) * 1000)


PATTERNS = {
    "simple": BreathingPattern(name="Simple Breathing", inhale=6, hold1=0, exhale=6, hold2=0),
    "box": BreathingPattern(name="Box Breathing", inhale=4, hold1=4, exhale=4, hold2=4),
    "4-7-8": BreathingPattern(name="4-7-8 Technique", inhale=4, hold1=7, exhale=8, hold2=0),
    "calm": BreathingPattern(name="Calming Breath", inhale=5, hold1=2, exhale=7, hold2=1),
}


class BreathingPatternResponse(BaseModel):
    key: str
    name: str
    inhale: float
    hold1: float
    exhale: float
    hold2: float


class BreathingPatternsResponse(BaseModel):
    patterns: list[BreathingPatternResponse]
    durations: list[int]


class BreathingStartRequest(BaseModel):
    """first websocket message: a named pattern or a custom one"""
    pattern: Optional[str] = "simple"
    custom_pattern: Optional[BreathingPattern] = Field(None, alias="customPattern")
    duration_seconds: int = Field(60, alias="durationSeconds")

    model_config = {"populate_by_name": True}

    @model_validator(mode="after")
    def _known_choices(self):
        if self.custom_pattern is None and self.pattern not in PATTERNS:
            raise ValueError(f"unknown breathing pattern: {self.pattern}")
        if self.duration_seconds not in SESSION_DURATIONS:
            raise ValueError(f"duration must be one of {list(SESSION_DURATIONS)}")
        return self

    def resolve_pattern(self) -> BreathingPattern:
        return self.custom_pattern or PATTERNS[self.pattern]
