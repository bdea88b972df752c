"""Practice history state."""

from __future__ import annotations

from typing import Any, Literal

from pydantic import BaseModel, ConfigDict, Field

PROGRESS_KEY = "yoga-progress"
PROGRESS_VERSION = 1
HISTORY_LIMIT = 100


class PracticeRecord(BaseModel):
    """One completed session."""

    model_config = ConfigDict(frozen=True)

    id: str
    session_id: str
    session_name: str
    duration: float = Field(ge=0, description="Minutes practised")
    completed_at: str
    date: str = Field(description="Local calendar day, ISO format")
    poses: list[dict[str, Any]] = Field(default_factory=list)


class BreathingRecord(BaseModel):
    """One completed breathing exercise, with optional mood check-ins."""

    model_config = ConfigDict(frozen=True)

    id: str
    exercise_id: str
    exercise_name: str
    duration: float = Field(ge=0, description="Minutes practised")
    completed_at: str
    date: str
    target_cycles: int = Field(default=0, ge=0)
    completed_cycles: int = Field(default=0, ge=0)
    category: str = "calming"
    pre_mood: int | None = None
    pre_energy: int | None = None
    post_mood: int | None = None
    post_energy: int | None = None

    @property
    def mood_improvement(self) -> int | None:
        if self.pre_mood is None or self.post_mood is None:
            return None
        return self.post_mood - self.pre_mood

    @property
    def energy_improvement(self) -> int | None:
        if self.pre_energy is None or self.post_energy is None:
            return None
        return self.post_energy - self.pre_energy


class ProgressState(BaseModel):
    model_config = ConfigDict(extra="ignore")

    current_streak: int = Field(default=0, ge=0)
    longest_streak: int = Field(default=0, ge=0)
    total_minutes: float = Field(default=0, ge=0)
    total_sessions: int = Field(default=0, ge=0)
    last_practice_date: str | None = None
    practice_history: list[PracticeRecord] = Field(default_factory=list)
    breathing_history: list[BreathingRecord] = Field(default_factory=list)


StreakState = Literal["new", "today", "continue", "broken"]


class StreakStatus(BaseModel):
    model_config = ConfigDict(frozen=True)

    status: StreakState
    message: str
    streak: int
    days_since: int | None = None

    @property
    def practiced_today(self) -> bool:
        return self.status == "today"

    @property
    def at_risk(self) -> bool:
        """Streak survives only if the user practises today."""
        return self.status == "continue"


class PoseCount(BaseModel):
    model_config = ConfigDict(frozen=True)

    label: str
    value: int
