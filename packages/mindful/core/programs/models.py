"""Multi-week program progress state."""

from __future__ import annotations

from typing import Literal

from pydantic import BaseModel, ConfigDict, Field

PROGRAM_PROGRESS_KEY = "yoga-program-progress"
PROGRAM_PROGRESS_VERSION = 1

ProgramStatus = Literal["not-started", "active", "paused", "completed"]


class ActiveProgram(BaseModel):
    model_config = ConfigDict(frozen=True)

    program_id: str
    started_at: str
    current_week: int = Field(default=1, ge=1)


class CompletedWeek(BaseModel):
    """One finished week of a program."""

    model_config = ConfigDict(frozen=True)

    program_id: str
    week_number: int = Field(ge=1)
    completed_at: str
    sessions_completed: int = Field(default=0, ge=0)
    notes: str = ""


class PausedProgram(BaseModel):
    model_config = ConfigDict(frozen=True)

    program_id: str
    paused_at: str
    week_number: int = Field(ge=1)


class ProgramProgressState(BaseModel):
    """At most one active program; any number paused or partly completed."""

    model_config = ConfigDict(extra="ignore")

    active_program: ActiveProgram | None = None
    completed_weeks: list[CompletedWeek] = Field(default_factory=list)
    week_notes: dict[str, str] = Field(
        default_factory=dict, description='Keyed by "<program_id>-<week>"'
    )
    paused_programs: list[PausedProgram] = Field(default_factory=list)

