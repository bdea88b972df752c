"""Limits and result types for user-authored sessions."""

from __future__ import annotations

from pydantic import BaseModel, ConfigDict, Field

CUSTOM_SESSIONS_KEY = "customSessions"
DRAFT_KEY = "sessionDraft"

MIN_POSES = 2
MAX_POSES = 20
MAX_NAME_LENGTH = 50
MIN_POSE_DURATION = 15
MAX_POSE_DURATION = 120
DURATION_STEP = 15

DEFAULT_SESSION_NAME = "My Custom Session"
CUSTOM_DESCRIPTION = "Your personalized yoga sequence"


class SessionValidation(BaseModel):
    model_config = ConfigDict(frozen=True)

    is_valid: bool
    errors: list[str] = Field(default_factory=list)

    def __bool__(self) -> bool:
        return self.is_valid


class DurationOption(BaseModel):
    model_config = ConfigDict(frozen=True)

    value: int
    label: str
