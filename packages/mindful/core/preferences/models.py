"""User preference state."""

from __future__ import annotations

import re
from typing import Literal

from pydantic import BaseModel, ConfigDict, Field, field_validator

PREFERENCES_KEY = "mindful-yoga-preferences"
PREFERENCES_VERSION = 1

MIN_VOICE_SPEED = 0.5
MAX_VOICE_SPEED = 2.0

THEMES = ("light", "dark", "system")
VOICE_PERSONALITIES = ("gentle", "motivational", "minimal")

Theme = Literal["light", "dark", "system"]
VoicePersonality = Literal["gentle", "motivational", "minimal"]

_REMINDER_TIME = re.compile(r"^([0-1]?[0-9]|2[0-3]):[0-5][0-9]$")


class VoiceSettings(BaseModel):
    model_config = ConfigDict(frozen=True, extra="forbid")

    enabled: bool = True
    personality: VoicePersonality = "gentle"
    speed: float = Field(default=1.0, ge=MIN_VOICE_SPEED, le=MAX_VOICE_SPEED)
    volume: float = Field(default=0.8, ge=0.0, le=1.0)


class Preferences(BaseModel):
    """Everything the app remembers about how the user likes to practise."""

    model_config = ConfigDict(extra="ignore")

    voice: VoiceSettings = Field(default_factory=VoiceSettings)
    auto_advance: bool = True
    countdown_sounds: bool = False
    show_tips: bool = True
    practice_reminders: bool = False
    reminder_time: str = "09:00"
    theme: Theme = "light"
    has_seen_onboarding: bool = False
    tooltips_dismissed: list[str] = Field(default_factory=list)
    favorite_sessions: list[str] = Field(default_factory=list)
    favorite_exercises: list[str] = Field(default_factory=list)

    @field_validator("reminder_time")
    @classmethod
    def validate_reminder_time(cls, v: str) -> str:
        if not _REMINDER_TIME.match(v):
            raise ValueError(f"Invalid time format: {v}. Expected HH:MM format.")
        return v
