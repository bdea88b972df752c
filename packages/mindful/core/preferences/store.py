"""Persisted user preferences."""

from __future__ import annotations

from collections.abc import Callable
import logging
from typing import Any

from mindful.core.persistence.cell import DurableCell
from mindful.core.persistence.errors import PersistenceError
from mindful.core.preferences.models import (
    MAX_VOICE_SPEED,
    MIN_VOICE_SPEED,
    PREFERENCES_KEY,
    PREFERENCES_VERSION,
    THEMES,
    VOICE_PERSONALITIES,
    Preferences,
    VoiceSettings,
)
from mindful.core.storage.protocols import KeyValueStorage, Unsubscribe
from mindful.core.utils.math import clamp

logger = logging.getLogger(__name__)


class PreferencesStore:
    """
    Read and change :class:`Preferences`, persisting every change.

    Args:
        storage: Backing key-value storage
        key: Storage slot
    """

    def __init__(self, storage: KeyValueStorage, key: str = PREFERENCES_KEY) -> None:
        self._cell: DurableCell[Preferences] = DurableCell(
            storage, key, Preferences(), model=Preferences, version=PREFERENCES_VERSION
        )

    @property
    def key(self) -> str:
        return self._cell.key

    @property
    def cell(self) -> DurableCell[Preferences]:
        return self._cell

    @property
    def error(self) -> PersistenceError | None:
        return self._cell.error

    def get(self) -> Preferences:
        return self._cell.value.model_copy(deep=True)

    # Voice

    def update_voice_settings(self, **changes: Any) -> VoiceSettings:
        """Apply the recognised voice changes; out-of-range numbers are clamped.

        Unknown keys and values of the wrong type are ignored.
        """
        current = self._cell.value.voice
        updates: dict[str, Any] = {}

        enabled = changes.get("enabled")
        if isinstance(enabled, bool):
            updates["enabled"] = enabled
        personality = changes.get("personality")
        if personality in VOICE_PERSONALITIES:
            updates["personality"] = personality
        speed = changes.get("speed")
        if isinstance(speed, int | float) and not isinstance(speed, bool):
            updates["speed"] = clamp(float(speed), MIN_VOICE_SPEED, MAX_VOICE_SPEED)
        volume = changes.get("volume")
        if isinstance(volume, int | float) and not isinstance(volume, bool):
            updates["volume"] = clamp(float(volume), 0.0, 1.0)

        voice = current.model_copy(update=updates)
        self._update(voice=voice)
        return voice

    # Appearance and practice

    def set_theme(self, theme: str) -> str:
        if theme not in THEMES:
            raise ValueError(f"Invalid theme: {theme!r}. Expected one of {', '.join(THEMES)}")
        self._update(theme=theme)
        return theme

    def set_reminder_time(self, value: str) -> str:
        """Set the daily reminder (``HH:MM``).

        Raises:
            ValueError: If the time is not in ``HH:MM`` format
        """
        Preferences.model_validate({"reminder_time": value})
        self._update(reminder_time=value)
        return value

    def toggle(self, flag: str) -> bool:
        """Flip one of the boolean practice flags and return the new value."""
        if flag not in ("auto_advance", "countdown_sounds", "show_tips", "practice_reminders"):
            raise KeyError(flag)
        value = not getattr(self._cell.value, flag)
        self._update(**{flag: value})
        return value

    # Favorites

    def toggle_favorite_session(self, session_id: str) -> bool:
        """Add or remove a favorite; returns True if it is now a favorite."""
        return self._toggle_member("favorite_sessions", session_id)

    def is_favorite_session(self, session_id: str) -> bool:
        return session_id in self._cell.value.favorite_sessions

    def toggle_favorite_exercise(self, exercise_id: str) -> bool:
        return self._toggle_member("favorite_exercises", exercise_id)

    def is_favorite_exercise(self, exercise_id: str) -> bool:
        return exercise_id in self._cell.value.favorite_exercises

    # Onboarding

    def dismiss_tooltip(self, tooltip_id: str) -> None:
        dismissed = self._cell.value.tooltips_dismissed
        if tooltip_id not in dismissed:
            self._update(tooltips_dismissed=[*dismissed, tooltip_id])

    def is_tooltip_dismissed(self, tooltip_id: str) -> bool:
        return tooltip_id in self._cell.value.tooltips_dismissed

    def reset_tooltips(self) -> None:
        self._update(tooltips_dismissed=[])

    def mark_onboarding_complete(self) -> None:
        self._update(has_seen_onboarding=True)

    def reset_to_defaults(self) -> Preferences:
        defaults = Preferences()
        self._cell.set(defaults)
        return defaults.model_copy(deep=True)

    def subscribe(self, listener: Callable[[Preferences], None]) -> Unsubscribe:
        return self._cell.subscribe(listener)

    def close(self) -> None:
        self._cell.close()

    # Internals

    def _toggle_member(self, field: str, item_id: str) -> bool:
        members: list[str] = getattr(self._cell.value, field)
        if item_id in members:
            self._update(**{field: [m for m in members if m != item_id]})
            return False
        self._update(**{field: [*members, item_id]})
        return True

    def _update(self, **changes: Any) -> None:
        failure = self._cell.set(self._cell.value.model_copy(update=changes))
        if failure is not None:
            logger.error("Preference change not persisted: %s", failure)
