"""User preferences."""

from mindful.core.preferences.models import (
    PREFERENCES_KEY,
    THEMES,
    Preferences,
    VoiceSettings,
)
from mindful.core.preferences.store import PreferencesStore

__all__ = ["PREFERENCES_KEY", "THEMES", "Preferences", "PreferencesStore", "VoiceSettings"]
