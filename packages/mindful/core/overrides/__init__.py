"""User overrides composed onto immutable base content."""

from mindful.core.overrides.models import (
    OVERRIDES_VERSION,
    PROGRAM_OVERRIDES_KEY,
    SESSION_OVERRIDES_KEY,
    OverrideRange,
)
from mindful.core.overrides.store import OverrideStore, ProgramOverrideStore, SessionOverrideStore

__all__ = [
    "OVERRIDES_VERSION",
    "PROGRAM_OVERRIDES_KEY",
    "SESSION_OVERRIDES_KEY",
    "OverrideRange",
    "OverrideStore",
    "ProgramOverrideStore",
    "SessionOverrideStore",
]
