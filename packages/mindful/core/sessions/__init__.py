"""User-authored practice sessions."""

from mindful.core.sessions.builders import (
    calculate_total_duration,
    create_custom_session,
    create_draft_session,
    duration_options,
    format_duration,
    generate_session_id,
    with_pose_data,
)
from mindful.core.sessions.models import (
    CUSTOM_SESSIONS_KEY,
    DRAFT_KEY,
    DURATION_STEP,
    MAX_NAME_LENGTH,
    MAX_POSE_DURATION,
    MAX_POSES,
    MIN_POSE_DURATION,
    MIN_POSES,
    DurationOption,
    SessionValidation,
)
from mindful.core.sessions.store import CustomSessionStore, DraftCell, is_draft
from mindful.core.sessions.validation import validate_custom_session

__all__ = [
    "CUSTOM_SESSIONS_KEY",
    "DRAFT_KEY",
    "DURATION_STEP",
    "MAX_NAME_LENGTH",
    "MAX_POSES",
    "MAX_POSE_DURATION",
    "MIN_POSES",
    "MIN_POSE_DURATION",
    "CustomSessionStore",
    "DraftCell",
    "DurationOption",
    "SessionValidation",
    "calculate_total_duration",
    "create_custom_session",
    "create_draft_session",
    "duration_options",
    "format_duration",
    "generate_session_id",
    "is_draft",
    "validate_custom_session",
    "with_pose_data",
]
