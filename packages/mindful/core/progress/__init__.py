"""Practice and breathing history with streaks."""

from mindful.core.progress.models import (
    HISTORY_LIMIT,
    PROGRESS_KEY,
    BreathingRecord,
    PoseCount,
    PracticeRecord,
    ProgressState,
    StreakStatus,
)
from mindful.core.progress.store import PracticeHistoryStore

__all__ = [
    "HISTORY_LIMIT",
    "PROGRESS_KEY",
    "BreathingRecord",
    "PoseCount",
    "PracticeHistoryStore",
    "PracticeRecord",
    "ProgressState",
    "StreakStatus",
]
