"""Practice history with daily streak tracking."""

from __future__ import annotations

from collections import Counter
from collections.abc import Callable, Iterable, Mapping
from datetime import date, timedelta
import logging
import time
from typing import Any

from mindful.core.persistence.cell import DurableCell
from mindful.core.persistence.errors import PersistenceError
from mindful.core.progress.models import (
    HISTORY_LIMIT,
    PROGRESS_KEY,
    PROGRESS_VERSION,
    BreathingRecord,
    PoseCount,
    PracticeRecord,
    ProgressState,
    StreakStatus,
)
from mindful.core.storage.protocols import KeyValueStorage, Unsubscribe
from mindful.core.utils.time import iso_timestamp, local_date, parse_timestamp

logger = logging.getLogger(__name__)


def _practice_day(timestamp: str) -> date:
    return parse_timestamp(timestamp).astimezone().date()


def _next_streak(state: ProgressState, today: date) -> int:
    if state.last_practice_date is None:
        return 1
    last_day = _practice_day(state.last_practice_date)
    if last_day == today:
        return state.current_streak
    if last_day == today - timedelta(days=1):
        return state.current_streak + 1
    return 1


class PracticeHistoryStore:
    """
    Completed sessions, totals and the consecutive-day streak.

    Args:
        storage: Backing key-value storage
        key: Storage slot
        clock: Time source in seconds; drives record timestamps and streak days
    """

    def __init__(
        self,
        storage: KeyValueStorage,
        key: str = PROGRESS_KEY,
        *,
        clock: Callable[[], float] = time.time,
    ) -> None:
        self._clock = clock
        self._cell: DurableCell[ProgressState] = DurableCell(
            storage,
            key,
            ProgressState(),
            model=ProgressState,
            version=PROGRESS_VERSION,
            clock=clock,
        )

    @property
    def key(self) -> str:
        return self._cell.key

    @property
    def cell(self) -> DurableCell[ProgressState]:
        return self._cell

    @property
    def error(self) -> PersistenceError | None:
        return self._cell.error

    def get(self) -> ProgressState:
        return self._cell.value.model_copy(deep=True)

    def complete_session(
        self,
        session_id: str,
        session_name: str,
        duration_minutes: float,
        poses: Iterable[Mapping[str, Any]] = (),
    ) -> PracticeRecord:
        """Record a finished session and advance the streak.

        First session ever starts the streak at 1; another session on the
        same day leaves it unchanged; a session the day after the last one
        extends it; any longer gap restarts it at 1.
        """
        now = self._clock()
        today = local_date(now)
        state = self._cell.value

        record = PracticeRecord(
            id=f"session_{int(now * 1000)}",
            session_id=session_id,
            session_name=session_name,
            duration=duration_minutes,
            completed_at=iso_timestamp(now),
            date=today.isoformat(),
            poses=[dict(pose) for pose in poses],
        )

        streak = _next_streak(state, today)
        updated = state.model_copy(
            update={
                "current_streak": streak,
                "longest_streak": max(state.longest_streak, streak),
                "total_minutes": state.total_minutes + duration_minutes,
                "total_sessions": state.total_sessions + 1,
                "last_practice_date": record.completed_at,
                "practice_history": [*state.practice_history, record][-HISTORY_LIMIT:],
            }
        )
        failure = self._cell.set(updated)
        if failure is not None:
            logger.error("Practice of %s recorded in memory only: %s", session_id, failure)
        return record

    def complete_breathing_session(
        self,
        exercise_id: str,
        exercise_name: str,
        duration_minutes: float,
        *,
        target_cycles: int = 0,
        completed_cycles: int = 0,
        category: str = "calming",
        pre_mood: int | None = None,
        pre_energy: int | None = None,
        post_mood: int | None = None,
        post_energy: int | None = None,
    ) -> BreathingRecord:
        """Record a finished breathing exercise.

        Breathing counts toward the same streak and totals as yoga sessions.
        """
        now = self._clock()
        today = local_date(now)
        state = self._cell.value

        record = BreathingRecord(
            id=f"breathing_{int(now * 1000)}",
            exercise_id=exercise_id,
            exercise_name=exercise_name,
            duration=duration_minutes,
            completed_at=iso_timestamp(now),
            date=today.isoformat(),
            target_cycles=target_cycles,
            completed_cycles=completed_cycles,
            category=category,
            pre_mood=pre_mood,
            pre_energy=pre_energy,
            post_mood=post_mood,
            post_energy=post_energy,
        )

        streak = _next_streak(state, today)
        updated = state.model_copy(
            update={
                "current_streak": streak,
                "longest_streak": max(state.longest_streak, streak),
                "total_minutes": state.total_minutes + duration_minutes,
                "total_sessions": state.total_sessions + 1,
                "last_practice_date": record.completed_at,
                "breathing_history": [*state.breathing_history, record][-HISTORY_LIMIT:],
            }
        )
        failure = self._cell.set(updated)
        if failure is not None:
            logger.error("Breathing %s recorded in memory only: %s", exercise_id, failure)
        return record

    def get_streak_status(self) -> StreakStatus:
        state = self._cell.value
        if state.last_practice_date is None:
            return StreakStatus(status="new", message="Start your first practice!", streak=0)

        days_since = (local_date(self._clock()) - _practice_day(state.last_practice_date)).days
        if days_since <= 0:
            return StreakStatus(
                status="today",
                message=f"Great job! {state.current_streak} day streak",
                streak=state.current_streak,
            )
        if days_since == 1:
            return StreakStatus(
                status="continue",
                message=f"Practice today to continue your {state.current_streak} day streak",
                streak=state.current_streak,
            )
        return StreakStatus(
            status="broken",
            message="Start a new streak today!",
            streak=0,
            days_since=days_since,
        )

    def get_recent_sessions(self, count: int = 5) -> list[PracticeRecord]:
        """Most recent first."""
        if count <= 0:
            return []
        return list(reversed(self._cell.value.practice_history[-count:]))

    def get_recent_breathing_sessions(self, count: int = 5) -> list[BreathingRecord]:
        """Most recent first."""
        if count <= 0:
            return []
        return list(reversed(self._cell.value.breathing_history[-count:]))

    def _all_sessions_newest_first(self) -> list[PracticeRecord | BreathingRecord]:
        state = self._cell.value
        combined: list[PracticeRecord | BreathingRecord] = [
            *state.practice_history,
            *state.breathing_history,
        ]
        return sorted(combined, key=lambda r: parse_timestamp(r.completed_at), reverse=True)

    def get_recent_all_sessions(self, count: int = 5) -> list[PracticeRecord | BreathingRecord]:
        """Newest yoga and breathing sessions, one per session or exercise."""
        seen: set[str] = set()
        unique: list[PracticeRecord | BreathingRecord] = []
        for record in self._all_sessions_newest_first():
            if len(unique) >= count:
                break
            if isinstance(record, BreathingRecord):
                dedupe_key = f"breathing_{record.exercise_id}"
            else:
                dedupe_key = f"yoga_{record.session_id}"
            if dedupe_key not in seen:
                seen.add(dedupe_key)
                unique.append(record)
        return unique

    def get_last_session(self) -> PracticeRecord | BreathingRecord | None:
        """The latest yoga or breathing session."""
        ordered = self._all_sessions_newest_first()
        return ordered[0] if ordered else None

    def get_most_practiced_poses(self, limit: int = 5) -> list[PoseCount]:
        counts: Counter[str] = Counter()
        for record in self._cell.value.practice_history:
            for pose in record.poses:
                counts[pose.get("nameEnglish") or pose.get("name") or "Unknown Pose"] += 1
        return [PoseCount(label=label, value=value) for label, value in counts.most_common(limit)]

    def reset_progress(self) -> None:
        failure = self._cell.set(ProgressState())
        if failure is not None:
            logger.error("Progress reset not persisted: %s", failure)

    def subscribe(self, listener: Callable[[ProgressState], None]) -> Unsubscribe:
        return self._cell.subscribe(listener)

    def close(self) -> None:
        self._cell.close()
