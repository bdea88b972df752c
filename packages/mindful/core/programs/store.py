"""Progress through multi-week programs: start, pause, resume and week completion."""

from __future__ import annotations

from collections.abc import Callable
import logging
import time
from typing import Any

from mindful.core.persistence.cell import DurableCell
from mindful.core.persistence.errors import PersistenceError
from mindful.core.programs.models import (
    PROGRAM_PROGRESS_KEY,
    PROGRAM_PROGRESS_VERSION,
    ActiveProgram,
    CompletedWeek,
    PausedProgram,
    ProgramProgressState,
    ProgramStatus,
)
from mindful.core.storage.protocols import KeyValueStorage, Unsubscribe
from mindful.core.utils.math import round_half_up
from mindful.core.utils.time import iso_timestamp, parse_timestamp

logger = logging.getLogger(__name__)


def _note_key(program_id: str, week_number: int) -> str:
    return f"{program_id}-{week_number}"


def _note_program(note_key: str) -> str:
    return note_key.rsplit("-", 1)[0]


class ProgramProgressStore:
    """
    Which program is running, which weeks are done, and per-week notes.

    Only one program is active at a time. Pausing remembers the week so a
    later resume picks up where the user left off.

    Args:
        storage: Backing key-value storage
        key: Storage slot
        clock: Time source in seconds
    """

    def __init__(
        self,
        storage: KeyValueStorage,
        key: str = PROGRAM_PROGRESS_KEY,
        *,
        clock: Callable[[], float] = time.time,
    ) -> None:
        self._clock = clock
        self._cell: DurableCell[ProgramProgressState] = DurableCell(
            storage,
            key,
            ProgramProgressState(),
            model=ProgramProgressState,
            version=PROGRAM_PROGRESS_VERSION,
            clock=clock,
        )

    @property
    def key(self) -> str:
        return self._cell.key

    @property
    def cell(self) -> DurableCell[ProgramProgressState]:
        return self._cell

    @property
    def error(self) -> PersistenceError | None:
        return self._cell.error

    def get(self) -> ProgramProgressState:
        return self._cell.value.model_copy(deep=True)

    def _now(self) -> str:
        return iso_timestamp(self._clock())

    def _update(self, **changes: Any) -> None:
        failure = self._cell.set(self._cell.value.model_copy(update=changes))
        if failure is not None:
            logger.error("Program progress change not persisted: %s", failure)

    def _paused(self, program_id: str) -> PausedProgram | None:
        return next(
            (p for p in self._cell.value.paused_programs if p.program_id == program_id), None
        )

    def _is_active(self, program_id: str) -> bool:
        active = self._cell.value.active_program
        return active is not None and active.program_id == program_id

    def _weeks_of(self, program_id: str) -> list[CompletedWeek]:
        return [w for w in self._cell.value.completed_weeks if w.program_id == program_id]

    # Actions

    def start_program(self, program_id: str) -> ActiveProgram:
        """Make ``program_id`` the active program at week 1.

        Replaces any other active program and drops a paused entry for this one.
        """
        active = ActiveProgram(program_id=program_id, started_at=self._now(), current_week=1)
        self._update(
            active_program=active,
            paused_programs=[
                p for p in self._cell.value.paused_programs if p.program_id != program_id
            ],
        )
        logger.info("Started program %s", program_id)
        return active

    def complete_week(
        self,
        program_id: str,
        week_number: int,
        sessions_completed: int = 0,
        notes: str | None = None,
    ) -> CompletedWeek:
        """Record a finished week; an active program advances to the next one.

        Without ``notes`` the week's saved note is carried over.
        """
        state = self._cell.value
        week = CompletedWeek(
            program_id=program_id,
            week_number=week_number,
            completed_at=self._now(),
            sessions_completed=sessions_completed,
            notes=notes or state.week_notes.get(_note_key(program_id, week_number), ""),
        )
        active = state.active_program
        if active is not None and active.program_id == program_id:
            active = active.model_copy(update={"current_week": week_number + 1})
        self._update(completed_weeks=[*state.completed_weeks, week], active_program=active)
        return week

    def pause_program(self, program_id: str) -> bool:
        """Pause the active program. Returns False if it was not active."""
        state = self._cell.value
        if state.active_program is None or state.active_program.program_id != program_id:
            return False
        paused = PausedProgram(
            program_id=program_id,
            paused_at=self._now(),
            week_number=state.active_program.current_week,
        )
        self._update(active_program=None, paused_programs=[*state.paused_programs, paused])
        return True

    def resume_program(self, program_id: str) -> bool:
        """Reactivate a paused program at its saved week. Returns False if not paused."""
        paused = self._paused(program_id)
        if paused is None:
            return False
        self._update(
            active_program=ActiveProgram(
                program_id=program_id, started_at=self._now(), current_week=paused.week_number
            ),
            paused_programs=[
                p for p in self._cell.value.paused_programs if p.program_id != program_id
            ],
        )
        return True

    def add_week_note(self, program_id: str, week_number: int, note: str) -> None:
        notes = dict(self._cell.value.week_notes)
        notes[_note_key(program_id, week_number)] = note
        self._update(week_notes=notes)

    def reset_program(self, program_id: str) -> None:
        """Forget completed weeks, notes and pause state; an active program restarts at week 1."""
        state = self._cell.value
        active = state.active_program
        if self._is_active(program_id):
            active = ActiveProgram(program_id=program_id, started_at=self._now(), current_week=1)
        self._update(
            active_program=active,
            completed_weeks=[w for w in state.completed_weeks if w.program_id != program_id],
            week_notes={
                k: v for k, v in state.week_notes.items() if _note_program(k) != program_id
            },
            paused_programs=[p for p in state.paused_programs if p.program_id != program_id],
        )

    # Queries

    def get_current_week(self, program_id: str) -> int:
        if self._is_active(program_id):
            return self._cell.value.active_program.current_week  # type: ignore[union-attr]
        paused = self._paused(program_id)
        return paused.week_number if paused is not None else 1

    def get_completed_weeks(self, program_id: str) -> list[CompletedWeek]:
        """Completed weeks in week order."""
        return sorted(self._weeks_of(program_id), key=lambda w: w.week_number)

    def is_week_completed(self, program_id: str, week_number: int) -> bool:
        return any(w.week_number == week_number for w in self._weeks_of(program_id))

    def get_week_note(self, program_id: str, week_number: int) -> str:
        return self._cell.value.week_notes.get(_note_key(program_id, week_number), "")

    def get_program_progress(self, program_id: str, total_weeks: int) -> int:
        """Percent of weeks completed, rounded to the nearest integer."""
        if total_weeks <= 0:
            return 0
        return round_half_up(len(self._weeks_of(program_id)) / total_weeks * 100)

    def get_program_status(self, program_id: str, total_weeks: int) -> ProgramStatus:
        completed = len(self._weeks_of(program_id))
        if self._is_active(program_id):
            return "completed" if completed >= total_weeks else "active"
        if self._paused(program_id) is not None:
            return "paused"
        if completed:
            return "completed" if completed >= total_weeks else "paused"
        return "not-started"

    def get_total_sessions_completed(self, program_id: str) -> int:
        return sum(w.sessions_completed for w in self._weeks_of(program_id))

    def get_program_start_date(self, program_id: str) -> str | None:
        """Active start time, else the earliest completed week, else None."""
        if self._is_active(program_id):
            return self._cell.value.active_program.started_at  # type: ignore[union-attr]
        weeks = self._weeks_of(program_id)
        if not weeks:
            return None
        return min(weeks, key=lambda w: parse_timestamp(w.completed_at)).completed_at

    def get_all_programs_with_progress(self) -> list[str]:
        """Program ids that are active, paused or have completed weeks."""
        state = self._cell.value
        ids: dict[str, None] = {}
        if state.active_program is not None:
            ids[state.active_program.program_id] = None
        for paused in state.paused_programs:
            ids[paused.program_id] = None
        for week in state.completed_weeks:
            ids[week.program_id] = None
        return list(ids)

    def subscribe(self, listener: Callable[[ProgramProgressState], None]) -> Unsubscribe:
        return self._cell.subscribe(listener)

    def close(self) -> None:
        self._cell.close()
