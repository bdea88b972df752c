"""Progress through multi-week programs."""

from mindful.core.programs.models import (
    PROGRAM_PROGRESS_KEY,
    ActiveProgram,
    CompletedWeek,
    PausedProgram,
    ProgramProgressState,
    ProgramStatus,
)
from mindful.core.programs.store import ProgramProgressStore

__all__ = [
    "PROGRAM_PROGRESS_KEY",
    "ActiveProgram",
    "CompletedWeek",
    "PausedProgram",
    "ProgramProgressState",
    "ProgramProgressStore",
    "ProgramStatus",
]
