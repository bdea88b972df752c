"""Caller-facing errors raised by collection stores."""

from __future__ import annotations


class RecordError(Exception):
    """Base exception for collection store usage errors."""


class InvalidRecordError(RecordError):
    """Record is not a mapping, lacks an id, or fails domain validation."""

    def __init__(self, message: str, errors: list[str] | None = None) -> None:
        super().__init__(message)
        self.errors = list(errors or [])


class DuplicateIdError(RecordError):
    """A record with the same id already exists."""

    def __init__(self, record_id: str) -> None:
        super().__init__(f"Record with ID {record_id} already exists")
        self.record_id = record_id


class RecordNotFoundError(RecordError, KeyError):
    """No record with the given id exists."""

    def __init__(self, record_id: str) -> None:
        super().__init__(f"Record with ID {record_id} not found")
        self.record_id = record_id

    def __str__(self) -> str:
        return str(self.args[0])
