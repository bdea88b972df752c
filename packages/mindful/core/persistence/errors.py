"""Errors reported by the persistence layer.

These are captured as a cell's ``error`` state rather than raised past the
cell boundary; callers inspect them to decide whether to surface a warning.
"""

from __future__ import annotations


class PersistenceError(Exception):
    """Base exception for persisted-state errors."""

    def __init__(self, key: str, message: str) -> None:
        super().__init__(f"{key}: {message}")
        self.key = key
        self.message = message


class CorruptedDataError(PersistenceError):
    """Stored payload is not valid JSON, fails its shape check, or has the wrong version."""

    def __init__(self, key: str, message: str, backup_key: str | None = None) -> None:
        super().__init__(key, message)
        self.backup_key = backup_key


class PersistenceFailure(PersistenceError):
    """A write or delete against the backing storage failed."""

    def __init__(self, key: str, message: str, quota_exceeded: bool = False) -> None:
        super().__init__(key, message)
        self.quota_exceeded = quota_exceeded
