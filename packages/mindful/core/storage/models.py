"""Storage configuration, change events and shared exceptions."""

from __future__ import annotations

from pathlib import Path
from typing import Literal

from pydantic import BaseModel, ConfigDict, Field


class StorageConfig(BaseModel):
    """Configuration for a key-value storage backend.

    Args:
        backend: Storage backend to use. ``"memory"`` keeps slots in process
            memory; ``"file"`` writes one file per key under ``path``;
            ``"sqlite"`` persists to a local SQLite file at ``path``;
            ``"null"`` discards everything.
        path: Directory (file backend) or database file (sqlite backend).
        quota_bytes: Optional byte budget for the memory backend.
        enable_wal: Enable SQLite WAL journal mode.
    """

    model_config = ConfigDict(frozen=True, extra="forbid")

    backend: Literal["memory", "file", "sqlite", "null"] = "memory"
    path: Path | None = None
    quota_bytes: int | None = Field(default=None, gt=0)
    enable_wal: bool = True


class StorageEvent(BaseModel):
    """A change made to a storage slot by another execution context.

    ``key`` is ``None`` when the whole storage area was cleared.
    """

    model_config = ConfigDict(frozen=True)

    key: str | None
    old_value: str | None = None
    new_value: str | None = None
    source: str = Field(description="Identifier of the context that performed the write")


# ---------------------------------------------------------------------------
# Exceptions
# ---------------------------------------------------------------------------


class StorageError(Exception):
    """Base exception for all storage backend errors."""


class QuotaExceededError(StorageError):
    """Raised when a write would exceed the storage quota."""


class StorageConnectionError(StorageError):
    """Raised when the backend cannot open or maintain its connection."""


class StorageConfigError(StorageError):
    """Raised when a storage configuration cannot be turned into a backend."""
