"""SQLite storage backend.

Persists all slots to a single ``kv`` table in a local SQLite database.
Satisfies the ``KeyValueStorage`` protocol.

Usage::

    from mindful.core.storage.backends.sqlite import SQLiteStorage

    storage = SQLiteStorage(Path("practice.db"))
    storage.initialize()
    try:
        storage.set_item("yoga-preferences", "{}")
    finally:
        storage.close()
"""

from __future__ import annotations

import logging
from pathlib import Path
import sqlite3
import time
import uuid

from mindful.core.storage.events import ListenerRegistry, SnapshotFeed
from mindful.core.storage.models import (
    QuotaExceededError,
    StorageConnectionError,
    StorageError,
    StorageEvent,
)
from mindful.core.storage.protocols import StorageListener, Unsubscribe

logger = logging.getLogger(__name__)

_SCHEMA = """
CREATE TABLE IF NOT EXISTS kv (
    key TEXT PRIMARY KEY,
    value TEXT NOT NULL,
    updated_at REAL NOT NULL
)
"""


class SQLiteStorage:
    """SQLite-backed key-value storage.

    The connection opens lazily on first use; :meth:`initialize` may be
    called explicitly. Other processes' writes are picked up by :meth:`poll`.

    Args:
        db_path: Database file path (parent directories are created)
        name: Context identifier stamped on events; random when omitted
        enable_wal: Enable WAL journal mode for concurrent readers
    """

    def __init__(
        self, db_path: str | Path, name: str | None = None, enable_wal: bool = True
    ) -> None:
        self.db_path = Path(db_path)
        self._context_id = name or f"sqlite-{uuid.uuid4().hex[:8]}"
        self._enable_wal = enable_wal
        self._conn: sqlite3.Connection | None = None
        self._listeners = ListenerRegistry()
        self._feed = SnapshotFeed()

    @property
    def context_id(self) -> str:
        return self._context_id

    # ------------------------------------------------------------------
    # Lifecycle
    # ------------------------------------------------------------------

    def initialize(self) -> None:
        """Open the connection and create the table. Safe to call multiple times."""
        if self._conn is not None:
            return
        try:
            self.db_path.parent.mkdir(parents=True, exist_ok=True)
            conn = sqlite3.connect(str(self.db_path))
            if self._enable_wal:
                conn.execute("PRAGMA journal_mode=WAL")
            conn.execute("PRAGMA synchronous=NORMAL")
            conn.execute(_SCHEMA)
            conn.commit()
        except (OSError, sqlite3.Error) as e:
            raise StorageConnectionError(f"Cannot open {self.db_path}: {e}") from e
        self._conn = conn
        self._feed.reset(self._read_all())

    def close(self) -> None:
        """Close the connection. Safe to call multiple times."""
        if self._conn is not None:
            self._conn.close()
            self._conn = None

    def _connection(self) -> sqlite3.Connection:
        if self._conn is None:
            self.initialize()
        assert self._conn is not None
        return self._conn

    # ------------------------------------------------------------------
    # KeyValueStorage
    # ------------------------------------------------------------------

    def get_item(self, key: str) -> str | None:
        try:
            row = self._connection().execute("SELECT value FROM kv WHERE key = ?", (key,)).fetchone()
        except sqlite3.Error as e:
            logger.error("Failed to read %r from %s: %s", key, self.db_path, e)
            return None
        return row[0] if row is not None else None

    def set_item(self, key: str, value: str) -> None:
        if not isinstance(value, str):
            raise TypeError(f"Storage values must be str, got {type(value).__name__}")
        self._execute(
            "INSERT INTO kv (key, value, updated_at) VALUES (?, ?, ?) "
            "ON CONFLICT(key) DO UPDATE SET value = excluded.value, updated_at = excluded.updated_at",
            (key, value, time.time()),
        )
        self._feed.record(key, value)

    def remove_item(self, key: str) -> None:
        self._execute("DELETE FROM kv WHERE key = ?", (key,))
        self._feed.record(key, None)

    def keys(self) -> list[str]:
        rows = self._connection().execute("SELECT key FROM kv ORDER BY key").fetchall()
        return [row[0] for row in rows]

    def clear(self) -> None:
        self._execute("DELETE FROM kv", ())
        self._feed.reset({})

    def subscribe(self, listener: StorageListener) -> Unsubscribe:
        return self._listeners.add(listener)

    def poll(self) -> list[StorageEvent]:
        """Detect writes made by other connections since the last poll."""
        events = self._feed.diff(self._read_all())
        for event in events:
            self._listeners.dispatch(event)
        return events

    # Internal utilities

    def _read_all(self) -> dict[str, str]:
        rows = self._connection().execute("SELECT key, value FROM kv").fetchall()
        return {row[0]: row[1] for row in rows}

    def _execute(self, sql: str, params: tuple[object, ...]) -> None:
        conn = self._connection()
        try:
            conn.execute(sql, params)
            conn.commit()
        except sqlite3.OperationalError as e:
            conn.rollback()
            if "full" in str(e).lower():
                raise QuotaExceededError(f"Database {self.db_path} is full") from e
            raise StorageError(f"SQLite write failed: {e}") from e
        except sqlite3.Error as e:
            conn.rollback()
            raise StorageError(f"SQLite write failed: {e}") from e
