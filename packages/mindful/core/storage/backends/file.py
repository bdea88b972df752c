"""Filesystem-backed storage: one file per key.

Provides atomic writes via temp file + os.replace(). Each slot file holds a
small JSON envelope ``{"key": ..., "value": ...}`` so the original key can be
recovered from the directory listing. Other processes' writes are picked up
by :meth:`FileStorage.poll`.
"""

from __future__ import annotations

import errno
import json
import logging
import os
from pathlib import Path
from tempfile import NamedTemporaryFile
import uuid

from mindful.core.storage.events import ListenerRegistry, SnapshotFeed
from mindful.core.storage.models import QuotaExceededError, StorageError, StorageEvent
from mindful.core.storage.protocols import StorageListener, Unsubscribe
from mindful.core.storage.utils import slot_filename

logger = logging.getLogger(__name__)

_SLOT_SUFFIX = ".slot"


class FileStorage:
    """
    Directory of slot files implementing :class:`KeyValueStorage`.

    Args:
        root: Directory holding the slot files (created if missing)
        name: Context identifier stamped on events; random when omitted
    """

    def __init__(self, root: str | Path, name: str | None = None) -> None:
        self.root = Path(root)
        self._context_id = name or f"file-{uuid.uuid4().hex[:8]}"
        self._listeners = ListenerRegistry()
        try:
            self.root.mkdir(parents=True, exist_ok=True)
        except OSError as e:
            raise StorageError(f"Cannot create storage directory {self.root}: {e}") from e
        self._feed = SnapshotFeed()
        self._feed.reset(self._read_all())

    @property
    def context_id(self) -> str:
        return self._context_id

    def _slot_path(self, key: str) -> Path:
        return self.root / slot_filename(key)

    def get_item(self, key: str) -> str | None:
        path = self._slot_path(key)
        try:
            raw = path.read_text(encoding="utf-8", errors="replace")
        except FileNotFoundError:
            return None
        except OSError as e:
            logger.error("Failed to read storage slot %s: %s", path, e)
            return None
        return self._unwrap(raw, path)[1]

    def set_item(self, key: str, value: str) -> None:
        if not isinstance(value, str):
            raise TypeError(f"Storage values must be str, got {type(value).__name__}")
        self._atomic_write(self._slot_path(key), json.dumps({"key": key, "value": value}))
        self._feed.record(key, value)

    def remove_item(self, key: str) -> None:
        try:
            self._slot_path(key).unlink()
        except FileNotFoundError:
            pass
        except OSError as e:
            raise StorageError(f"Failed to remove {key!r}: {e}") from e
        self._feed.record(key, None)

    def keys(self) -> list[str]:
        return sorted(self._read_all())

    def clear(self) -> None:
        for path in self.root.glob(f"*{_SLOT_SUFFIX}"):
            try:
                path.unlink()
            except FileNotFoundError:
                continue
            except OSError as e:
                raise StorageError(f"Failed to remove {path}: {e}") from e
        self._feed.reset({})

    def subscribe(self, listener: StorageListener) -> Unsubscribe:
        return self._listeners.add(listener)

    def poll(self) -> list[StorageEvent]:
        """Detect writes made by other processes since the last poll.

        Dispatches one event per changed key to subscribers and returns them.
        """
        events = self._feed.diff(self._read_all())
        for event in events:
            self._listeners.dispatch(event)
        return events

    # Internal utilities

    def _read_all(self) -> dict[str, str]:
        entries: dict[str, str] = {}
        for path in sorted(self.root.glob(f"*{_SLOT_SUFFIX}")):
            try:
                raw = path.read_text(encoding="utf-8", errors="replace")
            except OSError:
                # Removed between glob and read
                continue
            key, value = self._unwrap(raw, path)
            if key is not None:
                entries[key] = value
        return entries

    @staticmethod
    def _unwrap(raw: str, path: Path) -> tuple[str | None, str]:
        """Split a slot file into (key, value).

        A damaged envelope yields ``(None, raw)`` so the caller sees the raw
        text and its own corruption handling takes over.
        Undecodable bytes are read as U+FFFD, so binary junk is handled alike.
        """
        try:
            envelope = json.loads(raw)
        except ValueError:
            logger.warning("Slot file %s has a damaged envelope", path)
            return None, raw
        if (
            not isinstance(envelope, dict)
            or not isinstance(envelope.get("key"), str)
            or not isinstance(envelope.get("value"), str)
        ):
            logger.warning("Slot file %s has a damaged envelope", path)
            return None, raw
        return envelope["key"], envelope["value"]

    def _atomic_write(self, path: Path, content: str) -> None:
        """Write via temp file in the same directory, then os.replace()."""
        tmp_path: str | None = None
        try:
            with NamedTemporaryFile(
                mode="w", encoding="utf-8", dir=self.root, delete=False, suffix=".tmp"
            ) as tmp:
                tmp_path = tmp.name
                tmp.write(content)
                tmp.flush()
                os.fsync(tmp.fileno())
            os.replace(tmp_path, path)
        except OSError as e:
            if tmp_path is not None:
                try:
                    os.unlink(tmp_path)
                except OSError:
                    pass
            if e.errno in (errno.ENOSPC, errno.EDQUOT):
                raise QuotaExceededError(f"No space left writing {path}") from e
            raise StorageError(f"Failed to write {path}: {e}") from e
