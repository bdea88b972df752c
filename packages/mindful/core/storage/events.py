"""Listener registry and change-feed bookkeeping shared by backends."""

from __future__ import annotations

import logging

from mindful.core.storage.models import StorageEvent
from mindful.core.storage.protocols import StorageListener, Unsubscribe

logger = logging.getLogger(__name__)


class ListenerRegistry:
    """Ordered set of storage listeners.

    A listener that raises is logged and skipped; it never prevents delivery
    to the remaining listeners or fails the write that triggered the event.
    """

    def __init__(self) -> None:
        self._listeners: list[StorageListener] = []

    def __len__(self) -> int:
        return len(self._listeners)

    def add(self, listener: StorageListener) -> Unsubscribe:
        self._listeners.append(listener)

        def unsubscribe() -> None:
            if listener in self._listeners:
                self._listeners.remove(listener)

        return unsubscribe

    def dispatch(self, event: StorageEvent) -> None:
        for listener in list(self._listeners):
            try:
                listener(event)
            except Exception:
                logger.exception("Storage listener failed for key %r", event.key)

    def clear(self) -> None:
        self._listeners.clear()


class SnapshotFeed:
    """Detects external changes by diffing successive snapshots.

    Backends that cannot receive push notifications (files, SQLite) record
    every write they make themselves via :meth:`record`, then call
    :meth:`diff` with a fresh snapshot; anything that differs was written by
    someone else.
    """

    def __init__(self, source: str = "external") -> None:
        self.source = source
        self._snapshot: dict[str, str] = {}

    def reset(self, snapshot: dict[str, str]) -> None:
        self._snapshot = dict(snapshot)

    def record(self, key: str, value: str | None) -> None:
        if value is None:
            self._snapshot.pop(key, None)
        else:
            self._snapshot[key] = value

    def diff(self, current: dict[str, str]) -> list[StorageEvent]:
        events: list[StorageEvent] = []
        for key in sorted(set(self._snapshot) | set(current)):
            old = self._snapshot.get(key)
            new = current.get(key)
            if old != new:
                events.append(
                    StorageEvent(key=key, old_value=old, new_value=new, source=self.source)
                )
        self._snapshot = dict(current)
        return events
