"""In-memory storage with multi-context change notification.

A :class:`MemoryStorageHub` plays the role of the browser's origin-wide
storage area; each :class:`MemoryStorage` opened from it is one execution
context (a tab). Writes through one context are delivered as
:class:`StorageEvent` to the listeners of every *other* context, never to the
writer. Delivery is synchronous, so tests can assert on it immediately.
"""

from __future__ import annotations

import logging
import uuid

from mindful.core.storage.events import ListenerRegistry
from mindful.core.storage.models import QuotaExceededError, StorageEvent
from mindful.core.storage.protocols import StorageListener, Unsubscribe

logger = logging.getLogger(__name__)


class MemoryStorageHub:
    """Shared key-value area backing any number of :class:`MemoryStorage` contexts.

    Args:
        quota_bytes: Optional budget measured as ``len(key) + len(value)``
            summed over all entries. Writes that would exceed it raise
            :class:`QuotaExceededError` and leave the area unchanged.
    """

    def __init__(self, quota_bytes: int | None = None) -> None:
        self.quota_bytes = quota_bytes
        self._data: dict[str, str] = {}
        self._contexts: list[MemoryStorage] = []

    def open_context(self, name: str | None = None) -> MemoryStorage:
        """Open a new execution context attached to this hub."""
        return MemoryStorage(hub=self, name=name)

    @property
    def contexts(self) -> list[MemoryStorage]:
        return list(self._contexts)

    def used_bytes(self) -> int:
        return sum(len(k) + len(v) for k, v in self._data.items())

    # Internal API used by MemoryStorage

    def _attach(self, context: MemoryStorage) -> None:
        self._contexts.append(context)

    def _detach(self, context: MemoryStorage) -> None:
        if context in self._contexts:
            self._contexts.remove(context)

    def _get(self, key: str) -> str | None:
        return self._data.get(key)

    def _keys(self) -> list[str]:
        return sorted(self._data)

    def _set(self, source: str, key: str, value: str) -> None:
        old = self._data.get(key)
        if self.quota_bytes is not None:
            projected = self.used_bytes() - (len(key) + len(old) if old is not None else 0)
            projected += len(key) + len(value)
            if projected > self.quota_bytes:
                raise QuotaExceededError(
                    f"Writing {key!r} needs {projected} bytes; quota is {self.quota_bytes}"
                )
        self._data[key] = value
        if old != value:
            self._broadcast(StorageEvent(key=key, old_value=old, new_value=value, source=source))

    def _remove(self, source: str, key: str) -> None:
        if key not in self._data:
            return
        old = self._data.pop(key)
        self._broadcast(StorageEvent(key=key, old_value=old, new_value=None, source=source))

    def _clear(self, source: str) -> None:
        if not self._data:
            return
        self._data.clear()
        self._broadcast(StorageEvent(key=None, source=source))

    def _broadcast(self, event: StorageEvent) -> None:
        for context in list(self._contexts):
            if context.context_id != event.source:
                context._deliver(event)


class MemoryStorage:
    """
    One execution context over a :class:`MemoryStorageHub`.

    Constructed without a hub, the context gets a private hub of its own,
    which makes it a plain in-memory key-value store for tests.

    Example:
        >>> hub = MemoryStorageHub()
        >>> tab_a, tab_b = hub.open_context("a"), hub.open_context("b")
        >>> seen = []
        >>> _ = tab_b.subscribe(seen.append)
        >>> tab_a.set_item("k", "1")
        >>> seen[0].new_value
        '1'
    """

    def __init__(
        self,
        hub: MemoryStorageHub | None = None,
        name: str | None = None,
        quota_bytes: int | None = None,
    ) -> None:
        self._hub = hub if hub is not None else MemoryStorageHub(quota_bytes=quota_bytes)
        self._context_id = name or f"ctx-{uuid.uuid4().hex[:8]}"
        self._listeners = ListenerRegistry()
        self._closed = False
        self._hub._attach(self)

    @property
    def context_id(self) -> str:
        return self._context_id

    @property
    def hub(self) -> MemoryStorageHub:
        return self._hub

    def get_item(self, key: str) -> str | None:
        return self._hub._get(key)

    def set_item(self, key: str, value: str) -> None:
        if not isinstance(value, str):
            raise TypeError(f"Storage values must be str, got {type(value).__name__}")
        self._hub._set(self._context_id, key, value)

    def remove_item(self, key: str) -> None:
        self._hub._remove(self._context_id, key)

    def keys(self) -> list[str]:
        return self._hub._keys()

    def clear(self) -> None:
        self._hub._clear(self._context_id)

    def subscribe(self, listener: StorageListener) -> Unsubscribe:
        return self._listeners.add(listener)

    def close(self) -> None:
        """Detach from the hub; no further events are delivered. Idempotent."""
        if not self._closed:
            self._hub._detach(self)
            self._listeners.clear()
            self._closed = True

    def _deliver(self, event: StorageEvent) -> None:
        self._listeners.dispatch(event)
