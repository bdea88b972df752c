"""Key-value storage protocol.

Backends behave like a browser's ``localStorage``: synchronous string slots
addressed by string keys, plus a change feed that only reports writes made
by *other* execution contexts. The protocol is ``@runtime_checkable`` so
callers can guard with ``isinstance(storage, KeyValueStorage)``.
"""

from __future__ import annotations

from collections.abc import Callable
from typing import Protocol, runtime_checkable

from mindful.core.storage.models import StorageEvent

StorageListener = Callable[[StorageEvent], None]
Unsubscribe = Callable[[], None]


@runtime_checkable
class KeyValueStorage(Protocol):
    """Synchronous string key-value storage contract."""

    @property
    def context_id(self) -> str:
        """Identifier of this execution context (stamped on emitted events)."""
        ...

    def get_item(self, key: str) -> str | None:
        """Return the raw string stored at ``key``, or ``None`` if absent."""
        ...

    def set_item(self, key: str, value: str) -> None:
        """Store ``value`` at ``key``.

        Raises:
            QuotaExceededError: If the write exceeds the storage budget
            StorageError: On any other write failure
        """
        ...

    def remove_item(self, key: str) -> None:
        """Delete ``key``. Removing an absent key is a no-op."""
        ...

    def keys(self) -> list[str]:
        """Return all stored keys, sorted."""
        ...

    def clear(self) -> None:
        """Delete every key."""
        ...

    def subscribe(self, listener: StorageListener) -> Unsubscribe:
        """Register a listener for changes made by other contexts.

        Returns:
            Callable that removes the listener. Safe to call more than once.
        """
        ...
