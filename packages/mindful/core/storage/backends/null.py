"""Null (no-op) storage backend.

``NullStorage`` satisfies :class:`KeyValueStorage` without keeping anything:
every read misses and every write is discarded. Useful for stores that
should run without persistence (private browsing, dry runs).
"""

from __future__ import annotations

from mindful.core.storage.protocols import StorageListener, Unsubscribe


class NullStorage:
    """No-op storage: writes are discarded and reads return ``None``."""

    context_id = "null"

    def get_item(self, key: str) -> str | None:
        """Always returns None."""
        return None

    def set_item(self, key: str, value: str) -> None:
        """Discard."""

    def remove_item(self, key: str) -> None:
        """No-op."""

    def keys(self) -> list[str]:
        """Always empty."""
        return []

    def clear(self) -> None:
        """No-op."""

    def subscribe(self, listener: StorageListener) -> Unsubscribe:
        """Never fires; returns a no-op unsubscribe."""
        return lambda: None
