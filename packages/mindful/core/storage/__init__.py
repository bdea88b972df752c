"""Key-value storage substrate for mindful.

Synchronous string slots with a cross-context change feed, modelled on a
browser's ``localStorage`` and its ``storage`` event:

- ``MemoryStorage`` / ``MemoryStorageHub``: in-process, multi-context (tabs)
- ``FileStorage``: one file per key, atomic writes, polling change feed
- ``SQLiteStorage``: single-table database, polling change feed
- ``NullStorage``: discards everything

Example:
    >>> from mindful.core.storage import MemoryStorageHub
    >>> hub = MemoryStorageHub()
    >>> tab = hub.open_context("tab-1")
    >>> tab.set_item("greeting", '"namaste"')
    >>> tab.get_item("greeting")
    '"namaste"'
"""

from mindful.core.storage.backends.file import FileStorage
from mindful.core.storage.backends.memory import MemoryStorage, MemoryStorageHub
from mindful.core.storage.backends.null import NullStorage
from mindful.core.storage.backends.sqlite import SQLiteStorage
from mindful.core.storage.factory import create_storage
from mindful.core.storage.models import (
    QuotaExceededError,
    StorageConfig,
    StorageConfigError,
    StorageConnectionError,
    StorageError,
    StorageEvent,
)
from mindful.core.storage.protocols import KeyValueStorage, StorageListener, Unsubscribe
from mindful.core.storage.utils import sanitize_key, storage_size_bytes, storage_size_kb

__all__ = [
    # Protocol and types
    "KeyValueStorage",
    "StorageListener",
    "Unsubscribe",
    "StorageEvent",
    "StorageConfig",
    # Backends
    "FileStorage",
    "MemoryStorage",
    "MemoryStorageHub",
    "NullStorage",
    "SQLiteStorage",
    "create_storage",
    # Errors
    "QuotaExceededError",
    "StorageConfigError",
    "StorageConnectionError",
    "StorageError",
    # Utilities
    "sanitize_key",
    "storage_size_bytes",
    "storage_size_kb",
]
