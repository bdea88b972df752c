"""Storage backend implementations."""

from mindful.core.storage.backends.file import FileStorage
from mindful.core.storage.backends.memory import MemoryStorage, MemoryStorageHub
from mindful.core.storage.backends.null import NullStorage
from mindful.core.storage.backends.sqlite import SQLiteStorage

__all__ = [
    "FileStorage",
    "MemoryStorage",
    "MemoryStorageHub",
    "NullStorage",
    "SQLiteStorage",
]
