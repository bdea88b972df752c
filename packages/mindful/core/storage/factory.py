"""Storage factory: selects and constructs the correct backend.

Usage::

    from mindful.core.storage.factory import create_storage
    from mindful.core.storage.models import StorageConfig

    storage = create_storage(StorageConfig(backend="file", path=Path("~/.mindful")))
"""

from __future__ import annotations

from mindful.core.storage.models import StorageConfig, StorageConfigError
from mindful.core.storage.protocols import KeyValueStorage


def create_storage(config: StorageConfig, name: str | None = None) -> KeyValueStorage:
    """Construct a storage backend from *config*.

    Args:
        config: Backend selection and connection parameters.
        name: Optional execution-context identifier.

    Returns:
        A ``KeyValueStorage`` implementation.

    Raises:
        StorageConfigError: If the backend is unknown, or if required
            parameters (``path`` for file/sqlite) are missing.
    """
    if config.backend == "null":
        from mindful.core.storage.backends.null import NullStorage

        return NullStorage()

    if config.backend == "memory":
        from mindful.core.storage.backends.memory import MemoryStorage

        return MemoryStorage(name=name, quota_bytes=config.quota_bytes)

    if config.backend in ("file", "sqlite"):
        if config.path is None:
            raise StorageConfigError(
                f"backend={config.backend!r} requires a path but none was provided. "
                "Set StorageConfig.path to a directory (file) or database file (sqlite)."
            )
        path = config.path.expanduser()
        if config.backend == "file":
            from mindful.core.storage.backends.file import FileStorage

            return FileStorage(path, name=name)

        from mindful.core.storage.backends.sqlite import SQLiteStorage

        storage = SQLiteStorage(path, name=name, enable_wal=config.enable_wal)
        storage.initialize()
        return storage

    raise StorageConfigError(
        f"Unknown storage backend: {config.backend!r}. "
        "Supported backends: 'memory', 'file', 'sqlite', 'null'."
    )
