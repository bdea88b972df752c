"""Tests for the storage factory and size helpers."""

from __future__ import annotations

from pathlib import Path

import pytest

from mindful.core.storage.backends.file import FileStorage
from mindful.core.storage.backends.memory import MemoryStorage
from mindful.core.storage.backends.null import NullStorage
from mindful.core.storage.backends.sqlite import SQLiteStorage
from mindful.core.storage.factory import create_storage
from mindful.core.storage.models import StorageConfig, StorageConfigError, StorageError
from mindful.core.storage.protocols import KeyValueStorage
from mindful.core.storage.utils import sanitize_key, storage_size_bytes, storage_size_kb


def test_factory_returns_memory_storage_by_default() -> None:
    """Default config builds an in-memory store."""
    assert isinstance(create_storage(StorageConfig()), MemoryStorage)


def test_factory_passes_quota_to_memory_storage() -> None:
    """quota_bytes reaches the memory hub."""
    storage = create_storage(StorageConfig(quota_bytes=100))
    assert isinstance(storage, MemoryStorage)
    assert storage.hub.quota_bytes == 100


def test_factory_returns_null_store() -> None:
    """backend='null' returns a NullStorage that keeps nothing."""
    storage = create_storage(StorageConfig(backend="null"))
    assert isinstance(storage, NullStorage)
    assert isinstance(storage, KeyValueStorage)
    storage.set_item("k", "v")
    assert storage.get_item("k") is None
    assert storage.keys() == []


def test_factory_creates_file_storage(tmp_path: Path) -> None:
    """backend='file' builds a FileStorage rooted at path."""
    storage = create_storage(StorageConfig(backend="file", path=tmp_path / "slots"))
    assert isinstance(storage, FileStorage)
    assert (tmp_path / "slots").is_dir()


def test_factory_creates_initialized_sqlite_storage(tmp_path: Path) -> None:
    """backend='sqlite' builds and initializes a SQLiteStorage."""
    storage = create_storage(StorageConfig(backend="sqlite", path=tmp_path / "db.sqlite"))
    assert isinstance(storage, SQLiteStorage)
    assert (tmp_path / "db.sqlite").exists()
    storage.close()


@pytest.mark.parametrize("backend", ["file", "sqlite"])
def test_factory_requires_path(backend: str) -> None:
    """file and sqlite backends need a path."""
    with pytest.raises(StorageConfigError, match="requires a path"):
        create_storage(StorageConfig(backend=backend))  # type: ignore[arg-type]


def test_factory_raises_for_unknown_backend() -> None:
    """Unknown backend strings raise StorageConfigError."""
    config = StorageConfig.model_construct(backend="redis")  # type: ignore[call-arg]
    with pytest.raises(StorageConfigError, match="redis"):
        create_storage(config)


def test_storage_config_error_is_storage_error() -> None:
    assert issubclass(StorageConfigError, StorageError)


def test_sanitize_key() -> None:
    """Unsafe characters become underscores."""
    assert sanitize_key("drafts/morning:v1") == "drafts_morning_v1"
    assert sanitize_key("yoga-progress") == "yoga-progress"


def test_storage_size(storage: MemoryStorage) -> None:
    """Size counts key and value characters."""
    storage.set_item("ab", "x" * 1022)
    assert storage_size_bytes(storage) == 1024
    assert storage_size_kb(storage) == 1.0
