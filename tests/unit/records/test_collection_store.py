"""Tests for CollectionStore."""

from __future__ import annotations

import json
import logging

import pytest

from mindful.core.records.errors import (
    DuplicateIdError,
    InvalidRecordError,
    RecordNotFoundError,
)
from mindful.core.records.store import CollectionStore, is_record_list
from mindful.core.storage.backends.memory import MemoryStorage


@pytest.fixture
def store(storage: MemoryStorage) -> CollectionStore:
    return CollectionStore(storage, "customSessions")


def test_is_record_list() -> None:
    assert is_record_list([])
    assert is_record_list([{"id": "a"}])
    assert not is_record_list({"id": "a"})
    assert not is_record_list([1])


class TestAdd:
    """Tests for add()."""

    def test_add_persists(self, store: CollectionStore, storage: MemoryStorage) -> None:
        """Added records are visible and written through."""
        store.add({"id": "s1", "name": "Morning"})
        assert store.get_all() == [{"id": "s1", "name": "Morning"}]
        assert json.loads(storage.get_item("customSessions") or "") == [
            {"id": "s1", "name": "Morning"}
        ]
        assert len(store) == 1
        assert "s1" in store

    def test_duplicate_id_rejected(self, store: CollectionStore) -> None:
        """A second record with the same id raises and leaves the collection unchanged."""
        store.add({"id": "s1", "name": "Morning"})
        with pytest.raises(DuplicateIdError, match="Record with ID s1 already exists"):
            store.add({"id": "s1", "name": "Other"})
        assert store.get_all() == [{"id": "s1", "name": "Morning"}]

    def test_back_to_back_duplicate_adds(self, store: CollectionStore) -> None:
        """The second of two immediate adds already sees the first."""
        store.add({"id": "x"})
        with pytest.raises(DuplicateIdError):
            store.add({"id": "x"})

    @pytest.mark.parametrize("record", [None, "s1", {"name": "no id"}, {"id": ""}])
    def test_invalid_records_rejected(self, store: CollectionStore, record: object) -> None:
        with pytest.raises(InvalidRecordError):
            store.add(record)  # type: ignore[arg-type]
        assert store.get_all() == []

    def test_added_record_is_copied(self, store: CollectionStore) -> None:
        """Mutating the caller's dict afterwards does not change the store."""
        record = {"id": "s1", "poses": []}
        store.add(record)
        record["poses"].append("x")
        assert store.get_by_id("s1") == {"id": "s1", "poses": []}


class TestQueries:
    """Tests for get_by_id(), require() and get_all()."""

    def test_get_by_id(self, store: CollectionStore) -> None:
        store.add({"id": "s1"})
        assert store.get_by_id("s1") == {"id": "s1"}
        assert store.get_by_id("missing") is None

    def test_get_by_id_invalid_warns(
        self, store: CollectionStore, caplog: pytest.LogCaptureFixture
    ) -> None:
        with caplog.at_level(logging.WARNING):
            assert store.get_by_id("") is None
        assert "invalid ID" in caplog.text

    def test_require_raises_not_found(self, store: CollectionStore) -> None:
        with pytest.raises(RecordNotFoundError) as exc_info:
            store.require("missing")
        assert str(exc_info.value) == "Record with ID missing not found"
        assert isinstance(exc_info.value, KeyError)

    def test_get_all_is_a_snapshot(self, store: CollectionStore) -> None:
        store.add({"id": "s1"})
        snapshot = store.get_all()
        snapshot.append({"id": "s2"})
        assert len(store) == 1


class TestUpdate:
    """Tests for update()."""

    def test_merges_and_pins_id(self, store: CollectionStore) -> None:
        """Patches merge shallowly and can never change the id."""
        store.add({"id": "s1", "name": "Morning", "poses": [1]})
        assert store.update("s1", {"name": "Evening", "id": "hijack"})
        assert store.get_by_id("s1") == {"id": "s1", "name": "Evening", "poses": [1]}
        assert store.get_by_id("hijack") is None

    def test_missing_record_returns_false(
        self, store: CollectionStore, caplog: pytest.LogCaptureFixture
    ) -> None:
        with caplog.at_level(logging.WARNING):
            assert not store.update("missing", {"name": "x"})
        assert "not found" in caplog.text

    @pytest.mark.parametrize("record_id,patch", [("", {"a": 1}), ("s1", None), ("s1", [1])])
    def test_invalid_arguments_return_false(
        self, store: CollectionStore, record_id: str, patch: object
    ) -> None:
        store.add({"id": "s1"})
        assert not store.update(record_id, patch)  # type: ignore[arg-type]
        assert store.get_all() == [{"id": "s1"}]


class TestRemove:
    """Tests for remove() and clear()."""

    def test_remove(self, store: CollectionStore) -> None:
        store.add({"id": "s1"})
        store.add({"id": "s2"})
        assert store.remove("s1")
        assert [r["id"] for r in store.get_all()] == ["s2"]

    def test_remove_missing_or_invalid(self, store: CollectionStore) -> None:
        assert not store.remove("missing")
        assert not store.remove(None)

    def test_clear(self, store: CollectionStore, storage: MemoryStorage) -> None:
        store.add({"id": "s1"})
        store.clear()
        assert store.get_all() == []
        assert storage.get_item("customSessions") is None


class TestSyncAndRecovery:
    """Tests for corruption handling and cross-context sync."""

    def test_non_list_payload_resets(self, storage: MemoryStorage) -> None:
        """A stored object instead of a list is treated as corrupted."""
        storage.set_item("customSessions", '{"id":"s1"}')
        store = CollectionStore(storage, "customSessions")
        assert store.get_all() == []
        assert store.error is not None

    def test_other_tab_sees_changes(
        self, storage: MemoryStorage, other_tab: MemoryStorage
    ) -> None:
        tab_a = CollectionStore(storage, "customSessions")
        tab_b = CollectionStore(other_tab, "customSessions")
        seen: list[list[dict]] = []
        tab_b.subscribe(seen.append)

        tab_a.add({"id": "s1"})

        assert tab_b.get_by_id("s1") == {"id": "s1"}
        assert seen == [[{"id": "s1"}]]

    def test_custom_id_field(self, storage: MemoryStorage) -> None:
        store = CollectionStore(storage, "things", id_field="slug")
        store.add({"slug": "a"})
        assert store.update("a", {"slug": "b", "v": 1})
        assert store.get_by_id("a") == {"slug": "a", "v": 1}
