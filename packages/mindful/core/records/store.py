"""CRUD store over a list of uniquely identified records.

The whole collection lives in one :class:`DurableCell`. Every mutation
builds a new list, swaps it in and persists it before returning, so the next
call always observes the previous one (duplicate detection relies on this).
"""

from __future__ import annotations

from collections.abc import Callable, Mapping
import copy
import logging
from typing import Any

from mindful.core.persistence.cell import DurableCell
from mindful.core.persistence.errors import PersistenceError
from mindful.core.records.errors import DuplicateIdError, InvalidRecordError, RecordNotFoundError
from mindful.core.storage.protocols import KeyValueStorage, Unsubscribe

logger = logging.getLogger(__name__)

Record = dict[str, Any]


def is_record_list(value: Any) -> bool:
    """Shape check for a persisted collection: a list of JSON objects."""
    return isinstance(value, list) and all(isinstance(item, dict) for item in value)


class CollectionStore:
    """
    Add/update/remove records keyed by a unique, immutable id field.

    Args:
        storage: Backing key-value storage
        key: Storage slot holding the collection
        id_field: Name of the identifying field

    Example:
        >>> from mindful.core.storage import MemoryStorage
        >>> store = CollectionStore(MemoryStorage(), "customSessions")
        >>> store.add({"id": "s1", "name": "Morning"})
        >>> store.update("s1", {"name": "Evening"})
        True
        >>> store.get_by_id("s1")["name"]
        'Evening'
    """

    def __init__(self, storage: KeyValueStorage, key: str, *, id_field: str = "id") -> None:
        self.id_field = id_field
        self._cell: DurableCell[list[Record]] = DurableCell(
            storage, key, [], validator=is_record_list
        )

    @property
    def key(self) -> str:
        return self._cell.key

    @property
    def cell(self) -> DurableCell[list[Record]]:
        return self._cell

    @property
    def error(self) -> PersistenceError | None:
        """Last corruption or persistence failure of the backing cell."""
        return self._cell.error

    @property
    def is_loaded(self) -> bool:
        return self._cell.is_loaded

    def __len__(self) -> int:
        return len(self._cell.value)

    def __contains__(self, record_id: object) -> bool:
        return isinstance(record_id, str) and self._find_index(record_id) != -1

    # Queries

    def get_all(self) -> list[Record]:
        """Deep copy of the collection; mutating it does not affect the store."""
        return copy.deepcopy(self._cell.value)

    def get_by_id(self, record_id: str | None) -> Record | None:
        if not record_id:
            logger.warning("get_by_id called with invalid ID: %r", record_id)
            return None
        index = self._find_index(record_id)
        return copy.deepcopy(self._cell.value[index]) if index != -1 else None

    def require(self, record_id: str) -> Record:
        """Like :meth:`get_by_id` but raises :class:`RecordNotFoundError`."""
        record = self.get_by_id(record_id)
        if record is None:
            raise RecordNotFoundError(record_id)
        return record

    # Mutations

    def add(self, record: Mapping[str, Any]) -> None:
        """Append a new record.

        Raises:
            InvalidRecordError: If ``record`` is not a mapping or lacks an id
            DuplicateIdError: If a record with the same id exists
        """
        if not isinstance(record, Mapping):
            raise InvalidRecordError("Invalid record object")
        record_id = record.get(self.id_field)
        if not record_id:
            raise InvalidRecordError(f"Record must have an {self.id_field!r}")
        if self._find_index(record_id) != -1:
            raise DuplicateIdError(record_id)

        self._save([*self._cell.value, copy.deepcopy(dict(record))])

    def update(self, record_id: str | None, patch: Mapping[str, Any] | None) -> bool:
        """Shallow-merge ``patch`` onto a record; the id never changes.

        Returns:
            True if updated, False if the arguments are invalid or the record is missing
        """
        if not record_id or not isinstance(patch, Mapping):
            logger.warning("Invalid update parameters: id=%r patch=%r", record_id, patch)
            return False

        index = self._find_index(record_id)
        if index == -1:
            logger.warning("Record with ID %s not found", record_id)
            return False

        records = list(self._cell.value)
        records[index] = {**records[index], **patch, self.id_field: record_id}
        self._save(records)
        return True

    def remove(self, record_id: str | None) -> bool:
        """Delete a record by id.

        Returns:
            True if deleted, False if the id is invalid or missing
        """
        if not record_id:
            logger.warning("remove called with invalid ID: %r", record_id)
            return False

        records = [r for r in self._cell.value if r.get(self.id_field) != record_id]
        if len(records) == len(self._cell.value):
            logger.warning("Record with ID %s not found", record_id)
            return False

        self._save(records)
        return True

    def clear(self) -> None:
        """Remove every record and delete the slot."""
        self._cell.remove()

    # Sync

    def reload(self) -> list[Record]:
        """Re-read the collection from storage."""
        return copy.deepcopy(self._cell.load())

    def subscribe(self, listener: Callable[[list[Record]], None]) -> Unsubscribe:
        """Be told when another context rewrites the collection."""
        return self._cell.subscribe(listener)

    def close(self) -> None:
        self._cell.close()

    # Internals

    def _find_index(self, record_id: str) -> int:
        for index, record in enumerate(self._cell.value):
            if record.get(self.id_field) == record_id:
                return index
        return -1

    def _save(self, records: list[Record]) -> None:
        failure = self._cell.set(records)
        if failure is not None:
            logger.error("Failed to save %s: %s", self.key, failure)
