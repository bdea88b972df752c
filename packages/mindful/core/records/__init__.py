"""Collection stores: CRUD over uniquely identified records."""

from mindful.core.records.errors import (
    DuplicateIdError,
    InvalidRecordError,
    RecordError,
    RecordNotFoundError,
)
from mindful.core.records.store import CollectionStore, Record, is_record_list

__all__ = [
    "CollectionStore",
    "DuplicateIdError",
    "InvalidRecordError",
    "Record",
    "RecordError",
    "RecordNotFoundError",
    "is_record_list",
]
