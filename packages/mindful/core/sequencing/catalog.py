"""Lookup of immutable base content by id."""

from __future__ import annotations

from collections.abc import Iterable, Iterator, Mapping
from typing import Any, Protocol, runtime_checkable

from mindful.core.sequencing.models import CatalogItem


@runtime_checkable
class ItemCatalog(Protocol):
    """Base content provider consumed by the sequencing and session checks."""

    def get_item_by_id(self, item_id: str) -> CatalogItem | None:
        """Return the item, or None if the id is unknown."""
        ...


class StaticCatalog:
    """In-memory catalog built from a fixed set of items."""

    def __init__(self, items: Iterable[CatalogItem]) -> None:
        self._items: dict[str, CatalogItem] = {}
        for item in items:
            if item.id in self._items:
                raise ValueError(f"Duplicate catalog id: {item.id}")
            self._items[item.id] = item

    @classmethod
    def from_content(cls, records: Iterable[Mapping[str, Any]]) -> StaticCatalog:
        return cls(CatalogItem.from_content(record) for record in records)

    def get_item_by_id(self, item_id: str) -> CatalogItem | None:
        return self._items.get(item_id)

    def __contains__(self, item_id: object) -> bool:
        return item_id in self._items

    def __iter__(self) -> Iterator[CatalogItem]:
        return iter(self._items.values())

    def __len__(self) -> int:
        return len(self._items)
