"""Catalog items, sequencing rules and validator results."""

from __future__ import annotations

from collections.abc import Mapping
from typing import Any

from pydantic import BaseModel, ConfigDict, Field


class CatalogItem(BaseModel):
    """Immutable base content entry (a pose) as seen by the sequencing checks."""

    model_config = ConfigDict(frozen=True)

    id: str
    name: str = ""
    category: str | None = None
    duration: int | None = Field(default=None, description="Default hold in seconds")
    counter_poses: tuple[str, ...] = ()
    contraindications: tuple[str, ...] = ()
    follow_up_poses: tuple[str, ...] = ()

    @classmethod
    def from_content(cls, data: Mapping[str, Any]) -> CatalogItem:
        """Build from a content record (``nameEnglish``, ``sequencingNotes`` ...)."""
        notes = data.get("sequencingNotes") or {}
        return cls(
            id=data["id"],
            name=data.get("nameEnglish") or data.get("name") or data["id"],
            category=data.get("category"),
            duration=data.get("duration"),
            counter_poses=tuple(notes.get("counterPoses", ())),
            contraindications=tuple(notes.get("contraindications", ())),
            follow_up_poses=tuple(notes.get("followUpPoses", ())),
        )


class SequencingRules(BaseModel):
    """Category-level sequencing rules.

    Attributes:
        opposing_pairs: Categories that must never be direct neighbours, in
            either order
        counter_required_categories: Categories whose items may demand a
            counter pose later in the sequence
        required_markers: Substrings (case-insensitive) in an item's counter
            pose notes that make the counter pose mandatory
        counter_categories: Categories that count as a counter pose for a
            given category
    """

    model_config = ConfigDict(frozen=True)

    opposing_pairs: tuple[tuple[str, str], ...] = (("backbend", "twist"),)
    counter_required_categories: frozenset[str] = frozenset({"inversion"})
    required_markers: tuple[str, ...] = ("REQUIRED", "ESSENTIAL")
    counter_categories: dict[str, frozenset[str]] = Field(
        default_factory=lambda: {
            "inversion": frozenset({"backbend"}),
            "backbend": frozenset({"forward"}),
        }
    )


DEFAULT_RULES = SequencingRules()


class SequencingResult(BaseModel):
    """Advisory outcome of a sequencing check."""

    model_config = ConfigDict(frozen=True)

    valid: bool
    warning: str | None = None

    def __bool__(self) -> bool:
        return self.valid


class ContraindicationResult(BaseModel):
    model_config = ConfigDict(frozen=True)

    safe: bool
    conflicts: tuple[str, ...] = ()
