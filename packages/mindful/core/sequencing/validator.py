"""Sequencing checks over an ordered list of item ids.

All functions here are pure: they read the catalog and return results,
never raise for rule violations, and keep no state between calls.
"""

from __future__ import annotations

from collections.abc import Iterable, Sequence
import re

from mindful.core.sequencing.catalog import ItemCatalog
from mindful.core.sequencing.models import (
    DEFAULT_RULES,
    CatalogItem,
    ContraindicationResult,
    SequencingResult,
    SequencingRules,
)

_PARENTHETICAL = re.compile(r"\s*\([^)]*\)\s*")


def _normalize_name(name: str) -> str:
    return _PARENTHETICAL.sub(" ", name).strip().lower()


def requires_counter_pose(item: CatalogItem | None, rules: SequencingRules = DEFAULT_RULES) -> bool:
    """True if any of the item's counter pose notes carries a required marker."""
    if item is None:
        return False
    markers = [marker.upper() for marker in rules.required_markers]
    return any(any(marker in note.upper() for marker in markers) for note in item.counter_poses)


def get_counter_poses(item_id: str, catalog: ItemCatalog) -> list[str]:
    item = catalog.get_item_by_id(item_id)
    return list(item.counter_poses) if item is not None else []


def check_contraindications(
    item_id: str, catalog: ItemCatalog, user_conditions: Iterable[str] = ()
) -> ContraindicationResult:
    """Contraindications of an item that mention any of the user's conditions."""
    item = catalog.get_item_by_id(item_id)
    if item is None or not item.contraindications:
        return ContraindicationResult(safe=True)

    conditions = [c.lower() for c in user_conditions if c]
    conflicts = tuple(
        note for note in item.contraindications if any(c in note.lower() for c in conditions)
    )
    return ContraindicationResult(safe=not conflicts, conflicts=conflicts)


def _is_counter_for(
    candidate: CatalogItem, item: CatalogItem, rules: SequencingRules
) -> bool:
    allowed_categories = rules.counter_categories.get(item.category or "", frozenset())
    if candidate.category in allowed_categories:
        return True
    named = {_normalize_name(note) for note in item.counter_poses}
    return candidate.id.lower() in named or _normalize_name(candidate.name) in named


def _counter_names(item: CatalogItem) -> str:
    names = [_PARENTHETICAL.sub(" ", note).strip() for note in item.counter_poses]
    return " or ".join(name for name in names if name) or "a counter-pose"


def validate_sequencing(
    item_ids: Sequence[str],
    catalog: ItemCatalog,
    rules: SequencingRules = DEFAULT_RULES,
) -> SequencingResult:
    """Check an ordered sequence against the rules; report the first violation.

    Two passes, in order:

    1. Adjacent items must not form an opposing category pair.
    2. An item needing a counter pose must not be last, and some later item
       must be one of its counter poses (by id or name) or belong to an
       allowed counter category.

    Ids missing from the catalog are skipped.
    """
    items = [catalog.get_item_by_id(item_id) for item_id in item_ids]

    for current, following in zip(items, items[1:]):
        if current is None or following is None:
            continue
        for first, second in rules.opposing_pairs:
            if {current.category, following.category} == {first, second} and first != second:
                return SequencingResult(
                    valid=False,
                    warning=(
                        f"Avoid alternating {first}s and {second}s. "
                        f"Practice {first}s with counter-poses, then {second}s separately."
                    ),
                )

    last = len(items) - 1
    for position, item in enumerate(items):
        if item is None or item.category not in rules.counter_required_categories:
            continue
        if not requires_counter_pose(item, rules):
            continue
        if position == last:
            return SequencingResult(
                valid=False,
                warning=(
                    f"{item.name} requires a counter-pose ({_counter_names(item)}). "
                    f"Never end practice with {item.name}."
                ),
            )
        if not any(
            later is not None and _is_counter_for(later, item, rules)
            for later in items[position + 1 :]
        ):
            return SequencingResult(
                valid=False,
                warning=f"{item.name} must be followed by a counter-pose ({_counter_names(item)}).",
            )

    return SequencingResult(valid=True)
