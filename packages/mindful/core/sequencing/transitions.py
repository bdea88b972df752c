"""Spoken transition cues between consecutive poses."""

from __future__ import annotations

from collections.abc import Mapping
from typing import Any

from mindful.core.sequencing.models import CatalogItem

DEFAULT_TRANSITION = "Transition mindfully to the next pose"
MISSING_TRANSITION = "Move to the next pose"

TRANSITIONS: dict[str, str] = {
    "standing-standing": "Shift your weight and transition",
    "standing-seated": "Lower down to a seated position",
    "standing-balance": "Find your center and balance",
    "seated-standing": "Press through your feet to stand",
    "seated-seated": "Adjust your position",
    "balance-standing": "Return to standing",
    "backbend-forward": "Counter with a gentle forward fold",
    "forward-backbend": "Open your chest for the backbend",
    "restorative-any": "Take your time transitioning",
    "any-restorative": "Settle into this restorative pose",
}


def _category(item: CatalogItem | Mapping[str, Any]) -> str:
    if isinstance(item, CatalogItem):
        return item.category or "any"
    return item.get("category") or "any"


def generate_transition(
    from_item: CatalogItem | Mapping[str, Any] | None,
    to_item: CatalogItem | Mapping[str, Any] | None,
) -> str:
    """Pick a cue by category pair, falling back to wildcard entries.

    Example:
        >>> generate_transition({"category": "standing"}, {"category": "seated"})
        'Lower down to a seated position'
    """
    if not from_item or not to_item:
        return MISSING_TRANSITION

    source, target = _category(from_item), _category(to_item)
    return (
        TRANSITIONS.get(f"{source}-{target}")
        or TRANSITIONS.get(f"{source}-any")
        or TRANSITIONS.get(f"any-{target}")
        or DEFAULT_TRANSITION
    )
