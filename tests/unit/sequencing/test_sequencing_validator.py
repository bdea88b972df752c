"""Tests for the sequencing checks."""

from __future__ import annotations

import pytest

from mindful.core.sequencing.catalog import ItemCatalog, StaticCatalog
from mindful.core.sequencing.models import CatalogItem, SequencingRules
from mindful.core.sequencing.validator import (
    check_contraindications,
    get_counter_poses,
    requires_counter_pose,
    validate_sequencing,
)

ALTERNATING_WARNING = (
    "Avoid alternating backbends and twists. "
    "Practice backbends with counter-poses, then twists separately."
)


class TestAdjacency:
    """Tests for opposing-category neighbours."""

    @pytest.mark.parametrize(
        "ids", [["cobra-pose", "seated-twist"], ["seated-twist", "bridge-pose"]]
    )
    def test_backbend_twist_in_either_order(self, catalog: StaticCatalog, ids: list[str]) -> None:
        result = validate_sequencing(ids, catalog)
        assert not result.valid
        assert result.warning == ALTERNATING_WARNING

    def test_separated_categories_are_fine(self, catalog: StaticCatalog) -> None:
        result = validate_sequencing(["cobra-pose", "childs-pose", "seated-twist"], catalog)
        assert result.valid
        assert result.warning is None

    def test_counterpose_category_follows_backbend(self) -> None:
        """A backbend followed by a counter-pose category is valid."""
        catalog = StaticCatalog(
            [
                CatalogItem(id="A", name="A", category="backbend"),
                CatalogItem(id="B", name="B", category="twist"),
                CatalogItem(id="C", name="C", category="counterpose-for-backbend"),
            ]
        )
        assert not validate_sequencing(["A", "B"], catalog).valid
        assert validate_sequencing(["A", "C"], catalog).valid

    def test_unknown_ids_are_skipped(self, catalog: StaticCatalog) -> None:
        assert validate_sequencing(["cobra-pose", "no-such-pose", "seated-twist"], catalog).valid
        assert validate_sequencing(["no-such-pose"], catalog).valid

    def test_empty_sequence_is_valid(self, catalog: StaticCatalog) -> None:
        assert validate_sequencing([], catalog)


class TestCounterPoses:
    """Tests for inversions that demand a counter pose."""

    def test_ending_on_inversion_is_flagged(self, catalog: StaticCatalog) -> None:
        result = validate_sequencing(["mountain-pose", "shoulder-stand"], catalog)
        assert not result.valid
        assert result.warning == (
            "Shoulderstand requires a counter-pose (Fish Pose or Bridge Pose). "
            "Never end practice with Shoulderstand."
        )

    def test_lowercase_marker_counts(self, catalog: StaticCatalog) -> None:
        """'(essential)' in any case makes the counter pose mandatory."""
        result = validate_sequencing(["plow-pose"], catalog)
        assert not result.valid
        assert "Plow Pose requires a counter-pose (Fish Pose)" in (result.warning or "")

    @pytest.mark.parametrize("follow_up", ["fish-pose", "bridge-pose"])
    def test_named_or_category_counter_pose_later(
        self, catalog: StaticCatalog, follow_up: str
    ) -> None:
        ids = ["shoulder-stand", "childs-pose", follow_up, "savasana"]
        assert validate_sequencing(ids, catalog).valid

    def test_missing_counter_pose_later(self, catalog: StaticCatalog) -> None:
        result = validate_sequencing(["shoulder-stand", "mountain-pose", "savasana"], catalog)
        assert not result.valid
        assert result.warning is not None
        assert result.warning.startswith("Shoulderstand must be followed by a counter-pose")

    def test_inversion_without_required_marker(self, catalog: StaticCatalog) -> None:
        assert validate_sequencing(["mountain-pose", "downward-dog"], catalog).valid

    def test_adjacency_reported_first(self, catalog: StaticCatalog) -> None:
        """With several violations only the adjacency warning is returned."""
        result = validate_sequencing(["cobra-pose", "seated-twist", "shoulder-stand"], catalog)
        assert result.warning == ALTERNATING_WARNING

    def test_custom_rules(self, catalog: StaticCatalog) -> None:
        rules = SequencingRules(opposing_pairs=(("standing", "seated"),))
        result = validate_sequencing(["warrior-1", "staff-pose"], catalog, rules)
        assert result.warning == (
            "Avoid alternating standings and seateds. "
            "Practice standings with counter-poses, then seateds separately."
        )
        assert validate_sequencing(["cobra-pose", "seated-twist"], catalog, rules).valid


def test_requires_counter_pose(catalog: StaticCatalog) -> None:
    assert requires_counter_pose(catalog.get_item_by_id("shoulder-stand"))
    assert not requires_counter_pose(catalog.get_item_by_id("cobra-pose"))
    assert not requires_counter_pose(None)


def test_get_counter_poses(catalog: StaticCatalog) -> None:
    assert get_counter_poses("cobra-pose", catalog) == ["Child's Pose"]
    assert get_counter_poses("missing", catalog) == []


class TestContraindications:
    """Tests for check_contraindications."""

    def test_conflicts_match_case_insensitively(self, catalog: StaticCatalog) -> None:
        result = check_contraindications("shoulder-stand", catalog, ["neck", "knee"])
        assert not result.safe
        assert result.conflicts == ("Neck injury",)

    def test_no_conflicts(self, catalog: StaticCatalog) -> None:
        assert check_contraindications("shoulder-stand", catalog, ["wrist"]).safe
        assert check_contraindications("mountain-pose", catalog, ["neck"]).safe
        assert check_contraindications("missing", catalog, ["neck"]).safe


class TestCatalog:
    """Tests for StaticCatalog."""

    def test_satisfies_protocol(self, catalog: StaticCatalog) -> None:
        assert isinstance(catalog, ItemCatalog)
        assert "tree-pose" in catalog
        assert len(catalog) == 14

    def test_duplicate_ids_rejected(self) -> None:
        with pytest.raises(ValueError):
            StaticCatalog([CatalogItem(id="a"), CatalogItem(id="a")])

    def test_from_content(self) -> None:
        """Content records map onto catalog items."""
        catalog = StaticCatalog.from_content(
            [
                {
                    "id": "shoulder-stand",
                    "nameEnglish": "Shoulderstand",
                    "category": "inversion",
                    "duration": 60,
                    "sequencingNotes": {
                        "counterPoses": ["Fish Pose (REQUIRED)"],
                        "contraindications": ["Neck injury"],
                    },
                }
            ]
        )
        item = catalog.get_item_by_id("shoulder-stand")
        assert item is not None
        assert item.name == "Shoulderstand"
        assert item.counter_poses == ("Fish Pose (REQUIRED)",)
        assert requires_counter_pose(item)
