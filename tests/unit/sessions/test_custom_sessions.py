"""Tests for custom session validation, builders and stores."""

from __future__ import annotations

import re

import pytest

from mindful.core.records.errors import DuplicateIdError, InvalidRecordError
from mindful.core.sequencing.catalog import StaticCatalog
from mindful.core.sessions.builders import (
    calculate_total_duration,
    create_custom_session,
    create_draft_session,
    duration_options,
    format_duration,
    generate_session_id,
    with_pose_data,
)
from mindful.core.sessions.models import DRAFT_KEY
from mindful.core.sessions.store import CustomSessionStore, DraftCell
from mindful.core.sessions.validation import validate_custom_session
from mindful.core.storage.backends.memory import MemoryStorage

POSES = [
    {"poseId": "mountain-pose", "duration": 30},
    {"poseId": "tree-pose", "duration": 45},
]


class TestValidation:
    """Tests for validate_custom_session."""

    def test_valid_session(self, catalog: StaticCatalog) -> None:
        result = validate_custom_session({"name": "Morning", "poses": POSES}, catalog)
        assert result.is_valid
        assert result.errors == []

    def test_collects_every_error(self, catalog: StaticCatalog) -> None:
        """All problems are reported, not just the first."""
        session = {
            "name": "   ",
            "poses": [{"poseId": "", "duration": 10}],
        }
        result = validate_custom_session(session, catalog)
        assert not result.is_valid
        assert result.errors == [
            "Session name is required",
            "Session must have at least 2 poses",
            "Pose 1 is missing pose ID",
            "Pose 1 duration must be between 15-120 seconds",
            "Pose 1 duration must be in 15-second increments",
            "Pose 1 references unknown pose: ",
        ]

    def test_name_too_long(self, catalog: StaticCatalog) -> None:
        result = validate_custom_session({"name": "x" * 51, "poses": POSES}, catalog)
        assert result.errors == ["Session name must be 50 characters or less"]

    def test_too_many_poses(self, catalog: StaticCatalog) -> None:
        poses = [{"poseId": "mountain-pose", "duration": 15}] * 21
        result = validate_custom_session({"name": "Long", "poses": poses}, catalog)
        assert result.errors == ["Session cannot have more than 20 poses"]

    def test_unknown_pose_and_bad_duration(self, catalog: StaticCatalog) -> None:
        poses = [*POSES, {"poseId": "levitation", "duration": 130}]
        result = validate_custom_session({"name": "Odd", "poses": poses}, catalog)
        assert result.errors == [
            "Pose 3 duration must be between 15-120 seconds",
            "Pose 3 duration must be in 15-second increments",
            "Pose 3 references unknown pose: levitation",
        ]

    def test_missing_poses_key(self, catalog: StaticCatalog) -> None:
        result = validate_custom_session({"name": "Empty"}, catalog)
        assert result.errors == ["Session must have at least 2 poses"]


class TestBuilders:
    """Tests for session construction helpers."""

    def test_create_custom_session(self, clock) -> None:
        session = create_custom_session(
            "Morning", POSES, clock=clock, id_factory=lambda: "custom-1"
        )
        assert session["id"] == "custom-1"
        assert session["duration"] == 2
        assert session["totalDurationSeconds"] == 75
        assert session["focus"] == session["bodyPart"] == session["difficulty"] == "custom"
        assert session["description"] == "Your personalized yoga sequence"
        assert session["isCustom"] is True
        assert session["createdAt"].endswith("Z")
        assert session["poses"] == POSES
        assert session["poses"][0] is not POSES[0]

    def test_generated_id_format(self, clock) -> None:
        session_id = generate_session_id(clock)
        assert re.fullmatch(rf"custom-{int(clock() * 1000)}-[a-z0-9]{{9}}", session_id)

    def test_draft(self, clock) -> None:
        draft = create_draft_session(clock)
        assert draft["id"] == "draft"
        assert draft["name"] == ""
        assert draft["poses"] == []

    def test_total_duration_ignores_missing(self) -> None:
        assert calculate_total_duration([{"duration": 30}, {}, {"duration": None}]) == 30

    @pytest.mark.parametrize(
        "seconds,label", [(45, "45s"), (120, "2m"), (90, "1m 30s"), (0, "0s")]
    )
    def test_format_duration(self, seconds: int, label: str) -> None:
        assert format_duration(seconds) == label

    def test_duration_options(self) -> None:
        options = duration_options()
        assert [o.value for o in options] == [15, 30, 45, 60, 75, 90, 105, 120]
        assert options[0].label == "15s"
        assert options[4].label == "1m 15s"

    def test_with_pose_data(self, catalog: StaticCatalog) -> None:
        session = {"id": "s", "poses": [{"poseId": "tree-pose"}, {"poseId": "nope"}]}
        enriched = with_pose_data(session, catalog)
        assert enriched is not None
        assert enriched["poses"][0]["poseData"].name == "Tree Pose"
        assert enriched["poses"][1]["poseData"] is None
        assert "poseData" not in session["poses"][0]
        assert with_pose_data(None, catalog) is None


class TestCustomSessionStore:
    """Tests for CustomSessionStore."""

    @pytest.fixture
    def store(self, storage: MemoryStorage, catalog: StaticCatalog) -> CustomSessionStore:
        return CustomSessionStore(storage, catalog)

    def test_add_valid_session(self, store: CustomSessionStore, clock) -> None:
        session = create_custom_session("Morning", POSES, clock=clock)
        store.add(session)
        assert store.get_by_id(session["id"]) == session

    def test_add_invalid_session_carries_errors(self, store: CustomSessionStore) -> None:
        with pytest.raises(InvalidRecordError) as exc_info:
            store.add({"id": "custom-1", "name": "", "poses": POSES})
        assert exc_info.value.errors == ["Session name is required"]
        assert store.get_all() == []

    def test_duplicate_still_detected(self, store: CustomSessionStore) -> None:
        store.add({"id": "custom-1", "name": "A", "poses": POSES})
        with pytest.raises(DuplicateIdError):
            store.add({"id": "custom-1", "name": "B", "poses": POSES})

    def test_update_validates_merged_session(self, store: CustomSessionStore) -> None:
        store.add({"id": "custom-1", "name": "A", "poses": POSES})
        with pytest.raises(InvalidRecordError):
            store.update("custom-1", {"poses": POSES[:1]})
        assert store.update("custom-1", {"name": "B"})
        assert store.get_by_id("custom-1")["name"] == "B"  # type: ignore[index]

    def test_update_missing_returns_false(self, store: CustomSessionStore) -> None:
        assert not store.update("custom-404", {"name": "B"})


class TestDraftCell:
    """Tests for the auto-saved draft."""

    def test_defaults_to_empty_draft(self, storage: MemoryStorage, clock) -> None:
        draft = DraftCell(storage, clock=clock)
        assert draft.key == DRAFT_KEY
        assert draft.value["poses"] == []

    def test_save_and_reload(self, storage: MemoryStorage, clock) -> None:
        DraftCell(storage, clock=clock).save("Evening", POSES)
        draft = DraftCell(storage, clock=clock).value
        assert draft["name"] == "Evening"
        assert draft["poses"] == POSES
        assert draft["lastModified"].endswith("Z")

    def test_discard(self, storage: MemoryStorage, clock) -> None:
        cell = DraftCell(storage, clock=clock)
        cell.save("Evening", POSES)
        cell.discard()
        assert storage.get_item(DRAFT_KEY) is None
        assert cell.value["name"] == ""

    def test_corrupt_draft_resets(self, storage: MemoryStorage, clock) -> None:
        storage.set_item(DRAFT_KEY, '{"name":"x"}')
        cell = DraftCell(storage, clock=clock)
        assert cell.value["poses"] == []
        assert cell.error is not None
