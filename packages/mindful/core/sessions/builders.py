"""Construction and formatting helpers for custom sessions."""

from __future__ import annotations

from collections.abc import Callable, Iterable, Mapping
import math
import random
import string
import time
from typing import Any

from mindful.core.sequencing.catalog import ItemCatalog
from mindful.core.sessions.models import (
    CUSTOM_DESCRIPTION,
    DEFAULT_SESSION_NAME,
    DURATION_STEP,
    MAX_POSE_DURATION,
    MIN_POSE_DURATION,
    DurationOption,
)
from mindful.core.utils.time import iso_timestamp

_ID_ALPHABET = string.ascii_lowercase + string.digits


def generate_session_id(clock: Callable[[], float] = time.time) -> str:
    """``custom-<epoch ms>-<9 base36 chars>``."""
    suffix = "".join(random.choices(_ID_ALPHABET, k=9))
    return f"custom-{int(clock() * 1000)}-{suffix}"


def calculate_total_duration(poses: Iterable[Mapping[str, Any]]) -> int:
    """Sum of pose durations in seconds; entries without one count as zero."""
    return sum(pose.get("duration") or 0 for pose in poses)


def format_duration(seconds: int) -> str:
    """Compact label: ``45s``, ``2m`` or ``1m 30s``."""
    minutes, remainder = divmod(int(seconds), 60)
    if minutes == 0:
        return f"{remainder}s"
    if remainder == 0:
        return f"{minutes}m"
    return f"{minutes}m {remainder}s"


def duration_options() -> list[DurationOption]:
    """Selectable per-pose durations."""
    return [
        DurationOption(value=seconds, label=format_duration(seconds))
        for seconds in range(MIN_POSE_DURATION, MAX_POSE_DURATION + 1, DURATION_STEP)
    ]


def create_custom_session(
    name: str = DEFAULT_SESSION_NAME,
    poses: Iterable[Mapping[str, Any]] = (),
    *,
    clock: Callable[[], float] = time.time,
    id_factory: Callable[[], str] | None = None,
) -> dict[str, Any]:
    """Build a new custom session record ready for :class:`CustomSessionStore`."""
    pose_list = [dict(pose) for pose in poses]
    total = calculate_total_duration(pose_list)
    return {
        "id": id_factory() if id_factory is not None else generate_session_id(clock),
        "name": name,
        "duration": math.ceil(total / 60),
        "focus": "custom",
        "bodyPart": "custom",
        "difficulty": "custom",
        "description": CUSTOM_DESCRIPTION,
        "poses": pose_list,
        "totalDurationSeconds": total,
        "createdAt": iso_timestamp(clock()),
        "isCustom": True,
    }


def create_draft_session(clock: Callable[[], float] = time.time) -> dict[str, Any]:
    return {"id": "draft", "name": "", "poses": [], "lastModified": iso_timestamp(clock())}


def with_pose_data(
    session: Mapping[str, Any] | None, catalog: ItemCatalog
) -> dict[str, Any] | None:
    """Copy of ``session`` whose poses carry their catalog entry as ``poseData``.

    Unknown pose ids get ``poseData=None``.
    """
    if session is None:
        return None
    poses = [
        {**pose, "poseData": catalog.get_item_by_id(pose.get("poseId", ""))}
        for pose in session.get("poses", [])
    ]
    return {**session, "poses": poses}
