"""Rules a custom session must satisfy before it is saved."""

from __future__ import annotations

from collections.abc import Mapping
from typing import Any

from mindful.core.sequencing.catalog import ItemCatalog
from mindful.core.sessions.models import (
    DURATION_STEP,
    MAX_NAME_LENGTH,
    MAX_POSE_DURATION,
    MAX_POSES,
    MIN_POSE_DURATION,
    MIN_POSES,
    SessionValidation,
)


def _is_number(value: Any) -> bool:
    return isinstance(value, int | float) and not isinstance(value, bool)


def validate_custom_session(session: Mapping[str, Any], catalog: ItemCatalog) -> SessionValidation:
    """Collect every problem with ``session``; an empty list means valid."""
    errors: list[str] = []

    name = session.get("name")
    name = name.strip() if isinstance(name, str) else ""
    if not name:
        errors.append("Session name is required")
    elif len(name) > MAX_NAME_LENGTH:
        errors.append(f"Session name must be {MAX_NAME_LENGTH} characters or less")

    poses = session.get("poses")
    if not isinstance(poses, list):
        poses = []
    if len(poses) < MIN_POSES:
        errors.append(f"Session must have at least {MIN_POSES} poses")
    if len(poses) > MAX_POSES:
        errors.append(f"Session cannot have more than {MAX_POSES} poses")

    for position, pose in enumerate(poses, start=1):
        if not isinstance(pose, Mapping):
            errors.append(f"Pose {position} is not a valid pose entry")
            continue

        pose_id = pose.get("poseId")
        if not pose_id:
            errors.append(f"Pose {position} is missing pose ID")

        duration = pose.get("duration")
        if not _is_number(duration) or not MIN_POSE_DURATION <= duration <= MAX_POSE_DURATION:
            errors.append(
                f"Pose {position} duration must be between "
                f"{MIN_POSE_DURATION}-{MAX_POSE_DURATION} seconds"
            )
        if not _is_number(duration) or duration % DURATION_STEP != 0:
            errors.append(f"Pose {position} duration must be in {DURATION_STEP}-second increments")

        if not isinstance(pose_id, str) or catalog.get_item_by_id(pose_id) is None:
            errors.append(f"Pose {position} references unknown pose: {pose_id}")

    return SessionValidation(is_valid=not errors, errors=errors)
