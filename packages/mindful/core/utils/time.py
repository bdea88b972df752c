"""Timestamp helpers shared by the persisted stores."""

from __future__ import annotations

from datetime import UTC, date, datetime


def iso_timestamp(seconds: float) -> str:
    """UTC ISO-8601 with millisecond precision and a ``Z`` suffix."""
    stamp = datetime.fromtimestamp(seconds, tz=UTC).isoformat(timespec="milliseconds")
    return stamp.replace("+00:00", "Z")


def parse_timestamp(value: str) -> datetime:
    """Inverse of :func:`iso_timestamp`; naive input is taken as UTC."""
    parsed = datetime.fromisoformat(value.replace("Z", "+00:00"))
    return parsed if parsed.tzinfo else parsed.replace(tzinfo=UTC)


def local_date(seconds: float) -> date:
    """Calendar day of an epoch timestamp in the local timezone."""
    return datetime.fromtimestamp(seconds).date()
