"""Helpers shared by storage backends."""

from __future__ import annotations

import hashlib
import re

from mindful.core.storage.protocols import KeyValueStorage


def sanitize_key(key: str) -> str:
    """
    Sanitize a storage key for use as a filesystem path component.

    Replaces unsafe characters with underscores.

    Example:
        >>> sanitize_key("yoga-session-customizations")
        'yoga-session-customizations'
        >>> sanitize_key("drafts/morning:v1")
        'drafts_morning_v1'
    """
    return re.sub(r"[^a-zA-Z0-9._-]", "_", key)


def slot_filename(key: str) -> str:
    """File name for a key: sanitized prefix plus a digest so distinct keys never collide."""
    digest = hashlib.sha256(key.encode("utf-8")).hexdigest()[:12]
    return f"{sanitize_key(key)[:80]}.{digest}.slot"


def storage_size_bytes(storage: KeyValueStorage) -> int:
    """Total characters held by the storage (keys plus values)."""
    total = 0
    for key in storage.keys():
        value = storage.get_item(key)
        if value is not None:
            total += len(key) + len(value)
    return total


def storage_size_kb(storage: KeyValueStorage) -> float:
    """Storage usage in kilobytes, rounded to two decimals."""
    return round(storage_size_bytes(storage) / 1024, 2)
