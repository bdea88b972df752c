"""Storage maintenance: health checks, backup pruning, export and import.

Works on raw storage slots rather than cells, so it can inspect stores that
are not currently loaded by anyone.
"""

from __future__ import annotations

from collections.abc import Callable, Iterable, Mapping
import json
import logging
import time
from typing import Any

from pydantic import BaseModel, Field, ValidationError

from mindful.core.persistence.cell import BACKUP_MARKER, backup_key_for
from mindful.core.storage.models import StorageError
from mindful.core.storage.protocols import KeyValueStorage
from mindful.core.utils.time import iso_timestamp

logger = logging.getLogger(__name__)

Validator = Callable[[Any], bool]

BACKUP_FORMAT_VERSION = "1.0"
APP_VERSION = "1.0.0"
LAST_BACKUP_KEY = "last-backup-date"
LAST_RESTORE_KEY = "last-restore-date"
PRE_IMPORT_PREFIX = "yoga-backup-before-import-"


class BackupFormatError(ValueError):
    """Raised when an import bundle is malformed or empty."""


class StoreReport(BaseModel):
    """Health of a set of stores."""

    valid: list[str] = Field(default_factory=list)
    invalid: list[str] = Field(default_factory=list)
    missing: list[str] = Field(default_factory=list)

    @property
    def healthy(self) -> bool:
        return not self.invalid


class BackupBundle(BaseModel):
    """Portable snapshot of raw store payloads."""

    version: str
    export_date: str = Field(alias="exportDate")
    app_version: str = Field(default=APP_VERSION, alias="appVersion")
    stores: dict[str, str | None] = Field(default_factory=dict)

    model_config = {"populate_by_name": True}

    def to_json(self) -> str:
        return self.model_dump_json(by_alias=True, indent=2)


def _iso_now(clock: Callable[[], float]) -> str:
    return iso_timestamp(clock())


def _check(raw: str, validator: Validator) -> Any:
    """Parse and validate; raises ValueError on either failure."""
    try:
        parsed = json.loads(raw)
    except RecursionError as e:
        raise ValueError(f"payload nested too deeply: {e}") from e
    if not validator(parsed):
        raise ValueError("Validation failed")
    return parsed


def validate_and_repair(
    storage: KeyValueStorage,
    key: str,
    validator: Validator,
    *,
    clock: Callable[[], float] = time.time,
) -> Any | None:
    """Return the validated payload at ``key``, or ``None`` if absent or corrupted.

    A corrupted payload is moved to ``<key>-corrupted-<ms>`` and the primary
    slot is deleted so the owning store starts from its defaults.
    """
    raw = storage.get_item(key)
    if raw is None:
        logger.warning("%s is empty, will initialize with defaults", key)
        return None

    try:
        return _check(raw, validator)
    except ValueError as e:
        logger.error("%s is corrupted: %s", key, e)
        backup_key = backup_key_for(key, int(clock() * 1000))
        try:
            storage.set_item(backup_key, raw)
            logger.warning("Corrupted data backed up to %s", backup_key)
        except StorageError as write_error:
            logger.warning("Could not back up %s: %s", key, write_error)
        storage.remove_item(key)
        return None


def validate_all_stores(
    storage: KeyValueStorage, validators: Mapping[str, Validator]
) -> StoreReport:
    """Classify each named store as valid, invalid or missing without modifying anything."""
    report = StoreReport()
    for key, validator in validators.items():
        raw = storage.get_item(key)
        if raw is None:
            report.missing.append(key)
            continue
        try:
            _check(raw, validator)
        except ValueError:
            report.invalid.append(key)
        else:
            report.valid.append(key)
    return report


def _backup_timestamp(backup_key: str) -> int:
    try:
        return int(backup_key.rsplit(BACKUP_MARKER, 1)[1])
    except (IndexError, ValueError):
        return 0


def cleanup_corrupted_backups(storage: KeyValueStorage, keep: int = 3) -> list[str]:
    """Delete all but the newest ``keep`` corrupted-data backups of each store.

    Returns:
        Keys that were removed, oldest first within each store.
    """
    if keep < 0:
        raise ValueError(f"keep must be >= 0, got {keep}")

    grouped: dict[str, list[str]] = {}
    for key in storage.keys():
        if BACKUP_MARKER in key:
            store_name = key.rsplit(BACKUP_MARKER, 1)[0]
            grouped.setdefault(store_name, []).append(key)

    removed: list[str] = []
    for store_name in sorted(grouped):
        newest_first = sorted(grouped[store_name], key=_backup_timestamp, reverse=True)
        for key in reversed(newest_first[keep:]):
            storage.remove_item(key)
            logger.info("Cleaned up old backup: %s", key)
            removed.append(key)
    return removed


def export_data(
    storage: KeyValueStorage,
    keys: Iterable[str],
    *,
    clock: Callable[[], float] = time.time,
) -> BackupBundle:
    """Snapshot the raw payloads of ``keys`` and record the backup date."""
    now = _iso_now(clock)
    bundle = BackupBundle(
        version=BACKUP_FORMAT_VERSION,
        export_date=now,
        stores={key: storage.get_item(key) for key in keys},
    )
    storage.set_item(LAST_BACKUP_KEY, json.dumps(now))
    return bundle


def import_data(
    storage: KeyValueStorage,
    bundle: BackupBundle | str | Mapping[str, Any],
    *,
    clock: Callable[[], float] = time.time,
) -> BackupBundle:
    """Restore stores from a backup bundle.

    The current payloads of every store in the bundle are first saved under
    ``yoga-backup-before-import-<ms>``; stores whose bundled value is ``None``
    are left untouched.

    Raises:
        BackupFormatError: If the bundle is unreadable, lacks version or
            export date, or contains no store data
    """
    if isinstance(bundle, BackupBundle):
        parsed = bundle
    else:
        try:
            data = json.loads(bundle) if isinstance(bundle, str) else dict(bundle)
            parsed = BackupBundle.model_validate(data)
        except (ValueError, RecursionError, ValidationError) as e:
            raise BackupFormatError(
                f"Invalid backup file format - missing version or exportDate: {e}"
            ) from e

    if not parsed.version or not parsed.export_date:
        raise BackupFormatError("Invalid backup file format - missing version or exportDate")

    present = {key: value for key, value in parsed.stores.items() if value is not None}
    if not present:
        raise BackupFormatError("Backup file appears to be empty")

    now_ms = int(clock() * 1000)
    current = {key: storage.get_item(key) for key in parsed.stores}
    current["backupDate"] = _iso_now(clock)
    storage.set_item(f"{PRE_IMPORT_PREFIX}{now_ms}", json.dumps(current))

    for key, value in present.items():
        storage.set_item(key, value)
    logger.info("Restored %d stores from backup dated %s", len(present), parsed.export_date)

    storage.set_item(LAST_RESTORE_KEY, json.dumps(_iso_now(clock)))
    return parsed
