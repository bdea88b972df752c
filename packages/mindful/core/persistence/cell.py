"""Durable key-value cell.

A :class:`DurableCell` owns one namespaced storage slot holding a single
JSON-serializable value. It never raises storage problems at its caller:

- corrupted payloads (bad JSON, failed shape check, version mismatch) are
  backed up under ``<key>-corrupted-<epoch ms>``, deleted, and replaced by
  the default;
- failed writes leave the in-memory value authoritative and flag the cell
  as degraded via :attr:`DurableCell.error`.

Changes written to the same key by another execution context arrive through
the storage change feed and are pushed to subscribers.
"""

from __future__ import annotations

from collections.abc import Callable
import copy
import json
import logging
import time
from typing import Any, Generic, TypeVar

from pydantic import BaseModel, ValidationError

from mindful.core.persistence.errors import (
    CorruptedDataError,
    PersistenceError,
    PersistenceFailure,
)
from mindful.core.storage.models import QuotaExceededError, StorageError, StorageEvent
from mindful.core.storage.protocols import KeyValueStorage, Unsubscribe
from mindful.core.utils.json import dumps_compact
from mindful.core.utils.logging import get_logger

T = TypeVar("T")

Validator = Callable[[Any], bool]
CellListener = Callable[[Any], None]

BACKUP_MARKER = "-corrupted-"


def backup_key_for(key: str, timestamp_ms: int) -> str:
    """Key under which a corrupted payload of ``key`` is archived."""
    return f"{key}{BACKUP_MARKER}{timestamp_ms}"


class DurableCell(Generic[T]):
    """
    One persisted value with corruption recovery and change notification.

    Args:
        storage: Backing key-value storage
        key: Storage slot name
        default: Value used when the slot is absent or unusable. Deep-copied
            on every use, so mutating a returned value never alters it.
        validator: Optional shape check run on the decoded value
        model: Optional pydantic model; the cell then holds model instances
        version: When set, the slot holds ``{"state": value, "version": n}``
            and any other version is treated as corruption
        backup_corrupted: Archive corrupted payloads before deleting them
        clock: Time source in seconds (used for backup key timestamps)

    Example:
        >>> from mindful.core.storage import MemoryStorage
        >>> cell = DurableCell(MemoryStorage(), "counter", 0)
        >>> cell.set(lambda n: n + 1)
        >>> cell.value
        1
    """

    def __init__(
        self,
        storage: KeyValueStorage,
        key: str,
        default: T,
        *,
        validator: Validator | None = None,
        model: type[BaseModel] | None = None,
        version: int | None = None,
        backup_corrupted: bool = True,
        clock: Callable[[], float] = time.time,
    ) -> None:
        if not key:
            raise ValueError("DurableCell key must be a non-empty string")
        self.storage = storage
        self.key = key
        self._default = default
        self._validator = validator
        self._model = model
        self.version = version
        self.backup_corrupted = backup_corrupted
        self._clock = clock
        self._logger = get_logger(__name__, storage_key=key)

        self._value: T = self.default
        self._loaded = False
        self._error: PersistenceError | None = None
        self._listeners: list[CellListener] = []
        self._detach: Unsubscribe | None = storage.subscribe(self._on_storage_event)

    # ------------------------------------------------------------------
    # State
    # ------------------------------------------------------------------

    @property
    def default(self) -> T:
        """A fresh copy of the default value."""
        if isinstance(self._default, BaseModel):
            return self._default.model_copy(deep=True)  # type: ignore[return-value]
        return copy.deepcopy(self._default)

    @property
    def value(self) -> T:
        """Current value; loads from storage on first access."""
        if not self._loaded:
            self.load()
        return self._value

    @property
    def error(self) -> PersistenceError | None:
        """Last corruption or persistence failure, cleared by the next successful write."""
        return self._error

    @property
    def is_degraded(self) -> bool:
        """True when the last write did not reach storage."""
        return isinstance(self._error, PersistenceFailure)

    @property
    def is_loaded(self) -> bool:
        return self._loaded

    # ------------------------------------------------------------------
    # Operations
    # ------------------------------------------------------------------

    def load(self) -> T:
        """(Re)read the slot. Never raises; falls back to the default."""
        try:
            raw = self.storage.get_item(self.key)
        except StorageError as e:
            self._logger.error("Error loading storage key %r: %s", self.key, e)
            self._error = PersistenceFailure(self.key, f"read failed: {e}")
            self._value = self.default
            self._loaded = True
            return self._value

        if raw is None:
            self._value = self.default
        else:
            try:
                self._value = self._decode(raw)
            except CorruptedDataError as e:
                self._recover(raw, e)
                self._value = self.default
        self._loaded = True
        return self._value

    def set(self, value: T | Callable[[T], T]) -> PersistenceFailure | None:
        """Replace the value and persist it.

        Accepts either a value or a function of the previous value. The
        in-memory value is updated before the write, so a failed write never
        rolls it back.

        Returns:
            ``None`` on success, or the captured :class:`PersistenceFailure`
        """
        new_value: T = value(self.value) if callable(value) else value
        self._value = new_value
        self._loaded = True

        try:
            raw = self._encode(new_value)
        except (TypeError, ValueError) as e:
            return self._fail(f"value is not JSON-serializable: {e}", e)

        try:
            self.storage.set_item(self.key, raw)
        except QuotaExceededError as e:
            self._logger.warning("Storage quota exceeded for key %r", self.key)
            return self._fail(f"quota exceeded: {e}", e, quota_exceeded=True)
        except StorageError as e:
            return self._fail(f"write failed: {e}", e)

        self._error = None
        return None

    def remove(self) -> PersistenceFailure | None:
        """Delete the slot and reset to the default."""
        self._value = self.default
        self._loaded = True
        try:
            self.storage.remove_item(self.key)
        except StorageError as e:
            return self._fail(f"remove failed: {e}", e)
        self._error = None
        return None

    def accepts(self, parsed: Any) -> bool:
        """True if an already-parsed JSON payload would load without recovery."""
        try:
            self._validate(parsed)
        except CorruptedDataError:
            return False
        return True

    def subscribe(self, listener: CellListener) -> Unsubscribe:
        """Call ``listener(new_value)`` whenever another context changes this key."""
        self._listeners.append(listener)

        def unsubscribe() -> None:
            if listener in self._listeners:
                self._listeners.remove(listener)

        return unsubscribe

    def close(self) -> None:
        """Stop following storage changes. Idempotent."""
        if self._detach is not None:
            self._detach()
            self._detach = None
        self._listeners.clear()

    # ------------------------------------------------------------------
    # Internals
    # ------------------------------------------------------------------

    def _decode(self, raw: str) -> T:
        try:
            parsed = json.loads(raw)
        except (ValueError, RecursionError) as e:
            raise CorruptedDataError(self.key, f"invalid JSON: {e}") from e
        return self._validate(parsed)

    def _validate(self, parsed: Any) -> T:
        if self.version is not None:
            if not isinstance(parsed, dict) or "state" not in parsed:
                raise CorruptedDataError(self.key, "missing versioned envelope")
            stored_version = parsed.get("version")
            if stored_version != self.version:
                raise CorruptedDataError(
                    self.key, f"version {stored_version!r} does not match {self.version}"
                )
            parsed = parsed["state"]

        value: Any = parsed
        if self._model is not None:
            try:
                value = self._model.model_validate(parsed)
            except ValidationError as e:
                raise CorruptedDataError(
                    self.key, f"failed {self._model.__name__} validation: {e.error_count()} errors"
                ) from e

        if self._validator is not None and not self._validator(value):
            raise CorruptedDataError(self.key, "failed shape validation")

        return value  # type: ignore[no-any-return]

    def _encode(self, value: T) -> str:
        payload: Any = value.model_dump(mode="json") if isinstance(value, BaseModel) else value
        if self.version is not None:
            payload = {"state": payload, "version": self.version}
        return dumps_compact(payload)

    def _recover(self, raw: str, error: CorruptedDataError) -> None:
        """Archive (optionally) and delete a corrupted slot."""
        self._logger.error("%s is corrupted: %s", self.key, error.message)

        if self.backup_corrupted:
            backup_key = backup_key_for(self.key, int(self._clock() * 1000))
            try:
                self.storage.set_item(backup_key, raw)
                error.backup_key = backup_key
                self._logger.warning("Corrupted data backed up to %s", backup_key)
            except StorageError as e:
                self._logger.warning("Could not back up corrupted %r: %s", self.key, e)

        try:
            self.storage.remove_item(self.key)
        except StorageError as e:
            self._logger.warning("Could not remove corrupted %r: %s", self.key, e)

        self._error = error

    def _fail(
        self, message: str, cause: Exception, quota_exceeded: bool = False
    ) -> PersistenceFailure:
        failure = PersistenceFailure(self.key, message, quota_exceeded=quota_exceeded)
        failure.__cause__ = cause
        self._logger.error("Error saving storage key %r: %s", self.key, message)
        self._error = failure
        return failure

    def _on_storage_event(self, event: StorageEvent) -> None:
        if event.key is None:
            self._value = self.default
            self._error = None
        elif event.key != self.key:
            return
        elif event.new_value is None:
            self._value = self.default
            self._error = None
        else:
            try:
                self._value = self._decode(event.new_value)
                self._error = None
            except CorruptedDataError as e:
                self._logger.warning("Error syncing %r from another context", self.key)
                self._recover(event.new_value, e)
                self._value = self.default
        self._loaded = True
        self._notify()

    def _notify(self) -> None:
        for listener in list(self._listeners):
            try:
                listener(self._value)
            except Exception:
                self._logger.exception("Subscriber of %r failed", self.key)
