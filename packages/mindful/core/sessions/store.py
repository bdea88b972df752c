"""Persisted custom sessions and the in-progress draft."""

from __future__ import annotations

from collections.abc import Callable, Mapping
import logging
import time
from typing import Any

from mindful.core.persistence.cell import DurableCell
from mindful.core.persistence.errors import PersistenceFailure
from mindful.core.records.errors import InvalidRecordError
from mindful.core.records.store import CollectionStore
from mindful.core.sequencing.catalog import ItemCatalog
from mindful.core.sessions.builders import create_draft_session
from mindful.core.sessions.models import CUSTOM_SESSIONS_KEY, DRAFT_KEY
from mindful.core.sessions.validation import validate_custom_session
from mindful.core.storage.protocols import KeyValueStorage
from mindful.core.utils.time import iso_timestamp

logger = logging.getLogger(__name__)


class CustomSessionStore(CollectionStore):
    """
    Collection of user-authored sessions, validated before every write.

    Args:
        storage: Backing key-value storage
        catalog: Pose catalog used to check pose references
        key: Storage slot
    """

    def __init__(
        self,
        storage: KeyValueStorage,
        catalog: ItemCatalog,
        key: str = CUSTOM_SESSIONS_KEY,
    ) -> None:
        super().__init__(storage, key)
        self.catalog = catalog

    def add(self, record: Mapping[str, Any]) -> None:
        """Validate, then append.

        Raises:
            InvalidRecordError: With ``errors`` listing every validation failure
            DuplicateIdError: If the id is taken
        """
        if isinstance(record, Mapping):
            self._validate(record)
        super().add(record)

    def update(self, record_id: str | None, patch: Mapping[str, Any] | None) -> bool:
        """Validate the merged result before writing it.

        Raises:
            InvalidRecordError: If the patched session would be invalid
        """
        if record_id and isinstance(patch, Mapping):
            current = self.get_by_id(record_id)
            if current is not None:
                self._validate({**current, **patch})
        return super().update(record_id, patch)

    def _validate(self, session: Mapping[str, Any]) -> None:
        result = validate_custom_session(session, self.catalog)
        if not result.is_valid:
            logger.warning("Rejected custom session %r: %s", session.get("id"), result.errors)
            raise InvalidRecordError("Invalid custom session", errors=result.errors)


def is_draft(value: Any) -> bool:
    return isinstance(value, dict) and isinstance(value.get("poses"), list)


class DraftCell(DurableCell[dict[str, Any]]):
    """Auto-saved session being edited; defaults to an empty draft."""

    def __init__(
        self,
        storage: KeyValueStorage,
        key: str = DRAFT_KEY,
        *,
        clock: Callable[[], float] = time.time,
    ) -> None:
        super().__init__(storage, key, create_draft_session(clock), validator=is_draft, clock=clock)

    def save(self, name: str, poses: list[dict[str, Any]]) -> PersistenceFailure | None:
        """Store the draft contents, stamping ``lastModified``."""
        draft = {
            "id": "draft",
            "name": name,
            "poses": [dict(pose) for pose in poses],
            "lastModified": iso_timestamp(self._clock()),
        }
        return self.set(draft)

    def discard(self) -> None:
        self.remove()
