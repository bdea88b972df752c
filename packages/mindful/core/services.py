"""One shared instance of every persisted store, built from one storage."""

from __future__ import annotations

from collections.abc import Callable
from dataclasses import dataclass
import logging
import threading
from typing import Any

from mindful.core.config.loader import load_app_config
from mindful.core.config.models import AppConfig
from mindful.core.overrides.models import OverrideRange
from mindful.core.overrides.store import ProgramOverrideStore, SessionOverrideStore
from mindful.core.persistence.cell import DurableCell
from mindful.core.preferences.store import PreferencesStore
from mindful.core.programs.store import ProgramProgressStore
from mindful.core.progress.store import PracticeHistoryStore
from mindful.core.sequencing.catalog import ItemCatalog, StaticCatalog
from mindful.core.sessions.store import CustomSessionStore, DraftCell
from mindful.core.storage.factory import create_storage
from mindful.core.storage.protocols import KeyValueStorage

logger = logging.getLogger(__name__)


@dataclass
class PracticeServices:
    storage: KeyValueStorage
    catalog: ItemCatalog
    custom_sessions: CustomSessionStore
    session_overrides: SessionOverrideStore
    program_overrides: ProgramOverrideStore
    history: PracticeHistoryStore
    program_progress: ProgramProgressStore
    preferences: PreferencesStore
    draft: DraftCell

    def cells(self) -> list[DurableCell[Any]]:
        return [
            self.custom_sessions.cell,
            self.session_overrides.cell,
            self.program_overrides.cell,
            self.history.cell,
            self.program_progress.cell,
            self.preferences.cell,
            self.draft,
        ]

    def store_keys(self) -> list[str]:
        """Storage slots owned by the stores, in a stable order."""
        return [cell.key for cell in self.cells()]

    def validators(self) -> dict[str, Callable[[Any], bool]]:
        """Per-slot payload checks for :func:`validate_all_stores`."""
        return {cell.key: cell.accepts for cell in self.cells()}

    def close(self) -> None:
        """Detach every store from the storage change feed."""
        for cell in self.cells():
            cell.close()


def build_services(
    storage: KeyValueStorage,
    catalog: ItemCatalog,
    value_range: OverrideRange | None = None,
) -> PracticeServices:
    return PracticeServices(
        storage=storage,
        catalog=catalog,
        custom_sessions=CustomSessionStore(storage, catalog),
        session_overrides=SessionOverrideStore(storage, value_range=value_range),
        program_overrides=ProgramOverrideStore(storage, value_range=value_range),
        history=PracticeHistoryStore(storage),
        program_progress=ProgramProgressStore(storage),
        preferences=PreferencesStore(storage),
        draft=DraftCell(storage),
    )


_services: PracticeServices | None = None
_lock = threading.Lock()


def get_services(
    config: AppConfig | None = None, catalog: ItemCatalog | None = None
) -> PracticeServices:
    """Process-wide services, built on first call.

    Later calls return the same instance and ignore their arguments.
    """
    global _services
    with _lock:
        if _services is None:
            config = config or load_app_config()
            storage = create_storage(config.storage)
            logger.debug("Built practice services on %s storage", config.storage.backend)
            _services = build_services(
                storage,
                catalog if catalog is not None else StaticCatalog([]),
                value_range=config.overrides,
            )
        return _services


def reset_services() -> None:
    """Drop the shared instance (closing its stores)."""
    global _services
    with _lock:
        if _services is not None:
            _services.close()
            _services = None
