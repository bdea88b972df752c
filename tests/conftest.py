"""Shared pytest fixtures for mindful tests."""

from __future__ import annotations

from collections.abc import Iterator
from datetime import datetime
import logging
from pathlib import Path

import pytest

from mindful.core.config.loader import reset_app_config_cache
from mindful.core.sequencing.catalog import StaticCatalog
from mindful.core.sequencing.models import CatalogItem
from mindful.core.services import reset_services
from mindful.core.storage.backends.memory import MemoryStorage, MemoryStorageHub

# ============================================================================
# Clock
# ============================================================================


class FakeClock:
    """Settable time source returning epoch seconds."""

    def __init__(self, start: float) -> None:
        self.now = start

    def __call__(self) -> float:
        return self.now

    def advance(self, seconds: float = 0, *, days: int = 0) -> None:
        self.now += seconds + days * 86400


@pytest.fixture
def clock() -> FakeClock:
    """Clock fixed at local noon on 2024-03-10."""
    return FakeClock(datetime(2024, 3, 10, 12, 0, 0).timestamp())


# ============================================================================
# Storage
# ============================================================================


@pytest.fixture
def hub() -> MemoryStorageHub:
    return MemoryStorageHub()


@pytest.fixture
def storage(hub: MemoryStorageHub) -> MemoryStorage:
    """First execution context ("tab") on the shared hub."""
    return hub.open_context("tab-a")


@pytest.fixture
def other_tab(hub: MemoryStorageHub) -> MemoryStorage:
    """Second execution context on the same hub."""
    return hub.open_context("tab-b")


# ============================================================================
# Catalog
# ============================================================================


@pytest.fixture
def catalog() -> StaticCatalog:
    """Small pose catalog covering every sequencing category."""
    return StaticCatalog(
        [
            CatalogItem(id="mountain-pose", name="Mountain Pose", category="standing", duration=30),
            CatalogItem(id="warrior-1", name="Warrior I", category="standing", duration=45),
            CatalogItem(id="tree-pose", name="Tree Pose", category="balance", duration=30),
            CatalogItem(id="staff-pose", name="Staff Pose", category="seated", duration=30),
            CatalogItem(
                id="forward-fold", name="Standing Forward Fold", category="forward", duration=30
            ),
            CatalogItem(
                id="cobra-pose",
                name="Cobra Pose",
                category="backbend",
                duration=30,
                counter_poses=("Child's Pose",),
                contraindications=("Back injury", "Pregnancy (later stages)"),
            ),
            CatalogItem(id="bridge-pose", name="Bridge Pose", category="backbend", duration=45),
            CatalogItem(id="fish-pose", name="Fish Pose", category="backbend", duration=30),
            CatalogItem(id="seated-twist", name="Seated Twist", category="twist", duration=30),
            CatalogItem(
                id="shoulder-stand",
                name="Shoulderstand",
                category="inversion",
                duration=60,
                counter_poses=("Fish Pose (REQUIRED)", "Bridge Pose"),
                contraindications=("Neck injury", "High blood pressure"),
            ),
            CatalogItem(
                id="plow-pose",
                name="Plow Pose",
                category="inversion",
                duration=60,
                counter_poses=("Fish Pose (essential)",),
            ),
            CatalogItem(
                id="downward-dog", name="Downward Dog", category="inversion", duration=45
            ),
            CatalogItem(id="savasana", name="Corpse Pose", category="restorative", duration=120),
            CatalogItem(id="childs-pose", name="Child's Pose", category="restorative", duration=60),
        ]
    )


# ============================================================================
# Process-wide state
# ============================================================================


@pytest.fixture(autouse=True)
def _isolate_process_state(monkeypatch: pytest.MonkeyPatch, tmp_path: Path) -> Iterator[None]:
    """Keep config cache, shared services and env overrides out of other tests."""
    monkeypatch.delenv("MINDFUL_STORAGE_DIR", raising=False)
    monkeypatch.delenv("MINDFUL_LOG_LEVEL", raising=False)
    reset_app_config_cache()
    reset_services()
    yield
    reset_services()
    reset_app_config_cache()


@pytest.fixture
def restore_root_logging() -> Iterator[None]:
    """Undo ``configure_logging`` changes to the root logger."""
    root = logging.getLogger()
    handlers, level = list(root.handlers), root.level
    yield
    for handler in root.handlers:
        if handler not in handlers:
            handler.close()
    root.handlers[:] = handlers
    root.setLevel(level)
