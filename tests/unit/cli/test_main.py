"""Tests for the mindful maintenance CLI."""

from __future__ import annotations

import json
from pathlib import Path

import pytest

from mindful.cli.main import build_arg_parser, run
from mindful.core.preferences.store import PreferencesStore
from mindful.core.storage.backends.file import FileStorage

pytestmark = pytest.mark.usefixtures("restore_root_logging")


@pytest.fixture
def store_dir(tmp_path: Path) -> Path:
    return tmp_path / "store"


@pytest.fixture
def app_config(tmp_path: Path, store_dir: Path) -> Path:
    """App config pointing the file backend at ``store_dir``."""
    path = tmp_path / "mindful.yaml"
    path.write_text(
        "storage:\n"
        "  backend: file\n"
        f"  path: {store_dir}\n"
        "logging:\n"
        f"  filename: {tmp_path / 'cli.log'}\n"
        "backups_to_keep: 1\n",
        encoding="utf-8",
    )
    return path


def _run(app_config: Path, *args: str) -> int:
    return run(["--app-config", str(app_config), *args])


def test_parser_requires_command() -> None:
    with pytest.raises(SystemExit):
        build_arg_parser().parse_args([])


def test_bad_config_exits_nonzero(tmp_path: Path, capsys: pytest.CaptureFixture[str]) -> None:
    path = tmp_path / "broken.yaml"
    path.write_text("storage:\n  backend: redis\n", encoding="utf-8")

    assert run(["--app-config", str(path), "size"]) == 1
    assert "Could not load config" in capsys.readouterr().out


class TestValidate:
    """Tests for the validate command."""

    def test_empty_storage_is_healthy(
        self, app_config: Path, capsys: pytest.CaptureFixture[str]
    ) -> None:
        assert _run(app_config, "validate") == 0
        assert "All stores valid" in capsys.readouterr().out

    def test_reports_corruption_without_repairing(
        self, app_config: Path, store_dir: Path, capsys: pytest.CaptureFixture[str]
    ) -> None:
        FileStorage(store_dir).set_item("customSessions", "{not json")

        assert _run(app_config, "validate") == 1
        assert "corrupted" in capsys.readouterr().out
        assert FileStorage(store_dir).get_item("customSessions") == "{not json"

    def test_valid_preferences(
        self, app_config: Path, store_dir: Path, capsys: pytest.CaptureFixture[str]
    ) -> None:
        PreferencesStore(FileStorage(store_dir)).set_theme("dark")

        assert _run(app_config, "validate") == 0
        assert "mindful-yoga-preferences" in capsys.readouterr().out


class TestExportImport:
    """Tests for export and import."""

    def test_export_writes_bundle(
        self, app_config: Path, store_dir: Path, tmp_path: Path
    ) -> None:
        PreferencesStore(FileStorage(store_dir)).set_theme("dark")
        out = tmp_path / "backups" / "export.json"

        assert _run(app_config, "export", str(out)) == 0

        data = json.loads(out.read_text(encoding="utf-8"))
        assert data["version"] == "1.0"
        assert "exportDate" in data
        assert data["stores"]["mindful-yoga-preferences"] is not None
        assert data["stores"]["customSessions"] is None

    def test_import_restores_exported_state(
        self, app_config: Path, store_dir: Path, tmp_path: Path
    ) -> None:
        PreferencesStore(FileStorage(store_dir)).set_theme("dark")
        out = tmp_path / "export.json"
        assert _run(app_config, "export", str(out)) == 0

        PreferencesStore(FileStorage(store_dir)).set_theme("light")
        assert _run(app_config, "import", str(out)) == 0

        assert PreferencesStore(FileStorage(store_dir)).get().theme == "dark"
        storage = FileStorage(store_dir)
        assert any(key.startswith("yoga-backup-before-import-") for key in storage.keys())
        assert storage.get_item("last-restore-date") is not None

    def test_import_missing_file(
        self, app_config: Path, tmp_path: Path, capsys: pytest.CaptureFixture[str]
    ) -> None:
        assert _run(app_config, "import", str(tmp_path / "nope.json")) == 1
        assert "not found" in capsys.readouterr().out

    def test_import_rejects_malformed_bundle(
        self, app_config: Path, tmp_path: Path, capsys: pytest.CaptureFixture[str]
    ) -> None:
        bundle = tmp_path / "bad.json"
        bundle.write_text("{}", encoding="utf-8")

        assert _run(app_config, "import", str(bundle)) == 1
        assert "Invalid backup" in capsys.readouterr().out

    @pytest.mark.parametrize("content", ["not json", "[1, 2]"])
    def test_import_rejects_non_object_file(
        self, app_config: Path, tmp_path: Path, content: str, capsys: pytest.CaptureFixture[str]
    ) -> None:
        bundle = tmp_path / "bad.json"
        bundle.write_text(content, encoding="utf-8")

        assert _run(app_config, "import", str(bundle)) == 1
        assert "ERROR" in capsys.readouterr().out


class TestCleanupBackups:
    """Tests for cleanup-backups."""

    @pytest.fixture
    def seeded(self, store_dir: Path) -> FileStorage:
        storage = FileStorage(store_dir)
        for stamp in (100, 200, 300):
            storage.set_item(f"customSessions-corrupted-{stamp}", "[")
        return storage

    def test_keep_from_argument(self, app_config: Path, seeded: FileStorage) -> None:
        assert _run(app_config, "cleanup-backups", "--keep", "2") == 0
        remaining = sorted(key for key in seeded.keys() if "-corrupted-" in key)
        assert remaining == ["customSessions-corrupted-200", "customSessions-corrupted-300"]

    def test_keep_defaults_to_config(self, app_config: Path, seeded: FileStorage) -> None:
        assert _run(app_config, "cleanup-backups") == 0
        remaining = [key for key in seeded.keys() if "-corrupted-" in key]
        assert remaining == ["customSessions-corrupted-300"]

    def test_negative_keep(self, app_config: Path, seeded: FileStorage) -> None:
        assert _run(app_config, "cleanup-backups", "--keep", "-1") == 1
        assert len([key for key in seeded.keys() if "-corrupted-" in key]) == 3


def test_size(app_config: Path, store_dir: Path, capsys: pytest.CaptureFixture[str]) -> None:
    PreferencesStore(FileStorage(store_dir)).set_theme("dark")

    assert _run(app_config, "size") == 0
    assert "Storage usage" in capsys.readouterr().out
