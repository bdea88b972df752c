"""Command-line interface for inspecting and maintaining mindful storage."""

from __future__ import annotations

import argparse
from collections.abc import Sequence
import logging
from pathlib import Path
import sys

from rich.console import Console
from rich.markup import escape
from rich.table import Table

from mindful.core.config.loader import load_app_config, setup_logging
from mindful.core.config.models import AppConfig, ConfigError
from mindful.core.persistence.maintenance import (
    cleanup_corrupted_backups,
    export_data,
    import_data,
    validate_all_stores,
)
from mindful.core.sequencing.catalog import StaticCatalog
from mindful.core.services import PracticeServices, build_services
from mindful.core.storage.factory import create_storage
from mindful.core.storage.models import StorageError
from mindful.core.storage.utils import storage_size_kb
from mindful.core.utils.json import read_json, write_json

console = Console()
logger = logging.getLogger(__name__)


def _open_services(config: AppConfig) -> PracticeServices:
    return build_services(
        create_storage(config.storage), StaticCatalog([]), value_range=config.overrides
    )


def cmd_validate(services: PracticeServices, args: argparse.Namespace) -> int:
    report = validate_all_stores(services.storage, services.validators())

    table = Table(title="Store health")
    table.add_column("Store")
    table.add_column("Status")
    for key in report.valid:
        table.add_row(key, "[green]valid[/green]")
    for key in report.invalid:
        table.add_row(key, "[red]invalid[/red]")
    for key in report.missing:
        table.add_row(key, "[dim]missing[/dim]")
    console.print(table)

    if not report.healthy:
        console.print(f"[red]{len(report.invalid)} store(s) are corrupted[/red]")
        return 1
    console.print("[green]✅ All stores valid[/green]")
    return 0


def cmd_cleanup_backups(services: PracticeServices, args: argparse.Namespace) -> int:
    removed = cleanup_corrupted_backups(services.storage, keep=args.keep)
    for key in removed:
        console.print(f"  removed {key}")
    console.print(f"[green]Removed {len(removed)} old backup(s)[/green]")
    return 0


def cmd_export(services: PracticeServices, args: argparse.Namespace) -> int:
    out = Path(args.out)
    bundle = export_data(services.storage, services.store_keys())
    write_json(out, bundle.model_dump(mode="json", by_alias=True))
    exported = sum(1 for value in bundle.stores.values() if value is not None)
    console.print(f"[green]📁 Exported {exported} store(s) to[/green] {out}")
    return 0


def cmd_import(services: PracticeServices, args: argparse.Namespace) -> int:
    path = Path(args.input)
    if not path.exists():
        console.print(f"[red]ERROR: Backup file not found: {escape(str(path))}[/red]")
        return 1
    try:
        bundle = import_data(services.storage, read_json(path))
    except (ValueError, RecursionError) as e:
        console.print(f"[red]ERROR: {escape(str(e))}[/red]")
        return 1
    console.print(f"[green]✅ Restored backup from {bundle.export_date}[/green]")
    return 0


def cmd_size(services: PracticeServices, args: argparse.Namespace) -> int:
    console.print(f"Storage usage: {storage_size_kb(services.storage)} KB")
    return 0


COMMANDS = {
    "validate": cmd_validate,
    "cleanup-backups": cmd_cleanup_backups,
    "export": cmd_export,
    "import": cmd_import,
    "size": cmd_size,
}


def build_arg_parser() -> argparse.ArgumentParser:
    """Build argument parser for CLI."""
    p = argparse.ArgumentParser(
        prog="mindful",
        description="Inspect and maintain persisted mindful practice data",
    )
    p.add_argument(
        "--app-config",
        default=None,
        help="Path to app config YAML/JSON (default: mindful.yaml)",
    )
    sub = p.add_subparsers(dest="cmd", required=True)

    sub.add_parser("validate", help="Check every store for corruption")

    cleanup = sub.add_parser("cleanup-backups", help="Prune old corrupted-data backups")
    cleanup.add_argument("--keep", type=int, default=None, help="Backups to keep per store")

    export = sub.add_parser("export", help="Write all stores to a backup file")
    export.add_argument("out", help="Output JSON path")

    restore = sub.add_parser("import", help="Restore stores from a backup file")
    restore.add_argument("input", help="Backup JSON path")

    sub.add_parser("size", help="Show storage usage")

    return p


def run(argv: Sequence[str] | None = None) -> int:
    """Parse ``argv`` and run one command; returns the exit code."""
    args = build_arg_parser().parse_args(argv)

    try:
        config = load_app_config(args.app_config)
    except (ConfigError, FileNotFoundError) as e:
        console.print(f"[red]ERROR: Could not load config: {escape(str(e))}[/red]")
        return 1
    setup_logging(config)

    if args.cmd == "cleanup-backups":
        if args.keep is None:
            args.keep = config.backups_to_keep
        elif args.keep < 0:
            console.print("[red]ERROR: --keep must be zero or more[/red]")
            return 1

    try:
        services = _open_services(config)
    except StorageError as e:
        console.print(f"[red]ERROR: Could not open storage: {escape(str(e))}[/red]")
        return 1

    try:
        return COMMANDS[args.cmd](services, args)
    except StorageError as e:
        logger.error("%s failed: %s", args.cmd, e)
        console.print(f"[red]ERROR: {escape(str(e))}[/red]")
        return 1
    finally:
        services.close()
        close = getattr(services.storage, "close", None)
        if callable(close):
            close()


def main() -> None:
    """Main entry point for CLI."""
    sys.exit(run())


if __name__ == "__main__":
    main()
