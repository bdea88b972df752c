"""Persisted state cells and storage maintenance.

Key features:
- One JSON value per storage slot (``DurableCell``)
- Corruption recovery with timestamped backups
- Failed writes captured as error state, never raised
- Cross-context change notification
- Export/import bundles and backup pruning
"""

from mindful.core.persistence.cell import BACKUP_MARKER, DurableCell, backup_key_for
from mindful.core.persistence.errors import (
    CorruptedDataError,
    PersistenceError,
    PersistenceFailure,
)
from mindful.core.persistence.maintenance import (
    BackupBundle,
    BackupFormatError,
    StoreReport,
    cleanup_corrupted_backups,
    export_data,
    import_data,
    validate_all_stores,
    validate_and_repair,
)

__all__ = [
    "BACKUP_MARKER",
    "BackupBundle",
    "BackupFormatError",
    "CorruptedDataError",
    "DurableCell",
    "PersistenceError",
    "PersistenceFailure",
    "StoreReport",
    "backup_key_for",
    "cleanup_corrupted_backups",
    "export_data",
    "import_data",
    "validate_all_stores",
    "validate_and_repair",
]
