"""
Serialization Package

Backup documents (JSON) and transaction exports (CSV).
"""

from finflow.serialization.backup import backup_filename, export_backup, import_backup
from finflow.serialization.csv_export import (
    CSV_FILENAME,
    CSV_HEADER,
    NothingToExportError,
    export_transactions_csv,
)

__all__ = [
    # Backup
    "backup_filename",
    "export_backup",
    "import_backup",
    # CSV
    "CSV_FILENAME",
    "CSV_HEADER",
    "NothingToExportError",
    "export_transactions_csv",
]
