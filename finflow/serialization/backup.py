"""
Backup Export and Import

A backup is the four persisted records in one JSON document:
`{transactions, categories, budgets, currency}`. Exporting and then
importing a backup reproduces the ledger exactly.

Import NEVER raises on bad input. Unparseable text and invalid content
both come back as a failed `BackupDecodeResult`.
"""

import json
from datetime import date
from typing import Optional, Union

from finflow.models.ledger import BackupData, BackupDecodeResult, ValidationIssue
from finflow.validation import BackupValidator


BACKUP_FILENAME_PREFIX = "finflow_backup_"


def export_backup(data: BackupData) -> str:
    """Serialize a snapshot with the persisted field names, indented for humans."""
    return data.model_dump_json(indent=2, by_alias=True)


def backup_filename(day: Optional[date] = None) -> str:
    """Download name of a backup taken on `day`, e.g. `finflow_backup_2025-01-31.json`."""
    day = day or date.today()
    return f"{BACKUP_FILENAME_PREFIX}{day.isoformat()}.json"


def import_backup(
    text: Union[str, bytes],
    validator: Optional[BackupValidator] = None,
) -> BackupDecodeResult:
    """Parse and validate the contents of a backup file."""
    try:
        payload = json.loads(text)
    except ValueError as e:
        return BackupDecodeResult(
            success=False,
            issues=[ValidationIssue(
                field="backup",
                issue_type="invalid_json",
                message=f"Backup is not valid JSON: {e}",
                severity="error",
            )],
            error_message="Backup is not valid JSON",
        )

    return (validator or BackupValidator()).validate(payload)
