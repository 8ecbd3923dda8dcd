"""
JSON File Storage

DESIGN DECISION: One file per record (`<data_dir>/<key>.json`).
Records are small and always rewritten whole, so there is nothing to
gain from a database.

Writes go to a temporary file first and are moved into place, so a
crash mid-write leaves the previous version intact.
"""

import json
import os
import tempfile
from pathlib import Path
from typing import Any, Optional

from finflow.services.storage.interface import (
    KeyValueStorageInterface,
    StorageReadError,
    StorageWriteError,
)


class JsonFileStorage(KeyValueStorageInterface):
    """File-per-record storage under a data directory."""

    def __init__(self, data_dir: Path):
        self._data_dir = Path(data_dir)

    @property
    def data_dir(self) -> Path:
        return self._data_dir

    def _path_for(self, key: str) -> Path:
        if not key or "/" in key or "\\" in key or key.startswith("."):
            raise ValueError(f"Invalid record key: {key!r}")
        return self._data_dir / f"{key}.json"

    def load(self, key: str) -> Optional[Any]:
        target = self._path_for(key)
        if not target.exists():
            return None
        try:
            with target.open("r", encoding="utf-8") as handle:
                return json.load(handle)
        except (ValueError, OSError) as e:
            # ValueError covers both malformed JSON and invalid UTF-8
            raise StorageReadError(f"Failed to read '{target}': {e}")

    def save(self, key: str, value: Any) -> None:
        target = self._path_for(key)
        try:
            target.parent.mkdir(parents=True, exist_ok=True)
            fd, tmp_name = tempfile.mkstemp(
                dir=target.parent, prefix=f".{key}.", suffix=".tmp"
            )
            try:
                with os.fdopen(fd, "w", encoding="utf-8") as handle:
                    json.dump(value, handle, indent=2, ensure_ascii=False)
                os.replace(tmp_name, target)
            except BaseException:
                Path(tmp_name).unlink(missing_ok=True)
                raise
        except (OSError, TypeError, ValueError) as e:
            raise StorageWriteError(f"Failed to write '{target}': {e}")

    def delete(self, key: str) -> bool:
        target = self._path_for(key)
        try:
            target.unlink()
            return True
        except FileNotFoundError:
            return False
        except OSError as e:
            raise StorageWriteError(f"Failed to delete '{target}': {e}")
