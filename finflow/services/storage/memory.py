"""
In-Memory Storage

Keeps each record as its JSON text, so values come back as fresh
copies exactly like they would from disk. An optional byte quota
makes writes fail the way a full browser store does.
"""

import json
from typing import Any, Optional

from finflow.services.storage.interface import (
    KeyValueStorageInterface,
    QuotaExceededError,
    StorageReadError,
    StorageWriteError,
)


class InMemoryStorage(KeyValueStorageInterface):
    """Dict-backed storage for tests and the `memory` backend."""

    def __init__(self, quota_bytes: Optional[int] = None):
        self._records: dict[str, str] = {}
        self._quota_bytes = quota_bytes

    def load(self, key: str) -> Optional[Any]:
        raw = self._records.get(key)
        if raw is None:
            return None
        try:
            return json.loads(raw)
        except json.JSONDecodeError as e:
            raise StorageReadError(f"Record '{key}' is not valid JSON: {e}")

    def save(self, key: str, value: Any) -> None:
        try:
            raw = json.dumps(value, ensure_ascii=False)
        except (TypeError, ValueError) as e:
            raise StorageWriteError(f"Record '{key}' is not JSON-encodable: {e}")

        if self._quota_bytes is not None:
            used = sum(
                len(text.encode("utf-8"))
                for name, text in self._records.items()
                if name != key
            )
            if used + len(raw.encode("utf-8")) > self._quota_bytes:
                raise QuotaExceededError(
                    f"Storage quota of {self._quota_bytes} bytes exceeded writing '{key}'"
                )

        self._records[key] = raw

    def delete(self, key: str) -> bool:
        return self._records.pop(key, None) is not None

    def put_raw(self, key: str, raw: str) -> None:
        """Store text as-is, bypassing encoding. Used to simulate corrupt records."""
        self._records[key] = raw

    def __contains__(self, key: str) -> bool:
        return key in self._records
