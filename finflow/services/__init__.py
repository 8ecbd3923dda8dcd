"""Services package."""

from finflow.services.storage import (
    InMemoryStorage,
    JsonFileStorage,
    KeyValueStorageInterface,
    QuotaExceededError,
    StorageError,
    StorageReadError,
    StorageWriteError,
)

__all__ = [
    # Storage services
    "InMemoryStorage",
    "JsonFileStorage",
    "KeyValueStorageInterface",
    "QuotaExceededError",
    "StorageError",
    "StorageReadError",
    "StorageWriteError",
]
