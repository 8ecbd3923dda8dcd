"""
Storage Services Package

Provides the abstract key-value interface and its implementations.
The store only ever sees the interface, so backends are swappable.
"""

from finflow.services.storage.interface import (
    BUDGETS_KEY,
    CATEGORIES_KEY,
    CURRENCY_KEY,
    RECORD_KEYS,
    TRANSACTIONS_KEY,
    KeyValueStorageInterface,
    QuotaExceededError,
    StorageError,
    StorageReadError,
    StorageWriteError,
)
from finflow.services.storage.memory import InMemoryStorage
from finflow.services.storage.json_file import JsonFileStorage

__all__ = [
    # Interface
    "KeyValueStorageInterface",
    # Record names
    "BUDGETS_KEY",
    "CATEGORIES_KEY",
    "CURRENCY_KEY",
    "RECORD_KEYS",
    "TRANSACTIONS_KEY",
    # Exceptions
    "QuotaExceededError",
    "StorageError",
    "StorageReadError",
    "StorageWriteError",
    # Implementations
    "InMemoryStorage",
    "JsonFileStorage",
]
