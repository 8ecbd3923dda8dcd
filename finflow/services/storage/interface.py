"""
Abstract Storage Interface

DESIGN DECISION: The ledger persists through a tiny key-value interface.
This allows us to:
1. Keep a JSON file per record on disk
2. Use in-memory storage for testing
3. Swap in another backend without touching the store

Each record (`transactions`, `categories`, `budgets`, `currency`) is one
JSON-encodable value saved under a stable key. Writes always replace the
whole record.
"""

from abc import ABC, abstractmethod
from typing import Any, Optional


# Stable record names
TRANSACTIONS_KEY = "transactions"
CATEGORIES_KEY = "categories"
BUDGETS_KEY = "budgets"
CURRENCY_KEY = "currency"

RECORD_KEYS = (TRANSACTIONS_KEY, CATEGORIES_KEY, BUDGETS_KEY, CURRENCY_KEY)


class KeyValueStorageInterface(ABC):
    """
    Abstract interface for record storage.

    Any storage implementation must implement these methods.
    """

    @abstractmethod
    def load(self, key: str) -> Optional[Any]:
        """
        Load a record.

        Args:
            key: Record name

        Returns:
            The decoded JSON value, or None if nothing is stored

        Raises:
            StorageReadError: If the record exists but cannot be read
        """
        pass

    @abstractmethod
    def save(self, key: str, value: Any) -> None:
        """
        Replace a record.

        Args:
            key: Record name
            value: JSON-encodable value

        Raises:
            StorageWriteError: If the write fails
        """
        pass

    @abstractmethod
    def delete(self, key: str) -> bool:
        """
        Remove a record.

        Returns:
            True if something was removed
        """
        pass


class StorageError(Exception):
    """Base exception for storage operations."""
    pass


class StorageReadError(StorageError):
    """A stored record could not be read or decoded."""
    pass


class StorageWriteError(StorageError):
    """A record could not be written."""
    pass


class QuotaExceededError(StorageWriteError):
    """The backend is full."""
    pass
