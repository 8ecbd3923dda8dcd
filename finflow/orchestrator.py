"""
Application Wiring for FinFlow

This module ties together settings, storage, audit logging and the
ledger store, so the view layer receives one ready-made store.

DESIGN DECISION: The store is created here and handed to its owner
(the Streamlit session); there is no module-level store instance.
Tests build their own stores around in-memory storage the same way.
"""

from typing import Optional

from finflow.audit import AuditLogger, configure_logging
from finflow.config import Settings, StorageSettings, get_settings
from finflow.services.storage import (
    InMemoryStorage,
    JsonFileStorage,
    KeyValueStorageInterface,
)
from finflow.store import LedgerStore


def create_storage(settings: StorageSettings) -> KeyValueStorageInterface:
    """Build the configured storage backend."""
    if settings.backend == "memory":
        return InMemoryStorage(quota_bytes=settings.quota_bytes)
    return JsonFileStorage(settings.data_dir)


def create_app_components(
    use_storage: bool = True,
    settings: Optional[Settings] = None,
) -> tuple[LedgerStore, AuditLogger]:
    """
    Factory function to create all application components.

    Args:
        use_storage: Whether to use the configured storage backend.
                    Set to False to keep everything in memory.
        settings: Settings to use instead of the cached ones.

    Returns:
        (ledger_store, audit_logger)
    """
    settings = settings or get_settings()
    app_settings = settings.app

    configure_logging(app_settings.log_level)
    audit_logger = AuditLogger()

    storage = create_storage(settings.storage) if use_storage else InMemoryStorage()

    store = LedgerStore(
        storage,
        audit_logger=audit_logger,
        report_storage_errors=app_settings.is_development,
        default_currency=app_settings.default_currency,
    )
    return store, audit_logger
