"""Tests for settings and application wiring."""

import pytest
from pydantic import ValidationError

from finflow.config import (
    AppSettings,
    Settings,
    StorageSettings,
    get_settings,
    validate_all_settings,
)
from finflow.models import Currency
from finflow.orchestrator import create_app_components, create_storage
from finflow.services.storage import InMemoryStorage, JsonFileStorage
from finflow.store import LedgerStore


@pytest.fixture(autouse=True)
def clean_env(monkeypatch, tmp_path):
    """Isolate from any .env file or FINFLOW_ variables of the developer."""
    monkeypatch.chdir(tmp_path)
    for name in (
        "APP_ENVIRONMENT",
        "DEBUG_MODE",
        "LOG_LEVEL",
        "DEFAULT_CURRENCY",
        "FINFLOW_STORAGE_BACKEND",
        "FINFLOW_STORAGE_DATA_DIR",
        "FINFLOW_STORAGE_QUOTA_BYTES",
    ):
        monkeypatch.delenv(name, raising=False)
    get_settings.cache_clear()
    yield
    get_settings.cache_clear()


class TestAppSettings:

    def test_defaults(self):
        settings = AppSettings()
        assert settings.app_environment == "development"
        assert settings.log_level == "INFO"
        assert settings.default_currency == Currency.INR
        assert settings.is_development is True

    def test_log_level_is_normalized(self, monkeypatch):
        monkeypatch.setenv("LOG_LEVEL", "debug")
        assert AppSettings().log_level == "DEBUG"

    def test_unknown_log_level_rejected(self, monkeypatch):
        monkeypatch.setenv("LOG_LEVEL", "chatty")
        with pytest.raises(ValidationError):
            AppSettings()

    def test_production_is_not_development(self, monkeypatch):
        monkeypatch.setenv("APP_ENVIRONMENT", "production")
        assert AppSettings().is_development is False

    def test_debug_mode_counts_as_development(self, monkeypatch):
        monkeypatch.setenv("APP_ENVIRONMENT", "production")
        monkeypatch.setenv("DEBUG_MODE", "true")
        assert AppSettings().is_development is True

    def test_reads_env_file(self, tmp_path):
        (tmp_path / ".env").write_text("DEFAULT_CURRENCY=EUR\n", encoding="utf-8")
        assert AppSettings().default_currency == Currency.EUR


class TestStorageSettings:

    def test_prefixed_variables(self, monkeypatch, tmp_path):
        monkeypatch.setenv("FINFLOW_STORAGE_BACKEND", "memory")
        monkeypatch.setenv("FINFLOW_STORAGE_DATA_DIR", str(tmp_path / "ledger"))
        settings = StorageSettings()
        assert settings.backend == "memory"
        assert settings.data_dir == tmp_path / "ledger"

    def test_unknown_backend_rejected(self, monkeypatch):
        monkeypatch.setenv("FINFLOW_STORAGE_BACKEND", "sqlite")
        with pytest.raises(ValidationError):
            StorageSettings()

    def test_validate_all_settings_reports_errors(self, monkeypatch):
        monkeypatch.setenv("FINFLOW_STORAGE_BACKEND", "sqlite")
        status = validate_all_settings()
        assert status["storage"] is False
        assert "storage_error" in status
        assert status["app"] is True

    def test_get_settings_is_cached(self):
        assert get_settings() is get_settings()


class TestWiring:

    def test_create_storage(self, tmp_path):
        assert isinstance(create_storage(StorageSettings(backend="memory")), InMemoryStorage)
        file_storage = create_storage(StorageSettings(data_dir=tmp_path))
        assert isinstance(file_storage, JsonFileStorage)
        assert file_storage.data_dir == tmp_path

    def test_components_without_storage(self):
        store, audit_logger = create_app_components(use_storage=False)
        assert isinstance(store, LedgerStore)
        assert store.audit_logger is audit_logger
        assert store.currency == Currency.INR

    def test_components_persist_to_data_dir(self, monkeypatch, tmp_path):
        monkeypatch.setenv("FINFLOW_STORAGE_DATA_DIR", str(tmp_path / "data"))
        monkeypatch.setenv("DEFAULT_CURRENCY", "AED")

        store, _ = create_app_components(settings=Settings())

        assert store.currency == Currency.AED
        assert (tmp_path / "data" / "categories.json").exists()
