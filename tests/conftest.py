"""Shared fixtures: in-memory storage, a store with a frozen clock, record factories."""

from datetime import date
from decimal import Decimal

import pytest

from finflow.audit import AuditLogger
from finflow.models import Category, Transaction, TransactionDraft, TransactionType
from finflow.services.storage import InMemoryStorage
from finflow.store import LedgerStore


NOW_MS = 1_700_000_000_000


class RecordingLogger:
    """Stands in for a structlog logger and remembers every call."""

    def __init__(self):
        self.calls = []

    def _record(self, level, event, **kw):
        self.calls.append((level, event, kw))

    def debug(self, event, **kw):
        self._record("debug", event, **kw)

    def info(self, event, **kw):
        self._record("info", event, **kw)

    def warning(self, event, **kw):
        self._record("warning", event, **kw)

    def error(self, event, **kw):
        self._record("error", event, **kw)


@pytest.fixture
def storage():
    return InMemoryStorage()


@pytest.fixture
def recording_logger():
    return RecordingLogger()


@pytest.fixture
def audit_logger(recording_logger):
    return AuditLogger(logger=recording_logger)


@pytest.fixture
def store(storage, audit_logger):
    return LedgerStore(storage, audit_logger=audit_logger, clock=lambda: NOW_MS)


@pytest.fixture
def make_draft():
    def _make(
        category="food",
        amount="10",
        day=date(2025, 1, 15),
        description="Lunch",
        type=TransactionType.EXPENSE,
    ):
        return TransactionDraft(
            type=type,
            category=category,
            amount=Decimal(amount),
            transaction_date=day,
            description=description,
        )
    return _make


@pytest.fixture
def make_transaction():
    def _make(
        id,
        category="food",
        amount="10",
        day=date(2025, 1, 15),
        description="Lunch",
        type=TransactionType.EXPENSE,
    ):
        return Transaction(
            id=id,
            type=type,
            category=category,
            amount=Decimal(amount),
            transaction_date=day,
            description=description,
        )
    return _make


@pytest.fixture
def custom_expense():
    return Category(
        value="custom-abc123",
        label="Coffee",
        type=TransactionType.EXPENSE,
        icon="☕",
    )
