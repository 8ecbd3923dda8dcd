"""
Audit Models for FinFlow

Every ledger mutation, every refused mutation and every restore/reset
produces one audit event. Events are written to the structured log and
kept in a short in-memory history for the UI.

DESIGN DECISION: Audit events describe what happened to the ledger;
they are never read back to rebuild state.
"""

from datetime import datetime, timezone
from decimal import Decimal
from enum import Enum
from typing import Any, Optional
from uuid import UUID, uuid4

from pydantic import BaseModel, Field

from finflow.models.ledger import Category, Currency, Transaction


class AuditEventType(str, Enum):
    """Types of events we audit."""
    # Transactions
    TRANSACTION_ADDED = "transaction_added"
    TRANSACTION_UPDATED = "transaction_updated"
    TRANSACTION_DELETED = "transaction_deleted"

    # Categories
    CATEGORY_ADDED = "category_added"
    CATEGORY_UPDATED = "category_updated"
    CATEGORY_DELETED = "category_deleted"
    CATEGORIES_MERGED = "categories_merged"

    # Budgets
    BUDGET_SET = "budget_set"
    BUDGET_REMOVED = "budget_removed"
    BUDGETS_REPLACED = "budgets_replaced"

    # Settings
    CURRENCY_CHANGED = "currency_changed"

    # Whole-ledger operations
    BACKUP_RESTORED = "backup_restored"
    BACKUP_REJECTED = "backup_rejected"
    DATA_RESET = "data_reset"

    # Refusals and failures
    MUTATION_REFUSED = "mutation_refused"
    STORAGE_READ_FAILED = "storage_read_failed"
    STORAGE_WRITE_FAILED = "storage_write_failed"


class AuditSeverity(str, Enum):
    """Severity level for audit events."""
    DEBUG = "debug"
    INFO = "info"
    WARNING = "warning"
    ERROR = "error"


class AuditEvent(BaseModel):
    """A single audit event."""

    event_id: UUID = Field(
        default_factory=uuid4,
        description="Unique event identifier"
    )
    timestamp: datetime = Field(
        default_factory=lambda: datetime.now(timezone.utc),
        description="When the event occurred (UTC)"
    )

    event_type: AuditEventType
    severity: AuditSeverity = AuditSeverity.INFO

    # What the event is about
    entity_type: Optional[str] = Field(
        default=None,
        description="Type of entity (e.g., 'transaction', 'category', 'budget')"
    )
    entity_id: Optional[str] = Field(
        default=None,
        description="Transaction id or category key"
    )

    description: str = Field(..., max_length=500)
    details: dict[str, Any] = Field(default_factory=dict)
    error_message: Optional[str] = None

    is_user_action: bool = Field(
        default=False,
        description="Was this triggered by a user action?"
    )

    def to_log_dict(self) -> dict:
        """Convert to a dictionary suitable for structured logging."""
        return {
            "event_id": str(self.event_id),
            "timestamp": self.timestamp.isoformat(),
            "event_type": self.event_type.value,
            "severity": self.severity.value,
            "entity_type": self.entity_type,
            "entity_id": self.entity_id,
            "description": self.description,
            "details": self.details,
            "error_message": self.error_message,
            "is_user_action": self.is_user_action,
        }


class AuditEventBuilder:
    """
    Helper class to build audit events with common patterns.

    Usage:
        event = AuditEventBuilder.transaction_added(transaction)
        event = AuditEventBuilder.mutation_refused("delete_category", error)
    """

    @staticmethod
    def transaction_added(transaction: Transaction) -> AuditEvent:
        return AuditEvent(
            event_type=AuditEventType.TRANSACTION_ADDED,
            entity_type="transaction",
            entity_id=str(transaction.id),
            description=f"Transaction added: {transaction.description}",
            details={
                "type": transaction.type.value,
                "category": transaction.category,
                "amount": str(transaction.amount),
                "date": transaction.transaction_date.isoformat(),
            },
            is_user_action=True,
        )

    @staticmethod
    def transaction_updated(transaction: Transaction) -> AuditEvent:
        return AuditEvent(
            event_type=AuditEventType.TRANSACTION_UPDATED,
            entity_type="transaction",
            entity_id=str(transaction.id),
            description=f"Transaction updated: {transaction.description}",
            details={
                "category": transaction.category,
                "amount": str(transaction.amount),
            },
            is_user_action=True,
        )

    @staticmethod
    def transaction_deleted(transaction_id: int) -> AuditEvent:
        return AuditEvent(
            event_type=AuditEventType.TRANSACTION_DELETED,
            entity_type="transaction",
            entity_id=str(transaction_id),
            description=f"Transaction deleted: {transaction_id}",
            is_user_action=True,
        )

    @staticmethod
    def category_added(category: Category) -> AuditEvent:
        return AuditEvent(
            event_type=AuditEventType.CATEGORY_ADDED,
            entity_type="category",
            entity_id=category.value,
            description=f"Category added: {category.label}",
            details={"type": category.type.value},
            is_user_action=True,
        )

    @staticmethod
    def category_updated(category: Category) -> AuditEvent:
        return AuditEvent(
            event_type=AuditEventType.CATEGORY_UPDATED,
            entity_type="category",
            entity_id=category.value,
            description=f"Category updated: {category.label}",
            details={"label": category.label, "icon": category.icon},
            is_user_action=True,
        )

    @staticmethod
    def category_deleted(category: Category, budget_removed: bool) -> AuditEvent:
        return AuditEvent(
            event_type=AuditEventType.CATEGORY_DELETED,
            entity_type="category",
            entity_id=category.value,
            description=f"Category deleted: {category.label}",
            details={"budget_removed": budget_removed},
            is_user_action=True,
        )

    @staticmethod
    def categories_merged(
        source: Category,
        target: Category,
        moved: int,
        budget_removed: bool,
    ) -> AuditEvent:
        return AuditEvent(
            event_type=AuditEventType.CATEGORIES_MERGED,
            entity_type="category",
            entity_id=source.value,
            description=f"Category merged: {source.label} -> {target.label}",
            details={
                "target": target.value,
                "transactions_moved": moved,
                "budget_removed": budget_removed,
            },
            is_user_action=True,
        )

    @staticmethod
    def budget_set(category: str, amount: Decimal) -> AuditEvent:
        return AuditEvent(
            event_type=AuditEventType.BUDGET_SET,
            entity_type="budget",
            entity_id=category,
            description=f"Budget set for {category}: {amount}",
            details={"amount": str(amount)},
            is_user_action=True,
        )

    @staticmethod
    def budget_removed(category: str) -> AuditEvent:
        return AuditEvent(
            event_type=AuditEventType.BUDGET_REMOVED,
            entity_type="budget",
            entity_id=category,
            description=f"Budget removed for {category}",
            is_user_action=True,
        )

    @staticmethod
    def budgets_replaced(count: int) -> AuditEvent:
        return AuditEvent(
            event_type=AuditEventType.BUDGETS_REPLACED,
            entity_type="budget",
            description=f"Budgets saved: {count} active goals",
            details={"count": count},
            is_user_action=True,
        )

    @staticmethod
    def currency_changed(old: Currency, new: Currency) -> AuditEvent:
        return AuditEvent(
            event_type=AuditEventType.CURRENCY_CHANGED,
            entity_type="settings",
            description=f"Currency changed: {old.value} -> {new.value}",
            details={"old": old.value, "new": new.value},
            is_user_action=True,
        )

    @staticmethod
    def backup_restored(transactions: int, categories: int, budgets: int) -> AuditEvent:
        return AuditEvent(
            event_type=AuditEventType.BACKUP_RESTORED,
            entity_type="ledger",
            description="Backup restored, all data replaced",
            details={
                "transactions": transactions,
                "categories": categories,
                "budgets": budgets,
            },
            is_user_action=True,
        )

    @staticmethod
    def backup_rejected(issues: list[dict]) -> AuditEvent:
        return AuditEvent(
            event_type=AuditEventType.BACKUP_REJECTED,
            severity=AuditSeverity.WARNING,
            entity_type="ledger",
            description=f"Backup rejected with {len(issues)} issues",
            details={"issues": issues},
            is_user_action=True,
        )

    @staticmethod
    def data_reset() -> AuditEvent:
        return AuditEvent(
            event_type=AuditEventType.DATA_RESET,
            severity=AuditSeverity.WARNING,
            entity_type="ledger",
            description="All data reset to defaults",
            is_user_action=True,
        )

    @staticmethod
    def mutation_refused(operation: str, reason: str, message: str) -> AuditEvent:
        return AuditEvent(
            event_type=AuditEventType.MUTATION_REFUSED,
            severity=AuditSeverity.WARNING,
            description=f"Refused {operation}: {reason}",
            error_message=message,
            details={"operation": operation, "reason": reason},
            is_user_action=True,
        )

    @staticmethod
    def storage_failed(operation: str, key: str, error_message: str) -> AuditEvent:
        event_type = (
            AuditEventType.STORAGE_READ_FAILED
            if operation == "read"
            else AuditEventType.STORAGE_WRITE_FAILED
        )
        return AuditEvent(
            event_type=event_type,
            severity=AuditSeverity.ERROR,
            entity_type="record",
            entity_id=key,
            description=f"Storage {operation} failed for '{key}'",
            error_message=error_message,
        )
