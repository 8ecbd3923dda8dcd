"""
Data Models Package

This package contains all Pydantic models used in FinFlow.
All data flowing through the ledger must conform to these schemas.
"""

from finflow.models.ledger import (
    AMOUNT_DECIMAL_PLACES,
    AMOUNT_MAX_DIGITS,
    BackupData,
    BackupDecodeResult,
    BudgetAmount,
    BudgetOverview,
    BudgetProgress,
    Budgets,
    BudgetStatus,
    BudgetSummary,
    Category,
    CategoryDraft,
    Currency,
    DashboardView,
    ExpenseSlice,
    MonthlyBucket,
    Period,
    SortKey,
    SortOrder,
    Totals,
    Transaction,
    TransactionDraft,
    TransactionQuery,
    TransactionType,
    TypeFilter,
    ValidationIssue,
)
from finflow.models.audit import (
    AuditEvent,
    AuditEventBuilder,
    AuditEventType,
    AuditSeverity,
)
from finflow.models.defaults import (
    CURRENCY_LABELS,
    DEFAULT_CATEGORIES,
    DEFAULT_CATEGORY_KEYS,
    DEFAULT_CURRENCY,
    ICON_OPTIONS,
)

__all__ = [
    # Ledger models
    "BackupData",
    "BackupDecodeResult",
    "BudgetOverview",
    "BudgetProgress",
    "AMOUNT_DECIMAL_PLACES",
    "AMOUNT_MAX_DIGITS",
    "BudgetAmount",
    "Budgets",
    "BudgetStatus",
    "BudgetSummary",
    "Category",
    "CategoryDraft",
    "Currency",
    "DashboardView",
    "ExpenseSlice",
    "MonthlyBucket",
    "Period",
    "SortKey",
    "SortOrder",
    "Totals",
    "Transaction",
    "TransactionDraft",
    "TransactionQuery",
    "TransactionType",
    "TypeFilter",
    "ValidationIssue",
    # Audit models
    "AuditEvent",
    "AuditEventBuilder",
    "AuditEventType",
    "AuditSeverity",
    # Seed data
    "CURRENCY_LABELS",
    "DEFAULT_CATEGORIES",
    "DEFAULT_CATEGORY_KEYS",
    "DEFAULT_CURRENCY",
    "ICON_OPTIONS",
]
