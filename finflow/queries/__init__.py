"""
Queries Package

Pure derivations over the ledger: totals, budget progress, chart
series, the filtered transaction list, and display formatting.
"""

from finflow.queries.derivations import (
    OVER_BUDGET_THRESHOLD,
    WARNING_THRESHOLD,
    budget_progress,
    budget_summary,
    budgeted_categories,
    build_budget_overview,
    build_dashboard,
    classify_progress,
    compute_totals,
    current_month_expenses,
    expense_breakdown,
    expense_by_category,
    monthly_series,
    sort_and_filter,
    transactions_in_period,
    unbudgeted_categories,
)
from finflow.queries.formatting import (
    CURRENCY_SYMBOLS,
    category_display,
    escape_for_markdown,
    format_compact,
    format_currency,
)

__all__ = [
    # Derivations
    "OVER_BUDGET_THRESHOLD",
    "WARNING_THRESHOLD",
    "budget_progress",
    "budget_summary",
    "budgeted_categories",
    "build_budget_overview",
    "build_dashboard",
    "classify_progress",
    "compute_totals",
    "current_month_expenses",
    "expense_breakdown",
    "expense_by_category",
    "monthly_series",
    "sort_and_filter",
    "transactions_in_period",
    "unbudgeted_categories",
    # Formatting
    "CURRENCY_SYMBOLS",
    "category_display",
    "escape_for_markdown",
    "format_compact",
    "format_currency",
]
