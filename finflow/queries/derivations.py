"""
Derived Views

DESIGN DECISION: Everything the dashboard, budget editor and transaction
list show is DERIVED from the ledger on demand. Nothing here is stored
or cached, so a view can never drift from the data it describes.

All functions are pure: they take plain collections from the store and
return new values or view models. Only stored transactions are counted;
nothing is estimated or projected.
"""

from collections import defaultdict
from datetime import date
from decimal import Decimal
from typing import Iterable, Optional

from finflow.models.ledger import (
    BudgetOverview,
    BudgetProgress,
    Budgets,
    BudgetStatus,
    BudgetSummary,
    Category,
    DashboardView,
    ExpenseSlice,
    MonthlyBucket,
    Period,
    SortKey,
    SortOrder,
    Totals,
    Transaction,
    TransactionQuery,
    TransactionType,
    TypeFilter,
)
from finflow.queries.formatting import category_display


# Budget bands, in percent of the budget
WARNING_THRESHOLD = Decimal("75")
OVER_BUDGET_THRESHOLD = Decimal("100")

_ZERO = Decimal("0")


# =============================================================================
# TRANSACTION AGGREGATES
# =============================================================================

def transactions_in_period(
    transactions: Iterable[Transaction],
    year: int,
    month: int,
) -> list[Transaction]:
    """Transactions dated in the given calendar month, in their original order."""
    return [
        t for t in transactions
        if t.transaction_date.year == year and t.transaction_date.month == month
    ]


def compute_totals(transactions: Iterable[Transaction]) -> Totals:
    income = _ZERO
    expense = _ZERO
    for transaction in transactions:
        if transaction.type == TransactionType.INCOME:
            income += transaction.amount
        else:
            expense += transaction.amount
    return Totals(income=income, expense=expense)


def expense_by_category(transactions: Iterable[Transaction]) -> dict[str, Decimal]:
    """Expense total per category key. Income is ignored."""
    totals: dict[str, Decimal] = {}
    for transaction in transactions:
        if transaction.type == TransactionType.EXPENSE:
            totals[transaction.category] = totals.get(transaction.category, _ZERO) + transaction.amount
    return totals


def current_month_expenses(
    transactions: Iterable[Transaction],
    today: Optional[date] = None,
) -> dict[str, Decimal]:
    """Expense per category for the current calendar month, whatever period is selected."""
    period = Period.current(today)
    return expense_by_category(transactions_in_period(transactions, period.year, period.month))


# =============================================================================
# BUDGETS
# =============================================================================

def classify_progress(progress: Decimal) -> BudgetStatus:
    """Over budget above 100%, warning from 75% to 100% inclusive."""
    if progress > OVER_BUDGET_THRESHOLD:
        return BudgetStatus.OVER_BUDGET
    if progress >= WARNING_THRESHOLD:
        return BudgetStatus.WARNING
    return BudgetStatus.ON_TRACK


def _progress(spent: Decimal, budget: Decimal) -> Decimal:
    if budget <= 0:
        return _ZERO
    return spent / budget * 100


def budget_progress(
    category: str,
    budgets: Budgets,
    monthly_expenses: dict[str, Decimal],
) -> BudgetProgress:
    """
    Spend against one category's budget.

    A category without a budget has progress 0 and counts as on track.
    """
    budget = budgets.get(category, _ZERO)
    spent = monthly_expenses.get(category, _ZERO)
    progress = _progress(spent, budget)
    return BudgetProgress(
        category=category,
        budget=budget,
        spent=spent,
        progress=progress,
        remaining=budget - spent,
        status=classify_progress(progress),
    )


def budgeted_categories(categories: Iterable[Category], budgets: Budgets) -> list[Category]:
    """Expense categories with a positive budget, in category order."""
    return [
        c for c in categories
        if c.type == TransactionType.EXPENSE and budgets.get(c.value, _ZERO) > 0
    ]


def unbudgeted_categories(categories: Iterable[Category], budgets: Budgets) -> list[Category]:
    """Expense categories that could still get a budget."""
    return [
        c for c in categories
        if c.type == TransactionType.EXPENSE and budgets.get(c.value, _ZERO) <= 0
    ]


def budget_summary(
    budgets: Budgets,
    monthly_expenses: dict[str, Decimal],
) -> Optional[BudgetSummary]:
    """
    All budgets against spend in budgeted categories.

    Spend in categories without a budget does not count. Returns None
    when there is no budget at all.
    """
    total_budget = sum(budgets.values(), _ZERO)
    if total_budget <= 0:
        return None

    total_spent = sum(
        (monthly_expenses.get(key, _ZERO) for key in budgets),
        _ZERO,
    )
    progress = _progress(total_spent, total_budget)
    return BudgetSummary(
        total_budget=total_budget,
        total_spent=total_spent,
        progress=progress,
        status=classify_progress(progress),
    )


# =============================================================================
# CHARTS
# =============================================================================

def expense_breakdown(
    transactions: Iterable[Transaction],
    categories: Iterable[Category],
) -> list[ExpenseSlice]:
    """Pie chart slices, one per category with expenses, in first-seen order."""
    categories = list(categories)
    return [
        ExpenseSlice(
            category=key,
            name=category_display(key, categories),
            value=value,
        )
        for key, value in expense_by_category(transactions).items()
    ]


def monthly_series(transactions: Iterable[Transaction]) -> list[MonthlyBucket]:
    """
    Income and expense per calendar month, oldest first.

    Months without transactions are left out, not filled with zeros.
    """
    income: dict[str, Decimal] = defaultdict(lambda: _ZERO)
    expense: dict[str, Decimal] = defaultdict(lambda: _ZERO)
    labels: dict[str, str] = {}

    for transaction in transactions:
        day = transaction.transaction_date
        key = f"{day.year:04d}-{day.month:02d}"
        labels.setdefault(key, day.strftime("%b %y"))
        if transaction.type == TransactionType.INCOME:
            income[key] += transaction.amount
        else:
            expense[key] += transaction.amount

    return [
        MonthlyBucket(month=key, label=labels[key], income=income[key], expense=expense[key])
        for key in sorted(labels)
    ]


# =============================================================================
# TRANSACTION LIST
# =============================================================================

def _matches(transaction: Transaction, query: TransactionQuery, needle: str) -> bool:
    if needle and needle not in transaction.description.casefold():
        return False
    if query.category_filter and transaction.category != query.category_filter:
        return False
    if query.type_filter != TypeFilter.ALL and transaction.type.value != query.type_filter.value:
        return False
    return True


def sort_and_filter(
    transactions: Iterable[Transaction],
    query: TransactionQuery,
    categories: Iterable[Category],
) -> list[Transaction]:
    """
    Apply the transaction list's search, filters and sort.

    Filters are conjunctive. Without a sort key the list is newest
    first by id and the sort order is ignored. Ties keep their input
    order in both directions.
    """
    needle = query.search_text.casefold()
    filtered = [t for t in transactions if _matches(t, query, needle)]

    if query.sort_key == SortKey.NONE:
        return sorted(filtered, key=lambda t: t.id, reverse=True)

    if query.sort_key == SortKey.DATE:
        key = lambda t: t.transaction_date
    elif query.sort_key == SortKey.AMOUNT:
        key = lambda t: t.amount
    else:
        labels = {c.value: c.label for c in categories}
        key = lambda t: labels.get(t.category, t.category).casefold()

    return sorted(filtered, key=key, reverse=query.sort_order == SortOrder.DESC)


# =============================================================================
# SCREENS
# =============================================================================

def build_dashboard(
    transactions: Iterable[Transaction],
    categories: Iterable[Category],
    budgets: Budgets,
    period: Period,
) -> DashboardView:
    """
    Everything the dashboard shows for a period.

    Totals, budget cards and the breakdown use the period's
    transactions; the trend covers all of them.
    """
    transactions = list(transactions)
    categories = list(categories)
    scoped = transactions_in_period(transactions, period.year, period.month)
    monthly = expense_by_category(scoped)

    return DashboardView(
        period=period,
        totals=compute_totals(scoped),
        budget_cards=[
            budget_progress(c.value, budgets, monthly)
            for c in budgeted_categories(categories, budgets)
        ],
        budget_summary=budget_summary(budgets, monthly),
        has_unbudgeted_categories=bool(unbudgeted_categories(categories, budgets)),
        expense_breakdown=expense_breakdown(scoped, categories),
        trend=monthly_series(transactions),
    )


def build_budget_overview(
    transactions: Iterable[Transaction],
    categories: Iterable[Category],
    budgets: Budgets,
    today: Optional[date] = None,
) -> BudgetOverview:
    """Budget editor rows: every expense category against the current month's spend."""
    monthly = current_month_expenses(transactions, today)
    return BudgetOverview(
        period=Period.current(today),
        rows=[
            budget_progress(c.value, budgets, monthly)
            for c in categories
            if c.type == TransactionType.EXPENSE
        ],
    )
