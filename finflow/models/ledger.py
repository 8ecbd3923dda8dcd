"""
Core Data Models for FinFlow

These models define the strict schemas for everything the ledger stores
and everything the derivation functions return. They are designed to:
1. Enforce type safety at runtime
2. Provide clear validation error messages
3. Serialize to the exact JSON layout of the persisted records and backups

DESIGN DECISION: Persisted JSON keeps the field names of the records
(`date`, `isDefault`), while Python code uses `transaction_date` and
`is_default`. Aliases bridge the two, so always dump with `by_alias=True`.
"""

from datetime import date
from decimal import Decimal
from enum import Enum
from typing import Annotated, Optional

from pydantic import (
    BaseModel,
    ConfigDict,
    Field,
    field_serializer,
    field_validator,
)


# =============================================================================
# ENUMS - Finite set of valid values
# =============================================================================

class TransactionType(str, Enum):
    """Direction of money flow. Also the fixed type of a category."""
    INCOME = "income"
    EXPENSE = "expense"


class Currency(str, Enum):
    """
    Display currency.

    Only affects formatting. Stored amounts are never converted.
    """
    INR = "INR"
    USD = "USD"
    EUR = "EUR"
    AED = "AED"


class TypeFilter(str, Enum):
    """Transaction list type filter."""
    ALL = "all"
    INCOME = "income"
    EXPENSE = "expense"


class SortKey(str, Enum):
    """Transaction list sort key. NONE means newest-created first."""
    NONE = "none"
    DATE = "date"
    AMOUNT = "amount"
    CATEGORY = "category"


class SortOrder(str, Enum):
    ASC = "asc"
    DESC = "desc"


class BudgetStatus(str, Enum):
    """Budget progress band."""
    ON_TRACK = "on_track"
    WARNING = "warning"        # 75% to 100% inclusive
    OVER_BUDGET = "over_budget"  # above 100%


# =============================================================================
# AMOUNTS
# =============================================================================

# Amounts are written to JSON as numbers. Fifteen significant digits
# survive a float round trip unchanged, so stored amounts stay within that.
AMOUNT_MAX_DIGITS = 15
AMOUNT_DECIMAL_PLACES = 2

BudgetAmount = Annotated[
    Decimal,
    Field(ge=0, max_digits=AMOUNT_MAX_DIGITS, decimal_places=AMOUNT_DECIMAL_PLACES),
]


# =============================================================================
# TRANSACTIONS
# =============================================================================

class TransactionDraft(BaseModel):
    """
    A transaction as entered by the user, before it has an id.

    Every field is required: an empty description or a
    non-positive amount is rejected here, before the store sees it.
    """
    model_config = ConfigDict(
        str_strip_whitespace=True,
        populate_by_name=True,
        frozen=True,
    )

    type: TransactionType = Field(
        ...,
        description="Income or expense"
    )
    category: str = Field(
        ...,
        min_length=1,
        description="Key (`value`) of the category this belongs to"
    )
    amount: Decimal = Field(
        ...,
        gt=0,
        max_digits=AMOUNT_MAX_DIGITS,
        decimal_places=AMOUNT_DECIMAL_PLACES,
        description="Positive amount, in the display currency"
    )
    transaction_date: date = Field(
        ...,
        alias="date",
        description="Calendar date of the transaction"
    )
    description: str = Field(
        ...,
        min_length=1,
        description="What the money was for"
    )

    @field_serializer("amount", when_used="json")
    def serialize_amount(self, amount: Decimal) -> float:
        """Records and backups carry amounts as JSON numbers."""
        return float(amount)


class Transaction(TransactionDraft):
    """
    A stored transaction.

    The id is assigned by the store at creation and never changes.
    Larger ids were created later.
    """

    id: int = Field(
        ...,
        gt=0,
        description="Unique id, increasing with creation time"
    )


# =============================================================================
# CATEGORIES
# =============================================================================

class CategoryDraft(BaseModel):
    """A category as entered by the user, before it has a key."""
    model_config = ConfigDict(str_strip_whitespace=True, frozen=True)

    label: str = Field(
        ...,
        min_length=1,
        description="Display name"
    )
    type: TransactionType = Field(
        ...,
        description="Income or expense; fixed once the category exists"
    )
    icon: str = Field(
        ...,
        min_length=1,
        description="Emoji shown next to the label"
    )


class Category(CategoryDraft):
    """
    A stored category.

    `value` is the stable key that transactions and budgets reference.
    Default categories are seeded on first run and can only be
    relabeled or re-iconed.
    """
    model_config = ConfigDict(
        str_strip_whitespace=True,
        populate_by_name=True,
        frozen=True,
    )

    value: str = Field(
        ...,
        min_length=1,
        description="Unique key, distinct from the label"
    )
    is_default: bool = Field(
        default=False,
        alias="isDefault",
        description="Seeded category that can never be deleted or merged away"
    )

    @property
    def display(self) -> str:
        return f"{self.icon} {self.label}"


# Category key -> monthly ceiling. Only expense categories.
Budgets = dict[str, Decimal]


# =============================================================================
# PERIOD SELECTION
# =============================================================================

class Period(BaseModel):
    """A calendar month, used to scope the dashboard and transaction list."""
    model_config = ConfigDict(frozen=True)

    year: int = Field(..., ge=1, le=9999)
    month: int = Field(..., ge=1, le=12)

    @property
    def key(self) -> str:
        """Sortable `YYYY-MM` key."""
        return f"{self.year:04d}-{self.month:02d}"

    @property
    def label(self) -> str:
        """Human-readable label, e.g. `January 2025`."""
        return date(self.year, self.month, 1).strftime("%B %Y")

    def contains(self, day: date) -> bool:
        return day.year == self.year and day.month == self.month

    @classmethod
    def from_key(cls, key: str) -> "Period":
        """Parse a `YYYY-MM` key."""
        try:
            year, month = key.strip().split("-")
            return cls(year=int(year), month=int(month))
        except ValueError as e:
            raise ValueError(f"Invalid period key: {key!r}") from e

    @classmethod
    def current(cls, today: Optional[date] = None) -> "Period":
        today = today or date.today()
        return cls(year=today.year, month=today.month)


# =============================================================================
# TRANSACTION LIST QUERY
# =============================================================================

class TransactionQuery(BaseModel):
    """
    Search, filter and sort options of the transaction list.

    Filters are conjunctive. An empty search text or category
    filter matches everything.
    """
    model_config = ConfigDict(frozen=True)

    search_text: str = ""
    category_filter: Optional[str] = None
    type_filter: TypeFilter = TypeFilter.ALL
    sort_key: SortKey = SortKey.NONE
    sort_order: SortOrder = SortOrder.DESC

    @field_validator('category_filter')
    @classmethod
    def empty_category_means_all(cls, v: Optional[str]) -> Optional[str]:
        return v or None

    @property
    def is_active(self) -> bool:
        """True when anything differs from the default list view."""
        return bool(
            self.search_text
            or self.category_filter
            or self.type_filter != TypeFilter.ALL
            or self.sort_key != SortKey.NONE
        )


# =============================================================================
# DERIVED VIEWS - computed on demand, never stored
# =============================================================================

class Totals(BaseModel):
    """Income, expense and balance of a set of transactions."""

    income: Decimal = Decimal("0")
    expense: Decimal = Decimal("0")

    @property
    def balance(self) -> Decimal:
        return self.income - self.expense


class BudgetProgress(BaseModel):
    """Spend against one category's monthly budget."""

    category: str
    budget: Decimal
    spent: Decimal
    progress: Decimal = Field(
        ...,
        description="spent / budget * 100, or 0 when there is no budget"
    )
    remaining: Decimal = Field(
        ...,
        description="budget - spent; negative when overspent"
    )
    status: BudgetStatus

    @property
    def is_over(self) -> bool:
        return self.remaining < 0


class BudgetSummary(BaseModel):
    """All budgets added up, against spend in budgeted categories only."""

    total_budget: Decimal
    total_spent: Decimal
    progress: Decimal
    status: BudgetStatus

    @property
    def remaining(self) -> Decimal:
        return self.total_budget - self.total_spent


class MonthlyBucket(BaseModel):
    """One point of the income/expense trend."""

    month: str = Field(..., description="`YYYY-MM` key")
    label: str = Field(..., description="Short label, e.g. `Jan 25`")
    income: Decimal = Decimal("0")
    expense: Decimal = Decimal("0")

    @property
    def net(self) -> Decimal:
        return self.income - self.expense


class ExpenseSlice(BaseModel):
    """One slice of the expense breakdown chart."""

    category: str
    name: str
    value: Decimal


class DashboardView(BaseModel):
    """Everything the dashboard shows for one period."""

    period: Period
    totals: Totals
    budget_cards: list[BudgetProgress] = Field(default_factory=list)
    budget_summary: Optional[BudgetSummary] = None
    has_unbudgeted_categories: bool = False
    expense_breakdown: list[ExpenseSlice] = Field(default_factory=list)
    trend: list[MonthlyBucket] = Field(default_factory=list)


class BudgetOverview(BaseModel):
    """Budget editor rows: every expense category, current calendar month."""

    period: Period
    rows: list[BudgetProgress] = Field(default_factory=list)


# =============================================================================
# BACKUP & VALIDATION
# =============================================================================

class BackupData(BaseModel):
    """
    Complete snapshot of the ledger.

    Same shape as the four persisted records put together, so an
    exported backup can be imported again unchanged.
    """

    transactions: list[Transaction]
    categories: list[Category]
    budgets: dict[str, BudgetAmount]
    currency: Currency

    @field_serializer("budgets", when_used="json")
    def serialize_budgets(self, budgets: dict[str, Decimal]) -> dict[str, float]:
        return {key: float(amount) for key, amount in budgets.items()}


class ValidationIssue(BaseModel):
    """A single problem found while validating a backup."""

    field: str = Field(
        ...,
        description="Where the issue is, e.g. `budgets` or `transactions[3].category`"
    )
    issue_type: str = Field(
        ...,
        description="Type of issue (e.g., 'missing', 'invalid_type', 'dangling_reference')"
    )
    message: str = Field(
        ...,
        description="Human-readable description of the issue"
    )
    severity: str = Field(
        ...,
        pattern="^(error|warning)$",
        description="Errors block the import, warnings do not"
    )


class BackupDecodeResult(BaseModel):
    """
    Tagged result of decoding a backup.

    `data` is set only when `success` is True. Callers check the tag
    instead of catching exceptions.
    """

    success: bool
    data: Optional[BackupData] = None
    issues: list[ValidationIssue] = Field(default_factory=list)
    error_message: Optional[str] = None

    @property
    def has_errors(self) -> bool:
        return any(issue.severity == "error" for issue in self.issues)

    @property
    def error_count(self) -> int:
        return sum(1 for issue in self.issues if issue.severity == "error")

    @property
    def warnings(self) -> list[str]:
        return [issue.message for issue in self.issues if issue.severity == "warning"]
