"""
Consistency Rules

Pure functions that every ledger mutation goes through. They either
return the new collection or refuse with a `MutationRefusedError`
carrying a message that can be shown to the user as-is.

The ledger invariants they protect:
- every transaction references an existing category
- every budget references an existing expense category
- category keys are unique across income and expense
- the default categories are always present
- transaction ids are unique

IMPORTANT: Refusals never leave partial effects. Callers compute every
new collection before replacing anything.
"""

from decimal import Decimal, InvalidOperation
from typing import Iterable, Optional, Union
from uuid import uuid4

from finflow.models.defaults import DEFAULT_CATEGORY_KEYS
from finflow.models.ledger import (
    AMOUNT_DECIMAL_PLACES,
    AMOUNT_MAX_DIGITS,
    Budgets,
    Category,
    Transaction,
    TransactionType,
    ValidationIssue,
)


CUSTOM_CATEGORY_PREFIX = "custom-"

AmountLike = Union[Decimal, int, float, str]

_CENT = Decimal(1).scaleb(-AMOUNT_DECIMAL_PLACES)
_AMOUNT_LIMIT = Decimal(10) ** (AMOUNT_MAX_DIGITS - AMOUNT_DECIMAL_PLACES)


# =============================================================================
# LOOKUPS
# =============================================================================

def find_category(categories: Iterable[Category], value: str) -> Optional[Category]:
    for category in categories:
        if category.value == value:
            return category
    return None


def count_usage(value: str, transactions: Iterable[Transaction]) -> int:
    """Number of transactions filed under a category."""
    return sum(1 for transaction in transactions if transaction.category == value)


def is_category_in_use(value: str, transactions: Iterable[Transaction]) -> bool:
    return any(transaction.category == value for transaction in transactions)


def to_amount(value: AmountLike) -> Decimal:
    """
    Convert user input to a Decimal amount.

    Floats go through their shortest repr so 0.1 stays 0.1.
    """
    if isinstance(value, bool):
        raise InvalidBudgetError("Please enter a valid, positive budget amount.")
    try:
        amount = value if isinstance(value, Decimal) else Decimal(str(value).strip())
    except (InvalidOperation, ValueError):
        raise InvalidBudgetError("Please enter a valid, positive budget amount.")
    if not amount.is_finite():
        raise InvalidBudgetError("Please enter a valid, positive budget amount.")
    if abs(amount) >= _AMOUNT_LIMIT:
        raise InvalidBudgetError("Budget amount is too large.")
    if amount != amount.quantize(_CENT):
        raise InvalidBudgetError(
            f"Budget amounts can have at most {AMOUNT_DECIMAL_PLACES} decimal places."
        )
    if amount.as_tuple().exponent < -AMOUNT_DECIMAL_PLACES:
        # Drop trailing zeros past the cent
        return amount.quantize(_CENT)
    return amount


# =============================================================================
# GUARDS
# =============================================================================

def ensure_category_assignable(
    transaction_type: TransactionType,
    category_key: str,
    categories: Iterable[Category],
) -> Category:
    """A transaction may only be filed under an existing category of its own type."""
    category = find_category(categories, category_key)
    if category is None:
        raise UnknownCategoryError(f"Category '{category_key}' does not exist.")
    if category.type != transaction_type:
        raise CategoryTypeMismatchError(
            f"'{category.label}' is an {category.type.value} category and cannot "
            f"hold an {transaction_type.value} transaction."
        )
    return category


def ensure_category_deletable(
    value: str,
    categories: Iterable[Category],
    transactions: Iterable[Transaction],
) -> Category:
    """Default and in-use categories cannot be deleted."""
    category = find_category(categories, value)
    if category is None:
        raise CategoryNotFoundError(f"Category '{value}' does not exist.")
    if category.is_default:
        raise DefaultCategoryError("Cannot delete a default category.")
    usage = count_usage(value, transactions)
    if usage:
        raise CategoryInUseError(
            f"'{category.label}' is used by {usage} transaction(s). "
            "Merge it into another category before deleting to reassign its transactions.",
            usage=usage,
        )
    return category


def ensure_mergeable(
    source_key: str,
    target_key: str,
    categories: Iterable[Category],
) -> tuple[Category, Category]:
    """
    Check a merge request.

    Returns (source, target). The source must be a custom category and
    both must share the same type.
    """
    categories = list(categories)
    if source_key == target_key:
        raise InvalidMergeError("Cannot merge a category into itself.")

    source = find_category(categories, source_key)
    if source is None:
        raise InvalidMergeError(f"Source category '{source_key}' does not exist.")
    target = find_category(categories, target_key)
    if target is None:
        raise InvalidMergeError(f"Destination category '{target_key}' does not exist.")

    if source.is_default:
        raise InvalidMergeError("Cannot merge from a default category.")
    if source.type != target.type:
        raise InvalidMergeError(
            f"Cannot merge an {source.type.value} category into an {target.type.value} category."
        )
    return source, target


def ensure_budgetable(
    category_key: str,
    amount: AmountLike,
    categories: Iterable[Category],
) -> Decimal:
    """Budgets need an expense category and a positive amount."""
    category = find_category(categories, category_key)
    if category is None:
        raise InvalidBudgetError(f"Category '{category_key}' does not exist.")
    if category.type != TransactionType.EXPENSE:
        raise InvalidBudgetError("Budgets can only be set on expense categories.")
    value = to_amount(amount)
    if value <= 0:
        raise InvalidBudgetError("Please enter a valid, positive budget amount.")
    return value


def ensure_type_unchanged(stored: Category, updated: Category) -> None:
    """A category's type is fixed at creation."""
    if stored.type != updated.type:
        raise CategoryTypeChangeError(
            f"'{stored.label}' is an {stored.type.value} category; "
            "its type cannot be changed."
        )


# =============================================================================
# TRANSFORMS - return new collections, never mutate the inputs
# =============================================================================

def reassign_transactions(
    transactions: Iterable[Transaction],
    source_key: str,
    target_key: str,
) -> tuple[list[Transaction], int]:
    """Move every transaction from one category to another. Returns (new list, moved count)."""
    result = []
    moved = 0
    for transaction in transactions:
        if transaction.category == source_key:
            result.append(transaction.model_copy(update={"category": target_key}))
            moved += 1
        else:
            result.append(transaction)
    return result, moved


def without_budget(budgets: Budgets, category_key: str) -> Budgets:
    return {key: amount for key, amount in budgets.items() if key != category_key}


def next_transaction_id(transactions: Iterable[Transaction], now_ms: int) -> int:
    """
    Id for a new transaction.

    The creation time in milliseconds, bumped past the largest existing
    id so two transactions created in the same tick never collide.
    """
    highest = max((transaction.id for transaction in transactions), default=0)
    return max(now_ms, highest + 1)


def generate_category_key(categories: Iterable[Category]) -> str:
    """A fresh `custom-` key that no existing category uses."""
    taken = {category.value for category in categories}
    while True:
        key = f"{CUSTOM_CATEGORY_PREFIX}{uuid4().hex[:12]}"
        if key not in taken:
            return key


# =============================================================================
# WHOLE-LEDGER CHECK
# =============================================================================

def find_integrity_issues(
    transactions: list[Transaction],
    categories: list[Category],
    budgets: Budgets,
) -> list[ValidationIssue]:
    """
    Check a complete ledger against every invariant.

    Used before a restore replaces the current state. Returns an
    empty list for a consistent ledger.
    """
    issues = []

    by_key: dict[str, Category] = {}
    for index, category in enumerate(categories):
        if category.value in by_key:
            issues.append(ValidationIssue(
                field=f"categories[{index}].value",
                issue_type="duplicate_key",
                message=f"Category key '{category.value}' is used more than once",
                severity="error",
            ))
        else:
            by_key[category.value] = category

    for key in sorted(DEFAULT_CATEGORY_KEYS):
        category = by_key.get(key)
        if category is None or not category.is_default:
            issues.append(ValidationIssue(
                field="categories",
                issue_type="missing_default",
                message=f"Default category '{key}' is missing",
                severity="error",
            ))

    seen_ids: set[int] = set()
    for index, transaction in enumerate(transactions):
        if transaction.id in seen_ids:
            issues.append(ValidationIssue(
                field=f"transactions[{index}].id",
                issue_type="duplicate_id",
                message=f"Transaction id {transaction.id} is used more than once",
                severity="error",
            ))
        seen_ids.add(transaction.id)

        category = by_key.get(transaction.category)
        if category is None:
            issues.append(ValidationIssue(
                field=f"transactions[{index}].category",
                issue_type="dangling_reference",
                message=(
                    f"Transaction '{transaction.description}' references "
                    f"unknown category '{transaction.category}'"
                ),
                severity="error",
            ))
        elif category.type != transaction.type:
            issues.append(ValidationIssue(
                field=f"transactions[{index}].type",
                issue_type="type_mismatch",
                message=(
                    f"Transaction '{transaction.description}' is {transaction.type.value} "
                    f"but its category '{category.label}' is {category.type.value}"
                ),
                severity="warning",
            ))

    for key, amount in budgets.items():
        category = by_key.get(key)
        if category is None:
            issues.append(ValidationIssue(
                field=f"budgets.{key}",
                issue_type="dangling_reference",
                message=f"Budget references unknown category '{key}'",
                severity="error",
            ))
        elif category.type != TransactionType.EXPENSE:
            issues.append(ValidationIssue(
                field=f"budgets.{key}",
                issue_type="not_expense",
                message=f"Budget set on income category '{category.label}'",
                severity="error",
            ))
        elif amount == 0:
            issues.append(ValidationIssue(
                field=f"budgets.{key}",
                issue_type="zero_budget",
                message=f"Budget for '{category.label}' is zero and will be treated as unbudgeted",
                severity="warning",
            ))

    return issues


# =============================================================================
# EXCEPTIONS
# =============================================================================

class LedgerError(Exception):
    """Base exception for ledger operations."""
    pass


class MutationRefusedError(LedgerError):
    """
    A mutation would break a ledger invariant and was not applied.

    `str(error)` is a user-facing message; `reason` is a stable code.
    """
    reason = "refused"


class DefaultCategoryError(MutationRefusedError):
    """Default categories cannot be deleted or merged away."""
    reason = "default_category"


class CategoryInUseError(MutationRefusedError):
    """The category still has transactions."""
    reason = "category_in_use"

    def __init__(self, message: str, usage: int = 0):
        super().__init__(message)
        self.usage = usage


class CategoryNotFoundError(MutationRefusedError):
    reason = "category_not_found"


class InvalidMergeError(MutationRefusedError):
    reason = "invalid_merge"


class CategoryTypeChangeError(MutationRefusedError):
    reason = "category_type_change"


class InvalidBudgetError(MutationRefusedError):
    reason = "invalid_budget"


class UnknownCategoryError(MutationRefusedError):
    """A transaction names a category that does not exist."""
    reason = "unknown_category"


class CategoryTypeMismatchError(MutationRefusedError):
    """A transaction's type differs from its category's type."""
    reason = "category_type_mismatch"
