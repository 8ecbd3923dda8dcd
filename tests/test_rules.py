"""Tests for the consistency rules."""

import pytest
from decimal import Decimal

from finflow.models import DEFAULT_CATEGORIES, TransactionType
from finflow.rules import (
    CUSTOM_CATEGORY_PREFIX,
    CategoryInUseError,
    CategoryNotFoundError,
    CategoryTypeChangeError,
    CategoryTypeMismatchError,
    DefaultCategoryError,
    InvalidBudgetError,
    InvalidMergeError,
    LedgerError,
    MutationRefusedError,
    UnknownCategoryError,
    ensure_budgetable,
    ensure_category_assignable,
    ensure_category_deletable,
    ensure_mergeable,
    ensure_type_unchanged,
    find_integrity_issues,
    generate_category_key,
    next_transaction_id,
    reassign_transactions,
    to_amount,
    without_budget,
)


CATEGORIES = list(DEFAULT_CATEGORIES)


def issue_types(issues, severity=None):
    return [i.issue_type for i in issues if severity is None or i.severity == severity]


class TestCategoryAssignment:
    """A transaction needs an existing category of its own type."""

    def test_accepts_matching_category(self):
        category = ensure_category_assignable(TransactionType.EXPENSE, "food", CATEGORIES)
        assert category.value == "food"

    def test_refuses_unknown_category(self):
        with pytest.raises(UnknownCategoryError):
            ensure_category_assignable(TransactionType.EXPENSE, "nope", CATEGORIES)

    def test_refuses_other_type(self):
        with pytest.raises(CategoryTypeMismatchError):
            ensure_category_assignable(TransactionType.INCOME, "food", CATEGORIES)


class TestCategoryDeletion:
    """Only unused custom categories can be deleted."""

    def test_refuses_default(self):
        with pytest.raises(DefaultCategoryError, match="default"):
            ensure_category_deletable("food", CATEGORIES, [])

    def test_refuses_unknown(self):
        with pytest.raises(CategoryNotFoundError):
            ensure_category_deletable("custom-missing", CATEGORIES, [])

    def test_refuses_in_use(self, custom_expense, make_transaction):
        transactions = [
            make_transaction(1, category=custom_expense.value),
            make_transaction(2, category=custom_expense.value),
        ]
        with pytest.raises(CategoryInUseError, match="Merge") as excinfo:
            ensure_category_deletable(
                custom_expense.value, CATEGORIES + [custom_expense], transactions
            )
        assert excinfo.value.usage == 2

    def test_accepts_unused_custom(self, custom_expense):
        category = ensure_category_deletable(
            custom_expense.value, CATEGORIES + [custom_expense], []
        )
        assert category == custom_expense


class TestMerge:
    """Merge preconditions."""

    def test_returns_source_and_target(self, custom_expense):
        source, target = ensure_mergeable(
            custom_expense.value, "food", CATEGORIES + [custom_expense]
        )
        assert source.value == custom_expense.value
        assert target.value == "food"

    def test_refuses_self_merge(self, custom_expense):
        with pytest.raises(InvalidMergeError, match="itself"):
            ensure_mergeable(custom_expense.value, custom_expense.value, [custom_expense])

    def test_refuses_default_source(self):
        with pytest.raises(InvalidMergeError, match="default"):
            ensure_mergeable("food", "transport", CATEGORIES)

    def test_refuses_type_mismatch(self, custom_expense):
        with pytest.raises(InvalidMergeError):
            ensure_mergeable(custom_expense.value, "salary", CATEGORIES + [custom_expense])

    def test_refuses_missing_target(self, custom_expense):
        with pytest.raises(InvalidMergeError, match="Destination"):
            ensure_mergeable(custom_expense.value, "custom-gone", CATEGORIES + [custom_expense])


class TestBudgetRules:
    """Budgets need an expense category and a positive amount."""

    def test_accepts_positive_amount(self):
        assert ensure_budgetable("food", "250.50", CATEGORIES) == Decimal("250.50")

    def test_refuses_income_category(self):
        with pytest.raises(InvalidBudgetError, match="expense"):
            ensure_budgetable("salary", 100, CATEGORIES)

    def test_refuses_unknown_category(self):
        with pytest.raises(InvalidBudgetError):
            ensure_budgetable("nope", 100, CATEGORIES)

    @pytest.mark.parametrize("amount", [0, -5, "abc", "", "NaN", True])
    def test_refuses_bad_amounts(self, amount):
        with pytest.raises(InvalidBudgetError):
            ensure_budgetable("food", amount, CATEGORIES)

    def test_to_amount_keeps_float_digits(self):
        assert to_amount(0.1) == Decimal("0.1")

    @pytest.mark.parametrize("amount", ["12.345", 0.005, "10000000000000"])
    def test_to_amount_refuses_unstorable_precision(self, amount):
        with pytest.raises(InvalidBudgetError):
            to_amount(amount)

    def test_to_amount_accepts_trailing_zeros(self):
        assert to_amount("12.500") == Decimal("12.5")


class TestTypeChange:
    def test_refuses_type_change(self, custom_expense):
        changed = custom_expense.model_copy(update={"type": TransactionType.INCOME})
        with pytest.raises(CategoryTypeChangeError):
            ensure_type_unchanged(custom_expense, changed)

    def test_accepts_relabel(self, custom_expense):
        ensure_type_unchanged(custom_expense, custom_expense.model_copy(update={"label": "Cafe"}))


class TestTransforms:
    """Transforms return new collections."""

    def test_reassign_moves_only_source(self, make_transaction):
        transactions = [
            make_transaction(1, category="custom-a"),
            make_transaction(2, category="food"),
            make_transaction(3, category="custom-a"),
        ]
        result, moved = reassign_transactions(transactions, "custom-a", "food")
        assert moved == 2
        assert [t.category for t in result] == ["food", "food", "food"]
        assert transactions[0].category == "custom-a"

    def test_without_budget(self):
        budgets = {"food": Decimal("100"), "transport": Decimal("50")}
        assert without_budget(budgets, "food") == {"transport": Decimal("50")}
        assert "food" in budgets

    def test_next_id_uses_clock(self):
        assert next_transaction_id([], 1_000) == 1_000

    def test_next_id_never_collides(self, make_transaction):
        transactions = [make_transaction(5_000)]
        assert next_transaction_id(transactions, 1_000) == 5_001
        assert next_transaction_id(transactions, 5_000) == 5_001

    def test_generated_keys_are_unique(self):
        first = generate_category_key(CATEGORIES)
        assert first.startswith(CUSTOM_CATEGORY_PREFIX)
        assert first not in {c.value for c in CATEGORIES}
        assert generate_category_key(CATEGORIES) != first


class TestIntegrity:
    """Whole-ledger consistency check."""

    def test_clean_ledger(self, make_transaction):
        issues = find_integrity_issues(
            [make_transaction(1)], CATEGORIES, {"food": Decimal("100")}
        )
        assert issues == []

    def test_dangling_transaction_category(self, make_transaction):
        issues = find_integrity_issues([make_transaction(1, category="gone")], CATEGORIES, {})
        assert issue_types(issues, "error") == ["dangling_reference"]
        assert issues[0].field == "transactions[0].category"

    def test_dangling_budget(self):
        issues = find_integrity_issues([], CATEGORIES, {"gone": Decimal("10")})
        assert issue_types(issues, "error") == ["dangling_reference"]

    def test_budget_on_income(self):
        issues = find_integrity_issues([], CATEGORIES, {"salary": Decimal("10")})
        assert issue_types(issues, "error") == ["not_expense"]

    def test_duplicate_ids(self, make_transaction):
        issues = find_integrity_issues(
            [make_transaction(1), make_transaction(1)], CATEGORIES, {}
        )
        assert issue_types(issues, "error") == ["duplicate_id"]

    def test_duplicate_category_keys(self):
        issues = find_integrity_issues([], CATEGORIES + [CATEGORIES[0]], {})
        assert issue_types(issues, "error") == ["duplicate_key"]

    def test_missing_default(self):
        issues = find_integrity_issues([], CATEGORIES[1:], {})
        assert issue_types(issues, "error") == ["missing_default"]

    def test_default_flag_required(self):
        demoted = CATEGORIES[0].model_copy(update={"is_default": False})
        issues = find_integrity_issues([], [demoted] + CATEGORIES[1:], {})
        assert issue_types(issues, "error") == ["missing_default"]

    def test_type_mismatch_is_a_warning(self, make_transaction):
        issues = find_integrity_issues(
            [make_transaction(1, category="salary", type=TransactionType.EXPENSE)],
            CATEGORIES,
            {},
        )
        assert issue_types(issues, "error") == []
        assert issue_types(issues, "warning") == ["type_mismatch"]

    def test_zero_budget_is_a_warning(self):
        issues = find_integrity_issues([], CATEGORIES, {"food": Decimal("0")})
        assert issue_types(issues) == ["zero_budget"]


class TestExceptions:
    def test_refusals_share_a_base(self):
        for error in (
            DefaultCategoryError,
            CategoryInUseError,
            CategoryNotFoundError,
            InvalidMergeError,
            CategoryTypeChangeError,
            InvalidBudgetError,
            UnknownCategoryError,
            CategoryTypeMismatchError,
        ):
            assert issubclass(error, MutationRefusedError)
            assert issubclass(error, LedgerError)

    def test_reasons_are_distinct(self):
        reasons = {
            DefaultCategoryError.reason,
            CategoryInUseError.reason,
            InvalidMergeError.reason,
            InvalidBudgetError.reason,
        }
        assert len(reasons) == 4
