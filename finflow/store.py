"""
Ledger Store

The single owner of the ledger state: transactions, categories, budgets
and the display currency. The view layer holds one instance (in
Streamlit session state) and calls its operations; nothing else mutates
the ledger.

DESIGN DECISION: State is held as immutable models inside lists and
dicts that are REPLACED, never edited in place. Each mutation:
1. Checks the consistency rules (refusing with a MutationRefusedError)
2. Computes every new collection
3. Swaps them in
4. Persists each changed record
5. Writes an audit event

Because the checks run before anything is swapped in, a refused
mutation leaves no trace except its audit event.

DESIGN DECISION: Storage is best effort. The in-memory state is
authoritative; a failed write is only reported (in development) and
never undoes or blocks a mutation.
"""

import time
from collections.abc import Mapping
from contextlib import contextmanager
from decimal import Decimal
from typing import Any, Callable, Optional, Union

from pydantic import TypeAdapter, ValidationError

from finflow.audit import AuditLogger
from finflow.models.audit import AuditEventBuilder
from finflow.models.defaults import DEFAULT_CATEGORIES, DEFAULT_CURRENCY
from finflow.models.ledger import (
    BackupData,
    BackupDecodeResult,
    BudgetAmount,
    Budgets,
    Category,
    CategoryDraft,
    Currency,
    Period,
    Transaction,
    TransactionDraft,
)
from finflow.queries.derivations import transactions_in_period
from finflow.rules import (
    AmountLike,
    InvalidBudgetError,
    MutationRefusedError,
    ensure_budgetable,
    ensure_category_assignable,
    ensure_category_deletable,
    ensure_mergeable,
    ensure_type_unchanged,
    find_category,
    find_integrity_issues,
    generate_category_key,
    is_category_in_use,
    next_transaction_id,
    reassign_transactions,
    to_amount,
    without_budget,
)
from finflow.serialization.backup import import_backup
from finflow.services.storage import (
    BUDGETS_KEY,
    CATEGORIES_KEY,
    CURRENCY_KEY,
    RECORD_KEYS,
    TRANSACTIONS_KEY,
    KeyValueStorageInterface,
    StorageError,
)
from finflow.validation import BackupValidator


_TRANSACTIONS = TypeAdapter(list[Transaction])
_CATEGORIES = TypeAdapter(list[Category])
_BUDGETS = TypeAdapter(dict[str, BudgetAmount])
_CURRENCY = TypeAdapter(Currency)


def _now_ms() -> int:
    return time.time_ns() // 1_000_000


class LedgerStore:
    """
    Owns the ledger and applies every mutation under the consistency rules.

    Read accessors return copies; mutating them does not touch the store.
    """

    def __init__(
        self,
        storage: KeyValueStorageInterface,
        audit_logger: Optional[AuditLogger] = None,
        report_storage_errors: bool = False,
        clock: Optional[Callable[[], int]] = None,
        default_currency: Currency = DEFAULT_CURRENCY,
    ):
        """
        Load the ledger from storage.

        Args:
            storage: Where the four records live
            audit_logger: Receives an event per mutation and refusal
            report_storage_errors: Audit storage failures (development only)
            clock: Current time in milliseconds, used for transaction ids
            default_currency: Currency used when none is stored
        """
        self._storage = storage
        self._audit = audit_logger or AuditLogger()
        self._report_storage_errors = report_storage_errors
        self._clock = clock or _now_ms
        self._validator = BackupValidator()
        self._period = Period.current()

        seed = []
        self._transactions: list[Transaction] = self._load(
            TRANSACTIONS_KEY, _TRANSACTIONS, [], seed
        )
        self._categories: list[Category] = self._load(
            CATEGORIES_KEY, _CATEGORIES, list(DEFAULT_CATEGORIES), seed
        )
        self._budgets: Budgets = {
            key: amount
            for key, amount in self._load(BUDGETS_KEY, _BUDGETS, {}, seed).items()
            if amount > 0
        }
        self._currency: Currency = self._load(
            CURRENCY_KEY, _CURRENCY, default_currency, seed
        )
        self._discard_inconsistent_records(seed)

        # First run, or a record that could not be decoded
        self._persist(*seed)

    # =========================================================================
    # PERSISTENCE
    # =========================================================================

    def _load(self, key: str, adapter: TypeAdapter, default: Any, seed: list[str]) -> Any:
        try:
            raw = self._storage.load(key)
            if raw is not None:
                return adapter.validate_python(raw)
        except (StorageError, ValidationError) as e:
            if self._report_storage_errors:
                self._audit.log_storage_failure("read", key, e)
        seed.append(key)
        return default

    def _discard_inconsistent_records(self, seed: list[str]) -> None:
        """
        Fall back to the defaults together when the loaded records disagree.

        A category record that failed to decode would otherwise leave
        transactions and budgets pointing at keys that no longer exist.
        """
        errors = [
            issue
            for issue in find_integrity_issues(
                self._transactions, self._categories, self._budgets
            )
            if issue.severity == "error"
        ]
        if not errors:
            return

        if self._report_storage_errors:
            self._audit.log(AuditEventBuilder.storage_failed(
                "read", "ledger", errors[0].message
            ))
        self._transactions = []
        self._categories = list(DEFAULT_CATEGORIES)
        self._budgets = {}
        for key in (TRANSACTIONS_KEY, CATEGORIES_KEY, BUDGETS_KEY):
            if key not in seed:
                seed.append(key)

    def _encode(self, key: str) -> Any:
        if key == TRANSACTIONS_KEY:
            return _TRANSACTIONS.dump_python(self._transactions, mode="json", by_alias=True)
        if key == CATEGORIES_KEY:
            return _CATEGORIES.dump_python(self._categories, mode="json", by_alias=True)
        if key == BUDGETS_KEY:
            return {category: float(amount) for category, amount in self._budgets.items()}
        if key == CURRENCY_KEY:
            return self._currency.value
        raise KeyError(key)

    def _persist(self, *keys: str) -> None:
        for key in keys:
            try:
                self._storage.save(key, self._encode(key))
            except StorageError as e:
                if self._report_storage_errors:
                    self._audit.log_storage_failure("write", key, e)

    @contextmanager
    def _refusals(self, operation: str):
        try:
            yield
        except MutationRefusedError as e:
            self._audit.log_refusal(operation, e)
            raise

    # =========================================================================
    # READ ACCESSORS
    # =========================================================================

    @property
    def transactions(self) -> list[Transaction]:
        return list(self._transactions)

    @property
    def categories(self) -> list[Category]:
        return list(self._categories)

    @property
    def budgets(self) -> Budgets:
        return dict(self._budgets)

    @property
    def currency(self) -> Currency:
        return self._currency

    @property
    def period(self) -> Period:
        """The month the dashboard and transaction list are scoped to."""
        return self._period

    @property
    def audit_logger(self) -> AuditLogger:
        return self._audit

    def get_category(self, value: str) -> Optional[Category]:
        return find_category(self._categories, value)

    def is_category_in_use(self, value: str) -> bool:
        return is_category_in_use(value, self._transactions)

    def period_transactions(self) -> list[Transaction]:
        """Transactions dated inside the selected period."""
        return transactions_in_period(
            self._transactions, self._period.year, self._period.month
        )

    def snapshot(self) -> BackupData:
        """The whole ledger, ready for export."""
        return BackupData(
            transactions=self.transactions,
            categories=self.categories,
            budgets=self.budgets,
            currency=self._currency,
        )

    # =========================================================================
    # TRANSACTIONS
    # =========================================================================

    def add_transaction(self, draft: TransactionDraft) -> Transaction:
        """
        Record a new transaction.

        Raises:
            UnknownCategoryError: The category does not exist
            CategoryTypeMismatchError: The category has the other type
        """
        with self._refusals("add_transaction"):
            ensure_category_assignable(draft.type, draft.category, self._categories)

        transaction = Transaction(
            id=next_transaction_id(self._transactions, self._clock()),
            **draft.model_dump(),
        )
        self._transactions = [*self._transactions, transaction]
        self._persist(TRANSACTIONS_KEY)
        self._audit.log(AuditEventBuilder.transaction_added(transaction))
        return transaction

    def edit_transaction(self, transaction: Transaction) -> Optional[Transaction]:
        """
        Replace the transaction with the same id.

        Returns None, changing nothing, when no such transaction exists.
        """
        if not any(existing.id == transaction.id for existing in self._transactions):
            return None

        with self._refusals("edit_transaction"):
            ensure_category_assignable(
                transaction.type, transaction.category, self._categories
            )

        self._transactions = [
            transaction if existing.id == transaction.id else existing
            for existing in self._transactions
        ]
        self._persist(TRANSACTIONS_KEY)
        self._audit.log(AuditEventBuilder.transaction_updated(transaction))
        return transaction

    def delete_transaction(self, transaction_id: int) -> bool:
        remaining = [t for t in self._transactions if t.id != transaction_id]
        if len(remaining) == len(self._transactions):
            return False

        self._transactions = remaining
        self._persist(TRANSACTIONS_KEY)
        self._audit.log(AuditEventBuilder.transaction_deleted(transaction_id))
        return True

    # =========================================================================
    # CATEGORIES
    # =========================================================================

    def add_category(self, draft: CategoryDraft) -> Category:
        """Create a custom category under a freshly generated key."""
        category = Category(
            value=generate_category_key(self._categories),
            is_default=False,
            **draft.model_dump(),
        )
        self._categories = [*self._categories, category]
        self._persist(CATEGORIES_KEY)
        self._audit.log(AuditEventBuilder.category_added(category))
        return category

    def edit_category(self, category: Category) -> Optional[Category]:
        """
        Relabel or re-icon the category with the same key.

        The stored default flag wins over whatever the caller passes.
        Returns None when no such category exists.

        Raises:
            CategoryTypeChangeError: The type differs from the stored one
        """
        stored = find_category(self._categories, category.value)
        if stored is None:
            return None

        with self._refusals("edit_category"):
            ensure_type_unchanged(stored, category)

        updated = category.model_copy(update={"is_default": stored.is_default})
        self._categories = [
            updated if existing.value == updated.value else existing
            for existing in self._categories
        ]
        self._persist(CATEGORIES_KEY)
        self._audit.log(AuditEventBuilder.category_updated(updated))
        return updated

    def delete_category(self, value: str) -> Category:
        """
        Delete a custom category that no transaction uses, and its budget.

        Raises:
            CategoryNotFoundError, DefaultCategoryError, CategoryInUseError
        """
        with self._refusals("delete_category"):
            category = ensure_category_deletable(
                value, self._categories, self._transactions
            )

        budget_removed = value in self._budgets
        self._categories = [c for c in self._categories if c.value != value]
        self._budgets = without_budget(self._budgets, value)
        self._persist(CATEGORIES_KEY, *([BUDGETS_KEY] if budget_removed else []))
        self._audit.log(AuditEventBuilder.category_deleted(category, budget_removed))
        return category

    def merge_categories(self, source_key: str, target_key: str) -> int:
        """
        Move every transaction from one category to another and delete the source.

        The source's budget is dropped; the target's budget is left as is.
        Returns the number of transactions moved.

        Raises:
            InvalidMergeError: Same category, unknown category, default
                source, or different types
        """
        with self._refusals("merge_categories"):
            source, target = ensure_mergeable(source_key, target_key, self._categories)

        transactions, moved = reassign_transactions(
            self._transactions, source.value, target.value
        )
        budget_removed = source.value in self._budgets

        self._transactions = transactions
        self._categories = [c for c in self._categories if c.value != source.value]
        self._budgets = without_budget(self._budgets, source.value)
        self._persist(TRANSACTIONS_KEY, CATEGORIES_KEY, BUDGETS_KEY)
        self._audit.log(
            AuditEventBuilder.categories_merged(source, target, moved, budget_removed)
        )
        return moved

    # =========================================================================
    # BUDGETS
    # =========================================================================

    def set_budget(self, category_key: str, amount: AmountLike) -> Decimal:
        """
        Set the monthly budget of an expense category.

        Raises:
            InvalidBudgetError: Unknown or income category, or amount <= 0
        """
        with self._refusals("set_budget"):
            value = ensure_budgetable(category_key, amount, self._categories)

        self._budgets = {**self._budgets, category_key: value}
        self._persist(BUDGETS_KEY)
        self._audit.log(AuditEventBuilder.budget_set(category_key, value))
        return value

    def remove_budget(self, category_key: str) -> bool:
        if category_key not in self._budgets:
            return False

        self._budgets = without_budget(self._budgets, category_key)
        self._persist(BUDGETS_KEY)
        self._audit.log(AuditEventBuilder.budget_removed(category_key))
        return True

    def replace_budgets(self, amounts: Mapping[str, AmountLike]) -> Budgets:
        """
        Save the whole budget editor at once.

        Zero amounts mean "no budget" and are dropped. Nothing is applied
        if any entry is refused.
        """
        budgets: Budgets = {}
        with self._refusals("replace_budgets"):
            for category_key, raw in amounts.items():
                amount = to_amount(raw)
                if amount < 0:
                    raise InvalidBudgetError("Budget amounts cannot be negative.")
                if amount == 0:
                    continue
                budgets[category_key] = ensure_budgetable(
                    category_key, amount, self._categories
                )

        self._budgets = budgets
        self._persist(BUDGETS_KEY)
        self._audit.log(AuditEventBuilder.budgets_replaced(len(budgets)))
        return dict(budgets)

    # =========================================================================
    # PREFERENCES
    # =========================================================================

    def set_currency(self, currency: Union[Currency, str]) -> Currency:
        """Change the display currency. Stored amounts are not converted."""
        new = Currency(currency)
        if new != self._currency:
            old, self._currency = self._currency, new
            self._persist(CURRENCY_KEY)
            self._audit.log(AuditEventBuilder.currency_changed(old, new))
        return new

    def select_period(self, year: int, month: int) -> Period:
        """Scope the dashboard and transaction list to a month. Not persisted."""
        self._period = Period(year=year, month=month)
        return self._period

    # =========================================================================
    # WHOLE-LEDGER OPERATIONS
    # =========================================================================

    def restore(self, backup: Union[BackupData, Mapping, str, bytes]) -> BackupDecodeResult:
        """
        Replace the whole ledger with a backup.

        Accepts a decoded backup, a JSON-like mapping, or the raw text or
        bytes of a backup file. The backup is validated first; on failure
        the ledger is left exactly as it was and the result says why.
        """
        if isinstance(backup, (str, bytes)):
            result = import_backup(backup)
        elif isinstance(backup, BackupData):
            result = self._validator.validate(
                backup.model_dump(mode="json", by_alias=True)
            )
        else:
            result = self._validator.validate(backup)

        if not result.success:
            self._audit.log(AuditEventBuilder.backup_rejected(
                [issue.model_dump() for issue in result.issues]
            ))
            return result

        data = result.data
        self._transactions = list(data.transactions)
        self._categories = list(data.categories)
        self._budgets = {key: amount for key, amount in data.budgets.items() if amount > 0}
        self._currency = data.currency
        self._persist(*RECORD_KEYS)
        self._audit.log(AuditEventBuilder.backup_restored(
            transactions=len(self._transactions),
            categories=len(self._categories),
            budgets=len(self._budgets),
        ))
        return result

    def reset_to_defaults(self) -> None:
        """Drop all transactions, custom categories and budgets. Keeps the currency."""
        self._transactions = []
        self._categories = list(DEFAULT_CATEGORIES)
        self._budgets = {}
        self._persist(TRANSACTIONS_KEY, CATEGORIES_KEY, BUDGETS_KEY)
        self._audit.log(AuditEventBuilder.data_reset())
