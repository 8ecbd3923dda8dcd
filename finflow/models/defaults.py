"""
Seed data.

The default categories are written to storage on first run and restored
by a reset. They are flagged `is_default`, so they can be relabeled but
never deleted or merged away.
"""

from finflow.models.ledger import Category, Currency, TransactionType


DEFAULT_CURRENCY = Currency.INR

DEFAULT_CATEGORIES: tuple[Category, ...] = (
    # Expenses
    Category(value="food", label="Food", icon="🍔", type=TransactionType.EXPENSE, is_default=True),
    Category(value="transport", label="Transport", icon="🚗", type=TransactionType.EXPENSE, is_default=True),
    Category(value="housing", label="Housing", icon="🏠", type=TransactionType.EXPENSE, is_default=True),
    Category(value="utilities", label="Utilities", icon="💡", type=TransactionType.EXPENSE, is_default=True),
    Category(value="entertainment", label="Entertainment", icon="🎬", type=TransactionType.EXPENSE, is_default=True),
    Category(value="health", label="Health", icon="❤️", type=TransactionType.EXPENSE, is_default=True),
    Category(value="shopping", label="Shopping", icon="🛍️", type=TransactionType.EXPENSE, is_default=True),
    Category(value="other_expense", label="Other", icon="💸", type=TransactionType.EXPENSE, is_default=True),

    # Income
    Category(value="salary", label="Salary", icon="💼", type=TransactionType.INCOME, is_default=True),
    Category(value="freelance", label="Freelance", icon="🧑‍💻", type=TransactionType.INCOME, is_default=True),
    Category(value="investment", label="Investment", icon="📈", type=TransactionType.INCOME, is_default=True),
    Category(value="gift", label="Gift", icon="🎁", type=TransactionType.INCOME, is_default=True),
    Category(value="other_income", label="Other", icon="💰", type=TransactionType.INCOME, is_default=True),
)

DEFAULT_CATEGORY_KEYS = frozenset(category.value for category in DEFAULT_CATEGORIES)

ICON_OPTIONS: tuple[str, ...] = (
    "🍔", "🚗", "🏠", "💡", "🎬", "❤️", "🛍️", "💸", "💼", "🧑‍💻", "📈", "🎁", "💰",
    "✈️", "🛒", "💊", "🎓", "🐶", "🎨", "📱", "💻", "👕", "👠", "🍸", "🎵", "🏋️", "📚",
)

CURRENCY_LABELS: dict[Currency, str] = {
    Currency.INR: "🇮🇳 INR",
    Currency.USD: "🇺🇸 USD",
    Currency.EUR: "🇪🇺 EUR",
    Currency.AED: "🇦🇪 AED",
}
