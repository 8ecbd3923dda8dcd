"""Formatting utilities for currency amounts and category labels."""

from decimal import ROUND_HALF_UP, Decimal
from typing import Iterable, Union

from finflow.models.ledger import Category, Currency


CURRENCY_SYMBOLS: dict[Currency, str] = {
    Currency.INR: "₹",
    Currency.USD: "$",
    Currency.EUR: "€",
    Currency.AED: "AED ",
}

Number = Union[Decimal, int, float]


def format_currency(amount: Number, currency: Currency, decimals: int = 2) -> str:
    """Format an amount in the display currency.

    The sign goes in front of the symbol and thousands are grouped
    with commas.

    Example:
        >>> format_currency(Decimal("-1234.5"), Currency.USD)
        '-$1,234.50'
        >>> format_currency(250, Currency.AED, decimals=0)
        'AED 250'
    """
    value = Decimal(str(amount)) if not isinstance(amount, Decimal) else amount
    quantum = Decimal(1).scaleb(-decimals)
    value = value.quantize(quantum, rounding=ROUND_HALF_UP)
    sign = "-" if value < 0 else ""
    return f"{sign}{CURRENCY_SYMBOLS[Currency(currency)]}{abs(value):,.{decimals}f}"


def format_compact(amount: Number, currency: Currency) -> str:
    """Short axis label: whole units, thousands as `K`, millions as `M`.

    Example:
        >>> format_compact(1_500_000, Currency.INR)
        '₹2M'
        >>> format_compact(950, Currency.USD)
        '$950'
    """
    value = Decimal(str(amount)) if not isinstance(amount, Decimal) else amount
    if value >= 1_000_000:
        return f"{format_currency(value / 1_000_000, currency, decimals=0)}M"
    if value >= 1_000:
        return f"{format_currency(value / 1_000, currency, decimals=0)}K"
    return format_currency(value, currency, decimals=0)


def category_display(value: str, categories: Iterable[Category]) -> str:
    """`icon label` for a category key, or the key itself if it is unknown."""
    for category in categories:
        if category.value == value:
            return category.display
    return value


def escape_for_markdown(text: str) -> str:
    """Escape dollar signs so Streamlit markdown does not read them as LaTeX."""
    return text.replace("$", "\\$")
