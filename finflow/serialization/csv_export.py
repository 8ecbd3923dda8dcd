"""CSV export of the transaction list."""

import csv
import io
from typing import Iterable

from finflow.models.ledger import Category, Transaction
from finflow.queries.formatting import category_display


CSV_HEADER = ("ID", "Date", "Type", "Description", "Category", "Amount")
CSV_FILENAME = "transactions.csv"


def export_transactions_csv(
    transactions: Iterable[Transaction],
    categories: Iterable[Category],
) -> str:
    """
    Render transactions as CSV, one row each, in the order given.

    The category column shows `icon label`; fields containing commas,
    quotes or newlines are quoted with inner quotes doubled.

    Raises:
        NothingToExportError: There are no transactions
    """
    transactions = list(transactions)
    if not transactions:
        raise NothingToExportError("No transactions to export.")

    categories = list(categories)
    buffer = io.StringIO()
    writer = csv.writer(buffer, lineterminator="\n")
    writer.writerow(CSV_HEADER)
    for t in transactions:
        writer.writerow([
            t.id,
            t.transaction_date.isoformat(),
            t.type.value,
            t.description,
            category_display(t.category, categories),
            f"{t.amount:.2f}",
        ])
    return buffer.getvalue()


class NothingToExportError(Exception):
    """The transaction set is empty."""
    pass
