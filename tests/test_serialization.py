"""Tests for backup export/import and CSV export."""

import csv
import io
import json
import pytest
from datetime import date
from decimal import Decimal

from finflow.models import DEFAULT_CATEGORIES, BackupData, Currency
from finflow.serialization import (
    CSV_HEADER,
    NothingToExportError,
    backup_filename,
    export_backup,
    export_transactions_csv,
    import_backup,
)


CATEGORIES = list(DEFAULT_CATEGORIES)


@pytest.fixture
def backup(make_transaction):
    return BackupData(
        transactions=[
            make_transaction(1_700_000_000_000, amount="12.5", description="Lunch"),
            make_transaction(1_700_000_000_001, category="salary", amount="2000", type="income", description="Pay"),
        ],
        categories=CATEGORIES,
        budgets={"food": Decimal("300")},
        currency=Currency.USD,
    )


class TestBackup:

    def test_export_uses_record_field_names(self, backup):
        document = json.loads(export_backup(backup))
        assert set(document) == {"transactions", "categories", "budgets", "currency"}
        assert document["transactions"][0]["date"] == "2025-01-15"
        assert document["transactions"][0]["amount"] == 12.5
        assert document["categories"][0]["isDefault"] is True
        assert document["budgets"] == {"food": 300.0}
        assert document["currency"] == "USD"

    def test_export_is_indented(self, backup):
        assert export_backup(backup).startswith('{\n  "transactions"')

    def test_round_trip(self, backup):
        result = import_backup(export_backup(backup))
        assert result.success is True
        assert result.data == backup
        assert result.issues == []

    def test_round_trip_at_the_precision_bound(self, make_transaction):
        backup = BackupData(
            transactions=[make_transaction(1, amount="9999999999999.99")],
            categories=CATEGORIES,
            budgets={"food": Decimal("1234567890123.45"), "transport": Decimal("0.3")},
            currency=Currency.INR,
        )
        result = import_backup(export_backup(backup))
        assert result.success is True
        assert result.data == backup

    def test_bytes_are_accepted(self, backup):
        assert import_backup(export_backup(backup).encode("utf-8")).success is True

    def test_invalid_json_never_raises(self):
        result = import_backup("{ this is not json")
        assert result.success is False
        assert result.data is None
        assert result.issues[0].issue_type == "invalid_json"

    def test_wrong_shape_is_rejected(self):
        result = import_backup(json.dumps(["transactions"]))
        assert result.success is False
        assert result.error_message == "Backup must be a JSON object"

    def test_backup_filename(self):
        assert backup_filename(date(2025, 1, 31)) == "finflow_backup_2025-01-31.json"


class TestCsvExport:

    def rows(self, text):
        return list(csv.reader(io.StringIO(text)))

    def test_header_and_rows(self, backup):
        rows = self.rows(export_transactions_csv(backup.transactions, CATEGORIES))
        assert rows[0] == list(CSV_HEADER)
        assert rows[1] == ["1700000000000", "2025-01-15", "expense", "Lunch", "🍔 Food", "12.50"]
        assert rows[2][2] == "income"
        assert len(rows) == 3

    def test_header_line(self, backup):
        text = export_transactions_csv(backup.transactions, CATEGORIES)
        assert text.splitlines()[0] == "ID,Date,Type,Description,Category,Amount"

    def test_quotes_commas_and_quotes(self, make_transaction):
        description = 'Rent, "Jan"'
        text = export_transactions_csv(
            [make_transaction(1, category="housing", description=description)], CATEGORIES
        )
        assert '"Rent, ""Jan"""' in text
        assert self.rows(text)[1][3] == description

    def test_newline_in_description_round_trips(self, make_transaction):
        description = "Line one\nLine two"
        text = export_transactions_csv([make_transaction(1, description=description)], CATEGORIES)
        assert self.rows(text)[1][3] == description

    def test_unknown_category_uses_key(self, make_transaction):
        text = export_transactions_csv([make_transaction(1, category="custom-gone")], CATEGORIES)
        assert self.rows(text)[1][4] == "custom-gone"

    def test_empty_set_is_refused(self):
        with pytest.raises(NothingToExportError):
            export_transactions_csv([], CATEGORIES)
