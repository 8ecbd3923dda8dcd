"""Tests for the two-stage backup validator."""

import pytest
from decimal import Decimal

from finflow.models import DEFAULT_CATEGORIES, BackupData, Currency
from finflow.validation import BackupValidator


@pytest.fixture
def validator():
    return BackupValidator()


@pytest.fixture
def payload(make_transaction):
    data = BackupData(
        transactions=[make_transaction(10), make_transaction(11, category="transport")],
        categories=list(DEFAULT_CATEGORIES),
        budgets={"food": Decimal("200")},
        currency=Currency.INR,
    )
    return data.model_dump(mode="json", by_alias=True)


def fields(result):
    return [issue.field for issue in result.issues if issue.severity == "error"]


class TestSchemaStage:
    """Stage 1: document structure."""

    def test_valid_payload(self, validator, payload):
        result = validator.validate(payload)
        assert result.success is True
        assert result.data.budgets == {"food": Decimal("200")}

    @pytest.mark.parametrize("document", [None, [], "backup", 42])
    def test_not_an_object(self, validator, document):
        result = validator.validate(document)
        assert result.success is False
        assert fields(result) == ["backup"]

    def test_missing_keys_are_all_reported(self, validator):
        result = validator.validate({})
        assert sorted(fields(result)) == ["budgets", "categories", "currency", "transactions"]

    def test_budgets_must_be_a_mapping(self, validator, payload):
        payload["budgets"] = [["food", 100]]
        result = validator.validate(payload)
        assert fields(result) == ["budgets"]

    def test_lists_must_be_lists(self, validator, payload):
        payload["transactions"] = {"0": {}}
        assert fields(validator.validate(payload)) == ["transactions"]

    @pytest.mark.parametrize("amount", ["100", True, None])
    def test_budget_values_must_be_numbers(self, validator, payload, amount):
        payload["budgets"] = {"food": amount}
        result = validator.validate(payload)
        assert fields(result) == ["budgets.food"]
        assert result.issues[0].issue_type == "invalid_type"

    def test_negative_budget(self, validator, payload):
        payload["budgets"] = {"food": -1}
        result = validator.validate(payload)
        assert result.issues[0].issue_type == "invalid_value"

    def test_budget_beyond_cent_precision(self, validator, payload):
        payload["budgets"] = {"food": 0.30000000000000004}
        result = validator.validate(payload)
        assert result.success is False
        assert fields(result) == ["budgets.food"]

    def test_unknown_currency(self, validator, payload):
        payload["currency"] = "GBP"
        result = validator.validate(payload)
        assert fields(result) == ["currency"]
        assert "GBP" in result.error_message

    def test_record_errors_point_at_the_record(self, validator, payload):
        payload["transactions"][1]["amount"] = -5
        result = validator.validate(payload)
        assert result.success is False
        assert fields(result) == ["transactions[1].amount"]

    def test_missing_record_field(self, validator, payload):
        del payload["categories"][0]["icon"]
        result = validator.validate(payload)
        assert fields(result) == ["categories[0].icon"]


class TestSemanticStage:
    """Stage 2: ledger invariants."""

    def test_dangling_category_reference(self, validator, payload):
        payload["transactions"][0]["category"] = "custom-gone"
        result = validator.validate(payload)
        assert result.success is False
        assert result.data is None
        assert fields(result) == ["transactions[0].category"]

    def test_budget_on_unknown_category(self, validator, payload):
        payload["budgets"]["custom-gone"] = 10
        assert fields(validator.validate(payload)) == ["budgets.custom-gone"]

    def test_duplicate_transaction_ids(self, validator, payload):
        payload["transactions"][1]["id"] = payload["transactions"][0]["id"]
        assert fields(validator.validate(payload)) == ["transactions[1].id"]

    def test_missing_default_category(self, validator, payload):
        payload["categories"] = payload["categories"][1:]
        result = validator.validate(payload)
        assert result.success is False
        assert result.issues[0].issue_type == "missing_default"

    def test_warnings_do_not_block(self, validator, payload):
        payload["transactions"][0]["category"] = "salary"
        payload["budgets"]["transport"] = 0
        result = validator.validate(payload)
        assert result.success is True
        assert len(result.warnings) == 2
        assert result.has_errors is False

    def test_semantic_stage_skipped_after_schema_failure(self, validator, payload):
        payload["currency"] = "XYZ"
        payload["transactions"][0]["category"] = "custom-gone"
        result = validator.validate(payload)
        assert fields(result) == ["currency"]
