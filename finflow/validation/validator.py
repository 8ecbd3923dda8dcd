"""
Two-Stage Backup Validation

DESIGN DECISION: A backup is validated in two distinct stages before it
is allowed to replace anything:

STAGE 1 - SCHEMA VALIDATION:
- The document is an object
- `transactions` and `categories` are lists
- `budgets` is a mapping of category key to number
- `currency` is a recognized currency code
- Every record decodes into its model

STAGE 2 - SEMANTIC VALIDATION:
- No transaction or budget points at a missing category
- Budgets only on expense categories
- Unique category keys and transaction ids
- All default categories present

Stage 2 is skipped when stage 1 fails.

IMPORTANT: Validation NEVER fixes anything and NEVER raises. The
result is a tagged `BackupDecodeResult`; only a successful result
carries data.
"""

from collections.abc import Mapping
from decimal import Decimal
from typing import Any, Optional

from pydantic import ValidationError

from finflow.models.ledger import (
    BackupData,
    BackupDecodeResult,
    Currency,
    ValidationIssue,
)
from finflow.rules import find_integrity_issues


_CONTAINERS = (
    ("transactions", list, "a list"),
    ("categories", list, "a list"),
    ("budgets", Mapping, "an object"),
)


def _location(loc: tuple) -> str:
    """("transactions", 0, "amount") -> "transactions[0].amount"."""
    path = ""
    for part in loc:
        if isinstance(part, int):
            path += f"[{part}]"
        else:
            path += f".{part}" if path else str(part)
    return path or "backup"


class BackupValidator:
    """Validates decoded backup documents through a two-stage pipeline."""

    def _validate_schema(
        self,
        payload: Any,
    ) -> tuple[Optional[BackupData], list[ValidationIssue]]:
        """
        Stage 1: Schema validation.

        Returns: (decoded backup or None, list_of_issues)
        """
        issues = []

        if not isinstance(payload, Mapping):
            issues.append(ValidationIssue(
                field="backup",
                issue_type="invalid_type",
                message="Backup must be a JSON object",
                severity="error",
            ))
            return None, issues

        for name, container, described in _CONTAINERS:
            if name not in payload:
                issues.append(ValidationIssue(
                    field=name,
                    issue_type="missing",
                    message=f"Backup has no '{name}'",
                    severity="error",
                ))
            elif not isinstance(payload[name], container):
                issues.append(ValidationIssue(
                    field=name,
                    issue_type="invalid_type",
                    message=f"'{name}' must be {described}",
                    severity="error",
                ))

        budgets = payload.get("budgets")
        if isinstance(budgets, Mapping):
            for key, amount in budgets.items():
                if isinstance(amount, bool) or not isinstance(amount, (int, float, Decimal)):
                    issues.append(ValidationIssue(
                        field=f"budgets.{key}",
                        issue_type="invalid_type",
                        message=f"Budget for '{key}' must be a number",
                        severity="error",
                    ))
                elif amount < 0:
                    issues.append(ValidationIssue(
                        field=f"budgets.{key}",
                        issue_type="invalid_value",
                        message=f"Budget for '{key}' cannot be negative",
                        severity="error",
                    ))

        if "currency" not in payload:
            issues.append(ValidationIssue(
                field="currency",
                issue_type="missing",
                message="Backup has no 'currency'",
                severity="error",
            ))
        elif payload["currency"] not in {currency.value for currency in Currency}:
            issues.append(ValidationIssue(
                field="currency",
                issue_type="invalid_value",
                message=f"Unknown currency: {payload['currency']!r}",
                severity="error",
            ))

        if issues:
            return None, issues

        try:
            data = BackupData.model_validate(dict(payload))
        except ValidationError as e:
            for error in e.errors():
                issues.append(ValidationIssue(
                    field=_location(error["loc"]),
                    issue_type=error["type"],
                    message=f"{_location(error['loc'])}: {error['msg']}",
                    severity="error",
                ))
            return None, issues

        return data, issues

    def _validate_semantic(self, data: BackupData) -> list[ValidationIssue]:
        """
        Stage 2: Semantic validation.

        Checks the decoded ledger against the same invariants the
        store maintains on every mutation.
        """
        return find_integrity_issues(data.transactions, data.categories, data.budgets)

    def validate(self, payload: Any) -> BackupDecodeResult:
        """Run both stages and return the tagged result."""
        data, issues = self._validate_schema(payload)

        if data is not None:
            issues = issues + self._validate_semantic(data)

        errors = [issue for issue in issues if issue.severity == "error"]
        if data is None or errors:
            return BackupDecodeResult(
                success=False,
                issues=issues,
                error_message=errors[0].message if errors else "Invalid backup file format",
            )

        return BackupDecodeResult(success=True, data=data, issues=issues)
