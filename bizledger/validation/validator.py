"""
Two-Stage Validation Pipeline

DESIGN DECISION: Validation happens in two distinct stages:

STAGE 1 - SCHEMA VALIDATION:
- Amount must be positive
- Category (or goal title) must be present
- A due must name its party
- These are business rules; any failure blocks the write

STAGE 2 - SEMANTIC VALIDATION:
- Future date detection
- Absurd amount detection
- Date consistency
- These only produce warnings for the user to review

WHY TWO STAGES:
1. Separation of concerns (blocking rules vs suspicious values)
2. Better error messages (know exactly what kind of issue)
3. Can skip stage 2 if stage 1 fails

IMPORTANT: Validation NEVER silently fixes issues. It runs before the
stores are touched; the stores themselves do not validate.
"""

from datetime import date, datetime, timedelta, timezone
from decimal import Decimal
from typing import Any, Optional

from bizledger.config import get_settings
from bizledger.config.settings import AppSettings
from bizledger.models.ledger import (
    GoalInput,
    TransactionEdit,
    TransactionInput,
    TransactionType,
    ValidationIssue,
    ValidationResult,
)


class ValidationError(Exception):
    """
    User input broke a business rule.

    Never persisted, never retried. Carries the full result so callers
    can show every issue at once.
    """

    def __init__(self, result: ValidationResult):
        self.result = result
        messages = [i.message for i in result.issues if i.severity == "error"]
        super().__init__("; ".join(messages) or "Validation failed")

    @property
    def issues(self) -> list[ValidationIssue]:
        return self.result.issues


class LedgerValidator:
    """
    Validates transaction, goal and contribution input.

    Stage 1: Schema validation (blocking)
    Stage 2: Semantic validation (warnings)
    """

    def __init__(self, settings: Optional[AppSettings] = None):
        self._settings = settings or get_settings().app

    # -------------------------------------------------------------------------
    # Transactions
    # -------------------------------------------------------------------------

    def _validate_transaction_schema(
        self,
        data: TransactionEdit,
    ) -> tuple[bool, list[ValidationIssue]]:
        issues = []

        if data.amount is None or not data.amount.is_finite():
            issues.append(ValidationIssue(
                field="amount",
                issue_type="invalid_value",
                message="Amount must be a number",
                severity="error",
            ))
        elif data.amount <= 0:
            issues.append(ValidationIssue(
                field="amount",
                issue_type="invalid_value",
                message="Amount must be greater than zero",
                severity="error",
                suggested_fix="Enter a positive amount",
            ))

        if not data.category or not data.category.strip():
            issues.append(ValidationIssue(
                field="category",
                issue_type="missing",
                message="A description (source or purpose) is required",
                severity="error",
            ))

        if data.is_due and not (data.party_name and data.party_name.strip()):
            who = "customer"
            if isinstance(data, TransactionInput) and data.type == TransactionType.EXPENSE:
                who = "supplier"
            issues.append(ValidationIssue(
                field="party_name",
                issue_type="missing",
                message=f"A due needs the {who}'s name",
                severity="error",
                suggested_fix=f"Enter the {who}'s name or untick 'due'",
            ))

        is_valid = not any(issue.severity == "error" for issue in issues)
        return is_valid, issues

    def _validate_transaction_semantic(
        self,
        data: TransactionEdit,
        transaction_date: Optional[datetime],
    ) -> tuple[bool, list[ValidationIssue]]:
        issues = []

        max_amount = Decimal(str(self._settings.max_transaction_amount))
        if data.amount > max_amount:
            issues.append(ValidationIssue(
                field="amount",
                issue_type="suspicious_value",
                message=f"Amount ({self._settings.currency_symbol}{data.amount:,.2f}) seems unusually high",
                severity="warning",
                suggested_fix="Please verify this amount is correct",
            ))

        if transaction_date is not None:
            tolerance = timedelta(days=self._settings.future_date_tolerance_days)
            if transaction_date > datetime.now(timezone.utc) + tolerance:
                issues.append(ValidationIssue(
                    field="date",
                    issue_type="future_date",
                    message=f"Transaction date ({transaction_date.date()}) is in the future",
                    severity="warning",
                    suggested_fix="Please verify the date is correct",
                ))

            if data.is_due and data.due_date and data.due_date < transaction_date.date():
                issues.append(ValidationIssue(
                    field="due_date",
                    issue_type="inconsistent",
                    message="Due date is before the transaction date",
                    severity="warning",
                    suggested_fix="Please verify both dates",
                ))

        if data.due_date and not data.is_due:
            issues.append(ValidationIssue(
                field="due_date",
                issue_type="ignored",
                message="Due date is only used for due transactions",
                severity="info",
            ))

        is_valid = not any(issue.severity == "error" for issue in issues)
        return is_valid, issues

    def validate_transaction(
        self,
        data: TransactionEdit,
        transaction_date: Optional[datetime] = None,
    ) -> ValidationResult:
        """
        Run full two-stage validation on transaction input.

        Args:
            data: New transaction input, or the edited fields of an existing one
            transaction_date: Date to check against; defaults to data.date
                              when data is a TransactionInput
        """
        if transaction_date is None and isinstance(data, TransactionInput):
            transaction_date = data.date

        schema_valid, issues = self._validate_transaction_schema(data)

        semantic_valid = False
        if schema_valid:
            semantic_valid, semantic_issues = self._validate_transaction_semantic(
                data, transaction_date
            )
            issues.extend(semantic_issues)

        return self._result("transaction", schema_valid, semantic_valid, issues)

    # -------------------------------------------------------------------------
    # Goals
    # -------------------------------------------------------------------------

    def validate_goal(self, data: GoalInput) -> ValidationResult:
        """Validate a new savings goal."""
        issues = []

        if not data.title or not data.title.strip():
            issues.append(ValidationIssue(
                field="title",
                issue_type="missing",
                message="Goal title is required",
                severity="error",
            ))

        if data.target_amount is None or not data.target_amount.is_finite() or data.target_amount <= 0:
            issues.append(ValidationIssue(
                field="target_amount",
                issue_type="invalid_value",
                message="Target amount must be greater than zero",
                severity="error",
            ))

        schema_valid = not any(issue.severity == "error" for issue in issues)

        semantic_valid = schema_valid
        if schema_valid and data.deadline and data.deadline < date.today():
            issues.append(ValidationIssue(
                field="deadline",
                issue_type="past_date",
                message=f"Deadline ({data.deadline}) has already passed",
                severity="warning",
                suggested_fix="Pick a date in the future",
            ))

        return self._result("goal", schema_valid, semantic_valid, issues)

    def validate_contribution(self, amount: Any) -> ValidationResult:
        """A goal contribution must be a positive amount."""
        issues = []

        try:
            value = Decimal(str(amount))
        except (ArithmeticError, ValueError):
            value = None

        if value is None or not value.is_finite() or value <= 0:
            issues.append(ValidationIssue(
                field="amount",
                issue_type="invalid_value",
                message="Contribution must be greater than zero",
                severity="error",
            ))

        valid = not issues
        return self._result("contribution", valid, valid, issues)

    # -------------------------------------------------------------------------
    # Helpers
    # -------------------------------------------------------------------------

    def _result(
        self,
        subject: str,
        schema_valid: bool,
        semantic_valid: bool,
        issues: list[ValidationIssue],
    ) -> ValidationResult:
        warnings = [i.message for i in issues if i.severity == "warning"]
        return ValidationResult(
            subject=subject,
            schema_valid=schema_valid,
            semantic_valid=semantic_valid,
            is_valid=schema_valid and semantic_valid,
            issues=issues,
            warnings=warnings,
        )

    @staticmethod
    def ensure_valid(result: ValidationResult) -> ValidationResult:
        """
        Raise ValidationError if the result has blocking errors.

        Warnings pass through; the caller decides whether to show them.
        """
        if result.has_errors:
            raise ValidationError(result)
        return result

    def get_user_friendly_summary(
        self,
        result: ValidationResult,
    ) -> str:
        """
        Generate a user-friendly summary of validation results.

        This is what we show to the shop owner.
        """
        if not result.has_errors and not result.warnings:
            return "✅ All checks passed."

        lines = []

        if result.has_errors:
            lines.append("❌ Please fix the following:")
            for issue in result.issues:
                if issue.severity == "error":
                    lines.append(f"   • {issue.message}")
                    if issue.suggested_fix:
                        lines.append(f"     💡 {issue.suggested_fix}")

        if result.warnings:
            if lines:
                lines.append("")
            lines.append("⚠️ Please verify the following:")
            for warning in result.warnings:
                lines.append(f"   • {warning}")

        return "\n".join(lines)
