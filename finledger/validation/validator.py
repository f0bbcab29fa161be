"""
Two-Stage Transaction Validation

DESIGN DECISION: Validation happens in two distinct stages:

STAGE 1 - SCHEMA VALIDATION:
- Required field presence (description, category, account)
- Positive amount
- Structural consistency (installments need a card, transfers need a
  destination)

STAGE 2 - SEMANTIC VALIDATION:
- Labels outside the configured account/category catalogues
- Recurrence settings that the generator will not act on
- Recurrence end before the template's own date

Errors block the write; warnings are reported but never block it.
Validation runs BEFORE any persistence call and NEVER silently fixes
issues - it reports them.
"""

from datetime import datetime
from typing import Optional

from pydantic import BaseModel, Field

from finledger.config import LedgerSettings, get_settings
from finledger.models.ledger import (
    Frequency,
    TransactionDraft,
    TransactionType,
)


class ValidationIssue(BaseModel):
    """A single validation issue found."""

    field: str = Field(
        ...,
        description="Field with the issue"
    )
    issue_type: str = Field(
        ...,
        description="Type of issue (e.g., 'missing', 'invalid_value', 'unknown_label')"
    )
    message: str = Field(
        ...,
        description="Human-readable description of the issue"
    )
    severity: str = Field(
        ...,
        pattern="^(error|warning|info)$",
        description="Issue severity"
    )
    suggested_fix: Optional[str] = Field(
        default=None,
        description="Suggested fix if available"
    )


class ValidationResult(BaseModel):
    """Result of the two-stage validation."""

    validated_at: datetime = Field(
        default_factory=datetime.utcnow
    )
    schema_valid: bool = Field(
        ...,
        description="Did schema validation pass?"
    )
    semantic_valid: bool = Field(
        ...,
        description="Did semantic validation pass?"
    )
    is_valid: bool = Field(
        ...,
        description="Overall validation result"
    )
    issues: list[ValidationIssue] = Field(default_factory=list)
    warnings: list[str] = Field(default_factory=list)

    @property
    def errors(self) -> list[ValidationIssue]:
        return [issue for issue in self.issues if issue.severity == "error"]


class TransactionValidationError(Exception):
    """A transaction draft failed validation; nothing was persisted."""

    def __init__(self, result: ValidationResult):
        self.result = result
        messages = "; ".join(issue.message for issue in result.errors)
        super().__init__(f"Invalid transaction: {messages}")


class TransactionValidator:
    """
    Validates transaction drafts through a two-stage pipeline.

    Stage 1: Schema validation
    Stage 2: Semantic validation (only when stage 1 passes)
    """

    def __init__(self, settings: Optional[LedgerSettings] = None):
        self._settings = settings or get_settings().ledger

    def _validate_schema(
        self,
        draft: TransactionDraft,
    ) -> tuple[bool, list[ValidationIssue]]:
        """
        Stage 1: Schema validation.

        Returns: (is_valid, list_of_issues)
        """
        issues = []

        if draft.amount <= 0:
            issues.append(ValidationIssue(
                field="amount",
                issue_type="invalid_value",
                message="Amount must be greater than zero",
                severity="error",
            ))

        if not draft.description:
            issues.append(ValidationIssue(
                field="description",
                issue_type="missing",
                message="Description is required",
                severity="error",
            ))

        if not draft.category:
            issues.append(ValidationIssue(
                field="category",
                issue_type="missing",
                message=(
                    "Destination account is required for a transfer"
                    if draft.type == TransactionType.TRANSFER
                    else "Category is required"
                ),
                severity="error",
            ))

        if draft.type == TransactionType.TRANSFER:
            source = draft.account or self._settings.default_account
            if draft.category and draft.category == source:
                issues.append(ValidationIssue(
                    field="category",
                    issue_type="invalid_value",
                    message="Transfer source and destination accounts must differ",
                    severity="error",
                ))
            if draft.card_id:
                issues.append(ValidationIssue(
                    field="card_id",
                    issue_type="invalid_value",
                    message="A transfer cannot be charged to a credit card",
                    severity="error",
                ))

        if (draft.installment_total or 1) > 1 and not draft.card_id:
            issues.append(ValidationIssue(
                field="installment_total",
                issue_type="inconsistent",
                message="Installments are only supported on credit card purchases",
                severity="error",
                suggested_fix="Select a card or set a single installment",
            ))

        if draft.card_id and draft.type == TransactionType.INCOME:
            issues.append(ValidationIssue(
                field="card_id",
                issue_type="inconsistent",
                message="Income cannot be charged to a credit card",
                severity="error",
            ))

        is_valid = not any(issue.severity == "error" for issue in issues)
        return is_valid, issues

    def _validate_semantic(
        self,
        draft: TransactionDraft,
    ) -> tuple[bool, list[ValidationIssue]]:
        """
        Stage 2: Semantic validation.

        Returns: (is_valid, list_of_issues)
        """
        issues = []
        settings = self._settings

        if draft.recurrence_end_date and draft.recurrence_end_date < draft.date:
            issues.append(ValidationIssue(
                field="recurrence_end_date",
                issue_type="inconsistent",
                message="Recurrence end date is before the transaction date",
                severity="error",
            ))

        if draft.is_recurring and draft.frequency not in (None, Frequency.MONTHLY):
            issues.append(ValidationIssue(
                field="frequency",
                issue_type="unsupported",
                message=f"Only monthly recurrences are generated; '{draft.frequency.value}' will not repeat",
                severity="warning",
            ))

        known_accounts = settings.accounts_list
        if draft.account and known_accounts and draft.account not in known_accounts:
            issues.append(ValidationIssue(
                field="account",
                issue_type="unknown_label",
                message=f"Account '{draft.account}' is not in the configured account list",
                severity="warning",
            ))

        if draft.type == TransactionType.TRANSFER:
            if known_accounts and draft.category not in known_accounts:
                issues.append(ValidationIssue(
                    field="category",
                    issue_type="unknown_label",
                    message=f"Destination account '{draft.category}' is not in the configured account list",
                    severity="warning",
                ))
        else:
            known = (
                settings.income_categories_list
                if draft.type == TransactionType.INCOME
                else settings.expense_categories_list
            )
            if known and draft.category not in known:
                issues.append(ValidationIssue(
                    field="category",
                    issue_type="unknown_label",
                    message=f"Category '{draft.category}' is not a configured {draft.type.value} category",
                    severity="warning",
                ))

        is_valid = not any(issue.severity == "error" for issue in issues)
        return is_valid, issues

    def validate(self, draft: TransactionDraft) -> ValidationResult:
        """
        Run full two-stage validation pipeline.

        Args:
            draft: The transaction draft to validate

        Returns:
            ValidationResult with all issues found
        """
        all_issues = []

        schema_valid, schema_issues = self._validate_schema(draft)
        all_issues.extend(schema_issues)

        # Only run stage 2 if stage 1 passes
        semantic_valid = False
        if schema_valid:
            semantic_valid, semantic_issues = self._validate_semantic(draft)
            all_issues.extend(semantic_issues)

        return ValidationResult(
            schema_valid=schema_valid,
            semantic_valid=semantic_valid,
            is_valid=schema_valid and semantic_valid,
            issues=all_issues,
            warnings=[issue.message for issue in all_issues if issue.severity == "warning"],
        )

    def validate_or_raise(self, draft: TransactionDraft) -> ValidationResult:
        """Validate and raise TransactionValidationError on any error."""
        result = self.validate(draft)
        if not result.is_valid:
            raise TransactionValidationError(result)
        return result
