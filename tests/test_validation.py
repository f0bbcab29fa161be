"""Tests for two-stage transaction validation."""

from decimal import Decimal

import pytest

from finledger.config import LedgerSettings
from finledger.models.ledger import Frequency, TransactionDraft, TransactionType
from finledger.validation import TransactionValidationError, TransactionValidator


@pytest.fixture
def validator():
    return TransactionValidator(LedgerSettings())


def _draft(**fields) -> TransactionDraft:
    defaults = {
        "description": "Mercado",
        "amount": Decimal("50.00"),
        "date": "2024-03-10",
        "type": TransactionType.EXPENSE,
        "category": "Alimentação",
        "account": "Carteira",
    }
    defaults.update(fields)
    return TransactionDraft(**defaults)


def _error_fields(result):
    return [issue.field for issue in result.errors]


class TestSchemaValidation:
    """Tests for stage 1."""

    def test_valid_draft(self, validator):
        result = validator.validate(_draft())
        assert result.is_valid
        assert result.issues == []

    def test_non_positive_amount(self, validator):
        assert _error_fields(validator.validate(_draft(amount=Decimal("0")))) == ["amount"]
        assert _error_fields(validator.validate(_draft(amount=Decimal("-3")))) == ["amount"]

    def test_missing_labels(self, validator):
        result = validator.validate(_draft(description="", category=""))
        assert _error_fields(result) == ["description", "category"]

    def test_transfer_to_same_account(self, validator):
        result = validator.validate(_draft(type=TransactionType.TRANSFER, category="Carteira"))
        assert _error_fields(result) == ["category"]

    def test_transfer_to_default_account_when_source_missing(self, validator):
        result = validator.validate(_draft(type=TransactionType.TRANSFER, account=None, category="Carteira"))
        assert not result.is_valid

    def test_transfer_on_card(self, validator):
        result = validator.validate(_draft(type=TransactionType.TRANSFER, category="Nubank", card_id="c1"))
        assert _error_fields(result) == ["card_id"]

    def test_installments_need_a_card(self, validator):
        result = validator.validate(_draft(installment_total=3))
        assert _error_fields(result) == ["installment_total"]
        assert result.errors[0].suggested_fix

    def test_income_on_card(self, validator):
        result = validator.validate(_draft(type=TransactionType.INCOME, category="Salário", card_id="c1"))
        assert _error_fields(result) == ["card_id"]

    def test_semantic_stage_skipped_on_schema_errors(self, validator):
        result = validator.validate(_draft(amount=Decimal("0"), category="Inventada"))
        assert not result.schema_valid
        assert not result.semantic_valid
        assert result.warnings == []


class TestSemanticValidation:
    """Tests for stage 2."""

    def test_unknown_labels_are_warnings(self, validator):
        result = validator.validate(_draft(category="Inventada", account="Banco X"))

        assert result.is_valid
        assert len(result.warnings) == 2

    def test_income_checked_against_income_categories(self, validator):
        result = validator.validate(_draft(type=TransactionType.INCOME, category="Alimentação"))
        assert result.is_valid
        assert len(result.warnings) == 1

    def test_recurrence_end_before_date(self, validator):
        result = validator.validate(_draft(is_recurring=True, recurrence_end_date="2024-01-01"))
        assert _error_fields(result) == ["recurrence_end_date"]

    def test_non_monthly_recurrence_is_warning(self, validator):
        result = validator.validate(_draft(is_recurring=True, frequency=Frequency.WEEKLY))
        assert result.is_valid
        assert "weekly" in result.warnings[0]

    def test_validate_or_raise(self, validator):
        with pytest.raises(TransactionValidationError) as exc:
            validator.validate_or_raise(_draft(description=""))
        assert "Description is required" in str(exc.value)
