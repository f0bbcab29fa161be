"""Validation package."""

from finledger.validation.validator import (
    TransactionValidationError,
    TransactionValidator,
    ValidationIssue,
    ValidationResult,
)

__all__ = [
    "TransactionValidationError",
    "TransactionValidator",
    "ValidationIssue",
    "ValidationResult",
]
