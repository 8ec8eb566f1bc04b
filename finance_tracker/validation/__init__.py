"""Form validation package."""

from finance_tracker.validation.forms import (
    CUSTOM_CATEGORY,
    DEFAULT_CATEGORIES,
    CardForm,
    CardFormValidator,
    FormValidationError,
    TransactionForm,
    TransactionFormValidator,
    ValidationIssue,
    ValidationResult,
    parse_amount,
)

__all__ = [
    "CUSTOM_CATEGORY",
    "DEFAULT_CATEGORIES",
    "CardForm",
    "CardFormValidator",
    "FormValidationError",
    "TransactionForm",
    "TransactionFormValidator",
    "ValidationIssue",
    "ValidationResult",
    "parse_amount",
]
