"""
Form Validation

DESIGN DECISION: The store trusts its inputs. Everything a user types
is checked here, before a store operation is called:

- amount must parse as a number
- a category must be chosen; custom categories need a name
- card fields must be filled in and the balance must be numeric

Validators report issues instead of raising. `build` raises
FormValidationError carrying the full result when the form has errors.
"""

from decimal import Decimal, InvalidOperation
from typing import Any, Optional, Sequence

from pydantic import BaseModel, Field

from finance_tracker.models.finance import (
    DEFAULT_NOTE,
    NO_CARD,
    Card,
    Transaction,
    TransactionType,
)


CUSTOM_CATEGORY = "custom"
CUSTOM_CATEGORY_COLOR = "#8e8e93"
DEFAULT_CARD_COLOR = "#ffffff"

# Built-in categories by form id: (name, color)
DEFAULT_CATEGORIES = {
    "1": ("Shopping", "#007AFF"),
    "2": ("Food", "#5856D6"),
    "3": ("Transport", "#FF2D55"),
    "4": ("Bills", "#FF9500"),
}


class ValidationIssue(BaseModel):
    """A single validation issue found."""

    field: str = Field(
        ...,
        description="Field with the issue"
    )
    issue_type: str = Field(
        ...,
        description="Type of issue (e.g., 'missing', 'invalid_format')"
    )
    message: str = Field(
        ...,
        description="Human-readable description of the issue"
    )
    severity: str = Field(
        ...,
        pattern="^(error|warning)$",
        description="Issue severity"
    )


class ValidationResult(BaseModel):
    """Result of validating one form."""

    issues: list[ValidationIssue] = Field(default_factory=list)

    @property
    def is_valid(self) -> bool:
        return not self.has_errors

    @property
    def has_errors(self) -> bool:
        """Check if there are any error-level issues."""
        return any(issue.severity == "error" for issue in self.issues)

    @property
    def error_count(self) -> int:
        return sum(1 for issue in self.issues if issue.severity == "error")

    @property
    def messages(self) -> list[str]:
        return [issue.message for issue in self.issues]


class FormValidationError(ValueError):
    """Raised when a form with errors is turned into a model."""

    def __init__(self, result: ValidationResult):
        self.result = result
        super().__init__("; ".join(result.messages))


def parse_amount(raw: Optional[str]) -> Optional[Decimal]:
    """Parse user input as a finite decimal, None if it is not one."""
    if raw is None:
        return None
    try:
        value = Decimal(str(raw).strip())
    except InvalidOperation:
        return None
    if not value.is_finite():
        return None
    return value


# =============================================================================
# TRANSACTIONS
# =============================================================================

class TransactionForm(BaseModel):
    """Raw input of the add/edit transaction screen."""

    amount: str = ""
    transaction_type: TransactionType = TransactionType.EXPENSE
    category: Optional[str] = None
    note: str = ""
    card_id: Optional[str] = None
    custom_category_name: str = ""
    custom_category_color: str = ""
    custom_category_image: str = ""


class TransactionFormValidator:
    """
    Validates transaction forms and builds store input from them.

    Needs the current cards to resolve the selected card to its number.
    """

    def __init__(self, cards: Sequence[Card]):
        self._cards = list(cards)

    def _find_card(self, card_id: Optional[str]) -> Optional[Card]:
        if card_id is None:
            return None
        return next((c for c in self._cards if c.id == card_id), None)

    def validate(self, form: TransactionForm) -> ValidationResult:
        issues = []

        if not form.amount.strip():
            issues.append(ValidationIssue(
                field="amount",
                issue_type="missing",
                message="Please fill in all required fields",
                severity="error",
            ))
        elif parse_amount(form.amount) is None:
            issues.append(ValidationIssue(
                field="amount",
                issue_type="invalid_format",
                message="Please enter a valid amount",
                severity="error",
            ))

        if not form.category:
            issues.append(ValidationIssue(
                field="category",
                issue_type="missing",
                message="Please fill in all required fields",
                severity="error",
            ))
        elif form.category == CUSTOM_CATEGORY and not form.custom_category_name.strip():
            issues.append(ValidationIssue(
                field="custom_category_name",
                issue_type="missing",
                message="Please enter a custom category name",
                severity="error",
            ))

        if form.card_id is not None and self._find_card(form.card_id) is None:
            # The transaction is still recorded, just against no card
            issues.append(ValidationIssue(
                field="card_id",
                issue_type="unknown_card",
                message=f"Card {form.card_id} not found, transaction will use {NO_CARD}",
                severity="warning",
            ))

        return ValidationResult(issues=issues)

    def _category(self, form: TransactionForm) -> tuple[str, Optional[str], Optional[str]]:
        """(name, custom_color, custom_image) for the chosen category."""
        if form.category == CUSTOM_CATEGORY:
            return (
                form.custom_category_name.strip(),
                form.custom_category_color or CUSTOM_CATEGORY_COLOR,
                form.custom_category_image,
            )
        name, _color = DEFAULT_CATEGORIES.get(form.category, ("Other", CUSTOM_CATEGORY_COLOR))
        return name, None, None

    def build(self, form: TransactionForm) -> Transaction:
        """
        New transaction from the add screen.

        The amount is signed by the transaction type: expenses are
        stored negative, income positive.
        """
        result = self.validate(form)
        if result.has_errors:
            raise FormValidationError(result)

        value = abs(parse_amount(form.amount))
        amount = -value if form.transaction_type == TransactionType.EXPENSE else value
        category, custom_color, custom_image = self._category(form)
        card = self._find_card(form.card_id)

        return Transaction(
            amount=amount,
            category=category,
            note=form.note or DEFAULT_NOTE,
            payment_method=card.number if card else NO_CARD,
            type=form.transaction_type,
            custom_color=custom_color,
            custom_image=custom_image,
        )

    def build_updates(self, form: TransactionForm) -> dict[str, Any]:
        """
        Partial update from the edit screen.

        The amount is taken as entered (no sign applied) and the payment
        method is left alone.
        """
        result = self.validate(form)
        if result.has_errors:
            raise FormValidationError(result)

        updates: dict[str, Any] = {
            "amount": parse_amount(form.amount),
            "note": form.note,
        }
        if form.category == CUSTOM_CATEGORY:
            updates["category"] = form.custom_category_name.strip()
            updates["custom_color"] = form.custom_category_color
        elif form.category in DEFAULT_CATEGORIES:
            updates["category"] = DEFAULT_CATEGORIES[form.category][0]
        else:
            # Existing category names pass through unchanged
            updates["category"] = form.category
        return updates


# =============================================================================
# CARDS
# =============================================================================

class CardForm(BaseModel):
    """Raw input of the add/edit card screen."""

    type: str = ""
    number: str = ""
    balance: str = ""
    color: str = ""
    image: str = ""


class CardFormValidator:
    """Validates card forms and builds store input from them."""

    def validate(self, form: CardForm) -> ValidationResult:
        issues = []
        for field in ("type", "number"):
            if not getattr(form, field).strip():
                issues.append(ValidationIssue(
                    field=field,
                    issue_type="missing",
                    message="Please fill in all required fields correctly.",
                    severity="error",
                ))
        if parse_amount(form.balance) is None:
            issues.append(ValidationIssue(
                field="balance",
                issue_type="invalid_format",
                message="Please fill in all required fields correctly.",
                severity="error",
            ))
        return ValidationResult(issues=issues)

    @staticmethod
    def _color(form: CardForm) -> str:
        color = form.color.strip().lower()
        return color or DEFAULT_CARD_COLOR

    def _fields(self, form: CardForm) -> dict[str, Any]:
        result = self.validate(form)
        if result.has_errors:
            raise FormValidationError(result)
        return {
            "type": form.type,
            "number": form.number,
            "balance": parse_amount(form.balance),
            "color": self._color(form),
            "image": form.image,
        }

    def build(self, form: CardForm, card_id: Optional[str] = None) -> Card:
        """New card; the id is generated unless given."""
        fields = self._fields(form)
        if card_id is not None:
            fields["id"] = card_id
        return Card(**fields)

    def build_updates(self, form: CardForm) -> dict[str, Any]:
        """Partial update for an existing card, balance included."""
        return self._fields(form)
