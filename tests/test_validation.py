"""Tests for transaction and card form validation."""

import pytest
from decimal import Decimal

from finance_tracker.models import DEFAULT_CARDS, DEFAULT_NOTE, NO_CARD, TransactionType
from finance_tracker.validation import (
    CUSTOM_CATEGORY,
    CardForm,
    CardFormValidator,
    FormValidationError,
    TransactionForm,
    TransactionFormValidator,
    parse_amount,
)


@pytest.fixture
def validator():
    return TransactionFormValidator(DEFAULT_CARDS)


class TestParseAmount:
    """Tests for parse_amount."""

    @pytest.mark.parametrize("raw,expected", [
        ("12.50", Decimal("12.50")),
        (" 7 ", Decimal("7")),
        ("-3", Decimal("-3")),
    ])
    def test_valid(self, raw, expected):
        assert parse_amount(raw) == expected

    @pytest.mark.parametrize("raw", ["", "abc", "1,5", "NaN", "Infinity", None])
    def test_invalid(self, raw):
        assert parse_amount(raw) is None


class TestTransactionFormValidator:
    """Tests for the add/edit transaction form."""

    def test_valid_form(self, validator):
        form = TransactionForm(amount="25", category="2", card_id="1")
        assert validator.validate(form).is_valid

    def test_missing_fields(self, validator):
        result = validator.validate(TransactionForm())
        assert result.error_count == 2
        assert result.messages == ["Please fill in all required fields"] * 2

    def test_invalid_amount(self, validator):
        result = validator.validate(TransactionForm(amount="ten", category="1"))
        assert result.has_errors
        assert "Please enter a valid amount" in result.messages

    def test_custom_category_needs_name(self, validator):
        result = validator.validate(TransactionForm(amount="5", category=CUSTOM_CATEGORY))
        assert result.messages == ["Please enter a custom category name"]

    def test_unknown_card_is_a_warning(self, validator):
        result = validator.validate(TransactionForm(amount="5", category="1", card_id="99"))
        assert result.is_valid
        assert result.issues[0].severity == "warning"

    def test_build_expense_is_negative(self, validator):
        """Test expenses are stored with a negative amount."""
        transaction = validator.build(
            TransactionForm(amount="25", category="2", card_id="1", note="Lunch")
        )
        assert transaction.amount == Decimal("-25")
        assert transaction.category == "Food"
        assert transaction.note == "Lunch"
        assert transaction.payment_method == "•••• 4589"
        assert transaction.type == TransactionType.EXPENSE

    def test_build_income_is_positive(self, validator):
        transaction = validator.build(TransactionForm(
            amount="-100",
            category="4",
            transaction_type=TransactionType.INCOME,
            card_id="2",
        ))
        assert transaction.amount == Decimal("100")
        assert transaction.payment_method == "•••• 1234"

    def test_build_without_card(self, validator):
        transaction = validator.build(TransactionForm(amount="1", category="3"))
        assert transaction.payment_method == NO_CARD
        assert transaction.note == DEFAULT_NOTE

    def test_build_custom_category(self, validator):
        transaction = validator.build(TransactionForm(
            amount="8",
            category=CUSTOM_CATEGORY,
            custom_category_name=" Pets ",
            custom_category_image="paw.png",
        ))
        assert transaction.category == "Pets"
        assert transaction.custom_color == "#8e8e93"
        assert transaction.custom_image == "paw.png"

    def test_build_rejects_invalid_form(self, validator):
        with pytest.raises(FormValidationError) as exc_info:
            validator.build(TransactionForm(amount="x", category="1"))
        assert exc_info.value.result.has_errors

    def test_build_updates(self, validator):
        """Test edits keep the amount as entered and map category ids."""
        updates = validator.build_updates(TransactionForm(amount="-42", category="1", note="Shoes"))
        assert updates == {"amount": Decimal("-42"), "note": "Shoes", "category": "Shopping"}

    def test_build_updates_custom_category(self, validator):
        updates = validator.build_updates(TransactionForm(
            amount="3",
            category=CUSTOM_CATEGORY,
            custom_category_name="Gifts",
            custom_category_color="#123456",
        ))
        assert updates["category"] == "Gifts"
        assert updates["custom_color"] == "#123456"

    def test_build_updates_keeps_existing_category_name(self, validator):
        updates = validator.build_updates(TransactionForm(amount="3", category="Restaurants"))
        assert updates["category"] == "Restaurants"


class TestCardFormValidator:
    """Tests for the add/edit card form."""

    def test_missing_fields(self):
        result = CardFormValidator().validate(CardForm(balance="abc"))
        assert result.error_count == 3
        assert set(result.messages) == {"Please fill in all required fields correctly."}

    def test_build(self):
        card = CardFormValidator().build(
            CardForm(type="Visa", number="•••• 7777", balance="120.5", color=" #FF0000 "),
            card_id="c7",
        )
        assert card.id == "c7"
        assert card.balance == Decimal("120.5")
        assert card.color == "#ff0000"

    def test_build_default_color(self):
        card = CardFormValidator().build(CardForm(type="Visa", number="1", balance="0"))
        assert card.color == "#ffffff"
        assert card.id

    def test_build_updates(self):
        updates = CardFormValidator().build_updates(
            CardForm(type="Amex", number="•••• 0005", balance="9")
        )
        assert updates["balance"] == Decimal("9")
        assert updates["number"] == "•••• 0005"

    def test_build_rejects_invalid_form(self):
        with pytest.raises(FormValidationError):
            CardFormValidator().build(CardForm(type="Visa", number="1", balance=""))


if __name__ == "__main__":
    pytest.main([__file__, "-v"])
