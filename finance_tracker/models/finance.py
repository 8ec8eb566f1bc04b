"""
Core Data Models for Finance Tracker

Transactions and cards are the two entities the finance store owns.
They are designed to:
1. Serialize to the camelCase JSON used by snapshots and backups
2. Stay immutable once created (the store replaces, never edits)
3. Carry unknown keys from older backups through untouched

DESIGN DECISION: A transaction points at its card through the card's
display `number` (paymentMethod), not through the card id. This is the
join key for every balance adjustment.
"""

import time
from datetime import datetime, timezone
from decimal import Decimal
from enum import Enum
from typing import Annotated, Any, Mapping, Optional, get_args

from pydantic import BaseModel, ConfigDict, Field, PlainSerializer
from pydantic.alias_generators import to_camel


NO_CARD = "No Card"
DEFAULT_NOTE = "No description"

# Decimal in memory, JSON number on the wire. The JSON number is a double,
# so values beyond ~15 significant digits lose precision after a reload.
Money = Annotated[
    Decimal,
    PlainSerializer(float, return_type=float, when_used="json"),
]

_last_id_ms = 0


def generate_id() -> str:
    """
    Create a unique, creation-ordered identifier.

    Millisecond epoch as a string. Two ids created within the same
    millisecond are bumped so ordering is strict.
    """
    global _last_id_ms
    now_ms = time.time_ns() // 1_000_000
    _last_id_ms = max(now_ms, _last_id_ms + 1)
    return str(_last_id_ms)


def utc_timestamp() -> str:
    """Current UTC time as YYYY-MM-DDTHH:MM:SS.mmmZ."""
    now = datetime.now(timezone.utc)
    return now.isoformat(timespec="milliseconds").replace("+00:00", "Z")


# =============================================================================
# ENUMS
# =============================================================================

class TransactionType(str, Enum):
    """
    Expense or income tag.

    Redundant with the sign of the amount and never checked against it.
    """
    EXPENSE = "expense"
    INCOME = "income"


# =============================================================================
# BASE RECORD
# =============================================================================

class FinanceRecord(BaseModel):
    """
    Shared configuration for stored entities.

    Field names are snake_case in Python and camelCase on the wire;
    both spellings are accepted on input.
    """
    model_config = ConfigDict(
        alias_generator=to_camel,
        populate_by_name=True,
        frozen=True,
        extra="allow",
        allow_inf_nan=True,
    )

    @classmethod
    def normalize_updates(cls, updates: Mapping[str, Any]) -> dict[str, Any]:
        """Translate camelCase keys in a partial update to field names."""
        aliases = {to_camel(name): name for name in cls.model_fields}
        return {aliases.get(key, key): value for key, value in updates.items()}

    @classmethod
    def _accepts_none(cls, name: str) -> bool:
        field = cls.model_fields.get(name)
        return field is None or type(None) in get_args(field.annotation)

    def merged(self, updates: Mapping[str, Any]) -> "FinanceRecord":
        """
        Shallow merge: every key in `updates` overwrites, the rest is kept.

        A None for a field that cannot hold None keeps the current value.
        The merged record goes through validation again, so a value of the
        wrong type raises ValidationError.
        """
        data = self.model_dump()
        data.update({
            key: value
            for key, value in self.normalize_updates(updates).items()
            if value is not None or self._accepts_none(key)
        })
        return type(self).model_validate(data)

    def to_json_dict(self) -> dict[str, Any]:
        """JSON-ready dict with camelCase keys and unset optionals omitted."""
        return self.model_dump(mode="json", by_alias=True, exclude_none=True)


# =============================================================================
# ENTITIES
# =============================================================================

class Transaction(FinanceRecord):
    """
    A single recorded expense or income event.

    `amount` is signed: negative for expenses, positive for income.
    """

    id: str = Field(
        default_factory=generate_id,
        description="Unique, creation-ordered identifier"
    )
    amount: Money = Field(
        ...,
        description="Signed amount (negative = expense)"
    )
    category: str = Field(
        default="Other",
        description="Category label, free text for custom categories"
    )
    note: str = Field(
        default=DEFAULT_NOTE,
        description="Free-text description"
    )
    date: str = Field(
        default_factory=utc_timestamp,
        description="ISO-8601 timestamp of the transaction"
    )
    payment_method: str = Field(
        default=NO_CARD,
        description="Display number of the card this transaction is charged to"
    )
    type: TransactionType = Field(
        default=TransactionType.EXPENSE,
        description="Expense or income"
    )

    # Cosmetic metadata for custom categories
    custom_color: Optional[str] = None
    custom_image: Optional[str] = None


class Card(FinanceRecord):
    """
    A payment instrument with a cached running balance.

    `balance` equals the initial balance plus the amounts of every
    transaction whose payment method matches `number`.
    """

    id: str = Field(
        default_factory=generate_id,
        description="Unique identifier"
    )
    type: str = Field(
        ...,
        description="Display label, e.g. Visa"
    )
    number: str = Field(
        ...,
        description="Masked display number, the transaction join key"
    )
    balance: Money = Field(
        default=Decimal("0"),
        description="Running balance"
    )
    color: str = Field(
        default="#ffffff",
        description="Display color"
    )
    image: str = Field(
        default="",
        description="Background image URI"
    )


DEFAULT_CARDS: tuple[Card, ...] = (
    Card(
        id="1",
        type="Visa",
        number="•••• 4589",
        balance=Decimal("3240.5"),
        color="#007AFF",
        image="https://images.unsplash.com/photo-1613243555988-441166d4d6fd?q=80&w=2340&fit=crop",
    ),
    Card(
        id="2",
        type="Mastercard",
        number="•••• 1234",
        balance=Decimal("5680.75"),
        color="#5856D6",
        image="https://images.unsplash.com/photo-1613243555978-636c48dc653c?q=80&w=2340&fit=crop",
    ),
)


def default_cards() -> list[Card]:
    """Seed cards for a store with no saved state."""
    return list(DEFAULT_CARDS)


class FinanceSnapshot(BaseModel):
    """
    Full finance state: what gets persisted and backed up.

    A key missing from stored data keeps its default, so an old
    snapshot with only transactions still gets the seed cards.
    """
    model_config = ConfigDict(extra="ignore")

    transactions: list[Transaction] = Field(default_factory=list)
    cards: list[Card] = Field(default_factory=default_cards)

    def to_json_dict(self) -> dict[str, Any]:
        return {
            "transactions": [t.to_json_dict() for t in self.transactions],
            "cards": [c.to_json_dict() for c in self.cards],
        }
