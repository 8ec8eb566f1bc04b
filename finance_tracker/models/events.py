"""
Store Change Models

Every mutation of a store produces one StoreChange. Subscribers receive
it synchronously, in the order the operations were invoked.

DESIGN DECISION: A change describes what happened, it does not carry
the new state. Subscribers read the state from the store itself.
"""

from datetime import datetime, timezone
from decimal import Decimal
from enum import Enum
from typing import Any, Optional, Sequence
from uuid import UUID, uuid4

from pydantic import BaseModel, Field

from finance_tracker.models.finance import Card, Transaction


class ChangeType(str, Enum):
    """Kinds of store mutation."""
    # Transactions
    TRANSACTION_ADDED = "transaction_added"
    TRANSACTION_UPDATED = "transaction_updated"
    TRANSACTION_REMOVED = "transaction_removed"
    TRANSACTIONS_REPLACED = "transactions_replaced"

    # Cards
    CARD_ADDED = "card_added"
    CARD_UPDATED = "card_updated"
    CARD_REMOVED = "card_removed"
    CARDS_REPLACED = "cards_replaced"

    # Profile
    PROFILE_UPDATED = "profile_updated"


class StoreChange(BaseModel):
    """A single state change of a store."""

    change_id: UUID = Field(
        default_factory=uuid4,
        description="Unique change identifier"
    )
    timestamp: datetime = Field(
        default_factory=lambda: datetime.now(timezone.utc),
        description="When the change happened (UTC)"
    )
    change_type: ChangeType
    store: str = Field(
        ...,
        description="Name of the store that changed, e.g. 'finance'"
    )
    entity_type: Optional[str] = Field(
        default=None,
        description="'transaction', 'card' or 'profile'"
    )
    entity_id: Optional[str] = None
    description: str = Field(
        ...,
        description="Human-readable description of what happened"
    )
    details: dict[str, Any] = Field(default_factory=dict)

    def to_log_dict(self) -> dict:
        """Flat dictionary for structured logging."""
        return {
            "change_id": str(self.change_id),
            "changed_at": self.timestamp.isoformat(),
            "change_type": self.change_type.value,
            "store": self.store,
            "entity_type": self.entity_type,
            "entity_id": self.entity_id,
            "description": self.description,
            "details": self.details,
        }


def _card_ids(cards: Sequence[Card]) -> list[str]:
    return [card.id for card in cards]


class StoreChangeBuilder:
    """
    Helper class to build changes with common patterns.

    Usage:
        change = StoreChangeBuilder.transaction_added(transaction, affected)
        change = StoreChangeBuilder.card_removed(card)
    """

    @staticmethod
    def transaction_added(
        transaction: Transaction,
        affected_cards: Sequence[Card],
    ) -> StoreChange:
        return StoreChange(
            change_type=ChangeType.TRANSACTION_ADDED,
            store="finance",
            entity_type="transaction",
            entity_id=transaction.id,
            description=f"Transaction added: {transaction.category} {transaction.amount}",
            details={
                "amount": str(transaction.amount),
                "payment_method": transaction.payment_method,
                "affected_cards": _card_ids(affected_cards),
            },
        )

    @staticmethod
    def transaction_updated(
        old: Transaction,
        new: Transaction,
        amount_diff: Decimal,
        affected_cards: Sequence[Card],
    ) -> StoreChange:
        return StoreChange(
            change_type=ChangeType.TRANSACTION_UPDATED,
            store="finance",
            entity_type="transaction",
            entity_id=old.id,
            description=f"Transaction updated: amount changed by {amount_diff}",
            details={
                "amount_diff": str(amount_diff),
                "payment_method": old.payment_method,
                "new_payment_method": new.payment_method,
                "affected_cards": _card_ids(affected_cards),
            },
        )

    @staticmethod
    def transaction_removed(
        transaction: Transaction,
        affected_cards: Sequence[Card],
    ) -> StoreChange:
        return StoreChange(
            change_type=ChangeType.TRANSACTION_REMOVED,
            store="finance",
            entity_type="transaction",
            entity_id=transaction.id,
            description=f"Transaction removed: {transaction.category} {transaction.amount}",
            details={
                "amount": str(transaction.amount),
                "payment_method": transaction.payment_method,
                "affected_cards": _card_ids(affected_cards),
            },
        )

    @staticmethod
    def transactions_replaced(count: int) -> StoreChange:
        return StoreChange(
            change_type=ChangeType.TRANSACTIONS_REPLACED,
            store="finance",
            entity_type="transaction",
            description=f"Transactions replaced: {count} restored",
            details={"count": count},
        )

    @staticmethod
    def card_added(card: Card) -> StoreChange:
        return StoreChange(
            change_type=ChangeType.CARD_ADDED,
            store="finance",
            entity_type="card",
            entity_id=card.id,
            description=f"Card added: {card.type} {card.number}",
            details={"number": card.number, "balance": str(card.balance)},
        )

    @staticmethod
    def card_updated(old: Card, new: Card) -> StoreChange:
        return StoreChange(
            change_type=ChangeType.CARD_UPDATED,
            store="finance",
            entity_type="card",
            entity_id=old.id,
            description=f"Card updated: {new.type} {new.number}",
            details={
                "number": new.number,
                "previous_number": old.number,
                "balance": str(new.balance),
                "previous_balance": str(old.balance),
            },
        )

    @staticmethod
    def card_removed(card: Card) -> StoreChange:
        return StoreChange(
            change_type=ChangeType.CARD_REMOVED,
            store="finance",
            entity_type="card",
            entity_id=card.id,
            description=f"Card removed: {card.type} {card.number}",
            details={"number": card.number},
        )

    @staticmethod
    def cards_replaced(count: int) -> StoreChange:
        return StoreChange(
            change_type=ChangeType.CARDS_REPLACED,
            store="finance",
            entity_type="card",
            description=f"Cards replaced: {count} restored",
            details={"count": count},
        )

    @staticmethod
    def profile_updated(fields: Sequence[str]) -> StoreChange:
        return StoreChange(
            change_type=ChangeType.PROFILE_UPDATED,
            store="profile",
            entity_type="profile",
            description="Profile updated",
            details={"fields": sorted(fields)},
        )
