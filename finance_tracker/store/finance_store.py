"""
Finance Store

The single source of truth for transactions and cards.

Every transaction mutation adjusts the balance of the card(s) whose
`number` equals the transaction's `payment_method`, in the same step:

    add     -> balance += amount
    remove  -> balance -= amount
    update  -> balance += new_amount - old_amount   (old card only)

Balances are maintained incrementally and never recomputed from the
transaction history. Bulk replacement (restore from backup) trusts the
incoming data as-is.

KNOWN GAPS (kept for compatibility):
- The join key is the card's display number. Two cards sharing a number
  both receive every adjustment; renaming a card's number detaches the
  transactions already recorded against it.
- update_transaction reconciles only the card of the OLD payment
  method. Moving a transaction to another card does not credit the new
  card nor reverse the original amount on the old one.
"""

from decimal import Decimal
from typing import Any, Iterable, Mapping, Optional

from pydantic import ValidationError

from finance_tracker.models.events import StoreChangeBuilder
from finance_tracker.models.finance import (
    Card,
    FinanceSnapshot,
    Transaction,
)
from finance_tracker.services.storage import SnapshotStorageInterface
from finance_tracker.store.base import PersistedStore


DEFAULT_STORAGE_KEY = "finance-store"


def _apply_to_cards(
    cards: tuple[Card, ...],
    payment_method: str,
    delta: Decimal,
) -> tuple[tuple[Card, ...], list[Card]]:
    """
    Add `delta` to every card whose number matches `payment_method`.

    Returns the new card tuple and the updated cards. Cards that do not
    match are kept as the same objects.
    """
    updated = []
    result = []
    for card in cards:
        if card.number == payment_method:
            card = card.model_copy(update={"balance": card.balance + delta})
            updated.append(card)
        result.append(card)
    return tuple(result), updated


class FinanceStore(PersistedStore):
    """
    State container for transactions and cards.

    The public methods below are the only way to change the state.
    None of them raise. Unknown ids and updates that fail validation
    leave the state as it is.
    """

    def __init__(
        self,
        storage: Optional[SnapshotStorageInterface] = None,
        storage_key: str = DEFAULT_STORAGE_KEY,
    ):
        super().__init__(storage, storage_key)
        snapshot = self._hydrate()
        self._transactions: tuple[Transaction, ...] = tuple(snapshot.transactions)
        self._cards: tuple[Card, ...] = tuple(snapshot.cards)

    def _hydrate(self) -> FinanceSnapshot:
        state = self._load_state()
        if state is None:
            return FinanceSnapshot()
        try:
            snapshot = FinanceSnapshot.model_validate(state)
        except ValidationError as e:
            self._logger.warning("snapshot_invalid", error_count=e.error_count())
            return FinanceSnapshot()
        self._logger.info(
            "snapshot_loaded",
            transactions=len(snapshot.transactions),
            cards=len(snapshot.cards),
        )
        return snapshot

    def _dump_state(self) -> dict[str, Any]:
        return self.snapshot().to_json_dict()

    # ── Reads ────────────────────────────────────────────────────────────────

    @property
    def transactions(self) -> tuple[Transaction, ...]:
        """All transactions in insertion order."""
        return self._transactions

    @property
    def cards(self) -> tuple[Card, ...]:
        return self._cards

    def snapshot(self) -> FinanceSnapshot:
        return FinanceSnapshot(
            transactions=list(self._transactions),
            cards=list(self._cards),
        )

    def get_transaction(self, transaction_id: str) -> Optional[Transaction]:
        return next((t for t in self._transactions if t.id == transaction_id), None)

    def get_card(self, card_id: str) -> Optional[Card]:
        return next((c for c in self._cards if c.id == card_id), None)

    def cards_for_payment_method(self, payment_method: str) -> list[Card]:
        """Cards a transaction with this payment method would adjust."""
        return [c for c in self._cards if c.number == payment_method]

    def transactions_for_card(self, card_id: str) -> list[Transaction]:
        """Transactions joined to a card through its current number."""
        card = self.get_card(card_id)
        if card is None:
            return []
        return [t for t in self._transactions if t.payment_method == card.number]

    # ── Transactions ─────────────────────────────────────────────────────────

    def add_transaction(self, transaction: Transaction) -> None:
        """
        Append a transaction and add its amount to the matching card(s).

        The id is not checked for uniqueness. A payment method matching
        no card (e.g. "No Card") leaves every balance unchanged.
        """
        cards, affected = _apply_to_cards(
            self._cards, transaction.payment_method, transaction.amount
        )
        self._transactions = self._transactions + (transaction,)
        self._cards = cards

        self._logger.info(
            "transaction_added",
            transaction_id=transaction.id,
            amount=str(transaction.amount),
            payment_method=transaction.payment_method,
            cards_adjusted=len(affected),
        )
        self._commit(StoreChangeBuilder.transaction_added(transaction, affected))

    def remove_transaction(self, transaction_id: str) -> None:
        """
        Remove a transaction and reverse its effect on the matching card(s).

        Unknown ids are ignored.
        """
        removed = self.get_transaction(transaction_id)
        if removed is None:
            self._logger.debug("transaction_not_found", transaction_id=transaction_id)
            return

        cards, affected = _apply_to_cards(
            self._cards, removed.payment_method, -removed.amount
        )
        self._transactions = tuple(
            t for t in self._transactions if t.id != transaction_id
        )
        self._cards = cards

        self._logger.info(
            "transaction_removed",
            transaction_id=transaction_id,
            amount=str(removed.amount),
            cards_adjusted=len(affected),
        )
        self._commit(StoreChangeBuilder.transaction_removed(removed, affected))

    def update_transaction(
        self,
        transaction_id: str,
        updates: Mapping[str, Any],
    ) -> None:
        """
        Shallow-merge `updates` into a transaction.

        The change in amount is applied to the card(s) matching the
        OLD payment method, even when `updates` changes the payment
        method. A None amount keeps the old amount. Unknown ids and
        updates that fail validation are ignored.
        """
        old = self.get_transaction(transaction_id)
        if old is None:
            self._logger.debug("transaction_not_found", transaction_id=transaction_id)
            return

        # Entries sharing the id are merged one by one
        try:
            transactions = tuple(
                t.merged(updates) if t.id == transaction_id else t
                for t in self._transactions
            )
        except ValidationError as e:
            self._logger.warning(
                "update_rejected",
                transaction_id=transaction_id,
                error_count=e.error_count(),
                fields=sorted(updates),
            )
            return

        new = next(t for t in transactions if t.id == transaction_id)
        amount_diff = new.amount - old.amount

        cards, affected = _apply_to_cards(self._cards, old.payment_method, amount_diff)
        self._transactions = transactions
        self._cards = cards

        if new.payment_method != old.payment_method:
            self._logger.warning(
                "payment_method_changed",
                transaction_id=transaction_id,
                old_payment_method=old.payment_method,
                new_payment_method=new.payment_method,
            )
        self._logger.info(
            "transaction_updated",
            transaction_id=transaction_id,
            amount_diff=str(amount_diff),
            cards_adjusted=len(affected),
        )
        self._commit(
            StoreChangeBuilder.transaction_updated(old, new, amount_diff, affected)
        )

    def set_transactions(self, transactions: Iterable[Transaction]) -> None:
        """Replace every transaction. Balances are not touched."""
        self._transactions = tuple(transactions)
        self._logger.info("transactions_replaced", count=len(self._transactions))
        self._commit(StoreChangeBuilder.transactions_replaced(len(self._transactions)))

    # ── Cards ────────────────────────────────────────────────────────────────

    def add_card(self, card: Card) -> None:
        if self.cards_for_payment_method(card.number):
            self._logger.warning(
                "duplicate_card_number",
                card_id=card.id,
                number=card.number,
            )
        self._cards = self._cards + (card,)
        self._logger.info("card_added", card_id=card.id, number=card.number)
        self._commit(StoreChangeBuilder.card_added(card))

    def remove_card(self, card_id: str) -> None:
        """
        Remove a card. Transactions referencing it are left in place.

        Unknown ids are ignored.
        """
        removed = self.get_card(card_id)
        if removed is None:
            self._logger.debug("card_not_found", card_id=card_id)
            return

        self._cards = tuple(c for c in self._cards if c.id != card_id)
        self._logger.info("card_removed", card_id=card_id, number=removed.number)
        self._commit(StoreChangeBuilder.card_removed(removed))

    def update_card(self, card_id: str, updates: Mapping[str, Any]) -> None:
        """
        Shallow-merge `updates` into a card.

        A `balance` in `updates` overwrites the running balance directly.
        Unknown ids and updates that fail validation are ignored.
        """
        old = self.get_card(card_id)
        if old is None:
            self._logger.debug("card_not_found", card_id=card_id)
            return

        try:
            new = old.merged(updates)
        except ValidationError as e:
            self._logger.warning(
                "update_rejected",
                card_id=card_id,
                error_count=e.error_count(),
                fields=sorted(updates),
            )
            return
        self._cards = tuple(new if c.id == card_id else c for c in self._cards)

        self._logger.info("card_updated", card_id=card_id, fields=sorted(updates))
        self._commit(StoreChangeBuilder.card_updated(old, new))

    def set_cards(self, cards: Iterable[Card]) -> None:
        """Replace every card as-is, with no balance recomputation."""
        self._cards = tuple(cards)
        self._logger.info("cards_replaced", count=len(self._cards))
        self._commit(StoreChangeBuilder.cards_replaced(len(self._cards)))
