"""
Backup Service

Glue between the finance store and a backup transport.

Backup:  store snapshot -> JSON payload -> transport.upload
Restore: transport.download -> shape check -> models -> bulk replace

The store performs no validation on bulk replacement, so this service
is where the payload is checked. A restore that fails any check leaves
the store untouched.
"""

from typing import TYPE_CHECKING, Any, Mapping

import structlog
from pydantic import ValidationError

from finance_tracker.models.finance import FinanceSnapshot
from finance_tracker.services.backup.interface import (
    BackupTransportInterface,
    IncompleteBackupError,
    InvalidBackupError,
)

if TYPE_CHECKING:
    from finance_tracker.store.finance_store import FinanceStore


REQUIRED_KEYS = ("transactions", "cards")

logger = structlog.get_logger(__name__)


class BackupService:
    """Backs up and restores the finance store through a transport."""

    def __init__(self, store: "FinanceStore", transport: BackupTransportInterface):
        self._store = store
        self._transport = transport

    def export_data(self) -> dict[str, Any]:
        """The backup payload: {"transactions": [...], "cards": [...]}."""
        return self._store.snapshot().to_json_dict()

    def backup(self) -> str:
        """
        Upload the current state.

        Returns the remote backup id.
        """
        payload = self.export_data()
        backup_id = self._transport.upload(payload)
        logger.info(
            "backup_completed",
            backup_id=backup_id,
            transactions=len(payload["transactions"]),
            cards=len(payload["cards"]),
        )
        return backup_id

    def restore(self) -> FinanceSnapshot:
        """Download the latest backup and replace the store's state with it."""
        payload = self._transport.download()
        return self.restore_from_payload(payload)

    def restore_from_payload(self, payload: Mapping[str, Any]) -> FinanceSnapshot:
        """
        Replace the store's state with a backup payload.

        Raises:
            IncompleteBackupError: If transactions or cards are missing
            InvalidBackupError: If entries cannot be parsed
        """
        missing = [key for key in REQUIRED_KEYS if payload.get(key) is None]
        if missing:
            logger.warning("restore_rejected", missing=missing)
            raise IncompleteBackupError(
                f"The backup data is incomplete: missing {', '.join(missing)}"
            )

        try:
            snapshot = FinanceSnapshot.model_validate(
                {key: payload[key] for key in REQUIRED_KEYS}
            )
        except ValidationError as e:
            logger.warning("restore_rejected", error_count=e.error_count())
            raise InvalidBackupError(f"The backup data is invalid: {e}") from e

        self._store.set_transactions(snapshot.transactions)
        self._store.set_cards(snapshot.cards)
        logger.info(
            "restore_completed",
            transactions=len(snapshot.transactions),
            cards=len(snapshot.cards),
        )
        return snapshot
