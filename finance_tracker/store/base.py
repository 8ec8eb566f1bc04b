"""
Persisted Store Base

Shared plumbing for the finance and profile stores:
1. Load-on-construct from snapshot storage
2. Save-on-mutate after every state change
3. Observer subscription with synchronous notification

DESIGN DECISION: Persistence failures never reach the caller. The
in-memory state is the source of truth; a failed write is logged and
the next successful write carries the change.
"""

from abc import ABC, abstractmethod
from typing import Any, Callable, Optional

import structlog

from finance_tracker.models.events import StoreChange
from finance_tracker.services.storage import SnapshotStorageInterface, StorageError


SNAPSHOT_VERSION = 0

Listener = Callable[[StoreChange], None]


class PersistedStore(ABC):
    """
    Base class for a state container with persistence and subscribers.

    Subclasses own their state, implement `_dump_state` for persistence
    and call `_commit(change)` after every mutation.
    """

    def __init__(
        self,
        storage: Optional[SnapshotStorageInterface],
        storage_key: str,
    ):
        self._storage = storage
        self._storage_key = storage_key
        self._listeners: list[Listener] = []
        self._logger = structlog.get_logger(type(self).__module__).bind(
            store_key=storage_key,
        )

    @property
    def storage_key(self) -> str:
        return self._storage_key

    # ── Subscription ─────────────────────────────────────────────────────────

    def subscribe(self, listener: Listener) -> Callable[[], None]:
        """
        Register a listener called after every state change.

        Returns a function that removes the listener again.
        """
        self._listeners.append(listener)

        def unsubscribe() -> None:
            self.unsubscribe(listener)

        return unsubscribe

    def unsubscribe(self, listener: Listener) -> None:
        if listener in self._listeners:
            self._listeners.remove(listener)

    # ── Persistence ──────────────────────────────────────────────────────────

    @abstractmethod
    def _dump_state(self) -> dict[str, Any]:
        """JSON-ready representation of the current state."""

    def _load_state(self) -> Optional[dict[str, Any]]:
        """
        Read the persisted state dict.

        Returns None when there is no usable snapshot: nothing saved,
        unreadable data or a version this code does not understand.
        """
        if self._storage is None:
            return None

        try:
            envelope = self._storage.load(self._storage_key)
        except StorageError as e:
            self._logger.warning("snapshot_load_failed", error=str(e))
            return None

        if envelope is None:
            return None

        version = envelope.get("version")
        state = envelope.get("state")
        if version != SNAPSHOT_VERSION or not isinstance(state, dict):
            self._logger.warning(
                "snapshot_unusable",
                version=version,
                has_state=isinstance(state, dict),
            )
            return None

        return state

    def persist(self) -> bool:
        """
        Write the current state to storage.

        Returns True if written (or no storage is configured).
        """
        if self._storage is None:
            return True

        envelope = {"state": self._dump_state(), "version": SNAPSHOT_VERSION}
        try:
            self._storage.save(self._storage_key, envelope)
        except StorageError as e:
            # Log failure but don't raise
            self._logger.error("snapshot_save_failed", error=str(e))
            return False
        return True

    # ── Mutation hook ────────────────────────────────────────────────────────

    def _commit(self, change: StoreChange) -> None:
        """Run after the new state is in place: persist, then notify."""
        self.persist()
        for listener in list(self._listeners):
            try:
                listener(change)
            except Exception:
                self._logger.exception(
                    "listener_failed",
                    change_type=change.change_type.value,
                    listener=getattr(listener, "__qualname__", repr(listener)),
                )
