"""State stores package."""

from finance_tracker.store.base import SNAPSHOT_VERSION, Listener, PersistedStore
from finance_tracker.store.finance_store import FinanceStore
from finance_tracker.store.profile_store import ProfileStore

__all__ = [
    "SNAPSHOT_VERSION",
    "FinanceStore",
    "Listener",
    "PersistedStore",
    "ProfileStore",
]
