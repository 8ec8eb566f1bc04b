"""In-memory snapshot storage, used by tests and ephemeral sessions."""

import copy
from typing import Any, Optional

from finance_tracker.services.storage.interface import SnapshotStorageInterface


class InMemoryStorage(SnapshotStorageInterface):
    """Dict-backed storage. Snapshots are deep-copied in and out."""

    def __init__(self, initial: Optional[dict[str, dict[str, Any]]] = None):
        self._data: dict[str, dict[str, Any]] = copy.deepcopy(initial or {})
        self.save_count = 0

    def load(self, key: str) -> Optional[dict[str, Any]]:
        data = self._data.get(key)
        return copy.deepcopy(data) if data is not None else None

    def save(self, key: str, data: dict[str, Any]) -> None:
        self._data[key] = copy.deepcopy(data)
        self.save_count += 1

    def delete(self, key: str) -> None:
        self._data.pop(key, None)

    def keys(self) -> list[str]:
        return sorted(self._data)
