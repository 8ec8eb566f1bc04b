"""
Abstract Snapshot Storage Interface

DESIGN DECISION: Stores persist through a key-value interface.
This allows us to:
1. Keep store logic testable without any I/O
2. Use in-memory storage for testing
3. Swap the local JSON files for another backend later

Each store writes its whole state under one fixed key. There is no
partial update and no query support: load the snapshot, save the snapshot.
"""

from abc import ABC, abstractmethod
from typing import Any, Optional


class SnapshotStorageInterface(ABC):
    """
    Abstract interface for snapshot storage.

    Any storage implementation (local files, a database, a keychain)
    must implement these methods.
    """

    @abstractmethod
    def load(self, key: str) -> Optional[dict[str, Any]]:
        """
        Read the snapshot stored under a key.

        Args:
            key: Logical storage name, e.g. "finance-store"

        Returns:
            The stored dict, or None if nothing was saved yet

        Raises:
            CorruptSnapshotError: If stored data cannot be decoded
            StorageError: If the backend cannot be read
        """
        pass

    @abstractmethod
    def save(self, key: str, data: dict[str, Any]) -> None:
        """
        Replace the snapshot stored under a key.

        Args:
            key: Logical storage name
            data: JSON-serializable snapshot

        Raises:
            StorageError: If the write fails
        """
        pass

    @abstractmethod
    def delete(self, key: str) -> None:
        """
        Remove the snapshot stored under a key.

        Deleting a missing key is not an error.
        """
        pass


class StorageError(Exception):
    """Base exception for storage operations."""
    pass


class CorruptSnapshotError(StorageError):
    """Stored snapshot exists but cannot be decoded."""
    pass


class ConnectionError(StorageError):
    """Could not connect to storage backend."""
    pass
