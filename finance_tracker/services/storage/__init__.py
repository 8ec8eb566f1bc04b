"""
Storage Services Package

Snapshot storage used by the stores for load-on-construct and
save-on-mutate. Local JSON files by default, in-memory for tests.
"""

from finance_tracker.services.storage.interface import (
    ConnectionError,
    CorruptSnapshotError,
    SnapshotStorageInterface,
    StorageError,
)
from finance_tracker.services.storage.json_file import JsonFileStorage
from finance_tracker.services.storage.memory import InMemoryStorage

__all__ = [
    # Interface
    "SnapshotStorageInterface",
    # Exceptions
    "ConnectionError",
    "CorruptSnapshotError",
    "StorageError",
    # Implementations
    "InMemoryStorage",
    "JsonFileStorage",
]
