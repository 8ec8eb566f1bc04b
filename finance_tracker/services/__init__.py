"""Services package."""

from finance_tracker.services.storage import (
    ConnectionError,
    CorruptSnapshotError,
    InMemoryStorage,
    JsonFileStorage,
    SnapshotStorageInterface,
    StorageError,
)
from finance_tracker.services.backup import (
    BackupError,
    BackupNotFoundError,
    BackupService,
    BackupTransportInterface,
    GoogleDriveBackupTransport,
    GoogleSheetsBackupTransport,
    IncompleteBackupError,
    InvalidBackupError,
    TransportError,
)

__all__ = [
    # Storage services
    "ConnectionError",
    "CorruptSnapshotError",
    "InMemoryStorage",
    "JsonFileStorage",
    "SnapshotStorageInterface",
    "StorageError",
    # Backup services
    "BackupError",
    "BackupNotFoundError",
    "BackupService",
    "BackupTransportInterface",
    "GoogleDriveBackupTransport",
    "GoogleSheetsBackupTransport",
    "IncompleteBackupError",
    "InvalidBackupError",
    "TransportError",
]
