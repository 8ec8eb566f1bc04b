"""
Backup Services Package

Backup and restore of the finance store to a remote location.
Google Drive (JSON file) and Google Sheets (worksheets) are provided.
"""

from finance_tracker.services.backup.interface import (
    BackupError,
    BackupNotFoundError,
    BackupTransportInterface,
    IncompleteBackupError,
    InvalidBackupError,
    TransportError,
)
from finance_tracker.services.backup.google_drive import (
    GoogleDriveBackupTransport,
    GoogleDriveClient,
)
from finance_tracker.services.backup.google_sheets import (
    GoogleSheetsBackupTransport,
    GoogleSheetsClient,
)
from finance_tracker.services.backup.service import BackupService

__all__ = [
    # Interface
    "BackupTransportInterface",
    # Exceptions
    "BackupError",
    "BackupNotFoundError",
    "IncompleteBackupError",
    "InvalidBackupError",
    "TransportError",
    # Google implementations
    "GoogleDriveBackupTransport",
    "GoogleDriveClient",
    "GoogleSheetsBackupTransport",
    "GoogleSheetsClient",
    # Service
    "BackupService",
]
