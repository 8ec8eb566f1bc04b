"""
Abstract Backup Transport Interface

A transport moves one backup payload to and from a remote location.
The payload is always the JSON object

    {"transactions": [...], "cards": [...]}

Transports do not validate the payload shape. BackupService checks it
before anything reaches the store.
"""

from abc import ABC, abstractmethod
from typing import Any


class BackupTransportInterface(ABC):
    """Uploads and downloads the finance backup."""

    @abstractmethod
    def upload(self, payload: dict[str, Any]) -> str:
        """
        Store a backup payload remotely, replacing any previous backup.

        Returns:
            Identifier of the remote backup (file or spreadsheet id)

        Raises:
            TransportError: If the remote call fails
        """
        pass

    @abstractmethod
    def download(self) -> dict[str, Any]:
        """
        Fetch the latest backup payload.

        Raises:
            BackupNotFoundError: If no backup exists remotely
            InvalidBackupError: If the stored backup cannot be decoded
            TransportError: If the remote call fails
        """
        pass


class BackupError(Exception):
    """Base exception for backup and restore."""
    pass


class TransportError(BackupError):
    """Remote backend call failed."""
    pass


class BackupNotFoundError(BackupError):
    """No backup exists at the remote location."""
    pass


class IncompleteBackupError(BackupError):
    """Backup lacks the transactions or cards collection."""
    pass


class InvalidBackupError(BackupError):
    """Backup exists but its content cannot be turned into store data."""
    pass
