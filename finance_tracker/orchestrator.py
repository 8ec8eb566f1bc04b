"""
Application Wiring for Finance Tracker

This module ties the components together:
1. Snapshot storage (local JSON files unless given)
2. Finance and profile stores, hydrated from storage
3. Change logger subscribed to both stores, queries over the finance store
4. Backup service, when a backup transport is configured

DESIGN DECISION: Screens receive the stores from here and never build
them on their own, so every screen sees the same state.
"""

from dataclasses import dataclass
from typing import Optional

import structlog

from finance_tracker.audit import ChangeLogger, configure_logging
from finance_tracker.config import get_settings
from finance_tracker.queries import QueryExecutor
from finance_tracker.services.backup import (
    BackupService,
    BackupTransportInterface,
    GoogleDriveBackupTransport,
    GoogleSheetsBackupTransport,
)
from finance_tracker.services.storage import JsonFileStorage, SnapshotStorageInterface
from finance_tracker.store import FinanceStore, ProfileStore


logger = structlog.get_logger(__name__)


@dataclass
class AppComponents:
    """Everything a screen needs."""

    finance_store: FinanceStore
    profile_store: ProfileStore
    change_logger: ChangeLogger
    query_executor: QueryExecutor
    backup_service: Optional[BackupService] = None


def create_backup_transport(name: str) -> Optional[BackupTransportInterface]:
    """Transport for the configured backend name, None for "none"."""
    if name == "google_drive":
        return GoogleDriveBackupTransport()
    if name == "google_sheets":
        return GoogleSheetsBackupTransport()
    return None


def create_app_components(
    storage: Optional[SnapshotStorageInterface] = None,
    transport: Optional[BackupTransportInterface] = None,
    setup_logging: bool = True,
) -> AppComponents:
    """
    Factory function to create all application components.

    Args:
        storage: Snapshot storage. Defaults to JSON files in the
                 configured data directory.
        transport: Backup transport. Defaults to the configured backend;
                   no backup service is created when there is none.
        setup_logging: Configure structlog from the app settings.

    Returns:
        AppComponents with both stores hydrated
    """
    settings = get_settings()
    app_settings = settings.app
    storage_settings = settings.storage

    if setup_logging:
        configure_logging(app_settings.log_level, app_settings.log_json)

    if storage is None:
        storage = JsonFileStorage(
            storage_settings.data_path,
            write_attempts=storage_settings.write_attempts,
        )

    finance_store = FinanceStore(storage, storage_settings.finance_key)
    profile_store = ProfileStore(storage, storage_settings.profile_key)

    change_logger = ChangeLogger()
    change_logger.attach(finance_store)
    change_logger.attach(profile_store)

    if transport is None:
        try:
            transport = create_backup_transport(app_settings.backup_transport)
        except Exception as e:
            # Backup not configured - continue without it
            logger.warning(
                "backup_not_configured",
                backend=app_settings.backup_transport,
                error=str(e),
            )
            transport = None

    backup_service = (
        BackupService(finance_store, transport) if transport is not None else None
    )

    return AppComponents(
        finance_store=finance_store,
        profile_store=profile_store,
        change_logger=change_logger,
        query_executor=QueryExecutor(finance_store),
        backup_service=backup_service,
    )
