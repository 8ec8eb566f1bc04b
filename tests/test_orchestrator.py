"""Tests for application wiring, settings and the change logger."""

import pytest
from decimal import Decimal

import structlog

from finance_tracker.audit import ChangeLogger, configure_logging
from finance_tracker.config import AppSettings, StorageSettings, validate_all_settings
from finance_tracker.models import ChangeType, Transaction
from finance_tracker.orchestrator import create_app_components, create_backup_transport
from finance_tracker.services.backup import BackupTransportInterface
from finance_tracker.services.storage import InMemoryStorage
from finance_tracker.store import FinanceStore


class NullTransport(BackupTransportInterface):
    def upload(self, payload):
        return "null"

    def download(self):
        return {"transactions": [], "cards": []}


@pytest.fixture(autouse=True)
def clean_environment(monkeypatch):
    for name in (
        "BACKUP_TRANSPORT",
        "LOG_LEVEL",
        "GOOGLE_DRIVE_CREDENTIALS_PATH",
        "GOOGLE_SHEETS_CREDENTIALS_PATH",
        "GOOGLE_SHEETS_SPREADSHEET_ID",
        "FINANCE_STORAGE_DATA_DIR",
    ):
        monkeypatch.delenv(name, raising=False)
    yield
    structlog.reset_defaults()


class TestSettings:
    """Tests for settings loading."""

    def test_storage_defaults(self):
        settings = StorageSettings()
        assert settings.finance_key == "finance-store"
        assert settings.profile_key == "profile-storage"
        assert settings.data_path.is_absolute()

    def test_storage_from_environment(self, monkeypatch, tmp_path):
        monkeypatch.setenv("FINANCE_STORAGE_DATA_DIR", str(tmp_path))
        assert StorageSettings().data_path == tmp_path

    def test_log_level_is_normalized(self):
        assert AppSettings(log_level="debug").log_level == "DEBUG"

    def test_unknown_log_level(self):
        with pytest.raises(ValueError):
            AppSettings(log_level="chatty")

    def test_validate_all_settings_reports_missing_google_config(self):
        results = validate_all_settings()
        assert results["storage"] is True
        assert results["app"] is True
        assert results["google_drive"] is False
        assert "google_drive_error" in results


class TestChangeLogger:
    """Tests for ChangeLogger."""

    def test_records_changes_newest_first(self):
        store = FinanceStore()
        change_logger = ChangeLogger()
        change_logger.attach(store)

        store.add_transaction(Transaction(id="1", amount=Decimal("-5")))
        store.remove_transaction("1")

        recent = change_logger.recent()
        assert [c.change_type for c in recent] == [
            ChangeType.TRANSACTION_REMOVED,
            ChangeType.TRANSACTION_ADDED,
        ]
        assert len(change_logger.recent(limit=1)) == 1

    def test_history_is_bounded(self):
        store = FinanceStore()
        change_logger = ChangeLogger(history_size=2)
        change_logger.attach(store)

        for i in range(5):
            store.add_transaction(Transaction(id=str(i), amount=Decimal("-1")))

        assert [c.entity_id for c in change_logger.recent()] == ["4", "3"]

    def test_detach(self):
        store = FinanceStore()
        change_logger = ChangeLogger()
        detach = change_logger.attach(store)

        detach()
        store.add_transaction(Transaction(amount=Decimal("-1")))

        assert change_logger.recent() == []

    def test_configured_logging_still_records(self):
        configure_logging("DEBUG", json_logs=False)
        store = FinanceStore()
        change_logger = ChangeLogger()
        change_logger.attach(store)

        store.add_transaction(Transaction(amount=Decimal("-1")))

        assert len(change_logger.recent()) == 1


class TestCreateAppComponents:
    """Tests for the component factory."""

    def test_wires_stores_and_logger(self):
        storage = InMemoryStorage()
        components = create_app_components(storage=storage, setup_logging=False)

        components.finance_store.add_transaction(Transaction(amount=Decimal("-1")))
        components.profile_store.set_profile({"fullName": "Jane"})

        assert components.backup_service is None
        assert [c.store for c in components.change_logger.recent()] == ["profile", "finance"]
        assert storage.keys() == ["finance-store", "profile-storage"]

    def test_queries_read_the_shared_store(self):
        components = create_app_components(storage=InMemoryStorage(), setup_logging=False)

        components.finance_store.add_transaction(
            Transaction(amount=Decimal("-40"), payment_method="•••• 4589")
        )

        assert components.query_executor.total_balance() == Decimal("8881.25")
        assert components.query_executor.totals().expense == Decimal("40")

    def test_with_transport(self):
        components = create_app_components(
            storage=InMemoryStorage(),
            transport=NullTransport(),
            setup_logging=False,
        )
        assert components.backup_service is not None
        assert components.backup_service.backup() == "null"

    def test_default_storage_uses_data_dir(self, monkeypatch, tmp_path):
        monkeypatch.setenv("FINANCE_STORAGE_DATA_DIR", str(tmp_path))
        components = create_app_components(setup_logging=False)

        components.finance_store.add_transaction(Transaction(amount=Decimal("-1")))

        assert (tmp_path / "finance-store.json").exists()

    def test_unconfigured_backup_is_skipped(self, monkeypatch):
        """Test a backend without credentials leaves the app usable."""
        monkeypatch.setenv("BACKUP_TRANSPORT", "google_drive")
        components = create_app_components(storage=InMemoryStorage(), setup_logging=False)
        assert components.backup_service is None

    def test_no_transport_for_none(self):
        assert create_backup_transport("none") is None


if __name__ == "__main__":
    pytest.main([__file__, "-v"])
