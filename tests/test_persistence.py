"""
Tests for snapshot storage and store hydration

Uses tmp_path for file storage; nothing is written to the real data
directory.
"""

import json
import pytest
from decimal import Decimal

from finance_tracker.models import DEFAULT_CARDS, Card, Transaction
from finance_tracker.services.storage import (
    CorruptSnapshotError,
    InMemoryStorage,
    JsonFileStorage,
    StorageError,
)
from finance_tracker.store import SNAPSHOT_VERSION, FinanceStore, ProfileStore


class FailingStorage(InMemoryStorage):
    """Storage whose writes always fail."""

    def save(self, key, data):
        raise StorageError("disk full")


class TestJsonFileStorage:
    """Tests for JsonFileStorage."""

    def test_save_and_load(self, tmp_path):
        storage = JsonFileStorage(tmp_path)
        storage.save("finance-store", {"state": {"cards": []}, "version": 0})

        assert storage.load("finance-store") == {"state": {"cards": []}, "version": 0}
        assert storage.path_for("finance-store") == tmp_path / "finance-store.json"

    def test_write_leaves_no_temp_file(self, tmp_path):
        storage = JsonFileStorage(tmp_path)
        storage.save("finance-store", {"a": 1})
        assert sorted(p.name for p in tmp_path.iterdir()) == ["finance-store.json"]

    def test_creates_data_dir(self, tmp_path):
        storage = JsonFileStorage(tmp_path / "nested" / "dir")
        storage.save("k", {"a": 1})
        assert storage.load("k") == {"a": 1}

    def test_missing_key_loads_none(self, tmp_path):
        assert JsonFileStorage(tmp_path).load("nothing") is None

    def test_invalid_json_is_corrupt(self, tmp_path):
        (tmp_path / "k.json").write_text("{not json", encoding="utf-8")
        with pytest.raises(CorruptSnapshotError):
            JsonFileStorage(tmp_path).load("k")

    def test_non_object_is_corrupt(self, tmp_path):
        (tmp_path / "k.json").write_text("[1, 2]", encoding="utf-8")
        with pytest.raises(CorruptSnapshotError):
            JsonFileStorage(tmp_path).load("k")

    def test_unserializable_data_raises_storage_error(self, tmp_path):
        storage = JsonFileStorage(tmp_path)
        with pytest.raises(StorageError):
            storage.save("k", {"value": object()})
        assert not (tmp_path / "k.json").exists()

    def test_failed_write_keeps_previous_snapshot(self, tmp_path):
        storage = JsonFileStorage(tmp_path)
        storage.save("k", {"value": 1})
        with pytest.raises(StorageError):
            storage.save("k", {"value": object()})
        assert storage.load("k") == {"value": 1}

    def test_delete(self, tmp_path):
        storage = JsonFileStorage(tmp_path)
        storage.save("k", {"a": 1})
        storage.delete("k")
        storage.delete("k")
        assert storage.load("k") is None


class TestInMemoryStorage:
    """Tests for InMemoryStorage."""

    def test_copies_in_and_out(self):
        storage = InMemoryStorage()
        data = {"state": {"items": [1]}}
        storage.save("k", data)
        data["state"]["items"].append(2)

        loaded = storage.load("k")
        loaded["state"]["items"].append(3)

        assert storage.load("k") == {"state": {"items": [1]}}
        assert storage.save_count == 1
        assert storage.keys() == ["k"]


class TestFinanceStorePersistence:
    """Tests for load-on-construct and save-on-mutate."""

    def test_saves_after_every_mutation(self):
        storage = InMemoryStorage()
        store = FinanceStore(storage)

        store.add_transaction(Transaction(id="1", amount=Decimal("-30"), payment_method="•••• 4589"))
        store.remove_transaction("1")

        assert storage.save_count == 2

    def test_noop_does_not_save(self):
        storage = InMemoryStorage()
        store = FinanceStore(storage)
        store.remove_transaction("missing")
        assert storage.save_count == 0

    def test_envelope_format(self):
        storage = InMemoryStorage()
        store = FinanceStore(storage, storage_key="finance-store")
        store.add_transaction(Transaction(id="1", amount=Decimal("-30"), payment_method="•••• 4589"))

        envelope = storage.load("finance-store")
        assert envelope["version"] == SNAPSHOT_VERSION
        assert envelope["state"]["transactions"][0]["paymentMethod"] == "•••• 4589"
        assert envelope["state"]["cards"][0]["balance"] == 3210.5

    def test_reload_restores_state(self):
        """Test a new store on the same storage sees the same state."""
        storage = InMemoryStorage()
        store = FinanceStore(storage)
        store.add_transaction(
            Transaction(id="1", amount=Decimal("-40.25"), category="Food", payment_method="•••• 1234")
        )
        store.add_card(Card(id="c3", type="Amex", number="•••• 0005", balance=Decimal("10")))

        reloaded = FinanceStore(storage)

        assert list(reloaded.transactions) == list(store.transactions)
        assert list(reloaded.cards) == list(store.cards)
        assert reloaded.get_card("2").balance == Decimal("5640.5")

    def test_reload_from_json_files(self, tmp_path):
        store = FinanceStore(JsonFileStorage(tmp_path))
        store.add_transaction(Transaction(id="1", amount=Decimal("-0.5"), payment_method="•••• 4589"))

        reloaded = FinanceStore(JsonFileStorage(tmp_path))

        assert reloaded.get_transaction("1").amount == Decimal("-0.5")
        assert reloaded.get_card("1").balance == Decimal("3240")

    def test_corrupt_file_falls_back_to_defaults(self, tmp_path):
        (tmp_path / "finance-store.json").write_text("garbage", encoding="utf-8")
        store = FinanceStore(JsonFileStorage(tmp_path))
        assert list(store.cards) == list(DEFAULT_CARDS)
        assert store.transactions == ()

    def test_unknown_version_falls_back_to_defaults(self):
        storage = InMemoryStorage({
            "finance-store": {"state": {"transactions": [], "cards": []}, "version": 3},
        })
        store = FinanceStore(storage)
        assert list(store.cards) == list(DEFAULT_CARDS)

    def test_invalid_entries_fall_back_to_defaults(self):
        storage = InMemoryStorage({
            "finance-store": {"state": {"cards": [{"id": "x"}]}, "version": 0},
        })
        store = FinanceStore(storage)
        assert list(store.cards) == list(DEFAULT_CARDS)

    def test_partial_state_keeps_seed_cards(self):
        storage = InMemoryStorage({
            "finance-store": {
                "state": {"transactions": [{"id": "1", "amount": -5}]},
                "version": 0,
            },
        })
        store = FinanceStore(storage)
        assert store.get_transaction("1").amount == Decimal("-5")
        assert list(store.cards) == list(DEFAULT_CARDS)

    def test_unknown_keys_survive_reload(self, tmp_path):
        path = tmp_path / "finance-store.json"
        path.write_text(json.dumps({
            "state": {
                "transactions": [{"id": "1", "amount": -5, "receiptUrl": "https://x"}],
                "cards": [],
            },
            "version": 0,
        }), encoding="utf-8")
        store = FinanceStore(JsonFileStorage(tmp_path))

        store.add_card(Card(id="c1", type="Visa", number="•••• 9999"))

        saved = json.loads(path.read_text(encoding="utf-8"))
        assert saved["state"]["transactions"][0]["receiptUrl"] == "https://x"

    def test_money_precision_survives_reload(self, tmp_path):
        """Test realistic amounts and balances reload digit for digit."""
        store = FinanceStore(JsonFileStorage(tmp_path))
        store.set_cards([Card(id="c1", type="Visa", number="x", balance=Decimal("9876543210.55"))])
        store.add_transaction(Transaction(id="1", amount=Decimal("-1234.56"), payment_method="x"))

        reloaded = FinanceStore(JsonFileStorage(tmp_path))

        assert reloaded.get_transaction("1").amount == Decimal("-1234.56")
        assert reloaded.get_card("c1").balance == Decimal("9876541975.99")

    def test_failed_save_does_not_raise(self):
        """Test a failed write keeps the in-memory change and still notifies."""
        store = FinanceStore(FailingStorage())
        changes = []
        store.subscribe(changes.append)

        store.add_transaction(Transaction(id="1", amount=Decimal("-30"), payment_method="•••• 4589"))

        assert store.get_card("1").balance == Decimal("3210.5")
        assert len(changes) == 1
        assert store.persist() is False


class TestProfileStore:
    """Tests for ProfileStore."""

    def test_defaults(self):
        store = ProfileStore()
        assert store.profile.full_name == "Rashid Riyad"
        assert store.profile.phone == "+1 123 456 7890"

    def test_set_profile_merges(self):
        store = ProfileStore()
        store.set_profile({"fullName": "Jane Doe", "email": "jane@example.com"})

        assert store.profile.full_name == "Jane Doe"
        assert store.profile.email == "jane@example.com"
        assert store.profile.phone == "+1 123 456 7890"

    def test_persists_and_reloads(self):
        storage = InMemoryStorage()
        ProfileStore(storage).set_profile({"phone": "+44 20 0000 0000"})

        reloaded = ProfileStore(storage)

        assert reloaded.profile.phone == "+44 20 0000 0000"
        assert storage.load("profile-storage")["state"]["phone"] == "+44 20 0000 0000"

    def test_invalid_update_is_ignored(self):
        store = ProfileStore()
        changes = []
        store.subscribe(changes.append)

        store.set_profile({"email": ["not", "a", "string"]})

        assert store.profile.email == "Rashid.dev@example.com"
        assert changes == []

    def test_notifies_subscribers(self):
        store = ProfileStore()
        changes = []
        store.subscribe(changes.append)

        store.set_profile({"profileImage": "https://example.com/me.png"})

        assert changes[0].store == "profile"
        assert changes[0].details["fields"] == ["profile_image"]

    def test_independent_of_finance_store(self):
        storage = InMemoryStorage()
        FinanceStore(storage).add_card(Card(id="c1", type="Visa", number="1"))
        ProfileStore(storage).set_profile({"fullName": "A"})

        assert storage.keys() == ["finance-store", "profile-storage"]


if __name__ == "__main__":
    pytest.main([__file__, "-v"])
