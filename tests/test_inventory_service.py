"""Inventory Service unit tests."""

import json
from datetime import date, timedelta

import pytest
from unittest.mock import MagicMock

from src.models.stores import Role, StockLevel, TransactionType
from src.services.authorization import Principal, permissions_for
from src.services.errors import (
    NotFoundError,
    PermissionDeniedError,
    StorageError,
    ValidationError,
)
from src.services.inventory_service import InventoryService
from src.services.reconciliation import replay_transactions
from src.services.storage import InMemoryStorage


def _create_service(**kwargs) -> InventoryService:
    return InventoryService(storage=kwargs.pop("storage", InMemoryStorage()), **kwargs)


def _principal(role: Role, name: str = "Tester") -> Principal:
    return Principal(user_id="u1", name=name, department="Stores", permissions=permissions_for(role))


class _FailingStorage(InMemoryStorage):
    """Memory storage whose writes to one collection fail."""

    def __init__(self, failing_key=None):
        super().__init__()
        self.failing_key = failing_key

    def save(self, key, records):
        if key == self.failing_key:
            raise StorageError(f"write to '{key}' failed")
        super().save(key, records)


class TestLoading:

    def test_missing_collections_load_seed_data(self):
        service = _create_service()
        assert len(service.list_items()) == 8
        assert service.get_item("4").name == "Fresh Tomatoes"
        assert len(service.list_transactions()) == 8

    def test_corrupt_payload_falls_back_to_seed(self):
        storage = InMemoryStorage({"items": "{not json", "transactions": "[]"})
        service = _create_service(storage=storage)
        assert len(service.list_items()) == 8
        assert service.list_transactions() == []

    def test_incompatible_records_fall_back_to_seed(self):
        storage = InMemoryStorage({"items": [{"id": "x"}]})
        service = _create_service(storage=storage)
        assert len(service.list_items()) == 8

    def test_persisted_collections_are_loaded(self):
        storage = InMemoryStorage()
        first = _create_service(storage=storage, use_seed_data=False)
        first.add_item("Flour", "Food", 12, "kg", 1200.0, "Main Kitchen Storage")

        second = _create_service(storage=storage)
        assert [i.name for i in second.list_items()] == ["Flour"]

    def test_without_seed_data_starts_empty(self):
        service = _create_service(use_seed_data=False)
        assert service.list_items() == []


class TestItemCrud:

    def test_add_item_records_opening_transaction(self):
        service = _create_service(use_seed_data=False)
        item = service.add_item("Milk", "Dairy", 24, "liters", 2880.0, "Refrigerator 1",
                                expiry_date="2030-01-10")

        assert item.min_stock_level == 10
        [opening] = service.list_transactions(item.id)
        assert opening.type == TransactionType.RECEIVED
        assert opening.quantity == 24
        assert opening.value == 2880.0
        assert opening.expiry_date == "2030-01-10"

    def test_add_item_validation(self):
        service = _create_service()
        with pytest.raises(ValidationError):
            service.add_item("", "Food", 1, "kg", 10.0, "Store")
        with pytest.raises(ValidationError):
            service.add_item("Salt", "Food", -1, "kg", 10.0, "Store")
        assert len(service.list_items()) == 8

    def test_update_item_quantity_is_written_as_adjustment(self):
        service = _create_service()
        updated = service.update_item("1", {"quantity": 45, "location": "Dry Store"})

        assert updated.quantity == 45
        assert updated.location == "Dry Store"
        [adjustment] = service.list_transactions("1", TransactionType.ADJUSTED)
        assert adjustment.quantity == -5
        assert adjustment.value is None

    def test_update_without_stock_change_adds_no_transaction(self):
        service = _create_service()
        service.update_item("1", {"location": "Dry Store"})
        assert len(service.list_transactions("1")) == 1

    def test_update_unknown_field_rejected(self):
        service = _create_service()
        with pytest.raises(ValidationError):
            service.update_item("1", {"id": "99"})

    def test_non_numeric_edits_rejected(self):
        service = _create_service()
        with pytest.raises(ValidationError):
            service.update_item("1", {"quantity": None})
        with pytest.raises(ValidationError):
            service.update_item("1", {"current_value": "lots"})
        with pytest.raises(ValidationError):
            service.update_item("1", {"min_stock_level": -2})
        assert service.get_item("1").quantity == 50

    def test_delete_item_keeps_history(self):
        service = _create_service()
        removed = service.delete_item("3")
        assert removed.name == "Coffee Beans"
        assert service.get_item("3") is None
        assert len(service.list_transactions("3")) == 1

    def test_delete_missing_item(self):
        with pytest.raises(NotFoundError):
            _create_service().delete_item("nope")

    def test_manage_permission_checked_when_principal_given(self):
        service = _create_service()
        with pytest.raises(PermissionDeniedError):
            service.add_item("Salt", "Food", 1, "kg", 10.0, "Store", principal=_principal(Role.HOUSEKEEPER))
        item = service.add_item("Salt", "Food", 1, "kg", 10.0, "Store",
                                principal=_principal(Role.STOREKEEPER, "Peter Otieno"))
        assert service.list_transactions(item.id)[0].performed_by == "Peter Otieno"


class TestTransactions:

    def test_used_transaction_reconciles_item(self):
        service = _create_service()
        tx = service.record_transaction("1", "used", 10, performed_by="Chef Anne")

        item = service.get_item("1")
        assert item.quantity == 40
        assert item.current_value == 4000.0
        assert service.list_transactions()[0].id == tx.id

    def test_unknown_item_is_logged_without_effect(self):
        service = _create_service()
        before = [i.quantity for i in service.list_items()]
        tx = service.record_transaction("ghost", "received", 5)

        assert tx.item_name == "ghost"
        assert service.list_transactions("ghost") == [tx]
        assert [i.quantity for i in service.list_items()] == before

    def test_unknown_type_rejected(self):
        with pytest.raises(ValidationError):
            _create_service().record_transaction("1", "stolen", 5)

    def test_negative_receipt_leaves_state_untouched(self):
        service = _create_service()
        with pytest.raises(ValidationError):
            service.record_transaction("1", "received", -5)
        assert service.get_item("1").quantity == 50
        assert len(service.list_transactions()) == 8

    def test_storage_failure_leaves_memory_untouched(self):
        storage = MagicMock()
        storage.load.return_value = None
        storage.save.side_effect = StorageError("disk full")
        service = InventoryService(storage=storage)

        with pytest.raises(StorageError):
            service.record_transaction("1", "used", 10)
        assert service.get_item("1").quantity == 50
        assert len(service.list_transactions()) == 8

    def test_failed_ledger_write_rolls_back_items(self):
        storage = _FailingStorage()
        service = _create_service(storage=storage)
        service.record_transaction("2", "used", 5)

        storage.failing_key = "transactions"
        with pytest.raises(StorageError):
            service.add_item("Salt", "Food", 10, "kg", 500.0, "Dry Store")
        with pytest.raises(StorageError):
            service.update_item("2", {"quantity": 1})

        reloaded = _create_service(storage=storage)
        assert len(reloaded.list_items()) == 8
        assert reloaded.get_item("2").quantity == 10
        assert replay_transactions(reloaded.get_item("2"), reloaded.list_transactions()).quantity == 10
        assert all(tx.item_name != "Salt" for tx in reloaded.list_transactions())

    def test_rollback_of_unwritten_collection(self):
        storage = _FailingStorage("transactions")
        with pytest.raises(StorageError):
            _create_service(storage=storage).add_item("Salt", "Food", 10, "kg", 500.0, "Dry Store")
        assert storage.load("items") is None

    def test_snapshots_written_on_every_change(self):
        storage = InMemoryStorage()
        service = _create_service(storage=storage)
        service.record_transaction("2", "used", 5)

        items = json.loads(storage._data["items"])
        transactions = json.loads(storage._data["transactions"])
        assert next(i for i in items if i["id"] == "2")["quantity"] == 10
        assert transactions[0]["type"] == "used"

    def test_ledger_replay_reproduces_items(self):
        service = _create_service()
        service.record_transaction("4", "expired", 3)
        service.record_transaction("4", "received", 40, expiry_date="2099-01-01", value=4000.0)
        service.update_item("4", {"quantity": 30, "current_value": 3000.0})
        service.record_transaction("4", "used", 7)

        item = service.get_item("4")
        replayed = replay_transactions(item, service.list_transactions())
        assert replayed.quantity == item.quantity
        assert replayed.current_value == item.current_value


class TestDerivedViews:

    def test_summary_and_alerts(self):
        service = _create_service()
        summary = service.get_summary()
        assert summary.total_items == 8
        assert summary.low_stock_items == 2
        assert summary.total_value == 33800.0
        assert summary.categories[0].name == "Food"
        assert summary.categories[0].count == 3
        assert {a.name for a in service.get_low_stock_alerts()} == {"Fresh Tomatoes", "Beef"}

    def test_alert_at_exact_minimum(self):
        service = _create_service()
        service.record_transaction("2", "used", 5)
        assert "Sugar" in {a.name for a in service.get_low_stock_alerts()}

    def test_stock_level(self):
        service = _create_service()
        assert service.get_stock_level("4") == StockLevel.LOW
        assert service.get_stock_level("5") == StockLevel.HEALTHY
        service.record_transaction("4", "used", 5)
        assert service.get_stock_level("4") == StockLevel.CRITICAL

    def test_expiring_items_soonest_first(self):
        service = _create_service()
        names = [i.name for i in service.get_expiring_items()]
        assert names == ["Fresh Tomatoes"]
        names = [i.name for i in service.get_expiring_items(within_days=10)]
        assert names == ["Fresh Tomatoes", "Beef"]

    def test_expiring_items_reference_date(self):
        service = _create_service()
        later = date.today() + timedelta(days=300)
        names = {i.name for i in service.get_expiring_items(within_days=0, reference=later)}
        assert "Sugar" in names
        assert "Toilet Paper" not in names
