"""HotelStores application wiring and error boundary unit tests."""

from unittest.mock import MagicMock

import pytest

from src.models.settings import StoresSettings
from src.models.stores import ItemType
from src.services.errors import ValidationError
from src.services.storage import DynamoDBStorage, InMemoryStorage, JsonFileStorage
from src.services.stores_app import MAX_NOTIFICATIONS, HotelStores, build_storage


def _create_stores(**kwargs) -> HotelStores:
    return HotelStores(storage=InMemoryStorage(), s3_client=MagicMock(), **kwargs)


class TestBuildStorage:

    def test_memory_backend(self):
        assert isinstance(build_storage(StoresSettings()), InMemoryStorage)

    def test_json_backend(self, tmp_path):
        storage = build_storage(StoresSettings(storage_backend="json", data_dir=str(tmp_path)))
        assert isinstance(storage, JsonFileStorage)

    def test_dynamodb_backend(self):
        resource = MagicMock()
        storage = build_storage(StoresSettings(storage_backend="dynamodb", table_name="T"), resource)
        assert isinstance(storage, DynamoDBStorage)
        resource.Table.assert_called_once_with("T")

    def test_unknown_backend(self):
        with pytest.raises(ValidationError):
            build_storage(StoresSettings(storage_backend="redis"))

    def test_from_env(self, monkeypatch):
        monkeypatch.setenv("STORES_STORAGE_BACKEND", "JSON")
        monkeypatch.setenv("STORES_MIN_STOCK_DEFAULT", "25")
        settings = StoresSettings.from_env()
        assert settings.storage_backend == "json"
        assert settings.inventory_min_stock_default == 25


class TestHotelStores:

    def test_services_share_storage(self):
        stores = _create_stores()
        assert len(stores.services) == 6
        assert all(s.storage is stores.storage for s in stores.services)

    def test_request_flow_through_facade(self):
        stores = _create_stores()
        mary = stores.users.principal_for_email("mary.njeri@lukenyagetaway.com")
        jane = stores.users.principal_for_email("jane.wambui@lukenyagetaway.com")
        peter = stores.users.principal_for_email("peter.otieno@lukenyagetaway.com")

        request = stores.requests.create_request(mary, "5", ItemType.INVENTORY, "Guest floors", quantity=20)
        stores.requests.approve(jane, request.id)
        stores.requests.fulfill(peter, request.id)

        assert stores.inventory.get_item("5").quantity == 180
        assert stores.audit_stock()["all_valid"]

    def test_configured_minimum_stock(self):
        stores = _create_stores(settings=StoresSettings(inventory_min_stock_default=3))
        item = stores.inventory.add_item("Candles", "Housekeeping", 12, "pcs", 240.0, "Housekeeping Storage")
        assert item.min_stock_level == 3

    def test_without_seed_data(self):
        stores = _create_stores(use_seed_data=False)
        assert stores.inventory.list_items() == []
        assert stores.users.list_users() == []


class TestAttempt:

    def test_success_notification(self):
        stores = _create_stores()
        tx = stores.attempt(
            stores.inventory.record_transaction, "1", "used", 5,
            success=("Stock updated", "Rice issued"),
        )
        assert tx.quantity == 5
        [note] = stores.notifications()
        assert note.title == "Stock updated"
        assert note.variant == "default"

    def test_failure_is_reported_not_raised(self):
        stores = _create_stores()
        mary = stores.users.principal_for_email("mary.njeri@lukenyagetaway.com")

        result = stores.attempt(stores.requests.approve, mary, "req-1", failure_title="Approval failed")
        assert result is None
        [note] = stores.notifications()
        assert note.title == "Approval failed"
        assert note.variant == "destructive"
        assert "Mary Njeri" in note.description
        assert stores.requests.get_request("req-1").status.value == "pending"

    def test_notifications_newest_first_and_capped(self):
        stores = _create_stores()
        for n in range(MAX_NOTIFICATIONS + 5):
            stores.notify(f"n{n}", "")
        notes = stores.notifications()
        assert len(notes) == MAX_NOTIFICATIONS
        assert notes[0].title == f"n{MAX_NOTIFICATIONS + 4}"

        stores.clear_notifications()
        assert stores.notifications() == []
