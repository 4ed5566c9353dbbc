"""Collection storage backend unit tests."""

import json
from unittest.mock import MagicMock

import pytest
from botocore.exceptions import ClientError

from src.services.errors import CorruptPayloadError, StorageError
from src.services.storage import DynamoDBStorage, InMemoryStorage, JsonFileStorage


def _client_error(operation: str) -> ClientError:
    return ClientError(
        {"Error": {"Code": "ProvisionedThroughputExceededException", "Message": "Slow down"}},
        operation,
    )


def _create_dynamodb_storage():
    resource = MagicMock()
    table = resource.Table.return_value
    return DynamoDBStorage(table_name="TestStores", dynamodb_resource=resource), table


class TestInMemoryStorage:

    def test_missing_key_is_none(self):
        assert InMemoryStorage().load("items") is None

    def test_save_and_load(self):
        storage = InMemoryStorage()
        storage.save("items", [{"id": "1", "name": "Rice"}])
        assert storage.load("items") == [{"id": "1", "name": "Rice"}]
        assert storage.keys() == ["items"]

    def test_corrupt_json(self):
        storage = InMemoryStorage({"items": "[{broken"})
        with pytest.raises(CorruptPayloadError):
            storage.load("items")

    def test_non_array_payload(self):
        storage = InMemoryStorage({"items": {"id": "1"}})
        with pytest.raises(CorruptPayloadError):
            storage.load("items")

    def test_delete(self):
        storage = InMemoryStorage({"items": []})
        storage.delete("items")
        storage.delete("items")
        assert storage.load("items") is None


class TestJsonFileStorage:

    def test_round_trip_on_disk(self, tmp_path):
        storage = JsonFileStorage(str(tmp_path / "data"))
        assert storage.load("assets") is None

        storage.save("assets", [{"id": "1", "name": "Golf Cart"}])
        on_disk = json.loads((tmp_path / "data" / "assets.json").read_text(encoding="utf-8"))
        assert on_disk == [{"id": "1", "name": "Golf Cart"}]
        assert JsonFileStorage(str(tmp_path / "data")).load("assets") == on_disk

    def test_corrupt_file(self, tmp_path):
        (tmp_path / "items.json").write_text("not json", encoding="utf-8")
        with pytest.raises(CorruptPayloadError):
            JsonFileStorage(str(tmp_path)).load("items")

    def test_unwritable_directory(self, tmp_path):
        storage = JsonFileStorage(str(tmp_path))
        # a directory where the file should be makes the final rename fail
        (tmp_path / "items.json").mkdir()
        with pytest.raises(StorageError):
            storage.save("items", [])

    def test_delete_removes_file(self, tmp_path):
        storage = JsonFileStorage(str(tmp_path))
        storage.save("items", [])
        storage.delete("items")
        assert not (tmp_path / "items.json").exists()
        storage.delete("items")


class TestDynamoDBStorage:

    def test_load_missing_collection(self):
        storage, table = _create_dynamodb_storage()
        table.get_item.return_value = {}
        assert storage.load("items") is None
        table.get_item.assert_called_once_with(Key={"collection": "items"})

    def test_load_payload(self):
        storage, table = _create_dynamodb_storage()
        table.get_item.return_value = {"Item": {"collection": "users", "payload": '[{"id": "1"}]'}}
        assert storage.load("users") == [{"id": "1"}]

    def test_save_writes_snapshot(self):
        storage, table = _create_dynamodb_storage()
        storage.save("users", [{"id": "1"}, {"id": "2"}])

        item = table.put_item.call_args.kwargs["Item"]
        assert item["collection"] == "users"
        assert json.loads(item["payload"]) == [{"id": "1"}, {"id": "2"}]
        assert item["record_count"] == 2
        assert "updated_at" in item

    def test_client_errors_become_storage_errors(self):
        storage, table = _create_dynamodb_storage()
        table.get_item.side_effect = _client_error("GetItem")
        table.put_item.side_effect = _client_error("PutItem")
        with pytest.raises(StorageError):
            storage.load("items")
        with pytest.raises(StorageError):
            storage.save("items", [])

    def test_corrupt_payload(self):
        storage, table = _create_dynamodb_storage()
        table.get_item.return_value = {"Item": {"collection": "items", "payload": "{oops"}}
        with pytest.raises(CorruptPayloadError):
            storage.load("items")

    def test_delete(self):
        storage, table = _create_dynamodb_storage()
        storage.delete("items")
        table.delete_item.assert_called_once_with(Key={"collection": "items"})

        table.delete_item.side_effect = _client_error("DeleteItem")
        with pytest.raises(StorageError):
            storage.delete("items")
