"""Collection storage backends.

Each collection (items, transactions, requests, ...) is stored under its own
key as a full JSON array snapshot. Backends:
- InMemoryStorage: process-local dict, used by tests and the default setup
- JsonFileStorage: one <key>.json file per collection in a directory
- DynamoDBStorage: one DynamoDB item per collection, payload as a JSON string
"""

from __future__ import annotations

import json
import logging
import os
from abc import ABC, abstractmethod
from datetime import datetime, timezone
from typing import Any, Optional

import boto3
from botocore.exceptions import ClientError

from src.services.errors import CorruptPayloadError, StorageError

logger = logging.getLogger(__name__)

COLLECTION_KEYS = (
    "items",
    "transactions",
    "assets",
    "checkout-history",
    "requests",
    "receipts",
    "suppliers",
    "users",
    "purchase-orders",
    "recent-reports",
)


def _decode(key: str, raw: str) -> list[dict]:
    try:
        payload = json.loads(raw)
    except json.JSONDecodeError as e:
        raise CorruptPayloadError(f"Collection '{key}' is not valid JSON: {e}") from e
    if not isinstance(payload, list):
        raise CorruptPayloadError(f"Collection '{key}' must be a JSON array, got {type(payload).__name__}")
    return payload


class CollectionStorage(ABC):
    """Full-snapshot storage strategy injected into the services."""

    @abstractmethod
    def load(self, key: str) -> Optional[list[dict]]:
        """Returns the stored records, or None when the collection was never written."""
        ...

    @abstractmethod
    def save(self, key: str, records: list[dict]) -> None:
        ...

    @abstractmethod
    def delete(self, key: str) -> None:
        """Removes a collection; a missing key is not an error."""
        ...


class InMemoryStorage(CollectionStorage):

    def __init__(self, initial: Optional[dict[str, Any]] = None) -> None:
        # Raw JSON strings, so corrupt payloads can be simulated like on disk
        self._data: dict[str, str] = {}
        for key, value in (initial or {}).items():
            self._data[key] = value if isinstance(value, str) else json.dumps(value)

    def load(self, key: str) -> Optional[list[dict]]:
        raw = self._data.get(key)
        if raw is None:
            return None
        return _decode(key, raw)

    def save(self, key: str, records: list[dict]) -> None:
        self._data[key] = json.dumps(records, default=str)

    def delete(self, key: str) -> None:
        self._data.pop(key, None)

    def keys(self) -> list[str]:
        return list(self._data)


class JsonFileStorage(CollectionStorage):

    def __init__(self, data_dir: str) -> None:
        self.data_dir = data_dir
        os.makedirs(data_dir, exist_ok=True)

    def _path(self, key: str) -> str:
        return os.path.join(self.data_dir, f"{key}.json")

    def load(self, key: str) -> Optional[list[dict]]:
        path = self._path(key)
        if not os.path.exists(path):
            return None
        try:
            with open(path, "r", encoding="utf-8") as f:
                raw = f.read()
        except OSError as e:
            raise StorageError(f"Could not read {path}: {e}") from e
        return _decode(key, raw)

    def save(self, key: str, records: list[dict]) -> None:
        path = self._path(key)
        tmp_path = f"{path}.tmp"
        try:
            with open(tmp_path, "w", encoding="utf-8") as f:
                json.dump(records, f, ensure_ascii=False, indent=2, default=str)
            os.replace(tmp_path, path)
        except OSError as e:
            raise StorageError(f"Could not write {path}: {e}") from e

    def delete(self, key: str) -> None:
        path = self._path(key)
        try:
            if os.path.exists(path):
                os.remove(path)
        except OSError as e:
            raise StorageError(f"Could not delete {path}: {e}") from e


class DynamoDBStorage(CollectionStorage):
    """One DynamoDB item per collection: {collection, payload, record_count, updated_at}."""

    def __init__(
        self,
        table_name: str = "HotelStores",
        region_name: str = "us-west-2",
        dynamodb_resource: Optional[Any] = None,
    ) -> None:
        self.dynamodb = dynamodb_resource or boto3.resource("dynamodb", region_name=region_name)
        self.table = self.dynamodb.Table(table_name)
        self.table_name = table_name

    def load(self, key: str) -> Optional[list[dict]]:
        try:
            response = self.table.get_item(Key={"collection": key})
        except ClientError as e:
            logger.error("DynamoDB read error [%s/%s]: %s", self.table_name, key, e)
            raise StorageError(f"DynamoDB read failed for '{key}'") from e
        item = response.get("Item")
        if not item:
            return None
        return _decode(key, item.get("payload", ""))

    def save(self, key: str, records: list[dict]) -> None:
        try:
            self.table.put_item(
                Item={
                    "collection": key,
                    "payload": json.dumps(records, default=str),
                    "record_count": len(records),
                    "updated_at": datetime.now(timezone.utc).isoformat(),
                }
            )
        except ClientError as e:
            logger.error("DynamoDB write error [%s/%s]: %s", self.table_name, key, e)
            raise StorageError(f"DynamoDB write failed for '{key}'") from e

    def delete(self, key: str) -> None:
        try:
            self.table.delete_item(Key={"collection": key})
        except ClientError as e:
            logger.error("DynamoDB delete error [%s/%s]: %s", self.table_name, key, e)
            raise StorageError(f"DynamoDB delete failed for '{key}'") from e
