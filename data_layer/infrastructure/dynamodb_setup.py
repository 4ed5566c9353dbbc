"""DynamoDB table creation and seed loading.

One table, one item per collection:
  HotelStores (collection: HASH) -> {collection, payload, record_count, updated_at}
"""
import os
import sys
from typing import Any, Optional

import boto3
from botocore.config import Config
from botocore.exceptions import ClientError

sys.path.insert(0, os.path.join(os.path.dirname(__file__), "..", ".."))
import env_loader  # noqa: F401

from src.models.seed import seed_collections
from src.services.storage import DynamoDBStorage

REGION = os.environ.get("AWS_DEFAULT_REGION", "us-west-2")
TABLE_NAME = os.environ.get("STORES_TABLE_NAME", "HotelStores")
BOTO_CONFIG = Config(retries={"max_attempts": 3})


def table_definition(table_name: str = TABLE_NAME) -> dict:
    return {
        "TableName": table_name,
        "KeySchema": [
            {"AttributeName": "collection", "KeyType": "HASH"},
        ],
        "AttributeDefinitions": [
            {"AttributeName": "collection", "AttributeType": "S"},
        ],
        "BillingMode": "PAY_PER_REQUEST",
    }


def create_table(region: str = REGION, table_name: str = TABLE_NAME, client: Optional[Any] = None) -> bool:
    """Creates the stores table; returns False when it already exists."""
    dynamodb = client or boto3.client("dynamodb", region_name=region, config=BOTO_CONFIG)
    try:
        dynamodb.describe_table(TableName=table_name)
        print(f"  ⏭️  {table_name} already exists, skipping")
        return False
    except ClientError as e:
        if e.response["Error"]["Code"] != "ResourceNotFoundException":
            raise

    print(f"  🔨 Creating {table_name}...")
    dynamodb.create_table(**table_definition(table_name))
    waiter = dynamodb.get_waiter("table_exists")
    waiter.wait(TableName=table_name)
    print(f"  ✓  {table_name} created")
    return True


def load_seed_data(
    region: str = REGION,
    table_name: str = TABLE_NAME,
    overwrite: bool = False,
    dynamodb_resource: Optional[Any] = None,
) -> list[str]:
    """Writes the seed dataset; existing collections are kept unless overwrite is set.

    Returns the collection keys that were written.
    """
    storage = DynamoDBStorage(table_name=table_name, region_name=region, dynamodb_resource=dynamodb_resource)
    written = []
    for key, records in seed_collections().items():
        if not overwrite and storage.load(key) is not None:
            print(f"  ⏭️  {key} already loaded, skipping")
            continue
        storage.save(key, [r.to_dict() for r in records])
        written.append(key)
        print(f"  ✓  {key}: {len(records)} records")
    return written


def delete_table(region: str = REGION, table_name: str = TABLE_NAME, client: Optional[Any] = None) -> None:
    dynamodb = client or boto3.client("dynamodb", region_name=region, config=BOTO_CONFIG)
    try:
        dynamodb.delete_table(TableName=table_name)
        print(f"  🗑️  {table_name} deleted")
    except ClientError:
        print(f"  ⏭️  {table_name} not found, skipping")


if __name__ == "__main__":
    if len(sys.argv) > 1 and sys.argv[1] == "--delete":
        print("🗑️  Deleting table...")
        delete_table()
    else:
        print("🏗️  Creating DynamoDB table...\n")
        create_table()
        load_seed_data()
