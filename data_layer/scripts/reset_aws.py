"""Resets the stores table to the seed dataset.

Every collection (items, transactions, requests, ...) is overwritten with
the seed records. The table and the reports bucket are kept.

Usage:
    python -m data_layer.scripts.reset_aws
"""
import os
import sys

sys.path.insert(0, os.path.dirname(os.path.dirname(os.path.dirname(os.path.abspath(__file__)))))

from botocore.exceptions import ClientError

from data_layer.infrastructure.dynamodb_setup import REGION, TABLE_NAME, load_seed_data
from src.services.errors import StorageError


def main():
    region = os.environ.get("AWS_DEFAULT_REGION", REGION)

    print("=" * 50)
    print("Reset hotel stores data")
    print(f"Region: {region}  Table: {TABLE_NAME}")
    print("=" * 50)

    try:
        written = load_seed_data(region=region, overwrite=True)
    except (ClientError, StorageError) as e:
        print(f"  FAIL {TABLE_NAME}: {e}", flush=True)
        sys.exit(1)

    print("\n" + "=" * 50)
    print(f"Reset {len(written)} collections: {', '.join(written)}")
    print("=" * 50)


if __name__ == "__main__":
    main()
