"""Sets up the hotel stores table and reports bucket, then loads the seed data.

Usage:
    python -m data_layer.scripts.setup_aws                  # create and load
    python -m data_layer.scripts.setup_aws --overwrite      # reload every collection
    python -m data_layer.scripts.setup_aws --table Stores2  # other table name
    python -m data_layer.scripts.setup_aws --delete         # delete everything
    python -m data_layer.scripts.setup_aws --region eu-west-1
"""
import os
import sys

# Add the project root to the path
sys.path.insert(0, os.path.dirname(os.path.dirname(os.path.dirname(os.path.abspath(__file__)))))

from data_layer.infrastructure.dynamodb_setup import REGION, TABLE_NAME, create_table, delete_table, load_seed_data
from data_layer.infrastructure.s3_setup import create_bucket, delete_bucket
from src.services.storage import COLLECTION_KEYS, CollectionStorage, DynamoDBStorage


def parse_args(args):
    options = {"region": REGION, "table": TABLE_NAME, "delete": False, "overwrite": False}
    for i, arg in enumerate(args):
        if arg == "--delete":
            options["delete"] = True
        elif arg == "--overwrite":
            options["overwrite"] = True
        elif arg == "--region" and i + 1 < len(args):
            options["region"] = args[i + 1]
        elif arg == "--table" and i + 1 < len(args):
            options["table"] = args[i + 1]
    return options


def collection_counts(storage: CollectionStorage) -> dict:
    """Record count per collection key; None for collections never written."""
    counts = {}
    for key in COLLECTION_KEYS:
        records = storage.load(key)
        counts[key] = None if records is None else len(records)
    return counts


def main(argv=None):
    options = parse_args(sys.argv[1:] if argv is None else argv)
    region, table = options["region"], options["table"]

    if options["delete"]:
        print("🗑️  Deleting AWS resources...\n")
        print("--- DynamoDB ---")
        delete_table(region, table_name=table)
        print("\n--- S3 ---")
        delete_bucket(region)
        print("\n✅ All resources deleted!")
        return

    print("=" * 60)
    print("🚀 AWS setup - Hotel Stores")
    print(f"   Region: {region}  Table: {table}")
    print("=" * 60)

    print("\n📊 STEP 1: DynamoDB table")
    print("-" * 40)
    create_table(region, table_name=table)

    print("\n📦 STEP 2: Reports bucket")
    print("-" * 40)
    bucket = create_bucket(region)

    print("\n📤 STEP 3: Seed data")
    print("-" * 40)
    written = load_seed_data(region=region, table_name=table, overwrite=options["overwrite"])

    print("\n🔎 STEP 4: Collections in the table")
    print("-" * 40)
    counts = collection_counts(DynamoDBStorage(table_name=table, region_name=region))
    for key, count in counts.items():
        marker = "✓ " if key in written else "  "
        print(f"  {marker} {key:<18} {'missing' if count is None else count}")
    missing = [key for key, count in counts.items() if count is None]

    print("\n" + "=" * 60)
    if missing:
        print(f"⚠️  Collections missing: {', '.join(missing)}")
    else:
        print("✅ AWS resources ready!")
    print(f"   DynamoDB: {len(written)} of {len(COLLECTION_KEYS)} collections loaded this run")
    print("   Configure the app with:")
    print("     STORES_STORAGE_BACKEND=dynamodb")
    print(f"     STORES_TABLE_NAME={table}")
    print(f"     STORES_REPORTS_BUCKET={bucket}")
    print("=" * 60)


if __name__ == "__main__":
    main()
