"""S3 bucket for published reports.

Bucket layout:
  <bucket>/
  └── reports/<report-type>/<timestamp>-<report-id>.csv
"""
import os
from typing import Any, Optional

import boto3
from botocore.exceptions import ClientError

REGION = os.environ.get("AWS_DEFAULT_REGION", "us-west-2")
BUCKET_PREFIX = "hotel-stores-reports"
REPORT_PREFIXES = [
    "inventory-status",
    "low-stock",
    "asset-status",
    "consumption-trends",
    "asset-utilization",
    "expiry-tracking",
]


def get_bucket_name(region: str = REGION) -> str:
    """STORES_REPORTS_BUCKET, or a per-account name derived from the caller identity."""
    configured = os.environ.get("STORES_REPORTS_BUCKET")
    if configured:
        return configured
    sts = boto3.client("sts", region_name=region)
    account_id = sts.get_caller_identity()["Account"]
    return f"{BUCKET_PREFIX}-{account_id}"


def create_bucket(region: str = REGION, bucket_name: Optional[str] = None, client: Optional[Any] = None) -> str:
    s3 = client or boto3.client("s3", region_name=region)
    bucket_name = bucket_name or get_bucket_name(region)

    try:
        if region == "us-east-1":
            s3.create_bucket(Bucket=bucket_name)
        else:
            s3.create_bucket(
                Bucket=bucket_name,
                CreateBucketConfiguration={"LocationConstraint": region},
            )
        print(f"  ✓ Bucket created: {bucket_name}")
    except ClientError as e:
        if e.response["Error"]["Code"] in ("BucketAlreadyOwnedByYou", "BucketAlreadyExists"):
            print(f"  ⏭️  Bucket already exists: {bucket_name}")
        else:
            raise

    # Empty prefixes (folder structure)
    for report_type in REPORT_PREFIXES:
        s3.put_object(Bucket=bucket_name, Key=f"reports/{report_type}/", Body=b"")
    return bucket_name


def delete_bucket(region: str = REGION, bucket_name: Optional[str] = None) -> None:
    """Deletes the bucket and everything in it."""
    s3 = boto3.resource("s3", region_name=region)
    bucket_name = bucket_name or get_bucket_name(region)
    try:
        bucket = s3.Bucket(bucket_name)
        bucket.objects.all().delete()
        bucket.delete()
        print(f"  🗑️  {bucket_name} deleted")
    except ClientError:
        print(f"  ⏭️  {bucket_name} not found")


if __name__ == "__main__":
    import sys

    if len(sys.argv) > 1 and sys.argv[1] == "--delete":
        print("🗑️  Deleting reports bucket...")
        delete_bucket()
    else:
        print("🏗️  Creating reports bucket...\n")
        create_bucket()
