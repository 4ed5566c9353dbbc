"""AWS resource setup unit tests (boto3 replaced by mocks)."""

import json
from unittest.mock import MagicMock

from botocore.exceptions import ClientError

from data_layer.infrastructure.dynamodb_setup import create_table, load_seed_data, table_definition
from data_layer.infrastructure.s3_setup import REPORT_PREFIXES, create_bucket
from data_layer.scripts.setup_aws import collection_counts, parse_args
from src.services.report_service import REPORT_TYPES
from src.services.storage import COLLECTION_KEYS, InMemoryStorage


def _not_found() -> ClientError:
    return ClientError({"Error": {"Code": "ResourceNotFoundException", "Message": "missing"}}, "DescribeTable")


class TestDynamoDBSetup:

    def test_table_keyed_by_collection(self):
        definition = table_definition("T")
        assert definition["TableName"] == "T"
        assert definition["KeySchema"] == [{"AttributeName": "collection", "KeyType": "HASH"}]

    def test_create_table_when_missing(self):
        client = MagicMock()
        client.describe_table.side_effect = _not_found()
        assert create_table(table_name="T", client=client) is True
        client.create_table.assert_called_once()
        client.get_waiter.return_value.wait.assert_called_once_with(TableName="T")

    def test_existing_table_is_kept(self):
        client = MagicMock()
        assert create_table(table_name="T", client=client) is False
        client.create_table.assert_not_called()

    def test_load_seed_data_writes_every_collection(self):
        resource = MagicMock()
        table = resource.Table.return_value
        table.get_item.return_value = {}

        written = load_seed_data(table_name="T", dynamodb_resource=resource)
        assert sorted(written) == sorted(COLLECTION_KEYS)

        saved = {c.kwargs["Item"]["collection"]: c.kwargs["Item"] for c in table.put_item.call_args_list}
        assert len(json.loads(saved["items"]["payload"])) == 8
        assert saved["purchase-orders"]["record_count"] == 0

    def test_loaded_collections_skipped_without_overwrite(self):
        resource = MagicMock()
        table = resource.Table.return_value
        table.get_item.return_value = {"Item": {"collection": "x", "payload": "[]"}}

        assert load_seed_data(table_name="T", dynamodb_resource=resource) == []
        assert len(load_seed_data(table_name="T", overwrite=True, dynamodb_resource=resource)) == len(COLLECTION_KEYS)


class TestS3Setup:

    def test_prefixes_match_report_types(self):
        assert set(REPORT_PREFIXES) == set(REPORT_TYPES)

    def test_create_bucket_with_prefixes(self):
        client = MagicMock()
        name = create_bucket("eu-west-1", bucket_name="reports-test", client=client)

        assert name == "reports-test"
        client.create_bucket.assert_called_once_with(
            Bucket="reports-test", CreateBucketConfiguration={"LocationConstraint": "eu-west-1"}
        )
        keys = [c.kwargs["Key"] for c in client.put_object.call_args_list]
        assert "reports/low-stock/" in keys

    def test_existing_bucket_is_reused(self):
        client = MagicMock()
        client.create_bucket.side_effect = ClientError(
            {"Error": {"Code": "BucketAlreadyOwnedByYou", "Message": "yours"}}, "CreateBucket"
        )
        assert create_bucket("us-east-1", bucket_name="reports-test", client=client) == "reports-test"
        assert client.put_object.call_count == len(REPORT_PREFIXES)


class TestSetupScript:

    def test_parse_args(self):
        options = parse_args(["--region", "eu-west-1", "--table", "Stores2", "--overwrite"])
        assert options["region"] == "eu-west-1"
        assert options["table"] == "Stores2"
        assert options["overwrite"] is True
        assert options["delete"] is False

    def test_collection_counts(self):
        storage = InMemoryStorage({"items": [{"id": "1"}, {"id": "2"}], "purchase-orders": []})
        counts = collection_counts(storage)

        assert set(counts) == set(COLLECTION_KEYS)
        assert counts["items"] == 2
        assert counts["purchase-orders"] == 0
        assert counts["users"] is None
