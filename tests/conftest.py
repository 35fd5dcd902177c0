"""
Test configuration and fixtures for the table importer.

Provides sample export documents, run configurations, a fake gateway that
simulates DynamoDB table state transitions, and moto-backed AWS resources.
"""

import copy
import json
from decimal import Decimal
from typing import Any, Dict, List, Optional
from unittest.mock import Mock

import boto3
import pytest
from moto import mock_aws

from dynamodb_importer import ImporterConfig
from dynamodb_importer.exceptions import NotFoundError
from dynamodb_importer.handler import reset_cached_handles


TEST_REGION = "us-east-1"
TEST_BUCKET = "test-exports"


@pytest.fixture(autouse=True)
def aws_credentials(monkeypatch):
    """Fake credentials so nothing can reach a real AWS account."""
    monkeypatch.setenv("AWS_ACCESS_KEY_ID", "testing")
    monkeypatch.setenv("AWS_SECRET_ACCESS_KEY", "testing")
    monkeypatch.setenv("AWS_SECURITY_TOKEN", "testing")
    monkeypatch.setenv("AWS_SESSION_TOKEN", "testing")
    monkeypatch.setenv("AWS_DEFAULT_REGION", TEST_REGION)
    for name in (
        "SOURCE_BUCKET", "SOURCE_KEY", "TARGET_TABLE_NAME", "CREATE_TABLE",
        "OVERWRITE_EXISTING", "BATCH_SIZE", "DRY_RUN", "IMPORT_MAX_WORKERS",
        "DYNAMODB_ENDPOINT_URL", "S3_ENDPOINT_URL", "IMPORTER_DEBUG_LOGGING",
    ):
        monkeypatch.delenv(name, raising=False)
    monkeypatch.setenv("AWS_REGION", TEST_REGION)
    reset_cached_handles()
    yield
    reset_cached_handles()


@pytest.fixture
def make_config():
    """Build an ImporterConfig with fast polling and no pacing delay."""
    def _make(**overrides) -> ImporterConfig:
        values = dict(
            region_name=TEST_REGION,
            source_bucket=TEST_BUCKET,
            source_key="exports/users.json",
            poll_interval_seconds=0,
            batch_delay_seconds=0,
        )
        values.update(overrides)
        return ImporterConfig(**values)
    return _make


# Sample Data Fixtures

def make_export(
    table_name: str = "Users",
    records: Optional[List[Dict[str, Any]]] = None,
    **schema_overrides
) -> Dict[str, Any]:
    """Export document in the layout the exporter writes."""
    schema = {
        "tableName": table_name,
        "keySchema": [{"AttributeName": "id", "KeyType": "HASH"}],
        "attributeDefinitions": [{"AttributeName": "id", "AttributeType": "S"}],
        "billingMode": "PAY_PER_REQUEST",
    }
    schema.update(schema_overrides)
    if records is None:
        records = [
            {"id": "u-1", "name": "Ada", "age": 36, "active": True},
            {"id": "u-2", "name": "Grace", "age": Decimal("85.5"), "tags": ["navy", "cobol"]},
            {"id": "u-3", "name": "Linus", "address": {"city": "Helsinki", "zip": None}},
        ]
    return {
        "exportMetadata": {"exportDate": "2024-05-01T12:00:00Z", "sourceTable": table_name, "itemCount": len(records)},
        "tableSchema": schema,
        "items": records,
    }


@pytest.fixture
def sample_export():
    """Three-record export of an on-demand Users table."""
    return make_export()


@pytest.fixture
def provisioned_export():
    """Export of a provisioned table with a global and a local index."""
    return make_export(
        table_name="Orders",
        records=[{"customer_id": "c-1", "order_id": "o-1", "status": "OPEN", "placed_at": "2024-01-01"}],
        keySchema=[
            {"AttributeName": "customer_id", "KeyType": "HASH"},
            {"AttributeName": "order_id", "KeyType": "RANGE"},
        ],
        attributeDefinitions=[
            {"AttributeName": "customer_id", "AttributeType": "S"},
            {"AttributeName": "order_id", "AttributeType": "S"},
            {"AttributeName": "status", "AttributeType": "S"},
            {"AttributeName": "placed_at", "AttributeType": "S"},
        ],
        billingMode="PROVISIONED",
        provisionedThroughput={"ReadCapacityUnits": 10, "WriteCapacityUnits": 4},
        globalSecondaryIndexes=[{
            "IndexName": "StatusIndex",
            "KeySchema": [{"AttributeName": "status", "KeyType": "HASH"}],
            "Projection": {"ProjectionType": "ALL"},
            "ProvisionedThroughput": {"ReadCapacityUnits": 3, "WriteCapacityUnits": 2},
        }],
        localSecondaryIndexes=[{
            "IndexName": "PlacedAtIndex",
            "KeySchema": [
                {"AttributeName": "customer_id", "KeyType": "HASH"},
                {"AttributeName": "placed_at", "KeyType": "RANGE"},
            ],
            "Projection": {"ProjectionType": "KEYS_ONLY"},
        }],
        streamSpecification={"StreamEnabled": True, "StreamViewType": "NEW_AND_OLD_IMAGES"},
    )


# Fake collaborators

class FakeTableGateway:
    """
    In-memory stand-in for TableGateway.

    describe_table walks through `statuses`, one entry per call; the string
    "ABSENT" answers NotFoundError, an exception instance is raised, and the
    last entry repeats once the list is exhausted.
    """

    def __init__(self, table_name: str = "Users", statuses: Optional[List[Any]] = None):
        self.table_name = table_name
        self.statuses = list(statuses or ["ABSENT"])
        self.calls: List[str] = []
        self.created_params: Optional[Dict[str, Any]] = None
        self.items: List[Dict[str, Any]] = []
        self.put_item_errors: Dict[str, Exception] = {}
        self.create_error: Optional[Exception] = None
        self.delete_error: Optional[Exception] = None

    def _next_status(self):
        if len(self.statuses) > 1:
            return self.statuses.pop(0)
        return self.statuses[0]

    def describe_table(self):
        self.calls.append("describe_table")
        status = self._next_status()
        if isinstance(status, Exception):
            raise status
        if status == "ABSENT":
            raise NotFoundError(f"Table not found - {self.table_name}", "table", self.table_name)
        return {"TableName": self.table_name, "TableStatus": status}

    def create_table(self, params):
        self.calls.append("create_table")
        if self.create_error:
            raise self.create_error
        self.created_params = copy.deepcopy(params)
        return {"TableName": self.table_name, "TableStatus": "CREATING"}

    def delete_table(self):
        self.calls.append("delete_table")
        if self.delete_error:
            raise self.delete_error

    def put_item(self, item):
        self.calls.append("put_item")
        error = self.put_item_errors.get(str(item.get("id")))
        if error is not None:
            raise error
        self.items.append(item)


@pytest.fixture
def fake_gateway():
    return FakeTableGateway()


@pytest.fixture
def fake_sleep():
    """Records sleep calls instead of sleeping."""
    return Mock(name="sleep")


@pytest.fixture
def fake_loader(sample_export):
    loader = Mock(name="loader")
    loader.load.return_value = sample_export
    return loader


# moto-backed AWS

@pytest.fixture
def aws():
    """moto mock for S3 and DynamoDB."""
    with mock_aws():
        yield {
            "s3": boto3.client("s3", region_name=TEST_REGION),
            "dynamodb": boto3.resource("dynamodb", region_name=TEST_REGION),
        }


@pytest.fixture
def upload_export(aws):
    """Upload an export document to the test bucket."""
    aws["s3"].create_bucket(Bucket=TEST_BUCKET)

    def _upload(document: Dict[str, Any], key: str = "exports/users.json") -> str:
        body = json.dumps(document, default=float)
        aws["s3"].put_object(Bucket=TEST_BUCKET, Key=key, Body=body.encode("utf-8"))
        return key
    return _upload


@pytest.fixture
def export_factory():
    """The make_export builder, for tests that need a custom export."""
    return make_export


@pytest.fixture
def gateway_cls():
    """FakeTableGateway class, for tests that script their own table states."""
    return FakeTableGateway
