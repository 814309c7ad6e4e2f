import os

# Ensure AWS SDK has a region and fake credentials for moto
os.environ.setdefault("AWS_REGION", "us-east-1")
os.environ.setdefault("AWS_DEFAULT_REGION", "us-east-1")
os.environ.setdefault("AWS_ACCESS_KEY_ID", "testing")
os.environ.setdefault("AWS_SECRET_ACCESS_KEY", "testing")
os.environ.setdefault("AWS_SESSION_TOKEN", "testing")

os.environ.setdefault("CLIMATE_RECORDS_TABLE", "climate_records")
os.environ.setdefault("POWERTOOLS_SERVICE_NAME", "climate-record-ledger")

from collections.abc import Iterator  # noqa: E402
from dataclasses import dataclass  # noqa: E402

import boto3  # noqa: E402
import pytest  # noqa: E402
from moto import mock_aws  # noqa: E402

# Loggers bind their service name at import, so these imports follow the env setup
from common.kvstore import InMemoryKeyValueStore  # noqa: E402
from common.record_store import ClimateRecordStore  # noqa: E402


@dataclass
class FakeLambdaContext:
    function_name: str = "climate-contract"
    memory_limit_in_mb: int = 128
    invoked_function_arn: str = "arn:aws:lambda:us-east-1:123456789012:function:climate-contract"
    aws_request_id: str = "00000000-0000-0000-0000-000000000000"


@pytest.fixture
def lambda_context() -> FakeLambdaContext:
    return FakeLambdaContext()


@pytest.fixture
def aws_moto() -> Iterator[str]:
    """Fresh mocked DynamoDB table per test; yields the table name."""
    with mock_aws():
        ddb = boto3.client("dynamodb")
        ddb.create_table(
            TableName=os.environ["CLIMATE_RECORDS_TABLE"],
            AttributeDefinitions=[{"AttributeName": "pk", "AttributeType": "S"}],
            KeySchema=[{"AttributeName": "pk", "KeyType": "HASH"}],
            BillingMode="PAY_PER_REQUEST",
        )
        yield os.environ["CLIMATE_RECORDS_TABLE"]


@pytest.fixture
def kv() -> InMemoryKeyValueStore:
    return InMemoryKeyValueStore()


@pytest.fixture
def store(kv: InMemoryKeyValueStore) -> ClimateRecordStore:
    return ClimateRecordStore(kv)
