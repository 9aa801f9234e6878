"""Integration test fixtures: LocalStack DynamoDB and SQS."""

from __future__ import annotations

import os
import sys

import boto3
import pytest

# Default LocalStack endpoint
LOCALSTACK_URL = os.environ.get("LOCALSTACK_URL", "http://localhost:4566")
TABLE_NAME = "users-inttest"
QUEUE_NAME = "user-events-inttest"
REGION = "us-east-1"


def _localstack_available() -> bool:
    """Check if LocalStack is reachable."""
    try:
        client = boto3.client("dynamodb", region_name=REGION, endpoint_url=LOCALSTACK_URL)
        client.list_tables()
        return True
    except Exception:
        return False


skip_no_localstack = pytest.mark.skipif(
    not _localstack_available(),
    reason="LocalStack not available",
)


@pytest.fixture(scope="session")
def localstack_ddb():
    """DynamoDB resource pointing at LocalStack."""
    return boto3.resource("dynamodb", region_name=REGION, endpoint_url=LOCALSTACK_URL)


@pytest.fixture(scope="session")
def localstack_sqs():
    """SQS client pointing at LocalStack."""
    return boto3.client("sqs", region_name=REGION, endpoint_url=LOCALSTACK_URL)


@pytest.fixture(scope="session")
def users_table(localstack_ddb):
    """Create the users table via the resource script."""
    sys.path.insert(0, str(os.path.join(os.path.dirname(__file__), "..", "..", "scripts")))
    from create_resources import create_users_table

    create_users_table(localstack_ddb, table_name=TABLE_NAME)
    localstack_ddb.meta.client.get_waiter("table_exists").wait(TableName=TABLE_NAME)
    return TABLE_NAME


@pytest.fixture(scope="session")
def event_queue_url(localstack_sqs):
    sys.path.insert(0, str(os.path.join(os.path.dirname(__file__), "..", "..", "scripts")))
    from create_resources import create_queue

    url = create_queue(localstack_sqs, queue_name=QUEUE_NAME)
    localstack_sqs.purge_queue(QueueUrl=url)
    return url
