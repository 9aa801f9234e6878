"""Create the users table (with its email/dob index) and the user-event queue.

Usage:
    python scripts/create_resources.py --endpoint-url http://localhost:4566
"""

from __future__ import annotations

import argparse
from typing import Any

import boto3

TABLE_NAME = "users"
EMAIL_DOB_INDEX = "email-dob-index"
QUEUE_NAME = "user-events"


def create_users_table(ddb: Any, table_name: str = TABLE_NAME,
                       index_name: str = EMAIL_DOB_INDEX) -> bool:
    """Create the users table. Returns False if it already exists."""
    client = ddb.meta.client
    existing = client.list_tables().get("TableNames", [])
    if table_name in existing:
        print(f"  Table {table_name} already exists, skipping")
        return False

    client.create_table(
        TableName=table_name,
        KeySchema=[{"AttributeName": "id", "KeyType": "HASH"}],
        AttributeDefinitions=[
            {"AttributeName": "id", "AttributeType": "S"},
            {"AttributeName": "email", "AttributeType": "S"},
            {"AttributeName": "dob", "AttributeType": "S"},
        ],
        GlobalSecondaryIndexes=[
            {
                "IndexName": index_name,
                "KeySchema": [
                    {"AttributeName": "email", "KeyType": "HASH"},
                    {"AttributeName": "dob", "KeyType": "RANGE"},
                ],
                "Projection": {"ProjectionType": "ALL"},
            },
        ],
        BillingMode="PAY_PER_REQUEST",
    )
    print(f"  Created table {table_name}")
    return True


def create_queue(sqs: Any, queue_name: str = QUEUE_NAME) -> str:
    """Create the event queue if missing and return its URL."""
    url = sqs.create_queue(QueueName=queue_name)["QueueUrl"]
    print(f"  Queue {queue_name} at {url}")
    return url


def main() -> None:
    parser = argparse.ArgumentParser(description="Create DynamoDB/SQS resources for UserSync")
    parser.add_argument("--endpoint-url", default=None, help="AWS endpoint (e.g. http://localhost:4566)")
    parser.add_argument("--table-name", default=TABLE_NAME, help="Users table name, including any suffix")
    parser.add_argument("--queue-name", default=QUEUE_NAME, help="SQS queue name")
    parser.add_argument("--region", default="us-east-1", help="AWS region")
    args = parser.parse_args()

    kwargs: dict[str, Any] = {"region_name": args.region}
    if args.endpoint_url:
        kwargs["endpoint_url"] = args.endpoint_url

    print("Creating table...")
    create_users_table(boto3.resource("dynamodb", **kwargs), table_name=args.table_name)

    print("Creating queue...")
    create_queue(boto3.client("sqs", **kwargs), queue_name=args.queue_name)

    print("Done!")


if __name__ == "__main__":
    main()
