"""DynamoDB backend implementing IUserStore."""

from __future__ import annotations

from functools import reduce
from typing import Any

import boto3
from boto3.dynamodb.conditions import Key
from botocore.exceptions import BotoCoreError, ClientError

from usersync.core.exceptions import ConditionFailedError, StoreError

CONDITION_FAILED = "ConditionalCheckFailedException"


def _key_condition(conditions: dict[str, Any]):
    """AND together equality conditions, in insertion order (hash key first)."""
    if not conditions:
        raise ValueError("At least one key condition is required")
    return reduce(
        lambda acc, cond: acc & cond,
        (Key(name).eq(value) for name, value in conditions.items()),
    )


class DynamoDBUserStore:
    """Production IUserStore backed by a single DynamoDB table."""

    def __init__(self, table_name: str, region: str = "us-east-1",
                 endpoint_url: str | None = None, partition_key: str = "id") -> None:
        self._table_name = table_name
        self._region = region
        self._endpoint_url = endpoint_url
        self._partition_key = partition_key
        kwargs: dict = {"region_name": region}
        if endpoint_url:
            kwargs["endpoint_url"] = endpoint_url
        self._ddb = boto3.resource("dynamodb", **kwargs)
        self._table = self._ddb.Table(table_name)

    def put_record(self, record: dict[str, Any]) -> None:
        """Insert or overwrite an item."""
        try:
            self._table.put_item(Item=record)
        except (ClientError, BotoCoreError) as exc:
            raise StoreError(
                f"DynamoDB put failed for {self._partition_key}={record.get(self._partition_key)!r}: {exc}"
            ) from exc

    def update_record(self, key: dict[str, Any], updates: dict[str, Any],
                      must_exist: bool = True) -> None:
        """SET the given attributes on an item.

        With ``must_exist`` the write is guarded by ``attribute_exists`` on the
        partition key and raises ConditionFailedError instead of upserting.
        """
        if not updates:
            raise ValueError("update_record requires at least one attribute")

        names: dict[str, str] = {}
        values: dict[str, Any] = {}
        clauses: list[str] = []
        for i, (attr, value) in enumerate(updates.items()):
            names[f"#a{i}"] = attr
            values[f":v{i}"] = value
            clauses.append(f"#a{i} = :v{i}")

        params: dict[str, Any] = {
            "Key": key,
            "UpdateExpression": "SET " + ", ".join(clauses),
            "ExpressionAttributeNames": names,
            "ExpressionAttributeValues": values,
        }
        if must_exist:
            names["#pk"] = self._partition_key
            params["ConditionExpression"] = "attribute_exists(#pk)"

        try:
            self._table.update_item(**params)
        except ClientError as exc:
            if exc.response.get("Error", {}).get("Code") == CONDITION_FAILED:
                raise ConditionFailedError(key) from exc
            raise StoreError(f"DynamoDB update failed for key={key!r}: {exc}") from exc
        except BotoCoreError as exc:
            raise StoreError(f"DynamoDB update failed for key={key!r}: {exc}") from exc

    def query_by_index(self, index_name: str, conditions: dict[str, Any]) -> list[dict[str, Any]]:
        """Equality query against a secondary index."""
        try:
            resp = self._table.query(
                IndexName=index_name,
                KeyConditionExpression=_key_condition(conditions),
            )
        except (ClientError, BotoCoreError) as exc:
            raise StoreError(f"DynamoDB query on {index_name!r} failed: {exc}") from exc
        return resp.get("Items", [])

    def query_by_key(self, key: dict[str, Any]) -> list[dict[str, Any]]:
        """Equality query on the table's primary key."""
        try:
            resp = self._table.query(KeyConditionExpression=_key_condition(key))
        except (ClientError, BotoCoreError) as exc:
            raise StoreError(f"DynamoDB query failed for key={key!r}: {exc}") from exc
        return resp.get("Items", [])
