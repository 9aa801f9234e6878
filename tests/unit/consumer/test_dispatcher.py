"""Unit tests for EventDispatcher against the in-memory and moto-backed stores."""

from __future__ import annotations

import json
from typing import Any

import boto3
import pytest
from moto import mock_aws
from structlog.testing import capture_logs

from usersync.consumer.dispatcher import DispatchOutcome, EventDispatcher
from usersync.core.exceptions import StoreError
from usersync.models.message import QueueMessage
from usersync.persistence.dynamodb_backend import DynamoDBUserStore
from tests.fakes import MemoryUserStore

NOW = "2024-05-01T12:00:00.000Z"
LATER = "2024-05-02T08:30:00.000Z"

# ---------- helpers ----------

def _message(body: Any, n: int = 1) -> QueueMessage:
    raw = body if body is None or isinstance(body, str) else json.dumps(body)
    return QueueMessage(body=raw, receipt_handle=f"rh-{n}", message_id=f"m-{n}")


def _seed(store, **overrides) -> dict[str, Any]:
    record = {
        "id": "abc", "firstName": "John", "lastName": "Doe",
        "email": "john@x.com", "dob": "2000-01-01", "status": "active",
        "createdAt": NOW, "updatedAt": NOW,
    }
    record.update(overrides)
    store.put_record(record)
    return record


class _Ids:
    def __init__(self) -> None:
        self.n = 0

    def __call__(self) -> str:
        self.n += 1
        return f"user-{self.n}"


class _BrokenStore(MemoryUserStore):
    def put_record(self, record):
        raise StoreError("ProvisionedThroughputExceededException")

    def update_record(self, key, updates, must_exist=True):
        raise StoreError("ProvisionedThroughputExceededException")


# ---------- fixtures ----------

@pytest.fixture
def store():
    return MemoryUserStore()


@pytest.fixture
def dispatcher(store):
    return EventDispatcher(store, clock=lambda: NOW, id_factory=_Ids())


# ---------- create ----------

class TestCreate:
    def test_creates_active_user_with_generated_id(self, dispatcher, store):
        result = dispatcher.dispatch(_message({
            "user": {"firstName": "John", "lastName": "Doe", "email": "john@x.com", "dob": "2000-01-01"},
            "operation": "create",
        }))

        assert result.outcome == DispatchOutcome.CREATED
        assert result.succeeded
        assert result.user_id == "user-1"
        assert store.get("user-1") == {
            "id": "user-1", "firstName": "John", "lastName": "Doe",
            "email": "john@x.com", "dob": "2000-01-01", "status": "active",
            "createdAt": NOW, "updatedAt": NOW,
        }

    def test_keeps_supplied_status(self, dispatcher, store):
        dispatcher.dispatch(_message({"user": {"email": "a@b.com", "status": "pending"}, "operation": "create"}))
        assert store.get("user-1")["status"] == "pending"

    def test_ignores_supplied_id(self, dispatcher, store):
        dispatcher.dispatch(_message({"user": {"id": "chosen", "email": "a@b.com"}, "operation": "create"}))
        assert store.get("chosen") is None
        assert store.get("user-1") is not None

    def test_absent_fields_are_omitted(self, dispatcher, store):
        dispatcher.dispatch(_message({"user": {"email": "a@b.com"}, "operation": "create"}))
        item = store.get("user-1")
        assert "firstName" not in item
        assert "lastName" not in item
        assert "dob" not in item

    def test_default_ids_are_never_reused(self, store):
        dispatcher = EventDispatcher(store)
        body = {"user": {"email": "a@b.com", "dob": "1990-01-01"}, "operation": "create"}
        first = dispatcher.dispatch(_message(body, 1))
        second = dispatcher.dispatch(_message(body, 2))
        assert first.user_id != second.user_id
        assert len(store) == 2

    def test_created_and_updated_timestamps_match(self, store):
        dispatcher = EventDispatcher(store)
        result = dispatcher.dispatch(_message({"user": {"email": "a@b.com"}, "operation": "create"}))
        item = store.get(result.user_id)
        assert item["createdAt"] == item["updatedAt"]
        assert item["createdAt"].endswith("Z")


# ---------- update ----------

class TestUpdate:
    def test_updates_existing_user(self, store):
        _seed(store)
        dispatcher = EventDispatcher(store, clock=lambda: LATER)
        result = dispatcher.dispatch(_message({"user": {"id": "abc", "firstName": "Jane"}, "operation": "update"}))

        assert result.outcome == DispatchOutcome.UPDATED
        item = store.get("abc")
        assert item["firstName"] == "Jane"
        assert item["status"] == "updated"
        assert item["updatedAt"] == LATER

    def test_never_touches_email_or_created_at(self, store):
        _seed(store)
        dispatcher = EventDispatcher(store, clock=lambda: LATER)
        dispatcher.dispatch(_message({
            "user": {"id": "abc", "email": "other@x.com", "createdAt": LATER},
            "operation": "update",
        }))
        item = store.get("abc")
        assert item["email"] == "john@x.com"
        assert item["createdAt"] == NOW

    def test_absent_fields_become_empty_strings(self, store):
        _seed(store)
        EventDispatcher(store).dispatch(_message({"user": {"id": "abc"}, "operation": "update"}))
        item = store.get("abc")
        assert item["firstName"] == ""
        assert item["lastName"] == ""
        assert item["dob"] == ""

    def test_missing_id_writes_nothing(self, dispatcher, store):
        result = dispatcher.dispatch(_message({"user": {"firstName": "Jane"}, "operation": "update"}))
        assert result.outcome == DispatchOutcome.INVALID
        assert not result.succeeded
        assert len(store) == 0

    def test_missing_record_is_rejected(self, dispatcher, store):
        with capture_logs() as logs:
            result = dispatcher.dispatch(_message({"user": {"id": "missing-id"}, "operation": "update"}))
        assert result.outcome == DispatchOutcome.REJECTED
        assert result.user_id == "missing-id"
        assert store.get("missing-id") is None
        assert any(log["event"] == "user_update_rejected" for log in logs)


# ---------- updateStatus ----------

class TestUpdateStatus:
    def test_only_status_and_updated_at_change(self, store):
        original = _seed(store)
        dispatcher = EventDispatcher(store, clock=lambda: LATER)
        result = dispatcher.dispatch(_message({
            "user": {"id": "abc", "status": "suspended", "firstName": "Ignored", "dob": "1999-09-09"},
            "operation": "updateStatus",
        }))

        assert result.outcome == DispatchOutcome.STATUS_UPDATED
        item = store.get("abc")
        assert item["status"] == "suspended"
        assert item["updatedAt"] == LATER
        for field in ("firstName", "lastName", "dob", "email", "createdAt"):
            assert item[field] == original[field]

    def test_absent_status_becomes_empty_string(self, store):
        _seed(store)
        EventDispatcher(store).dispatch(_message({"user": {"id": "abc"}, "operation": "updateStatus"}))
        assert store.get("abc")["status"] == ""

    def test_missing_id_writes_nothing(self, dispatcher, store):
        result = dispatcher.dispatch(_message({"user": {"status": "x"}, "operation": "updateStatus"}))
        assert result.outcome == DispatchOutcome.INVALID
        assert len(store) == 0

    def test_missing_record_is_rejected(self, dispatcher, store):
        result = dispatcher.dispatch(_message({"user": {"id": "ghost", "status": "x"}, "operation": "updateStatus"}))
        assert result.outcome == DispatchOutcome.REJECTED
        assert len(store) == 0


# ---------- malformed / unknown / failures ----------

class TestNeverRaises:
    def test_unknown_operation_logs_warning(self, dispatcher, store):
        with capture_logs() as logs:
            result = dispatcher.dispatch(_message({"user": {"id": "abc"}, "operation": "delete"}))
        assert result.outcome == DispatchOutcome.IGNORED
        assert len(store) == 0
        warning = next(log for log in logs if log["event"] == "unknown_operation")
        assert warning["log_level"] == "warning"
        assert warning["operation"] == "delete"

    @pytest.mark.parametrize("body", [
        None, "", "not-json", {"operation": "create"}, {"user": {}},
        '{"user": {"n": ' + "1" * 5000 + '}, "operation": "create"}',
        "[" * 100000 + "]" * 100000,
    ], ids=["none", "empty", "not-json", "no-user", "no-operation", "huge-int", "deep-nesting"])
    def test_malformed_bodies_are_invalid(self, dispatcher, store, body):
        result = dispatcher.dispatch(_message(body))
        assert result.outcome == DispatchOutcome.INVALID
        assert result.error
        assert len(store) == 0

    def test_store_error_on_create_is_reported(self):
        dispatcher = EventDispatcher(_BrokenStore())
        result = dispatcher.dispatch(_message({"user": {"email": "a@b.com"}, "operation": "create"}))
        assert result.outcome == DispatchOutcome.FAILED
        assert "Throughput" in result.error

    def test_store_error_on_update_is_reported(self):
        dispatcher = EventDispatcher(_BrokenStore())
        result = dispatcher.dispatch(_message({"user": {"id": "abc"}, "operation": "update"}))
        assert result.outcome == DispatchOutcome.FAILED
        assert result.user_id == "abc"


# ---------- against DynamoDB (moto) ----------

TABLE = "users-test"
REGION = "us-east-1"


@pytest.fixture
def ddb_store():
    with mock_aws():
        client = boto3.client("dynamodb", region_name=REGION)
        client.create_table(
            TableName=TABLE,
            KeySchema=[{"AttributeName": "id", "KeyType": "HASH"}],
            AttributeDefinitions=[{"AttributeName": "id", "AttributeType": "S"}],
            BillingMode="PAY_PER_REQUEST",
        )
        yield DynamoDBUserStore(table_name=TABLE, region=REGION)


class TestAgainstDynamoDB:
    def test_create_then_update(self, ddb_store):
        dispatcher = EventDispatcher(ddb_store, clock=lambda: NOW, id_factory=lambda: "abc")
        dispatcher.dispatch(_message({"user": {"firstName": "John", "email": "john@x.com"}, "operation": "create"}))
        result = dispatcher.dispatch(_message({"user": {"id": "abc", "firstName": "Jane"}, "operation": "update"}))

        assert result.outcome == DispatchOutcome.UPDATED
        item = ddb_store.query_by_key({"id": "abc"})[0]
        assert item["firstName"] == "Jane"
        assert item["status"] == "updated"
        assert item["email"] == "john@x.com"

    def test_update_on_missing_id_creates_nothing(self, ddb_store):
        dispatcher = EventDispatcher(ddb_store)
        result = dispatcher.dispatch(_message({"user": {"id": "missing-id"}, "operation": "update"}))
        assert result.outcome == DispatchOutcome.REJECTED
        assert ddb_store.query_by_key({"id": "missing-id"}) == []


class TestUnexpectedParseErrors:
    def test_unexpected_error_is_invalid_not_raised(self, dispatcher, store, monkeypatch):
        def boom(body):
            raise RuntimeError("decoder exploded")

        monkeypatch.setattr("usersync.consumer.dispatcher.parse_event", boom)
        result = dispatcher.dispatch(_message({"user": {}, "operation": "create"}))
        assert result.outcome == DispatchOutcome.INVALID
        assert "decoder exploded" in result.error
        assert len(store) == 0
