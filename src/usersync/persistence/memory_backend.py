"""In-memory backends for unit tests: dict-backed fakes."""

from __future__ import annotations

import copy
import itertools
from typing import Any

from usersync.core.exceptions import ConditionFailedError
from usersync.models.message import QueueMessage


class MemoryUserStore:
    """Dict-backed IUserStore for unit tests."""

    def __init__(self, partition_key: str = "id") -> None:
        self._partition_key = partition_key
        self._items: dict[str, dict[str, Any]] = {}

    def put_record(self, record: dict[str, Any]) -> None:
        self._items[record[self._partition_key]] = copy.deepcopy(record)

    def update_record(self, key: dict[str, Any], updates: dict[str, Any],
                      must_exist: bool = True) -> None:
        pk = key[self._partition_key]
        if pk not in self._items:
            if must_exist:
                raise ConditionFailedError(key)
            self._items[pk] = dict(key)
        self._items[pk].update(copy.deepcopy(updates))

    def query_by_index(self, index_name: str, conditions: dict[str, Any]) -> list[dict[str, Any]]:
        return [
            copy.deepcopy(item) for item in self._items.values()
            if all(item.get(k) == v for k, v in conditions.items())
        ]

    def query_by_key(self, key: dict[str, Any]) -> list[dict[str, Any]]:
        item = self._items.get(key[self._partition_key])
        return [copy.deepcopy(item)] if item is not None else []

    def get(self, user_id: str) -> dict[str, Any] | None:
        """Direct read for test assertions."""
        item = self._items.get(user_id)
        return copy.deepcopy(item) if item is not None else None

    def __len__(self) -> int:
        return len(self._items)


class MemoryMessageQueue:
    """List-backed IMessageQueue for unit tests.

    Received messages move to an in-flight set until deleted. Deleting an
    unknown or already-deleted handle is a no-op, as with SQS.
    """

    def __init__(self) -> None:
        self._pending: list[QueueMessage] = []
        self._in_flight: dict[str, QueueMessage] = {}
        self._ids = itertools.count(1)
        self.receive_calls: list[tuple[int, int]] = []
        self.deleted: list[str] = []

    def send(self, body: str | None) -> QueueMessage:
        n = next(self._ids)
        msg = QueueMessage(body=body, receipt_handle=f"handle-{n}", message_id=f"msg-{n}")
        self._pending.append(msg)
        return msg

    def receive_batch(self, max_messages: int = 10, wait_seconds: int = 20) -> list[QueueMessage]:
        self.receive_calls.append((max_messages, wait_seconds))
        batch, self._pending = self._pending[:max_messages], self._pending[max_messages:]
        for msg in batch:
            self._in_flight[msg.receipt_handle] = msg
        return batch

    def delete_message(self, receipt_handle: str) -> None:
        self._in_flight.pop(receipt_handle, None)
        self.deleted.append(receipt_handle)

    @property
    def in_flight(self) -> list[QueueMessage]:
        return list(self._in_flight.values())

    @property
    def pending(self) -> list[QueueMessage]:
        return list(self._pending)
