"""Protocol interfaces for all UserSync abstractions.

All inter-layer communication uses these Protocols: structural typing,
no inheritance required, easy to test with isinstance().
"""

from __future__ import annotations

from typing import Any, Protocol, runtime_checkable

from usersync.models.message import QueueMessage


# ---------------------------------------------------------------------------
# Persistence: User Store
# ---------------------------------------------------------------------------

@runtime_checkable
class IUserStore(Protocol):
    """Key-value user table with conditional update and index query."""

    def put_record(self, record: dict[str, Any]) -> None: ...

    def update_record(
        self, key: dict[str, Any], updates: dict[str, Any], must_exist: bool = True
    ) -> None: ...

    def query_by_index(
        self, index_name: str, conditions: dict[str, Any]
    ) -> list[dict[str, Any]]: ...

    def query_by_key(self, key: dict[str, Any]) -> list[dict[str, Any]]: ...


# ---------------------------------------------------------------------------
# Messaging: Queue
# ---------------------------------------------------------------------------

@runtime_checkable
class IMessageQueue(Protocol):
    """SQS-compatible receive/delete interface."""

    def receive_batch(self, max_messages: int, wait_seconds: int) -> list[QueueMessage]: ...

    def delete_message(self, receipt_handle: str) -> None: ...
