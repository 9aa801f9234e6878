"""Event dispatcher: applies one queue message to the user store.

The dispatcher never raises. Every failure is logged and reported back as a
DispatchResult so the consume loop can decide what to do with the message.
"""

from __future__ import annotations

from enum import StrEnum
from typing import Callable, Optional

import structlog
from pydantic import BaseModel

from usersync.core.clock import new_user_id, utc_timestamp
from usersync.core.exceptions import ConditionFailedError, InvalidEventError
from usersync.core.protocols import IUserStore
from usersync.models.events import (
    CreateUserEvent,
    UpdateStatusEvent,
    UpdateUserEvent,
    UserEvent,
    parse_event,
)
from usersync.models.message import QueueMessage
from usersync.models.user import UserRecord, UserStatusValue

logger = structlog.get_logger()


class DispatchOutcome(StrEnum):
    CREATED = "CREATED"
    UPDATED = "UPDATED"
    STATUS_UPDATED = "STATUS_UPDATED"
    IGNORED = "IGNORED"  # unknown operation
    INVALID = "INVALID"  # malformed envelope
    REJECTED = "REJECTED"  # conditional update on a missing id
    FAILED = "FAILED"  # store or unexpected error


class DispatchResult(BaseModel):
    """What happened to one message."""

    outcome: DispatchOutcome
    operation: Optional[str] = None
    user_id: Optional[str] = None
    error: str = ""

    @property
    def succeeded(self) -> bool:
        return self.outcome in (
            DispatchOutcome.CREATED,
            DispatchOutcome.UPDATED,
            DispatchOutcome.STATUS_UPDATED,
        )


class EventDispatcher:
    """Routes create / update / updateStatus events to the user store."""

    def __init__(
        self,
        store: IUserStore,
        *,
        clock: Callable[[], str] = utc_timestamp,
        id_factory: Callable[[], str] = new_user_id,
    ) -> None:
        self._store = store
        self._clock = clock
        self._id_factory = id_factory

    def dispatch(self, message: QueueMessage) -> DispatchResult:
        """Parse and apply a message. Never raises."""
        try:
            event = parse_event(message.body)
        except InvalidEventError as exc:
            logger.error("user_event_invalid", message_id=message.message_id, error=exc.reason)
            return DispatchResult(outcome=DispatchOutcome.INVALID, error=exc.reason)
        except Exception as exc:
            logger.error("user_event_unparseable", message_id=message.message_id, error=repr(exc))
            return DispatchResult(outcome=DispatchOutcome.INVALID, error=repr(exc))

        user_id = getattr(event, "user_id", None)
        try:
            return self._apply(event)
        except ConditionFailedError as exc:
            logger.error(
                "user_update_rejected", message_id=message.message_id,
                operation=str(event.operation), user_id=user_id, error=str(exc),
            )
            return DispatchResult(
                outcome=DispatchOutcome.REJECTED, operation=str(event.operation),
                user_id=user_id, error=str(exc),
            )
        except Exception as exc:
            logger.error(
                "user_event_failed", message_id=message.message_id,
                operation=str(event.operation), user_id=user_id, error=str(exc),
            )
            return DispatchResult(
                outcome=DispatchOutcome.FAILED, operation=str(event.operation),
                user_id=user_id, error=str(exc),
            )

    def _apply(self, event: UserEvent) -> DispatchResult:
        if isinstance(event, CreateUserEvent):
            return self._create(event)
        if isinstance(event, UpdateUserEvent):
            return self._update(event)
        if isinstance(event, UpdateStatusEvent):
            return self._update_status(event)

        logger.warning("unknown_operation", operation=event.operation)
        return DispatchResult(outcome=DispatchOutcome.IGNORED, operation=str(event.operation))

    def _create(self, event: CreateUserEvent) -> DispatchResult:
        now = self._clock()
        user = event.user
        record = UserRecord(
            id=self._id_factory(),
            first_name=user.first_name,
            last_name=user.last_name,
            email=user.email,
            dob=user.dob,
            status=user.status or UserStatusValue.ACTIVE.value,
            created_at=now,
            updated_at=now,
        )
        self._store.put_record(record.to_item())
        logger.info("user_created", user_id=record.id, first_name=user.first_name)
        return DispatchResult(
            outcome=DispatchOutcome.CREATED, operation=str(event.operation), user_id=record.id,
        )

    def _update(self, event: UpdateUserEvent) -> DispatchResult:
        user = event.user
        self._store.update_record(
            {"id": event.user_id},
            {
                "firstName": user.first_name or "",
                "lastName": user.last_name or "",
                "dob": user.dob or "",
                "updatedAt": self._clock(),
                "status": UserStatusValue.UPDATED.value,
            },
            must_exist=True,
        )
        logger.info("user_updated", user_id=event.user_id)
        return DispatchResult(
            outcome=DispatchOutcome.UPDATED, operation=str(event.operation), user_id=event.user_id,
        )

    def _update_status(self, event: UpdateStatusEvent) -> DispatchResult:
        self._store.update_record(
            {"id": event.user_id},
            {"status": event.user.status or "", "updatedAt": self._clock()},
            must_exist=True,
        )
        logger.info("user_status_updated", user_id=event.user_id, status=event.user.status)
        return DispatchResult(
            outcome=DispatchOutcome.STATUS_UPDATED, operation=str(event.operation),
            user_id=event.user_id,
        )
