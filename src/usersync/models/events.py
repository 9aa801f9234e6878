"""Inbound user-lifecycle event envelope.

Queue bodies look like ``{"user": {...}, "operation": "create"}``. They are
parsed into exactly one of the event types below before dispatch, so the
dispatcher never has to probe for field presence.
"""

from __future__ import annotations

import json
from enum import StrEnum
from typing import Literal, Optional, Union

from pydantic import BaseModel, ConfigDict, ValidationError
from pydantic.alias_generators import to_camel

from usersync.core.exceptions import InvalidEventError


class UserOperation(StrEnum):
    CREATE = "create"
    UPDATE = "update"
    UPDATE_STATUS = "updateStatus"


class UserPayload(BaseModel):
    """Partial user fields carried by an event."""

    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True, extra="ignore")

    id: Optional[str] = None
    first_name: Optional[str] = None
    last_name: Optional[str] = None
    email: Optional[str] = None
    dob: Optional[str] = None
    status: Optional[str] = None


class CreateUserEvent(BaseModel):
    operation: Literal[UserOperation.CREATE] = UserOperation.CREATE
    user: UserPayload


class UpdateUserEvent(BaseModel):
    operation: Literal[UserOperation.UPDATE] = UserOperation.UPDATE
    user_id: str
    user: UserPayload


class UpdateStatusEvent(BaseModel):
    operation: Literal[UserOperation.UPDATE_STATUS] = UserOperation.UPDATE_STATUS
    user_id: str
    user: UserPayload


class UnknownOperationEvent(BaseModel):
    operation: str
    user: UserPayload


UserEvent = Union[CreateUserEvent, UpdateUserEvent, UpdateStatusEvent, UnknownOperationEvent]


def parse_event(body: Optional[str]) -> UserEvent:
    """Parse a raw message body into a typed event.

    Raises:
        InvalidEventError: body missing, not JSON, lacking ``user`` or
            ``operation``, or an update without ``user.id``.
    """
    if not body:
        raise InvalidEventError("Message body is missing")

    try:
        raw = json.loads(body)
    except (ValueError, RecursionError) as exc:
        # JSONDecodeError, oversized int literals, excessive nesting
        raise InvalidEventError(f"Message body is not valid JSON: {exc}") from exc

    if not isinstance(raw, dict):
        raise InvalidEventError("Invalid message structure")
    user_raw = raw.get("user")
    operation = raw.get("operation")
    if not isinstance(user_raw, dict) or not operation:
        raise InvalidEventError("Invalid message structure")
    if not isinstance(operation, str):
        raise InvalidEventError(f"Operation must be a string, got {operation!r}")

    try:
        user = UserPayload.model_validate(user_raw)
    except ValidationError as exc:
        raise InvalidEventError(f"Invalid user payload: {exc}") from exc

    if operation == UserOperation.CREATE:
        return CreateUserEvent(user=user)
    if operation == UserOperation.UPDATE:
        if not user.id:
            raise InvalidEventError("Correct ID required for update operation")
        return UpdateUserEvent(user_id=user.id, user=user)
    if operation == UserOperation.UPDATE_STATUS:
        if not user.id:
            raise InvalidEventError("ID required for status update operation")
        return UpdateStatusEvent(user_id=user.id, user=user)
    return UnknownOperationEvent(operation=operation, user=user)
