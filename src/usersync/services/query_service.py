"""Read-only user lookups backing the consumer HTTP endpoints."""

from __future__ import annotations

import structlog
from pydantic import ValidationError

from usersync.core.exceptions import (
    InvalidInputError,
    LookupFailedError,
    StoreError,
    UserNotFoundError,
)
from usersync.core.protocols import IUserStore
from usersync.models.user import UserRecord, UserStatus

logger = structlog.get_logger()


class UserQueryService:
    """Lookup by (email, dob) through the secondary index, or by id."""

    def __init__(self, store: IUserStore, email_dob_index: str = "email-dob-index") -> None:
        self._store = store
        self._email_dob_index = email_dob_index

    def get_user_status(self, email: str | None, dob: str | None) -> UserStatus:
        """Return id and status of the first user matching email and date of birth.

        Raises:
            InvalidInputError: either argument empty.
            UserNotFoundError: no matching user.
            LookupFailedError: the store query failed.
        """
        if not email or not dob:
            raise InvalidInputError("Both email and date of birth must be provided.")

        try:
            items = self._store.query_by_index(
                self._email_dob_index, {"email": email, "dob": dob},
            )
        except StoreError as exc:
            logger.error("user_status_lookup_failed", error=str(exc))
            raise LookupFailedError("Failed to check user status") from exc

        if not items:
            raise UserNotFoundError("User not found")
        first = items[0]
        try:
            return UserStatus(id=first["id"], status=first.get("status"))
        except (KeyError, ValidationError) as exc:
            logger.error("user_status_decode_failed", error=str(exc))
            raise LookupFailedError("Failed to check user status") from exc

    def get_entire_user_details(self, user_id: str | None) -> UserRecord:
        """Return the full record for ``user_id``."""
        if not user_id:
            raise InvalidInputError("User id must be provided.")

        try:
            items = self._store.query_by_key({"id": user_id})
        except StoreError as exc:
            logger.error("user_details_lookup_failed", user_id=user_id, error=str(exc))
            raise LookupFailedError("Failed to fetch user details") from exc

        if not items:
            raise UserNotFoundError("User not found")
        try:
            return UserRecord.model_validate(items[0])
        except ValidationError as exc:
            logger.error("user_details_decode_failed", user_id=user_id, error=str(exc))
            raise LookupFailedError("Failed to fetch user details") from exc
