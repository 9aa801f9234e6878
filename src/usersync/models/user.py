"""User record as stored in the users table."""

from __future__ import annotations

from enum import StrEnum
from typing import Any, Optional

from pydantic import BaseModel, ConfigDict
from pydantic.alias_generators import to_camel


class UserStatusValue(StrEnum):
    ACTIVE = "active"
    UPDATED = "updated"


class UserRecord(BaseModel):
    """Single user item. Attribute names on the wire and in the table are camelCase."""

    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True, extra="allow")

    id: str
    first_name: Optional[str] = None
    last_name: Optional[str] = None
    email: Optional[str] = None
    dob: Optional[str] = None
    status: Optional[str] = None
    created_at: Optional[str] = None
    updated_at: Optional[str] = None

    def to_item(self) -> dict[str, Any]:
        """Table item with absent fields omitted rather than stored as null."""
        return self.model_dump(by_alias=True, exclude_none=True)


class UserStatus(BaseModel):
    """Result of a status lookup by email and date of birth."""

    id: str
    status: Optional[str] = None
