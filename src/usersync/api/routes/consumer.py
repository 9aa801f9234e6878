"""Read endpoints over stored user records."""

from __future__ import annotations

from typing import Any, Optional

from fastapi import APIRouter, HTTPException, Query, Request

from usersync.core.exceptions import QueryError, UserNotFoundError
from usersync.services.query_service import UserQueryService

router = APIRouter(tags=["consumer"])


def _service(request: Request) -> UserQueryService:
    return request.app.state.query_service


def _http_error(exc: QueryError) -> HTTPException:
    if isinstance(exc, UserNotFoundError):
        return HTTPException(status_code=404, detail=str(exc))
    return HTTPException(status_code=400, detail=str(exc))


@router.get("/get-user-Status")
def get_user_status(
    request: Request,
    email: Optional[str] = Query(default=None),
    dob: Optional[str] = Query(default=None),
) -> dict[str, Any]:
    """Return id and status for the user with this email and date of birth."""
    try:
        result = _service(request).get_user_status(email, dob)
    except QueryError as exc:
        raise _http_error(exc) from exc
    return result.model_dump()


@router.get("/get-user-Details")
def get_user_details(
    request: Request,
    user_id: Optional[str] = Query(default=None, alias="id"),
) -> dict[str, Any]:
    """Return the full stored record for the ``id`` query parameter."""
    try:
        user = _service(request).get_entire_user_details(user_id)
    except QueryError as exc:
        raise _http_error(exc) from exc
    return {"user": user.to_item()}
