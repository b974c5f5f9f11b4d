"""
User endpoints.

- GET operations require any authenticated user.
- POST /user/admin requires the admin role.
- PATCH requires ``write:users``; PUT (soft delete) requires ``delete:users``.
"""

import logging
from typing import Literal, Optional

from fastapi import APIRouter, Depends, HTTPException, Query, Request

from app.api.v1.deps import (
    get_current_user,
    get_user_service,
    require_admin,
    require_delete_permission,
    require_write_permission,
)
from app.api.v1.results import raise_for_result
from app.core.filters import collect_filters
from app.core.limiter import api_limit
from app.core.logging import request_context
from app.schemas.common import MessageResponse
from app.schemas.user import AuthUser, UserCreate, UserUpdate
from app.services.user_service import UserService

router = APIRouter(prefix="/user", tags=["users"])
logger = logging.getLogger(__name__)


def _log_failure(request: Request, what: str, message: str) -> None:
    logger.warning("%s: %s | %s", what, message, request_context(request))


@router.get("")
@api_limit
async def list_users(
    request: Request,
    page: int = Query(1, ge=1),
    limit: int = Query(10, ge=1),
    sort: Optional[str] = None,
    order: Literal["asc", "desc"] = "desc",
    fields: Optional[str] = None,
    query: Optional[str] = None,
    _user: AuthUser = Depends(get_current_user),
    user_service: UserService = Depends(get_user_service),
) -> dict:
    """List live users with paging, sorting, search, projection and ``filter_*`` params."""
    if len(request.query_params.getlist("fields")) > 1:
        _log_failure(request, "Invalid fields parameter", "array-valued")
        raise HTTPException(status_code=400, detail="Fields must be a string")

    filters = collect_filters(request.query_params.multi_items())
    result = await user_service.list_users(
        page=page,
        limit=limit,
        sort=sort,
        order=order,
        fields=fields,
        query=query,
        filters=filters or None,
    )
    if not result.success:
        _log_failure(request, "Failed to fetch users", result.message)
    raise_for_result(result)

    logger.info("Successfully retrieved %d users | %s", len(result.data), request_context(request))
    return {
        "success": True,
        "message": result.message,
        "data": result.data,
        "pagination": result.pagination,
    }


@router.post("/admin", status_code=201)
@api_limit
async def create_user_admin(
    body: UserCreate,
    request: Request,
    current_user: AuthUser = Depends(require_admin),
    user_service: UserService = Depends(get_user_service),
) -> dict:
    """Create a user with any role/status (admin only)."""
    result = await user_service.create_user(body, current_user.role)
    if not result.success:
        _log_failure(request, "Failed to create user", result.message)
    raise_for_result(result)

    logger.info("Successfully created user: %s | %s", body.email, request_context(request))
    return {
        "success": True,
        "message": result.message,
        "data": result.data,
        "token": result.token,
    }


@router.get("/{user_id}")
@api_limit
async def get_user(
    user_id: str,
    request: Request,
    fields: Optional[str] = None,
    _user: AuthUser = Depends(get_current_user),
    user_service: UserService = Depends(get_user_service),
) -> dict:
    result = await user_service.get_user(user_id, fields)
    if not result.success:
        _log_failure(request, f"User not found with ID: {user_id}", result.message)
    raise_for_result(result)

    logger.info("Successfully retrieved user: %s | %s", user_id, request_context(request))
    return {"success": True, "message": result.message, "data": result.data}


@router.patch("/{user_id}")
@api_limit
async def update_user(
    user_id: str,
    body: UserUpdate,
    request: Request,
    current_user: AuthUser = Depends(require_write_permission),
    user_service: UserService = Depends(get_user_service),
) -> dict:
    """Partial update; omitted fields are left untouched."""
    result = await user_service.update_user(user_id, body, current_user.role)
    if not result.success:
        _log_failure(request, f"Failed to update user: {user_id}", result.message)
    raise_for_result(result)

    logger.info("Successfully updated user: %s | %s", user_id, request_context(request))
    return {"success": True, "message": result.message, "data": result.data}


@router.put("/{user_id}", response_model=MessageResponse)
@api_limit
async def delete_user(
    user_id: str,
    request: Request,
    current_user: AuthUser = Depends(require_delete_permission),
    user_service: UserService = Depends(get_user_service),
) -> MessageResponse:
    """Soft delete — flags the record, never removes it."""
    result = await user_service.delete_user(user_id, current_user.role)
    if not result.success:
        _log_failure(request, f"Failed to delete user: {user_id}", result.message)
    raise_for_result(result)

    logger.info("Successfully deleted user: %s | %s", user_id, request_context(request))
    return MessageResponse(message=result.message)
