"""
FastAPI dependencies — database session, services, and auth guards.

Guards run in order: ``get_current_user`` authenticates the bearer token,
then ``require_role`` / ``require_permission`` gate on the resolved user.
"""

from __future__ import annotations

from collections.abc import AsyncGenerator
from typing import Optional

from fastapi import Depends, HTTPException, Request, status
from fastapi.security import OAuth2PasswordBearer
from sqlalchemy import select
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession

from app.core.config import Settings, get_settings
from app.core.permissions import DELETE_USERS, WRITE_USERS, has_any_permission, is_role_allowed
from app.core.security import decode_access_token
from app.db.session import async_session_factory
from app.models.user import User
from app.schemas.user import AuthUser
from app.services.auth_service import AuthService
from app.services.user_service import UserService

# auto_error=False so a missing header gets our own 401 message
oauth2_scheme = OAuth2PasswordBearer(tokenUrl="/api/auth/login", auto_error=False)

NO_TOKEN = "No token, authorization denied"
TOKEN_NOT_VALID = "Token is not valid"
INSUFFICIENT_PERMISSIONS = "Insufficient permissions"


# ── Database session ────────────────────────────────────────────────
async def get_db() -> AsyncGenerator[AsyncSession, None]:
    async with async_session_factory() as session:
        try:
            yield session
        finally:
            await session.close()


# ── Services ────────────────────────────────────────────────────────
def get_user_service(
    db: AsyncSession = Depends(get_db),
    settings: Settings = Depends(get_settings),
) -> UserService:
    return UserService(db, settings)


def get_auth_service(
    db: AsyncSession = Depends(get_db),
    settings: Settings = Depends(get_settings),
) -> AuthService:
    return AuthService(db, settings)


# ── Authentication ──────────────────────────────────────────────────
def _unauthorized(detail: str) -> HTTPException:
    return HTTPException(
        status_code=status.HTTP_401_UNAUTHORIZED,
        detail=detail,
        headers={"WWW-Authenticate": "Bearer"},
    )


async def get_current_user(
    request: Request,
    token: Optional[str] = Depends(oauth2_scheme),
    db: AsyncSession = Depends(get_db),
    settings: Settings = Depends(get_settings),
) -> AuthUser:
    """Decode the bearer token and re-resolve a live, active user.

    The user is looked up on every request so deactivating or deleting an
    account revokes its outstanding tokens immediately.
    """
    if not token:
        raise _unauthorized(NO_TOKEN)

    payload = decode_access_token(token, settings)
    if payload is None or not payload.get("sub"):
        raise _unauthorized(TOKEN_NOT_VALID)

    try:
        result = await db.execute(
            select(User).where(
                User.id == str(payload["sub"]),
                User.is_deleted.is_(False),
                User.status == "active",
            )
        )
    except SQLAlchemyError as exc:
        raise _unauthorized(TOKEN_NOT_VALID) from exc
    user = result.scalar_one_or_none()
    if user is None:
        raise _unauthorized(TOKEN_NOT_VALID)

    current = AuthUser.model_validate(user)
    request.state.user = current
    return current


# ── Authorization ───────────────────────────────────────────────────
def _forbidden() -> HTTPException:
    return HTTPException(status_code=status.HTTP_403_FORBIDDEN, detail=INSUFFICIENT_PERMISSIONS)


def require_role(*allowed_roles: str):
    """Dependency factory: only callers whose role is listed may proceed."""

    async def _role_guard(
        current_user: Optional[AuthUser] = Depends(get_current_user),
    ) -> AuthUser:
        if current_user is None:
            raise _unauthorized("Authentication required")
        if not is_role_allowed(current_user.role, allowed_roles):
            raise _forbidden()
        return current_user

    return _role_guard


def require_permission(*permissions: str):
    """Dependency factory: the caller's role must hold at least one permission."""

    async def _permission_guard(
        current_user: Optional[AuthUser] = Depends(get_current_user),
    ) -> AuthUser:
        if current_user is None:
            raise _unauthorized("Authentication required")
        if not has_any_permission(current_user.role, permissions):
            raise _forbidden()
        return current_user

    return _permission_guard


require_admin = require_role("admin")
require_driver = require_role("driver", "admin")
require_passenger = require_role("passenger", "admin")
require_write_permission = require_permission(WRITE_USERS)
require_delete_permission = require_permission(DELETE_USERS)
