"""
Self-registration and login.
"""

from __future__ import annotations

import logging

from sqlalchemy import select
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession

from app.core.config import Settings
from app.core.security import create_access_token, verify_password
from app.models.user import User, user_to_dict
from app.schemas.user import UserCreate, UserRegister
from app.services.results import SERVER_ERROR_MESSAGE, ErrorKind, ServiceResult
from app.services.user_service import UserService

logger = logging.getLogger(__name__)

LOGIN_SUMMARY_FIELDS = ("id", "firstName", "lastName", "middleName", "email", "role", "createdAt")

INVALID_CREDENTIALS = "Invalid credentials"
ROLE_MISMATCH = "Access denied: Invalid role for this login"


class AuthService:
    def __init__(self, db: AsyncSession, settings: Settings) -> None:
        self.db = db
        self.settings = settings

    async def register(self, data: UserRegister) -> ServiceResult:
        """Create an account through the same path as admin creation.

        The registration body carries no role or status, so both always take
        their defaults (``passenger`` / ``active``).
        """
        account = UserCreate.model_validate(data.model_dump())
        return await UserService(self.db, self.settings).create_account(account)

    async def login(self, email: str, password: str, role: str) -> ServiceResult:
        """Verify credentials against the claimed role and issue a token.

        A wrong role is reported separately from a wrong password, which tells
        a caller that the email exists; that is accepted for clearer login
        errors.  Soft-deleted accounts are treated as unknown, and accounts
        that are not ``active`` are refused once the password checks out.
        """
        try:
            result = await self.db.execute(select(User).where(User.email == email))
            user = result.scalar_one_or_none()
        except SQLAlchemyError:
            logger.exception("Login lookup failed for %s", email)
            return ServiceResult.fail(ErrorKind.SERVER_ERROR, SERVER_ERROR_MESSAGE)

        if user is None or user.is_deleted:
            return ServiceResult.fail(ErrorKind.INVALID_CREDENTIALS, INVALID_CREDENTIALS)
        if user.role != role:
            return ServiceResult.fail(ErrorKind.ROLE_MISMATCH, ROLE_MISMATCH)
        if not verify_password(password, user.password):
            return ServiceResult.fail(ErrorKind.INVALID_CREDENTIALS, INVALID_CREDENTIALS)
        if user.status != "active":
            return ServiceResult.fail(ErrorKind.INACTIVE, "Account is not active")

        token = create_access_token(user.id, self.settings)
        return ServiceResult.ok(
            "Login successful",
            data={"user": user_to_dict(user, LOGIN_SUMMARY_FIELDS), "token": token},
            token=token,
        )
