"""
User listing, lookup and mutations.

Every read and write here is scoped to live users (``is_deleted`` false)
except the email uniqueness check on creation, which also counts
soft-deleted accounts so an address can never be reused.
"""

from __future__ import annotations

import json
import logging
import math
from datetime import datetime, timezone
from typing import Any

from sqlalchemy import false, func, or_, select
from sqlalchemy.exc import IntegrityError, SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession

from app.core.config import Settings
from app.core.permissions import (
    PermissionDenied,
    require_admin_permission,
    require_delete_permission,
    require_write_permission,
)
from app.core.projection import Selection, apply_selection, build_selection
from app.core.security import create_access_token, get_password_hash
from app.models.user import (
    FIELD_COLUMNS,
    STRING_FIELDS,
    WRITE_ONLY_FIELDS,
    User,
    user_to_dict,
)
from app.schemas.common import Pagination
from app.schemas.user import UserCreate, UserUpdate
from app.services.results import SERVER_ERROR_MESSAGE, ErrorKind, ServiceResult

logger = logging.getLogger(__name__)

SEARCH_FIELDS = ("firstName", "lastName", "middleName", "email")
SORTABLE_FIELDS = frozenset(FIELD_COLUMNS) - WRITE_ONLY_FIELDS - {"metadata"}
DEFAULT_SORT = "createdAt"

CREATED_FIELDS = (
    "id", "firstName", "lastName", "middleName", "email",
    "role", "status", "metadata", "createdAt",
)


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


# ── Query building ──────────────────────────────────────────────────
def build_where(query: str | None = None, filters: dict[str, str] | None = None) -> list:
    """Predicates for a list query: live users, free-text search, equality filters."""
    conditions: list = [User.is_deleted.is_(False)]
    if query:
        conditions.append(
            or_(*(FIELD_COLUMNS[f].icontains(query, autoescape=True) for f in SEARCH_FIELDS))
        )
    for field, value in (filters or {}).items():
        if field in STRING_FIELDS:
            conditions.append(FIELD_COLUMNS[field] == value)
        else:
            # Unknown or non-text field: nothing can match
            conditions.append(false())
    return conditions


def build_order_by(sort: str | None, order: str = "desc") -> list:
    """Translate ``sort``/``order`` into ORDER BY clauses.

    *sort* is either a plain field name (paired with *order*) or a JSON
    object — or list of objects — mapping field names to ``asc``/``desc``.
    Raises ``ValueError`` on anything else.
    """
    if not sort:
        terms: list[tuple[str, str]] = [(DEFAULT_SORT, order)]
    elif sort.lstrip().startswith(("{", "[")):
        try:
            parsed = json.loads(sort)
        except ValueError as exc:
            raise ValueError("Invalid sort parameter") from exc
        items = parsed if isinstance(parsed, list) else [parsed]
        if not items or not all(isinstance(item, dict) for item in items):
            raise ValueError("Invalid sort parameter")
        terms = [(str(k), str(v).lower()) for item in items for k, v in item.items()]
    else:
        terms = [(sort.strip(), order)]

    clauses = []
    for field, direction in terms:
        if field not in SORTABLE_FIELDS or direction not in ("asc", "desc"):
            raise ValueError("Invalid sort parameter")
        column = FIELD_COLUMNS[field]
        clauses.append(column.asc() if direction == "asc" else column.desc())
    # Stable pages when the sort key has ties
    clauses.append(User.id.asc())
    return clauses


def selected_columns(selection: Selection) -> list:
    return [FIELD_COLUMNS[name].label(name) for name in selection if name in FIELD_COLUMNS]


# ── Service ─────────────────────────────────────────────────────────
class UserService:
    """User CRUD backed by an ``AsyncSession``.

    The session and settings are handed in by the caller; nothing here reads
    process-wide state.
    """

    def __init__(self, db: AsyncSession, settings: Settings) -> None:
        self.db = db
        self.settings = settings

    # ── Reads ────────────────────────────────────────────────────────
    async def list_users(
        self,
        *,
        page: int = 1,
        limit: int = 10,
        sort: str | None = None,
        order: str = "desc",
        fields: str | None = None,
        query: str | None = None,
        filters: dict[str, str] | None = None,
    ) -> ServiceResult:
        try:
            order_by = build_order_by(sort, order)
        except ValueError as exc:
            return ServiceResult.fail(ErrorKind.VALIDATION, str(exc))

        skip = (page - 1) * limit
        where = build_where(query, filters)
        selection = build_selection(fields, exclude=WRITE_ONLY_FIELDS)

        stmt = (
            select(*selected_columns(selection))
            .where(*where)
            .order_by(*order_by)
            .offset(skip)
            .limit(limit)
        )
        count_stmt = select(func.count()).select_from(User).where(*where)

        try:
            rows = (await self.db.execute(stmt)).mappings().all()
            total = (await self.db.execute(count_stmt)).scalar_one()
        except SQLAlchemyError:
            logger.exception("Failed to list users")
            return ServiceResult.fail(ErrorKind.SERVER_ERROR, SERVER_ERROR_MESSAGE)

        return ServiceResult.ok(
            "Users retrieved successfully",
            data=[apply_selection(row, selection) for row in rows],
            pagination=Pagination(
                total=total,
                page=page,
                limit=limit,
                totalPages=math.ceil(total / limit),
                hasMore=skip + limit < total,
            ).model_dump(),
        )

    async def get_user(self, user_id: str, fields: str | None = None) -> ServiceResult:
        selection = build_selection(fields, exclude=WRITE_ONLY_FIELDS)
        stmt = select(*selected_columns(selection)).where(
            User.id == user_id, User.is_deleted.is_(False)
        )
        try:
            row = (await self.db.execute(stmt)).mappings().first()
        except SQLAlchemyError:
            logger.exception("Failed to load user %s", user_id)
            return ServiceResult.fail(ErrorKind.SERVER_ERROR, SERVER_ERROR_MESSAGE)

        if row is None:
            return ServiceResult.fail(ErrorKind.NOT_FOUND, "User not found")
        return ServiceResult.ok("User retrieved successfully", data=apply_selection(row, selection))

    async def _get_live(self, user_id: str) -> User | None:
        result = await self.db.execute(
            select(User).where(User.id == user_id, User.is_deleted.is_(False))
        )
        return result.scalar_one_or_none()

    # ── Creation ─────────────────────────────────────────────────────
    async def create_user(self, data: UserCreate, acting_role: str | None) -> ServiceResult:
        """Admin-only creation."""
        try:
            require_admin_permission(acting_role)
        except PermissionDenied as exc:
            return ServiceResult.fail(ErrorKind.FORBIDDEN, exc.message)
        return await self.create_account(data)

    async def create_account(self, data: UserCreate) -> ServiceResult:
        """Check uniqueness, hash the password, persist, and issue a token."""
        try:
            existing = await self.db.execute(select(User.id).where(User.email == data.email))
            if existing.first() is not None:
                return ServiceResult.fail(ErrorKind.CONFLICT, "User already exists")

            user = User(
                first_name=data.first_name,
                last_name=data.last_name,
                middle_name=data.middle_name,
                email=data.email,
                password=get_password_hash(data.password),
                role=data.role,
                status=data.status,
                user_metadata=data.metadata.model_dump() if data.metadata else None,
                is_deleted=False,
            )
            self.db.add(user)
            await self.db.commit()
            await self.db.refresh(user)
        except IntegrityError:
            await self.db.rollback()
            return ServiceResult.fail(ErrorKind.CONFLICT, "User already exists")
        except SQLAlchemyError:
            await self.db.rollback()
            logger.exception("Failed to create user %s", data.email)
            return ServiceResult.fail(ErrorKind.SERVER_ERROR, SERVER_ERROR_MESSAGE)

        token = create_access_token(user.id, self.settings)
        logger.info("Created user %s (%s)", user.id, user.role)
        return ServiceResult.ok(
            "User created successfully",
            data=user_to_dict(user, CREATED_FIELDS),
            token=token,
        )

    # ── Update ───────────────────────────────────────────────────────
    async def update_user(
        self, user_id: str, data: UserUpdate, acting_role: str | None
    ) -> ServiceResult:
        try:
            require_write_permission(acting_role)
        except PermissionDenied as exc:
            return ServiceResult.fail(ErrorKind.FORBIDDEN, exc.message)

        changes: dict[str, Any] = data.model_dump(exclude_unset=True, exclude_none=True)
        try:
            user = await self._get_live(user_id)
            if user is None:
                return ServiceResult.fail(ErrorKind.NOT_FOUND, "User not found")

            if "email" in changes and changes["email"] != user.email:
                taken = await self.db.execute(
                    select(User.id).where(User.email == changes["email"], User.id != user.id)
                )
                if taken.first() is not None:
                    return ServiceResult.fail(ErrorKind.CONFLICT, "User already exists")

            if "password" in changes:
                changes["password"] = get_password_hash(changes["password"])
            if "metadata" in changes:
                # Sub-fields are merged, not replaced wholesale
                sent = data.metadata.model_dump(exclude_unset=True, exclude_none=True)  # type: ignore[union-attr]
                user.user_metadata = {**(user.user_metadata or {}), **sent}
                del changes["metadata"]

            for name, value in changes.items():
                setattr(user, name, value)
            user.updated_at = _utcnow()

            await self.db.commit()
            await self.db.refresh(user)
        except IntegrityError:
            await self.db.rollback()
            return ServiceResult.fail(ErrorKind.CONFLICT, "User already exists")
        except SQLAlchemyError:
            await self.db.rollback()
            logger.exception("Failed to update user %s", user_id)
            return ServiceResult.fail(ErrorKind.SERVER_ERROR, SERVER_ERROR_MESSAGE)

        return ServiceResult.ok("User updated successfully", data=user_to_dict(user))

    # ── Soft delete ──────────────────────────────────────────────────
    async def delete_user(self, user_id: str, acting_role: str | None) -> ServiceResult:
        try:
            require_delete_permission(acting_role)
        except PermissionDenied as exc:
            return ServiceResult.fail(ErrorKind.FORBIDDEN, exc.message)

        try:
            user = await self._get_live(user_id)
            if user is None:
                return ServiceResult.fail(ErrorKind.NOT_FOUND, "User not found")
            user.is_deleted = True
            user.updated_at = _utcnow()
            await self.db.commit()
        except SQLAlchemyError:
            await self.db.rollback()
            logger.exception("Failed to delete user %s", user_id)
            return ServiceResult.fail(ErrorKind.SERVER_ERROR, SERVER_ERROR_MESSAGE)

        logger.info("Soft-deleted user %s", user_id)
        return ServiceResult.ok("User deleted successfully")

