"""
User model — the only persisted entity.

Attribute names are snake_case; the public (JSON) field names are
camelCase and are mapped onto columns through ``FIELD_COLUMNS``.
"""

from __future__ import annotations

import uuid
from datetime import datetime, timezone

from sqlalchemy import JSON, Boolean, Column, DateTime, String, false

from app.db.base import Base

ROLES = ("admin", "driver", "passenger")
STATUSES = ("active", "inactive", "banned")


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


def _new_id() -> str:
    return str(uuid.uuid4())


class User(Base):
    __tablename__ = "users"

    id: str = Column(String(36), primary_key=True, default=_new_id)  # type: ignore[assignment]
    first_name: str = Column(String(100), nullable=False)  # type: ignore[assignment]
    last_name: str = Column(String(100), nullable=False)  # type: ignore[assignment]
    middle_name: str | None = Column(String(100), nullable=True)  # type: ignore[assignment]
    email: str = Column(String(320), unique=True, nullable=False, index=True)  # type: ignore[assignment]
    password: str = Column(String(128), nullable=False)  # type: ignore[assignment]
    role: str = Column(  # type: ignore[assignment]
        String(20),
        nullable=False,
        default="passenger",
        server_default="passenger",
        index=True,
    )  # admin | driver | passenger
    status: str = Column(  # type: ignore[assignment]
        String(20),
        nullable=False,
        default="active",
        server_default="active",
        index=True,
    )  # active | inactive | banned
    avatar: str | None = Column(String(500), nullable=True)  # type: ignore[assignment]
    # "metadata" is reserved on declarative classes
    user_metadata: dict | None = Column("metadata", JSON, nullable=True)  # type: ignore[assignment]
    is_deleted: bool = Column(  # type: ignore[assignment]
        Boolean, nullable=False, default=False, server_default=false(), index=True
    )
    created_at: datetime = Column(  # type: ignore[assignment]
        DateTime(timezone=True), nullable=False, default=_utcnow, index=True
    )
    updated_at: datetime = Column(  # type: ignore[assignment]
        DateTime(timezone=True), nullable=False, default=_utcnow
    )


# Public field name -> mapped column
FIELD_COLUMNS = {
    "id": User.id,
    "firstName": User.first_name,
    "lastName": User.last_name,
    "middleName": User.middle_name,
    "email": User.email,
    "password": User.password,
    "role": User.role,
    "status": User.status,
    "avatar": User.avatar,
    "metadata": User.user_metadata,
    "isDeleted": User.is_deleted,
    "createdAt": User.created_at,
    "updatedAt": User.updated_at,
}

# Fields no read path may ever return
WRITE_ONLY_FIELDS = frozenset({"password"})

# Columns holding plain strings; only these take part in equality filters
STRING_FIELDS = frozenset(
    {"id", "firstName", "lastName", "middleName", "email", "role", "status", "avatar"}
)

# Public field name -> ORM attribute name, for building payloads
FIELD_ATTRS = {name: column.key for name, column in FIELD_COLUMNS.items()}


def user_to_dict(user: User, fields: tuple[str, ...] | None = None) -> dict:
    """Serialise a ``User`` to its public camelCase shape, password excluded."""
    names = fields or tuple(FIELD_COLUMNS)
    return {
        name: getattr(user, FIELD_ATTRS[name])
        for name in names
        if name in FIELD_ATTRS and name not in WRITE_ONLY_FIELDS
    }
