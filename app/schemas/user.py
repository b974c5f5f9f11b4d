"""Pydantic schemas for User CRUD and authentication payloads."""

from __future__ import annotations

from datetime import datetime
from typing import Annotated

from pydantic import AfterValidator, BaseModel, ConfigDict, Field, field_validator
from pydantic.alias_generators import to_camel

from app.models.user import ROLES, STATUSES

_VALID_ROLES = set(ROLES)
_VALID_STATUSES = set(STATUSES)

# JSON bodies use camelCase; Python code uses snake_case
_camel = ConfigDict(alias_generator=to_camel, populate_by_name=True)


def _normalise_email(v: str) -> str:
    v = v.strip().lower()
    if "@" not in v:
        raise ValueError("Invalid email address")
    return v


def _non_empty(v: str) -> str:
    v = v.strip()
    if not v:
        raise ValueError("Must not be empty")
    return v


Email = Annotated[str, AfterValidator(_normalise_email)]
NonEmptyStr = Annotated[str, AfterValidator(_non_empty)]


class UserMetadata(BaseModel):
    address: str | None = None
    phone: str | None = None
    age: int | None = Field(default=None, ge=0)
    gender: str | None = None


class UserRegister(BaseModel):
    """Self-registration body; role and status are not accepted here."""

    model_config = _camel

    first_name: NonEmptyStr
    last_name: NonEmptyStr
    middle_name: str | None = None
    email: Email
    password: str = Field(min_length=1)
    metadata: UserMetadata | None = None


class UserCreate(UserRegister):
    """Admin creation body — registration fields plus role and status."""

    role: str = "passenger"
    status: str = "active"

    @field_validator("role")
    @classmethod
    def _validate_role(cls, v: str) -> str:
        if v not in _VALID_ROLES:
            raise ValueError(f"Role must be one of: {sorted(_VALID_ROLES)}")
        return v

    @field_validator("status")
    @classmethod
    def _validate_status(cls, v: str) -> str:
        if v not in _VALID_STATUSES:
            raise ValueError(f"Status must be one of: {sorted(_VALID_STATUSES)}")
        return v


class UserUpdate(BaseModel):
    """Partial update — only the fields actually sent are applied."""

    model_config = _camel

    first_name: NonEmptyStr | None = None
    last_name: NonEmptyStr | None = None
    middle_name: str | None = None
    email: Email | None = None
    password: str | None = Field(default=None, min_length=1)
    role: str | None = None
    status: str | None = None
    avatar: str | None = None
    metadata: UserMetadata | None = None

    @field_validator("role")
    @classmethod
    def _validate_role(cls, v: str | None) -> str | None:
        if v is not None and v not in _VALID_ROLES:
            raise ValueError(f"Role must be one of: {sorted(_VALID_ROLES)}")
        return v

    @field_validator("status")
    @classmethod
    def _validate_status(cls, v: str | None) -> str | None:
        if v is not None and v not in _VALID_STATUSES:
            raise ValueError(f"Status must be one of: {sorted(_VALID_STATUSES)}")
        return v


class LoginRequest(BaseModel):
    email: str
    password: str
    role: str

    @field_validator("email")
    @classmethod
    def _normalise_email(cls, v: str) -> str:
        return v.strip().lower()


class AuthUser(BaseModel):
    """The authenticated caller as attached to the request (no password)."""

    id: str
    email: str
    first_name: str
    last_name: str
    middle_name: str | None = None
    role: str
    status: str
    created_at: datetime | None = None

    model_config = {"from_attributes": True}
