"""
Structured service outcomes.

Services never let expected failures escape as exceptions; they return a
``ServiceResult`` whose ``error`` names the failure kind so the HTTP layer can
map it to a status code without inspecting messages.
"""

from __future__ import annotations

import enum
from dataclasses import dataclass
from typing import Any


class ErrorKind(str, enum.Enum):
    VALIDATION = "validation"
    NOT_FOUND = "not_found"
    CONFLICT = "conflict"
    INVALID_CREDENTIALS = "invalid_credentials"
    ROLE_MISMATCH = "role_mismatch"
    INACTIVE = "inactive"
    FORBIDDEN = "forbidden"
    SERVER_ERROR = "server_error"


@dataclass
class ServiceResult:
    success: bool
    message: str
    data: Any = None
    token: str | None = None
    pagination: dict | None = None
    error: ErrorKind | None = None

    @classmethod
    def ok(cls, message: str, **payload: Any) -> ServiceResult:
        return cls(success=True, message=message, **payload)

    @classmethod
    def fail(cls, error: ErrorKind, message: str) -> ServiceResult:
        return cls(success=False, message=message, error=error)


SERVER_ERROR_MESSAGE = "Server error"
