"""
Role-based access control — static role → permission table.

``admin:all`` acts as a wildcard.  An unknown role maps to an empty set and
therefore fails every check.
"""

from __future__ import annotations

from collections.abc import Iterable

READ_USERS = "read:users"
WRITE_USERS = "write:users"
DELETE_USERS = "delete:users"
ADMIN_ALL = "admin:all"

ROLE_PERMISSIONS: dict[str, frozenset[str]] = {
    "admin": frozenset({READ_USERS, WRITE_USERS, DELETE_USERS, ADMIN_ALL}),
    "driver": frozenset({READ_USERS}),
    "passenger": frozenset({READ_USERS}),
}


class PermissionDenied(Exception):
    """Raised by the service-level guards when the acting role falls short."""

    def __init__(self, message: str = "Insufficient permissions") -> None:
        super().__init__(message)
        self.message = message


def has_permission(role: str | None, permission: str) -> bool:
    granted = ROLE_PERMISSIONS.get(role or "", frozenset())
    return permission in granted or ADMIN_ALL in granted


def has_any_permission(role: str | None, permissions: Iterable[str]) -> bool:
    return any(has_permission(role, p) for p in permissions)


def has_all_permissions(role: str | None, permissions: Iterable[str]) -> bool:
    return all(has_permission(role, p) for p in permissions)


def is_role_allowed(role: str | None, allowed_roles: Iterable[str]) -> bool:
    return role in set(allowed_roles)


# ── Service-level guards ────────────────────────────────────────────
def check_permission(role: str | None, permission: str) -> None:
    if role is None:
        raise PermissionDenied("Authentication required")
    if not has_permission(role, permission):
        raise PermissionDenied()


def check_role(role: str | None, allowed_roles: Iterable[str]) -> None:
    if role is None:
        raise PermissionDenied("Authentication required")
    if not is_role_allowed(role, allowed_roles):
        raise PermissionDenied()


def require_admin_permission(role: str | None) -> None:
    check_role(role, ["admin"])


def require_write_permission(role: str | None) -> None:
    check_permission(role, WRITE_USERS)


def require_delete_permission(role: str | None) -> None:
    check_permission(role, DELETE_USERS)
