"""Tests for the role → permission table and the service-level guards."""

import pytest

from app.core.permissions import (
    ADMIN_ALL,
    DELETE_USERS,
    READ_USERS,
    WRITE_USERS,
    PermissionDenied,
    check_permission,
    has_all_permissions,
    has_any_permission,
    has_permission,
    is_role_allowed,
    require_admin_permission,
    require_delete_permission,
    require_write_permission,
)

ALL_PERMISSIONS = [READ_USERS, WRITE_USERS, DELETE_USERS, ADMIN_ALL]


@pytest.mark.parametrize("role", ["driver", "passenger", "unknown", None])
def test_only_admin_holds_admin_all(role):
    assert has_permission(role, ADMIN_ALL) is False
    assert has_permission("admin", ADMIN_ALL) is True


@pytest.mark.parametrize("permission", ALL_PERMISSIONS + ["anything:else"])
def test_admin_satisfies_every_permission(permission):
    assert has_permission("admin", permission) is True


@pytest.mark.parametrize("role", ["driver", "passenger"])
def test_non_admin_roles_can_only_read(role):
    assert has_permission(role, READ_USERS) is True
    assert has_permission(role, WRITE_USERS) is False
    assert has_permission(role, DELETE_USERS) is False


def test_unknown_role_fails_every_check_without_raising():
    for permission in ALL_PERMISSIONS:
        assert has_permission("superuser", permission) is False
    assert has_any_permission("superuser", ALL_PERMISSIONS) is False
    assert is_role_allowed("superuser", ["admin", "driver", "passenger"]) is False


def test_any_and_all_combinators():
    assert has_any_permission("driver", [WRITE_USERS, READ_USERS]) is True
    assert has_all_permissions("driver", [WRITE_USERS, READ_USERS]) is False
    assert has_all_permissions("admin", ALL_PERMISSIONS) is True
    assert has_any_permission("driver", []) is False
    assert has_all_permissions("driver", []) is True


def test_is_role_allowed_is_plain_membership():
    assert is_role_allowed("driver", ["driver", "admin"]) is True
    assert is_role_allowed("passenger", ["driver", "admin"]) is False
    # admin gets no special treatment here
    assert is_role_allowed("admin", ["driver"]) is False


def test_service_guards_raise_permission_denied():
    with pytest.raises(PermissionDenied) as exc_info:
        require_write_permission("driver")
    assert exc_info.value.message == "Insufficient permissions"

    with pytest.raises(PermissionDenied):
        require_delete_permission("passenger")
    with pytest.raises(PermissionDenied):
        require_admin_permission("driver")

    require_write_permission("admin")
    require_delete_permission("admin")
    require_admin_permission("admin")


def test_guards_require_a_role():
    with pytest.raises(PermissionDenied) as exc_info:
        check_permission(None, READ_USERS)
    assert exc_info.value.message == "Authentication required"
