from __future__ import annotations

import hashlib

import pytest

from hcms.core.exceptions import AuthenticationError, AuthorizationError, NotFoundError, ValidationError
from hcms.database.collections import Collections
from hcms.devices.model import DeviceInfo
from hcms.devices.service import DeviceService
from hcms.users.model import ALL_PERMISSION_FLAGS
from hcms.users.passwords import hash_password, verify_password
from hcms.users.service import INVALID_CREDENTIALS, INVALID_PHONE, AuthService, UserService

DEVICE = DeviceInfo(device_id="dev-1", browser="Chrome", os="Windows", device_type="desktop", user_agent="ua")


def test_staff_login_returns_public_user_and_permissions(store, seeded):
    result = AuthService(store).login("emp", "emp-pass")

    assert result.user["username"] == "emp"
    assert "password_hash" not in result.user
    assert result.permissions["can_assign_training"] is True
    assert result.permissions["can_manage_users"] is False
    assert not result.is_teacher


def test_admin_gets_every_permission(store, seeded):
    result = AuthService(store).login("admin", "admin-pass")
    assert all(result.permissions[flag] for flag in ALL_PERMISSION_FLAGS)


def test_user_without_permission_document_gets_all_false(store, seeded):
    result = AuthService(store).login("view", "view-pass")
    assert not any(result.permissions[flag] for flag in ALL_PERMISSION_FLAGS)


@pytest.mark.parametrize("username, password", [("emp", "nope"), ("ghost", "emp-pass"), ("", "")])
def test_bad_credentials_do_not_say_which_part_failed(store, seeded, username, password):
    with pytest.raises(AuthenticationError) as exc:
        AuthService(store).login(username, password)
    assert str(exc.value) == INVALID_CREDENTIALS


def test_inactive_user_cannot_login(store, seeded):
    store.update_by_id(Collections.USERS, seeded["employee"]["id"], {"is_active": False})
    with pytest.raises(AuthenticationError):
        AuthService(store).login("emp", "emp-pass")


def test_legacy_hash_is_upgraded_after_login(store):
    user = store.seed(
        Collections.USERS,
        {"username": "old", "password_hash": hashlib.sha256(b"pw").hexdigest(), "full_name": "Old", "role": "employee", "is_active": True},
    )

    AuthService(store).login("old", "pw")

    stored = store.find_by_id(Collections.USERS, user["id"])["password_hash"]
    assert not stored.startswith(hashlib.sha256(b"pw").hexdigest())
    assert verify_password("pw", stored)


def test_blocked_device_refuses_login(store, seeded):
    devices = DeviceService(store)
    auth = AuthService(store, devices)
    auth.login("emp", "emp-pass", device=DEVICE)
    device = store.find_one(Collections.USER_DEVICES, {"user_id": seeded["employee"]["id"]})
    devices.set_blocked(device["id"], blocked=True)

    with pytest.raises(AuthorizationError):
        auth.login("emp", "emp-pass", device=DEVICE)


def test_teacher_password_login(store):
    store.seed(
        Collections.TEACHERS,
        {"first_name": "Jane", "last_name": "Smith", "username": "jane.smith", "password_hash": hash_password("T3ach!ng1"), "is_active_login": True},
    )
    result = AuthService(store).login("jane.smith", "T3ach!ng1", role="teacher")
    assert result.is_teacher
    assert result.permissions is None
    assert result.user["first_name"] == "Jane"


def test_teacher_login_by_phone(store):
    store.seed(Collections.TEACHERS, {"first_name": "A", "phone": "555-1", "is_active_login": True, "status": "active"})
    store.seed(Collections.TEACHERS, {"first_name": "B", "phone": "555-2", "is_active_login": True, "status": "inactive"})

    assert AuthService(store).teacher_login(" 555-1 ")["first_name"] == "A"
    with pytest.raises(AuthenticationError) as exc:
        AuthService(store).teacher_login("555-2")
    assert str(exc.value) == INVALID_PHONE


def test_create_user_generates_credentials_and_permissions(store, seeded):
    svc = UserService(store)

    created = svc.create_user(full_name="Nora Newhire", role="employee", permissions={"can_view_reports": True})

    assert created.username.startswith("noranewhire")
    assert len(created.password) == 12
    assert AuthService(store).login(created.username, created.password).permissions["can_view_reports"] is True


def test_create_user_rejects_bad_role_and_duplicate_username(store, seeded):
    svc = UserService(store)
    with pytest.raises(ValidationError):
        svc.create_user(full_name="X", role="superuser")
    with pytest.raises(ValidationError):
        svc.create_user(full_name="X", role="employee", username="emp")


def test_set_permissions_rejects_unknown_flags(store, seeded):
    with pytest.raises(ValidationError):
        UserService(store).set_permissions(seeded["employee"]["id"], {"can_fly": True})


def test_toggle_active_refuses_own_account(store, seeded):
    svc = UserService(store)
    admin_id = seeded["admin"]["id"]
    with pytest.raises(ValidationError):
        svc.toggle_active(admin_id, current_user_id=admin_id)

    assert svc.toggle_active(seeded["employee"]["id"], current_user_id=admin_id) is False


def test_regenerate_password_replaces_the_old_one(store, seeded):
    creds = UserService(store).regenerate_password(seeded["employee"]["id"])
    with pytest.raises(AuthenticationError):
        AuthService(store).login("emp", "emp-pass")
    assert AuthService(store).login("emp", creds.password).user["username"] == "emp"


def test_delete_user_cascades(store, seeded):
    employee_id = seeded["employee"]["id"]
    store.seed(Collections.USER_DEVICES, {"user_id": employee_id, "device_id": "x"})

    UserService(store).delete_user(employee_id, current_user_id=seeded["admin"]["id"])

    assert store.find_by_id(Collections.USERS, employee_id) is None
    assert store.count(Collections.PERMISSIONS, {"user_id": employee_id}) == 0
    assert store.count(Collections.USER_DEVICES, {"user_id": employee_id}) == 0
    assert store.count(Collections.SCHOOL_ASSIGNMENTS, {"employee_id": employee_id}) == 0
    with pytest.raises(NotFoundError):
        UserService(store).delete_user(employee_id, current_user_id=seeded["admin"]["id"])
