from __future__ import annotations

from datetime import datetime

import pytest

from fakes import InMemoryDocumentStore

from hcms.common import datetime_utils
from hcms.core.enums import Role
from hcms.database.collections import Collections
from hcms.reports import service as report_service_module
from hcms.schools import service as school_service_module
from hcms.trainings import progress as progress_module
from hcms.users.model import ALL_PERMISSION_FLAGS, Permission, User, Viewer
from hcms.users.passwords import hash_password

FIXED_NOW = datetime(2025, 3, 10, 9, 30)


@pytest.fixture
def fixed_now(monkeypatch):
    for module in (datetime_utils, progress_module, report_service_module, school_service_module):
        monkeypatch.setattr(module, "now_local", lambda: FIXED_NOW)
    return FIXED_NOW


@pytest.fixture
def store():
    return InMemoryDocumentStore()


@pytest.fixture
def seeded(store):
    """Two schools, an admin, an employee assigned to school A and a viewer."""
    admin = store.seed(
        Collections.USERS,
        {"username": "admin", "password_hash": hash_password("admin-pass"), "full_name": "Admin", "role": "admin", "is_active": True},
    )
    employee = store.seed(
        Collections.USERS,
        {"username": "emp", "password_hash": hash_password("emp-pass"), "full_name": "Emma Employee", "role": "employee", "is_active": True},
    )
    viewer = store.seed(
        Collections.USERS,
        {"username": "view", "password_hash": hash_password("view-pass"), "full_name": "Victor Viewer", "role": "viewer", "is_active": True},
    )
    store.seed(
        Collections.PERMISSIONS,
        {"user_id": employee["id"], **{flag: False for flag in ALL_PERMISSION_FLAGS}, "can_assign_training": True, "can_view_reports": True},
    )
    school_a = store.seed(Collections.SCHOOLS, {"name": "Alpha School", "code": "SCH001"})
    school_b = store.seed(Collections.SCHOOLS, {"name": "Beta School", "code": "SCH002"})
    store.seed(Collections.SCHOOL_ASSIGNMENTS, {"school_id": school_a["id"], "employee_id": employee["id"]})
    return {
        "admin": admin,
        "employee": employee,
        "viewer": viewer,
        "school_a": school_a,
        "school_b": school_b,
    }


def make_viewer(doc: dict, **flags) -> Viewer:
    user = User.from_document(doc)
    permissions = Permission.full(user.id) if user.role == Role.ADMIN else Permission(user_id=user.id, **flags)
    return Viewer(user=user, permissions=permissions)


@pytest.fixture
def admin_viewer(seeded):
    return make_viewer(seeded["admin"])


@pytest.fixture
def employee_viewer(seeded):
    return make_viewer(seeded["employee"], can_assign_training=True, can_view_reports=True)


@pytest.fixture
def app(monkeypatch, store):
    monkeypatch.setenv("APP_ENV", "testing")
    from hcms.main import create_app

    app = create_app(store=store)
    app.config["TESTING"] = True
    return app


@pytest.fixture
def client(app):
    return app.test_client()


def _client_for(app, user: dict):
    client = app.test_client()
    with client.session_transaction() as sess:
        sess["user_id"] = user["id"]
        sess["role"] = user["role"]
        sess["name"] = user["full_name"]
    return client


@pytest.fixture
def admin_client(app, seeded):
    return _client_for(app, seeded["admin"])


@pytest.fixture
def employee_client(app, seeded):
    return _client_for(app, seeded["employee"])


@pytest.fixture
def viewer_client(app, seeded):
    return _client_for(app, seeded["viewer"])
