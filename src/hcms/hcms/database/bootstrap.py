from __future__ import annotations

import logging

from pymongo import ASCENDING, DESCENDING
from pymongo.database import Database

from ..core.enums import Role
from ..users.model import ALL_PERMISSION_FLAGS
from ..users.passwords import hash_password
from .collections import Collections
from .store import DocumentStore

logger = logging.getLogger(__name__)

# (collection, keys, options)
INDEXES = [
    (Collections.USERS, [("id", ASCENDING)], {"unique": True, "sparse": True}),
    (Collections.USERS, [("username", ASCENDING)], {"unique": True}),
    (Collections.PERMISSIONS, [("user_id", ASCENDING)], {"unique": True}),
    (Collections.SCHOOLS, [("id", ASCENDING)], {"unique": True, "sparse": True}),
    (Collections.SCHOOLS, [("code", ASCENDING)], {}),
    (Collections.TEACHERS, [("id", ASCENDING)], {"unique": True, "sparse": True}),
    (
        Collections.TEACHERS,
        [("username", ASCENDING)],
        {"unique": True, "partialFilterExpression": {"username": {"$type": "string"}}},
    ),
    (Collections.TEACHERS, [("school_id", ASCENDING)], {}),
    (Collections.TEACHERS, [("phone", ASCENDING)], {}),
    (Collections.MENTORS, [("id", ASCENDING)], {"unique": True, "sparse": True}),
    (Collections.MENTOR_SCHOOLS, [("mentor_id", ASCENDING), ("school_id", ASCENDING)], {}),
    (Collections.TRAINING_PROGRAMS, [("id", ASCENDING)], {"unique": True, "sparse": True}),
    (Collections.TRAINING_ASSIGNMENTS, [("training_program_id", ASCENDING), ("teacher_id", ASCENDING)], {}),
    (Collections.TRAINING_ASSIGNMENTS, [("teacher_id", ASCENDING), ("assigned_date", DESCENDING)], {}),
    (
        Collections.TRAINING_ATTENDANCE,
        [("teacher_id", ASCENDING), ("training_program_id", ASCENDING), ("attendance_date", ASCENDING)],
        {},
    ),
    (Collections.TRAINING_ATTENDANCE, [("assignment_id", ASCENDING)], {}),
    (Collections.SCHOOL_FOLLOWUPS, [("employee_id", ASCENDING), ("next_followup_date", ASCENDING)], {}),
    (Collections.SCHOOL_ASSIGNMENTS, [("school_id", ASCENDING), ("employee_id", ASCENDING)], {"unique": True}),
    (Collections.EMPLOYEE_TASKS, [("employee_id", ASCENDING), ("created_at", DESCENDING)], {}),
    (Collections.USER_DEVICES, [("user_id", ASCENDING), ("device_id", ASCENDING)], {"unique": True}),
]


def ensure_indexes(db: Database) -> int:
    """Create the indexes the API relies on. Idempotent."""
    created = 0
    for collection, keys, options in INDEXES:
        db[collection].create_index(keys, **options)
        created += 1
    logger.info("Ensured %d indexes on %s", created, db.name)
    return created


def list_collections(db: Database) -> list[str]:
    return sorted(db.list_collection_names())


def ensure_admin_user(
    store: DocumentStore,
    *,
    username: str,
    password: str,
    full_name: str = "System Administrator",
) -> dict:
    """Create the admin account (with full permissions) unless it already exists."""
    existing = store.find_one(Collections.USERS, {"username": username})
    if existing:
        logger.info("Admin user %s already present", username)
        return existing

    user = store.insert_one(
        Collections.USERS,
        {
            "username": username,
            "password_hash": hash_password(password),
            "full_name": full_name,
            "role": Role.ADMIN.value,
            "is_active": True,
        },
    )
    store.upsert(
        Collections.PERMISSIONS,
        {"user_id": user["id"]},
        {"user_id": user["id"], **{flag: True for flag in ALL_PERMISSION_FLAGS}},
    )
    logger.info("Admin user %s created", username)
    return user
