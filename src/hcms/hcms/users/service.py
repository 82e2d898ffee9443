from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Any, Mapping, Optional

from ..common.credentials import generate_staff_password, generate_staff_username
from ..common.validators import require_enum, require_non_empty
from ..core.enums import Role, TeacherStatus
from ..core.exceptions import AuthenticationError, AuthorizationError, NotFoundError, ValidationError
from ..database.collections import Collections
from ..database.documents import public_document
from ..database.store import DocumentStore
from ..devices.model import DeviceInfo
from ..devices.service import DeviceService
from .model import ALL_PERMISSION_FLAGS, Permission, User, Viewer
from .passwords import hash_password, needs_rehash, verify_password

logger = logging.getLogger(__name__)

INVALID_CREDENTIALS = "Invalid credentials"
INVALID_PHONE = "Invalid phone number or inactive account"


@dataclass(frozen=True)
class LoginResult:
    """What the login endpoint answers and what goes into the session."""

    user: dict
    permissions: Optional[dict]
    is_teacher: bool = False

    @property
    def subject_id(self) -> str:
        return str(self.user["id"])


@dataclass(frozen=True)
class GeneratedCredentials:
    user: dict
    username: str
    password: str


class AuthService:
    """Use case: authenticate staff users and teachers."""

    def __init__(self, store: DocumentStore, devices: Optional[DeviceService] = None):
        self._store = store
        self._devices = devices

    def login(
        self,
        username: str,
        password: str,
        *,
        role: Optional[str] = None,
        device: Optional[DeviceInfo] = None,
    ) -> LoginResult:
        if not username or not password:
            raise AuthenticationError(INVALID_CREDENTIALS)

        if role == "teacher":
            return self._login_teacher(username, password)

        doc = self._store.find_one(Collections.USERS, {"username": username, "is_active": True})
        if not doc or not verify_password(password, doc.get("password_hash")):
            logger.info("Failed staff login for %r", username)
            raise AuthenticationError(INVALID_CREDENTIALS)

        user = User.from_document(doc)
        self._upgrade_hash(Collections.USERS, user.id, password, doc.get("password_hash"))

        if device is not None and self._devices is not None:
            tracked = self._devices.track_login(user.id, device)
            if not tracked.allowed:
                raise AuthorizationError(tracked.reason or "Device blocked")

        permissions = self.permissions_for(user)
        logger.info("Staff user %s logged in", user.username)
        return LoginResult(user=public_document(doc), permissions=permissions.to_document())

    def _login_teacher(self, username: str, password: str) -> LoginResult:
        doc = self._store.find_one(Collections.TEACHERS, {"username": username, "is_active_login": True})
        if not doc or not verify_password(password, doc.get("password_hash")):
            logger.info("Failed teacher login for %r", username)
            raise AuthenticationError(INVALID_CREDENTIALS)

        self._upgrade_hash(Collections.TEACHERS, str(doc["id"]), password, doc.get("password_hash"))
        return LoginResult(user=public_document(doc), permissions=None, is_teacher=True)

    def teacher_login(self, phone: str) -> dict:
        phone = (phone or "").strip()
        if not phone:
            raise AuthenticationError(INVALID_PHONE)

        doc = self._store.find_one(
            Collections.TEACHERS,
            {"phone": phone, "is_active_login": True, "status": TeacherStatus.ACTIVE.value},
        )
        if not doc:
            raise AuthenticationError(INVALID_PHONE)
        return public_document(doc)

    def _upgrade_hash(self, collection: str, doc_id: str, password: str, stored_hash: Optional[str]) -> None:
        if needs_rehash(stored_hash):
            self._store.update_by_id(collection, doc_id, {"password_hash": hash_password(password)})
            logger.info("Upgraded legacy password hash in %s/%s", collection, doc_id)

    def permissions_for(self, user: User) -> Permission:
        if user.is_admin:
            return Permission.full(user.id)
        doc = self._store.find_one(Collections.PERMISSIONS, {"user_id": user.id})
        return Permission.from_document(doc) if doc else Permission(user_id=user.id)

    def get_viewer(self, user_id: str) -> Viewer:
        doc = self._store.find_by_id(Collections.USERS, user_id)
        if not doc or not doc.get("is_active", True):
            raise AuthenticationError("Session expired, please log in again")
        user = User.from_document(doc)
        return Viewer(user=user, permissions=self.permissions_for(user))

    def get_teacher(self, teacher_id: str) -> dict:
        doc = self._store.find_by_id(Collections.TEACHERS, teacher_id)
        if not doc:
            raise AuthenticationError("Session expired, please log in again")
        return public_document(doc)


class UserService:
    """Use case: manage staff accounts and their permissions (admin)."""

    def __init__(self, store: DocumentStore):
        self._store = store

    def list_with_permissions(self) -> list[dict]:
        users = self._store.find(Collections.USERS, {}, sort={"created_at": -1})
        perms = {p.get("user_id"): p for p in self._store.find(Collections.PERMISSIONS, {})}

        out = []
        for doc in users:
            user = User.from_document(doc)
            p = perms.get(user.id)
            permission = Permission.from_document(p) if p else Permission(user_id=user.id)
            out.append({**public_document(doc), "permissions": permission.to_document()})
        return out

    def create_user(
        self,
        *,
        full_name: str,
        role: str,
        permissions: Optional[Mapping[str, Any]] = None,
        username: Optional[str] = None,
    ) -> GeneratedCredentials:
        full_name = require_non_empty(full_name, "Full name")
        role_enum = require_enum(role, Role, "Role")

        username = (username or "").strip() or self._unique_username(full_name)
        if self._store.find_one(Collections.USERS, {"username": username}):
            raise ValidationError("Username already exists")

        password = generate_staff_password()
        user = self._store.insert_one(
            Collections.USERS,
            {
                "username": username,
                "password_hash": hash_password(password),
                "full_name": full_name,
                "role": role_enum.value,
                "is_active": True,
            },
        )
        self.set_permissions(user["id"], permissions or {})
        logger.info("Created %s account %s", role_enum.value, username)
        return GeneratedCredentials(user=public_document(user), username=username, password=password)

    def _unique_username(self, full_name: str) -> str:
        for _ in range(20):
            candidate = generate_staff_username(full_name)
            if not self._store.find_one(Collections.USERS, {"username": candidate}):
                return candidate
        raise ValidationError("Could not generate a unique username, please choose one")

    def set_permissions(self, user_id: str, flags: Mapping[str, Any]) -> dict:
        unknown = set(flags) - set(ALL_PERMISSION_FLAGS) - {"user_id", "id"}
        if unknown:
            raise ValidationError(f"Unknown permissions: {', '.join(sorted(unknown))}")

        self._require_user(user_id)
        values = {flag: bool(flags.get(flag, False)) for flag in ALL_PERMISSION_FLAGS}
        return self._store.upsert(Collections.PERMISSIONS, {"user_id": user_id}, {"user_id": user_id, **values})

    def toggle_active(self, user_id: str, *, current_user_id: str) -> bool:
        doc = self._require_user(user_id)
        if str(doc["id"]) == current_user_id:
            raise ValidationError("You cannot deactivate your own account")

        is_active = not bool(doc.get("is_active", True))
        self._store.update_by_id(Collections.USERS, user_id, {"is_active": is_active})
        return is_active

    def regenerate_password(self, user_id: str) -> GeneratedCredentials:
        doc = self._require_user(user_id)
        password = generate_staff_password()
        self._store.update_by_id(Collections.USERS, user_id, {"password_hash": hash_password(password)})
        logger.info("Password regenerated for %s", doc.get("username"))
        return GeneratedCredentials(user=public_document(doc), username=doc.get("username") or "", password=password)

    def delete_user(self, user_id: str, *, current_user_id: str) -> None:
        doc = self._require_user(user_id)
        real_id = str(doc["id"])
        if real_id == current_user_id:
            raise ValidationError("You cannot delete your own account")

        self._store.delete_by_id(Collections.USERS, user_id)
        self._store.delete_many(Collections.PERMISSIONS, {"user_id": real_id})
        self._store.delete_many(Collections.USER_DEVICES, {"user_id": real_id})
        self._store.delete_many(Collections.SCHOOL_ASSIGNMENTS, {"employee_id": real_id})
        logger.info("Deleted user %s", doc.get("username"))

    def _require_user(self, user_id: str) -> dict:
        doc = self._store.find_by_id(Collections.USERS, user_id)
        if not doc:
            raise NotFoundError("User not found")
        return doc
