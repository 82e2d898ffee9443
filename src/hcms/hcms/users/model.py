from __future__ import annotations

from dataclasses import dataclass, fields
from typing import Any, Mapping, Optional

from ..core.enums import Role


@dataclass(frozen=True)
class User:
    """Staff account (admin / employee / viewer).

    Note: A plain data object; it never touches the database.
    """

    id: str
    username: str
    full_name: str
    role: Role
    is_active: bool = True
    password_hash: Optional[str] = None

    @classmethod
    def from_document(cls, doc: Mapping[str, Any]) -> "User":
        try:
            role = Role(doc.get("role") or Role.VIEWER.value)
        except ValueError:
            role = Role.VIEWER
        return cls(
            id=str(doc["id"]),
            username=doc.get("username") or "",
            full_name=doc.get("full_name") or "",
            role=role,
            is_active=bool(doc.get("is_active", True)),
            password_hash=doc.get("password_hash"),
        )

    @property
    def is_admin(self) -> bool:
        return self.role == Role.ADMIN


@dataclass(frozen=True)
class Permission:
    user_id: str
    can_delete_schools: bool = False
    can_manage_users: bool = False
    can_assign_training: bool = False
    can_view_reports: bool = False
    can_manage_schools: bool = False
    can_manage_teachers: bool = False
    can_manage_mentors: bool = False
    can_manage_admin_personnel: bool = False
    can_manage_training_programs: bool = False

    @classmethod
    def from_document(cls, doc: Mapping[str, Any]) -> "Permission":
        return cls(
            user_id=str(doc.get("user_id") or ""),
            **{flag: bool(doc.get(flag, False)) for flag in ALL_PERMISSION_FLAGS},
        )

    @classmethod
    def full(cls, user_id: str) -> "Permission":
        return cls(user_id=user_id, **{flag: True for flag in ALL_PERMISSION_FLAGS})

    def to_document(self) -> dict:
        return {"user_id": self.user_id, **{flag: getattr(self, flag) for flag in ALL_PERMISSION_FLAGS}}

    def allows(self, flag: str) -> bool:
        return bool(getattr(self, flag, False))


ALL_PERMISSION_FLAGS = tuple(f.name for f in fields(Permission) if f.name.startswith("can_"))


@dataclass(frozen=True)
class Viewer:
    """The logged-in staff member a request acts for."""

    user: User
    permissions: Permission

    @property
    def user_id(self) -> str:
        return self.user.id

    @property
    def role(self) -> Role:
        return self.user.role

    @property
    def is_admin(self) -> bool:
        return self.user.is_admin

    def can(self, flag: str) -> bool:
        return self.is_admin or self.permissions.allows(flag)
