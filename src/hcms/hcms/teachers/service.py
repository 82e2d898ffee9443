from __future__ import annotations

import logging
from dataclasses import dataclass
from datetime import date
from typing import Any, Mapping, Optional

from ..common.credentials import generate_teacher_password, generate_teacher_username
from ..common.validators import require_enum, require_non_empty
from ..core.enums import AttendanceStatus, TeacherStatus
from ..core.exceptions import AuthorizationError, NotFoundError, ValidationError
from ..database.collections import Collections
from ..database.documents import public_document
from ..database.store import DocumentStore
from ..schools.access import SchoolAccessService
from ..trainings.model import TrainingAssignment, TrainingProgram
from ..trainings.progress import calculate_auto_progress
from ..users.model import Viewer
from ..users.passwords import hash_password

logger = logging.getLogger(__name__)

# Fields a client may set when creating a teacher; credentials are always generated.
TEACHER_FIELDS = (
    "first_name",
    "last_name",
    "email",
    "phone",
    "school_id",
    "subject_specialization",
    "hire_date",
    "status",
    "qualification",
    "is_alumni",
    "years_of_experience",
    "date_of_birth",
)


@dataclass(frozen=True)
class TeacherCredentials:
    teacher: dict
    username: str
    password: str


class TeacherService:
    """Use case: teacher accounts (with portal credentials) and profiles."""

    def __init__(self, store: DocumentStore, access: SchoolAccessService):
        self._store = store
        self._access = access

    def _existing_usernames(self) -> list[str]:
        return [t["username"] for t in self._store.find(Collections.TEACHERS, {"username": {"$exists": True}}) if t.get("username")]

    def create_teacher(self, viewer: Viewer, data: Mapping[str, Any]) -> TeacherCredentials:
        first_name = require_non_empty(data.get("first_name"), "First name")
        last_name = require_non_empty(data.get("last_name"), "Last name")
        status = require_enum(data.get("status") or TeacherStatus.ACTIVE.value, TeacherStatus, "Status")

        school_id = data.get("school_id") or None
        if school_id:
            if not self._store.find_by_id(Collections.SCHOOLS, school_id):
                raise ValidationError("School not found")
            if not self._access.for_viewer(viewer).allows(school_id):
                raise AuthorizationError("You do not have access to this school")

        username = generate_teacher_username(first_name, last_name, self._existing_usernames())
        password = generate_teacher_password()

        doc = {k: data.get(k) for k in TEACHER_FIELDS if k in data}
        doc.update(
            {
                "first_name": first_name,
                "last_name": last_name,
                "school_id": school_id,
                "hire_date": data.get("hire_date") or None,
                "status": status.value,
                "username": username,
                "password_hash": hash_password(password),
                "is_active_login": True,
            }
        )
        teacher = self._store.insert_one(Collections.TEACHERS, doc)
        logger.info("Created teacher %s with login %s", teacher["id"], username)
        return TeacherCredentials(teacher=public_document(teacher), username=username, password=password)

    def regenerate_credentials(self, viewer: Viewer, teacher_id: str) -> TeacherCredentials:
        teacher = self._require_teacher(viewer, teacher_id)
        username = teacher.get("username")
        if not username:
            username = generate_teacher_username(
                teacher.get("first_name", ""), teacher.get("last_name", ""), self._existing_usernames()
            )

        password = generate_teacher_password()
        self._store.update_by_id(
            Collections.TEACHERS,
            teacher["id"],
            {"username": username, "password_hash": hash_password(password), "is_active_login": True},
        )
        logger.info("Regenerated credentials for teacher %s", teacher["id"])
        updated = self._store.find_by_id(Collections.TEACHERS, teacher["id"])
        return TeacherCredentials(teacher=public_document(updated), username=username, password=password)

    def _require_teacher(self, viewer: Optional[Viewer], teacher_id: str) -> dict:
        teacher = self._store.find_by_id(Collections.TEACHERS, teacher_id)
        if not teacher:
            raise NotFoundError("Teacher not found")
        if viewer is not None and not self._access.for_viewer(viewer).allows(teacher.get("school_id")):
            raise AuthorizationError("You do not have access to this teacher")
        return teacher

    def profile_for_viewer(self, viewer: Viewer, teacher_id: str, *, today: Optional[date] = None) -> dict:
        return self._build_profile(self._require_teacher(viewer, teacher_id), today=today)

    def profile(self, teacher_id: str, *, today: Optional[date] = None) -> dict:
        """Teacher, school, assignments (with auto progress) and attendance history."""
        return self._build_profile(self._require_teacher(None, teacher_id), today=today)

    def _build_profile(self, teacher: dict, *, today: Optional[date]) -> dict:
        school = self._store.find_by_id(Collections.SCHOOLS, teacher["school_id"]) if teacher.get("school_id") else None
        programs = {p["id"]: p for p in self._store.find(Collections.TRAINING_PROGRAMS, {})}

        assignments = []
        for row in self._store.find(
            Collections.TRAINING_ASSIGNMENTS, {"teacher_id": teacher["id"]}, sort={"assigned_date": -1}
        ):
            program_doc = programs.get(row.get("training_program_id"))
            program = TrainingProgram.from_document(program_doc) if program_doc else None
            assignments.append(
                {
                    **row,
                    "training_program": program_doc,
                    "auto_progress": calculate_auto_progress(TrainingAssignment.from_document(row), program, today=today),
                }
            )

        attendance = [
            {**row, "training_program": programs.get(row.get("training_program_id"))}
            for row in self._store.find(
                Collections.TRAINING_ATTENDANCE, {"teacher_id": teacher["id"]}, sort={"attendance_date": -1}
            )
        ]
        counts = {s.value: 0 for s in AttendanceStatus}
        for row in attendance:
            if row.get("status") in counts:
                counts[row["status"]] += 1

        return {
            "teacher": public_document(teacher),
            "school": school,
            "assignments": assignments,
            "attendance": attendance,
            "attendance_counts": counts,
        }
