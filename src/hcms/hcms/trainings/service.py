from __future__ import annotations

import logging
from dataclasses import dataclass
from datetime import date
from typing import Optional, Sequence

from ..common.datetime_utils import parse_iso_date, today_iso, utc_now_iso
from ..common.validators import require_enum, require_id_list, require_non_empty
from ..core.enums import AssignmentStatus, AttendanceStatus, TaskStatus, TeacherStatus
from ..core.exceptions import AuthorizationError, NotFoundError, ValidationError
from ..database.collections import Collections
from ..database.store import DocumentStore
from ..schools.access import SchoolAccess, SchoolAccessService
from ..users.model import Viewer
from .model import TrainingAssignment, TrainingProgram
from .progress import calculate_auto_progress

logger = logging.getLogger(__name__)

# Status stored on attendance rows created when a teacher opens a training link.
JOINED_STATUS = "in_progress"


@dataclass(frozen=True)
class JoinResult:
    attendance: dict
    created: bool

    @property
    def message(self) -> str:
        return "Joined training" if self.created else "Already joined"


@dataclass(frozen=True)
class BulkAssignResult:
    created: list
    skipped: int

    @property
    def message(self) -> str:
        if not self.created:
            return "All teachers are already assigned to this training program"
        return f"Successfully assigned {len(self.created)} teacher(s) to the training program"


class TrainingService:
    """Use case: assign teachers to training programs and record their attendance."""

    def __init__(self, store: DocumentStore, access: SchoolAccessService):
        self._store = store
        self._access = access

    # ---- lookups ----

    def programs_by_id(self) -> dict[str, TrainingProgram]:
        return {p["id"]: TrainingProgram.from_document(p) for p in self._store.find(Collections.TRAINING_PROGRAMS, {})}

    def _require_program(self, program_id: str) -> TrainingProgram:
        doc = self._store.find_by_id(Collections.TRAINING_PROGRAMS, require_non_empty(program_id, "Training program"))
        if not doc:
            raise NotFoundError("Training program not found")
        return TrainingProgram.from_document(doc)

    def _require_assignment(self, assignment_id: str) -> dict:
        doc = self._store.find_by_id(Collections.TRAINING_ASSIGNMENTS, require_non_empty(assignment_id, "Assignment"))
        if not doc:
            raise NotFoundError("Assignment not found")
        return doc

    def _check_teacher_in_scope(self, access: SchoolAccess, teacher_id: str) -> None:
        if access.unrestricted:
            return
        teacher = self._store.find_by_id(Collections.TEACHERS, teacher_id)
        if not teacher or not access.allows(teacher.get("school_id")):
            raise AuthorizationError("You do not have access to this teacher")

    # ---- assignments ----

    def list_assignments(
        self,
        viewer: Viewer,
        *,
        training_program_id: Optional[str] = None,
        today: Optional[date] = None,
    ) -> list[dict]:
        """Assignments visible to the viewer, joined with program, teacher and school names."""
        access = self._access.for_viewer(viewer)
        teachers = {t["id"]: t for t in self._store.find(Collections.TEACHERS, access.by_school_filter())}

        filter: dict = {}
        if training_program_id:
            filter["training_program_id"] = training_program_id
        if not access.unrestricted:
            filter["teacher_id"] = {"$in": sorted(teachers)}

        rows = self._store.find(Collections.TRAINING_ASSIGNMENTS, filter, sort={"assigned_date": -1})
        programs = self.programs_by_id()
        schools = {s["id"]: s for s in self._store.find(Collections.SCHOOLS, {})}

        out = []
        for row in rows:
            assignment = TrainingAssignment.from_document(row)
            program = programs.get(assignment.training_program_id)
            teacher = teachers.get(assignment.teacher_id)
            school = schools.get(teacher.get("school_id")) if teacher else None
            out.append(
                {
                    **row,
                    "training_program_title": program.title if program else "Unknown Program",
                    "teacher_name": f"{teacher.get('first_name', '')} {teacher.get('last_name', '')}".strip()
                    if teacher
                    else "Unknown",
                    "school_name": school.get("name") if school else "Unknown",
                    "auto_progress": calculate_auto_progress(assignment, program, today=today),
                }
            )
        return out

    def bulk_assign(
        self,
        viewer: Viewer,
        *,
        training_program_id: str,
        school_id: Optional[str] = None,
        due_date: Optional[str] = None,
    ) -> BulkAssignResult:
        """Assign a program to every active teacher in scope who does not have it yet."""
        program = self._require_program(training_program_id)
        access = self._access.for_viewer(viewer)
        if school_id and not access.allows(school_id):
            raise AuthorizationError("You do not have access to this school")

        filter: dict = {"status": TeacherStatus.ACTIVE.value}
        filter.update({"school_id": school_id} if school_id else access.by_school_filter())
        teachers = self._store.find(Collections.TEACHERS, filter, sort={"last_name": 1})
        if not teachers:
            raise ValidationError("No teachers available to assign to this training program")

        existing = self._store.find(Collections.TRAINING_ASSIGNMENTS, {"training_program_id": program.id})
        assigned_ids = {a.get("teacher_id") for a in existing}

        due = parse_iso_date(due_date).isoformat() if due_date else None
        to_create = [
            {
                "training_program_id": program.id,
                "teacher_id": t["id"],
                "due_date": due,
                "status": AssignmentStatus.ASSIGNED.value,
                "progress_percentage": 0,
                "assigned_date": today_iso(),
                "assigned_by": viewer.user_id,
            }
            for t in teachers
            if t["id"] not in assigned_ids
        ]
        created = self._store.insert_many(Collections.TRAINING_ASSIGNMENTS, to_create)
        logger.info("Bulk assigned program %s to %d teacher(s)", program.id, len(created))
        return BulkAssignResult(created=created, skipped=len(teachers) - len(created))

    # ---- attendance ----

    def join(self, *, teacher_id: str, assignment_id: str) -> JoinResult:
        """A teacher opens a training session: mark them as attending once."""
        teacher = self._store.find_one(
            Collections.TEACHERS, {"id": teacher_id, "status": TeacherStatus.ACTIVE.value}
        )
        if not teacher_id or not teacher:
            raise NotFoundError("Teacher not found")

        assignment = self._store.find_one(
            Collections.TRAINING_ASSIGNMENTS, {"id": assignment_id, "teacher_id": teacher_id}
        )
        if not assignment_id or not assignment:
            raise NotFoundError("Assignment not found or not assigned to this teacher")

        existing = self._store.find_one(
            Collections.TRAINING_ATTENDANCE, {"teacher_id": teacher_id, "assignment_id": assignment_id}
        )
        if existing:
            return JoinResult(attendance=existing, created=False)

        attendance = self._store.insert_one(
            Collections.TRAINING_ATTENDANCE,
            {
                "teacher_id": teacher_id,
                "assignment_id": assignment_id,
                "training_program_id": assignment.get("training_program_id"),
                "attendance_date": today_iso(),
                "status": JOINED_STATUS,
                "joined_at": utc_now_iso(),
            },
        )
        logger.info("Teacher %s joined assignment %s", teacher_id, assignment_id)
        return JoinResult(attendance=attendance, created=True)

    def attendance_for_assignment(self, viewer: Viewer, assignment_id: str) -> list[dict]:
        assignment = self._require_assignment(assignment_id)
        self._check_teacher_in_scope(self._access.for_viewer(viewer), assignment.get("teacher_id"))
        return self._store.find(
            Collections.TRAINING_ATTENDANCE, {"assignment_id": assignment["id"]}, sort={"attendance_date": -1}
        )

    def record_attendance(
        self,
        viewer: Viewer,
        *,
        assignment_id: str,
        attendance_date: str,
        status: str,
        notes: str = "",
    ) -> dict:
        """Create or overwrite the attendance mark for one teacher, program and day."""
        assignment = self._require_assignment(assignment_id)
        self._check_teacher_in_scope(self._access.for_viewer(viewer), assignment.get("teacher_id"))
        return self._upsert_attendance(
            assignment,
            attendance_date=parse_iso_date(attendance_date).isoformat(),
            status=require_enum(status, AttendanceStatus, "Status").value,
            notes=notes,
            recorded_by=viewer.user_id,
        )

    def bulk_attendance(
        self,
        viewer: Viewer,
        *,
        assignment_ids: Sequence[str],
        attendance_date: str,
        status: str,
        notes: str = "",
    ) -> list[dict]:
        ids = require_id_list(list(assignment_ids) if assignment_ids else [], "assignment_ids")
        day = parse_iso_date(attendance_date).isoformat()
        status_value = require_enum(status, AttendanceStatus, "Status").value
        access = self._access.for_viewer(viewer)

        assignments = [self._require_assignment(a) for a in dict.fromkeys(ids)]
        for assignment in assignments:
            self._check_teacher_in_scope(access, assignment.get("teacher_id"))

        records = [
            self._upsert_attendance(a, attendance_date=day, status=status_value, notes=notes, recorded_by=viewer.user_id)
            for a in assignments
        ]
        logger.info("Recorded %s attendance for %d assignment(s) on %s", status_value, len(records), day)
        return records

    def _upsert_attendance(
        self, assignment: dict, *, attendance_date: str, status: str, notes: str, recorded_by: str
    ) -> dict:
        key = {
            "teacher_id": assignment.get("teacher_id"),
            "training_program_id": assignment.get("training_program_id"),
            "attendance_date": attendance_date,
        }
        return self._store.upsert(
            Collections.TRAINING_ATTENDANCE,
            key,
            {**key, "assignment_id": assignment["id"], "status": status, "notes": notes or "", "recorded_by": recorded_by},
        )


class TaskService:
    """Use case: employees' own task list."""

    def __init__(self, store: DocumentStore):
        self._store = store

    def list_tasks(self, viewer: Viewer, *, employee_id: Optional[str] = None, status: Optional[str] = None) -> list[dict]:
        filter: dict = {}
        if viewer.is_admin:
            if employee_id:
                filter["employee_id"] = employee_id
        else:
            filter["employee_id"] = viewer.user_id
        if status:
            filter["status"] = require_enum(status, TaskStatus, "Status").value

        tasks = self._store.find(Collections.EMPLOYEE_TASKS, filter, sort={"created_at": -1})
        users = {u["id"]: u for u in self._store.find(Collections.USERS, {})}
        return [
            {**t, "employee_name": (users.get(t.get("employee_id")) or {}).get("full_name", "Unknown")} for t in tasks
        ]

    def set_status(self, viewer: Viewer, task_id: str, status: str) -> dict:
        """Change a task's status; `completed_at` follows completion."""
        status_enum = require_enum(status, TaskStatus, "Status")
        task = self._store.find_by_id(Collections.EMPLOYEE_TASKS, task_id)
        if not task:
            raise NotFoundError("Task not found")
        if not viewer.is_admin and task.get("employee_id") != viewer.user_id:
            raise AuthorizationError("You can only update your own tasks")

        completed_at = None
        if status_enum == TaskStatus.COMPLETED:
            completed_at = task.get("completed_at") or utc_now_iso()
        self._store.update_by_id(
            Collections.EMPLOYEE_TASKS, task_id, {"status": status_enum.value, "completed_at": completed_at}
        )
        return self._store.find_by_id(Collections.EMPLOYEE_TASKS, task_id)
