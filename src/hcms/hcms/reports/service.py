from __future__ import annotations

import logging
from dataclasses import dataclass, field
from datetime import date
from typing import Optional

from ..common.datetime_utils import now_local, parse_iso_date, percentage, round_half_up
from ..core.constants import DEFAULT_FOLLOWUP_LOOKUP_LIMIT, DEFAULT_PENDING_FOLLOWUP_SCHOOLS
from ..core.enums import AssignmentStatus, AttendanceStatus, ProgramStatus
from ..database.collections import Collections
from ..database.store import DocumentStore
from ..schools.access import SchoolAccess, SchoolAccessService
from ..trainings.model import TrainingAssignment, TrainingProgram
from ..trainings.progress import calculate_auto_progress
from ..users.model import Viewer

logger = logging.getLogger(__name__)


@dataclass
class ProgramDayReport:
    """Attendance counts for one program on one day."""

    attendance_date: str
    training_program_id: str
    training_program_name: str
    total_assigned: int
    present: int = 0
    absent: int = 0
    late: int = 0
    excused: int = 0

    @property
    def attendance_percentage(self) -> int:
        return percentage(self.present, self.total_assigned)

    def count(self, status: str) -> None:
        if status in (s.value for s in AttendanceStatus):
            setattr(self, status, getattr(self, status) + 1)

    def to_dict(self) -> dict:
        return {
            "attendance_date": self.attendance_date,
            "training_program_id": self.training_program_id,
            "training_program_name": self.training_program_name,
            "total_assigned": self.total_assigned,
            "present": self.present,
            "absent": self.absent,
            "late": self.late,
            "excused": self.excused,
            "attendance_percentage": self.attendance_percentage,
        }


@dataclass
class DailyReport:
    attendance_date: str
    programs: list[ProgramDayReport] = field(default_factory=list)
    details: list[dict] = field(default_factory=list)

    def to_dict(self) -> dict:
        return {
            "attendance_date": self.attendance_date,
            "programs": [p.to_dict() for p in self.programs],
            "details": self.details,
        }


class ReportService:
    """Use case: dashboard numbers and attendance rollups, scoped by school access."""

    def __init__(self, store: DocumentStore, access: SchoolAccessService):
        self._store = store
        self._access = access

    def _teachers_in_scope(self, access: SchoolAccess) -> dict[str, dict]:
        return {t["id"]: t for t in self._store.find(Collections.TEACHERS, access.by_school_filter())}

    def _programs(self) -> dict[str, TrainingProgram]:
        return {p["id"]: TrainingProgram.from_document(p) for p in self._store.find(Collections.TRAINING_PROGRAMS, {})}

    # ---- dashboard ----

    def dashboard_stats(self, viewer: Viewer, *, today: Optional[date] = None) -> dict:
        today = today or now_local().date()
        access = self._access.for_viewer(viewer)

        assignment_filter: dict = {}
        if not access.unrestricted:
            assignment_filter["teacher_id"] = {"$in": sorted(self._teachers_in_scope(access))}
        rows = self._store.find(Collections.TRAINING_ASSIGNMENTS, assignment_filter)
        assignments = [TrainingAssignment.from_document(r) for r in rows]
        programs = self._programs()

        active = sum(
            1 for a in assignments if a.status in (AssignmentStatus.ASSIGNED.value, AssignmentStatus.IN_PROGRESS.value)
        )
        completed = sum(1 for a in assignments if a.status == AssignmentStatus.COMPLETED.value)
        overdue = sum(1 for a in assignments if a.status == AssignmentStatus.OVERDUE.value)

        total_progress = sum(
            calculate_auto_progress(a, programs.get(a.training_program_id), today=today) for a in assignments
        )
        completion_rate = round_half_up(total_progress / len(assignments)) if assignments else 0

        followups = self._store.find(
            Collections.SCHOOL_FOLLOWUPS,
            {"employee_id": viewer.user_id, "next_followup_date": {"$lte": today.isoformat()}},
            limit=DEFAULT_FOLLOWUP_LOOKUP_LIMIT,
        )
        pending_ids = sorted({f["school_id"] for f in followups if f.get("school_id")})
        pending_schools = (
            self._store.find(
                Collections.SCHOOLS, {"id": {"$in": pending_ids}}, limit=DEFAULT_PENDING_FOLLOWUP_SCHOOLS
            )
            if pending_ids
            else []
        )
        recent_schools = self._store.find(
            Collections.SCHOOLS, access.schools_filter(), sort={"created_at": -1}, limit=3
        )

        return {
            "schools": self._store.count(Collections.SCHOOLS, access.schools_filter()),
            "teachers": self._store.count(Collections.TEACHERS, access.by_school_filter()),
            "mentors": self._store.count(Collections.MENTOR_SCHOOLS, access.by_school_filter()),
            "training_programs": self._store.count(
                Collections.TRAINING_PROGRAMS, {"status": ProgramStatus.ACTIVE.value}
            ),
            "active_assignments": active,
            "completed_assignments": completed,
            "overdue_assignments": overdue,
            "completion_rate": completion_rate,
            "pending_followups": len(pending_ids),
            "pending_followup_schools": pending_schools,
            "recent_schools": recent_schools,
        }

    # ---- attendance ----

    def daily_report(self, viewer: Viewer, *, attendance_date: str, training_program_id: Optional[str] = None) -> DailyReport:
        """Per program counts for one day, plus a row per attendance record."""
        day = parse_iso_date(attendance_date).isoformat()
        access = self._access.for_viewer(viewer)

        filter = {"attendance_date": day}
        if training_program_id:
            filter["training_program_id"] = training_program_id
        records = self._store.find(Collections.TRAINING_ATTENDANCE, filter)

        teachers = {t["id"]: t for t in self._store.find(Collections.TEACHERS, {})}
        schools = {s["id"]: s for s in self._store.find(Collections.SCHOOLS, {})}
        programs = self._programs()

        if not access.unrestricted:
            records = [r for r in records if access.allows((teachers.get(r.get("teacher_id")) or {}).get("school_id"))]

        by_program: dict[str, ProgramDayReport] = {}
        for record in records:
            program_id = record.get("training_program_id")
            if program_id not in by_program:
                program = programs.get(program_id)
                by_program[program_id] = ProgramDayReport(
                    attendance_date=day,
                    training_program_id=program_id,
                    training_program_name=program.title if program else "Unknown Program",
                    total_assigned=self._assigned_count(program_id, access, teachers),
                )
            by_program[program_id].count(record.get("status"))

        details = []
        for record in records:
            teacher = teachers.get(record.get("teacher_id"))
            school = schools.get(teacher.get("school_id")) if teacher else None
            details.append(
                {
                    "teacher_name": f"{teacher.get('first_name', '')} {teacher.get('last_name', '')}".strip()
                    if teacher
                    else "Unknown",
                    "teacher_email": (teacher or {}).get("email") or "",
                    "school_name": school.get("name") if school else "Unknown",
                    "status": record.get("status"),
                    "notes": record.get("notes") or "",
                }
            )
        return DailyReport(attendance_date=day, programs=list(by_program.values()), details=details)

    def _assigned_count(self, program_id: str, access: SchoolAccess, teachers: dict[str, dict]) -> int:
        assignments = self._store.find(Collections.TRAINING_ASSIGNMENTS, {"training_program_id": program_id})
        if access.unrestricted:
            return len(assignments)
        return sum(1 for a in assignments if access.allows((teachers.get(a.get("teacher_id")) or {}).get("school_id")))

    def attendance_analytics(self, *, training_program_id: Optional[str] = None) -> dict:
        """Per date series of attendance for one program, or all of them.

        Late arrivals count as present. Each day is measured against every
        assignment of the selection.
        """
        filter = {"training_program_id": training_program_id} if training_program_id else {}
        records = self._store.find(Collections.TRAINING_ATTENDANCE, filter)
        assigned = self._store.count(Collections.TRAINING_ASSIGNMENTS, filter)

        days: dict[str, dict] = {}
        for record in records:
            day = record.get("attendance_date")
            if not day:
                continue
            entry = days.setdefault(day, {"date": day, "assigned": assigned, "present": 0, "absent": 0, "total_attendance": 0})
            entry["total_attendance"] += 1
            status = record.get("status")
            if status in (AttendanceStatus.PRESENT.value, AttendanceStatus.LATE.value):
                entry["present"] += 1
            elif status == AttendanceStatus.ABSENT.value:
                entry["absent"] += 1

        series = [days[d] for d in sorted(days)]
        total_present = sum(d["present"] for d in series)
        total_possible = sum(d["assigned"] for d in series)
        return {
            "series": series,
            "total_assigned": assigned,
            "attendance_rate": percentage(total_present, total_possible),
        }
