from __future__ import annotations

from enum import Enum


class Role(str, Enum):
    """Staff roles used for authorization."""

    ADMIN = "admin"
    EMPLOYEE = "employee"
    VIEWER = "viewer"


class TeacherStatus(str, Enum):
    ACTIVE = "active"
    ON_LEAVE = "on_leave"
    INACTIVE = "inactive"


class ProgramStatus(str, Enum):
    ACTIVE = "active"
    ARCHIVED = "archived"


class AssignmentStatus(str, Enum):
    """Lifecycle of a teacher's assignment to a training program."""

    ASSIGNED = "assigned"
    IN_PROGRESS = "in_progress"
    COMPLETED = "completed"
    OVERDUE = "overdue"


class AttendanceStatus(str, Enum):
    """Attendance marks recorded for a training day."""

    PRESENT = "present"
    ABSENT = "absent"
    LATE = "late"
    EXCUSED = "excused"


class FollowupStatus(str, Enum):
    COMPLETED = "completed"
    PENDING = "pending"


class TaskStatus(str, Enum):
    PENDING = "pending"
    IN_PROGRESS = "in_progress"
    COMPLETED = "completed"
    CANCELLED = "cancelled"


class UploadType(str, Enum):
    SCHOOLS = "schools"
    TEACHERS = "teachers"
    MENTORS = "mentors"
