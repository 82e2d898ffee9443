from __future__ import annotations


class Collections:
    """Names of the document collections the API exposes."""

    USERS = "users"
    PERMISSIONS = "permissions"
    SCHOOLS = "schools"
    TEACHERS = "teachers"
    MENTORS = "mentors"
    MENTOR_SCHOOLS = "mentor_schools"
    ADMIN_PERSONNEL = "admin_personnel"
    TRAINING_PROGRAMS = "training_programs"
    TRAINING_ASSIGNMENTS = "training_assignments"
    TRAINING_ATTENDANCE = "training_attendance"
    EMPLOYEE_TASKS = "employee_tasks"
    SCHOOL_FOLLOWUPS = "school_followups"
    SCHOOL_ASSIGNMENTS = "school_assignments"
    USER_DEVICES = "user_devices"

    ALL = frozenset(
        {
            USERS,
            PERMISSIONS,
            SCHOOLS,
            TEACHERS,
            MENTORS,
            MENTOR_SCHOOLS,
            ADMIN_PERSONNEL,
            TRAINING_PROGRAMS,
            TRAINING_ASSIGNMENTS,
            TRAINING_ATTENDANCE,
            EMPLOYEE_TASKS,
            SCHOOL_FOLLOWUPS,
            SCHOOL_ASSIGNMENTS,
            USER_DEVICES,
        }
    )

    # Collections whose documents carry login secrets.
    WITH_CREDENTIALS = frozenset({USERS, TEACHERS})
