from __future__ import annotations

import logging
from datetime import date
from typing import Optional, Sequence

from ..common.datetime_utils import now_local, parse_iso_date, utc_now_iso
from ..common.validators import require_non_empty
from ..core.enums import FollowupStatus
from ..core.exceptions import AuthorizationError, NotFoundError, ValidationError
from ..database.collections import Collections
from ..database.documents import public_document
from ..database.store import DocumentStore
from ..users.model import Viewer
from .access import SchoolAccess, SchoolAccessService
from .model import SchoolFollowup

logger = logging.getLogger(__name__)

FOLLOWUP_TABS = ("today", "upcoming", "all")
# Older clients call the "all" tab "history".
FOLLOWUP_TAB_ALIASES = {"history": "all"}


class SchoolService:
    """Use case: school listings scoped to what the viewer may see."""

    def __init__(self, store: DocumentStore, access: SchoolAccessService):
        self._store = store
        self._access = access

    def list_schools(self, viewer: Viewer) -> list[dict]:
        access = self._access.for_viewer(viewer)
        schools = self._store.find(Collections.SCHOOLS, access.schools_filter(), sort={"name": 1})
        out = []
        for school in schools:
            out.append(
                {
                    **school,
                    "teacher_count": self._store.count(Collections.TEACHERS, {"school_id": school["id"]}),
                    "mentor_count": self._store.count(Collections.MENTOR_SCHOOLS, {"school_id": school["id"]}),
                }
            )
        return out

    def list_teachers(self, viewer: Viewer, *, school_id: Optional[str] = None) -> list[dict]:
        access = self._access.for_viewer(viewer)
        if school_id and not access.allows(school_id):
            raise AuthorizationError("You do not have access to this school")

        filter = {"school_id": school_id} if school_id else access.by_school_filter()
        teachers = self._store.find(Collections.TEACHERS, filter, sort={"last_name": 1})
        return [public_document(t) for t in teachers]

    def school_overview(self, viewer: Viewer, school_id: str) -> dict:
        school = self._store.find_by_id(Collections.SCHOOLS, school_id)
        if not school:
            raise NotFoundError("School not found")
        if not self._access.for_viewer(viewer).allows(school["id"]):
            raise AuthorizationError("You do not have access to this school")

        teachers = self._store.find(Collections.TEACHERS, {"school_id": school["id"]}, sort={"last_name": 1})
        links = self._store.find(Collections.MENTOR_SCHOOLS, {"school_id": school["id"]})
        mentor_ids = [link.get("mentor_id") for link in links]
        mentors = self._store.find(Collections.MENTORS, {"id": {"$in": mentor_ids}}) if mentor_ids else []
        followups = self._store.find(
            Collections.SCHOOL_FOLLOWUPS, {"school_id": school["id"]}, sort={"followup_date": -1}, limit=10
        )
        return {
            "school": school,
            "teachers": [public_document(t) for t in teachers],
            "mentors": mentors,
            "followups": followups,
        }


class SchoolAssignmentService:
    """Use case: assign schools to employees."""

    def __init__(self, store: DocumentStore):
        self._store = store

    def assign(self, *, employee_id: str, school_ids: Sequence[str], assigned_by: str) -> list[dict]:
        employee_id = require_non_empty(employee_id, "Employee")
        if not school_ids:
            raise ValidationError("Please select at least one school and an employee")
        if not self._store.find_by_id(Collections.USERS, employee_id):
            raise NotFoundError("Employee not found")

        for school_id in school_ids:
            if self._store.find_one(Collections.SCHOOL_ASSIGNMENTS, {"school_id": school_id, "employee_id": employee_id}):
                raise ValidationError("One or more selected schools are already assigned to this employee")

        now = utc_now_iso()
        created = self._store.insert_many(
            Collections.SCHOOL_ASSIGNMENTS,
            [
                {"school_id": school_id, "employee_id": employee_id, "assigned_by": assigned_by, "assigned_at": now}
                for school_id in dict.fromkeys(school_ids)
            ],
        )
        logger.info("Assigned %d school(s) to employee %s", len(created), employee_id)
        return created

    def list_assignments(self, *, employee_id: Optional[str] = None) -> list[dict]:
        filter = {"employee_id": employee_id} if employee_id else {}
        rows = self._store.find(Collections.SCHOOL_ASSIGNMENTS, filter, sort={"assigned_at": -1})
        schools = {s["id"]: s for s in self._store.find(Collections.SCHOOLS, {})}
        users = {u["id"]: u for u in self._store.find(Collections.USERS, {})}

        out = []
        for row in rows:
            school = schools.get(row.get("school_id"))
            user = users.get(row.get("employee_id"))
            out.append(
                {
                    **row,
                    "school_name": school.get("name") if school else "Unknown",
                    "employee_name": user.get("full_name") if user else "Unknown",
                }
            )
        return out


class FollowupService:
    """Use case: track school visits by employees and what is due next."""

    def __init__(self, store: DocumentStore, access: SchoolAccessService):
        self._store = store
        self._access = access

    def record(
        self,
        viewer: Viewer,
        *,
        school_id: str,
        comments: str,
        next_followup_date: Optional[str] = None,
        today: Optional[date] = None,
    ) -> dict:
        today = today or now_local().date()
        school = self._store.find_by_id(Collections.SCHOOLS, require_non_empty(school_id, "School"))
        if not school:
            raise NotFoundError("School not found")
        if not self._access.for_viewer(viewer).allows(school["id"]):
            raise AuthorizationError("You do not have access to this school")

        next_date = parse_iso_date(next_followup_date).isoformat() if next_followup_date else None
        if next_date and next_date < today.isoformat():
            raise ValidationError("Next follow-up date cannot be in the past")

        return self._store.insert_one(
            Collections.SCHOOL_FOLLOWUPS,
            {
                "school_id": school["id"],
                "employee_id": viewer.user_id,
                "followup_date": today.isoformat(),
                "comments": comments or "",
                "next_followup_date": next_date,
                "status": FollowupStatus.COMPLETED.value,
            },
        )

    def latest_for(self, *, school_id: str, employee_id: str) -> Optional[dict]:
        rows = self._store.find(
            Collections.SCHOOL_FOLLOWUPS,
            {"school_id": school_id, "employee_id": employee_id},
            sort={"followup_date": -1, "created_at": -1},
            limit=1,
        )
        return rows[0] if rows else None

    def schools_with_status(self, viewer: Viewer, *, tab: str = "all", today: Optional[date] = None) -> list[dict]:
        """The viewer's assigned schools with their latest follow-up.

        `today`: never visited or due; `upcoming`: next visit in the future.
        """
        tab = FOLLOWUP_TAB_ALIASES.get(tab, tab)
        if tab not in FOLLOWUP_TABS:
            raise ValidationError(f"tab must be one of: {', '.join(FOLLOWUP_TABS)}")
        today = today or now_local().date()

        school_ids = self._access.assigned_school_ids(viewer.user_id)
        if not school_ids:
            return []
        schools = self._store.find(Collections.SCHOOLS, {"id": {"$in": school_ids}}, sort={"name": 1})

        out = []
        for school in schools:
            latest_doc = self.latest_for(school_id=school["id"], employee_id=viewer.user_id)
            latest = SchoolFollowup.from_document(latest_doc) if latest_doc else None
            needs_followup = latest.is_due(today) if latest and latest.next_followup_date else True
            upcoming = bool(latest and latest.next_followup_date and latest.next_followup_date > today)

            if tab == "today" and not needs_followup:
                continue
            if tab == "upcoming" and not upcoming:
                continue

            out.append(
                {
                    **school,
                    "latest_followup": latest_doc,
                    "needs_followup": needs_followup,
                }
            )
        return out


class MentorService:
    """Use case: link mentors to the schools they support."""

    def __init__(self, store: DocumentStore):
        self._store = store

    def set_schools(self, mentor_id: str, school_ids: Sequence[str]) -> list[dict]:
        mentor = self._store.find_by_id(Collections.MENTORS, mentor_id)
        if not mentor:
            raise NotFoundError("Mentor not found")

        self._store.delete_many(Collections.MENTOR_SCHOOLS, {"mentor_id": mentor["id"]})
        now = utc_now_iso()
        return self._store.insert_many(
            Collections.MENTOR_SCHOOLS,
            [{"mentor_id": mentor["id"], "school_id": s, "assigned_at": now} for s in dict.fromkeys(school_ids)],
        )

    def list_with_schools(self, access: SchoolAccess) -> list[dict]:
        links = self._store.find(Collections.MENTOR_SCHOOLS, access.by_school_filter())
        by_mentor: dict[str, list[str]] = {}
        for link in links:
            by_mentor.setdefault(link.get("mentor_id"), []).append(link.get("school_id"))

        mentors = self._store.find(Collections.MENTORS, {}, sort={"last_name": 1})
        if not access.unrestricted:
            mentors = [m for m in mentors if m["id"] in by_mentor]
        return [{**m, "school_ids": by_mentor.get(m["id"], [])} for m in mentors]
