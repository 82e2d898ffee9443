from __future__ import annotations

from dataclasses import dataclass
from typing import Optional

from ..database.collections import Collections
from ..database.store import DocumentStore
from ..users.model import Viewer

# Matches nothing: staff without assigned schools see no school data.
NO_ACCESS_FILTER = {"id": "none"}


@dataclass(frozen=True)
class SchoolAccess:
    """Which schools a staff member may see.

    `school_ids is None` means unrestricted (admins).
    """

    school_ids: Optional[frozenset[str]]

    @property
    def unrestricted(self) -> bool:
        return self.school_ids is None

    def allows(self, school_id: Optional[str]) -> bool:
        if self.unrestricted:
            return True
        return bool(school_id) and school_id in self.school_ids

    def schools_filter(self) -> dict:
        if self.unrestricted:
            return {}
        if not self.school_ids:
            return dict(NO_ACCESS_FILTER)
        return {"id": {"$in": sorted(self.school_ids)}}

    def by_school_filter(self, field: str = "school_id") -> dict:
        """Filter for documents that point at a school (teachers, mentor links, ...)."""
        if self.unrestricted:
            return {}
        if not self.school_ids:
            return dict(NO_ACCESS_FILTER)
        return {field: {"$in": sorted(self.school_ids)}}


class SchoolAccessService:
    def __init__(self, store: DocumentStore):
        self._store = store

    def assigned_school_ids(self, employee_id: str) -> list[str]:
        rows = self._store.find(Collections.SCHOOL_ASSIGNMENTS, {"employee_id": employee_id})
        return [r["school_id"] for r in rows if r.get("school_id")]

    def for_viewer(self, viewer: Viewer) -> SchoolAccess:
        if viewer.is_admin:
            return SchoolAccess(school_ids=None)
        return SchoolAccess(school_ids=frozenset(self.assigned_school_ids(viewer.user_id)))
