from __future__ import annotations

from dataclasses import dataclass
from datetime import date
from typing import Any, Mapping, Optional

from ..common.datetime_utils import to_date


@dataclass(frozen=True)
class SchoolFollowup:
    id: str
    school_id: str
    employee_id: str
    followup_date: Optional[date]
    next_followup_date: Optional[date]
    comments: str = ""
    status: str = "completed"

    @classmethod
    def from_document(cls, doc: Mapping[str, Any]) -> "SchoolFollowup":
        return cls(
            id=str(doc["id"]),
            school_id=str(doc.get("school_id") or ""),
            employee_id=str(doc.get("employee_id") or ""),
            followup_date=to_date(doc.get("followup_date")),
            next_followup_date=to_date(doc.get("next_followup_date")),
            comments=doc.get("comments") or "",
            status=doc.get("status") or "completed",
        )

    def is_due(self, today: date) -> bool:
        return self.next_followup_date is not None and self.next_followup_date <= today
