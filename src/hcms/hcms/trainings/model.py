from __future__ import annotations

from dataclasses import dataclass
from datetime import date
from typing import Any, Mapping, Optional

from ..common.datetime_utils import to_date
from ..core.enums import AssignmentStatus


@dataclass(frozen=True)
class TrainingProgram:
    id: str
    title: str
    status: str = "active"
    start_date: Optional[date] = None
    end_date: Optional[date] = None
    duration_hours: Optional[float] = None
    meeting_link: Optional[str] = None

    @classmethod
    def from_document(cls, doc: Mapping[str, Any]) -> "TrainingProgram":
        return cls(
            id=str(doc["id"]),
            title=doc.get("title") or "Unknown Program",
            status=doc.get("status") or "active",
            start_date=to_date(doc.get("start_date")),
            end_date=to_date(doc.get("end_date")),
            duration_hours=doc.get("duration_hours"),
            meeting_link=doc.get("meeting_link"),
        )

    @property
    def has_window(self) -> bool:
        return self.start_date is not None and self.end_date is not None


@dataclass(frozen=True)
class TrainingAssignment:
    """A teacher's enrolment in a training program."""

    id: str
    training_program_id: str
    teacher_id: str
    status: str = AssignmentStatus.ASSIGNED.value
    progress_percentage: int = 0
    assigned_date: Optional[date] = None
    due_date: Optional[date] = None
    completion_date: Optional[date] = None
    score: Optional[int] = None

    @classmethod
    def from_document(cls, doc: Mapping[str, Any]) -> "TrainingAssignment":
        try:
            progress = int(doc.get("progress_percentage") or 0)
        except (TypeError, ValueError):
            progress = 0
        return cls(
            id=str(doc["id"]),
            training_program_id=str(doc.get("training_program_id") or ""),
            teacher_id=str(doc.get("teacher_id") or ""),
            status=doc.get("status") or AssignmentStatus.ASSIGNED.value,
            progress_percentage=progress,
            assigned_date=to_date(doc.get("assigned_date")),
            due_date=to_date(doc.get("due_date")),
            completion_date=to_date(doc.get("completion_date")),
            score=doc.get("score"),
        )

    @property
    def is_completed(self) -> bool:
        return self.status == AssignmentStatus.COMPLETED.value
