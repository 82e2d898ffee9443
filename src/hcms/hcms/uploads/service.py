from __future__ import annotations

import csv
import io
import logging
from dataclasses import dataclass, field
from typing import Callable, Mapping

from ..common.datetime_utils import parse_iso_date, utc_now_iso
from ..common.validators import require_enum, require_non_empty
from ..core.enums import TeacherStatus, UploadType
from ..core.exceptions import ValidationError
from ..database.collections import Collections
from ..database.store import DocumentStore

logger = logging.getLogger(__name__)

TEMPLATES: dict[UploadType, tuple[list[str], list[str]]] = {
    UploadType.SCHOOLS: (
        ["name", "code", "address", "phone", "email", "enrollment_count", "principal_name"],
        ["Example School", "SCH001", "123 Main St, City", "555-0100", "school@example.com", "500", "John Doe"],
    ),
    UploadType.TEACHERS: (
        ["first_name", "last_name", "email", "phone", "school_code", "subject_specialization", "qualification", "hire_date", "status"],
        ["Jane", "Smith", "jane@example.com", "555-0101", "SCH001", "Mathematics", "B.Ed", "2020-01-15", "active"],
    ),
    UploadType.MENTORS: (
        ["first_name", "last_name", "email", "phone", "school_code", "specialization", "years_of_experience"],
        ["Bob", "Johnson", "bob@example.com", "555-0102", "SCH001", "Educational Leadership", "10"],
    ),
}


@dataclass
class UploadResult:
    success: int = 0
    failed: int = 0
    errors: list[str] = field(default_factory=list)

    def to_dict(self) -> dict:
        return {"success": self.success, "failed": self.failed, "errors": self.errors}


def _int_or_zero(value: str) -> int:
    try:
        return int(value)
    except (TypeError, ValueError):
        return 0


def template_csv(upload_type: str) -> str:
    headers, example = TEMPLATES[require_enum(upload_type, UploadType, "Upload type")]
    out = io.StringIO()
    writer = csv.writer(out, lineterminator="\n")
    writer.writerow(headers)
    writer.writerow(example)
    return out.getvalue()


class BulkUploadService:
    """Use case: import schools, teachers or mentors from a CSV file.

    Rows are imported one by one; a bad row is reported and skipped, it never
    aborts the file.
    """

    def __init__(self, store: DocumentStore):
        self._store = store

    def upload(self, upload_type: str, text: str, *, created_by: str) -> UploadResult:
        kind = require_enum(upload_type, UploadType, "Upload type")
        importers: dict[UploadType, Callable[[Mapping[str, str], str], None]] = {
            UploadType.SCHOOLS: self._import_school,
            UploadType.TEACHERS: self._import_teacher,
            UploadType.MENTORS: self._import_mentor,
        }
        importer = importers[kind]

        reader = csv.DictReader(io.StringIO(text.lstrip("\ufeff")))
        if not reader.fieldnames:
            raise ValidationError("The file is empty")
        missing = [h for h in TEMPLATES[kind][0] if h not in reader.fieldnames]
        if missing:
            raise ValidationError(f"Missing columns: {', '.join(missing)}")

        result = UploadResult()
        for row in reader:
            cells = {k: (v or "").strip() for k, v in row.items() if k is not None}
            if not any(cells.values()):
                continue
            try:
                importer(cells, created_by)
                result.success += 1
            except ValidationError as e:
                result.failed += 1
                result.errors.append(f"Row {reader.line_num}: {e}")

        logger.info("Bulk upload of %s: %d imported, %d failed", kind.value, result.success, result.failed)
        return result

    def _school_by_code(self, code: str) -> dict:
        school = self._store.find_one(Collections.SCHOOLS, {"code": code}) if code else None
        if not school:
            raise ValidationError(f"School with code {code} not found")
        return school

    def _import_school(self, row: Mapping[str, str], created_by: str) -> None:
        self._store.insert_one(
            Collections.SCHOOLS,
            {
                "name": require_non_empty(row.get("name"), "name"),
                "code": row.get("code", ""),
                "address": row.get("address", ""),
                "phone": row.get("phone", ""),
                "email": row.get("email", ""),
                "enrollment_count": _int_or_zero(row.get("enrollment_count")),
                "principal_name": row.get("principal_name", ""),
                "created_by": created_by,
            },
        )

    def _import_teacher(self, row: Mapping[str, str], created_by: str) -> None:
        first_name = require_non_empty(row.get("first_name"), "first_name")
        last_name = require_non_empty(row.get("last_name"), "last_name")
        school = self._school_by_code(row.get("school_code", ""))
        hire_date = row.get("hire_date") or None
        self._store.insert_one(
            Collections.TEACHERS,
            {
                "first_name": first_name,
                "last_name": last_name,
                "email": row.get("email", ""),
                "phone": row.get("phone", ""),
                "school_id": school["id"],
                "subject_specialization": row.get("subject_specialization") or None,
                "qualification": row.get("qualification") or None,
                "hire_date": parse_iso_date(hire_date).isoformat() if hire_date else None,
                "status": require_enum(row.get("status") or TeacherStatus.ACTIVE.value, TeacherStatus, "status").value,
            },
        )

    def _import_mentor(self, row: Mapping[str, str], created_by: str) -> None:
        first_name = require_non_empty(row.get("first_name"), "first_name")
        last_name = require_non_empty(row.get("last_name"), "last_name")
        school = self._school_by_code(row.get("school_code", ""))
        mentor = self._store.insert_one(
            Collections.MENTORS,
            {
                "first_name": first_name,
                "last_name": last_name,
                "email": row.get("email", ""),
                "phone": row.get("phone", ""),
                "specialization": row.get("specialization", ""),
                "years_of_experience": _int_or_zero(row.get("years_of_experience")),
                "status": "active",
            },
        )
        self._store.insert_one(
            Collections.MENTOR_SCHOOLS,
            {"mentor_id": mentor["id"], "school_id": school["id"], "assigned_at": utc_now_iso()},
        )
