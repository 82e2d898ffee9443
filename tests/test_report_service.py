from __future__ import annotations

import pytest
from openpyxl import load_workbook

from hcms.core.exceptions import ValidationError
from hcms.database.collections import Collections
from hcms.reports.export import daily_report_csv, daily_report_xlsx, report_filename
from hcms.reports.service import ProgramDayReport, ReportService
from hcms.schools.access import SchoolAccessService


@pytest.fixture
def world(store, seeded):
    program = store.seed(
        Collections.TRAINING_PROGRAMS,
        {"title": "Numeracy", "status": "active", "start_date": "2025-03-01", "end_date": "2025-03-21"},
    )
    store.seed(Collections.TRAINING_PROGRAMS, {"title": "Old", "status": "archived"})
    t_a1 = store.seed(Collections.TEACHERS, {"first_name": "Ann", "last_name": "Able", "email": "ann@example.org", "school_id": seeded["school_a"]["id"]})
    t_a2 = store.seed(Collections.TEACHERS, {"first_name": "Amy", "last_name": "Avery", "school_id": seeded["school_a"]["id"]})
    t_b1 = store.seed(Collections.TEACHERS, {"first_name": "Ben", "last_name": "Bell", "school_id": seeded["school_b"]["id"]})
    for teacher, status in ((t_a1, "assigned"), (t_a2, "completed"), (t_b1, "overdue")):
        store.seed(
            Collections.TRAINING_ASSIGNMENTS,
            {"training_program_id": program["id"], "teacher_id": teacher["id"], "status": status},
        )
    return {"program": program, "t_a1": t_a1, "t_a2": t_a2, "t_b1": t_b1, **seeded}


@pytest.fixture
def svc(store):
    return ReportService(store, SchoolAccessService(store))


def _mark(store, world, teacher_key: str, day: str, status: str, **extra) -> None:
    store.seed(
        Collections.TRAINING_ATTENDANCE,
        {
            "teacher_id": world[teacher_key]["id"],
            "training_program_id": world["program"]["id"],
            "attendance_date": day,
            "status": status,
            **extra,
        },
    )


def test_program_day_report_percentage():
    report = ProgramDayReport("2025-03-05", "p1", "Numeracy", total_assigned=3)
    report.count("present")
    report.count("late")
    report.count("in_progress")

    assert (report.present, report.late) == (1, 1)
    assert report.attendance_percentage == 33
    assert ProgramDayReport("2025-03-05", "p1", "Numeracy", total_assigned=0).attendance_percentage == 0


def test_dashboard_for_admin(store, world, svc, admin_viewer, fixed_now):
    stats = svc.dashboard_stats(admin_viewer)

    assert stats["schools"] == 2
    assert stats["teachers"] == 3
    assert stats["training_programs"] == 1
    assert stats["active_assignments"] == 1
    assert stats["completed_assignments"] == 1
    assert stats["overdue_assignments"] == 1
    # day 10 of a 20 day window is 50; completed counts as 100
    assert stats["completion_rate"] == 67
    assert len(stats["recent_schools"]) == 2


def test_dashboard_is_scoped_for_employees(store, world, svc, employee_viewer, fixed_now):
    store.seed(
        Collections.SCHOOL_FOLLOWUPS,
        {"school_id": world["school_a"]["id"], "employee_id": employee_viewer.user_id, "next_followup_date": "2025-03-09"},
    )
    store.seed(
        Collections.SCHOOL_FOLLOWUPS,
        {"school_id": world["school_b"]["id"], "employee_id": employee_viewer.user_id, "next_followup_date": "2025-04-01"},
    )

    stats = svc.dashboard_stats(employee_viewer)

    assert stats["schools"] == 1
    assert stats["teachers"] == 2
    assert stats["overdue_assignments"] == 0
    assert stats["completion_rate"] == 75
    assert stats["pending_followups"] == 1
    assert [s["name"] for s in stats["pending_followup_schools"]] == ["Alpha School"]
    assert [s["name"] for s in stats["recent_schools"]] == ["Alpha School"]


def test_daily_report_counts_and_details(store, world, svc, admin_viewer):
    _mark(store, world, "t_a1", "2025-03-05", "present", notes="on time")
    _mark(store, world, "t_a2", "2025-03-05", "late")
    _mark(store, world, "t_b1", "2025-03-05", "absent")
    _mark(store, world, "t_b1", "2025-03-06", "present")

    report = svc.daily_report(admin_viewer, attendance_date="2025-03-05")

    assert len(report.programs) == 1
    summary = report.programs[0]
    assert summary.training_program_name == "Numeracy"
    assert (summary.total_assigned, summary.present, summary.late, summary.absent) == (3, 1, 1, 1)
    assert summary.attendance_percentage == 33
    ann = next(d for d in report.details if d["teacher_name"] == "Ann Able")
    assert ann == {
        "teacher_name": "Ann Able",
        "teacher_email": "ann@example.org",
        "school_name": "Alpha School",
        "status": "present",
        "notes": "on time",
    }


def test_daily_report_is_scoped_for_employees(store, world, svc, employee_viewer):
    _mark(store, world, "t_a1", "2025-03-05", "present")
    _mark(store, world, "t_b1", "2025-03-05", "present")

    report = svc.daily_report(employee_viewer, attendance_date="2025-03-05")

    assert report.programs[0].total_assigned == 2
    assert report.programs[0].present == 1
    assert report.programs[0].attendance_percentage == 50
    assert [d["school_name"] for d in report.details] == ["Alpha School"]


def test_daily_report_rejects_bad_dates(svc, admin_viewer):
    with pytest.raises(ValidationError):
        svc.daily_report(admin_viewer, attendance_date="yesterday")


def test_attendance_analytics_counts_late_as_present(store, world, svc):
    _mark(store, world, "t_a1", "2025-03-06", "present")
    _mark(store, world, "t_a2", "2025-03-06", "late")
    _mark(store, world, "t_b1", "2025-03-05", "absent")

    result = svc.attendance_analytics(training_program_id=world["program"]["id"])

    assert result["total_assigned"] == 3
    assert [d["date"] for d in result["series"]] == ["2025-03-05", "2025-03-06"]
    assert result["series"][1] == {
        "date": "2025-03-06",
        "assigned": 3,
        "present": 2,
        "absent": 0,
        "total_attendance": 2,
    }
    # 2 present over 2 days of 3 assigned
    assert result["attendance_rate"] == 33


def test_attendance_analytics_empty(svc):
    assert svc.attendance_analytics() == {"series": [], "total_assigned": 0, "attendance_rate": 0}


def test_daily_report_csv(store, world, svc, admin_viewer):
    _mark(store, world, "t_a1", "2025-03-05", "present")
    report = svc.daily_report(admin_viewer, attendance_date="2025-03-05")

    text = daily_report_csv(report)
    lines = text.splitlines()
    assert lines[0] == "Daily Attendance Report - 2025-03-05"
    assert lines[2] == "Program,Total Assigned,Present,Absent,Late,Excused,Attendance %"
    assert lines[3] == "Numeracy,3,1,0,0,0,33%"
    assert "Teacher Details" not in text

    detailed = daily_report_csv(report, include_details=True)
    assert "Teacher Details" in detailed
    assert "Ann Able,ann@example.org,Alpha School,present," in detailed
    assert report_filename(report, "csv") == "attendance_report_2025-03-05.csv"


def test_daily_report_xlsx_has_both_sheets(store, world, svc, admin_viewer):
    _mark(store, world, "t_a1", "2025-03-05", "present")
    report = svc.daily_report(admin_viewer, attendance_date="2025-03-05")

    workbook = load_workbook(daily_report_xlsx(report))

    assert workbook.sheetnames == ["Summary", "Details"]
    assert workbook["Summary"]["A2"].value == "Numeracy"
    assert workbook["Details"]["A2"].value == "Ann Able"
