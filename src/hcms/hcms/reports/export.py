"""File exports of the daily attendance report."""

from __future__ import annotations

import csv
import io

import pandas as pd

from .service import DailyReport

SUMMARY_COLUMNS = ["Program", "Total Assigned", "Present", "Absent", "Late", "Excused", "Attendance %"]
DETAIL_COLUMNS = ["Teacher Name", "Email", "School", "Status", "Notes"]


def _summary_rows(report: DailyReport) -> list[list]:
    return [
        [p.training_program_name, p.total_assigned, p.present, p.absent, p.late, p.excused, f"{p.attendance_percentage}%"]
        for p in report.programs
    ]


def _detail_rows(report: DailyReport) -> list[list]:
    return [[d["teacher_name"], d["teacher_email"], d["school_name"], d["status"], d["notes"]] for d in report.details]


def daily_report_csv(report: DailyReport, *, include_details: bool = False) -> str:
    out = io.StringIO()
    writer = csv.writer(out, lineterminator="\n")
    writer.writerow([f"Daily Attendance Report - {report.attendance_date}"])
    writer.writerow([])
    writer.writerow(SUMMARY_COLUMNS)
    writer.writerows(_summary_rows(report))

    if include_details and report.details:
        writer.writerow([])
        writer.writerow(["Teacher Details"])
        writer.writerow(DETAIL_COLUMNS)
        writer.writerows(_detail_rows(report))
    return out.getvalue()


def daily_report_xlsx(report: DailyReport) -> io.BytesIO:
    """Workbook with a Summary sheet and a Details sheet."""
    output = io.BytesIO()
    with pd.ExcelWriter(output, engine="openpyxl") as writer:
        pd.DataFrame(_summary_rows(report), columns=SUMMARY_COLUMNS).to_excel(writer, index=False, sheet_name="Summary")
        pd.DataFrame(_detail_rows(report), columns=DETAIL_COLUMNS).to_excel(writer, index=False, sheet_name="Details")
    output.seek(0)
    return output


def report_filename(report: DailyReport, extension: str) -> str:
    return f"attendance_report_{report.attendance_date}.{extension}"
