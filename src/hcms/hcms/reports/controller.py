from __future__ import annotations

from flask import Flask, jsonify, request, send_file

from ..common.datetime_utils import today_iso
from ..common.web import Guards
from ..container import Container
from .export import daily_report_csv, daily_report_xlsx, report_filename


def register(app: Flask, container: Container) -> None:
    guards = Guards(container.auth_service)
    reports = container.report_service

    def _daily_report():
        return reports.daily_report(
            guards.current_viewer(),
            attendance_date=request.args.get("date") or today_iso(),
            training_program_id=request.args.get("training_program_id") or None,
        )

    @app.route("/api/dashboard/stats", methods=["GET"], endpoint="dashboard_stats")
    @guards.login_required
    def dashboard_stats():
        return jsonify(reports.dashboard_stats(guards.current_viewer()))

    @app.route("/api/reports/daily-attendance", methods=["GET"], endpoint="daily_attendance")
    @guards.permission_required("can_view_reports")
    def daily_attendance():
        return jsonify(_daily_report().to_dict())

    @app.route("/api/reports/daily-attendance.csv", methods=["GET"], endpoint="daily_attendance_csv")
    @guards.permission_required("can_view_reports")
    def daily_attendance_csv():
        report = _daily_report()
        include_details = request.args.get("details") in ("1", "true")
        body = daily_report_csv(report, include_details=include_details).encode("utf-8-sig")
        return app.response_class(
            body,
            mimetype="text/csv",
            headers={"Content-Disposition": f"attachment; filename={report_filename(report, 'csv')}"},
        )

    @app.route("/api/reports/daily-attendance.xlsx", methods=["GET"], endpoint="daily_attendance_xlsx")
    @guards.permission_required("can_view_reports")
    def daily_attendance_xlsx():
        report = _daily_report()
        return send_file(
            daily_report_xlsx(report),
            download_name=report_filename(report, "xlsx"),
            as_attachment=True,
            mimetype="application/vnd.openxmlformats-officedocument.spreadsheetml.sheet",
        )

    @app.route("/api/reports/attendance-analytics", methods=["GET"], endpoint="attendance_analytics")
    @guards.permission_required("can_view_reports")
    def attendance_analytics():
        program_id = request.args.get("training_program_id")
        return jsonify(reports.attendance_analytics(training_program_id=None if program_id in (None, "", "all") else program_id))
