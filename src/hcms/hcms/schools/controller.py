from __future__ import annotations

from flask import Flask, jsonify, request

from ..common.validators import require_id_list
from ..common.web import Guards, json_body
from ..container import Container


def register(app: Flask, container: Container) -> None:
    guards = Guards(container.auth_service)

    @app.route("/api/me/schools", methods=["GET"], endpoint="my_schools")
    @guards.login_required
    def my_schools():
        return jsonify(container.school_service.list_schools(guards.current_viewer()))

    @app.route("/api/me/teachers", methods=["GET"], endpoint="my_teachers")
    @guards.login_required
    def my_teachers():
        viewer = guards.current_viewer()
        return jsonify(container.school_service.list_teachers(viewer, school_id=request.args.get("school_id") or None))

    @app.route("/api/me/mentors", methods=["GET"], endpoint="my_mentors")
    @guards.login_required
    def my_mentors():
        access = container.access_service.for_viewer(guards.current_viewer())
        return jsonify(container.mentor_service.list_with_schools(access))

    @app.route("/api/schools/<school_id>/overview", methods=["GET"], endpoint="school_overview")
    @guards.login_required
    def school_overview(school_id: str):
        return jsonify(container.school_service.school_overview(guards.current_viewer(), school_id))

    # ---- school assignments ----

    @app.route("/api/school-assignments", methods=["GET"], endpoint="school_assignments")
    @guards.admin_required
    def school_assignments():
        employee_id = request.args.get("employee_id") or None
        return jsonify(container.school_assignment_service.list_assignments(employee_id=employee_id))

    @app.route("/api/school-assignments", methods=["POST"], endpoint="assign_schools")
    @guards.admin_required
    def assign_schools():
        data = json_body()
        created = container.school_assignment_service.assign(
            employee_id=data.get("employee_id"),
            school_ids=data.get("school_ids") or [],
            assigned_by=guards.current_viewer().user_id,
        )
        return jsonify(created), 201

    # ---- follow-ups ----

    @app.route("/api/followups", methods=["GET"], endpoint="followups")
    @guards.login_required
    def followups():
        tab = request.args.get("tab") or "all"
        return jsonify(container.followup_service.schools_with_status(guards.current_viewer(), tab=tab))

    @app.route("/api/followups", methods=["POST"], endpoint="record_followup")
    @guards.login_required
    def record_followup():
        data = json_body()
        followup = container.followup_service.record(
            guards.current_viewer(),
            school_id=data.get("school_id"),
            comments=data.get("comments") or "",
            next_followup_date=data.get("next_followup_date") or None,
        )
        return jsonify(followup), 201

    # ---- mentors ----

    @app.route("/api/mentors/<mentor_id>/schools", methods=["PUT"], endpoint="set_mentor_schools")
    @guards.permission_required("can_manage_mentors")
    def set_mentor_schools(mentor_id: str):
        data = json_body()
        school_ids = data.get("school_ids")
        school_ids = require_id_list(school_ids, "school_ids") if school_ids else []
        return jsonify(container.mentor_service.set_schools(mentor_id, school_ids))
