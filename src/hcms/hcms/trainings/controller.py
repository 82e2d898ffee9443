from __future__ import annotations

from flask import Flask, g, jsonify, request

from ..common.web import Guards, json_body
from ..container import Container
from ..core.exceptions import AuthorizationError


def register(app: Flask, container: Container) -> None:
    guards = Guards(container.auth_service)
    trainings = container.training_service

    @app.route("/api/training/join", methods=["POST"], endpoint="training_join")
    @guards.teacher_required
    def training_join():
        data = json_body()
        teacher_id = str(data.get("teacherId") or g.teacher["id"])
        if teacher_id != g.teacher["id"]:
            raise AuthorizationError("You can only join your own trainings")
        result = trainings.join(
            teacher_id=teacher_id,
            assignment_id=str(data.get("assignmentId") or ""),
        )
        return jsonify({"message": result.message, "attendance": result.attendance}), 201 if result.created else 200

    @app.route("/api/training/assignments", methods=["GET"], endpoint="training_assignments")
    @guards.login_required
    def training_assignments():
        program_id = request.args.get("training_program_id") or None
        return jsonify(trainings.list_assignments(guards.current_viewer(), training_program_id=program_id))

    @app.route("/api/training/bulk-assign", methods=["POST"], endpoint="training_bulk_assign")
    @guards.permission_required("can_assign_training")
    def training_bulk_assign():
        data = json_body()
        school_id = data.get("school_id")
        result = trainings.bulk_assign(
            guards.current_viewer(),
            training_program_id=data.get("training_program_id"),
            school_id=None if school_id in (None, "", "all") else school_id,
            due_date=data.get("due_date") or None,
        )
        return jsonify({"message": result.message, "created": len(result.created), "skipped": result.skipped})

    @app.route("/api/training/assignments/<assignment_id>/attendance", methods=["GET"], endpoint="assignment_attendance")
    @guards.login_required
    def assignment_attendance(assignment_id: str):
        return jsonify(trainings.attendance_for_assignment(guards.current_viewer(), assignment_id))

    @app.route("/api/training/attendance", methods=["POST"], endpoint="record_attendance")
    @guards.permission_required("can_assign_training")
    def record_attendance():
        data = json_body()
        record = trainings.record_attendance(
            guards.current_viewer(),
            assignment_id=data.get("assignment_id"),
            attendance_date=data.get("attendance_date"),
            status=data.get("status"),
            notes=data.get("notes") or "",
        )
        return jsonify(record)

    @app.route("/api/training/attendance/bulk", methods=["POST"], endpoint="bulk_attendance")
    @guards.permission_required("can_assign_training")
    def bulk_attendance():
        data = json_body()
        records = trainings.bulk_attendance(
            guards.current_viewer(),
            assignment_ids=data.get("assignment_ids") or [],
            attendance_date=data.get("attendance_date"),
            status=data.get("status"),
            notes=data.get("notes") or "",
        )
        return jsonify({"count": len(records), "records": records})

    # ---- employee tasks ----

    @app.route("/api/tasks", methods=["GET"], endpoint="tasks")
    @guards.login_required
    def tasks():
        return jsonify(
            container.task_service.list_tasks(
                guards.current_viewer(),
                employee_id=request.args.get("employee_id") or None,
                status=request.args.get("status") or None,
            )
        )

    @app.route("/api/tasks/<task_id>/status", methods=["PUT"], endpoint="task_status")
    @guards.login_required
    def task_status(task_id: str):
        task = container.task_service.set_status(guards.current_viewer(), task_id, json_body().get("status"))
        return jsonify(task)
