from __future__ import annotations

from flask import Flask, jsonify

from ..common.web import Guards, json_body
from ..container import Container


def register(app: Flask, container: Container) -> None:
    guards = Guards(container.auth_service)

    @app.route("/api/teachers/with-credentials", methods=["POST"], endpoint="create_teacher")
    @guards.permission_required("can_manage_teachers")
    def create_teacher():
        creds = container.teacher_service.create_teacher(guards.current_viewer(), json_body())
        return jsonify({"teacher": creds.teacher, "username": creds.username, "password": creds.password}), 201

    @app.route("/api/teachers/<teacher_id>/credentials", methods=["POST"], endpoint="regenerate_teacher_credentials")
    @guards.permission_required("can_manage_teachers")
    def regenerate_teacher_credentials(teacher_id: str):
        creds = container.teacher_service.regenerate_credentials(guards.current_viewer(), teacher_id)
        return jsonify({"teacher": creds.teacher, "username": creds.username, "password": creds.password})

    @app.route("/api/teachers/<teacher_id>/profile", methods=["GET"], endpoint="teacher_profile")
    @guards.login_required
    def teacher_profile(teacher_id: str):
        return jsonify(container.teacher_service.profile_for_viewer(guards.current_viewer(), teacher_id))
