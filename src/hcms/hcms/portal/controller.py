from __future__ import annotations

from flask import Flask, g, jsonify

from ..common.web import Guards
from ..container import Container


def register(app: Flask, container: Container) -> None:
    guards = Guards(container.auth_service)

    @app.route("/api/teacher-portal/overview", methods=["GET"], endpoint="teacher_portal_overview")
    @guards.teacher_required
    def teacher_portal_overview():
        return jsonify(container.teacher_service.profile(g.teacher["id"]))
