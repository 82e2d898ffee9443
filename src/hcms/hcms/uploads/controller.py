from __future__ import annotations

from flask import Flask, jsonify, request

from ..common.web import Guards
from ..container import Container
from ..core.exceptions import ValidationError
from .service import template_csv


def register(app: Flask, container: Container) -> None:
    guards = Guards(container.auth_service)

    @app.route("/api/uploads/<upload_type>", methods=["POST"], endpoint="bulk_upload")
    @guards.admin_required
    def bulk_upload(upload_type: str):
        file = request.files.get("file")
        if file is not None:
            text = file.read().decode("utf-8-sig", errors="replace")
        else:
            text = request.get_data(as_text=True)
        if not text.strip():
            raise ValidationError("Please upload a CSV file")

        result = container.upload_service.upload(upload_type, text, created_by=guards.current_viewer().user_id)
        return jsonify(result.to_dict())

    @app.route("/api/uploads/<upload_type>/template", methods=["GET"], endpoint="upload_template")
    @guards.login_required
    def upload_template(upload_type: str):
        return app.response_class(
            template_csv(upload_type),
            mimetype="text/csv",
            headers={"Content-Disposition": f"attachment; filename={upload_type}_template.csv"},
        )
