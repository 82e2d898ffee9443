from __future__ import annotations

import logging

from flask import Flask, jsonify, request, session

from ..common.web import Guards, json_body
from ..container import Container
from ..database.collections import Collections
from ..database.documents import public_document
from ..devices.user_agent import describe_device

logger = logging.getLogger(__name__)


def register(app: Flask, container: Container) -> None:
    guards = Guards(container.auth_service)

    # ---- auth ----

    @app.route("/api/auth/login", methods=["POST"], endpoint="auth_login")
    def login():
        data = json_body()
        role = data.get("role")
        device = None
        if role != "teacher":
            device = describe_device(
                request.headers.get("User-Agent"),
                device_id=data.get("device_id"),
                accept_language=request.headers.get("Accept-Language", ""),
                ip_address=request.remote_addr,
            )

        result = container.auth_service.login(
            str(data.get("username") or ""),
            str(data.get("password") or ""),
            role=role,
            device=device,
        )

        session.clear()
        session.permanent = True
        if result.is_teacher:
            session["teacher_id"] = result.subject_id
            session["name"] = f"{result.user.get('first_name', '')} {result.user.get('last_name', '')}".strip()
            session["role"] = "teacher"
        else:
            session["user_id"] = result.subject_id
            session["name"] = result.user.get("full_name")
            session["role"] = result.user.get("role")

        return jsonify({"user": result.user, "permissions": result.permissions})

    @app.route("/api/auth/teacher-login", methods=["POST"], endpoint="auth_teacher_login")
    def teacher_login():
        data = json_body()
        teacher = container.auth_service.teacher_login(str(data.get("phone") or ""))

        session.clear()
        session.permanent = True
        session["teacher_id"] = teacher["id"]
        session["name"] = f"{teacher.get('first_name', '')} {teacher.get('last_name', '')}".strip()
        session["role"] = "teacher"
        return jsonify({"teacher": teacher})

    @app.route("/api/auth/logout", methods=["POST"], endpoint="auth_logout")
    def logout():
        session.clear()
        return jsonify({"success": True})

    @app.route("/api/auth/me", methods=["GET"], endpoint="auth_me")
    def me():
        if session.get("teacher_id"):
            return jsonify({"teacher": guards.current_teacher(), "role": "teacher"})

        viewer = guards.current_viewer()
        user = container.store.find_by_id(Collections.USERS, viewer.user_id)
        return jsonify(
            {
                "user": public_document(user),
                "permissions": viewer.permissions.to_document(),
            }
        )

    # ---- staff accounts ----

    @app.route("/api/admin/users", methods=["GET"], endpoint="admin_users")
    @guards.permission_required("can_manage_users")
    def admin_users():
        return jsonify(container.user_service.list_with_permissions())

    @app.route("/api/admin/users", methods=["POST"], endpoint="admin_create_user")
    @guards.permission_required("can_manage_users")
    def admin_create_user():
        data = json_body()
        created = container.user_service.create_user(
            full_name=data.get("full_name"),
            role=data.get("role") or "employee",
            permissions=data.get("permissions") or {},
            username=data.get("username"),
        )
        return jsonify({"user": created.user, "username": created.username, "password": created.password}), 201

    @app.route("/api/admin/users/<user_id>/permissions", methods=["PUT"], endpoint="admin_user_permissions")
    @guards.permission_required("can_manage_users")
    def admin_user_permissions(user_id: str):
        return jsonify(container.user_service.set_permissions(user_id, json_body()))

    @app.route("/api/admin/users/<user_id>/toggle-active", methods=["POST"], endpoint="admin_toggle_user")
    @guards.permission_required("can_manage_users")
    def admin_toggle_user(user_id: str):
        is_active = container.user_service.toggle_active(user_id, current_user_id=guards.current_viewer().user_id)
        return jsonify({"success": True, "id": user_id, "is_active": is_active})

    @app.route("/api/admin/users/<user_id>/reset-password", methods=["POST"], endpoint="admin_reset_password")
    @guards.permission_required("can_manage_users")
    def admin_reset_password(user_id: str):
        creds = container.user_service.regenerate_password(user_id)
        return jsonify({"username": creds.username, "password": creds.password})

    @app.route("/api/admin/users/<user_id>", methods=["DELETE"], endpoint="admin_delete_user")
    @guards.permission_required("can_manage_users")
    def admin_delete_user(user_id: str):
        container.user_service.delete_user(user_id, current_user_id=guards.current_viewer().user_id)
        return jsonify({"success": True, "id": user_id})

    # ---- devices ----

    @app.route("/api/admin/devices", methods=["GET"], endpoint="admin_devices")
    @guards.admin_required
    def admin_devices():
        return jsonify(container.device_service.list_devices(user_id=request.args.get("user_id") or None))

    @app.route("/api/admin/devices/<device_id>/block", methods=["POST"], endpoint="admin_block_device")
    @guards.admin_required
    def admin_block_device(device_id: str):
        blocked = bool(json_body().get("blocked", True))
        device = container.device_service.set_blocked(device_id, blocked=blocked)
        logger.info("Device %s %s", device_id, "blocked" if blocked else "unblocked")
        return jsonify(device)
