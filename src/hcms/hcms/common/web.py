"""Request helpers shared by the controllers."""

from __future__ import annotations

from functools import wraps
from typing import Any

from flask import g, request, session

from ..core.exceptions import AuthenticationError, AuthorizationError, ValidationError
from ..users.model import Viewer


def json_body(*, expect: type = dict) -> Any:
    data = request.get_json(silent=True)
    if data is None:
        data = expect()
    if not isinstance(data, expect):
        raise ValidationError(f"Request body must be a JSON {'array' if expect is list else 'object'}")
    return data


class Guards:
    """Session-based access decorators bound to the app's auth service."""

    def __init__(self, auth_service):
        self._auth = auth_service

    def current_viewer(self) -> Viewer:
        viewer = g.get("viewer")
        if viewer is None:
            user_id = session.get("user_id")
            if not user_id:
                raise AuthenticationError("Authentication required")
            try:
                viewer = self._auth.get_viewer(user_id)
            except AuthenticationError:
                session.clear()
                raise
            g.viewer = viewer
        return viewer

    def current_teacher(self) -> dict:
        teacher_id = session.get("teacher_id")
        if not teacher_id:
            raise AuthenticationError("Teacher login required")
        return self._auth.get_teacher(teacher_id)

    def login_required(self, view):
        @wraps(view)
        def wrapper(*args, **kwargs):
            self.current_viewer()
            return view(*args, **kwargs)

        return wrapper

    def admin_required(self, view):
        @wraps(view)
        def wrapper(*args, **kwargs):
            if not self.current_viewer().is_admin:
                raise AuthorizationError("Admin access required")
            return view(*args, **kwargs)

        return wrapper

    def permission_required(self, flag: str):
        def decorator(view):
            @wraps(view)
            def wrapper(*args, **kwargs):
                if not self.current_viewer().can(flag):
                    raise AuthorizationError("You do not have permission to do this")
                return view(*args, **kwargs)

            return wrapper

        return decorator

    def teacher_required(self, view):
        @wraps(view)
        def wrapper(*args, **kwargs):
            g.teacher = self.current_teacher()
            return view(*args, **kwargs)

        return wrapper
