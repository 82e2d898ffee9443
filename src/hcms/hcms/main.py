from __future__ import annotations

import importlib
import logging
from datetime import date, datetime, timedelta
from typing import Optional

from bson import ObjectId
from dotenv import load_dotenv
from flask import Flask, jsonify
from flask.json.provider import DefaultJSONProvider
from flask_cors import CORS
from werkzeug.exceptions import HTTPException

from config import get_settings_module

from .container import Container, build_container
from .core.constants import DEFAULT_SESSION_DAYS
from .core.exceptions import DomainError
from .crud.controller import register as register_crud
from .database.bootstrap import ensure_admin_user, ensure_indexes
from .database.store import DocumentStore
from .portal.controller import register as register_portal
from .reports.controller import register as register_reports
from .schools.controller import register as register_schools
from .teachers.controller import register as register_teachers
from .trainings.controller import register as register_trainings
from .uploads.controller import register as register_uploads
from .users.controller import register as register_users

logger = logging.getLogger(__name__)

LOG_FORMAT = "%(asctime)s - %(name)s - %(levelname)s - %(message)s"


class DocumentJSONProvider(DefaultJSONProvider):
    """JSON provider that also understands ObjectId and ISO dates."""

    @staticmethod
    def default(o):
        if isinstance(o, ObjectId):
            return str(o)
        if isinstance(o, (datetime, date)):
            return o.isoformat()
        return DefaultJSONProvider.default(o)


def register_error_handlers(app: Flask) -> None:
    @app.errorhandler(DomainError)
    def handle_domain_error(e: DomainError):
        return jsonify({"error": str(e)}), e.status_code

    @app.errorhandler(HTTPException)
    def handle_http_error(e: HTTPException):
        return jsonify({"error": e.description or e.name}), e.code

    @app.errorhandler(Exception)
    def handle_unexpected(e: Exception):
        logger.exception("Unhandled error")
        message = str(e) if app.config.get("DEBUG") else "Internal server error"
        return jsonify({"error": message}), 500


def register_health(app: Flask, container: Container) -> None:
    @app.route("/", methods=["GET"], endpoint="root")
    def root():
        return jsonify({"status": "ok", "service": "hcms-api"})

    @app.route("/api/health", methods=["GET"], endpoint="health")
    def health():
        try:
            container.store.ping()
        except Exception:
            logger.exception("Database ping failed")
            return jsonify({"status": "error", "database": "unreachable"}), 503
        return jsonify({"status": "ok", "database": "connected"})


def create_app(*, store: Optional[DocumentStore] = None) -> Flask:
    load_dotenv(override=False)
    app = Flask(__name__)
    app.json = DocumentJSONProvider(app)

    settings_module = get_settings_module()
    settings = importlib.import_module(settings_module)
    logging.basicConfig(level=getattr(settings, "LOG_LEVEL", "INFO"), format=LOG_FORMAT)

    app.secret_key = getattr(settings, "SECRET_KEY")
    mongo_config = getattr(settings, "MONGO_CONFIG")
    app.config["DEBUG"] = bool(getattr(settings, "DEBUG", False))
    app.config["TESTING"] = bool(getattr(settings, "TESTING", False))
    app.config["MAX_CONTENT_LENGTH"] = getattr(settings, "MAX_CONTENT_LENGTH", None)
    app.permanent_session_lifetime = timedelta(days=int(getattr(settings, "SESSION_DAYS", DEFAULT_SESSION_DAYS)))

    CORS(app, origins=getattr(settings, "CORS_ORIGINS", []), supports_credentials=True)

    logger.info("Starting with settings=%s db=%s", settings_module, mongo_config.get("database"))

    container = build_container(mongo_config=mongo_config, store=store)

    if container.conn is not None and bool(getattr(settings, "AUTO_INIT_DB", False)):
        ensure_indexes(container.conn.get_database())
    if bool(getattr(settings, "AUTO_SEED_ADMIN", False)):
        ensure_admin_user(
            container.store,
            username=getattr(settings, "ADMIN_USERNAME"),
            password=getattr(settings, "ADMIN_PASSWORD"),
        )

    register_error_handlers(app)
    register_health(app, container)
    register_users(app, container)
    register_schools(app, container)
    register_teachers(app, container)
    register_trainings(app, container)
    register_reports(app, container)
    register_uploads(app, container)
    register_portal(app, container)
    register_crud(app, container)

    return app
