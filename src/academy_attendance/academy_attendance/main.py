from __future__ import annotations

import importlib
import logging
from typing import Optional

from dotenv import load_dotenv
from flask import Flask, jsonify
from werkzeug.exceptions import HTTPException

from config import get_settings_module

from .assignments.controller import register as register_assignments
from .attendance.controller import register as register_attendance
from .checklinks.controller import register as register_checklinks
from .cli import register as register_cli
from .container import Container, build_container
from .core.exceptions import ConflictError, DomainError, PinMismatchError
from .core.logging_utils import setup_logging
from .database.bootstrap import SCHEMA_PATH, apply_schema, list_tables
from .pins.controller import register as register_pins
from .seats.controller import register as register_seats
from .stats.controller import register as register_stats

logger = logging.getLogger(__name__)

_STATUS_BY_CODE = {
    "validation": 400,
    "mismatch": 401,
    "permission": 403,
    "inactive": 403,
    "not_found": 404,
    "conflict": 409,
    "expired": 410,
    "locked": 423,
    "storage": 500,
}


def register_error_handlers(app: Flask) -> None:
    @app.errorhandler(DomainError)
    def handle_domain_error(exc: DomainError):
        payload = {"success": False, "error": exc.code, "message": str(exc)}
        if isinstance(exc, ConflictError):
            payload["reason"] = exc.reason.value
        if isinstance(exc, PinMismatchError):
            payload["failedAttempts"] = exc.failed_attempts
            payload["isLocked"] = exc.is_locked
        return jsonify(payload), _STATUS_BY_CODE.get(exc.code, 400)

    @app.errorhandler(HTTPException)
    def handle_http_error(exc: HTTPException):
        return jsonify({"success": False, "error": "http", "message": exc.description}), exc.code

    @app.errorhandler(Exception)
    def handle_unexpected(exc: Exception):
        logger.exception("Unhandled error")
        return jsonify({"success": False, "error": "internal", "message": "Internal server error"}), 500


def create_app(*, container: Optional[Container] = None, settings_module: Optional[str] = None) -> Flask:
    load_dotenv(override=False)
    app = Flask(__name__)

    settings_module = settings_module or get_settings_module()
    settings = importlib.import_module(settings_module)
    setup_logging(getattr(settings, "LOG_LEVEL", "INFO"), getattr(settings, "LOG_FORMAT", "text"))

    app.secret_key = getattr(settings, "SECRET_KEY")
    db_config = getattr(settings, "DB_CONFIG")
    app.config["DEBUG"] = bool(getattr(settings, "DEBUG", False))
    app.config["TESTING"] = bool(getattr(settings, "TESTING", False))
    app.config["DB_CONFIG"] = db_config

    logger.info(
        "settings=%s db=%s@%s:%s/%s",
        settings_module,
        db_config.get("user"),
        db_config.get("host"),
        db_config.get("port", 3306),
        db_config.get("database"),
    )

    if container is None:
        if bool(getattr(settings, "AUTO_INIT_DB", False)):
            apply_schema(db_config, schema_path=SCHEMA_PATH)
            logger.info("schema ready (tables=%d)", len(list_tables(db_config)))
        container = build_container(db_config=db_config, settings=settings)

    app.extensions["container"] = container

    register_error_handlers(app)
    register_seats(app, container)
    register_assignments(app, container)
    register_attendance(app, container)
    register_pins(app, container)
    register_checklinks(app, container)
    register_stats(app, container)
    register_cli(app, container)

    return app
