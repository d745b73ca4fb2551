import os
from datetime import datetime, timezone

from flask import Flask, jsonify, request
from werkzeug.exceptions import HTTPException

from orderhub.config import Config
from orderhub.db import close_db, init_db
from orderhub.db_migrations import register_db_cli
from orderhub.observability import (
    configure_json_logging,
    ensure_request_id,
    mark_request_start,
    metrics_snapshot,
    observe_response,
    prometheus_metrics_text,
)
from orderhub.schema_version import SCHEMA_VERSION, validate_schema_compatibility
from orderhub.seed import register_seed_cli


def create_app(config_class=Config):
    app = Flask(__name__)
    app.config.from_object(config_class())
    configure_json_logging(app)
    validate_schema_compatibility(app.config.get("EXPECTED_SCHEMA_VERSION"))

    _ensure_database_dir(app)
    _register_error_handlers(app)
    _register_blueprints(app)
    _register_health(app)
    register_db_cli(app)
    register_seed_cli(app)
    _maybe_init_schema(app)

    app.teardown_appcontext(close_db)
    return app


def _ensure_database_dir(app: Flask) -> None:
    database_dir = app.config.get("DATABASE_DIR")
    if database_dir:
        os.makedirs(database_dir, exist_ok=True)


def _maybe_init_schema(app: Flask) -> None:
    auto_init = bool(app.config.get("DB_AUTO_INIT", False))
    if app.testing:
        # Tests build their schema directly instead of running migrations.
        auto_init = True
    if not auto_init:
        return

    flask_env = (os.environ.get("FLASK_ENV", "development") or "development").strip().lower()
    if not app.testing and flask_env != "development":
        app.logger.warning("DB_AUTO_INIT ignored outside development.")
        return

    with app.app_context():
        init_db()


def _register_blueprints(app: Flask) -> None:
    if app.config["SERVICE_NAME"] == "analytics":
        from orderhub.contexts.analytics.interfaces.http import analytics_bp, sync_bp

        app.register_blueprint(analytics_bp)
        app.register_blueprint(sync_bp)
        return

    from orderhub.contexts.orders.interfaces.http import orders_bp, users_bp

    app.register_blueprint(users_bp)
    app.register_blueprint(orders_bp)


def _register_error_handlers(app: Flask) -> None:
    from orderhub.errors import AppError, SystemError

    @app.before_request
    def _ensure_request_id() -> None:
        ensure_request_id()
        mark_request_start()

    @app.after_request
    def _append_request_id(response):
        response.headers["X-Request-Id"] = ensure_request_id()
        return observe_response(response)

    def _log_error(error: AppError, request_id: str) -> None:
        log_method = app.logger.error if error.critical else app.logger.warning
        log_method(
            "application_error",
            extra={
                "request_id": request_id,
                "error_code": error.code,
                "http_status": error.http_status,
                "message_key": error.message_key,
                "details": error.details,
                "request_path": request.path,
                "http_method": request.method,
            },
            exc_info=error.critical,
        )

    @app.errorhandler(AppError)
    def _handle_app_error(exc: AppError):
        request_id = ensure_request_id()
        _log_error(exc, request_id)
        return jsonify(exc.to_response_payload(request_id)), exc.http_status

    @app.errorhandler(Exception)
    def _handle_unexpected(exc: Exception):
        if isinstance(exc, HTTPException):
            return exc

        request_id = ensure_request_id()
        mapped = SystemError(
            code="unexpected_error",
            message_key="unexpected_error",
            http_status=500,
            critical=True,
            details=str(exc),
        )
        app.logger.exception(
            "unexpected_exception",
            extra={
                "request_id": request_id,
                "error_code": mapped.code,
                "request_path": request.path,
                "http_method": request.method,
            },
        )
        return jsonify(mapped.to_response_payload(request_id)), mapped.http_status


def _register_health(app: Flask) -> None:
    service_name = app.config["SERVICE_NAME"]
    service_version = app.config.get("SERVICE_VERSION", "1.0.0")

    @app.route("/health")
    def health():
        return {
            "status": "healthy",
            "service": service_name,
            "version": service_version,
            "schemaVersion": SCHEMA_VERSION,
            "timestamp": datetime.now(timezone.utc).isoformat().replace("+00:00", "Z"),
            "metrics": {"http": metrics_snapshot()},
        }, 200

    @app.route("/metrics")
    def metrics():
        return app.response_class(prometheus_metrics_text(), mimetype="text/plain; version=0.0.4")

    info_path = "/info" if service_name == "analytics" else "/api"

    @app.route(info_path)
    def service_info():
        if service_name == "analytics":
            endpoints = {
                "analytics": "/api/analytics",
                "sync": "/api/sync",
                "health": "/health",
            }
        else:
            endpoints = {
                "users": "/api/users",
                "orders": "/api/orders",
                "health": "/health",
            }
        return {
            "success": True,
            "data": {
                "service": service_name,
                "version": service_version,
                "schemaVersion": SCHEMA_VERSION,
                "endpoints": endpoints,
            },
        }, 200
