from __future__ import annotations

from flask import Blueprint, current_app, jsonify, request

from orderhub.contexts.analytics.application.period_comparison import validate_period_days
from orderhub.contexts.analytics.application.service import AnalyticsService
from orderhub.contexts.analytics.application.sync import PeerSyncService
from orderhub.contexts.analytics.infrastructure.sql_store import SqlAnalyticsStore
from orderhub.contexts.peer.domain.gateway import PeerGateway
from orderhub.contexts.peer.infrastructure.client import build_peer_gateway
from orderhub.errors import NotFoundError, ValidationError
from orderhub.messages import success_message


analytics_bp = Blueprint("analytics", __name__, url_prefix="/api/analytics")
sync_bp = Blueprint("sync", __name__, url_prefix="/api/sync")

PEER_GATEWAY_EXTENSION = "orderhub.peer_gateway"


def peer_gateway() -> PeerGateway:
    gateway = current_app.extensions.get(PEER_GATEWAY_EXTENSION)
    if gateway is None:
        gateway = build_peer_gateway(current_app.config)
        current_app.extensions[PEER_GATEWAY_EXTENSION] = gateway
    return gateway


def _analytics_service() -> AnalyticsService:
    store = SqlAnalyticsStore(current_app.config["DB_PATH"])
    return AnalyticsService.from_config(current_app.config, store, peer_gateway())


def _sync_service() -> PeerSyncService:
    return PeerSyncService(peer_gateway(), peer_url=current_app.config.get("PEER_SERVICE_URL"))


def _required_id(value: str, field_name: str) -> str:
    normalized = str(value or "").strip()
    if not normalized:
        raise ValidationError(message_key="id_required", payload={"field": field_name})
    return normalized


def _ok(data, *, message_key: str | None = None, count: bool = False):
    body: dict = {"success": True, "data": data}
    if count:
        body["count"] = len(data)
    if message_key:
        body["message"] = success_message(message_key)
    return jsonify(body)


@analytics_bp.route("/dashboard", methods=["GET"])
def dashboard():
    return _ok(_analytics_service().get_dashboard_data())


@analytics_bp.route("/metrics", methods=["GET"])
def metrics():
    return _ok(_analytics_service().get_metrics())


@analytics_bp.route("/insights", methods=["GET"])
def insights():
    return _ok(_analytics_service().get_business_insights())


@analytics_bp.route("/reports/<report_type>", methods=["GET"])
def report(report_type: str):
    return _ok(_analytics_service().generate_report(report_type))


@analytics_bp.route("/comparison", methods=["GET"])
def comparison():
    raw_days = (request.args.get("days") or "").strip()
    days = validate_period_days(raw_days) if raw_days else int(current_app.config.get("ANALYTICS_PERIOD_DAYS", 30))
    return _ok(_analytics_service().get_period_comparison(days))


@analytics_bp.route("/cohorts", methods=["GET"])
def cohorts():
    return _ok(_analytics_service().get_cohort_analysis())


@analytics_bp.route("/health", methods=["GET"])
def service_health():
    return _ok(_analytics_service().get_service_health())


@sync_bp.route("/user/<user_id>", methods=["GET"])
def sync_user(user_id: str):
    user = _sync_service().sync_user(_required_id(user_id, "userId"))
    if not user:
        raise NotFoundError(message_key="user_not_found_in_peer")
    return _ok(user, message_key="user_synced")


@sync_bp.route("/orders/<user_id>", methods=["GET"])
def sync_orders(user_id: str):
    orders = _sync_service().sync_user_orders(_required_id(user_id, "userId"))
    return _ok(orders, message_key="orders_synced", count=True)


@sync_bp.route("/all-users", methods=["GET"])
def sync_all_users():
    return _ok(_sync_service().sync_all_users(), message_key="users_synced", count=True)


@sync_bp.route("/health-check", methods=["GET"])
def health_check():
    return _ok(_sync_service().check_external_services())


@sync_bp.route("/stats-comparison", methods=["GET"])
def stats_comparison():
    return _ok(_sync_service().compare_stats(), message_key="stats_compared")


@sync_bp.route("/validate-consistency", methods=["POST"])
def validate_consistency():
    return _ok(_analytics_service().validate_data_consistency(), message_key="consistency_validated")
