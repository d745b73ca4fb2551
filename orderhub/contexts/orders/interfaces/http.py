from __future__ import annotations

import re
from datetime import datetime, timezone

from flask import Blueprint, jsonify, request

from orderhub.contexts.orders.application.order_service import OrderService
from orderhub.contexts.orders.application.user_service import UserService
from orderhub.contexts.orders.domain.contracts import (
    OrderCreateInput,
    OrderFilters,
    OrderUpdateInput,
    UserCreateInput,
    UserFilters,
    UserUpdateInput,
)
from orderhub.db import get_db
from orderhub.errors import NotFoundError, ValidationError
from orderhub.messages import success_message


users_bp = Blueprint("users", __name__, url_prefix="/api/users")
orders_bp = Blueprint("orders", __name__, url_prefix="/api/orders")

_EMAIL_RE = re.compile(r"^[^@\s]+@[^@\s]+\.[^@\s]+$")
_NAME_MIN_LENGTH = 2


def _invalid(field_name: str, message_key: str = "validation_failed") -> ValidationError:
    return ValidationError(message_key=message_key, payload={"field": field_name})


def _json_body() -> dict:
    body = request.get_json(silent=True)
    if body is None:
        return {}
    if not isinstance(body, dict):
        raise ValidationError(message_key="validation_failed")
    return body


def _required_name(payload: dict, field_name: str) -> str:
    value = payload.get(field_name)
    if not isinstance(value, str) or len(value.strip()) < _NAME_MIN_LENGTH:
        raise _invalid(field_name, "name_invalid")
    return value.strip()


def _optional_name(payload: dict, field_name: str) -> str | None:
    if payload.get(field_name) is None:
        return None
    return _required_name(payload, field_name)


def _optional_string(payload: dict, field_name: str) -> str | None:
    value = payload.get(field_name)
    if value is None:
        return None
    if not isinstance(value, str):
        raise _invalid(field_name)
    return value.strip() or None


def _raw_status(payload: dict) -> str | None:
    # Status values are matched exactly; the state machine rejects padded or cased variants.
    value = payload.get("status")
    if value is None:
        return None
    if not isinstance(value, str):
        raise _invalid("status", "invalid_status")
    return value


def _optional_bool(payload: dict, field_name: str) -> bool | None:
    value = payload.get(field_name)
    if value is None:
        return None
    if not isinstance(value, bool):
        raise _invalid(field_name)
    return value


def _amount(payload: dict, field_name: str, *, required: bool) -> float | None:
    value = payload.get(field_name)
    if value is None:
        if required:
            raise _invalid(field_name, "amount_invalid")
        return None
    if isinstance(value, bool) or not isinstance(value, (int, float)) or value < 0:
        raise _invalid(field_name, "amount_invalid")
    return float(value)


def _query_int(name: str) -> int | None:
    raw = (request.args.get(name) or "").strip()
    if not raw:
        return None
    try:
        value = int(raw)
    except ValueError as exc:
        raise _invalid(name) from exc
    if value < 0:
        raise _invalid(name)
    return value


def _query_bool(name: str) -> bool | None:
    raw = (request.args.get(name) or "").strip().lower()
    if not raw:
        return None
    if raw in {"true", "1", "yes"}:
        return True
    if raw in {"false", "0", "no"}:
        return False
    raise _invalid(name)


def _query_datetime(name: str) -> datetime | None:
    raw = (request.args.get(name) or "").strip()
    if not raw:
        return None
    if raw.endswith("Z"):
        raw = raw[:-1] + "+00:00"
    try:
        parsed = datetime.fromisoformat(raw)
    except ValueError as exc:
        raise _invalid(name) from exc
    if parsed.tzinfo is None:
        parsed = parsed.replace(tzinfo=timezone.utc)
    return parsed


def _sort_order() -> str:
    value = (request.args.get("sortOrder") or "DESC").strip().upper()
    if value not in {"ASC", "DESC"}:
        raise _invalid("sortOrder")
    return value


def _ok(data, *, status_code: int = 200, message_key: str | None = None, count: bool = False):
    body: dict = {"success": True, "data": data}
    if count:
        body["count"] = len(data)
    if message_key:
        body["message"] = success_message(message_key)
    return jsonify(body), status_code


# Users


@users_bp.route("", methods=["GET"])
def list_users():
    filters = UserFilters(
        is_active=_query_bool("isActive"),
        limit=_query_int("limit"),
        offset=_query_int("offset"),
        sort_by=(request.args.get("sortBy") or "createdAt").strip(),
        sort_order=_sort_order(),
    )
    return _ok(UserService().find_all(get_db(), filters), count=True)


@users_bp.route("", methods=["POST"])
def create_user():
    body = _json_body()
    email = body.get("email")
    if not isinstance(email, str) or not _EMAIL_RE.match(email.strip()):
        raise _invalid("email", "email_required")
    create_input = UserCreateInput(
        email=email.strip(),
        first_name=_required_name(body, "firstName"),
        last_name=_required_name(body, "lastName"),
        phone=_optional_string(body, "phone"),
    )
    db = get_db()
    user = UserService().create(db, create_input)
    db.commit()
    return _ok(user, status_code=201, message_key="user_created")


@users_bp.route("/stats", methods=["GET"])
def user_stats():
    return _ok(UserService().get_user_stats(get_db()))


@users_bp.route("/<user_id>", methods=["GET"])
def get_user(user_id: str):
    user = UserService().find_by_id(get_db(), user_id)
    if not user:
        raise NotFoundError(message_key="user_not_found")
    return _ok(user)


@users_bp.route("/<user_id>/with-orders", methods=["GET"])
def get_user_with_orders(user_id: str):
    user = UserService().find_with_orders(get_db(), user_id)
    if not user:
        raise NotFoundError(message_key="user_not_found")
    return _ok(user)


@users_bp.route("/<user_id>", methods=["PUT"])
def update_user(user_id: str):
    body = _json_body()
    update_input = UserUpdateInput(
        first_name=_optional_name(body, "firstName"),
        last_name=_optional_name(body, "lastName"),
        phone=_optional_string(body, "phone"),
        is_active=_optional_bool(body, "isActive"),
    )
    db = get_db()
    user = UserService().update(db, user_id, update_input)
    if not user:
        raise NotFoundError(message_key="user_not_found")
    db.commit()
    return _ok(user, message_key="user_updated")


@users_bp.route("/<user_id>/deactivate", methods=["PATCH"])
def deactivate_user(user_id: str):
    db = get_db()
    user = UserService().deactivate(db, user_id)
    if not user:
        raise NotFoundError(message_key="user_not_found")
    db.commit()
    return _ok(user, message_key="user_deactivated")


@users_bp.route("/<user_id>", methods=["DELETE"])
def delete_user(user_id: str):
    db = get_db()
    UserService().delete(db, user_id)
    db.commit()
    return "", 204


# Orders


@orders_bp.route("", methods=["GET"])
def list_orders():
    filters = OrderFilters(
        status=request.args.get("status") or None,
        user_id=(request.args.get("userId") or "").strip() or None,
        start_date=_query_datetime("startDate"),
        end_date=_query_datetime("endDate"),
        limit=_query_int("limit"),
        offset=_query_int("offset"),
        sort_by=(request.args.get("sortBy") or "createdAt").strip(),
        sort_order=_sort_order(),
    )
    return _ok(OrderService().find_all(get_db(), filters), count=True)


@orders_bp.route("", methods=["POST"])
def create_order():
    body = _json_body()
    user_id = _optional_string(body, "userId")
    if not user_id:
        raise _invalid("userId", "id_required")
    create_input = OrderCreateInput(
        user_id=user_id,
        total_amount=_amount(body, "totalAmount", required=True),
        notes=_optional_string(body, "notes"),
    )
    db = get_db()
    order = OrderService().create(db, create_input)
    db.commit()
    return _ok(order, status_code=201, message_key="order_created")


@orders_bp.route("/stats", methods=["GET"])
def order_stats():
    return _ok(OrderService().get_order_stats(get_db()))


@orders_bp.route("/user/<user_id>", methods=["GET"])
def list_user_orders(user_id: str):
    return _ok(OrderService().find_by_user(get_db(), user_id), count=True)


@orders_bp.route("/user/<user_id>/stats", methods=["GET"])
def user_order_stats(user_id: str):
    return _ok(OrderService().get_user_order_stats(get_db(), user_id))


@orders_bp.route("/<order_id>", methods=["GET"])
def get_order(order_id: str):
    order = OrderService().find_by_id(get_db(), order_id)
    if not order:
        raise NotFoundError(message_key="order_not_found")
    return _ok(order)


@orders_bp.route("/<order_id>", methods=["PUT"])
def update_order(order_id: str):
    body = _json_body()
    update_input = OrderUpdateInput(
        total_amount=_amount(body, "totalAmount", required=False),
        status=_raw_status(body),
        notes=_optional_string(body, "notes"),
    )
    db = get_db()
    order = OrderService().update(db, order_id, update_input)
    db.commit()
    return _ok(order, message_key="order_updated")


@orders_bp.route("/<order_id>/status", methods=["PATCH"])
def update_order_status(order_id: str):
    body = _json_body()
    status = body.get("status")
    if not isinstance(status, str) or not status:
        raise _invalid("status", "invalid_status")
    db = get_db()
    order = OrderService().apply_status_transition(db, order_id, status)
    db.commit()
    return _ok(order, message_key="order_status_updated")


@orders_bp.route("/<order_id>/cancel", methods=["PATCH"])
def cancel_order(order_id: str):
    body = _json_body()
    db = get_db()
    order = OrderService().apply_cancellation(db, order_id, _optional_string(body, "reason"))
    db.commit()
    return _ok(order, message_key="order_cancelled")


@orders_bp.route("/<order_id>", methods=["DELETE"])
def delete_order(order_id: str):
    db = get_db()
    OrderService().apply_deletion(db, order_id)
    db.commit()
    return "", 204
