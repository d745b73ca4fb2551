from __future__ import annotations

import logging

from orderhub.contexts.orders.domain.contracts import OrderCreateInput, OrderFilters, OrderUpdateInput
from orderhub.contexts.orders.domain.state_machine import (
    ORDER_STATUSES,
    STATUS_CANCELLED,
    STATUS_DELIVERED,
    STATUS_PENDING,
    STATUS_SHIPPED,
    TransitionDecision,
    append_cancellation_reason,
    decide_cancellation,
    decide_deletion,
    decide_transition,
    parse_status,
)
from orderhub.contexts.orders.infrastructure.mappers import order_summary
from orderhub.contexts.orders.infrastructure.repositories.order_repository import OrderRepository
from orderhub.contexts.orders.infrastructure.repositories.user_repository import UserRepository
from orderhub.core.money import round_money
from orderhub.errors import NotFoundError, TransitionRejectedError, UserActionError, ValidationError
from orderhub.infrastructure.repositories.base import BaseRepository


_LOGGER = logging.getLogger("orderhub")

COMPLETED_REVENUE_STATUSES = (STATUS_DELIVERED, STATUS_SHIPPED)
RECENT_ORDERS_LIMIT = 5


def _empty_status_counts() -> dict[str, int]:
    return {status: 0 for status in ORDER_STATUSES}


def _reject(decision: TransitionDecision, message_key: str) -> TransitionRejectedError:
    return TransitionRejectedError(
        message_key=message_key,
        details=decision.reason,
        payload={"currentStatus": decision.status},
    )


class OrderService:
    """Order lifecycle operations; every status change goes through the state machine."""

    def __init__(
        self,
        order_repository: OrderRepository | None = None,
        user_repository: UserRepository | None = None,
    ) -> None:
        self.orders = order_repository or OrderRepository()
        self.users = user_repository or UserRepository()

    def find_by_id(self, db, order_id: str) -> dict | None:
        row = self.orders.get_by_id(db, order_id)
        return order_summary(row) if row else None

    def find_by_user(self, db, user_id: str) -> list[dict]:
        return [order_summary(row) for row in self.orders.list_by_user(db, user_id)]

    def find_all(self, db, filters: OrderFilters | None = None) -> list[dict]:
        filters = filters or OrderFilters()
        status = parse_status(filters.status) if filters.status else None
        rows = self.orders.list(
            db,
            status=status,
            user_id=filters.user_id,
            start_date=filters.start_date,
            end_date=filters.end_date,
            limit=filters.limit,
            offset=filters.offset,
            sort_by=filters.sort_by,
            sort_order=filters.sort_order,
        )
        return [order_summary(row) for row in rows]

    def create(self, db, create_input: OrderCreateInput) -> dict:
        user = self.users.get_by_id(db, create_input.user_id)
        if not user:
            raise NotFoundError(message_key="user_not_found", details=f"user {create_input.user_id}")
        if not BaseRepository.as_bool(user.get("is_active")):
            raise UserActionError(code="user_inactive", message_key="user_inactive")
        if create_input.total_amount <= 0:
            raise ValidationError(code="amount_invalid", message_key="amount_invalid")

        order_id = self.orders.create(
            db,
            user_id=create_input.user_id,
            total_amount=create_input.total_amount,
            status=STATUS_PENDING,
            notes=create_input.notes,
        )
        _LOGGER.info("order_created", extra={"order_id": order_id, "user_id": create_input.user_id})
        return self._require(db, order_id)

    def update(self, db, order_id: str, update_input: OrderUpdateInput) -> dict:
        existing = self._require_row(db, order_id)
        if update_input.total_amount is not None and update_input.total_amount <= 0:
            raise ValidationError(code="amount_invalid", message_key="amount_invalid")

        changes: dict = {}
        if update_input.status is not None:
            requested = parse_status(update_input.status)
            if requested != existing["status"]:
                decision = decide_transition(existing["status"], requested)
                if not decision.allowed:
                    raise _reject(decision, "invalid_status_transition")
                changes["status"] = decision.status
        if update_input.total_amount is not None:
            changes["total_amount"] = update_input.total_amount
        if update_input.notes is not None:
            changes["notes"] = update_input.notes

        self.orders.update(db, order_id, changes)
        return self._require(db, order_id)

    def apply_status_transition(self, db, order_id: str, new_status: str) -> dict:
        existing = self._require_row(db, order_id)
        decision = decide_transition(existing["status"], new_status)
        if not decision.allowed:
            raise _reject(decision, "invalid_status_transition")

        self.orders.update_status(db, order_id, decision.status)
        _LOGGER.info(
            "order_status_changed",
            extra={"order_id": order_id, "from_status": existing["status"], "to_status": decision.status},
        )
        return self._require(db, order_id)

    def apply_cancellation(self, db, order_id: str, reason: str | None = None) -> dict:
        existing = self._require_row(db, order_id)
        decision = decide_cancellation(existing["status"])
        if not decision.allowed:
            raise _reject(decision, "order_cancel_rejected")

        changes = {"status": STATUS_CANCELLED}
        if reason:
            changes["notes"] = append_cancellation_reason(existing.get("notes"), reason)
        self.orders.update(db, order_id, changes)
        _LOGGER.info("order_cancelled", extra={"order_id": order_id, "from_status": existing["status"]})
        return self._require(db, order_id)

    def apply_deletion(self, db, order_id: str) -> None:
        existing = self._require_row(db, order_id)
        decision = decide_deletion(existing["status"])
        if not decision.allowed:
            raise _reject(decision, "order_delete_rejected")
        self.orders.delete(db, order_id)
        _LOGGER.info("order_deleted", extra={"order_id": order_id})

    def get_order_stats(self, db) -> dict:
        orders_by_status = _empty_status_counts()
        for status, total in self.orders.count_by_status(db).items():
            if status in orders_by_status:
                orders_by_status[status] = total
        return {
            "totalOrders": sum(orders_by_status.values()),
            "totalRevenue": round_money(self.orders.total_revenue(db, COMPLETED_REVENUE_STATUSES)),
            "averageOrderValue": round_money(self.orders.average_amount(db)),
            "ordersByStatus": orders_by_status,
        }

    def get_user_order_stats(self, db, user_id: str) -> dict:
        if not self.users.get_by_id(db, user_id):
            raise NotFoundError(message_key="user_not_found", details=f"user {user_id}")

        orders = [order_summary(row) for row in self.orders.list_by_user(db, user_id)]
        total_spent = sum(order["totalAmount"] for order in orders)
        orders_by_status = _empty_status_counts()
        for order in orders:
            if order["status"] in orders_by_status:
                orders_by_status[order["status"]] += 1
        return {
            "totalOrders": len(orders),
            "totalSpent": round_money(total_spent),
            "averageOrderValue": round_money(total_spent / len(orders)) if orders else 0.0,
            "ordersByStatus": orders_by_status,
            "recentOrders": orders[:RECENT_ORDERS_LIMIT],
        }

    def _require_row(self, db, order_id: str) -> dict:
        row = self.orders.get_by_id(db, order_id)
        if not row:
            raise NotFoundError(message_key="order_not_found", details=f"order {order_id}")
        return row

    def _require(self, db, order_id: str) -> dict:
        return order_summary(self._require_row(db, order_id))
