from __future__ import annotations

from datetime import datetime, timezone
from typing import Dict, Iterable, List

from orderhub.contexts.analytics.domain.store import AnalyticsStore, OrderQuery, OrderRecord, UserQuery, UserRecord
from orderhub.contexts.peer.domain.gateway import PeerGateway
from orderhub.errors import ExternalServiceUnavailable


FIXED_NOW = datetime(2026, 6, 15, 12, 0, 0, tzinfo=timezone.utc)


def fixed_clock(now: datetime = FIXED_NOW):
    return lambda: now


def at(year: int, month: int, day: int, hour: int = 12) -> datetime:
    return datetime(year, month, day, hour, 0, 0, tzinfo=timezone.utc)


class InMemoryAnalyticsStore(AnalyticsStore):
    def __init__(self) -> None:
        self.users: List[UserRecord] = []
        self.orders: List[OrderRecord] = []

    def add_user(self, user_id: str, *, email: str | None = None, active: bool = True, created_at: datetime | None = None):
        record = UserRecord(
            id=user_id,
            email=email if email is not None else f"{user_id}@example.com",
            is_active=active,
            created_at=created_at or datetime(2026, 1, 1, tzinfo=timezone.utc),
        )
        self.users.append(record)
        return record

    def add_order(self, order_id: str, user_id: str, amount: float, status: str, created_at: datetime | None = None):
        record = OrderRecord(
            id=order_id,
            user_id=user_id,
            total_amount=amount,
            status=status,
            created_at=created_at or datetime(2026, 1, 1, tzinfo=timezone.utc),
        )
        self.orders.append(record)
        return record

    @staticmethod
    def _in_window(value: datetime, start: datetime | None, end: datetime | None) -> bool:
        if start is not None and value < start:
            return False
        if end is not None and value >= end:
            return False
        return True

    def list_users(self, query: UserQuery | None = None) -> List[UserRecord]:
        query = query or UserQuery()
        return [
            user
            for user in self.users
            if (query.is_active is None or user.is_active == query.is_active)
            and self._in_window(user.created_at, query.created_from, query.created_to)
        ]

    def list_orders(self, query: OrderQuery | None = None) -> List[OrderRecord]:
        query = query or OrderQuery()
        return [
            order
            for order in self.orders
            if (query.statuses is None or order.status in query.statuses)
            and self._in_window(order.created_at, query.created_from, query.created_to)
        ]

    def count_orders_by_status(self) -> Dict[str, int]:
        counts: Dict[str, int] = {}
        for order in self.orders:
            counts[order.status] = counts.get(order.status, 0) + 1
        return counts

    def count_users_created_between(self, start: datetime, end: datetime) -> int:
        return len(self.list_users(UserQuery(created_from=start, created_to=end)))

    def count_orders_created_between(self, start: datetime, end: datetime) -> int:
        return len(self.list_orders(OrderQuery(created_from=start, created_to=end)))

    def sum_order_amounts(
        self,
        statuses: Iterable[str],
        start: datetime | None = None,
        end: datetime | None = None,
    ) -> float:
        orders = self.list_orders(OrderQuery(statuses=tuple(statuses), created_from=start, created_to=end))
        return sum(order.total_amount for order in orders)


class FakePeerGateway(PeerGateway):
    """Scripted peer; set ``available = False`` to make every required call fail."""

    def __init__(self) -> None:
        self.available = True
        self.health: dict | None = {"status": "healthy", "service": "orders", "schemaVersion": "1.0.0"}
        self.users: Dict[str, dict] = {}
        self.orders_by_user: Dict[str, List[dict]] = {}
        self.user_stats: dict | None = {"totalUsers": 0, "activeUsers": 0, "inactiveUsers": 0}
        self.order_stats: dict | None = {"totalOrders": 0, "totalRevenue": 0.0, "averageOrderValue": 0.0}
        self.calls: List[str] = []

    def _guard(self, name: str) -> None:
        self.calls.append(name)
        if not self.available:
            raise ExternalServiceUnavailable(details=f"fake peer down ({name})")

    def check_health(self) -> dict | None:
        self.calls.append("check_health")
        return self.health if self.available else None

    def get_user(self, user_id: str) -> dict | None:
        self._guard("get_user")
        return self.users.get(user_id)

    def list_users(self) -> List[dict]:
        self._guard("list_users")
        return list(self.users.values())

    def list_user_orders(self, user_id: str) -> List[dict]:
        self._guard("list_user_orders")
        return list(self.orders_by_user.get(user_id, []))

    def get_user_stats(self) -> dict | None:
        self._guard("get_user_stats")
        return self.user_stats

    def get_order_stats(self) -> dict | None:
        self._guard("get_order_stats")
        return self.order_stats
