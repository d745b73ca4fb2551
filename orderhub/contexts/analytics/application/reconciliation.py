from __future__ import annotations

import logging
from datetime import datetime
from typing import Callable

from orderhub.contexts.analytics.application.metrics import MetricsAggregator
from orderhub.contexts.peer.domain.gateway import PeerGateway
from orderhub.core.clock import utc_now
from orderhub.core.money import round_money
from orderhub.core.task_group import TaskGroup
from orderhub.errors import ConsistencyCheckError, ExternalServiceUnavailable
from orderhub.observability import observe_reconciliation


_LOGGER = logging.getLogger("orderhub")

DEFAULT_REVENUE_TOLERANCE = 0.01


def _number(stats: dict, key: str) -> float:
    value = stats.get(key, 0)
    try:
        return float(value or 0)
    except (TypeError, ValueError):
        return 0.0


def _count(value: float) -> int | float:
    return int(value) if float(value).is_integer() else value


def compute_differences(local: dict, remote: dict) -> dict:
    """Signed deltas ``local - remote``; ``remote`` is ``{"users": {...}, "orders": {...}}``."""
    users = remote.get("users") or {}
    orders = remote.get("orders") or {}
    return {
        "userCount": _count(_number(local, "totalUsers") - _number(users, "totalUsers")),
        "orderCount": _count(_number(local, "totalOrders") - _number(orders, "totalOrders")),
        "revenue": round_money(_number(local, "totalRevenue") - _number(orders, "totalRevenue")),
    }


def is_consistent(differences: dict) -> bool:
    # Revenue is reported but does not decide the verdict.
    return differences["userCount"] == 0 and differences["orderCount"] == 0


class ConsistencyReconciler:
    def __init__(
        self,
        aggregator: MetricsAggregator,
        gateway: PeerGateway,
        *,
        revenue_tolerance: float = DEFAULT_REVENUE_TOLERANCE,
        clock: Callable[[], datetime] = utc_now,
    ) -> None:
        self.aggregator = aggregator
        self.gateway = gateway
        self.revenue_tolerance = float(revenue_tolerance)
        self.clock = clock

    def _local_stats(self) -> dict:
        stats = self.aggregator.order_statistics()
        return {
            "totalUsers": self.aggregator.total_users(),
            "totalOrders": stats["totalOrders"],
            "totalRevenue": stats["totalRevenue"],
        }

    def _remote(self, fetch: Callable[[], dict | None], label: str) -> dict:
        try:
            stats = fetch()
        except ExternalServiceUnavailable as exc:
            raise ConsistencyCheckError(details=f"peer {label} unavailable: {exc.details}") from exc
        if not stats:
            raise ConsistencyCheckError(details=f"peer returned no {label}")
        return stats

    def reconcile(self) -> dict:
        group = TaskGroup(max_workers=3, name="reconciliation")
        group.submit("local", self._local_stats)
        group.submit("users", lambda: self._remote(self.gateway.get_user_stats, "user stats"))
        group.submit("orders", lambda: self._remote(self.gateway.get_order_stats, "order stats"))
        try:
            results = group.join()
        except ConsistencyCheckError:
            observe_reconciliation("failed")
            raise

        remote = {"users": results["users"], "orders": results["orders"]}
        differences = compute_differences(results["local"], remote)
        consistent = is_consistent(differences)
        observe_reconciliation("consistent" if consistent else "drift")
        if not consistent:
            _LOGGER.warning("reconciliation_drift", extra={"differences": differences})

        return {
            "consistent": consistent,
            "differences": differences,
            "serviceAStats": remote,
            "localStats": results["local"],
            "revenueWithinTolerance": abs(differences["revenue"]) <= self.revenue_tolerance,
            "checkedAt": self.clock().isoformat().replace("+00:00", "Z"),
        }
