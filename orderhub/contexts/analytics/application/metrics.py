from __future__ import annotations

from datetime import datetime
from typing import Callable, Dict, List

from orderhub.contexts.analytics.domain.store import AnalyticsStore, OrderQuery, UserQuery
from orderhub.contexts.orders.domain.state_machine import (
    ORDER_STATUSES,
    STATUS_DELIVERED,
    STATUS_PENDING,
    STATUS_PROCESSING,
    STATUS_SHIPPED,
)
from orderhub.core.clock import local_day_bounds, subtract_months, utc_now
from orderhub.core.money import percentage, round_money
from orderhub.core.task_group import TaskGroup


# Orders that count as revenue for totals, averages and top customers.
REALIZED_STATUSES = (STATUS_DELIVERED, STATUS_SHIPPED, STATUS_PROCESSING)
# Monthly revenue, period windows and today's revenue only count shipped goods.
RECOGNIZED_REVENUE_STATUSES = (STATUS_DELIVERED, STATUS_SHIPPED)

DEFAULT_TOP_CUSTOMERS = 5
DEFAULT_MONTHS_BACK = 12
DEFAULT_COHORT_LIMIT = 12
UNKNOWN_EMAIL = "Unknown"


class MetricsAggregator:
    """Business metrics recomputed from the store on every call."""

    def __init__(
        self,
        store: AnalyticsStore,
        clock: Callable[[], datetime] = utc_now,
        *,
        max_workers: int = 6,
        top_customers_limit: int = DEFAULT_TOP_CUSTOMERS,
        months_back: int = DEFAULT_MONTHS_BACK,
    ) -> None:
        self.store = store
        self.clock = clock
        self.max_workers = max_workers
        self.top_customers_limit = top_customers_limit
        self.months_back = months_back

    def total_users(self) -> int:
        return len(self.store.list_users())

    def active_users(self) -> int:
        return len(self.store.list_users(UserQuery(is_active=True)))

    def order_statistics(self) -> Dict[str, float | int]:
        orders = self.store.list_orders(OrderQuery(statuses=REALIZED_STATUSES))
        total_revenue = sum(order.total_amount for order in orders)
        return {
            "totalOrders": len(orders),
            "totalRevenue": round_money(total_revenue),
            "averageOrderValue": round_money(total_revenue / len(orders)) if orders else 0.0,
            "uniqueCustomers": len({order.user_id for order in orders}),
        }

    @staticmethod
    def conversion_rate(total_users: int, unique_customers: int) -> float:
        return percentage(unique_customers, total_users)

    def top_customers(self, limit: int | None = None) -> List[dict]:
        limit = self.top_customers_limit if limit is None else int(limit)
        if limit <= 0:
            return []
        emails = {user.id: user.email for user in self.store.list_users()}
        totals: Dict[str, dict] = {}
        for order in self.store.list_orders(OrderQuery(statuses=REALIZED_STATUSES)):
            bucket = totals.setdefault(order.user_id, {"orderCount": 0, "totalSpent": 0.0})
            bucket["orderCount"] += 1
            bucket["totalSpent"] += order.total_amount

        ranked = sorted(totals.items(), key=lambda item: (-item[1]["totalSpent"], item[0]))
        return [
            {
                "userId": user_id,
                "userEmail": emails.get(user_id) or UNKNOWN_EMAIL,
                "orderCount": bucket["orderCount"],
                "totalSpent": round_money(bucket["totalSpent"]),
            }
            for user_id, bucket in ranked[:limit]
        ]

    def revenue_by_month(self, months_back: int | None = None) -> List[dict]:
        months_back = self.months_back if months_back is None else int(months_back)
        cutoff = subtract_months(self.clock(), months_back)
        months: Dict[str, dict] = {}
        for order in self.store.list_orders(OrderQuery(statuses=RECOGNIZED_REVENUE_STATUSES, created_from=cutoff)):
            key = order.created_at.strftime("%Y-%m")
            bucket = months.setdefault(key, {"revenue": 0.0, "orderCount": 0})
            bucket["revenue"] += order.total_amount
            bucket["orderCount"] += 1
        return [
            {"month": month, "revenue": round_money(bucket["revenue"]), "orderCount": bucket["orderCount"]}
            for month, bucket in sorted(months.items())
        ]

    def order_status_distribution(self) -> Dict[str, int]:
        distribution = {status: 0 for status in ORDER_STATUSES}
        for status, total in self.store.count_orders_by_status().items():
            if status in distribution:
                distribution[status] = int(total)
        return distribution

    def period_metrics(self, start: datetime, end: datetime) -> Dict[str, float | int]:
        return {
            "revenue": round_money(self.store.sum_order_amounts(RECOGNIZED_REVENUE_STATUSES, start, end)),
            "orders": self.store.count_orders_created_between(start, end),
            "newUsers": self.store.count_users_created_between(start, end),
        }

    def real_time_metrics(self) -> Dict[str, float | int]:
        start, end = local_day_bounds(self.clock())
        counts = self.store.count_orders_by_status()
        today = self.period_metrics(start, end)
        return {
            "pendingOrders": int(counts.get(STATUS_PENDING, 0)),
            "processingOrders": int(counts.get(STATUS_PROCESSING, 0)),
            "todayRevenue": today["revenue"],
            "todayOrders": today["orders"],
            "activeUsersToday": self.active_users(),
        }

    def cohort_analysis(self, limit: int = DEFAULT_COHORT_LIMIT) -> List[dict]:
        cohort_users: Dict[str, set] = {}
        user_cohort: Dict[str, str] = {}
        for user in self.store.list_users():
            cohort = user.created_at.strftime("%Y-%m")
            cohort_users.setdefault(cohort, set()).add(user.id)
            user_cohort[user.id] = cohort

        revenue: Dict[str, float] = {}
        order_counts: Dict[str, int] = {}
        buyers: Dict[str, set] = {}
        for order in self.store.list_orders():
            cohort = user_cohort.get(order.user_id)
            if cohort is None:
                continue
            revenue[cohort] = revenue.get(cohort, 0.0) + order.total_amount
            order_counts[cohort] = order_counts.get(cohort, 0) + 1
            buyers.setdefault(cohort, set()).add(order.user_id)

        report = []
        for cohort in sorted(cohort_users, reverse=True)[: max(0, int(limit))]:
            users_count = len(cohort_users[cohort])
            total = revenue.get(cohort, 0.0)
            orders = order_counts.get(cohort, 0)
            report.append(
                {
                    "cohort": cohort,
                    "usersCount": users_count,
                    "totalRevenue": round_money(total),
                    "averageOrderValue": round_money(total / orders) if orders else 0.0,
                    "retentionRate": percentage(len(buyers.get(cohort, ())), users_count),
                }
            )
        return report

    def business_metrics(self) -> dict:
        group = TaskGroup(max_workers=self.max_workers, name="business_metrics")
        group.submit("totalUsers", self.total_users)
        group.submit("activeUsers", self.active_users)
        group.submit("orderStatistics", self.order_statistics)
        group.submit("topCustomers", self.top_customers)
        group.submit("revenueByMonth", self.revenue_by_month)
        group.submit("orderStatusDistribution", self.order_status_distribution)
        results = group.join()

        stats = results["orderStatistics"]
        return {
            "totalUsers": results["totalUsers"],
            "activeUsers": results["activeUsers"],
            "totalOrders": stats["totalOrders"],
            "totalRevenue": stats["totalRevenue"],
            "averageOrderValue": stats["averageOrderValue"],
            "conversionRate": self.conversion_rate(results["totalUsers"], stats["uniqueCustomers"]),
            "topCustomers": results["topCustomers"],
            "revenueByMonth": results["revenueByMonth"],
            "orderStatusDistribution": results["orderStatusDistribution"],
        }
