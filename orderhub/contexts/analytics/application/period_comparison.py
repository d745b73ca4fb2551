from __future__ import annotations

from datetime import datetime, timedelta
from typing import Callable

from orderhub.contexts.analytics.application.metrics import MetricsAggregator
from orderhub.core.clock import utc_now
from orderhub.core.money import round_money
from orderhub.core.task_group import TaskGroup
from orderhub.errors import ValidationError


MIN_PERIOD_DAYS = 1
MAX_PERIOD_DAYS = 365


def growth_percentage(current: float, previous: float) -> float:
    if not previous:
        return 0.0
    return round_money((current - previous) / previous * 100)


def _label(start: datetime, end: datetime) -> str:
    return f"{start.date().isoformat()} to {end.date().isoformat()}"


def validate_period_days(value: object) -> int:
    try:
        days = int(value)
    except (TypeError, ValueError) as exc:
        raise ValidationError(message_key="days_out_of_range", payload={"field": "days"}) from exc
    if isinstance(value, float) and days != value:
        raise ValidationError(message_key="days_out_of_range", payload={"field": "days"})
    if days < MIN_PERIOD_DAYS or days > MAX_PERIOD_DAYS:
        raise ValidationError(message_key="days_out_of_range", payload={"field": "days"})
    return days


class PeriodComparator:
    def __init__(self, aggregator: MetricsAggregator, clock: Callable[[], datetime] = utc_now) -> None:
        self.aggregator = aggregator
        self.clock = clock

    def compare(self, period_days: int = 30) -> dict:
        days = validate_period_days(period_days)
        now = self.clock()
        current_start = now - timedelta(days=days)
        previous_start = current_start - timedelta(days=days)

        group = TaskGroup(max_workers=2, name="period_comparison")
        group.submit("current", lambda: self.aggregator.period_metrics(current_start, now))
        group.submit("previous", lambda: self.aggregator.period_metrics(previous_start, current_start))
        windows = group.join()
        current = windows["current"]
        previous = windows["previous"]

        return {
            "current": {"period": _label(current_start, now), **current},
            "previous": {"period": _label(previous_start, current_start), **previous},
            "growth": {
                "revenueGrowth": growth_percentage(current["revenue"], previous["revenue"]),
                "ordersGrowth": growth_percentage(current["orders"], previous["orders"]),
                "usersGrowth": growth_percentage(current["newUsers"], previous["newUsers"]),
            },
        }
