from __future__ import annotations

import logging
from datetime import datetime, timedelta
from typing import Callable

from orderhub.contexts.analytics.application.insights import generate_insights
from orderhub.contexts.analytics.application.metrics import DEFAULT_COHORT_LIMIT, MetricsAggregator
from orderhub.contexts.analytics.application.period_comparison import PeriodComparator
from orderhub.contexts.analytics.application.reconciliation import DEFAULT_REVENUE_TOLERANCE, ConsistencyReconciler
from orderhub.contexts.analytics.domain.store import AnalyticsStore
from orderhub.contexts.peer.domain.gateway import PeerGateway
from orderhub.core.clock import utc_now
from orderhub.core.task_group import TaskGroup, run_concurrently
from orderhub.errors import ConsistencyCheckError, ValidationError
from orderhub.schema_version import is_compatible_version


_LOGGER = logging.getLogger("orderhub")

REPORT_TYPES = ("daily", "weekly", "monthly")
PEER_HEALTHY_STATUS = "healthy"


def _iso(value: datetime) -> str:
    return value.isoformat().replace("+00:00", "Z")


def report_period_label(report_type: str, now: datetime) -> str:
    local_now = now.astimezone()
    if report_type == "daily":
        return local_now.strftime("%Y-%m-%d")
    if report_type == "weekly":
        # Weeks start on Sunday.
        week_start = local_now - timedelta(days=(local_now.weekday() + 1) % 7)
        return f"Week of {week_start.strftime('%Y-%m-%d')}"
    return local_now.strftime("%Y-%m")


def summarize_peer_health(health: dict | None) -> dict:
    reported_version = (health or {}).get("schemaVersion")
    return {
        "serviceA": bool(health) and health.get("status") == PEER_HEALTHY_STATUS,
        "database": True,
        "schemaCompatible": is_compatible_version(reported_version) if reported_version else True,
    }


class AnalyticsService:
    def __init__(
        self,
        store: AnalyticsStore,
        gateway: PeerGateway,
        *,
        clock: Callable[[], datetime] = utc_now,
        max_workers: int = 6,
        period_days: int = 30,
        top_customers_limit: int = 5,
        months_back: int = 12,
        cohort_limit: int = DEFAULT_COHORT_LIMIT,
        revenue_tolerance: float = DEFAULT_REVENUE_TOLERANCE,
    ) -> None:
        self.gateway = gateway
        self.clock = clock
        self.max_workers = max_workers
        self.period_days = period_days
        self.cohort_limit = cohort_limit
        self.aggregator = MetricsAggregator(
            store,
            clock,
            max_workers=max_workers,
            top_customers_limit=top_customers_limit,
            months_back=months_back,
        )
        self.comparator = PeriodComparator(self.aggregator, clock)
        self.reconciler = ConsistencyReconciler(
            self.aggregator,
            gateway,
            revenue_tolerance=revenue_tolerance,
            clock=clock,
        )

    @classmethod
    def from_config(cls, config, store: AnalyticsStore, gateway: PeerGateway) -> "AnalyticsService":
        return cls(
            store,
            gateway,
            max_workers=int(config.get("ANALYTICS_MAX_WORKERS", 6)),
            period_days=int(config.get("ANALYTICS_PERIOD_DAYS", 30)),
            top_customers_limit=int(config.get("TOP_CUSTOMERS_LIMIT", 5)),
            months_back=int(config.get("REVENUE_MONTHS_BACK", 12)),
            cohort_limit=int(config.get("COHORT_LIMIT", DEFAULT_COHORT_LIMIT)),
            revenue_tolerance=float(config.get("RECONCILIATION_REVENUE_TOLERANCE", DEFAULT_REVENUE_TOLERANCE)),
        )

    def get_dashboard_data(self) -> dict:
        group = TaskGroup(max_workers=self.max_workers, name="dashboard")
        group.submit("businessMetrics", self.aggregator.business_metrics)
        group.submit("periodComparison", lambda: self.comparator.compare(self.period_days))
        group.submit("realTimeMetrics", self.aggregator.real_time_metrics)
        group.submit("cohortAnalysis", lambda: self.aggregator.cohort_analysis(self.cohort_limit))
        group.submit("peerHealth", self.gateway.check_health, best_effort=True, fallback=None)
        results = group.join()

        return {
            "businessMetrics": results["businessMetrics"],
            "periodComparison": results["periodComparison"],
            "realTimeMetrics": results["realTimeMetrics"],
            "cohortAnalysis": results["cohortAnalysis"],
            "serviceHealth": summarize_peer_health(results["peerHealth"]),
            "lastUpdated": _iso(self.clock()),
        }

    def get_metrics(self) -> dict:
        results = run_concurrently(
            {"businessMetrics": self.aggregator.business_metrics, "realTimeMetrics": self.aggregator.real_time_metrics},
            max_workers=2,
            name="metrics",
        )
        return {
            "businessMetrics": results["businessMetrics"],
            "realTimeMetrics": results["realTimeMetrics"],
            "lastUpdated": _iso(self.clock()),
        }

    def get_business_insights(self) -> dict:
        group = TaskGroup(max_workers=3, name="insights")
        group.submit("metrics", self.aggregator.business_metrics)
        group.submit("comparison", lambda: self.comparator.compare(self.period_days))
        group.submit("realTime", self.aggregator.real_time_metrics)
        results = group.join()
        return generate_insights(results["metrics"], results["comparison"], results["realTime"])

    def generate_report(self, report_type: str) -> dict:
        if report_type not in REPORT_TYPES:
            raise ValidationError(message_key="report_type_invalid", payload={"field": "type"})
        group = TaskGroup(max_workers=2, name="report")
        group.submit("metrics", self.aggregator.business_metrics)
        group.submit("insights", self.get_business_insights)
        results = group.join()
        return {
            "type": report_type,
            "period": report_period_label(report_type, self.clock()),
            "metrics": results["metrics"],
            "insights": results["insights"]["insights"],
            "recommendations": results["insights"]["recommendations"],
        }

    def get_period_comparison(self, period_days: int) -> dict:
        comparison = self.comparator.compare(period_days)
        return {"comparison": comparison, "period": f"{int(period_days)} days"}

    def get_cohort_analysis(self) -> dict:
        return {
            "cohorts": self.aggregator.cohort_analysis(self.cohort_limit),
            "description": "Monthly user cohorts showing retention and revenue patterns",
        }

    def validate_data_consistency(self) -> dict:
        return self.reconciler.reconcile()

    def get_service_health(self) -> dict:
        health = summarize_peer_health(self.gateway.check_health())
        try:
            consistency = self.reconciler.reconcile()
        except ConsistencyCheckError as exc:
            _LOGGER.warning("service_health_consistency_unavailable", extra={"error": exc.details})
            consistency = {"consistent": None, "error": exc.code, "message": exc.user_message()}
        return {
            "serviceHealth": health,
            "dataConsistency": consistency,
            "timestamp": _iso(self.clock()),
        }
