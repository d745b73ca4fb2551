import unittest

from orderhub.contexts.analytics.application.metrics import MetricsAggregator
from orderhub.contexts.analytics.application.reconciliation import (
    ConsistencyReconciler,
    compute_differences,
    is_consistent,
)
from orderhub.errors import ConsistencyCheckError
from orderhub.observability import metrics_snapshot, reset_metrics_for_tests
from tests.helpers.fakes import FakePeerGateway, InMemoryAnalyticsStore, fixed_clock


class ComputeDifferencesTest(unittest.TestCase):
    def test_signed_local_minus_remote(self) -> None:
        local = {"totalUsers": 10, "totalOrders": 50, "totalRevenue": 1000.0}
        remote = {"users": {"totalUsers": 12}, "orders": {"totalOrders": 45, "totalRevenue": 1000.01}}
        self.assertEqual(
            compute_differences(local, remote),
            {"userCount": -2, "orderCount": 5, "revenue": -0.01},
        )

    def test_revenue_does_not_decide_verdict(self) -> None:
        self.assertTrue(is_consistent({"userCount": 0, "orderCount": 0, "revenue": 100.0}))
        self.assertFalse(is_consistent({"userCount": 1, "orderCount": 0, "revenue": 0.0}))
        self.assertFalse(is_consistent({"userCount": 0, "orderCount": -1, "revenue": 0.0}))


class ConsistencyReconcilerTest(unittest.TestCase):
    def setUp(self) -> None:
        reset_metrics_for_tests()
        self.store = InMemoryAnalyticsStore()
        self.gateway = FakePeerGateway()
        self.reconciler = ConsistencyReconciler(
            MetricsAggregator(self.store, fixed_clock()),
            self.gateway,
            clock=fixed_clock(),
        )

    def _seed_local(self) -> None:
        for index in range(10):
            self.store.add_user(f"u{index}")
        # 50 realized orders worth 1000 in total.
        for index in range(50):
            self.store.add_order(f"o{index}", f"u{index % 10}", 20.0, "delivered")
        self.store.add_order("p1", "u1", 500.0, "pending")

    def test_matching_counts_are_consistent_even_with_revenue_gap(self) -> None:
        self._seed_local()
        self.gateway.user_stats = {"totalUsers": 10, "activeUsers": 10, "inactiveUsers": 0}
        self.gateway.order_stats = {"totalOrders": 50, "totalRevenue": 900.0}

        result = self.reconciler.reconcile()
        self.assertTrue(result["consistent"])
        self.assertEqual(result["differences"], {"userCount": 0, "orderCount": 0, "revenue": 100.0})
        self.assertFalse(result["revenueWithinTolerance"])
        self.assertEqual(result["localStats"], {"totalUsers": 10, "totalOrders": 50, "totalRevenue": 1000.0})
        self.assertEqual(result["serviceAStats"]["orders"]["totalOrders"], 50)
        self.assertEqual(result["checkedAt"], "2026-06-15T12:00:00Z")
        self.assertEqual(metrics_snapshot()["reconciliation"], {"consistent": 1})

    def test_user_count_mismatch_is_drift(self) -> None:
        self._seed_local()
        self.gateway.user_stats = {"totalUsers": 11}
        self.gateway.order_stats = {"totalOrders": 50, "totalRevenue": 1000.0}

        with self.assertLogs("orderhub", level="WARNING"):
            result = self.reconciler.reconcile()
        self.assertFalse(result["consistent"])
        self.assertEqual(result["differences"]["userCount"], -1)
        self.assertTrue(result["revenueWithinTolerance"])
        self.assertEqual(metrics_snapshot()["reconciliation"], {"drift": 1})

    def test_unavailable_peer_fails_the_check(self) -> None:
        self.gateway.available = False
        with self.assertRaises(ConsistencyCheckError) as ctx:
            self.reconciler.reconcile()
        self.assertEqual(ctx.exception.http_status, 503)
        self.assertEqual(metrics_snapshot()["reconciliation"], {"failed": 1})

    def test_missing_peer_stats_fail_the_check(self) -> None:
        self.gateway.order_stats = None
        with self.assertRaises(ConsistencyCheckError):
            self.reconciler.reconcile()

    def test_empty_systems_are_consistent(self) -> None:
        result = self.reconciler.reconcile()
        self.assertTrue(result["consistent"])
        self.assertEqual(result["differences"], {"userCount": 0, "orderCount": 0, "revenue": 0.0})


if __name__ == "__main__":
    unittest.main()
