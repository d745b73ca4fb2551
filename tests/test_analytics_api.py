import http.client
import unittest
from unittest import mock

from orderhub import create_app
from orderhub.config import Config
from orderhub.contexts.analytics.interfaces.http import PEER_GATEWAY_EXTENSION
from orderhub.contexts.peer.infrastructure.client import HttpPeerGateway, PeerClientConfig
from orderhub.db import close_db, get_db
from orderhub.observability import reset_metrics_for_tests
from orderhub.seed import seed_sample_data
from tests.helpers.fakes import FakePeerGateway
from tests.helpers.temp_db import TempDbSandbox


class AnalyticsApiTest(unittest.TestCase):
    def setUp(self) -> None:
        reset_metrics_for_tests()
        self.sandbox = TempDbSandbox(prefix="orderhub_analytics_api")
        self.app = create_app(self.sandbox.make_config(Config, SERVICE_NAME="analytics"))
        self.gateway = FakePeerGateway()
        self.app.extensions[PEER_GATEWAY_EXTENSION] = self.gateway
        with self.app.app_context():
            seed_sample_data(get_db())
            close_db()
        self.client = self.app.test_client()

    def tearDown(self) -> None:
        self.sandbox.cleanup()

    def _peer_matches_local(self) -> None:
        self.gateway.user_stats = {"totalUsers": 3, "activeUsers": 3, "inactiveUsers": 0}
        self.gateway.order_stats = {"totalOrders": 3, "totalRevenue": 429.44, "averageOrderValue": 143.15}

    def test_dashboard_sections(self) -> None:
        response = self.client.get("/api/analytics/dashboard")
        self.assertEqual(response.status_code, 200)
        data = response.get_json()["data"]
        self.assertEqual(
            set(data),
            {"businessMetrics", "periodComparison", "realTimeMetrics", "cohortAnalysis", "serviceHealth", "lastUpdated"},
        )
        self.assertEqual(data["businessMetrics"]["totalUsers"], 3)
        self.assertEqual(data["businessMetrics"]["orderStatusDistribution"]["pending"], 2)
        self.assertEqual(data["serviceHealth"], {"serviceA": True, "database": True, "schemaCompatible": True})
        self.assertEqual(data["cohortAnalysis"][0]["usersCount"], 3)

    def test_dashboard_survives_peer_outage(self) -> None:
        self.gateway.available = False
        response = self.client.get("/api/analytics/dashboard")
        self.assertEqual(response.status_code, 200)
        self.assertFalse(response.get_json()["data"]["serviceHealth"]["serviceA"])

    def test_incompatible_peer_schema_is_flagged(self) -> None:
        self.gateway.health = {"status": "healthy", "schemaVersion": "2.0.0"}
        data = self.client.get("/api/analytics/dashboard").get_json()["data"]
        self.assertFalse(data["serviceHealth"]["schemaCompatible"])

    def test_metrics_and_insights(self) -> None:
        metrics = self.client.get("/api/analytics/metrics").get_json()["data"]
        self.assertEqual(metrics["businessMetrics"]["conversionRate"], 100.0)
        self.assertEqual(metrics["realTimeMetrics"]["pendingOrders"], 2)

        insights = self.client.get("/api/analytics/insights").get_json()["data"]
        self.assertEqual(set(insights), {"insights", "recommendations", "alerts"})
        self.assertIn("Good conversion rate of 100%", insights["insights"])

    def test_reports(self) -> None:
        for report_type in ("daily", "weekly", "monthly"):
            response = self.client.get(f"/api/analytics/reports/{report_type}")
            self.assertEqual(response.status_code, 200, report_type)
            self.assertEqual(response.get_json()["data"]["type"], report_type)
        weekly = self.client.get("/api/analytics/reports/weekly").get_json()["data"]
        self.assertTrue(weekly["period"].startswith("Week of "))

        yearly = self.client.get("/api/analytics/reports/yearly")
        self.assertEqual(yearly.status_code, 400)
        self.assertFalse(yearly.get_json()["success"])

    def test_comparison_days(self) -> None:
        response = self.client.get("/api/analytics/comparison?days=7")
        self.assertEqual(response.status_code, 200)
        data = response.get_json()["data"]
        self.assertEqual(data["period"], "7 days")
        self.assertEqual(data["comparison"]["current"]["orders"], 6)

        default = self.client.get("/api/analytics/comparison").get_json()["data"]
        self.assertEqual(default["period"], "30 days")

        for bad in ("0", "366", "week"):
            self.assertEqual(self.client.get(f"/api/analytics/comparison?days={bad}").status_code, 400, bad)

    def test_cohorts(self) -> None:
        data = self.client.get("/api/analytics/cohorts").get_json()["data"]
        self.assertEqual(len(data["cohorts"]), 1)
        self.assertEqual(data["cohorts"][0]["retentionRate"], 100.0)
        self.assertIn("retention", data["description"])

    def test_validate_consistency(self) -> None:
        self._peer_matches_local()
        response = self.client.post("/api/sync/validate-consistency")
        self.assertEqual(response.status_code, 200)
        data = response.get_json()["data"]
        self.assertTrue(data["consistent"])
        self.assertEqual(data["differences"], {"userCount": 0, "orderCount": 0, "revenue": 0.0})

    def test_validate_consistency_with_peer_down(self) -> None:
        self.gateway.available = False
        response = self.client.post("/api/sync/validate-consistency")
        self.assertEqual(response.status_code, 503)
        self.assertEqual(response.get_json()["error"], "consistency_check_failed")

    def test_service_health_degrades_without_peer(self) -> None:
        self.gateway.available = False
        response = self.client.get("/api/analytics/health")
        self.assertEqual(response.status_code, 200)
        data = response.get_json()["data"]
        self.assertFalse(data["serviceHealth"]["serviceA"])
        self.assertIsNone(data["dataConsistency"]["consistent"])

        self.gateway.available = True
        self._peer_matches_local()
        data = self.client.get("/api/analytics/health").get_json()["data"]
        self.assertTrue(data["dataConsistency"]["consistent"])

    def test_sync_user(self) -> None:
        self.gateway.users["u1"] = {"id": "u1", "email": "peer@example.com"}
        ok = self.client.get("/api/sync/user/u1")
        self.assertEqual(ok.status_code, 200)
        self.assertEqual(ok.get_json()["data"]["email"], "peer@example.com")

        missing = self.client.get("/api/sync/user/ghost")
        self.assertEqual(missing.status_code, 404)

    def test_sync_lists_and_stats(self) -> None:
        self.gateway.users["u1"] = {"id": "u1"}
        self.gateway.orders_by_user["u1"] = [{"id": "o1"}, {"id": "o2"}]

        orders = self.client.get("/api/sync/orders/u1").get_json()
        self.assertEqual(orders["count"], 2)
        users = self.client.get("/api/sync/all-users").get_json()
        self.assertEqual(users["count"], 1)

        self._peer_matches_local()
        stats = self.client.get("/api/sync/stats-comparison").get_json()["data"]
        self.assertEqual(stats["serviceA"]["users"]["totalUsers"], 3)

        health = self.client.get("/api/sync/health-check").get_json()["data"]
        self.assertTrue(health["services"]["service-a"]["healthy"])

    def test_sync_with_peer_down_is_unavailable(self) -> None:
        self.gateway.available = False
        response = self.client.get("/api/sync/all-users")
        self.assertEqual(response.status_code, 503)
        self.assertEqual(response.get_json()["error"], "external_service_unavailable")

        stats = self.client.get("/api/sync/stats-comparison")
        self.assertEqual(stats.status_code, 503)
        self.assertEqual(stats.get_json()["error"], "external_service_unavailable")

        health = self.client.get("/api/sync/health-check").get_json()["data"]
        self.assertFalse(health["services"]["service-a"]["healthy"])

    def test_garbled_peer_replies_degrade_instead_of_failing(self) -> None:
        self.app.extensions[PEER_GATEWAY_EXTENSION] = HttpPeerGateway(PeerClientConfig(base_url="http://peer"))
        garbage = http.client.BadStatusLine("NOT-HTTP garbage")
        with mock.patch("orderhub.contexts.peer.infrastructure.client.urllib.request.urlopen", side_effect=garbage):
            health = self.client.get("/api/analytics/health")
            self.assertEqual(health.status_code, 200)
            data = health.get_json()["data"]
            self.assertFalse(data["serviceHealth"]["serviceA"])
            self.assertIsNone(data["dataConsistency"]["consistent"])

            sync_health = self.client.get("/api/sync/health-check")
            self.assertEqual(sync_health.status_code, 200)
            self.assertFalse(sync_health.get_json()["data"]["services"]["service-a"]["healthy"])

            validate = self.client.post("/api/sync/validate-consistency")
            self.assertEqual(validate.status_code, 503)
            self.assertEqual(validate.get_json()["error"], "consistency_check_failed")

    def test_info_route(self) -> None:
        info = self.client.get("/info").get_json()["data"]
        self.assertEqual(info["service"], "analytics")
        self.assertEqual(info["endpoints"]["sync"], "/api/sync")


if __name__ == "__main__":
    unittest.main()
