import unittest

from orderhub import create_app
from orderhub.config import Config
from orderhub.db import close_db
from orderhub.messages import error_message
from tests.helpers.temp_db import TempDbSandbox


def _build_temp_app(temp_db: TempDbSandbox, **overrides):
    attrs = {"PROPAGATE_EXCEPTIONS": False, "SERVICE_NAME": "orders"}
    attrs.update(overrides)
    return create_app(temp_db.make_config(Config, **attrs))


class ErrorHandlingApiTest(unittest.TestCase):
    def setUp(self) -> None:
        self._temp_db = TempDbSandbox(prefix="error_api")
        self.app = _build_temp_app(self._temp_db)

        @self.app.route("/api/boom")
        def _boom():
            raise RuntimeError("database exploded at /var/lib/secret")

        self.client = self.app.test_client()

    def tearDown(self) -> None:
        with self.app.app_context():
            close_db()
        self._temp_db.cleanup()

    def test_unexpected_exception_returns_generic_500(self) -> None:
        with self.assertLogs("orderhub", level="ERROR"):
            response = self.client.get("/api/boom")
        self.assertEqual(response.status_code, 500)

        payload = response.get_json()
        self.assertFalse(payload.get("success"))
        self.assertEqual(payload.get("error"), "unexpected_error")
        self.assertEqual(payload.get("message"), error_message("unexpected_error"))
        self.assertTrue((payload.get("request_id") or "").strip())
        body = response.get_data(as_text=True)
        self.assertNotIn("Traceback", body)
        self.assertNotIn("/var/lib/secret", body)

    def test_request_id_is_propagated(self) -> None:
        response = self.client.get("/api/orders/missing", headers={"X-Request-Id": "req-from-gateway"})
        self.assertEqual(response.status_code, 404)
        self.assertEqual(response.headers.get("X-Request-Id"), "req-from-gateway")
        self.assertEqual(response.get_json().get("request_id"), "req-from-gateway")

    def test_request_id_is_generated_when_absent(self) -> None:
        response = self.client.get("/api/orders")
        self.assertEqual(response.status_code, 200)
        self.assertTrue((response.headers.get("X-Request-Id") or "").strip())
        self.assertIn("X-Response-Time-Ms", response.headers)

    def test_validation_error_payload(self) -> None:
        response = self.client.post("/api/orders", json={"totalAmount": 10})
        self.assertEqual(response.status_code, 400)
        payload = response.get_json()
        self.assertEqual(payload.get("error"), "validation_error")
        self.assertEqual(payload.get("field"), "userId")
        self.assertEqual(payload.get("message"), error_message("id_required"))

    def test_unknown_route_keeps_http_status(self) -> None:
        response = self.client.get("/api/unknown")
        self.assertEqual(response.status_code, 404)


class ConfigValidationTest(unittest.TestCase):
    def test_unknown_service_name_is_rejected(self) -> None:
        temp_db = TempDbSandbox(prefix="error_config")
        try:
            with self.assertRaises(RuntimeError):
                create_app(temp_db.make_config(Config, SERVICE_NAME="billing"))
        finally:
            temp_db.cleanup()


if __name__ == "__main__":
    unittest.main()
