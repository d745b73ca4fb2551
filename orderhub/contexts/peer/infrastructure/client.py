from __future__ import annotations

import http.client
import json
import logging
import time
import urllib.error
import urllib.parse
import urllib.request
from dataclasses import dataclass
from typing import Any, List, Mapping

from orderhub.contexts.peer.domain.gateway import PeerGateway
from orderhub.errors import ExternalServiceUnavailable
from orderhub.observability import current_request_id, observe_peer_request


_LOGGER = logging.getLogger("orderhub")

DEFAULT_PEER_URL = "http://localhost:3001"
DEFAULT_TIMEOUT_SECONDS = 5.0
DEFAULT_USER_AGENT = "orderhub-analytics/1.0.0"


@dataclass(frozen=True)
class PeerClientConfig:
    base_url: str = DEFAULT_PEER_URL
    timeout_seconds: float = DEFAULT_TIMEOUT_SECONDS
    user_agent: str = DEFAULT_USER_AGENT

    @classmethod
    def from_mapping(cls, config: Mapping[str, Any]) -> "PeerClientConfig":
        try:
            timeout = float(config.get("PEER_TIMEOUT_SECONDS", DEFAULT_TIMEOUT_SECONDS))
        except (TypeError, ValueError):
            timeout = DEFAULT_TIMEOUT_SECONDS
        return cls(
            base_url=str(config.get("PEER_SERVICE_URL") or DEFAULT_PEER_URL).rstrip("/"),
            timeout_seconds=timeout if timeout > 0 else DEFAULT_TIMEOUT_SECONDS,
            user_agent=str(config.get("PEER_USER_AGENT") or DEFAULT_USER_AGENT),
        )


class _NotFound(Exception):
    pass


class HttpPeerGateway(PeerGateway):
    def __init__(self, config: PeerClientConfig) -> None:
        self.config = config

    def check_health(self) -> dict | None:
        try:
            payload = self._get_json("/health", endpoint="health")
        except (ExternalServiceUnavailable, _NotFound) as exc:
            _LOGGER.warning("peer_health_check_failed", extra={"peer_url": self.config.base_url, "error": str(exc)})
            return None
        return payload if isinstance(payload, dict) else None

    def get_user(self, user_id: str) -> dict | None:
        path = f"/api/users/{urllib.parse.quote(str(user_id), safe='')}"
        try:
            payload = self._get_json(path, endpoint="user")
        except _NotFound:
            return None
        data = _unwrap(payload)
        return data if isinstance(data, dict) else None

    def list_users(self) -> List[dict]:
        return _as_records(_unwrap(self._get_required("/api/users", endpoint="users")))

    def list_user_orders(self, user_id: str) -> List[dict]:
        path = f"/api/orders/user/{urllib.parse.quote(str(user_id), safe='')}"
        return _as_records(_unwrap(self._get_required(path, endpoint="user_orders")))

    def get_user_stats(self) -> dict | None:
        data = _unwrap(self._get_required("/api/users/stats", endpoint="user_stats"))
        return data if isinstance(data, dict) else None

    def get_order_stats(self) -> dict | None:
        data = _unwrap(self._get_required("/api/orders/stats", endpoint="order_stats"))
        return data if isinstance(data, dict) else None

    def _get_required(self, path: str, *, endpoint: str) -> object:
        try:
            return self._get_json(path, endpoint=endpoint)
        except _NotFound as exc:
            raise ExternalServiceUnavailable(details=f"peer HTTP 404 on {path}", status_code=404) from exc

    def _get_json(self, path: str, *, endpoint: str) -> object:
        url = f"{self.config.base_url}{path}"
        headers = {"Accept": "application/json", "User-Agent": self.config.user_agent}
        request_id = current_request_id(default="n/a")
        if request_id != "n/a":
            headers["X-Request-Id"] = request_id
        request = urllib.request.Request(url, headers=headers, method="GET")
        started = time.perf_counter()
        outcome = "error"
        try:
            with urllib.request.urlopen(request, timeout=self.config.timeout_seconds) as response:
                body = response.read().decode("utf-8")
            payload = json.loads(body) if body else {}
            outcome = "ok"
            return payload
        except urllib.error.HTTPError as exc:
            if exc.code == 404:
                outcome = "not_found"
                raise _NotFound(url) from exc
            outcome = f"http_{exc.code}"
            raise ExternalServiceUnavailable(details=f"peer HTTP {exc.code} on {path}", status_code=exc.code) from exc
        except (urllib.error.URLError, http.client.HTTPException, OSError) as exc:
            # OSError also covers socket timeouts and ssl.SSLError.
            outcome = "unreachable"
            reason = getattr(exc, "reason", exc)
            raise ExternalServiceUnavailable(details=f"peer connection error on {path}: {reason}") from exc
        except (json.JSONDecodeError, UnicodeDecodeError) as exc:
            outcome = "invalid_json"
            raise ExternalServiceUnavailable(details=f"peer returned invalid JSON on {path}") from exc
        finally:
            observe_peer_request(endpoint, outcome, (time.perf_counter() - started) * 1000.0)


def _unwrap(payload: object) -> object:
    if not isinstance(payload, dict):
        return None
    if not payload.get("success"):
        return None
    return payload.get("data")


def _as_records(data: object) -> List[dict]:
    if not isinstance(data, list):
        return []
    return [item for item in data if isinstance(item, dict)]


def build_peer_gateway(config: Mapping[str, Any]) -> HttpPeerGateway:
    return HttpPeerGateway(PeerClientConfig.from_mapping(config))
