from __future__ import annotations

from datetime import datetime
from typing import Callable

from orderhub.contexts.peer.domain.gateway import PeerGateway
from orderhub.core.clock import utc_now
from orderhub.core.task_group import run_concurrently


class PeerSyncService:
    """Pass-through reads of the peer's users, orders and statistics."""

    def __init__(self, gateway: PeerGateway, *, peer_url: str | None = None, clock: Callable[[], datetime] = utc_now) -> None:
        self.gateway = gateway
        self.peer_url = peer_url
        self.clock = clock

    def sync_user(self, user_id: str) -> dict | None:
        return self.gateway.get_user(user_id)

    def sync_user_orders(self, user_id: str) -> list[dict]:
        return self.gateway.list_user_orders(user_id)

    def sync_all_users(self) -> list[dict]:
        return self.gateway.list_users()

    def check_external_services(self) -> dict:
        health = self.gateway.check_health()
        return {
            "services": {
                "service-a": {
                    "healthy": bool(health) and health.get("status") == "healthy",
                    "url": self.peer_url,
                    "details": health,
                }
            },
            "timestamp": self.clock().isoformat().replace("+00:00", "Z"),
        }

    def compare_stats(self) -> dict:
        stats = run_concurrently(
            {"users": self.gateway.get_user_stats, "orders": self.gateway.get_order_stats},
            max_workers=2,
            name="stats_comparison",
        )
        return {"serviceA": stats}
