from __future__ import annotations

from abc import ABC, abstractmethod
from typing import List


class PeerGateway(ABC):
    """Read-only access to the peer service's statistics and sync endpoints."""

    @abstractmethod
    def check_health(self) -> dict | None:
        raise NotImplementedError

    @abstractmethod
    def get_user(self, user_id: str) -> dict | None:
        raise NotImplementedError

    @abstractmethod
    def list_users(self) -> List[dict]:
        raise NotImplementedError

    @abstractmethod
    def list_user_orders(self, user_id: str) -> List[dict]:
        raise NotImplementedError

    @abstractmethod
    def get_user_stats(self) -> dict | None:
        raise NotImplementedError

    @abstractmethod
    def get_order_stats(self) -> dict | None:
        raise NotImplementedError
