from __future__ import annotations

from abc import ABC, abstractmethod
from dataclasses import dataclass
from datetime import datetime
from typing import Dict, Iterable, List


@dataclass(frozen=True)
class UserRecord:
    id: str
    email: str
    is_active: bool
    created_at: datetime


@dataclass(frozen=True)
class OrderRecord:
    id: str
    user_id: str
    total_amount: float
    status: str
    created_at: datetime


@dataclass(frozen=True)
class UserQuery:
    is_active: bool | None = None
    created_from: datetime | None = None
    created_to: datetime | None = None


@dataclass(frozen=True)
class OrderQuery:
    statuses: tuple[str, ...] | None = None
    created_from: datetime | None = None
    created_to: datetime | None = None


class AnalyticsStore(ABC):
    """Read-only view over users and orders; windows are half-open ``[from, to)``."""

    @abstractmethod
    def list_users(self, query: UserQuery | None = None) -> List[UserRecord]:
        raise NotImplementedError

    @abstractmethod
    def list_orders(self, query: OrderQuery | None = None) -> List[OrderRecord]:
        raise NotImplementedError

    @abstractmethod
    def count_orders_by_status(self) -> Dict[str, int]:
        raise NotImplementedError

    @abstractmethod
    def count_users_created_between(self, start: datetime, end: datetime) -> int:
        raise NotImplementedError

    @abstractmethod
    def count_orders_created_between(self, start: datetime, end: datetime) -> int:
        raise NotImplementedError

    @abstractmethod
    def sum_order_amounts(
        self,
        statuses: Iterable[str],
        start: datetime | None = None,
        end: datetime | None = None,
    ) -> float:
        raise NotImplementedError
