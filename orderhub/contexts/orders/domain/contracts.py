from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime


@dataclass(frozen=True)
class UserCreateInput:
    email: str
    first_name: str
    last_name: str
    phone: str | None = None


@dataclass(frozen=True)
class UserUpdateInput:
    first_name: str | None = None
    last_name: str | None = None
    phone: str | None = None
    is_active: bool | None = None

    def changes(self) -> dict:
        values = {
            "first_name": self.first_name,
            "last_name": self.last_name,
            "phone": self.phone,
            "is_active": self.is_active,
        }
        return {key: value for key, value in values.items() if value is not None}


@dataclass(frozen=True)
class UserFilters:
    is_active: bool | None = None
    limit: int | None = None
    offset: int | None = None
    sort_by: str = "createdAt"
    sort_order: str = "DESC"


@dataclass(frozen=True)
class OrderCreateInput:
    user_id: str
    total_amount: float
    notes: str | None = None


@dataclass(frozen=True)
class OrderUpdateInput:
    total_amount: float | None = None
    status: str | None = None
    notes: str | None = None


@dataclass(frozen=True)
class OrderFilters:
    status: str | None = None
    user_id: str | None = None
    start_date: datetime | None = None
    end_date: datetime | None = None
    limit: int | None = None
    offset: int | None = None
    sort_by: str = "createdAt"
    sort_order: str = "DESC"
