from __future__ import annotations

import logging

from orderhub.contexts.orders.domain.contracts import UserCreateInput, UserFilters, UserUpdateInput
from orderhub.contexts.orders.infrastructure.repositories.order_repository import OrderRepository
from orderhub.contexts.orders.infrastructure.repositories.user_repository import UserRepository
from orderhub.contexts.orders.infrastructure.mappers import order_summary, user_profile
from orderhub.errors import ConflictError, NotFoundError


_LOGGER = logging.getLogger("orderhub")


class UserService:
    def __init__(
        self,
        user_repository: UserRepository | None = None,
        order_repository: OrderRepository | None = None,
    ) -> None:
        self.users = user_repository or UserRepository()
        self.orders = order_repository or OrderRepository()

    def find_by_id(self, db, user_id: str) -> dict | None:
        row = self.users.get_by_id(db, user_id)
        return user_profile(row) if row else None

    def find_by_email(self, db, email: str) -> dict | None:
        row = self.users.get_by_email(db, email)
        return user_profile(row) if row else None

    def find_all(self, db, filters: UserFilters | None = None) -> list[dict]:
        filters = filters or UserFilters()
        rows = self.users.list(
            db,
            is_active=filters.is_active,
            limit=filters.limit,
            offset=filters.offset,
            sort_by=filters.sort_by,
            sort_order=filters.sort_order,
        )
        return [user_profile(row) for row in rows]

    def create(self, db, create_input: UserCreateInput) -> dict:
        email = create_input.email.strip().lower()
        if self.users.get_by_email(db, email):
            raise ConflictError(
                message_key="email_already_registered",
                details=f"duplicate email {email}",
            )
        user_id = self.users.create(
            db,
            email=email,
            first_name=create_input.first_name,
            last_name=create_input.last_name,
            phone=create_input.phone,
        )
        _LOGGER.info("user_created", extra={"user_id": user_id})
        return user_profile(self.users.get_by_id(db, user_id))

    def update(self, db, user_id: str, update_input: UserUpdateInput) -> dict | None:
        if not self.users.update(db, user_id, update_input.changes()):
            return None
        return self.find_by_id(db, user_id)

    def deactivate(self, db, user_id: str) -> dict | None:
        if not self.users.update(db, user_id, {"is_active": False}):
            return None
        _LOGGER.info("user_deactivated", extra={"user_id": user_id})
        return self.find_by_id(db, user_id)

    def delete(self, db, user_id: str) -> None:
        if not self.users.get_by_id(db, user_id):
            raise NotFoundError(message_key="user_not_found", details=f"user {user_id}")
        self.users.delete(db, user_id)
        _LOGGER.info("user_deleted", extra={"user_id": user_id})

    def find_with_orders(self, db, user_id: str) -> dict | None:
        row = self.users.get_by_id(db, user_id)
        if not row:
            return None
        profile = user_profile(row)
        profile["orders"] = [order_summary(order) for order in self.orders.list_by_user(db, user_id)]
        return profile

    def get_user_stats(self, db) -> dict:
        total_users = self.users.count(db)
        active_users = self.users.count(db, is_active=True)
        return {
            "totalUsers": total_users,
            "activeUsers": active_users,
            "inactiveUsers": total_users - active_users,
        }
