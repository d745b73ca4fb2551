from __future__ import annotations

import logging
from typing import Dict, List, Tuple

import click
from flask import Flask

from orderhub.contexts.orders.application.order_service import OrderService
from orderhub.contexts.orders.application.user_service import UserService
from orderhub.contexts.orders.domain.contracts import OrderCreateInput, UserCreateInput


_LOGGER = logging.getLogger("orderhub")

SAMPLE_USERS: List[UserCreateInput] = [
    UserCreateInput(email="john.doe@example.com", first_name="John", last_name="Doe", phone="+49-1621-2343-567"),
    UserCreateInput(email="jane.smith@example.com", first_name="Jane", last_name="Smith", phone="+49-1621-2343-568"),
    UserCreateInput(email="mike.johnson@example.com", first_name="Mike", last_name="Johnson"),
]

# (user index, amount, notes, status path walked through the state machine)
SAMPLE_ORDERS: List[Tuple[int, float, str, Tuple[str, ...]]] = [
    (0, 99.99, "First order - Standard delivery", ()),
    (0, 149.50, "Second order - Express delivery", ("processing",)),
    (1, 79.99, "Jane's first order", ("processing", "shipped")),
    (1, 299.99, "Large order - Multiple items", ()),
    (2, 199.95, "Mike's order - Gift wrapping requested", ("processing", "shipped", "delivered")),
    (0, 49.99, "Order to be cancelled", ("cancelled",)),
]


def seed_sample_data(db) -> Dict[str, int]:
    users = UserService()
    orders = OrderService()

    if users.find_by_email(db, SAMPLE_USERS[0].email):
        return {"users": 0, "orders": 0}

    user_ids = [users.create(db, create_input)["id"] for create_input in SAMPLE_USERS]
    for user_index, amount, notes, path in SAMPLE_ORDERS:
        order = orders.create(
            db,
            OrderCreateInput(user_id=user_ids[user_index], total_amount=amount, notes=notes),
        )
        for status in path:
            orders.apply_status_transition(db, order["id"], status)
    db.commit()

    counts = {"users": len(SAMPLE_USERS), "orders": len(SAMPLE_ORDERS)}
    _LOGGER.info("sample_data_seeded", extra=counts)
    return counts


def register_seed_cli(app: Flask) -> None:
    @app.cli.command("seed")
    def seed_command() -> None:
        """Load 3 sample users and 6 orders with mixed statuses."""
        from orderhub.db import get_db

        counts = seed_sample_data(get_db())
        if not counts["users"]:
            click.echo("Sample data already present; nothing to do.")
            return
        click.echo(f"Seeded {counts['users']} users and {counts['orders']} orders.")
