from __future__ import annotations

from datetime import datetime

from orderhub.core.clock import to_db_timestamp
from orderhub.infrastructure.repositories.base import BaseRepository


ORDER_SORT_COLUMNS = {
    "createdAt": "o.created_at",
    "totalAmount": "o.total_amount",
    "status": "o.status",
}

_ORDER_WITH_USER_COLUMNS = """
    o.id, o.user_id, o.total_amount, o.status, o.notes, o.created_at, o.updated_at,
    u.email AS user_email
"""


class OrderRepository(BaseRepository):
    def get_by_id(self, db, order_id: str) -> dict | None:
        row = db.execute(
            f"""
            SELECT {_ORDER_WITH_USER_COLUMNS}
            FROM orders o
            LEFT JOIN users u ON u.id = o.user_id
            WHERE o.id = ?
            LIMIT 1
            """,
            (order_id,),
        ).fetchone()
        return dict(row) if row else None

    def list_by_user(self, db, user_id: str) -> list[dict]:
        rows = db.execute(
            f"""
            SELECT {_ORDER_WITH_USER_COLUMNS}
            FROM orders o
            LEFT JOIN users u ON u.id = o.user_id
            WHERE o.user_id = ?
            ORDER BY o.created_at DESC, o.id ASC
            """,
            (user_id,),
        ).fetchall()
        return self.rows_to_dicts(rows)

    def list(
        self,
        db,
        *,
        status: str | None = None,
        user_id: str | None = None,
        start_date: datetime | None = None,
        end_date: datetime | None = None,
        limit: int | None = None,
        offset: int | None = None,
        sort_by: str = "createdAt",
        sort_order: str = "DESC",
    ) -> list[dict]:
        clauses: list[str] = []
        params: list[object] = []
        if status:
            clauses.append("o.status = ?")
            params.append(status)
        if user_id:
            clauses.append("o.user_id = ?")
            params.append(user_id)
        if start_date is not None:
            clauses.append("o.created_at >= ?")
            params.append(to_db_timestamp(start_date))
        if end_date is not None:
            clauses.append("o.created_at <= ?")
            params.append(to_db_timestamp(end_date))

        query = f"SELECT {_ORDER_WITH_USER_COLUMNS} FROM orders o LEFT JOIN users u ON u.id = o.user_id"
        if clauses:
            query += " WHERE " + " AND ".join(clauses)
        column = ORDER_SORT_COLUMNS.get(sort_by, "o.created_at")
        direction = "ASC" if str(sort_order).upper() == "ASC" else "DESC"
        query += f" ORDER BY {column} {direction}, o.id ASC"
        if limit:
            query += " LIMIT ?"
            params.append(int(limit))
            if offset:
                query += " OFFSET ?"
                params.append(int(offset))
        elif offset:
            query += " LIMIT -1 OFFSET ?" if db.backend == "sqlite" else " OFFSET ?"
            params.append(int(offset))

        rows = db.execute(query, params).fetchall()
        return self.rows_to_dicts(rows)

    def create(
        self,
        db,
        *,
        user_id: str,
        total_amount: float,
        status: str = "pending",
        notes: str | None = None,
        created_at: str | None = None,
    ) -> str:
        order_id = self.new_id()
        timestamp = created_at or self.now_timestamp()
        db.execute(
            """
            INSERT INTO orders (id, user_id, total_amount, status, notes, created_at, updated_at)
            VALUES (?, ?, ?, ?, ?, ?, ?)
            """,
            (order_id, user_id, total_amount, status, notes, timestamp, timestamp),
        )
        return order_id

    def update(self, db, order_id: str, changes: dict) -> bool:
        assignments: list[str] = []
        params: list[object] = []
        for column in ("total_amount", "status", "notes"):
            if column in changes:
                assignments.append(f"{column} = ?")
                params.append(changes[column])
        if not assignments:
            return self.get_by_id(db, order_id) is not None

        assignments.append("updated_at = ?")
        params.append(self.now_timestamp())
        params.append(order_id)
        cursor = db.execute(
            f"UPDATE orders SET {', '.join(assignments)} WHERE id = ?",
            params,
        )
        return int(cursor.rowcount or 0) > 0

    def update_status(self, db, order_id: str, status: str) -> bool:
        return self.update(db, order_id, {"status": status})

    def delete(self, db, order_id: str) -> bool:
        cursor = db.execute("DELETE FROM orders WHERE id = ?", (order_id,))
        return int(cursor.rowcount or 0) > 0

    def count_by_status(self, db) -> dict[str, int]:
        rows = db.execute(
            """
            SELECT status, COUNT(*) AS total
            FROM orders
            GROUP BY status
            """
        ).fetchall()
        return {str(row["status"]): int(row["total"] or 0) for row in rows}

    def total_revenue(self, db, statuses: tuple[str, ...]) -> float:
        placeholders = ", ".join("?" for _ in statuses)
        row = db.execute(
            f"SELECT SUM(total_amount) AS total FROM orders WHERE status IN ({placeholders})",
            list(statuses),
        ).fetchone()
        return self.as_float(row["total"]) if row else 0.0

    def average_amount(self, db) -> float:
        row = db.execute("SELECT AVG(total_amount) AS average FROM orders").fetchone()
        return self.as_float(row["average"]) if row else 0.0
