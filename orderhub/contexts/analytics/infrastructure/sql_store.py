from __future__ import annotations

from datetime import datetime, timedelta
from typing import Dict, Iterable, List

from orderhub.contexts.analytics.domain.store import AnalyticsStore, OrderQuery, OrderRecord, UserQuery, UserRecord
from orderhub.core.clock import parse_db_timestamp, to_db_timestamp
from orderhub.db import connect_database
from orderhub.infrastructure.repositories.base import BaseRepository


class SqlAnalyticsStore(AnalyticsStore):
    """AnalyticsStore over the shared users/orders tables.

    Each call opens and closes its own connection so aggregations can fan out
    across worker threads without sharing a connection.
    """

    def __init__(self, db_path: str) -> None:
        self.db_path = db_path

    def _fetch_all(self, sql: str, params: list | None = None) -> list[dict]:
        db = connect_database(self.db_path)
        try:
            rows = db.execute(sql, params or None).fetchall()
            return [dict(row) for row in rows]
        finally:
            db.close()

    def _fetch_one(self, sql: str, params: list | None = None) -> dict | None:
        rows = self._fetch_all(sql, params)
        return rows[0] if rows else None

    @staticmethod
    def _bound(value: datetime) -> str:
        # Stored timestamps have second precision; a partial second rounds up so
        # adjacent windows still partition the rows.
        if value.microsecond:
            value = value.replace(microsecond=0) + timedelta(seconds=1)
        return to_db_timestamp(value)

    @classmethod
    def _window(cls, column: str, start: datetime | None, end: datetime | None) -> tuple[list[str], list]:
        clauses: list[str] = []
        params: list = []
        if start is not None:
            clauses.append(f"{column} >= ?")
            params.append(cls._bound(start))
        if end is not None:
            clauses.append(f"{column} < ?")
            params.append(cls._bound(end))
        return clauses, params

    def list_users(self, query: UserQuery | None = None) -> List[UserRecord]:
        query = query or UserQuery()
        clauses, params = self._window("created_at", query.created_from, query.created_to)
        if query.is_active is not None:
            clauses.append("is_active = ?")
            params.append(bool(query.is_active))
        sql = "SELECT id, email, is_active, created_at FROM users"
        if clauses:
            sql += " WHERE " + " AND ".join(clauses)
        sql += " ORDER BY created_at ASC, id ASC"
        return [
            UserRecord(
                id=str(row["id"]),
                email=str(row["email"] or ""),
                is_active=BaseRepository.as_bool(row["is_active"]),
                created_at=parse_db_timestamp(row["created_at"]),
            )
            for row in self._fetch_all(sql, params)
        ]

    def list_orders(self, query: OrderQuery | None = None) -> List[OrderRecord]:
        query = query or OrderQuery()
        clauses, params = self._window("created_at", query.created_from, query.created_to)
        if query.statuses is not None:
            if not query.statuses:
                return []
            clauses.append(f"status IN ({', '.join('?' for _ in query.statuses)})")
            params.extend(query.statuses)
        sql = "SELECT id, user_id, total_amount, status, created_at FROM orders"
        if clauses:
            sql += " WHERE " + " AND ".join(clauses)
        sql += " ORDER BY created_at ASC, id ASC"
        return [
            OrderRecord(
                id=str(row["id"]),
                user_id=str(row["user_id"]),
                total_amount=BaseRepository.as_float(row["total_amount"]),
                status=str(row["status"]),
                created_at=parse_db_timestamp(row["created_at"]),
            )
            for row in self._fetch_all(sql, params)
        ]

    def count_orders_by_status(self) -> Dict[str, int]:
        rows = self._fetch_all("SELECT status, COUNT(*) AS total FROM orders GROUP BY status")
        return {str(row["status"]): int(row["total"] or 0) for row in rows}

    def count_users_created_between(self, start: datetime, end: datetime) -> int:
        clauses, params = self._window("created_at", start, end)
        row = self._fetch_one(f"SELECT COUNT(*) AS total FROM users WHERE {' AND '.join(clauses)}", params)
        return int(row["total"] or 0) if row else 0

    def count_orders_created_between(self, start: datetime, end: datetime) -> int:
        clauses, params = self._window("created_at", start, end)
        row = self._fetch_one(f"SELECT COUNT(*) AS total FROM orders WHERE {' AND '.join(clauses)}", params)
        return int(row["total"] or 0) if row else 0

    def sum_order_amounts(
        self,
        statuses: Iterable[str],
        start: datetime | None = None,
        end: datetime | None = None,
    ) -> float:
        status_list = list(statuses)
        if not status_list:
            return 0.0
        clauses, params = self._window("created_at", start, end)
        clauses.insert(0, f"status IN ({', '.join('?' for _ in status_list)})")
        params = [*status_list, *params]
        row = self._fetch_one(
            f"SELECT SUM(total_amount) AS total FROM orders WHERE {' AND '.join(clauses)}",
            params,
        )
        return BaseRepository.as_float(row["total"]) if row else 0.0
