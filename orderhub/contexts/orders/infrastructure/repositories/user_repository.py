from __future__ import annotations

from orderhub.infrastructure.repositories.base import BaseRepository


USER_SORT_COLUMNS = {
    "createdAt": "created_at",
    "email": "email",
    "firstName": "first_name",
    "lastName": "last_name",
}

_UPDATABLE_COLUMNS = {
    "first_name": "first_name",
    "last_name": "last_name",
    "phone": "phone",
    "is_active": "is_active",
}


class UserRepository(BaseRepository):
    def get_by_id(self, db, user_id: str) -> dict | None:
        row = db.execute(
            """
            SELECT *
            FROM users
            WHERE id = ?
            LIMIT 1
            """,
            (user_id,),
        ).fetchone()
        return dict(row) if row else None

    def get_by_email(self, db, email: str) -> dict | None:
        row = db.execute(
            "SELECT * FROM users WHERE email = ? LIMIT 1",
            (str(email or "").strip().lower(),),
        ).fetchone()
        return dict(row) if row else None

    def list(
        self,
        db,
        *,
        is_active: bool | None = None,
        limit: int | None = None,
        offset: int | None = None,
        sort_by: str = "createdAt",
        sort_order: str = "DESC",
    ) -> list[dict]:
        clauses: list[str] = []
        params: list[object] = []
        if is_active is not None:
            clauses.append("is_active = ?")
            params.append(bool(is_active))

        query = "SELECT * FROM users"
        if clauses:
            query += " WHERE " + " AND ".join(clauses)
        column = USER_SORT_COLUMNS.get(sort_by, "created_at")
        direction = "ASC" if str(sort_order).upper() == "ASC" else "DESC"
        query += f" ORDER BY {column} {direction}, id ASC"
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
        email: str,
        first_name: str,
        last_name: str,
        phone: str | None = None,
        is_active: bool = True,
        created_at: str | None = None,
    ) -> str:
        user_id = self.new_id()
        timestamp = created_at or self.now_timestamp()
        db.execute(
            """
            INSERT INTO users (id, email, first_name, last_name, phone, is_active, created_at, updated_at)
            VALUES (?, ?, ?, ?, ?, ?, ?, ?)
            """,
            (
                user_id,
                str(email).strip().lower(),
                first_name,
                last_name,
                phone,
                bool(is_active),
                timestamp,
                timestamp,
            ),
        )
        return user_id

    def update(self, db, user_id: str, changes: dict) -> bool:
        assignments: list[str] = []
        params: list[object] = []
        for key, column in _UPDATABLE_COLUMNS.items():
            if key in changes:
                assignments.append(f"{column} = ?")
                params.append(changes[key])
        if not assignments:
            return self.get_by_id(db, user_id) is not None

        assignments.append("updated_at = ?")
        params.append(self.now_timestamp())
        params.append(user_id)
        cursor = db.execute(
            f"UPDATE users SET {', '.join(assignments)} WHERE id = ?",
            params,
        )
        return int(cursor.rowcount or 0) > 0

    def delete(self, db, user_id: str) -> bool:
        cursor = db.execute("DELETE FROM users WHERE id = ?", (user_id,))
        return int(cursor.rowcount or 0) > 0

    def count(self, db, *, is_active: bool | None = None) -> int:
        if is_active is None:
            row = db.execute("SELECT COUNT(*) AS total FROM users").fetchone()
        else:
            row = db.execute(
                "SELECT COUNT(*) AS total FROM users WHERE is_active = ?",
                (bool(is_active),),
            ).fetchone()
        return int(row["total"] or 0) if row else 0
