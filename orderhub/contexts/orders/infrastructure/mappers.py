from __future__ import annotations

from orderhub.core.clock import to_iso
from orderhub.infrastructure.repositories.base import BaseRepository


def user_profile(row: dict) -> dict:
    first_name = str(row.get("first_name") or "")
    last_name = str(row.get("last_name") or "")
    return {
        "id": row.get("id"),
        "email": row.get("email"),
        "firstName": first_name,
        "lastName": last_name,
        "fullName": f"{first_name} {last_name}".strip(),
        "phone": row.get("phone"),
        "isActive": BaseRepository.as_bool(row.get("is_active")),
        "createdAt": to_iso(row.get("created_at")),
        "updatedAt": to_iso(row.get("updated_at")),
    }


def order_summary(row: dict) -> dict:
    return {
        "id": row.get("id"),
        "userId": row.get("user_id"),
        "totalAmount": BaseRepository.as_float(row.get("total_amount")),
        "status": row.get("status"),
        "notes": row.get("notes"),
        "createdAt": to_iso(row.get("created_at")),
        "updatedAt": to_iso(row.get("updated_at")),
        "userEmail": row.get("user_email") or "Unknown",
    }
