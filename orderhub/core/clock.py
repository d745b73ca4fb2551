from __future__ import annotations

from datetime import datetime, timedelta, timezone


DB_TIMESTAMP_FORMAT = "%Y-%m-%d %H:%M:%S"


def utc_now() -> datetime:
    return datetime.now(timezone.utc)


def _as_utc(value: datetime) -> datetime:
    if value.tzinfo is None:
        return value.replace(tzinfo=timezone.utc)
    return value.astimezone(timezone.utc)


def to_db_timestamp(value: datetime | None = None) -> str:
    return _as_utc(value or utc_now()).strftime(DB_TIMESTAMP_FORMAT)


def parse_db_timestamp(value: object) -> datetime | None:
    """Reads a stored timestamp (sqlite text or postgres TIMESTAMP) as aware UTC."""
    if value is None:
        return None
    if isinstance(value, datetime):
        return _as_utc(value)
    raw = str(value).strip()
    if not raw:
        return None
    if raw.endswith("Z"):
        raw = raw[:-1] + "+00:00"
    try:
        parsed = datetime.fromisoformat(raw)
    except ValueError:
        try:
            parsed = datetime.strptime(raw[:19], DB_TIMESTAMP_FORMAT)
        except ValueError:
            return None
    return _as_utc(parsed)


def to_iso(value: object) -> str | None:
    parsed = parse_db_timestamp(value)
    if parsed is None:
        return None
    return parsed.isoformat().replace("+00:00", "Z")


def local_day_bounds(now: datetime) -> tuple[datetime, datetime]:
    """Server-local midnight of ``now``'s day and the next midnight, both in UTC."""
    local_now = _as_utc(now).astimezone()
    start_local = local_now.replace(hour=0, minute=0, second=0, microsecond=0)
    end_local = start_local + timedelta(days=1)
    return start_local.astimezone(timezone.utc), end_local.astimezone(timezone.utc)


def subtract_months(value: datetime, months: int) -> datetime:
    month_index = value.year * 12 + (value.month - 1) - int(months)
    year, month = divmod(month_index, 12)
    month += 1
    day = min(value.day, _days_in_month(year, month))
    return value.replace(year=year, month=month, day=day)


def _days_in_month(year: int, month: int) -> int:
    if month == 12:
        next_month = datetime(year + 1, 1, 1)
    else:
        next_month = datetime(year, month + 1, 1)
    return (next_month - timedelta(days=1)).day
