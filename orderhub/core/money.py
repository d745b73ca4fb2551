from __future__ import annotations

from decimal import ROUND_HALF_UP, Decimal, InvalidOperation


_CENTS = Decimal("0.01")


def round_money(value: object) -> float:
    """Half-up to two decimals; ``Decimal(str(x))`` keeps 2.675 from becoming 2.67."""
    if value is None:
        return 0.0
    try:
        amount = value if isinstance(value, Decimal) else Decimal(str(value))
    except (InvalidOperation, ValueError):
        return 0.0
    return float(amount.quantize(_CENTS, rounding=ROUND_HALF_UP))


def percentage(part: float, whole: float) -> float:
    if not whole:
        return 0.0
    return round_money(float(part) / float(whole) * 100)
