from __future__ import annotations

from dataclasses import dataclass
from typing import Dict, Tuple

from orderhub.errors import InvalidStatusError


STATUS_PENDING = "pending"
STATUS_PROCESSING = "processing"
STATUS_SHIPPED = "shipped"
STATUS_DELIVERED = "delivered"
STATUS_CANCELLED = "cancelled"

ORDER_STATUSES: Tuple[str, ...] = (
    STATUS_PENDING,
    STATUS_PROCESSING,
    STATUS_SHIPPED,
    STATUS_DELIVERED,
    STATUS_CANCELLED,
)

ORDER_TRANSITIONS: Dict[str, Tuple[str, ...]] = {
    STATUS_PENDING: (STATUS_PROCESSING, STATUS_CANCELLED),
    STATUS_PROCESSING: (STATUS_SHIPPED, STATUS_CANCELLED),
    STATUS_SHIPPED: (STATUS_DELIVERED,),
    STATUS_DELIVERED: (),
    STATUS_CANCELLED: (),
}

CANCELLABLE_STATUSES = frozenset({STATUS_PENDING, STATUS_PROCESSING})
DELETABLE_STATUSES = frozenset({STATUS_PENDING, STATUS_CANCELLED})

CANCEL_REJECTED_REASON = "Cannot cancel order that is already shipped or delivered"
DELETE_REJECTED_REASON = "Cannot delete order that is in progress or completed"


@dataclass(frozen=True)
class TransitionDecision:
    allowed: bool
    status: str
    reason: str | None = None


def parse_status(value: object) -> str:
    status = value if isinstance(value, str) else ""
    if status not in ORDER_TRANSITIONS:
        raise InvalidStatusError(
            details=f"Invalid order status: {value}",
            payload={"validStatuses": list(ORDER_STATUSES)},
        )
    return status


def valid_targets(current: str) -> Tuple[str, ...]:
    return ORDER_TRANSITIONS[parse_status(current)]


def decide_transition(current: str, requested: str) -> TransitionDecision:
    targets = valid_targets(current)
    requested = parse_status(requested)
    if requested in targets:
        return TransitionDecision(allowed=True, status=requested)
    return TransitionDecision(
        allowed=False,
        status=current,
        reason=(
            f"Invalid status transition from {current} to {requested}. "
            f"Valid transitions: {', '.join(targets) or 'none'}"
        ),
    )


def decide_cancellation(current: str) -> TransitionDecision:
    current = parse_status(current)
    if current in CANCELLABLE_STATUSES:
        return TransitionDecision(allowed=True, status=STATUS_CANCELLED)
    return TransitionDecision(allowed=False, status=current, reason=CANCEL_REJECTED_REASON)


def decide_deletion(current: str) -> TransitionDecision:
    current = parse_status(current)
    if current in DELETABLE_STATUSES:
        return TransitionDecision(allowed=True, status=current)
    return TransitionDecision(allowed=False, status=current, reason=DELETE_REJECTED_REASON)


def append_cancellation_reason(notes: str | None, reason: str | None) -> str | None:
    if not reason:
        return notes
    return f"{notes or ''}\nCancellation reason: {reason}".strip()
