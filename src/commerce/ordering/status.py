"""Order lifecycle state machine."""

from enum import Enum

from commerce.errors import InvalidArgument, InvalidStatusTransition, OrderCancellationRejected


class OrderStatus(Enum):
    PENDING = "PENDING"
    CONFIRMED = "CONFIRMED"
    PROCESSING = "PROCESSING"
    SHIPPED = "SHIPPED"
    DELIVERED = "DELIVERED"
    CANCELLED = "CANCELLED"


TRANSITIONS = {
    OrderStatus.PENDING: frozenset({OrderStatus.CONFIRMED, OrderStatus.CANCELLED}),
    OrderStatus.CONFIRMED: frozenset({OrderStatus.PROCESSING, OrderStatus.CANCELLED}),
    OrderStatus.PROCESSING: frozenset({OrderStatus.SHIPPED, OrderStatus.CANCELLED}),
    OrderStatus.SHIPPED: frozenset({OrderStatus.DELIVERED}),
    OrderStatus.DELIVERED: frozenset(),
    OrderStatus.CANCELLED: frozenset(),
}

TERMINAL = frozenset(status for status, targets in TRANSITIONS.items() if not targets)

# Statuses from which an order may no longer be cancelled
_CANCEL_REJECTIONS = {
    OrderStatus.SHIPPED: OrderCancellationRejected.ALREADY_SHIPPED,
    OrderStatus.DELIVERED: OrderCancellationRejected.ALREADY_DELIVERED,
    OrderStatus.CANCELLED: OrderCancellationRejected.ALREADY_CANCELLED,
}


def coerce_status(value) -> OrderStatus:
    """Accept an ``OrderStatus`` or its name, case-insensitively."""
    if isinstance(value, OrderStatus):
        return value
    try:
        return OrderStatus(str(value).strip().upper())
    except ValueError:
        raise InvalidArgument(f"Unknown order status: {value!r}", status=str(value)) from None


def can_transition(current, target) -> bool:
    return coerce_status(target) in TRANSITIONS[coerce_status(current)]


def assert_transition(current, target) -> None:
    current, target = coerce_status(current), coerce_status(target)
    if target not in TRANSITIONS[current]:
        raise InvalidStatusTransition(current.value, target.value)


def assert_cancellable(current, order_number: str) -> None:
    reason = _CANCEL_REJECTIONS.get(coerce_status(current))
    if reason is not None:
        raise OrderCancellationRejected(order_number, reason)


def is_open(status) -> bool:
    return coerce_status(status) not in TERMINAL
