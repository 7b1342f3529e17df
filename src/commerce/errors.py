"""Business error kinds raised by the commerce core.

Every error carries a stable machine-readable ``code``, a human ``message``
and structured ``details``. Presentation layers translate them into their
own transport responses; that mapping does not live here.
"""

from typing import Any


class CommerceError(Exception):
    """Base class for all recoverable, caller-facing business errors."""

    code = "BUSINESS_ERROR"

    def __init__(self, message: str, **details: Any) -> None:
        super().__init__(message)
        self.message = message
        self.details = details

    def to_dict(self) -> dict[str, Any]:
        return {"code": self.code, "message": self.message, "details": dict(self.details)}

    def __repr__(self) -> str:
        return f"{type(self).__name__}(code={self.code!r}, message={self.message!r})"


class NotFound(CommerceError):
    code = "RESOURCE_NOT_FOUND"

    def __init__(self, resource: str, field: str, value: Any) -> None:
        super().__init__(
            f"{resource} with {field} '{value}' does not exist",
            resource=resource,
            field=field,
            value=str(value),
        )


class DuplicateResource(CommerceError):
    code = "DUPLICATE_RESOURCE"

    def __init__(self, resource: str, field: str, value: Any) -> None:
        super().__init__(
            f"{resource} with {field} '{value}' already exists",
            resource=resource,
            field=field,
            value=str(value),
        )


class ResourceInUse(CommerceError):
    code = "RESOURCE_IN_USE"

    def __init__(self, resource: str, identifier: Any, reason: str) -> None:
        super().__init__(
            f"{resource} '{identifier}' cannot be removed: {reason}",
            resource=resource,
            identifier=str(identifier),
        )


class InsufficientStock(CommerceError):
    code = "INSUFFICIENT_STOCK"

    def __init__(self, product_name: str, available: int, requested: int) -> None:
        super().__init__(
            f"Insufficient stock for '{product_name}'. Available: {available}, Requested: {requested}",
            product_name=product_name,
            available=available,
            requested=requested,
        )
        self.product_name = product_name
        self.available = available
        self.requested = requested


class InvalidStatusTransition(CommerceError):
    code = "INVALID_STATUS_TRANSITION"

    def __init__(self, from_status: str, to_status: str) -> None:
        super().__init__(
            f"Invalid status transition: {from_status} -> {to_status}",
            from_status=from_status,
            to_status=to_status,
        )
        self.from_status = from_status
        self.to_status = to_status


class OrderCancellationRejected(CommerceError):
    code = "ORDER_CANCELLATION_REJECTED"

    ALREADY_SHIPPED = "ALREADY_SHIPPED"
    ALREADY_DELIVERED = "ALREADY_DELIVERED"
    ALREADY_CANCELLED = "ALREADY_CANCELLED"

    _MESSAGES = {
        ALREADY_SHIPPED: "Cannot cancel an order that has already been shipped",
        ALREADY_DELIVERED: "Cannot cancel an order that has already been delivered",
        ALREADY_CANCELLED: "The order is already cancelled",
    }

    def __init__(self, order_number: str, reason: str) -> None:
        super().__init__(
            f"{self._MESSAGES[reason]} ({order_number})",
            order_number=order_number,
            reason=reason,
        )
        self.reason = reason


class EmptyOrder(CommerceError):
    code = "ORDER_EMPTY"

    def __init__(self) -> None:
        super().__init__("An order must contain at least one line")


class ProductUnavailable(CommerceError):
    code = "PRODUCT_NOT_AVAILABLE"

    def __init__(self, product_name: str, product_id: Any) -> None:
        super().__init__(
            f"Product '{product_name}' is not available",
            product_name=product_name,
            product_id=str(product_id),
        )


class InvalidQuantity(CommerceError):
    code = "INVALID_QUANTITY"

    def __init__(self, quantity: Any) -> None:
        super().__init__(f"Quantity must be at least 1, got {quantity!r}", quantity=quantity)


class InvalidArgument(CommerceError):
    code = "INVALID_ARGUMENT"

    def __init__(self, message: str, **details: Any) -> None:
        super().__init__(message, **details)


class InternalError(CommerceError):
    """An unexpected failure. Never carries internal detail."""

    code = "INTERNAL_ERROR"

    def __init__(self) -> None:
        super().__init__("An unexpected error occurred")
