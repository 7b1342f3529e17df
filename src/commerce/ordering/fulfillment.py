"""Order fulfillment: placing, cancelling and advancing orders.

Placing an order is all-or-nothing. The critical sections of every product
in the request are held while lines are reserved and the order is written,
and any failure hands back what this call already reserved before the error
reaches the caller.
"""

import secrets
import threading
from datetime import UTC, datetime
from decimal import Decimal

import structlog
from protean.exceptions import ValidationError

from commerce.catalogue.store import CatalogStore
from commerce.config import Settings
from commerce.errors import InvalidArgument, NotFound, ProductUnavailable
from commerce.inventory.ledger import InventoryLedger
from commerce.ordering.order import Order
from commerce.ordering.repository import OrderRepository
from commerce.ordering.requests import validate_order_request
from commerce.ordering.status import OrderStatus, assert_transition, coerce_status
from commerce.shared.locking import KeyedLock

logger = structlog.get_logger(__name__)

ORDER_NUMBER_ATTEMPTS = 10


class OrderFulfillment:
    def __init__(
        self,
        catalogue: CatalogStore,
        ledger: InventoryLedger,
        orders: OrderRepository,
        settings: Settings,
        order_locks: KeyedLock | None = None,
    ):
        self.catalogue = catalogue
        self.ledger = ledger
        self.orders = orders
        self.settings = settings
        self.order_locks = order_locks or KeyedLock()
        self._number_lock = threading.Lock()

    # -------------------------------------------------------------------
    # Placing orders
    # -------------------------------------------------------------------
    def create_order(self, customer_name, customer_email, lines) -> Order:
        """Validate, reserve stock for every line and persist a PENDING order."""
        request = validate_order_request(customer_name, customer_email, lines)

        # Resolve up front so unknown or inactive products fail before any mutation
        for line in request.lines:
            product = self.catalogue.get_product(line.product_id)
            if not product.active:
                raise ProductUnavailable(product.name, product.id)

        with self.ledger.hold(*request.product_ids):
            reserved = []
            try:
                snapshots = []
                for line in request.lines:
                    product = self.catalogue.get_product(line.product_id)
                    if not product.active:
                        raise ProductUnavailable(product.name, product.id)

                    self.ledger.reserve(line.product_id, line.quantity)
                    reserved.append(line)
                    snapshots.append(
                        {
                            "product_id": line.product_id,
                            "product_name": product.name,
                            "quantity": line.quantity,
                            "unit_price": product.unit_price,
                        }
                    )

                order = self._persist_new_order(request, snapshots)
            except Exception:
                self._release_reserved(reserved)
                raise

        logger.info(
            "Order placed",
            order_id=str(order.id),
            order_number=order.order_number,
            lines=len(request.lines),
            total=str(order.total),
        )
        return order

    def _persist_new_order(self, request, snapshots) -> Order:
        with self._number_lock:
            order_number = self._next_order_number()
            try:
                order = Order.place(
                    order_number=order_number,
                    customer_name=request.customer_name,
                    customer_email=request.customer_email,
                    lines_data=snapshots,
                )
            except ValidationError as exc:
                raise InvalidArgument("Invalid order data", errors=exc.messages) from None
            return self.orders.add(order)

    def _next_order_number(self) -> str:
        prefix = self.settings.order_number_prefix
        for _ in range(ORDER_NUMBER_ATTEMPTS):
            candidate = f"{prefix}-{secrets.token_hex(4).upper()}"
            if not self.orders.order_number_taken(candidate):
                return candidate
        raise RuntimeError("Could not generate a unique order number")

    def _release_reserved(self, reserved) -> None:
        for line in reversed(reserved):
            self.ledger.release(line.product_id, line.quantity)

        if reserved:
            logger.warning(
                "Order placement rolled back",
                released=[(line.product_id, line.quantity) for line in reserved],
            )

    # -------------------------------------------------------------------
    # Cancellation
    # -------------------------------------------------------------------
    def cancel_order(self, order_id) -> Order:
        """Cancel an order and return every reserved unit to stock."""
        with self.order_locks.hold(order_id):
            order = self.orders.load(order_id)
            order.cancel()

            lines = order.ordered_lines
            with self.ledger.hold(*[line.product_id for line in lines]):
                released = []
                try:
                    for line in lines:
                        self.ledger.release(line.product_id, line.quantity)
                        released.append(line)
                    self.orders.add(order)
                except Exception:
                    # Product sections are still held, so the stock is there to take back
                    for line in reversed(released):
                        self.ledger.reserve(line.product_id, line.quantity)
                    raise

        logger.info(
            "Order cancelled",
            order_id=str(order.id),
            order_number=order.order_number,
            released=len(lines),
        )
        return order

    # -------------------------------------------------------------------
    # Status changes
    # -------------------------------------------------------------------
    def update_status(self, order_id, new_status) -> Order:
        """Advance an order along the lifecycle table.

        A permitted move to CANCELLED goes through ``cancel_order`` so the
        reserved stock comes back.
        """
        target = coerce_status(new_status)

        with self.order_locks.hold(order_id):
            order = self.orders.load(order_id)
            previous = order.current_status
            assert_transition(previous, target)

            if target is OrderStatus.CANCELLED:
                return self.cancel_order(order_id)

            order.transition_to(target)
            self.orders.add(order)

        logger.info(
            "Order status changed",
            order_id=str(order.id),
            order_number=order.order_number,
            previous=previous.value,
            new=target.value,
        )
        return order

    # -------------------------------------------------------------------
    # Queries
    # -------------------------------------------------------------------
    def calculate_order_total(self, order_id) -> Decimal:
        return self.orders.load(order_id).total

    def get_order(self, order_id) -> Order:
        return self.orders.load(order_id)

    def get_order_by_number(self, order_number) -> Order:
        order = self.orders.find_by_order_number(order_number) if order_number else None
        if order is None:
            raise NotFound("Order", "order_number", order_number)
        return order

    def list_orders(self) -> list[Order]:
        return self.orders.find_all()

    def orders_for_customer(self, email) -> list[Order]:
        if not isinstance(email, str) or not email.strip():
            raise InvalidArgument("Customer email is required", field="customer_email")
        return self.orders.find_by_customer_email(email.strip())

    def orders_by_status(self, status) -> list[Order]:
        return self.orders.find_by_status(status)

    def count_by_status(self, status) -> int:
        return len(self.orders.find_by_status(status))

    def orders_between(self, start: datetime, end: datetime) -> list[Order]:
        """Orders created between ``start`` and ``end``, inclusive.

        Naive datetimes are taken to be UTC.
        """
        if not isinstance(start, datetime) or not isinstance(end, datetime):
            raise InvalidArgument("Start and end must be datetimes")

        start = start if start.tzinfo else start.replace(tzinfo=UTC)
        end = end if end.tzinfo else end.replace(tzinfo=UTC)
        if start > end:
            raise InvalidArgument("Start must not be after end", start=start.isoformat(), end=end.isoformat())
        return self.orders.find_between(start, end)
