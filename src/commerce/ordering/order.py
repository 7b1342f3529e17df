"""Order aggregate with its line items.

An order is created once, with all of its lines, by ``Order.place``. After
that the lines are frozen snapshots of what was bought and at what price;
only the status moves, and only along the edges of the lifecycle table.
"""

import json
from datetime import UTC, datetime
from decimal import Decimal

from protean.fields import DateTime, Float, HasMany, Identifier, Integer, String

from commerce.domain import commerce
from commerce.errors import EmptyOrder
from commerce.ordering.events import OrderCancelled, OrderPlaced, OrderStatusChanged
from commerce.ordering.status import TERMINAL, OrderStatus, assert_cancellable, assert_transition, coerce_status
from commerce.shared.money import ZERO, to_money


# ---------------------------------------------------------------------------
# Entities
# ---------------------------------------------------------------------------
@commerce.entity(part_of="Order")
class OrderLine:
    """One product bought in an order.

    ``product_name`` and ``unit_price`` are captured when the order is placed
    and never follow later catalogue changes.
    """

    position = Integer(required=True, min_value=0)
    product_id = Identifier(required=True)
    product_name = String(required=True, max_length=100)
    quantity = Integer(required=True, min_value=1)
    unit_price = Float(required=True, min_value=0.0)

    @property
    def price(self) -> Decimal:
        return to_money(self.unit_price)

    @property
    def line_total(self) -> Decimal:
        return self.price * self.quantity


# ---------------------------------------------------------------------------
# Aggregate Root
# ---------------------------------------------------------------------------
@commerce.aggregate
class Order:
    order_number = String(required=True, max_length=50)
    customer_name = String(required=True, max_length=100)
    customer_email = String(required=True, max_length=254)
    status = String(
        choices=OrderStatus,
        default=OrderStatus.PENDING.value,
    )
    lines = HasMany(OrderLine)
    created_at = DateTime()
    updated_at = DateTime()

    # -------------------------------------------------------------------
    # Factory method
    # -------------------------------------------------------------------
    @classmethod
    def place(cls, order_number, customer_name, customer_email, lines_data):
        """Create a pending order.

        Args:
            order_number: The unique, already generated order number.
            customer_name: Name of the buyer.
            customer_email: Contact address of the buyer.
            lines_data: Sequence of dicts with product_id, product_name,
                        quantity and unit_price (a Decimal).
        """
        if not lines_data:
            raise EmptyOrder()

        now = datetime.now(UTC)
        order = cls(
            order_number=order_number,
            customer_name=customer_name,
            customer_email=customer_email,
            status=OrderStatus.PENDING.value,
            created_at=now,
            updated_at=now,
        )
        for position, data in enumerate(lines_data):
            order.add_lines(
                OrderLine(
                    position=position,
                    product_id=str(data["product_id"]),
                    product_name=data["product_name"],
                    quantity=data["quantity"],
                    unit_price=float(to_money(data["unit_price"])),
                )
            )

        order.raise_(
            OrderPlaced(
                order_id=str(order.id),
                order_number=order.order_number,
                customer_name=order.customer_name,
                customer_email=order.customer_email,
                lines=json.dumps(
                    [
                        {
                            "product_id": str(line.product_id),
                            "product_name": line.product_name,
                            "quantity": line.quantity,
                            "unit_price": str(line.price),
                        }
                        for line in order.ordered_lines
                    ]
                ),
                line_count=len(lines_data),
                total=str(order.total),
                placed_at=now,
            )
        )
        return order

    # -------------------------------------------------------------------
    # Derived values
    # -------------------------------------------------------------------
    @property
    def current_status(self) -> OrderStatus:
        return coerce_status(self.status)

    @property
    def is_open(self) -> bool:
        return self.current_status not in TERMINAL

    @property
    def ordered_lines(self) -> list[OrderLine]:
        return sorted(self.lines, key=lambda line: line.position)

    @property
    def total(self) -> Decimal:
        return sum((line.line_total for line in self.lines), ZERO)

    def references(self, product_id) -> bool:
        return any(str(line.product_id) == str(product_id) for line in self.lines)

    # -------------------------------------------------------------------
    # Lifecycle
    # -------------------------------------------------------------------
    def transition_to(self, target):
        """Move along a lifecycle edge. Cancellation has its own method."""
        target = coerce_status(target)
        previous = self.current_status
        assert_transition(previous, target)

        now = datetime.now(UTC)
        self.status = target.value
        self.updated_at = now
        self.raise_(
            OrderStatusChanged(
                order_id=str(self.id),
                order_number=self.order_number,
                previous_status=previous.value,
                new_status=target.value,
                changed_at=now,
            )
        )

    def cancel(self):
        previous = self.current_status
        assert_cancellable(previous, self.order_number)

        now = datetime.now(UTC)
        self.status = OrderStatus.CANCELLED.value
        self.updated_at = now
        self.raise_(
            OrderCancelled(
                order_id=str(self.id),
                order_number=self.order_number,
                previous_status=previous.value,
                cancelled_at=now,
            )
        )
