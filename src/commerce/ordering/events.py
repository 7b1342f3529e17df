"""Domain events for the Order aggregate."""

from protean.fields import DateTime, Identifier, Integer, String, Text

from commerce.domain import commerce


@commerce.event(part_of="Order")
class OrderPlaced:
    """An order was created and its stock reserved."""

    __version__ = "v1"

    order_id = Identifier(required=True)
    order_number = String(required=True)
    customer_name = String(required=True)
    customer_email = String(required=True)
    lines = Text(required=True)  # JSON: [{product_id, product_name, quantity, unit_price}]
    line_count = Integer(required=True)
    total = String(required=True)
    placed_at = DateTime(required=True)


@commerce.event(part_of="Order")
class OrderStatusChanged:
    __version__ = "v1"

    order_id = Identifier(required=True)
    order_number = String(required=True)
    previous_status = String(required=True)
    new_status = String(required=True)
    changed_at = DateTime(required=True)


@commerce.event(part_of="Order")
class OrderCancelled:
    """An order was cancelled and its reserved stock returned."""

    __version__ = "v1"

    order_id = Identifier(required=True)
    order_number = String(required=True)
    previous_status = String(required=True)
    cancelled_at = DateTime(required=True)
