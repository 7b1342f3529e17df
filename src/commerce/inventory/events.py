"""Domain events describing stock movements on a Product."""

from protean.fields import DateTime, Identifier, Integer, String

from commerce.domain import commerce


@commerce.event(part_of="Product")
class StockReserved:
    """Stock was taken to back an order line."""

    __version__ = "v1"

    product_id = Identifier(required=True)
    quantity = Integer(required=True)
    previous_quantity = Integer(required=True)
    new_quantity = Integer(required=True)
    reserved_at = DateTime(required=True)


@commerce.event(part_of="Product")
class StockReleased:
    """Previously reserved stock was returned, usually by a cancellation."""

    __version__ = "v1"

    product_id = Identifier(required=True)
    quantity = Integer(required=True)
    previous_quantity = Integer(required=True)
    new_quantity = Integer(required=True)
    released_at = DateTime(required=True)


@commerce.event(part_of="Product")
class StockLevelSet:
    """Stock was overwritten by a manual correction."""

    __version__ = "v1"

    product_id = Identifier(required=True)
    previous_quantity = Integer(required=True)
    new_quantity = Integer(required=True)
    set_at = DateTime(required=True)


@commerce.event(part_of="Product")
class LowStockDetected:
    """Remaining stock fell to or below the low-stock threshold."""

    __version__ = "v1"

    product_id = Identifier(required=True)
    name = String(required=True, max_length=100)
    current_quantity = Integer(required=True)
    threshold = Integer(required=True)
    detected_at = DateTime(required=True)
