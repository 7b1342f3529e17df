"""Domain events for the Product aggregate, catalogue side.

Stock movements are described in ``commerce.inventory.events``.
"""

from protean.fields import Boolean, DateTime, Identifier, Integer, String

from commerce.domain import commerce


@commerce.event(part_of="Product")
class ProductAdded:
    """A new product was added to the catalogue."""

    __version__ = "v1"

    product_id = Identifier(required=True)
    name = String(required=True, max_length=100)
    sku = String(max_length=50)
    category = String(required=True, max_length=100)
    price = String(required=True)  # serialized Decimal
    stock_quantity = Integer(required=True)
    active = Boolean(default=True)
    added_at = DateTime(required=True)


@commerce.event(part_of="Product")
class ProductDetailsUpdated:
    """Name, description, price, category or SKU of a product changed."""

    __version__ = "v1"

    product_id = Identifier(required=True)
    name = String(required=True, max_length=100)
    sku = String(max_length=50)
    category = String(required=True, max_length=100)
    previous_price = String(required=True)
    price = String(required=True)
    updated_at = DateTime(required=True)


@commerce.event(part_of="Product")
class ProductActivated:
    """The product can be ordered again."""

    __version__ = "v1"

    product_id = Identifier(required=True)
    activated_at = DateTime(required=True)


@commerce.event(part_of="Product")
class ProductDeactivated:
    """The product was withdrawn from sale. Stock is left untouched."""

    __version__ = "v1"

    product_id = Identifier(required=True)
    deactivated_at = DateTime(required=True)
