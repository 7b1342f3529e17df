"""Product aggregate: catalogue identity, pricing and the stock it carries.

Stock quantity lives on the product itself. It is only ever changed through
``reserve_stock``, ``release_stock`` and ``set_stock``, and the inventory
ledger is the only caller of those, always from inside the product's
critical section.
"""

from datetime import UTC, datetime
from decimal import Decimal

from protean.fields import Boolean, DateTime, Float, Integer, String

from commerce.catalogue.events import (
    ProductActivated,
    ProductAdded,
    ProductDeactivated,
    ProductDetailsUpdated,
)
from commerce.domain import commerce
from commerce.errors import InsufficientStock, InvalidArgument, InvalidQuantity
from commerce.inventory.events import (
    LowStockDetected,
    StockLevelSet,
    StockReleased,
    StockReserved,
)
from commerce.shared.money import parse_price, to_money


def normalize_sku(sku):
    """Blank SKUs are treated as absent."""
    if sku is None:
        return None
    sku = str(sku).strip()
    return sku or None


@commerce.aggregate
class Product:
    """A sellable catalogue item together with its on-hand stock."""

    name = String(required=True, min_length=2, max_length=100)
    description = String(max_length=500)
    price = Float(required=True, min_value=0.01)
    stock_quantity = Integer(default=0, min_value=0)
    category = String(required=True, max_length=100)
    sku = String(max_length=50)
    active = Boolean(default=True)
    created_at = DateTime()
    updated_at = DateTime()

    # -------------------------------------------------------------------
    # Factory method
    # -------------------------------------------------------------------
    @classmethod
    def create(cls, name, price, category, stock_quantity=0, description=None, sku=None, active=True):
        """Create a catalogue product.

        ``price`` accepts anything Decimal can parse and must carry at most
        two decimal places.
        """
        amount = parse_price(price)
        if isinstance(stock_quantity, bool) or not isinstance(stock_quantity, int) or stock_quantity < 0:
            raise InvalidArgument(
                "Stock quantity must be a non-negative integer",
                field="stock_quantity",
                value=stock_quantity,
            )

        now = datetime.now(UTC)
        product = cls(
            name=name,
            description=description,
            price=float(amount),
            stock_quantity=stock_quantity,
            category=category,
            sku=normalize_sku(sku),
            active=active,
            created_at=now,
            updated_at=now,
        )
        product.raise_(
            ProductAdded(
                product_id=str(product.id),
                name=product.name,
                sku=product.sku,
                category=product.category,
                price=str(amount),
                stock_quantity=product.stock_quantity,
                active=product.active,
                added_at=now,
            )
        )
        return product

    # -------------------------------------------------------------------
    # Derived values
    # -------------------------------------------------------------------
    @property
    def unit_price(self) -> Decimal:
        return to_money(self.price)

    @property
    def stock_value(self) -> Decimal:
        return self.unit_price * self.stock_quantity

    def is_available(self, quantity) -> bool:
        return bool(self.active) and self.stock_quantity >= quantity

    # -------------------------------------------------------------------
    # Catalogue details
    # -------------------------------------------------------------------
    def update_details(self, name=None, description=None, price=None, category=None, sku=None):
        """Change descriptive fields. ``sku=""`` clears the SKU."""
        previous_price = self.unit_price
        new_price = parse_price(price) if price is not None else previous_price

        if name is not None:
            self.name = name
        if description is not None:
            self.description = description
        if category is not None:
            self.category = category
        if sku is not None:
            self.sku = normalize_sku(sku)
        self.price = float(new_price)

        now = datetime.now(UTC)
        self.updated_at = now

        self.raise_(
            ProductDetailsUpdated(
                product_id=str(self.id),
                name=self.name,
                sku=self.sku,
                category=self.category,
                previous_price=str(previous_price),
                price=str(new_price),
                updated_at=now,
            )
        )

    def activate(self):
        if self.active:
            return
        now = datetime.now(UTC)
        self.active = True
        self.updated_at = now
        self.raise_(ProductActivated(product_id=str(self.id), activated_at=now))

    def deactivate(self):
        if not self.active:
            return
        now = datetime.now(UTC)
        self.active = False
        self.updated_at = now
        self.raise_(ProductDeactivated(product_id=str(self.id), deactivated_at=now))

    # -------------------------------------------------------------------
    # Stock movements
    # -------------------------------------------------------------------
    def reserve_stock(self, quantity, low_stock_threshold=None):
        """Take ``quantity`` units out of stock for an order line."""
        if not isinstance(quantity, int) or isinstance(quantity, bool) or quantity < 1:
            raise InvalidQuantity(quantity)

        previous = self.stock_quantity
        if previous < quantity:
            raise InsufficientStock(self.name, previous, quantity)

        now = datetime.now(UTC)
        self.stock_quantity = previous - quantity
        self.updated_at = now

        self.raise_(
            StockReserved(
                product_id=str(self.id),
                quantity=quantity,
                previous_quantity=previous,
                new_quantity=self.stock_quantity,
                reserved_at=now,
            )
        )
        self._check_low_stock(low_stock_threshold)

    def release_stock(self, quantity):
        """Return ``quantity`` units to stock. There is no upper bound."""
        if not isinstance(quantity, int) or isinstance(quantity, bool) or quantity < 1:
            raise InvalidArgument("Quantity to release must be positive", quantity=quantity)

        previous = self.stock_quantity
        now = datetime.now(UTC)
        self.stock_quantity = previous + quantity
        self.updated_at = now

        self.raise_(
            StockReleased(
                product_id=str(self.id),
                quantity=quantity,
                previous_quantity=previous,
                new_quantity=self.stock_quantity,
                released_at=now,
            )
        )

    def set_stock(self, quantity, low_stock_threshold=None):
        """Overwrite the stock level. Manual corrections only."""
        if not isinstance(quantity, int) or isinstance(quantity, bool) or quantity < 0:
            raise InvalidArgument("Stock quantity cannot be negative", quantity=quantity)

        previous = self.stock_quantity
        now = datetime.now(UTC)
        self.stock_quantity = quantity
        self.updated_at = now

        self.raise_(
            StockLevelSet(
                product_id=str(self.id),
                previous_quantity=previous,
                new_quantity=quantity,
                set_at=now,
            )
        )
        self._check_low_stock(low_stock_threshold)

    def _check_low_stock(self, threshold):
        if threshold is None or self.stock_quantity > threshold:
            return
        self.raise_(
            LowStockDetected(
                product_id=str(self.id),
                name=self.name,
                current_quantity=self.stock_quantity,
                threshold=threshold,
                detected_at=datetime.now(UTC),
            )
        )
