"""Inventory ledger: the single authority over product stock levels.

Every mutation is a read-check-write performed inside the product's
critical section, so concurrent reservations against the same product are
serialized and can never drive stock below zero.
"""

from contextlib import contextmanager

import structlog

from commerce.catalogue.repository import ProductRepository
from commerce.errors import InvalidArgument
from commerce.shared.locking import KeyedLock

logger = structlog.get_logger(__name__)


class InventoryLedger:
    def __init__(self, products: ProductRepository, locks: KeyedLock, low_stock_threshold: int | None = None):
        self.products = products
        self.locks = locks
        self.low_stock_threshold = low_stock_threshold

    @contextmanager
    def hold(self, *product_ids):
        """Hold the critical sections of several products at once.

        Locks are re-entrant, so ledger calls made inside the block reuse them.
        """
        with self.locks.hold(*product_ids):
            yield

    def check_availability(self, product_id, quantity: int) -> bool:
        """Advisory check. ``reserve`` is the only authoritative one."""
        if isinstance(quantity, bool) or not isinstance(quantity, int):
            raise InvalidArgument("Quantity must be an integer", quantity=quantity)
        if quantity < 0:
            raise InvalidArgument("Quantity cannot be negative", quantity=quantity)

        product = self.products.find_by_id(product_id)
        if product is None:
            return False
        return product.is_available(quantity)

    def stock_level(self, product_id) -> int:
        return self.products.load(product_id).stock_quantity

    def reserve(self, product_id, quantity: int):
        """Take ``quantity`` units out of stock. Returns the updated product."""
        with self.locks.hold(product_id):
            product = self.products.load(product_id)
            product.reserve_stock(quantity, low_stock_threshold=self.low_stock_threshold)
            self.products.add(product)

        logger.info(
            "Stock reserved",
            product_id=str(product_id),
            quantity=quantity,
            remaining=product.stock_quantity,
        )
        return product

    def release(self, product_id, quantity: int):
        """Return ``quantity`` units to stock. Returns the updated product."""
        with self.locks.hold(product_id):
            product = self.products.load(product_id)
            product.release_stock(quantity)
            self.products.add(product)

        logger.info(
            "Stock released",
            product_id=str(product_id),
            quantity=quantity,
            remaining=product.stock_quantity,
        )
        return product

    def set_absolute(self, product_id, quantity: int):
        """Overwrite the stock level of a product."""
        with self.locks.hold(product_id):
            product = self.products.load(product_id)
            previous = product.stock_quantity
            product.set_stock(quantity, low_stock_threshold=self.low_stock_threshold)
            self.products.add(product)

        logger.warning(
            "Stock level overwritten",
            product_id=str(product_id),
            previous=previous,
            quantity=quantity,
        )
        return product
