"""Catalogue store: product lifecycle, SKU uniqueness and read projections.

Stock is never changed here. Quantities move only through the inventory
ledger; this store only creates products with their opening stock.
"""

import threading
from contextlib import contextmanager
from decimal import Decimal

import structlog
from protean.exceptions import ValidationError

from commerce.catalogue.product import Product, normalize_sku
from commerce.catalogue.repository import ProductRepository
from commerce.errors import DuplicateResource, InvalidArgument, NotFound, ResourceInUse
from commerce.shared.locking import KeyedLock
from commerce.shared.money import ZERO, apply_discount, to_money

logger = structlog.get_logger(__name__)

UPDATABLE_FIELDS = frozenset({"name", "description", "price", "category", "sku", "active"})


@contextmanager
def translate_validation():
    """Re-raise field validation failures as ``InvalidArgument``."""
    try:
        yield
    except ValidationError as exc:
        raise InvalidArgument("Invalid product data", errors=exc.messages) from None


class CatalogStore:
    def __init__(self, products: ProductRepository, locks: KeyedLock, orders=None):
        self.products = products
        self.locks = locks
        self.orders = orders
        self._sku_lock = threading.Lock()

    # -------------------------------------------------------------------
    # Commands
    # -------------------------------------------------------------------
    def create_product(
        self,
        name,
        price,
        category,
        stock_quantity=0,
        description=None,
        sku=None,
        active=True,
    ) -> Product:
        """Add a product to the catalogue.

        A SKU already used by another product is rejected with
        ``DuplicateResource`` and the existing product is left alone.
        """
        sku = normalize_sku(sku)
        with self._sku_lock:
            if sku is not None and self.products.sku_taken(sku):
                raise DuplicateResource("Product", "sku", sku)

            with translate_validation():
                product = Product.create(
                    name=name,
                    price=price,
                    category=category,
                    stock_quantity=stock_quantity,
                    description=description,
                    sku=sku,
                    active=active,
                )
            self.products.add(product)

        logger.info(
            "Product created",
            product_id=str(product.id),
            sku=product.sku,
            stock_quantity=product.stock_quantity,
        )
        return product

    def update_product(self, product_id, **changes) -> Product:
        """Change descriptive fields and the active flag.

        Stock cannot be changed here; use the inventory ledger.
        """
        if "stock_quantity" in changes:
            raise InvalidArgument(
                "Stock quantity is managed by the inventory ledger",
                field="stock_quantity",
            )
        unknown = sorted(set(changes) - UPDATABLE_FIELDS)
        if unknown:
            raise InvalidArgument(f"Unknown product fields: {', '.join(unknown)}", fields=unknown)

        active = changes.pop("active", None)
        with self.locks.hold(product_id), self._sku_lock:
            product = self.products.load(product_id)

            if changes.get("sku") is not None:
                new_sku = normalize_sku(changes["sku"])
                if new_sku is not None and self.products.sku_taken(new_sku, exclude_id=product.id):
                    raise DuplicateResource("Product", "sku", new_sku)
                changes["sku"] = new_sku or ""

            with translate_validation():
                if changes:
                    product.update_details(**changes)
                if active is True:
                    product.activate()
                elif active is False:
                    product.deactivate()

            self.products.add(product)

        logger.info("Product updated", product_id=str(product.id), fields=sorted(changes))
        return product

    def activate(self, product_id) -> Product:
        return self._set_active(product_id, True)

    def deactivate(self, product_id) -> Product:
        return self._set_active(product_id, False)

    def _set_active(self, product_id, active: bool) -> Product:
        with self.locks.hold(product_id):
            product = self.products.load(product_id)
            if active:
                product.activate()
            else:
                product.deactivate()
            self.products.add(product)

        logger.info("Product availability changed", product_id=str(product.id), active=active)
        return product

    def delete_product(self, product_id) -> None:
        """Remove a product that no open order still refers to."""
        with self.locks.hold(product_id):
            product = self.products.load(product_id)
            if self.orders is not None:
                open_orders = self.orders.find_open_referencing(product.id)
                if open_orders:
                    raise ResourceInUse(
                        "Product",
                        product.id,
                        f"referenced by {len(open_orders)} open order(s)",
                    )
            self.products.remove(product)

        logger.info("Product deleted", product_id=str(product_id))

    # -------------------------------------------------------------------
    # Lookups
    # -------------------------------------------------------------------
    def get_product(self, product_id) -> Product:
        return self.products.load(product_id)

    def get_product_by_sku(self, sku) -> Product:
        normalized = normalize_sku(sku)
        product = self.products.find_by_sku(normalized) if normalized else None
        if product is None:
            raise NotFound("Product", "sku", sku)
        return product

    # -------------------------------------------------------------------
    # Projections
    # -------------------------------------------------------------------
    def list_products(self) -> list[Product]:
        return self.products.find_all()

    def list_active_products(self) -> list[Product]:
        return self.products.find_active()

    def list_inactive_products(self) -> list[Product]:
        return [product for product in self.products.find_all() if not product.active]

    def products_in_category(self, category) -> list[Product]:
        return self.products.find_by_category(category)

    def products_in_price_range(self, min_price, max_price) -> list[Product]:
        """Active products priced within ``[min_price, max_price]``."""
        low, high = to_money(min_price), to_money(max_price)
        if low < ZERO or high < ZERO:
            raise InvalidArgument("Price bounds cannot be negative", min_price=str(low), max_price=str(high))
        if low > high:
            raise InvalidArgument(
                "Minimum price cannot exceed maximum price",
                min_price=str(low),
                max_price=str(high),
            )
        return [product for product in self.products.find_active() if low <= product.unit_price <= high]

    def low_stock_products(self, threshold: int) -> list[Product]:
        """Active products with fewer than ``threshold`` units on hand."""
        if isinstance(threshold, bool) or not isinstance(threshold, int) or threshold < 0:
            raise InvalidArgument("Threshold must be a non-negative integer", threshold=threshold)
        return [product for product in self.products.find_active() if product.stock_quantity < threshold]

    def search(self, keyword) -> list[Product]:
        """Case-insensitive substring match on name or description."""
        if not isinstance(keyword, str) or not keyword.strip():
            raise InvalidArgument("Search keyword is required", field="keyword")

        needle = keyword.strip().lower()
        return [
            product
            for product in self.products.find_all()
            if needle in product.name.lower() or needle in (product.description or "").lower()
        ]

    def categories(self) -> list[str]:
        return sorted({product.category for product in self.products.find_active()})

    def total_stock_value(self) -> Decimal:
        return sum((product.stock_value for product in self.products.find_active()), ZERO)

    def discounted_price(self, product_id, percentage) -> Decimal:
        product = self.products.load(product_id)
        return apply_discount(product.unit_price, percentage)
