"""Composition root and the facade presentation layers call.

``build_commerce`` wires the catalogue store, the inventory ledger and the
fulfillment orchestrator once, from the domain's repositories. Every facade
call runs inside its own domain context, so the facade can be shared across
worker threads.
"""

from functools import wraps

import structlog
from protean.domain import Domain

from commerce.catalogue.product import Product
from commerce.catalogue.store import CatalogStore
from commerce.config import Settings, get_settings
from commerce.inventory.ledger import InventoryLedger
from commerce.ordering.fulfillment import OrderFulfillment
from commerce.ordering.order import Order
from commerce.outcome import capture
from commerce.shared.locking import KeyedLock

logger = structlog.get_logger(__name__)


def product_record(product: Product) -> dict:
    return {
        "id": str(product.id),
        "name": product.name,
        "description": product.description,
        "price": product.unit_price,
        "stock_quantity": product.stock_quantity,
        "category": product.category,
        "sku": product.sku,
        "active": product.active,
        "created_at": product.created_at,
        "updated_at": product.updated_at,
    }


def order_record(order: Order) -> dict:
    return {
        "id": str(order.id),
        "order_number": order.order_number,
        "customer_name": order.customer_name,
        "customer_email": order.customer_email,
        "status": order.status,
        "lines": [
            {
                "product_id": str(line.product_id),
                "product_name": line.product_name,
                "quantity": line.quantity,
                "unit_price": line.price,
                "line_total": line.line_total,
            }
            for line in order.ordered_lines
        ],
        "total": order.total,
        "created_at": order.created_at,
        "updated_at": order.updated_at,
    }


def _in_context(method):
    @wraps(method)
    def wrapper(self, *args, **kwargs):
        # Pushed by hand: leaving the context manager re-raises errors through
        # their constructor, which our error types do not support
        ctx = self.domain.domain_context()
        ctx.push()
        try:
            return method(self, *args, **kwargs)
        finally:
            ctx.pop()

    return wrapper


class Commerce:
    """Entry point for catalogue, stock and order operations.

    Methods return plain records (see ``product_record`` and
    ``order_record``) and raise ``CommerceError`` subclasses on business
    failures. ``attempt`` offers the same calls as ``Outcome`` values.
    """

    def __init__(self, domain: Domain, catalogue: CatalogStore, ledger: InventoryLedger, fulfillment: OrderFulfillment):
        self.domain = domain
        self.catalogue = catalogue
        self.ledger = ledger
        self.fulfillment = fulfillment

    def attempt(self, operation: str, *args, **kwargs):
        """Run a facade method by name and capture its result as an ``Outcome``."""
        return capture(getattr(self, operation), *args, **kwargs)

    # -------------------------------------------------------------------
    # Products
    # -------------------------------------------------------------------
    @_in_context
    def create_product(self, **data) -> dict:
        return product_record(self.catalogue.create_product(**data))

    @_in_context
    def get_product(self, product_id) -> dict:
        return product_record(self.catalogue.get_product(product_id))

    @_in_context
    def get_product_by_sku(self, sku) -> dict:
        return product_record(self.catalogue.get_product_by_sku(sku))

    @_in_context
    def update_product(self, product_id, **changes) -> dict:
        return product_record(self.catalogue.update_product(product_id, **changes))

    @_in_context
    def activate_product(self, product_id) -> dict:
        return product_record(self.catalogue.activate(product_id))

    @_in_context
    def deactivate_product(self, product_id) -> dict:
        return product_record(self.catalogue.deactivate(product_id))

    @_in_context
    def delete_product(self, product_id) -> None:
        self.catalogue.delete_product(product_id)

    @_in_context
    def list_products(self, active_only: bool = False) -> list[dict]:
        products = self.catalogue.list_active_products() if active_only else self.catalogue.list_products()
        return [product_record(product) for product in products]

    @_in_context
    def products_in_category(self, category) -> list[dict]:
        return [product_record(product) for product in self.catalogue.products_in_category(category)]

    @_in_context
    def products_in_price_range(self, min_price, max_price) -> list[dict]:
        return [product_record(product) for product in self.catalogue.products_in_price_range(min_price, max_price)]

    @_in_context
    def low_stock_products(self, threshold: int | None = None) -> list[dict]:
        if threshold is None:
            threshold = self.ledger.low_stock_threshold
        return [product_record(product) for product in self.catalogue.low_stock_products(threshold)]

    @_in_context
    def search_products(self, keyword) -> list[dict]:
        return [product_record(product) for product in self.catalogue.search(keyword)]

    @_in_context
    def categories(self) -> list[str]:
        return self.catalogue.categories()

    @_in_context
    def total_stock_value(self):
        return self.catalogue.total_stock_value()

    @_in_context
    def discounted_price(self, product_id, percentage):
        return self.catalogue.discounted_price(product_id, percentage)

    # -------------------------------------------------------------------
    # Stock
    # -------------------------------------------------------------------
    @_in_context
    def check_availability(self, product_id, quantity: int) -> bool:
        return self.ledger.check_availability(product_id, quantity)

    @_in_context
    def reserve_stock(self, product_id, quantity: int) -> dict:
        return product_record(self.ledger.reserve(product_id, quantity))

    @_in_context
    def release_stock(self, product_id, quantity: int) -> dict:
        return product_record(self.ledger.release(product_id, quantity))

    @_in_context
    def set_stock(self, product_id, quantity: int) -> dict:
        return product_record(self.ledger.set_absolute(product_id, quantity))

    # -------------------------------------------------------------------
    # Orders
    # -------------------------------------------------------------------
    @_in_context
    def create_order(self, customer_name, customer_email, lines) -> dict:
        return order_record(self.fulfillment.create_order(customer_name, customer_email, lines))

    @_in_context
    def get_order(self, order_id) -> dict:
        return order_record(self.fulfillment.get_order(order_id))

    @_in_context
    def get_order_by_number(self, order_number) -> dict:
        return order_record(self.fulfillment.get_order_by_number(order_number))

    @_in_context
    def cancel_order(self, order_id) -> dict:
        return order_record(self.fulfillment.cancel_order(order_id))

    @_in_context
    def update_order_status(self, order_id, new_status) -> dict:
        return order_record(self.fulfillment.update_status(order_id, new_status))

    @_in_context
    def order_total(self, order_id):
        return self.fulfillment.calculate_order_total(order_id)

    @_in_context
    def list_orders(self, status=None) -> list[dict]:
        orders = self.fulfillment.orders_by_status(status) if status else self.fulfillment.list_orders()
        return [order_record(order) for order in orders]

    @_in_context
    def orders_for_customer(self, email) -> list[dict]:
        return [order_record(order) for order in self.fulfillment.orders_for_customer(email)]

    @_in_context
    def orders_between(self, start, end) -> list[dict]:
        return [order_record(order) for order in self.fulfillment.orders_between(start, end)]

    @_in_context
    def count_orders(self, status) -> int:
        return self.fulfillment.count_by_status(status)


def build_commerce(domain: Domain, settings: Settings | None = None) -> Commerce:
    """Compose the commerce services for an initialized domain."""
    settings = settings or get_settings()

    with domain.domain_context():
        products = domain.repository_for(Product)
        orders = domain.repository_for(Order)

    product_locks = KeyedLock()
    catalogue = CatalogStore(products, product_locks, orders=orders)
    ledger = InventoryLedger(products, product_locks, low_stock_threshold=settings.low_stock_threshold)
    fulfillment = OrderFulfillment(catalogue, ledger, orders, settings)

    logger.info("Commerce services ready", settings=repr(settings))
    return Commerce(domain, catalogue, ledger, fulfillment)
