"""Repository for the Product aggregate."""

from protean.core.repository import BaseRepository
from protean.exceptions import ObjectNotFoundError

from commerce.catalogue.product import Product
from commerce.domain import commerce
from commerce.errors import NotFound
from commerce.shared.locking import store_lock

PAGE_SIZE = 100


@commerce.repository(part_of=Product)
class ProductRepository(BaseRepository):
    """Product persistence plus the lookups the catalogue and ledger need.

    Every store access runs under ``store_lock``.
    """

    def add(self, product: Product) -> Product:
        with store_lock:
            return super().add(product)

    def remove(self, product: Product) -> None:
        with store_lock:
            self._dao.delete(product)

    def load(self, product_id) -> Product:
        """Fetch a product by id or raise ``NotFound``."""
        product = self.find_by_id(product_id)
        if product is None:
            raise NotFound("Product", "id", product_id)
        return product

    def find_by_id(self, product_id) -> Product | None:
        if not product_id:
            return None
        with store_lock:
            try:
                return self.get(product_id)
            except ObjectNotFoundError:
                return None

    def find_by_sku(self, sku: str) -> Product | None:
        matches = self._fetch(sku=sku)
        return matches[0] if matches else None

    def sku_taken(self, sku: str, exclude_id=None) -> bool:
        """True when another product (not ``exclude_id``) already uses ``sku``."""
        return any(str(product.id) != str(exclude_id) for product in self._fetch(sku=sku))

    def find_all(self) -> list[Product]:
        return self._fetch()

    def find_active(self) -> list[Product]:
        return self._fetch(active=True)

    def find_by_category(self, category: str) -> list[Product]:
        return self._fetch(category=category)

    def _fetch(self, **filters) -> list[Product]:
        """Page through every matching record."""
        query = self._dao.query.filter(**filters) if filters else self._dao.query
        records = []
        offset = 0
        with store_lock:
            while True:
                page = query.offset(offset).limit(PAGE_SIZE).all().items
                records.extend(page)
                if len(page) < PAGE_SIZE:
                    return records
                offset += PAGE_SIZE
