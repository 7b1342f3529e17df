"""Repository for the Order aggregate."""

from datetime import UTC, datetime

from protean.core.repository import BaseRepository
from protean.exceptions import ObjectNotFoundError

from commerce.domain import commerce
from commerce.errors import NotFound
from commerce.ordering.order import Order
from commerce.ordering.status import coerce_status
from commerce.shared.locking import store_lock

PAGE_SIZE = 100


def _as_utc(moment: datetime) -> datetime:
    # SQL providers may hand back naive timestamps
    return moment if moment.tzinfo else moment.replace(tzinfo=UTC)


@commerce.repository(part_of=Order)
class OrderRepository(BaseRepository):
    """Order persistence. Lines are loaded together with their order."""

    def add(self, order: Order) -> Order:
        with store_lock:
            return super().add(order)

    def load(self, order_id) -> Order:
        """Fetch an order by id or raise ``NotFound``."""
        if not order_id:
            raise NotFound("Order", "id", order_id)
        with store_lock:
            try:
                return self._with_lines(self.get(order_id))
            except ObjectNotFoundError:
                raise NotFound("Order", "id", order_id) from None

    def find_by_order_number(self, order_number: str) -> Order | None:
        matches = self._fetch(order_number=order_number)
        return matches[0] if matches else None

    def order_number_taken(self, order_number: str) -> bool:
        return self.find_by_order_number(order_number) is not None

    def find_all(self) -> list[Order]:
        return self._fetch()

    def find_by_customer_email(self, email: str) -> list[Order]:
        return self._fetch(customer_email=email)

    def find_by_status(self, status) -> list[Order]:
        return self._fetch(status=coerce_status(status).value)

    def find_between(self, start, end) -> list[Order]:
        """Orders created within ``[start, end]``."""
        return [order for order in self._fetch() if order.created_at and start <= _as_utc(order.created_at) <= end]

    def find_open_referencing(self, product_id) -> list[Order]:
        """Non-terminal orders with a line for ``product_id``."""
        return [order for order in self._fetch() if order.is_open and order.references(product_id)]

    def _fetch(self, **filters) -> list[Order]:
        query = self._dao.query.filter(**filters) if filters else self._dao.query
        records = []
        offset = 0
        with store_lock:
            while True:
                page = query.offset(offset).limit(PAGE_SIZE).all().items
                records.extend(self._with_lines(order) for order in page)
                if len(page) < PAGE_SIZE:
                    return records
                offset += PAGE_SIZE

    @staticmethod
    def _with_lines(order: Order) -> Order:
        # Touch the association so lines are read while the store is locked
        order.lines  # noqa: B018
        return order
