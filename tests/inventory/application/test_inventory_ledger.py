"""Application tests for the inventory ledger."""

from concurrent.futures import ThreadPoolExecutor

import pytest
from commerce.catalogue.product import Product
from commerce.errors import InsufficientStock, InvalidArgument, InvalidQuantity, NotFound
from commerce.inventory.events import LowStockDetected
from protean.utils.globals import current_domain


def _stored_events(event_cls):
    messages = current_domain.event_store.store.read("$all")
    return [message for message in messages if message.type == event_cls.__type__]


class TestCheckAvailability:
    def test_available(self, make_product, ledger):
        product = make_product(stock_quantity=5)
        assert ledger.check_availability(product.id, 5) is True
        assert ledger.check_availability(product.id, 6) is False

    def test_inactive_product_unavailable(self, make_product, ledger):
        product = make_product(stock_quantity=5, active=False)
        assert ledger.check_availability(product.id, 1) is False

    def test_missing_product_unavailable(self, ledger):
        assert ledger.check_availability("missing", 1) is False

    def test_zero_quantity_is_trivially_available(self, make_product, ledger):
        product = make_product(stock_quantity=0)
        assert ledger.check_availability(product.id, 0) is True

    def test_negative_quantity_rejected(self, make_product, ledger):
        product = make_product()
        with pytest.raises(InvalidArgument):
            ledger.check_availability(product.id, -1)


class TestReserve:
    def test_decrements_stock(self, make_product, ledger):
        product = make_product(stock_quantity=10)
        ledger.reserve(product.id, 3)
        assert ledger.stock_level(product.id) == 7

    def test_insufficient_stock_leaves_level(self, make_product, ledger):
        product = make_product(stock_quantity=2)
        with pytest.raises(InsufficientStock):
            ledger.reserve(product.id, 3)
        assert ledger.stock_level(product.id) == 2

    def test_missing_product(self, ledger):
        with pytest.raises(NotFound):
            ledger.reserve("missing", 1)
        assert "missing" not in ledger.locks

    def test_invalid_quantity(self, make_product, ledger):
        product = make_product()
        with pytest.raises(InvalidQuantity):
            ledger.reserve(product.id, 0)

    def test_low_stock_signal(self, make_product, ledger):
        product = make_product(stock_quantity=6)
        updated = ledger.reserve(product.id, 2)
        assert updated.stock_quantity == 4
        signals = _stored_events(LowStockDetected)
        assert len(signals) == 1
        assert signals[0].data["product_id"] == str(product.id)
        assert signals[0].data["current_quantity"] == 4
        assert signals[0].data["threshold"] == 5

    def test_no_low_stock_signal_above_threshold(self, make_product, ledger):
        product = make_product(stock_quantity=10)
        updated = ledger.reserve(product.id, 2)
        assert updated.stock_quantity == 8
        assert _stored_events(LowStockDetected) == []


class TestReleaseAndSet:
    def test_release(self, make_product, ledger):
        product = make_product(stock_quantity=1)
        ledger.release(product.id, 4)
        assert ledger.stock_level(product.id) == 5

    def test_release_rejects_zero(self, make_product, ledger):
        product = make_product()
        with pytest.raises(InvalidArgument):
            ledger.release(product.id, 0)

    def test_set_absolute(self, make_product, ledger):
        product = make_product(stock_quantity=1)
        ledger.set_absolute(product.id, 250)
        stored = current_domain.repository_for(Product).get(product.id)
        assert stored.stock_quantity == 250

    def test_set_absolute_rejects_negative(self, make_product, ledger):
        product = make_product(stock_quantity=1)
        with pytest.raises(InvalidArgument):
            ledger.set_absolute(product.id, -5)
        assert ledger.stock_level(product.id) == 1

    def test_reserve_release_sequence_never_goes_negative(self, make_product, ledger):
        product = make_product(stock_quantity=3)
        for quantity in (2, 1, 5, 1, 3):
            try:
                ledger.reserve(product.id, quantity)
            except InsufficientStock:
                ledger.release(product.id, 1)
            assert ledger.stock_level(product.id) >= 0


class TestConcurrentReservations:
    def test_never_oversells(self, _commerce_domain, make_product, ledger):
        product = make_product(stock_quantity=20)

        def reserve_one():
            with _commerce_domain.domain_context():
                try:
                    ledger.reserve(product.id, 3)
                    return True
                except InsufficientStock:
                    return False

        with ThreadPoolExecutor(max_workers=8) as pool:
            results = list(pool.map(lambda _: reserve_one(), range(12)))

        assert results.count(True) == 6
        assert ledger.stock_level(product.id) == 2
