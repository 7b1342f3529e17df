"""Tests for the Product aggregate."""

from decimal import Decimal

import pytest
from commerce.catalogue.events import ProductActivated, ProductAdded, ProductDeactivated, ProductDetailsUpdated
from commerce.catalogue.product import Product, normalize_sku
from commerce.errors import InsufficientStock, InvalidArgument, InvalidQuantity
from commerce.inventory.events import LowStockDetected, StockLevelSet, StockReleased, StockReserved
from protean.exceptions import ValidationError
from protean.utils.reflection import declared_fields


def _product(**overrides):
    data = {"name": "Desk Lamp", "price": "24.90", "category": "Lighting", "stock_quantity": 10}
    data.update(overrides)
    return Product.create(**data)


class TestProductConstruction:
    def test_element_type(self):
        from protean.utils import DomainObjects

        assert Product.element_type == DomainObjects.AGGREGATE

    def test_declared_fields(self):
        fields = declared_fields(Product)
        for name in ("name", "description", "price", "stock_quantity", "category", "sku", "active"):
            assert name in fields

    def test_create_defaults(self):
        product = _product()
        assert product.active is True
        assert product.sku is None
        assert product.unit_price == Decimal("24.90")
        assert product.created_at is not None
        assert product.created_at == product.updated_at

    def test_create_raises_product_added(self):
        product = _product(sku="LAMP-1")
        events = [e for e in product._events if isinstance(e, ProductAdded)]
        assert len(events) == 1
        assert events[0].sku == "LAMP-1"
        assert events[0].price == "24.90"

    def test_blank_sku_is_absent(self):
        assert normalize_sku("   ") is None
        assert normalize_sku(" AB-1 ") == "AB-1"

    def test_short_name_rejected(self):
        with pytest.raises(ValidationError):
            _product(name="A")

    def test_long_description_rejected(self):
        with pytest.raises(ValidationError):
            _product(description="x" * 501)

    def test_category_required(self):
        with pytest.raises(ValidationError):
            _product(category=None)

    def test_price_with_three_decimals_rejected(self):
        with pytest.raises(InvalidArgument):
            _product(price="1.005")

    @pytest.mark.parametrize("stock", [-1, 1.5, "3", True])
    def test_bad_opening_stock_rejected(self, stock):
        with pytest.raises(InvalidArgument):
            _product(stock_quantity=stock)

    def test_stock_value(self):
        assert _product(price="2.50", stock_quantity=4).stock_value == Decimal("10.00")


class TestProductDetails:
    def test_update_details(self):
        product = _product()
        product.update_details(name="Floor Lamp", price="30.00")

        assert product.name == "Floor Lamp"
        assert product.unit_price == Decimal("30.00")
        event = next(e for e in product._events if isinstance(e, ProductDetailsUpdated))
        assert event.previous_price == "24.90"
        assert event.price == "30.00"

    def test_update_does_not_touch_stock(self):
        product = _product(stock_quantity=7)
        product.update_details(category="Home")
        assert product.stock_quantity == 7

    def test_empty_sku_clears_it(self):
        product = _product(sku="LAMP-1")
        product.update_details(sku="")
        assert product.sku is None

    def test_deactivate_and_activate(self):
        product = _product()
        product.deactivate()
        product.deactivate()
        assert product.active is False
        assert len([e for e in product._events if isinstance(e, ProductDeactivated)]) == 1

        product.activate()
        assert product.active is True
        assert any(isinstance(e, ProductActivated) for e in product._events)

    def test_activation_keeps_stock(self):
        product = _product(stock_quantity=3)
        product.deactivate()
        assert product.stock_quantity == 3


class TestStockMovements:
    def test_reserve(self):
        product = _product(stock_quantity=10)
        product.reserve_stock(4)

        assert product.stock_quantity == 6
        event = next(e for e in product._events if isinstance(e, StockReserved))
        assert (event.previous_quantity, event.new_quantity) == (10, 6)

    def test_reserve_everything(self):
        product = _product(stock_quantity=2)
        product.reserve_stock(2)
        assert product.stock_quantity == 0

    def test_reserve_more_than_available(self):
        product = _product(name="Widget", stock_quantity=3)
        with pytest.raises(InsufficientStock) as exc:
            product.reserve_stock(5)

        assert exc.value.product_name == "Widget"
        assert exc.value.available == 3
        assert exc.value.requested == 5
        assert product.stock_quantity == 3

    @pytest.mark.parametrize("quantity", [0, -2, 1.5, True])
    def test_reserve_invalid_quantity(self, quantity):
        product = _product()
        with pytest.raises(InvalidQuantity):
            product.reserve_stock(quantity)

    def test_release_has_no_upper_bound(self):
        product = _product(stock_quantity=1)
        product.release_stock(1000)
        assert product.stock_quantity == 1001
        assert any(isinstance(e, StockReleased) for e in product._events)

    def test_release_rejects_non_positive(self):
        with pytest.raises(InvalidArgument):
            _product().release_stock(0)

    def test_set_stock(self):
        product = _product(stock_quantity=10)
        product.set_stock(42)
        assert product.stock_quantity == 42
        event = next(e for e in product._events if isinstance(e, StockLevelSet))
        assert event.previous_quantity == 10

    def test_set_stock_rejects_negative(self):
        with pytest.raises(InvalidArgument):
            _product().set_stock(-1)


class TestLowStockSignal:
    def test_raised_at_threshold(self):
        product = _product(stock_quantity=8)
        product.reserve_stock(3, low_stock_threshold=5)

        event = next(e for e in product._events if isinstance(e, LowStockDetected))
        assert event.current_quantity == 5
        assert event.threshold == 5

    def test_not_raised_above_threshold(self):
        product = _product(stock_quantity=8)
        product.reserve_stock(2, low_stock_threshold=5)
        assert not any(isinstance(e, LowStockDetected) for e in product._events)

    def test_not_raised_without_threshold(self):
        product = _product(stock_quantity=8)
        product.reserve_stock(8)
        assert not any(isinstance(e, LowStockDetected) for e in product._events)

    def test_raised_by_absolute_set(self):
        product = _product(stock_quantity=50)
        product.set_stock(1, low_stock_threshold=5)
        assert any(isinstance(e, LowStockDetected) for e in product._events)
